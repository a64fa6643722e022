from cyclo.models.account import Account
from cyclo.models.user import User, UserRole

__all__ = [
    "Account",
    "User",
    "UserRole",
]
