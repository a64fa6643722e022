"""Repository package exposing persistence-layer access for users and accounts."""

from __future__ import annotations

from cyclo.repositories.account import AccountRepository
from cyclo.repositories.base import BaseRepository
from cyclo.repositories.user import UserRepository

__all__ = [
    "AccountRepository",
    "BaseRepository",
    "UserRepository",
]
