# cyclo/services/_shared/base.py
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from cyclo.services._shared.dto import ErrorCode, ServiceResult
from cyclo.services._shared.errors import ServiceError
from cyclo.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def now_utc() -> datetime:
    """Return the current aware UTC datetime."""
    return datetime.now(tz=UTC)


def as_utc(value: datetime) -> datetime:
    """
    Return ``value`` as an aware UTC datetime.

    SQLite hands back naive datetimes for ``DateTime(timezone=True)`` columns;
    those are stored in UTC, so the zone is attached rather than converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Own the operation boundary: nothing raised inside a public operation
      escapes it; everything becomes a :class:`ServiceResult`.

    Notes
    -----
    - Services never touch the global session directly; always use a UoW.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        """
        Initialize the base service.

        :param clock: Callable returning the current aware UTC datetime.
        :type clock: Callable[[], datetime] | None
        """
        self.clock: Clock = clock or now_utc

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        return SQLAlchemyReadOnlyUnitOfWork()

    # -------------------------- Error boundary ------------------------------

    def run_operation(
        self,
        name: str,
        fn: Callable[[], Any],
        *,
        failure_message: str,
    ) -> ServiceResult:
        """
        Run ``fn`` and convert its outcome into a :class:`ServiceResult`.

        :param name: Operation name, used for logs and the catch-all code
            (``"login"`` -> ``LOGIN_FAILED``).
        :type name: str
        :param fn: Zero-argument callable returning the success payload.
        :type fn: Callable[[], Any]
        :param failure_message: Generic message for unexpected failures.
        :type failure_message: str
        :returns: Success result wrapping ``fn()``'s return value, or a
            failure result.
        :rtype: ServiceResult
        """
        try:
            data = fn()
        except ServiceError as exc:
            logger.info(
                "%s rejected: %s",
                name,
                exc.code,
                extra={"operation": name, "code": exc.code},
            )
            return ServiceResult.fail(exc.code, exc.message, exc.details)
        except Exception:
            code = ErrorCode.failed(name)
            logger.exception("%s failed", name, extra={"operation": name, "code": code})
            return ServiceResult.fail(code, failure_message)
        return ServiceResult.ok(data)
