"""
Unit of work around one SQLAlchemy session.

    with UnitOfWork(SessionLocal) as uow:
        uow.session.add(...)

Commits when the block exits cleanly, rolls back on any exception and always
closes the session. The transaction is bounded twice: lock/connection waits by
the acquire timeout, the whole block by the total timeout. Store faults leave
as StoreUnavailable, an exceeded budget as TransactionTimeout.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Session as DBSession

from edu_api.config import SessionLocal, settings
from edu_api.errors import CoreError, StoreUnavailable, TransactionTimeout
from edu_api.utils.logger import configure_logging

logger = configure_logging()

# PostgreSQL lock_not_available and query_canceled: raised when lock_timeout or
# statement_timeout fires.
TIMEOUT_PGCODES = ("55P03", "57014")


def _is_timeout(exc: DBAPIError) -> bool:
    return getattr(exc.orig, "pgcode", None) in TIMEOUT_PGCODES


class UnitOfWork:
    def __init__(
        self,
        session_factory: Optional[Callable[[], DBSession]] = None,
        *,
        acquire_timeout: Optional[float] = None,
        timeout: Optional[float] = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.acquire_timeout = acquire_timeout if acquire_timeout is not None else settings.tx_acquire_timeout_seconds
        self.timeout = timeout if timeout is not None else settings.tx_timeout_seconds
        self.session: Optional[DBSession] = None
        self._deadline = 0.0
        self._committed = False

    def __enter__(self) -> "UnitOfWork":
        self.session = self.session_factory()
        self._deadline = time.monotonic() + self.timeout
        self._committed = False
        try:
            self._apply_timeouts()
        except OperationalError as exc:
            self.session.close()
            raise StoreUnavailable(str(exc.orig) if exc.orig else None) from exc
        return self

    def _apply_timeouts(self) -> None:
        if self.session.get_bind().dialect.name != "postgresql":
            # SQLite bounds lock waits through the driver busy timeout set on the engine.
            return
        lock_ms = int(self.acquire_timeout * 1000)
        total_ms = int(self.timeout * 1000)
        self.session.execute(text(f"SET LOCAL lock_timeout = '{lock_ms}ms'"))
        self.session.execute(text(f"SET LOCAL statement_timeout = '{total_ms}ms'"))

    @property
    def remaining(self) -> float:
        return self._deadline - time.monotonic()

    def check_deadline(self) -> None:
        if self.remaining < 0:
            raise TransactionTimeout(timeout_seconds=self.timeout)

    def commit(self) -> None:
        self.check_deadline()
        self.session.commit()
        self._committed = True

    def rollback(self) -> None:
        if self.session is not None and not self._committed:
            self.session.rollback()

    def _translate(self, exc: DBAPIError):
        detail = str(exc.orig) if exc.orig else None
        if _is_timeout(exc):
            logger.warning("transaction aborted by database timeout: %s", detail)
            return TransactionTimeout(detail, timeout_seconds=self.timeout)
        logger.warning("transaction aborted by store error: %s", detail)
        return StoreUnavailable(detail)

    def __exit__(self, exc_type, exc, tb):
        try:
            if exc is None:
                try:
                    self.commit()
                except (CoreError, IntegrityError):
                    self.rollback()
                    raise
                except DBAPIError as commit_exc:
                    self.rollback()
                    raise self._translate(commit_exc) from commit_exc
                return False

            self.rollback()
            if isinstance(exc, IntegrityError):
                return False
            if isinstance(exc, DBAPIError):
                raise self._translate(exc) from exc
            return False
        finally:
            self.session.close()
