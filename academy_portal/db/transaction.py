"""
Synchronization transaction: one unit of work for the multi-table writes of a request.

A batch edit touches the batch row, the roster link tables and the fee ledger. All of
those writes are flushed inside a single SyncTransaction and committed once, so a
failure halfway (fees deleted but not recreated, for example) is rolled back instead of
being left for a repair pass.
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from academy_portal.core.exceptions import ConflictError, ServiceError, SynchronizationError

logger = logging.getLogger(__name__)


class SyncTransaction:
    """
    Async context manager around the request session.

        async with SyncTransaction(db, "update batch", conflict_message="..."):
            ...writes, db.flush()...

    On success the session is committed. On any error it is rolled back and:
    - ServiceError subclasses propagate unchanged,
    - IntegrityError becomes ConflictError(conflict_message),
    - anything else is logged and re-raised as SynchronizationError.
    """

    def __init__(
        self,
        db: AsyncSession,
        operation: str,
        conflict_message: Optional[str] = None,
    ) -> None:
        self.db = db
        self.operation = operation
        self.conflict_message = conflict_message or f"Conflicting data while trying to {operation}"

    async def __aenter__(self) -> "SyncTransaction":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            try:
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                raise ConflictError(self.conflict_message) from e
            except Exception as e:
                await self.db.rollback()
                logger.exception("Commit failed during %s", self.operation)
                raise SynchronizationError(f"Failed to {self.operation}") from e
            return False

        await self.db.rollback()
        if isinstance(exc, ServiceError):
            return False
        if isinstance(exc, IntegrityError):
            raise ConflictError(self.conflict_message) from exc
        logger.error("Rolled back %s", self.operation, exc_info=(exc_type, exc, tb))
        raise SynchronizationError(f"Failed to {self.operation}") from exc
