"""System of record for trip updates, as seen by the enrichment queue.

The queue only ever needs one operation: set some fields on a record by id,
leaving every other field untouched.
"""

from typing import Any, Protocol

import structlog
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from trip_tracker.models.trip_update import TripUpdate

logger = structlog.get_logger()

# Record field name -> TripUpdate column
PATCHABLE_FIELDS = {
    "locationName": "location_name",
    "aqi": "aqi",
    "temp": "temp",
}


class RecordStoreError(Exception):
    """A record write failed."""


class RecordNotFoundError(RecordStoreError):
    """The record to patch does not exist."""


class RecordStore(Protocol):
    async def patch_fields(self, record_id: str, fields: dict[str, Any]) -> None: ...


class SqlRecordStore:
    """Partial updates of ``trip_updates`` rows through SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def patch_fields(self, record_id: str, fields: dict[str, Any]) -> None:
        unknown = set(fields) - set(PATCHABLE_FIELDS)
        if unknown:
            raise RecordStoreError(f"Fields not patchable: {sorted(unknown)}")
        if not fields:
            return

        values = {PATCHABLE_FIELDS[name]: value for name, value in fields.items()}

        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    update(TripUpdate).where(TripUpdate.id == record_id).values(**values)
                )
                if result.rowcount == 0:
                    await session.rollback()
                    raise RecordNotFoundError(f"Trip update '{record_id}' not found")
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Record patch failed", record_id=record_id, error=str(e))
            raise RecordStoreError(f"Could not patch trip update '{record_id}': {e}") from e

        logger.info("Record patched", record_id=record_id, fields=sorted(fields))
