"""
Write index records with insert-if-absent semantics (idempotency)
"""

import enum
import logging
import time
from typing import Any, Dict, List, Optional

from sqlalchemy import insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import check_schema
from core.exceptions import ConstraintViolationError, StoreIOError
from models.base import FileEventType
from models.file_event import FileEvent
from models.level_mapping import LevelMapping
from models.wad_record import WadRecord
from models.zip_record import ZipRecord
from schemas.records import LevelMappingCreate, WadRecordCreate, ZipRecordCreate

logger = logging.getLogger(__name__)

_CONFLICT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class InsertOutcome(str, enum.Enum):
    INSERTED = "inserted"
    DUPLICATE = "duplicate"


class IndexLoader:
    """
    Load index records into the destination store.

    Ensures:
    - No duplicate rows on repeated runs (INSERT ... ON CONFLICT DO NOTHING)
    - Every insert is its own transaction, so one failure never undoes or
      blocks another record
    - A 'create' file event accompanies each new zip/WAD row

    The store performs no referential checks between tables; callers keep
    wads.zip_keysum and levels_to_wads.wad_keysum consistent.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def check_schema(self) -> int:
        return await check_schema(self.db, label="index")

    async def insert_zip(self, record: ZipRecordCreate) -> InsertOutcome:
        return await self._insert(
            ZipRecord,
            record.model_dump(),
            conflict_on=["keysum"],
            keysum=record.keysum,
            record_event=True,
        )

    async def insert_wad(self, record: WadRecordCreate) -> InsertOutcome:
        return await self._insert(
            WadRecord,
            record.model_dump(),
            conflict_on=["keysum"],
            keysum=record.keysum,
            record_event=True,
        )

    async def insert_level_mapping(self, wad_keysum: str, level_name: str) -> InsertOutcome:
        mapping = LevelMappingCreate(wad_keysum=wad_keysum, level_name=level_name)
        return await self._insert(
            LevelMapping,
            mapping.model_dump(),
            conflict_on=["wad_keysum", "level_name"],
            keysum=mapping.wad_keysum,
        )

    async def _insert(
        self,
        model,
        values: Dict[str, Any],
        conflict_on: List[str],
        keysum: Optional[str] = None,
        record_event: bool = False
    ) -> InsertOutcome:
        table_name = model.__tablename__
        dialect = self.db.get_bind().dialect.name
        conflict_insert = _CONFLICT_INSERTS.get(dialect)

        if conflict_insert is not None:
            stmt = conflict_insert(model).values(**values).on_conflict_do_nothing(
                index_elements=conflict_on
            )
        else:
            stmt = insert(model).values(**values)

        context = {"table_name": table_name, "keysum": keysum, "operation": "INSERT"}

        try:
            result = await self.db.execute(stmt)
            inserted = result.rowcount != 0

            if inserted and record_event:
                self.db.add(FileEvent(
                    keysum=keysum,
                    event=FileEventType.CREATE,
                    timestamp=int(time.time())
                ))

            await self.db.commit()

        except IntegrityError as e:
            await self._rollback()
            raise ConstraintViolationError(
                f"Insert into {table_name} rejected by constraint",
                context=context,
                original_exception=e
            )

        except (SQLAlchemyError, OSError) as e:
            await self._rollback()
            raise StoreIOError(
                f"Insert into {table_name} failed",
                context=context,
                original_exception=e
            )

        if inserted:
            logger.debug(f"Inserted {table_name} row keysum={keysum}")
            return InsertOutcome.INSERTED

        logger.info(f"{table_name} row keysum={keysum} already present, skipped")
        return InsertOutcome.DUPLICATE

    async def _rollback(self):
        try:
            await self.db.rollback()
        except SQLAlchemyError as e:
            logger.error(f"Rollback failed: {str(e)}")
