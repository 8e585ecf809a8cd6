"""
Unit tests for the index loader
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from core.database import check_schema, init_schema, make_session_factory
from core.exceptions import ConstraintViolationError, SchemaMissingError, StoreIOError
from indexer.loaders import IndexLoader, InsertOutcome
from models.base import FileEventType
from models.file_event import FileEvent
from models.level_mapping import LevelMapping
from models.schema_entry import SchemaEntry
from models.wad_record import WadRecord
from models.zip_record import ZipRecord
from schemas.records import WadRecordCreate, ZipRecordCreate


def zip_record(**overrides):
    values = dict(
        keysum="0abcdefghijkl",
        filename="sample.zip",
        size=1000,
        date_created=1389645626,
        md5_checksum="d41d8cd98f00b204e9800998ecf8427e",
        sha_checksum="da39a3ee5e6b4b0d3255bfef95601890afd80709",
    )
    values.update(overrides)
    return ZipRecordCreate(**values)


def wad_record(**overrides):
    values = dict(
        keysum="0mnopqrstuvwx",
        zip_keysum="0abcdefghijkl",
        filename="E1M1.WAD",
        size=72,
        date_created=1389645626,
        md5_checksum="900150983cd24fb0d6963f7d28e17f72",
        sha_checksum="a9993e364706816aba3e25717850c26c9cd0d89d",
        lump_count=3,
    )
    values.update(overrides)
    return WadRecordCreate(**values)


async def count(session, model):
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


def failing_session(error):
    """Session stand-in whose execute raises the given error"""
    session = MagicMock()
    session.get_bind.return_value.dialect.name = "sqlite"
    session.execute = AsyncMock(side_effect=error)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


class TestInsert:

    @pytest.mark.asyncio
    async def test_insert_zip_then_duplicate(self, db_session):
        loader = IndexLoader(db_session)

        assert await loader.insert_zip(zip_record()) == InsertOutcome.INSERTED
        assert await loader.insert_zip(zip_record(md5_checksum="0" * 32)) == InsertOutcome.DUPLICATE

        rows = (await db_session.execute(select(ZipRecord))).scalars().all()
        assert len(rows) == 1
        assert rows[0].md5_checksum == "d41d8cd98f00b204e9800998ecf8427e"

    @pytest.mark.asyncio
    async def test_new_rows_get_create_event(self, db_session):
        loader = IndexLoader(db_session)

        await loader.insert_zip(zip_record())
        await loader.insert_wad(wad_record())
        await loader.insert_wad(wad_record())

        events = (await db_session.execute(select(FileEvent))).scalars().all()
        assert sorted(e.keysum for e in events) == ["0abcdefghijkl", "0mnopqrstuvwx"]
        assert all(e.event == FileEventType.CREATE for e in events)

    @pytest.mark.asyncio
    async def test_insert_wad(self, db_session):
        loader = IndexLoader(db_session)

        assert await loader.insert_wad(wad_record()) == InsertOutcome.INSERTED

        row = (await db_session.execute(select(WadRecord))).scalars().one()
        assert row.zip_keysum == "0abcdefghijkl"
        assert row.lump_count == 3
        assert row.filename == "E1M1.WAD"

    @pytest.mark.asyncio
    async def test_wad_without_zip_row_is_accepted(self, db_session):
        # No referential check between tables
        loader = IndexLoader(db_session)

        assert await loader.insert_wad(wad_record(zip_keysum="0zzzzzzzzzzzz")) == InsertOutcome.INSERTED
        assert await count(db_session, ZipRecord) == 0

    @pytest.mark.asyncio
    async def test_level_mapping_unique_per_wad(self, db_session):
        loader = IndexLoader(db_session)

        assert await loader.insert_level_mapping("0mnopqrstuvwx", "e1m1") == InsertOutcome.INSERTED
        assert await loader.insert_level_mapping("0mnopqrstuvwx", "E1M1") == InsertOutcome.DUPLICATE
        assert await loader.insert_level_mapping("0othersumxxxx", "E1M1") == InsertOutcome.INSERTED

        rows = (await db_session.execute(select(LevelMapping))).scalars().all()
        assert sorted((r.wad_keysum, r.level_name) for r in rows) == [
            ("0mnopqrstuvwx", "E1M1"),
            ("0othersumxxxx", "E1M1"),
        ]
        assert await count(db_session, FileEvent) == 0

    @pytest.mark.asyncio
    async def test_storage_failure_raises_store_io_error(self):
        session = failing_session(OperationalError("INSERT", {}, Exception("disk I/O error")))
        loader = IndexLoader(session)

        with pytest.raises(StoreIOError) as exc_info:
            await loader.insert_zip(zip_record())

        assert exc_info.value.context["table_name"] == "zipfiles"
        assert exc_info.value.context["keysum"] == "0abcdefghijkl"
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_constraint_failure(self):
        session = failing_session(IntegrityError("INSERT", {}, Exception("NOT NULL constraint failed")))
        loader = IndexLoader(session)

        with pytest.raises(ConstraintViolationError) as exc_info:
            await loader.insert_wad(wad_record())

        assert exc_info.value.context["table_name"] == "wads"
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_does_not_poison_session(self, db_session, monkeypatch):
        loader = IndexLoader(db_session)
        original_execute = db_session.execute
        calls = {"n": 0}

        async def flaky_execute(stmt, *args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 1:
                raise OperationalError("INSERT", {}, Exception("database is locked"))
            return await original_execute(stmt, *args, **kwargs)

        monkeypatch.setattr(db_session, "execute", flaky_execute)

        with pytest.raises(StoreIOError):
            await loader.insert_zip(zip_record())
        assert await loader.insert_zip(zip_record()) == InsertOutcome.INSERTED


class TestSchema:

    @pytest.mark.asyncio
    async def test_check_schema(self, db_session):
        loader = IndexLoader(db_session)

        assert await loader.check_schema() == 5

    @pytest.mark.asyncio
    async def test_init_schema_is_repeatable(self, test_engine, db_session):
        assert await init_schema(test_engine) == []
        assert await count(db_session, SchemaEntry) == 5

    @pytest.mark.asyncio
    async def test_schema_entries_have_checksums(self, db_session):
        rows = (await db_session.execute(select(SchemaEntry))).scalars().all()

        assert {r.name for r in rows} == {"schema", "zipfiles", "wads", "levels_to_wads", "file_events"}
        assert all(r.checksum and not r.checksum.endswith("=") for r in rows)

    @pytest.mark.asyncio
    async def test_missing_schema_table(self, empty_engine):
        async with make_session_factory(empty_engine)() as session:
            with pytest.raises(SchemaMissingError) as exc_info:
                await check_schema(session)

        assert exc_info.value.context["table_name"] == "schema"

    @pytest.mark.asyncio
    async def test_empty_schema_table(self, empty_engine):
        async with empty_engine.begin() as conn:
            await conn.run_sync(lambda sync_conn: SchemaEntry.__table__.create(sync_conn))

        async with make_session_factory(empty_engine)() as session:
            with pytest.raises(SchemaMissingError):
                await check_schema(session, label="reference")


def test_database_module_opens_no_engine_on_import():
    import core.database

    assert not hasattr(core.database, "engine")
    assert not hasattr(core.database, "async_session_maker")


def test_only_create_events_are_recorded():
    assert [e.value for e in FileEventType] == ["create"]
