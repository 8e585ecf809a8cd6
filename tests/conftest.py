"""
Pytest configuration and fixtures
"""

import io
import struct
import zipfile
from pathlib import Path
from typing import AsyncGenerator, Dict, List

import pytest
import pytest_asyncio
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import create_engine_for, init_schema, make_session_factory
from models.base import ReferenceBase
from models.schema_entry import SchemaEntry

ZIP_DATE = (2014, 1, 13, 20, 40, 26)


def build_wad(names: List[str], magic: bytes = b"PWAD", payload: bytes = b"\x00\x01\x02\x03") -> bytes:
    """WAD with one payload-sized lump per name and the directory at the end"""
    data = payload * len(names)
    dir_offset = 12 + len(data)
    directory = b"".join(
        struct.pack("<ii8s", 12 + i * len(payload), len(payload), name.encode("ascii"))
        for i, name in enumerate(names)
    )
    return struct.pack("<4sii", magic, len(names), dir_offset) + data + directory


def build_zip(members: Dict[str, bytes], comment: bytes = b"", compression: int = zipfile.ZIP_DEFLATED) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in members.items():
            info = zipfile.ZipInfo(name, date_time=ZIP_DATE)
            info.compress_type = compression
            zf.writestr(info, data)
        zf.comment = comment
    return buf.getvalue()


@pytest.fixture
def wad_factory():
    return build_wad


@pytest.fixture
def make_zip():
    """Write a zip archive; with size=N the archive comment pads it to exactly N bytes"""
    def _make(path: Path, members: Dict[str, bytes], size: int = None, compression: int = zipfile.ZIP_DEFLATED) -> Path:
        data = build_zip(members, compression=compression)
        if size is not None:
            pad = size - len(data)
            assert 0 <= pad <= 0xFFFF, f"cannot pad {len(data)} bytes to {size}"
            data = build_zip(members, comment=b" " * pad, compression=compression)
            assert len(data) == size
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path
    return _make


@pytest.fixture
def corrupt_member():
    """Flip bytes in the middle of a member's compressed data, leaving headers intact"""
    def _corrupt(path: Path, name: str, count: int = 20) -> Path:
        with zipfile.ZipFile(path) as zf:
            info = zf.getinfo(name)
        buf = bytearray(path.read_bytes())
        name_len, extra_len = struct.unpack_from("<HH", buf, info.header_offset + 26)
        start = info.header_offset + 30 + name_len + extra_len
        assert info.compress_size > 2 * count, "member too small to corrupt"
        middle = start + info.compress_size // 2
        for i in range(middle - count // 2, middle + count // 2):
            buf[i] ^= 0xFF
        path.write_bytes(bytes(buf))
        return path
    return _corrupt


@pytest.fixture
def index_root(tmp_path) -> Path:
    root = tmp_path / "mirror"
    root.mkdir()
    return root


@pytest.fixture
def scratch_dir(tmp_path) -> Path:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    return scratch


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Initialized index database in a temp directory"""
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'wadindex.db'}")
    await init_schema(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for tests"""
    async with make_session_factory(test_engine)() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture(scope="function")
async def empty_engine(tmp_path):
    """Database without any tables"""
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def reference_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """idGames dump database with a schema log and a few files"""
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'idgames.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(ReferenceBase.metadata.create_all)
        await conn.run_sync(lambda sync_conn: SchemaEntry.__table__.create(sync_conn))
        await conn.execute(insert(SchemaEntry).values(
            date_applied=1389055425, name="files", description="An individual file in the idGames Archive"
        ))
        await conn.execute(insert(ReferenceBase.metadata.tables["files"]).values(
            keysum="ref00001", id=1702, title="Sample Episode", dir="levels/doom/s-u/",
            filename="sample.zip", size=1000, author="Some Author", rating=4.5, votes=12
        ))

    async with make_session_factory(engine)() as session:
        yield session

    await engine.dispose()
