"""
Read-only cross-referencing against an idGames dump database
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import check_schema
from models.reference import IdGamesFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceRecord:
    id: Optional[int]
    keysum: Optional[str]
    title: Optional[str]
    dir: Optional[str]
    filename: Optional[str]
    size: Optional[int]
    author: Optional[str]


class ReferenceLookup(ABC):
    """
    Lookup of previously known metadata for an archive.

    Results only annotate indexer output. Implementations must not raise
    from find_by_path; a failed lookup is the same as no match.
    """

    async def verify(self) -> None:
        """Run-level availability check; may raise SetupError"""
        return None

    @abstractmethod
    async def find_by_path(self, normalized_dir: str, filename: str) -> Optional[ReferenceRecord]:
        pass


class NullLookup(ReferenceLookup):
    """Used when no reference database is configured"""

    async def find_by_path(self, normalized_dir: str, filename: str) -> Optional[ReferenceRecord]:
        return None


class IdGamesLookup(ReferenceLookup):
    """
    Query the 'files' table of an idGames API dump by directory and filename.

    idGames directories look like "levels/doom/a-c/", which is the form
    produced by indexer.scanner.normalized_dir for a mirror of the archive.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def verify(self) -> None:
        await check_schema(self.db, label="reference")

    async def find_by_path(self, normalized_dir: str, filename: str) -> Optional[ReferenceRecord]:
        try:
            result = await self.db.execute(
                select(IdGamesFile).where(
                    IdGamesFile.dir == normalized_dir,
                    IdGamesFile.filename == filename
                ).limit(1)
            )
            row = result.scalars().first()
        except SQLAlchemyError as e:
            logger.warning(f"Reference lookup failed for {normalized_dir}{filename}: {str(e)}")
            await self._reset()
            return None

        if row is None:
            return None

        return ReferenceRecord(
            id=row.id,
            keysum=row.keysum,
            title=row.title,
            dir=row.dir,
            filename=row.filename,
            size=row.size,
            author=row.author,
        )

    async def _reset(self):
        try:
            await self.db.rollback()
        except SQLAlchemyError as e:
            logger.debug(f"Rollback after failed reference lookup also failed: {str(e)}")
