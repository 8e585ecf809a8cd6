# ============================================================================
# File: indexer/runner.py
# Description: WAD index orchestrator with per-item failure handling
# ============================================================================
"""
WAD Indexer - walks a directory tree and indexes WADs found in zip archives.

Each file goes through:

    DISCOVERED → SKIPPED                                  (not an archive)
    DISCOVERED → HASHING_ARCHIVE → LISTING_MEMBERS
               → EXTRACTING → PER MEMBER [PARSING → HASHING_MEMBER → RECORDING]
               → ARCHIVE_RECORDED → DONE

Failures of a single archive, member or insert are logged with context,
counted in RunStatistics and never stop the walk. Only SetupError (bad
root, unreachable database, missing schema) aborts a run, and only before
any file is processed.
"""

import enum
import io
import logging
import time
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import (
    WADIndexError,
    ArchiveError,
    ChecksumError,
    ConstraintViolationError,
    ExtractionIOError,
    ParseError,
    StoreError,
)
from indexer.archive import ArchiveExtractor, ArchiveMember, filter_members, is_hidden
from indexer.keysum import Checksums, checksum_file, crypto_checksums, file_keysum
from indexer.loaders.sql_loader import IndexLoader, InsertOutcome
from indexer.reference import NullLookup, ReferenceLookup
from indexer.scanner import check_root, iter_files, normalized_dir
from indexer.stats import RunStatistics
from indexer.wad import ContainerIndex, parse_wad
from schemas.records import WadRecordCreate, ZipRecordCreate

logger = logging.getLogger(__name__)


class FileState(str, enum.Enum):
    """Terminal states of a visited file"""
    SKIPPED = "skipped"
    DONE = "done"


class WADIndexer:
    """
    WAD index orchestrator

    Responsibilities:
    - Validate the run (input root, store schema, reference database)
    - Walk the input tree and classify files
    - Drive extraction, parsing and checksumming per archive member
    - Write zip/WAD/level rows through IndexLoader
    - Keep RunStatistics accurate under partial failure
    """

    def __init__(
        self,
        db_session: AsyncSession,
        lookup: Optional[ReferenceLookup] = None,
        extractor: Optional[ArchiveExtractor] = None,
        scratch_dir: Optional[Union[str, Path]] = None,
        archive_suffix: str = ".zip",
        container_suffix: str = ".wad",
        max_files: Optional[int] = None
    ):
        self.loader = IndexLoader(db_session)
        self.lookup = lookup or NullLookup()
        self.extractor = extractor or ArchiveExtractor()
        self.scratch_dir = scratch_dir
        self.archive_suffix = archive_suffix.lower()
        self.container_suffix = container_suffix.lower()
        self.max_files = max_files

    async def setup(self, root: Union[str, Path]) -> Path:
        """
        Run-level checks; raises a SetupError subclass on failure.

        Returns:
            The resolved input root
        """
        root_path = check_root(root)
        await self.loader.check_schema()
        await self.lookup.verify()
        return root_path

    async def run(self, root: Union[str, Path]) -> RunStatistics:
        """
        Index every archive below root.

        Returns:
            RunStatistics for the run

        Raises:
            SetupError: If the run cannot start
        """
        root_path = await self.setup(root)
        stats = RunStatistics()

        logger.info(f"Starting index of {root_path}")

        for file_path in iter_files(root_path):
            if self.max_files is not None and stats.files_visited >= self.max_files:
                stats.limit_reached = True
                logger.info(f"File limit of {self.max_files} reached, stopping walk")
                break
            await self.process_file(file_path, root_path, stats)

        stats.finish()
        logger.info(
            f"Index run completed: {stats.archives_processed} archives, "
            f"{stats.wads_indexed} WADs, {stats.errors} errors"
        )
        stats.report()
        return stats

    async def process_file(self, file_path: Path, root: Path, stats: RunStatistics) -> FileState:
        stats.files_visited += 1

        if not file_path.name.lower().endswith(self.archive_suffix):
            logger.debug(f"Skipping non-archive file {file_path}")
            stats.files_skipped += 1
            return FileState.SKIPPED

        await self.process_archive(file_path, root, stats)
        return FileState.DONE

    async def process_archive(self, archive_path: Path, root: Path, stats: RunStatistics) -> None:
        filename = archive_path.name
        stats.archives_processed += 1
        logger.info(f"Processing archive {archive_path}")

        await self._cross_reference(archive_path, root, stats)

        # --------------------------------------------------
        # HASHING_ARCHIVE
        # --------------------------------------------------
        try:
            file_stat = archive_path.stat()
        except OSError as e:
            self._record_error(
                stats, "checksum_errors",
                ChecksumError("Failed to stat archive", context={"path": str(archive_path)}, original_exception=e),
                archive=filename
            )
            return

        zip_keysum = file_keysum(filename, file_stat.st_size)

        try:
            checksums = checksum_file(archive_path)
        except ChecksumError as e:
            self._record_error(stats, "checksum_errors", e, archive=filename, keysum=zip_keysum)
            return
        self._count_checksum(stats, checksums)

        # --------------------------------------------------
        # LISTING_MEMBERS
        # --------------------------------------------------
        entries: Optional[List[ArchiveMember]] = None
        try:
            entries = self.extractor.list_entries(archive_path)
        except ArchiveError as e:
            self._record_error(stats, "archive_errors", e, archive=filename, keysum=zip_keysum)

        if entries is not None:
            wad_names = set(filter_members([m.name for m in entries], self.container_suffix))
            wad_entries = [m for m in entries if m.name in wad_names]

            if not wad_entries:
                stats.archives_without_wads += 1
                logger.info(
                    f"No {self.container_suffix} files in {filename}; "
                    f"members: {', '.join(m.name for m in entries) or '(empty archive)'}"
                )
            else:
                # --------------------------------------------------
                # EXTRACTING / PER MEMBER
                # --------------------------------------------------
                await self._process_members(archive_path, zip_keysum, wad_entries, stats)

        # --------------------------------------------------
        # ARCHIVE_RECORDED
        # --------------------------------------------------
        await self._record_zip(
            archive_path,
            zip_keysum=zip_keysum,
            size=file_stat.st_size,
            date_created=int(file_stat.st_mtime),
            checksums=checksums,
            stats=stats
        )

    async def _process_members(
        self,
        archive_path: Path,
        zip_keysum: str,
        wad_entries: List[ArchiveMember],
        stats: RunStatistics
    ) -> None:
        try:
            with self.extractor.scoped_directory(self.scratch_dir) as workdir:
                stats.archives_extracted += 1
                for entry in wad_entries:
                    if is_hidden(entry.name):
                        logger.debug(f"Ignoring hidden member {entry.name} in {archive_path.name}")
                        stats.members_hidden += 1
                        continue
                    await self._process_member(archive_path, zip_keysum, entry, workdir, stats)
        except ExtractionIOError as e:
            # Scratch directory could not be created
            self._record_error(stats, "archive_errors", e, archive=archive_path.name, keysum=zip_keysum)

    async def _process_member(
        self,
        archive_path: Path,
        zip_keysum: str,
        entry: ArchiveMember,
        workdir: Path,
        stats: RunStatistics
    ) -> None:
        member_name = entry.basename
        wad_keysum = file_keysum(member_name, entry.size)
        error_context = {"archive": archive_path.name, "member": entry.name, "keysum": wad_keysum}

        member_path: Optional[Path] = None
        try:
            start = time.perf_counter()
            member_path = self.extractor.extract_member(archive_path, entry.name, workdir)
            buf = self._read_member(archive_path, entry, member_path)
            stats.extraction_seconds += time.perf_counter() - start
            stats.members_extracted += 1

            # PARSING
            start = time.perf_counter()
            index = parse_wad(buf)
            stats.parse_seconds += time.perf_counter() - start

            # HASHING_MEMBER
            checksums = crypto_checksums(io.BytesIO(buf))
            self._count_checksum(stats, checksums)

        except ArchiveError as e:
            self._record_error(stats, "archive_errors", e, **error_context)
            return
        except ParseError as e:
            self._record_error(stats, "parse_errors", e, **error_context)
            return
        finally:
            if member_path is not None:
                member_path.unlink(missing_ok=True)

        stats.wads_indexed += 1
        stats.lumps_indexed += index.lump_count
        stats.levels_indexed += len(index.level_names)
        logger.info(
            f"{archive_path.name}:{entry.name} {index.wad_type} keysum={wad_keysum} "
            f"lumps={index.lump_count} levels={','.join(index.level_names) or '-'}"
        )

        # RECORDING
        await self._record_wad(zip_keysum, wad_keysum, member_name, entry, buf, index, checksums, stats, error_context)

    def _read_member(self, archive_path: Path, entry: ArchiveMember, member_path: Path) -> bytes:
        try:
            return member_path.read_bytes()
        except OSError as e:
            raise ExtractionIOError(
                "Failed to read extracted member",
                context={"archive": str(archive_path), "member": entry.name, "destination": str(member_path)},
                original_exception=e
            )

    async def _record_wad(
        self,
        zip_keysum: str,
        wad_keysum: str,
        member_name: str,
        entry: ArchiveMember,
        buf: bytes,
        index: ContainerIndex,
        checksums: Checksums,
        stats: RunStatistics,
        error_context: dict
    ) -> None:
        try:
            record = WadRecordCreate(
                keysum=wad_keysum,
                zip_keysum=zip_keysum,
                filename=member_name,
                size=len(buf),
                date_created=entry.timestamp,
                md5_checksum=checksums.md5,
                sha_checksum=checksums.sha,
                lump_count=index.lump_count,
            )
            outcome = await self.loader.insert_wad(record)
            self._count_insert(stats, "wads_inserted", outcome)
        except (StoreError, ValidationError) as e:
            self._record_error(stats, "store_errors", self._as_store_error(e, "wads"), **error_context)

        # Level rows are attempted even if the WAD row failed
        for level_name in index.level_names:
            try:
                outcome = await self.loader.insert_level_mapping(wad_keysum, level_name)
                self._count_insert(stats, "level_mappings_inserted", outcome)
            except (StoreError, ValidationError) as e:
                self._record_error(
                    stats, "store_errors", self._as_store_error(e, "levels_to_wads"),
                    level_name=level_name, **error_context
                )

    async def _record_zip(
        self,
        archive_path: Path,
        zip_keysum: str,
        size: int,
        date_created: int,
        checksums: Checksums,
        stats: RunStatistics
    ) -> None:
        try:
            record = ZipRecordCreate(
                keysum=zip_keysum,
                filename=archive_path.name,
                size=size,
                date_created=date_created,
                md5_checksum=checksums.md5,
                sha_checksum=checksums.sha,
            )
            outcome = await self.loader.insert_zip(record)
            self._count_insert(stats, "zips_inserted", outcome)
        except (StoreError, ValidationError) as e:
            self._record_error(
                stats, "store_errors", self._as_store_error(e, "zipfiles"),
                archive=archive_path.name, keysum=zip_keysum
            )

    async def _cross_reference(self, archive_path: Path, root: Path, stats: RunStatistics) -> None:
        """Best-effort idGames lookup; never affects processing"""
        ndir = normalized_dir(archive_path, root)
        try:
            match = await self.lookup.find_by_path(ndir, archive_path.name)
        except Exception as e:
            logger.warning(f"Reference lookup raised for {ndir}{archive_path.name}: {str(e)}")
            return

        if match is not None:
            stats.reference_matches += 1
            logger.info(
                f"{ndir}{archive_path.name}: idGames id={match.id} "
                f"title={match.title!r} author={match.author!r}"
            )

    @staticmethod
    def _count_checksum(stats: RunStatistics, checksums: Checksums) -> None:
        stats.checksum_ops += 1
        stats.checksum_seconds += checksums.elapsed

    @staticmethod
    def _count_insert(stats: RunStatistics, counter: str, outcome: InsertOutcome) -> None:
        if outcome == InsertOutcome.INSERTED:
            setattr(stats, counter, getattr(stats, counter) + 1)
        else:
            stats.duplicates += 1

    @staticmethod
    def _as_store_error(error: Exception, table_name: str) -> WADIndexError:
        if isinstance(error, StoreError):
            return error
        return ConstraintViolationError(
            "Record failed validation",
            context={"table_name": table_name},
            original_exception=error
        )

    @staticmethod
    def _record_error(stats: RunStatistics, counter: str, error: WADIndexError, **context) -> None:
        setattr(stats, counter, getattr(stats, counter) + 1)
        error.context.update(context)
        logger.error(
            f"{error.message} ({', '.join(f'{k}={v}' for k, v in context.items())})",
            extra={"error_context": error.to_dict()}
        )
