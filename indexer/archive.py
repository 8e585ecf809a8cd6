"""
Zip archive listing and scoped member extraction
"""

import calendar
import logging
import lzma
import shutil
import tempfile
import zipfile
import zlib
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from core.exceptions import ArchiveUnreadable, ExtractionIOError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_UNREADABLE_ARCHIVE_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, ValueError, OSError)

# Raised while reading a member: corrupt data, bad CRCs, encryption and
# unsupported compression methods. bz2 reports bad data as a plain OSError.
_CORRUPT_MEMBER_ERRORS = (
    zipfile.BadZipFile, EOFError, zlib.error, lzma.LZMAError, NotImplementedError, RuntimeError, ValueError, OSError
)


@dataclass(frozen=True)
class ArchiveMember:
    name: str
    size: int
    date_time: Tuple[int, int, int, int, int, int]

    @property
    def basename(self) -> str:
        return PurePosixPath(self.name.replace("\\", "/")).name

    @property
    def timestamp(self) -> Optional[int]:
        """Entry timestamp as epoch seconds; zip times carry no zone, read as UTC."""
        try:
            return calendar.timegm(tuple(self.date_time) + (0, 0, 0))
        except (ValueError, OverflowError):
            return None


def is_hidden(name: str) -> bool:
    return PurePosixPath(name.replace("\\", "/")).name.startswith(".")


def filter_members(names: Iterable[str], suffix: str = ".wad") -> List[str]:
    """Members whose name ends with suffix, case-insensitively, in input order."""
    suffix = suffix.lower()
    return [n for n in names if n.lower().endswith(suffix)]


def member_path(dest_dir: PathLike, name: str) -> Optional[Path]:
    """
    Where a member is written below dest_dir.

    Drive letters, absolute roots, "." and ".." components are dropped, the
    same way zipfile.ZipFile.extract sanitizes names. None if nothing is left.
    """
    parts = [p for p in PurePosixPath(name.replace("\\", "/")).parts if p not in ("/", ".", "..", "")]
    if parts and parts[0].endswith(":"):
        parts = parts[1:]
    if not parts:
        return None
    return Path(dest_dir).joinpath(*parts)


class ArchiveExtractor:
    """
    Read-only access to zip archives.

    Extraction always targets a directory handed in by the caller, or a
    fresh subdirectory of the scratch space that is removed again if the
    extraction fails.
    """

    def __init__(self, prefix: str = "wadindex_"):
        self.prefix = prefix

    def list_entries(self, archive_path: PathLike) -> List[ArchiveMember]:
        """File entries of an archive (directories excluded), in archive order"""
        with self._open(archive_path) as zf:
            infos = zf.infolist()

        return [
            ArchiveMember(name=info.filename, size=info.file_size, date_time=info.date_time)
            for info in infos
            if not info.is_dir()
        ]

    def list_members(self, archive_path: PathLike) -> List[str]:
        return [entry.name for entry in self.list_entries(archive_path)]

    def extract_member(self, archive_path: PathLike, member: str, dest_dir: PathLike) -> Path:
        """
        Extract one member below dest_dir.

        Absolute and '..' path components are dropped, so the result
        always stays inside dest_dir.

        Returns:
            Path of the extracted file
        """
        with self._open(archive_path) as zf:
            return self._extract_from(zf, archive_path, member, dest_dir)

    def extract(self, archive_path: PathLike, members: Iterable[str], scratch_dir: Optional[PathLike] = None) -> Path:
        """
        Extract the requested members into a new subdirectory of scratch_dir.

        The archive is opened once for all members. The caller owns the
        returned directory and must remove it. If any member fails, the
        directory is removed before the error propagates.
        """
        workdir = self._make_workdir(scratch_dir)
        try:
            with self._open(archive_path) as zf:
                for member in members:
                    self._extract_from(zf, archive_path, member, workdir)
        except BaseException:
            shutil.rmtree(workdir, ignore_errors=True)
            raise
        return workdir

    def _open(self, archive_path: PathLike) -> zipfile.ZipFile:
        try:
            return zipfile.ZipFile(archive_path)
        except _UNREADABLE_ARCHIVE_ERRORS as e:
            raise ArchiveUnreadable(
                "Failed to read zip directory",
                context={"archive": str(archive_path)},
                original_exception=e
            )

    def _extract_from(self, zf: zipfile.ZipFile, archive_path: PathLike, member: str, dest_dir: PathLike) -> Path:
        context = {"archive": str(archive_path), "member": member}

        # Decompression: any failure here is a property of the archive
        try:
            data = zf.read(member)
        except KeyError as e:
            raise ArchiveUnreadable("Member not found in archive", context=context, original_exception=e)
        except _CORRUPT_MEMBER_ERRORS as e:
            raise ArchiveUnreadable("Failed to decompress archive member", context=context, original_exception=e)

        target = member_path(dest_dir, member)
        if target is None:
            raise ArchiveUnreadable("Member name has no usable path components", context=context)

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            context["destination"] = str(dest_dir)
            raise ExtractionIOError("Failed to write archive member", context=context, original_exception=e)

        return target

    @contextmanager
    def scoped_directory(self, scratch_dir: Optional[PathLike] = None) -> Iterator[Path]:
        """Fresh extraction directory, removed on every exit path"""
        workdir = self._make_workdir(scratch_dir)
        try:
            yield workdir
        finally:
            shutil.rmtree(workdir, ignore_errors=True)
            if workdir.exists():
                logger.warning(f"Could not remove extraction directory {workdir}")

    def _make_workdir(self, scratch_dir: Optional[PathLike]) -> Path:
        try:
            return Path(tempfile.mkdtemp(prefix=self.prefix, dir=scratch_dir))
        except OSError as e:
            raise ExtractionIOError(
                "Failed to create extraction directory",
                context={"destination": str(scratch_dir or tempfile.gettempdir())},
                original_exception=e
            )
