"""Directory walking for the indexer.

Yields regular files below a root directory in a stable order so repeated
runs (and MAX_FILES limits) visit the same files.
"""

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Iterator, Union

from core.exceptions import InputPathError

logger = logging.getLogger(__name__)


def check_root(root: Union[str, Path]) -> Path:
    """Validate the input root.

    Raises:
        InputPathError: If root is missing, not a directory, or unreadable
    """
    path = Path(root)
    if not path.exists():
        raise InputPathError("Input root does not exist", context={"root": str(path)})
    if not path.is_dir():
        raise InputPathError("Input root is not a directory", context={"root": str(path)})
    if not os.access(path, os.R_OK | os.X_OK):
        raise InputPathError("Input root is not readable", context={"root": str(path)})
    return path.resolve()


def iter_files(root: Path) -> Iterator[Path]:
    """Recursively yield regular files below root, sorted per directory.

    Symlinked directories are not followed; unreadable subdirectories are
    logged and skipped.
    """
    def on_error(err: OSError) -> None:
        logger.warning(f"Cannot list directory {err.filename}: {err.strerror}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames.sort()
        for filename in sorted(filenames):
            file_path = Path(dirpath) / filename
            if file_path.is_file():
                yield file_path


def normalized_dir(file_path: Path, root: Path) -> str:
    """Parent directory of file_path relative to root, POSIX style with a
    trailing slash ("levels/doom/a-c/"); empty for files directly in root.
    """
    parent = file_path.parent.relative_to(root)
    rel = PurePosixPath(*parent.parts).as_posix() if parent.parts else ""
    return f"{rel}/" if rel else ""
