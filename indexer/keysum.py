"""
Content addressing: keysums and full-content checksums.

A keysum is a short base-36 string derived from a few metadata fields
(filename and size). It is a join key, not an integrity check: two files
with the same name and size get the same keysum. The MD5/SHA-1 checksums
identify content.
"""

import hashlib
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Sequence, Union

from core.exceptions import ChecksumError

KEYSUM_DELIMITER = ":"
KEYSUM_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
# 36**13 > 2**64
KEYSUM_WIDTH = 13
CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class Checksums:
    md5: str
    sha: str
    elapsed: float


def base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 expects a non-negative integer")
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(KEYSUM_ALPHABET[rem])
    return "".join(reversed(digits)) or "0"


def keysum(parts: Sequence[str], delimiter: str = KEYSUM_DELIMITER) -> str:
    """
    Derive a keysum from an ordered sequence of strings.

    Example:
        >>> keysum(["sample.zip", "1000"]) == keysum(["sample.zip", "1000"])
        True
    """
    joined = delimiter.join(str(p) for p in parts)
    digest = hashlib.blake2b(joined.encode("utf-8"), digest_size=8).digest()
    return base36(int.from_bytes(digest, "big")).rjust(KEYSUM_WIDTH, "0")


def file_keysum(filename: str, size: int) -> str:
    """Keysum for a zip archive or a WAD member."""
    return keysum([filename, str(size)])


def crypto_checksums(stream: BinaryIO, chunk_size: int = CHUNK_SIZE) -> Checksums:
    """Read the stream once, feeding MD5 and SHA-1 from the same chunks."""
    start = time.perf_counter()
    md5 = hashlib.md5()
    sha = hashlib.sha1()

    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        md5.update(chunk)
        sha.update(chunk)

    return Checksums(
        md5=md5.hexdigest(),
        sha=sha.hexdigest(),
        elapsed=time.perf_counter() - start,
    )


def checksum_file(path: Union[str, Path]) -> Checksums:
    try:
        with open(path, "rb") as f:
            return crypto_checksums(f)
    except OSError as e:
        raise ChecksumError(
            "Failed to read file for checksumming",
            context={"path": str(path)},
            original_exception=e
        )
