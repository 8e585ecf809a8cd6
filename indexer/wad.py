"""
WAD container parsing.

A classic Doom WAD is laid out as:

    header     12 bytes   magic (IWAD/PWAD), lump count, directory offset
    lump data  ...
    directory  16 bytes per lump: offset, size, 8-byte nul-padded name

Only the directory is decoded; lump payloads are never read. Header values
come from untrusted files, so every offset is checked against the buffer
length before anything is sliced.
"""

import re
import struct
from dataclasses import dataclass, field
from typing import List, Tuple

from core.exceptions import MalformedHeader, TruncatedDirectory

WAD_MAGICS = (b"IWAD", b"PWAD")
HEADER = struct.Struct("<4sii")
DIRECTORY_ENTRY = struct.Struct("<ii8s")

# ExMy (Doom/Heretic episodes) and MAPnn (Doom II and later)
LEVEL_MARKER_RE = re.compile(r"E[1-9]M[1-9]|MAP[0-9]{2}")


@dataclass(frozen=True)
class WadLump:
    name: str
    offset: int
    size: int


@dataclass(frozen=True)
class ContainerIndex:
    wad_type: str
    lump_count: int
    lumps: Tuple[WadLump, ...] = field(default_factory=tuple, repr=False)
    level_names: Tuple[str, ...] = field(default_factory=tuple)


def decode_lump_name(raw: bytes) -> str:
    """Lump names are nul-padded ASCII; compare them uppercase."""
    return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace").upper()


def is_level_marker(name: str) -> bool:
    return LEVEL_MARKER_RE.fullmatch(name.upper()) is not None


def detect_levels(lumps: List[WadLump]) -> Tuple[str, ...]:
    """Level marker names in directory order, each listed once."""
    seen = set()
    levels = []
    for lump in lumps:
        if lump.name in seen or not is_level_marker(lump.name):
            continue
        seen.add(lump.name)
        levels.append(lump.name)
    return tuple(levels)


def parse_wad(buf: bytes) -> ContainerIndex:
    """
    Decode the lump directory of a WAD file.

    Args:
        buf: Full content of the WAD file

    Returns:
        ContainerIndex with the lump count, the lumps, and the level names

    Raises:
        MalformedHeader: Short buffer, unknown magic, negative count/offset
        TruncatedDirectory: Directory or a lump extends past the buffer end
    """
    buf_len = len(buf)
    if buf_len < HEADER.size:
        raise MalformedHeader(
            "Buffer is shorter than a WAD header",
            context={"buffer_size": buf_len}
        )

    magic, lump_count, dir_offset = HEADER.unpack_from(buf, 0)
    if magic not in WAD_MAGICS:
        raise MalformedHeader(
            "Unrecognized WAD magic",
            context={"magic": magic.decode("latin-1")}
        )
    if lump_count < 0 or dir_offset < 0:
        raise MalformedHeader(
            "Negative lump count or directory offset",
            context={"lump_count": lump_count, "directory_offset": dir_offset}
        )

    dir_end = dir_offset + lump_count * DIRECTORY_ENTRY.size
    if dir_end > buf_len:
        raise TruncatedDirectory(
            "Lump directory extends past end of file",
            context={
                "buffer_size": buf_len,
                "lump_count": lump_count,
                "directory_offset": dir_offset,
            }
        )

    lumps: List[WadLump] = []
    for index in range(lump_count):
        pos = dir_offset + index * DIRECTORY_ENTRY.size
        offset, size, raw_name = DIRECTORY_ENTRY.unpack_from(buf, pos)
        if offset < 0 or size < 0 or offset + size > buf_len:
            raise TruncatedDirectory(
                "Lump extends past end of file",
                context={
                    "buffer_size": buf_len,
                    "lump_index": index,
                    "lump_offset": offset,
                    "lump_size": size,
                }
            )
        lumps.append(WadLump(name=decode_lump_name(raw_name), offset=offset, size=size))

    return ContainerIndex(
        wad_type=magic.decode("ascii"),
        lump_count=lump_count,
        lumps=tuple(lumps),
        level_names=detect_levels(lumps),
    )
