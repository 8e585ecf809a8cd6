"""
SQLAlchemy ORM models for database tables.

This package defines the WAD index schema using SQLAlchemy ORM models:

Models:
    base: Declarative bases and shared enums (FileEventType)
    zip_record: Zip archives examined on disk ('zipfiles')
    wad_record: WAD files found inside zip archives ('wads')
    level_mapping: Levels contained in each WAD ('levels_to_wads')
    file_event: Creation audit trail ('file_events')
    schema_entry: Applied schema transaction log ('schema')
    reference: Read-only idGames dump table ('files')

Database Schema:
    Index tables inherit from Base and are created by scripts/init_db.py.
    IdGamesFile inherits from ReferenceBase and lives in a separate,
    externally produced database.

Usage:
    from models.zip_record import ZipRecord
    from models.wad_record import WadRecord
    from models.level_mapping import LevelMapping

Relationships:
    - ZipRecord.keysum ← WadRecord.zip_keysum (by convention, not enforced)
    - WadRecord.keysum ← LevelMapping.wad_keysum (by convention, not enforced)
"""

from models.base import Base, ReferenceBase, FileEventType
from models.zip_record import ZipRecord
from models.wad_record import WadRecord
from models.level_mapping import LevelMapping
from models.file_event import FileEvent
from models.schema_entry import SchemaEntry
from models.reference import IdGamesFile

__all__ = [
    "Base",
    "ReferenceBase",
    "FileEventType",
    "ZipRecord",
    "WadRecord",
    "LevelMapping",
    "FileEvent",
    "SchemaEntry",
    "IdGamesFile",
]
