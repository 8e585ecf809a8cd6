"""
Pydantic schemas for data validation before records reach the store.

Schemas:
    records: ZipRecordCreate, WadRecordCreate, LevelMappingCreate

Usage:
    from schemas.records import ZipRecordCreate, WadRecordCreate

Example:
    record = ZipRecordCreate(
        keysum="0k4v1m2x9z3aa",
        filename="sample.zip",
        size=1000,
        md5_checksum="d41d8cd98f00b204e9800998ecf8427e",
        sha_checksum="da39a3ee5e6b4b0d3255bfef95601890afd80709",
    )
"""

__all__ = [
    "ZipRecordCreate",
    "WadRecordCreate",
    "LevelMappingCreate",
]
