"""
Pydantic schemas for index records with validation
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional


class _FileRecordBase(BaseModel):
    """
    Fields shared by zip and WAD records.

    Ensures:
    - keysum and checksums are lowercase hex/base36 text
    - filename is a bare name without directory components
    """

    keysum: str = Field(..., min_length=1, max_length=16)
    filename: str = Field(..., min_length=1, max_length=255)
    size: int = Field(..., ge=0)
    date_created: Optional[int] = Field(None, ge=0)
    md5_checksum: str = Field(..., min_length=32, max_length=32)
    sha_checksum: str = Field(..., min_length=40, max_length=40)

    @field_validator("keysum", "md5_checksum", "sha_checksum")
    @classmethod
    def lowercase_digest(cls, v):
        """Digests are compared as lowercase text"""
        return v.strip().lower()

    @field_validator("filename")
    @classmethod
    def bare_filename(cls, v):
        """Strip any directory part left over from a zip member path"""
        v = v.replace("\\", "/").rsplit("/", 1)[-1].strip()
        if not v:
            raise ValueError("filename cannot be empty")
        return v


class ZipRecordCreate(_FileRecordBase):
    """Schema for inserting a row into 'zipfiles'"""
    pass


class WadRecordCreate(_FileRecordBase):
    """Schema for inserting a row into 'wads'"""

    zip_keysum: str = Field(..., min_length=1, max_length=16)
    lump_count: int = Field(0, ge=0)

    @field_validator("zip_keysum")
    @classmethod
    def lowercase_zip_keysum(cls, v):
        return v.strip().lower()


class LevelMappingCreate(BaseModel):
    """Schema for inserting a row into 'levels_to_wads'"""

    wad_keysum: str = Field(..., min_length=1, max_length=16)
    level_name: str = Field(..., min_length=1, max_length=8)

    @field_validator("level_name")
    @classmethod
    def uppercase_level(cls, v):
        """Lump names are case-insensitive; store them uppercase"""
        return v.strip().upper()
