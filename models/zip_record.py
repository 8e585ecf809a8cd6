from sqlalchemy import Column, String, Integer, BigInteger, Index
from models.base import Base


class ZipRecord(Base):
    """
    One zip archive examined on disk.

    Design Decisions:
    - keysum is derived from (filename, size) only; two archives sharing both
      collide and the first one indexed wins
    - md5/sha checksums are the authoritative content identifiers
    - date_created is the archive's mtime in epoch seconds
    """
    __tablename__ = "zipfiles"
    __table_args__ = (
        Index("idx_zipfiles_filename", "filename"),
        {"comment": "Holds information gathered during an index of zip files"},
    )

    keysum = Column(String(16), primary_key=True)
    date_created = Column(Integer, nullable=True)
    filename = Column(String(255), nullable=False)
    size = Column(BigInteger, nullable=False)
    md5_checksum = Column(String(32), nullable=False)
    sha_checksum = Column(String(40), nullable=False)
