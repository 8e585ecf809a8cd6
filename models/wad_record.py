from sqlalchemy import Column, String, Integer, BigInteger, Index
from models.base import Base


class WadRecord(Base):
    """
    A WAD file extracted from a zip archive.

    zip_keysum refers to zipfiles.keysum by convention only. The store does
    not enforce the reference; the indexer writes the owning zip row while
    processing the same archive.
    """
    __tablename__ = "wads"
    __table_args__ = (
        Index("idx_wads_zip_keysum", "zip_keysum"),
        {"comment": "All of the WAD files extracted from zipfiles"},
    )

    keysum = Column(String(16), primary_key=True)
    zip_keysum = Column(String(16), nullable=False)
    date_created = Column(Integer, nullable=True)
    filename = Column(String(255), nullable=False)
    size = Column(BigInteger, nullable=False)
    md5_checksum = Column(String(32), nullable=False)
    sha_checksum = Column(String(40), nullable=False)
    lump_count = Column(Integer, nullable=False, default=0)
