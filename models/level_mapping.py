from sqlalchemy import Column, String, Integer, UniqueConstraint
from models.base import Base


class LevelMapping(Base):
    """
    Which levels (map marker lumps) are contained in which WAD files.

    A WAD lists each level at most once; the unique constraint lets repeated
    runs insert-if-absent.
    """
    __tablename__ = "levels_to_wads"
    __table_args__ = (
        UniqueConstraint("wad_keysum", "level_name", name="uq_levels_to_wads"),
        {"comment": "A relational mapping of what levels are in which WAD files"},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    wad_keysum = Column(String(16), nullable=False, index=True)
    level_name = Column(String(8), nullable=False, index=True)
