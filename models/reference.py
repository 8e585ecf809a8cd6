from sqlalchemy import Column, String, Integer, Float, Text
from models.base import ReferenceBase


class IdGamesFile(ReferenceBase):
    """
    A file in the idGames Archive, as stored by an idGames API dump.

    Read-only. Only the columns used for cross-referencing are mapped.
    """
    __tablename__ = "files"

    keysum = Column(String(16), primary_key=True)
    id = Column(Integer, unique=True)
    title = Column(Text, nullable=True)
    dir = Column(Text, nullable=True)
    filename = Column(Text, nullable=True)
    size = Column(Integer, nullable=True)
    date = Column(String(32), nullable=True)
    author = Column(Text, nullable=True)
    rating = Column(Float, nullable=True)
    votes = Column(Integer, nullable=True)
