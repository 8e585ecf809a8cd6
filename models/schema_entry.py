from sqlalchemy import Column, String, Integer, Text
from models.base import Base


class SchemaEntry(Base):
    """
    Transaction log of applied schema entries.

    Purpose:
    - Startup check that the database was initialized
    - checksum covers description + notes + DDL, so a changed table
      definition is visible when comparing databases
    """
    __tablename__ = "schema"
    __table_args__ = (
        {"comment": "Table for database schema transaction log"},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    date_applied = Column(Integer, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    checksum = Column(String(32), nullable=True)
