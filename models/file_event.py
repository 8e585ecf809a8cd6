from sqlalchemy import Column, String, Integer, Enum
from models.base import Base, FileEventType


class FileEvent(Base):
    """
    Audit trail of rows touched in 'zipfiles' and 'wads'.
    """
    __tablename__ = "file_events"
    __table_args__ = (
        {"comment": "Creation events for indexed file rows"},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    keysum = Column(String(16), nullable=False, index=True)
    event = Column(Enum(FileEventType), nullable=False)
    timestamp = Column(Integer, nullable=False)
