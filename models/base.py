from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()

# Tables owned by the idGames dump database; never created by this project
ReferenceBase = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class FileEventType(str, enum.Enum):
    """Events recorded against zipfiles/wads rows; rows are immutable, so only creation"""
    CREATE = "create"
