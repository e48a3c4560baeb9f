from letrus_care.core.database.session import Database, get_db
from letrus_care.core.database.base import Base, BaseModel, BigIntPK, utcnow

__all__ = ["Database", "get_db", "Base", "BaseModel", "BigIntPK", "utcnow"]
