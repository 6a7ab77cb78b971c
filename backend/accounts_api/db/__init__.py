from accounts_api.db.session import async_session_maker, get_db, init_db
from accounts_api.db.base import Base

__all__ = ["Base", "async_session_maker", "get_db", "init_db"]
