"""FastAPI dependency factories."""

from functools import lru_cache

from fastapi import Depends

from server.config import Settings
from server.db.session import get_session_factory


@lru_cache()
def get_settings() -> Settings:
    """Singleton Settings -- override via app.dependency_overrides in tests."""
    return Settings()


def get_db_session(settings: Settings = Depends(get_settings)):
    """One database session per request; committed when the handler returns."""
    session = get_session_factory(settings)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
