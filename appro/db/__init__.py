"""Database package — async SQLAlchemy engine/session factories, Base."""
from appro.db.base import Base, create_engine, create_session_factory

__all__ = ["Base", "create_engine", "create_session_factory"]
