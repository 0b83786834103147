"""SQLAlchemy declarative base and engine construction for the local store."""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool


Base = declarative_base()


def make_engine(db_url: str):
    """Create an engine; in-memory SQLite keeps a single shared connection."""
    if not db_url.startswith("sqlite"):
        return create_engine(db_url)
    if ":memory:" in db_url or db_url == "sqlite://":
        return create_engine(
            db_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(db_url, connect_args={"check_same_thread": False})
