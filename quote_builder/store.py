"""Durable key-value store holding serialized quote history.

The store mirrors browser local storage: each key maps to one string value
that is always replaced as a whole.
"""
from typing import Dict, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from quote_builder.db import Base, make_engine
from quote_builder.exceptions import StoreUnavailableError
from quote_builder.models import StoreEntry


class InMemoryStore:
    """Process-local store, used for tests and embedding."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._values[key] = value

    def close(self) -> None:
        pass


class SQLStore:
    """Key-value store backed by the ``store_entries`` table."""

    def __init__(self, session_factory: sessionmaker, engine=None):
        self._session_factory = session_factory
        self._engine = engine

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value or ``None`` when the key was never written."""
        db: Session = self._session_factory()
        try:
            entry = db.get(StoreEntry, key)
            return entry.value if entry else None
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Failed to read '{key}': {str(e)}")
        finally:
            db.close()

    def set_item(self, key: str, value: str) -> None:
        """Overwrite the value stored under ``key``."""
        db: Session = self._session_factory()
        try:
            entry = db.get(StoreEntry, key)
            if entry is None:
                db.add(StoreEntry(key=key, value=value))
            else:
                entry.value = value
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreUnavailableError(f"Failed to write '{key}': {str(e)}")
        finally:
            db.close()

    def close(self) -> None:
        """Release pooled connections."""
        if self._engine is not None:
            self._engine.dispose()


def open_sql_store(db_url: str) -> SQLStore:
    """Create the store table if needed and return a store bound to ``db_url``."""
    engine = make_engine(db_url)
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return SQLStore(session_factory, engine=engine)
