"""SQLAlchemy database models."""
from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func

from quote_builder.db import Base


class StoreEntry(Base):
    """Named value in the local key-value store; written whole on every save."""
    __tablename__ = "store_entries"
    
    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
