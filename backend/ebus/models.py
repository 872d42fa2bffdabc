from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime, timezone

from .database import Base


class StateDocument(Base):
    """Whole application state stored under one document key."""

    __tablename__ = "state_documents"
    key = Column(String, primary_key=True)
    payload = Column(JSON, default=dict, nullable=False)
    last_updated = Column(DateTime, default=lambda: datetime.now(timezone.utc))
