import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, UUID

from app.core.db import Base


class BaseModel(Base):
    """Общие колонки: uuid и отметки времени"""
    __abstract__ = True

    uuid = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
