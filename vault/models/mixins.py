from datetime import datetime
from pytz import UTC
from sqlalchemy import Column, DateTime


class CreatedAtMixin:
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(UTC))
