from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String

from app.db.base import Base, new_id


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Model for users table
    Example:
    {
        "id": "550e8400-e29b-41d4-a716-446655440000",
        "wallet_address": "0x52908400098527886e0f7030069857d2e4169ee7",
        "created_at": "2024-01-01T12:00:00",
        "last_active_at": "2024-01-01T12:00:00"
    }
    """

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    wallet_address = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    last_active_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
