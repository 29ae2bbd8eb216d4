from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base

DEFAULT_TITLE = "Anonymous Messages"
DEFAULT_DESCRIPTION = "Send me anonymous messages"
MAX_CONTENT_LENGTH = 1000


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Link(Base):
    __tablename__ = "links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    link_id: Mapped[str] = mapped_column(String(8), unique=True, index=True, nullable=False)
    user_key: Mapped[str] = mapped_column(String, index=True, nullable=False)
    title: Mapped[str] = mapped_column(String, default=DEFAULT_TITLE, nullable=False)
    description: Mapped[str] = mapped_column(String, default=DEFAULT_DESCRIPTION, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    message_id: Mapped[str] = mapped_column(String(36), unique=True, index=True, nullable=False)
    # No foreign key: links are never deleted and orphans are tolerated
    link_id: Mapped[str] = mapped_column(String(8), index=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    anonymous_sender_id: Mapped[str] = mapped_column(String, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
