from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from .models import MAX_CONTENT_LENGTH, Link, Message

MIN_KEY_LENGTH = 6


def utf16_length(value: str) -> int:
    return len(value.encode("utf-16-le", "surrogatepass")) // 2


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Requests

class LinkCreate(BaseModel):
    key: Optional[str] = Field(None, validate_default=True)
    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator("key")
    @classmethod
    def check_key(cls, value: Optional[str]) -> str:
        if not value or utf16_length(value) < MIN_KEY_LENGTH:
            raise PydanticCustomError(
                "key_length",
                "Key is required and must be at least 6 characters long",
            )
        return value


class MessageCreate(BaseModel):
    content: Optional[str] = Field(None, validate_default=True)

    @field_validator("content")
    @classmethod
    def check_content(cls, value: Optional[str]) -> str:
        if not value or not value.strip():
            raise PydanticCustomError("content_missing", "Message content is required")
        # Length is measured before trimming, in UTF-16 code units like browser string length
        if utf16_length(value) > MAX_CONTENT_LENGTH:
            raise PydanticCustomError("content_length", "Message too long (max 1000 characters)")
        return value.strip()


# Responses

class LinkInfo(CamelModel):
    link_id: str
    title: str
    description: str
    is_active: bool
    created_at: datetime

    @classmethod
    def from_link(cls, link: Link, **extra) -> "LinkInfo":
        # Explicit field list keeps user_key out of every payload
        return cls(
            link_id=link.link_id,
            title=link.title,
            description=link.description,
            is_active=link.is_active,
            created_at=link.created_at,
            **extra,
        )


class LinkSummary(LinkInfo):
    message_count: int
    share_url: str


class MessageOut(CamelModel):
    message_id: str
    link_id: str
    content: str
    anonymous_sender_id: str
    timestamp: datetime

    @classmethod
    def from_message(cls, message: Message) -> "MessageOut":
        return cls(
            message_id=message.message_id,
            link_id=message.link_id,
            content=message.content,
            anonymous_sender_id=message.anonymous_sender_id,
            timestamp=message.timestamp,
        )


class LinkCreated(CamelModel):
    success: bool = True
    link_id: str
    share_url: str
    title: str
    description: str
    created_at: datetime


class MessageSent(CamelModel):
    success: bool = True
    message_id: str
    anonymous_sender_id: str
    timestamp: datetime
    message: str = "Message sent successfully!"


class MessageList(CamelModel):
    success: bool = True
    link_info: LinkInfo
    messages: List[MessageOut]
    total_messages: int


class LinkList(CamelModel):
    success: bool = True
    links: List[LinkSummary]
    total_links: int


class LinkInfoResponse(CamelModel):
    success: bool = True
    link_info: LinkInfo


class VisibilityToggled(CamelModel):
    success: bool = True
    link_id: str
    is_active: bool
    message: str


class Acknowledgement(CamelModel):
    success: bool = True
    message: str
