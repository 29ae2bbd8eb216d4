from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..database import get_db
from ..crud import create_message, delete_message, get_link_by_link_id, get_message_by_message_id, get_messages_for_link
from ..models import Message
from ..observability import MESSAGES_DELETED_TOTAL, MESSAGES_SENT_TOTAL
from ..schemas import Acknowledgement, LinkInfo, MessageCreate, MessageList, MessageOut, MessageSent
from ..services.rate_limiter import message_rate_limit
from ..utils import IdentifierFactory
from .deps import get_identifiers, get_owned_link, json_body, require_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post(
    "/{link_id}/send",
    response_model=MessageSent,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(message_rate_limit)],
)
async def send_message(
    link_id: str,
    message_in: MessageCreate = Depends(json_body(MessageCreate)),
    db: AsyncSession = Depends(get_db),
    identifiers: IdentifierFactory = Depends(get_identifiers),
):
    link = await get_link_by_link_id(db, link_id)
    if not link:
        raise HTTPException(status_code=404, detail="Link not found")
    if not link.is_active:
        raise HTTPException(status_code=403, detail="This link is no longer accepting messages")

    new_message = Message(
        message_id=identifiers.message_id(),
        link_id=link.link_id,
        content=message_in.content,
        anonymous_sender_id=identifiers.sender_name(),
    )
    created = await create_message(db, new_message)
    MESSAGES_SENT_TOTAL.inc()
    logger.info("Message sent", extra={"link_id": link.link_id, "message_id": created.message_id})

    return MessageSent(
        message_id=created.message_id,
        anonymous_sender_id=created.anonymous_sender_id,
        timestamp=created.timestamp,
    )


@router.get("/{link_id}", response_model=MessageList)
async def read_messages(
    link_id: str,
    key: str = Depends(require_key),
    db: AsyncSession = Depends(get_db),
):
    """Owner view of a link: its metadata plus every message, newest first."""
    link = await get_owned_link(db, link_id, key)
    messages = await get_messages_for_link(db, link.link_id)

    return MessageList(
        link_info=LinkInfo.from_link(link),
        messages=[MessageOut.from_message(message) for message in messages],
        total_messages=len(messages),
    )


@router.delete("/{message_id}", response_model=Acknowledgement)
async def remove_message(
    message_id: str,
    key: str = Depends(require_key),
    db: AsyncSession = Depends(get_db),
):
    message = await get_message_by_message_id(db, message_id)
    if not message:
        raise HTTPException(status_code=404, detail="Message not found")

    await get_owned_link(db, message.link_id, key, missing_detail="Associated link not found")

    await delete_message(db, message_id)
    MESSAGES_DELETED_TOTAL.inc()
    logger.info("Message deleted", extra={"link_id": message.link_id, "message_id": message_id})

    return Acknowledgement(message="Message deleted successfully")
