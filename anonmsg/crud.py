from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from .models import Link, Message
from typing import Optional, List, Dict

# Link CRUD
async def create_link(db: AsyncSession, link: Link) -> Link:
    db.add(link)
    await db.commit()
    await db.refresh(link)
    return link

async def get_link_by_link_id(db: AsyncSession, link_id: str) -> Optional[Link]:
    result = await db.execute(select(Link).where(Link.link_id == link_id))
    return result.scalar_one_or_none()

async def get_links_by_user_key(db: AsyncSession, user_key: str) -> List[Link]:
    result = await db.execute(
        select(Link)
        .where(Link.user_key == user_key)
        .order_by(Link.created_at.desc(), Link.id.desc())
    )
    return list(result.scalars().all())

async def toggle_link_active(db: AsyncSession, link: Link) -> Link:
    # Plain read-then-write; concurrent toggles race and the last commit wins
    link.is_active = not link.is_active
    await db.commit()
    await db.refresh(link)
    return link

# Message CRUD
async def create_message(db: AsyncSession, message: Message) -> Message:
    db.add(message)
    await db.commit()
    await db.refresh(message)
    return message

async def get_message_by_message_id(db: AsyncSession, message_id: str) -> Optional[Message]:
    result = await db.execute(select(Message).where(Message.message_id == message_id))
    return result.scalar_one_or_none()

async def get_messages_for_link(db: AsyncSession, link_id: str) -> List[Message]:
    result = await db.execute(
        select(Message)
        .where(Message.link_id == link_id)
        .order_by(Message.timestamp.desc(), Message.id.desc())
    )
    return list(result.scalars().all())

async def count_messages_by_link(db: AsyncSession, link_ids: List[str]) -> Dict[str, int]:
    if not link_ids:
        return {}
    result = await db.execute(
        select(Message.link_id, func.count(Message.id))
        .where(Message.link_id.in_(link_ids))
        .group_by(Message.link_id)
    )
    return {link_id: count for link_id, count in result.all()}

async def delete_message(db: AsyncSession, message_id: str) -> bool:
    result = await db.execute(delete(Message).where(Message.message_id == message_id))
    await db.commit()
    return result.rowcount > 0
