from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..database import get_db
from ..config import Settings
from ..crud import count_messages_by_link, create_link, get_link_by_link_id, get_links_by_user_key, toggle_link_active
from ..models import DEFAULT_DESCRIPTION, DEFAULT_TITLE, Link
from ..observability import LINKS_CREATED_TOTAL
from ..schemas import LinkCreate, LinkCreated, LinkInfo, LinkInfoResponse, LinkList, LinkSummary, VisibilityToggled
from ..services.rate_limiter import link_rate_limit
from ..utils import IdentifierFactory, share_path
from .deps import get_app_settings, get_identifiers, get_owned_link, json_body, require_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/links", tags=["links"])


@router.post(
    "/create",
    response_model=LinkCreated,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(link_rate_limit)],
)
async def create(
    link_in: LinkCreate = Depends(json_body(LinkCreate)),
    db: AsyncSession = Depends(get_db),
    identifiers: IdentifierFactory = Depends(get_identifiers),
    settings: Settings = Depends(get_app_settings),
):
    # No collision retry: a duplicate ID fails on the unique index
    new_link = Link(
        link_id=identifiers.link_id(),
        user_key=link_in.key,
        title=link_in.title or DEFAULT_TITLE,
        description=link_in.description or DEFAULT_DESCRIPTION,
        is_active=True,
    )
    created = await create_link(db, new_link)
    LINKS_CREATED_TOTAL.inc()
    logger.info("Link created", extra={"link_id": created.link_id})

    return LinkCreated(
        link_id=created.link_id,
        share_url=share_path(settings.SHARE_PATH_PREFIX, created.link_id),
        title=created.title,
        description=created.description,
        created_at=created.created_at,
    )


@router.get("", response_model=LinkList)
async def list_links(
    key: str = Depends(require_key),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """List every link owned by ``key``, newest first, with message counts."""
    links = await get_links_by_user_key(db, key)
    counts = await count_messages_by_link(db, [link.link_id for link in links])

    summaries = [
        LinkSummary.from_link(
            link,
            message_count=counts.get(link.link_id, 0),
            share_url=share_path(settings.SHARE_PATH_PREFIX, link.link_id),
        )
        for link in links
    ]
    return LinkList(links=summaries, total_links=len(summaries))


@router.post("/{link_id}/toggle-visibility", response_model=VisibilityToggled)
async def toggle_visibility(
    link_id: str,
    key: str = Depends(require_key),
    db: AsyncSession = Depends(get_db),
):
    link = await get_owned_link(db, link_id, key)
    link = await toggle_link_active(db, link)
    logger.info(f"Link visibility set to {link.is_active}", extra={"link_id": link.link_id})

    state = "activated" if link.is_active else "deactivated"
    return VisibilityToggled(
        link_id=link.link_id,
        is_active=link.is_active,
        message=f"Link {state} successfully",
    )


@router.get("/{link_id}/info", response_model=LinkInfoResponse)
async def link_info(link_id: str, db: AsyncSession = Depends(get_db)):
    """Public metadata used to render the message form."""
    link = await get_link_by_link_id(db, link_id)
    if not link:
        raise HTTPException(status_code=404, detail="Link not found")
    return LinkInfoResponse(link_info=LinkInfo.from_link(link))
