from typing import Any, Callable, Dict, Optional, Type, TypeVar

from fastapi import Body, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings
from ..crud import get_link_by_link_id
from ..models import Link
from ..utils import IdentifierFactory, keys_match

ModelT = TypeVar("ModelT", bound=BaseModel)


def json_body(model: Type[ModelT]) -> Callable:
    """Dependency parsing the request body into ``model``.

    A request without a body is validated as ``{}`` so missing fields get
    the model's own error messages.
    """

    async def dependency(payload: Optional[Dict[str, Any]] = Body(None)) -> ModelT:
        try:
            return model.model_validate(payload or {})
        except ValidationError as e:
            errors = [{**error, "loc": ("body", *error["loc"])} for error in e.errors(include_url=False)]
            raise RequestValidationError(errors, body=payload)

    return dependency


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identifiers(request: Request) -> IdentifierFactory:
    return request.app.state.identifiers


def require_key(key: Optional[str] = Query(None)) -> str:
    if not key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Key is required")
    return key


async def get_owned_link(db: AsyncSession, link_id: str, key: str, missing_detail: str = "Link not found") -> Link:
    link = await get_link_by_link_id(db, link_id)
    if not link:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=missing_detail)
    if not keys_match(key, link.user_key):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid key")
    return link
