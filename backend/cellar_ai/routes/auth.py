"""Guest sign-in."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import async_sessionmaker

from cellar_ai.db.queries import create_guest_user
from cellar_ai.db.session import get_db
from cellar_ai.models.api_models import GuestUserResponse
from cellar_ai.routes.deps import get_session_factory

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/guest", response_model=GuestUserResponse)
async def create_guest(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> GuestUserResponse:
    """Create a guest account; the returned id is sent back as ``X-User-Id``."""
    async with get_db(session_factory) as session:
        user = await create_guest_user(session)
        return GuestUserResponse(user_id=user.id, email=user.email)
