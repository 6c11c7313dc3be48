"""Connecting a CellarTracker account and importing its inventory."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import async_sessionmaker

from cellar_ai.config import config
from cellar_ai.db.queries import (
    get_cellar_data,
    get_cellar_stats,
    get_user,
    has_valid_cellartracker_setup,
    save_cellar_data,
    save_cellartracker_credentials,
)
from cellar_ai.db.session import get_db
from cellar_ai.models.api_models import CellarTrackerConnectRequest
from cellar_ai.routes.deps import get_client, get_session_factory, require_user_id
from cellar_ai.services.cellartracker import (
    CellarTrackerClient,
    CellarTrackerUnavailableError,
    InvalidCredentialsError,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cellartracker", tags=["cellartracker"])


@router.post("/connect")
async def connect(
    request: CellarTrackerConnectRequest,
    user_id: str = Depends(require_user_id),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    client: CellarTrackerClient = Depends(get_client),
) -> Dict[str, Any]:
    """Verify the login against CellarTracker, then import (or reuse) the inventory.

    Credentials are always checked first, even when a fresh import is cached.
    """
    if not request.username or not request.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    logger.info(f"CellarTracker connect for user {user_id} as {request.username[:3]}***")

    try:
        rows = await client.fetch_inventory(request.username, request.password)
    except InvalidCredentialsError:
        raise HTTPException(
            status_code=401,
            detail="Invalid CellarTracker credentials. Please check your username and password.",
        )
    except CellarTrackerUnavailableError as e:
        logger.error(f"CellarTracker unavailable for user {user_id}: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch data from CellarTracker")

    ct_config = config.get_cellartracker_config()
    async with get_db(session_factory) as session:
        if await get_user(session, user_id) is None:
            raise HTTPException(status_code=401, detail="Unauthorized")

        cached = await get_cellar_data(session, user_id, hours_old=ct_config["cache_hours"])
        if cached:
            logger.info(f"Returning {len(cached)} cached bottles for user {user_id}")
            return {
                "data": [wine.to_dict() for wine in cached],
                "fetchedAt": cached[0].fetched_at.isoformat(),
                "cached": True,
            }

        await save_cellartracker_credentials(session, user_id, request.username, request.password)
        count = await save_cellar_data(
            session, user_id, rows, batch_size=ct_config["insert_batch_size"]
        )

    return {
        "data": rows,
        "fetchedAt": datetime.now(timezone.utc).isoformat(),
        "cached": False,
        "count": count,
    }


@router.get("/status")
async def status(
    user_id: str = Depends(require_user_id),
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> Dict[str, Any]:
    """Whether the user has a usable CellarTracker import."""
    async with get_db(session_factory) as session:
        stats = await get_cellar_stats(session, user_id)
        stats["connected"] = await has_valid_cellartracker_setup(session, user_id)
    return stats
