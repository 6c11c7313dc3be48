"""Repository functions for users, CellarTracker credentials and imported inventory."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cellar_ai.db.models import WINE_CSV_COLUMNS, CellarTrackerCredentials, User, Wine

logger = logging.getLogger(__name__)

SETUP_FRESHNESS_DAYS = 7


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def create_guest_user(session: AsyncSession) -> User:
    """Create an anonymous guest user."""
    user = User(email=f"guest-{uuid.uuid4().hex[:12]}", is_guest=True)
    session.add(user)
    await session.flush()
    logger.info(f"Created guest user {user.id}")
    return user


async def get_user(session: AsyncSession, user_id: str) -> Optional[User]:
    return await session.get(User, user_id)


async def get_cellartracker_credentials(
    session: AsyncSession, user_id: str
) -> Optional[CellarTrackerCredentials]:
    return await session.get(CellarTrackerCredentials, user_id)


async def save_cellartracker_credentials(
    session: AsyncSession, user_id: str, username: str, password: str
) -> CellarTrackerCredentials:
    """Insert or update the stored CellarTracker login for a user."""
    credentials = await session.get(CellarTrackerCredentials, user_id)
    if credentials is None:
        credentials = CellarTrackerCredentials(
            user_id=user_id, username=username, password=password
        )
        session.add(credentials)
    else:
        credentials.username = username
        credentials.password = password
        credentials.updated_at = datetime.now(timezone.utc)

    await session.flush()
    return credentials


async def get_cellar_data(
    session: AsyncSession, user_id: str, hours_old: int = 24
) -> List[Wine]:
    """Return the user's most recent import batch if it is younger than ``hours_old``."""
    latest = await session.scalar(
        select(func.max(Wine.fetched_at)).where(Wine.user_id == user_id)
    )
    if latest is None:
        return []

    cutoff = datetime.now(timezone.utc) - timedelta(hours=hours_old)
    if _as_utc(latest) < cutoff:
        logger.info(f"Cached cellar data for {user_id} is older than {hours_old}h")
        return []

    result = await session.execute(
        select(Wine).where(Wine.user_id == user_id, Wine.fetched_at == latest)
    )
    return list(result.scalars().all())


def _wine_from_csv_row(user_id: str, row: Dict[str, Any], fetched_at: datetime) -> Wine:
    values = {}
    for header, (attr, _column) in WINE_CSV_COLUMNS.items():
        value = row.get(header)
        values[attr] = "" if value is None else str(value)
    return Wine(user_id=user_id, fetched_at=fetched_at, **values)


async def save_cellar_data(
    session: AsyncSession,
    user_id: str,
    rows: List[Dict[str, Any]],
    batch_size: int = 100,
) -> int:
    """Replace the user's inventory with a freshly imported export.

    All inserted bottles share one ``fetchedAt`` so the batch can be read back
    as a unit by :func:`get_cellar_data`.
    """
    await session.execute(delete(Wine).where(Wine.user_id == user_id))

    fetched_at = datetime.now(timezone.utc)
    for start in range(0, len(rows), batch_size):
        batch = rows[start:start + batch_size]
        session.add_all(_wine_from_csv_row(user_id, row, fetched_at) for row in batch)
        await session.flush()

    logger.info(f"Saved {len(rows)} bottles for user {user_id}")
    return len(rows)


async def get_wine_by_iwine(
    session: AsyncSession, user_id: str, i_wine: str
) -> Optional[Wine]:
    result = await session.execute(
        select(Wine).where(Wine.user_id == user_id, Wine.i_wine == i_wine).limit(1)
    )
    return result.scalars().first()


async def has_valid_cellartracker_setup(session: AsyncSession, user_id: str) -> bool:
    """True when credentials are stored and inventory was imported in the last week."""
    credentials = await get_cellartracker_credentials(session, user_id)
    if credentials is None:
        return False

    wines = await get_cellar_data(session, user_id, hours_old=SETUP_FRESHNESS_DAYS * 24)
    return len(wines) > 0


async def get_cellar_stats(session: AsyncSession, user_id: str) -> Dict[str, Any]:
    total, last_updated = (
        await session.execute(
            select(func.count(Wine.id), func.max(Wine.fetched_at)).where(
                Wine.user_id == user_id
            )
        )
    ).one()
    credentials = await get_cellartracker_credentials(session, user_id)

    is_fresh = False
    if last_updated is not None:
        age = datetime.now(timezone.utc) - _as_utc(last_updated)
        is_fresh = age <= timedelta(days=SETUP_FRESHNESS_DAYS)

    return {
        "totalWines": total or 0,
        "lastUpdated": _as_utc(last_updated).isoformat() if last_updated else None,
        "hasCredentials": credentials is not None,
        "isFresh": is_fresh,
    }
