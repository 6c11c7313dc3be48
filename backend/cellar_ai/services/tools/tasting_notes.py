"""Tasting notes for a bottle: scraped community notes with stored notes as fallback."""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cellar_ai.db.models import Wine
from cellar_ai.db.queries import get_wine_by_iwine
from cellar_ai.services.cellartracker import (
    CellarTrackerClient,
    CellarTrackerUnavailableError,
    extract_bottle_image,
    extract_community_score,
    extract_professional_reviews,
    extract_tasting_notes,
)

logger = logging.getLogger(__name__)


def _wine_data(wine: Wine, i_wine: str) -> Dict[str, Any]:
    return {
        "iWine": i_wine,
        "title": wine.wine or "Wine",
        "producer": wine.producer or "Unknown Producer",
        "vintage": wine.vintage or "Unknown Vintage",
        "region": wine.region or "Unknown Region",
        "varietals": wine.master_varietal or wine.varietal or "Unknown Varietal",
        "bottleImageUrl": None,
        "tastingNotes": [],
        "professionalReviews": [],
        "communityScore": wine.ct or None,
        "communityNotes": wine.c_notes or None,
        "bottleNote": wine.bottle_note or None,
    }


async def get_tasting_notes(
    session: AsyncSession,
    owner_id: str,
    i_wine: str,
    client: CellarTrackerClient,
    max_notes: Optional[int] = None,
) -> Dict[str, Any]:
    """Look up ``i_wine`` in the owner's cellar and enrich it from CellarTracker.

    Network failures and non-200 pages degrade to the stored record rather than
    failing the call.
    """
    wine = await get_wine_by_iwine(session, owner_id, i_wine)
    if wine is None:
        return {"iWine": i_wine, "error": "Wine not found in your cellar"}

    wine_data = _wine_data(wine, i_wine)
    wine_data["cellarTrackerUrl"] = client.wine_page_url(i_wine)
    name = wine.wine or "wine"

    try:
        wine_html = await client.fetch_wine_page(i_wine)
        notes_html = await client.fetch_notes_page(i_wine)
    except CellarTrackerUnavailableError as e:
        logger.warning(f"Could not fetch CellarTracker pages for iWine {i_wine}: {e}")
        return {
            "success": True,
            "wineData": wine_data,
            "message": f"Found wine details for {name} but couldn't fetch tasting notes due to a network error.",
        }

    if wine_html:
        wine_data["bottleImageUrl"] = extract_bottle_image(wine_html, client.base_url)

    if notes_html is None:
        return {
            "success": True,
            "wineData": wine_data,
            "message": f"Found wine details for {name} but tasting notes are not available.",
        }

    notes = extract_tasting_notes(notes_html, limit=max_notes)
    wine_data["tastingNotes"] = notes
    wine_data["professionalReviews"] = extract_professional_reviews(notes_html)
    wine_data["communityScore"] = extract_community_score(notes_html) or wine_data["communityScore"]

    logger.info(f"Extracted {len(notes)} tasting notes for iWine {i_wine}")
    return {
        "success": True,
        "wineData": wine_data,
        "message": f"Found {len(notes)} tasting notes for {name}.",
    }
