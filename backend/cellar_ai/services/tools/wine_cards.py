"""Display cards for recommended bottles, enriched with CellarTracker details."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cellar_ai.models.cellar_models import WineReference
from cellar_ai.services.cellartracker import CellarTrackerClient, CellarTrackerError
from cellar_ai.services.llm_exceptions import LLMError
from cellar_ai.services.llm_service import LLMService

from .tasting_notes import get_tasting_notes

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY_LENGTH = 200

NOTES_SUMMARY_PROMPT = """Please create a concise, informative summary of these wine tasting notes. Focus on:
1. Overall consensus on flavor profile and characteristics
2. Key descriptors that appear consistently
3. Drinking readiness and potential
4. Any notable professional scores or reviews
5. Overall quality assessment

Keep the summary to 2-3 sentences that would help someone decide if they want to drink this wine.

Tasting Notes:
{notes}"""


def format_notes(wine_name: str, details: Dict[str, Any]) -> str:
    """Render scraped notes, reviews and score as prompt text."""
    lines = [f"Wine: {wine_name}", ""]
    if details.get("communityScore"):
        lines += [f"Community Score: {details['communityScore']}", ""]
    if details.get("professionalReviews"):
        lines += ["Professional Reviews:", *details["professionalReviews"], ""]

    lines.append("Community Tasting Notes:")
    for index, note in enumerate(details.get("tastingNotes", []), start=1):
        line = f"{index}. "
        if note.get("date"):
            line += f"[{note['date']}] "
        if note.get("reviewer"):
            line += f"{note['reviewer']}: "
        if note.get("score"):
            line += f"Score: {note['score']} - "
        line += note.get("note") or ""
        lines.append(line)
    return "\n".join(lines)


def fallback_summary(details: Dict[str, Any]) -> Optional[str]:
    """First two substantial scraped notes, else truncated stored notes."""
    scraped = [
        note["note"]
        for note in details.get("tastingNotes", [])
        if note.get("note") and len(note["note"]) > 10
    ]
    if scraped:
        return " ".join(scraped[:2])

    stored = ". ".join(n for n in (details.get("communityNotes"), details.get("bottleNote")) if n)
    if len(stored) <= 10:
        return None
    if len(stored) > FALLBACK_SUMMARY_LENGTH:
        return stored[:FALLBACK_SUMMARY_LENGTH] + "..."
    return stored


class WineCardBuilder:
    """Builds wine cards; notes are summarized by the LLM when available."""

    def __init__(
        self,
        llm_service: LLMService,
        client: CellarTrackerClient,
        max_notes: Optional[int] = None,
    ):
        self.llm_service = llm_service
        self.client = client
        self.max_notes = max_notes

    async def summarize_notes(self, wine_name: str, details: Dict[str, Any]) -> Optional[str]:
        if not details.get("tastingNotes"):
            return fallback_summary(details)

        prompt = NOTES_SUMMARY_PROMPT.format(notes=format_notes(wine_name, details))
        try:
            summary = await self.llm_service.generate(prompt)
        except LLMError as e:
            logger.warning(f"Tasting-note summary failed for {wine_name}: {e}")
            return fallback_summary(details)
        return summary.strip() or fallback_summary(details)

    async def build_card(
        self, session: AsyncSession, owner_id: str, wine: WineReference
    ) -> Dict[str, Any]:
        card = {
            "iWine": wine.i_wine,
            "wine": wine.wine,
            "vintage": wine.vintage,
            "producer": wine.producer,
            "region": wine.region,
            "varietal": wine.varietal,
            "location": wine.location,
            "bottleImageUrl": None,
            "tastingNotesSummary": None,
            "professionalReviews": [],
            "communityScore": None,
            "cellarTrackerUrl": None,
        }
        if not wine.i_wine:
            return card

        card["cellarTrackerUrl"] = self.client.wine_page_url(wine.i_wine)
        try:
            result = await get_tasting_notes(
                session, owner_id, wine.i_wine, self.client, max_notes=self.max_notes
            )
        except CellarTrackerError as e:
            logger.error(f"Error fetching details for wine {wine.i_wine}: {e}")
            return card

        details = result.get("wineData")
        if not details:
            return card

        card["bottleImageUrl"] = details.get("bottleImageUrl")
        card["professionalReviews"] = details.get("professionalReviews", [])
        card["communityScore"] = details.get("communityScore")
        wine_name = f"{wine.wine} {wine.vintage or ''}".strip()
        card["tastingNotesSummary"] = await self.summarize_notes(wine_name, details)
        return card

    async def create_wine_cards(
        self,
        session: AsyncSession,
        owner_id: str,
        wines: List[WineReference],
        context_message: Optional[str] = None,
    ) -> Dict[str, Any]:
        seen = set()
        cards = []
        for wine in wines:
            key = f"{wine.wine}-{wine.vintage}-{wine.producer}".lower()
            if key in seen:
                continue
            seen.add(key)
            cards.append(await self.build_card(session, owner_id, wine))

        noun = "card" if len(cards) == 1 else "cards"
        return {
            "wineCards": cards,
            "contextMessage": context_message,
            "totalCards": len(cards),
            "message": f"Created {len(cards)} wine {noun} for display.",
        }
