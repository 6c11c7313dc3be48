"""Food pairing: an LLM picks styles from what the cellar holds, then the cellar is searched."""

import logging
import math
from typing import Any, Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from cellar_ai.models.cellar_models import FoodPairingInput, PairingRecommendation, WineFilters
from cellar_ai.services.llm_exceptions import LLMError
from cellar_ai.services.llm_service import LLMService

from .cellar_tools import filter_wines, get_available_wine_options

logger = logging.getLogger(__name__)

PAIRABLE_TYPES = {"Red", "White", "Rosé", "White - Sparkling"}

PAIRING_SYSTEM_PROMPT = "You are a wine sommelier recommending bottles from a private cellar."

PAIRING_PROMPT_TEMPLATE = """Based on the dish "{food}", decide which wine varietals and regions would pair best.
Only choose from the options available in this cellar.

Available varietals: {varietals}
Available regions: {regions}
Available wine types: {types}

Consider the preparation method and flavors of the dish, wine weight and intensity,
complementary or contrasting flavor profiles, and traditional pairing principles.

Limit to 3-4 varietals and 2-3 regions."""


def default_recommendation(wine_type: str = None) -> PairingRecommendation:
    return PairingRecommendation(
        recommended_varietals=["Pinot Noir", "Chardonnay", "Sauvignon Blanc"],
        recommended_regions=[],
        recommended_types=[wine_type] if wine_type else ["Red", "White"],
        reasoning="Using default pairing suggestions due to analysis error.",
    )


def _wine_key(wine: Dict[str, Any]) -> str:
    return f"{wine.get('wine')}-{wine.get('vintage')}-{wine.get('producer')}".lower()


class FoodPairingService:
    """Suggests bottles from an owner's cellar for a dish."""

    def __init__(self, llm_service: LLMService):
        self.llm_service = llm_service

    async def recommend(
        self, food: str, options: Dict[str, List[str]], wine_type: str = None
    ) -> PairingRecommendation:
        """Ask the LLM for styles; falls back to a generic recommendation on failure."""
        prompt = PAIRING_PROMPT_TEMPLATE.format(
            food=food,
            varietals=", ".join(options["varietals"]),
            regions=", ".join(options["regions"]),
            types=", ".join(t for t in options["types"] if t in PAIRABLE_TYPES),
        )
        try:
            return await self.llm_service.generate_structured(
                prompt, PairingRecommendation, system_prompt=PAIRING_SYSTEM_PROMPT
            )
        except LLMError as e:
            logger.warning(f"Pairing recommendation failed for '{food}', using defaults: {e}")
            return default_recommendation(wine_type)

    async def suggest_food_pairing(
        self, session: AsyncSession, owner_id: str, params: FoodPairingInput
    ) -> Dict[str, Any]:
        options = await get_available_wine_options(session, owner_id)
        if not any(options.values()):
            return {"error": "No wines found in your cellar."}

        recommendation = await self.recommend(params.food, options, params.wine_type)
        per_query = math.ceil(params.limit / 2)

        searches: List[WineFilters] = []
        for varietal in recommendation.recommended_varietals:
            if varietal in options["varietals"]:
                searches.append(WineFilters(varietal=varietal, ready_to_drink=params.ready_to_drink))
        for region in recommendation.recommended_regions:
            if region in options["regions"]:
                searches.append(WineFilters(region=region, ready_to_drink=params.ready_to_drink))
        types = [params.wine_type] if params.wine_type else recommendation.recommended_types
        for wine_type in types:
            if wine_type in options["types"]:
                searches.append(WineFilters(wine_type=wine_type, ready_to_drink=params.ready_to_drink))

        limits = [per_query] * len(searches)
        if not searches:
            searches.append(WineFilters(ready_to_drink=params.ready_to_drink))
            limits.append(params.limit * 2)

        seen = set()
        wines = []
        for filters, limit in zip(searches, limits):
            result = await filter_wines(session, owner_id, filters, limit=limit)
            for wine in result["wines"]:
                key = _wine_key(wine)
                if key not in seen and len(wines) < params.limit:
                    seen.add(key)
                    wines.append(wine)

        noun = "wine" if len(wines) == 1 else "wines"
        return {
            "dish": params.food,
            "wines": wines,
            "count": len(wines),
            "pairingAnalysis": {
                "recommendedVarietals": recommendation.recommended_varietals,
                "recommendedRegions": recommendation.recommended_regions,
                "recommendedTypes": recommendation.recommended_types,
                "reasoning": recommendation.reasoning or "Wine pairing analysis completed.",
            },
            "message": f"Found {len(wines)} {noun} that pair well with {params.food}.",
        }
