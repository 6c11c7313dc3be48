"""Session-managed entry points for the cellar tools, and their LangChain bindings."""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from langchain_core.tools import StructuredTool
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cellar_ai.config import config
from cellar_ai.db.session import get_db
from cellar_ai.models.cellar_models import (
    AnalyticsInput,
    FilterWinesInput,
    FoodPairingInput,
    NotesContextInput,
    TastingNotesInput,
    ValueAnalysisInput,
    WineCardsInput,
    WineFilters,
    WineReference,
)
from cellar_ai.services.analytics import NOT_AUTHENTICATED_MESSAGE, WineAnalyticsPipeline
from cellar_ai.services.cellartracker import CellarTrackerClient
from cellar_ai.services.llm_service import LLMService

from . import cellar_tools
from .pairing import FoodPairingService
from .tasting_notes import get_tasting_notes
from .wine_cards import WineCardBuilder

logger = logging.getLogger(__name__)


class NoInput(BaseModel):
    """Tool takes no arguments."""


class CellarToolkit:
    """Runs each cellar tool in its own database session.

    Every method takes the owner id explicitly; nothing here reads identity
    from ambient state. Failures come back as ``{"error": ...}`` so a chat turn
    can carry on.
    """

    def __init__(
        self,
        llm_service: LLMService,
        client: CellarTrackerClient,
        analytics: WineAnalyticsPipeline,
        session_factory: Optional[async_sessionmaker] = None,
    ):
        self.llm_service = llm_service
        self.client = client
        self.analytics = analytics
        self.session_factory = session_factory
        self.max_notes = config.get_cellartracker_config()["max_notes"]
        self.pairing = FoodPairingService(llm_service)
        self.cards = WineCardBuilder(llm_service, client, max_notes=self.max_notes)

    async def _run(
        self,
        name: str,
        owner_id: Optional[str],
        operation: Callable[[AsyncSession], Awaitable[Dict[str, Any]]],
    ) -> Dict[str, Any]:
        if not owner_id:
            return {"error": NOT_AUTHENTICATED_MESSAGE}
        try:
            async with get_db(self.session_factory) as session:
                return await operation(session)
        except (SQLAlchemyError, RuntimeError) as e:
            logger.error(f"Tool {name} failed for user {owner_id}: {e}")
            return {"error": f"Failed to run {name}"}

    async def filter_wines(self, owner_id: str, params: FilterWinesInput) -> Dict[str, Any]:
        filters = WineFilters(**params.model_dump(include=set(WineFilters.model_fields)))
        return await self._run(
            "filterWines",
            owner_id,
            lambda s: cellar_tools.filter_wines(
                s, owner_id, filters, limit=params.limit, count_only=params.count_only
            ),
        )

    async def summarize_inventory(self, owner_id: str) -> Dict[str, Any]:
        return await self._run(
            "summarizeInventory", owner_id, lambda s: cellar_tools.summarize_inventory(s, owner_id)
        )

    async def analyze_value(self, owner_id: str, params: ValueAnalysisInput) -> Dict[str, Any]:
        return await self._run(
            "analyzeValue", owner_id, lambda s: cellar_tools.analyze_value(s, owner_id, params.limit)
        )

    async def get_available_wine_options(self, owner_id: str) -> Dict[str, Any]:
        return await self._run(
            "getAvailableWineOptions",
            owner_id,
            lambda s: cellar_tools.get_available_wine_options(s, owner_id),
        )

    async def retrieve_notes_context(self, owner_id: str, params: NotesContextInput) -> Dict[str, Any]:
        return await self._run(
            "retrieveNotesContext",
            owner_id,
            lambda s: cellar_tools.retrieve_notes_context(s, owner_id, params.query, params.limit),
        )

    async def suggest_food_pairing(self, owner_id: str, params: FoodPairingInput) -> Dict[str, Any]:
        return await self._run(
            "suggestFoodPairing",
            owner_id,
            lambda s: self.pairing.suggest_food_pairing(s, owner_id, params),
        )

    async def get_tasting_notes(self, owner_id: str, params: TastingNotesInput) -> Dict[str, Any]:
        return await self._run(
            "getTastingNotes",
            owner_id,
            lambda s: get_tasting_notes(s, owner_id, params.i_wine, self.client, self.max_notes),
        )

    async def create_wine_cards(self, owner_id: str, params: WineCardsInput) -> Dict[str, Any]:
        return await self._run(
            "createWineCards",
            owner_id,
            lambda s: self.cards.create_wine_cards(s, owner_id, params.wines, params.context_message),
        )

    async def wine_data_analytics(self, owner_id: str, params: AnalyticsInput) -> Dict[str, Any]:
        return await self.analytics.analyze(params.query, owner_id)

    def build_cellar_tools(self, owner_id: str) -> List[StructuredTool]:
        """LangChain tools bound to ``owner_id``; the model never supplies identity."""

        async def filter_wines(**kwargs) -> Dict[str, Any]:
            return await self.filter_wines(owner_id, FilterWinesInput(**kwargs))

        async def summarize_inventory() -> Dict[str, Any]:
            return await self.summarize_inventory(owner_id)

        async def analyze_value(**kwargs) -> Dict[str, Any]:
            return await self.analyze_value(owner_id, ValueAnalysisInput(**kwargs))

        async def get_available_wine_options() -> Dict[str, Any]:
            return await self.get_available_wine_options(owner_id)

        async def retrieve_notes_context(**kwargs) -> Dict[str, Any]:
            return await self.retrieve_notes_context(owner_id, NotesContextInput(**kwargs))

        async def suggest_food_pairing(**kwargs) -> Dict[str, Any]:
            return await self.suggest_food_pairing(owner_id, FoodPairingInput(**kwargs))

        async def get_tasting_notes(**kwargs) -> Dict[str, Any]:
            return await self.get_tasting_notes(owner_id, TastingNotesInput(**kwargs))

        async def create_wine_cards(wines: List[Any], context_message: Optional[str] = None) -> Dict[str, Any]:
            references = [w if isinstance(w, WineReference) else WineReference(**w) for w in wines]
            return await self.create_wine_cards(
                owner_id, WineCardsInput(wines=references, context_message=context_message)
            )

        async def wine_data_analytics(**kwargs) -> Dict[str, Any]:
            return await self.wine_data_analytics(owner_id, AnalyticsInput(**kwargs))

        definitions = [
            (
                "filterWines",
                "Find wines in the user's cellar by varietal, region, country, producer, type, "
                "location, vintage or price range, or drinking window. Set count_only for counts.",
                filter_wines,
                FilterWinesInput,
            ),
            (
                "summarizeInventory",
                "Overview of the whole cellar: totals, breakdowns by region, varietal, vintage "
                "and type, value and top producers.",
                summarize_inventory,
                NoInput,
            ),
            (
                "analyzeValue",
                "Compare purchase prices with current valuations: biggest gainers and losers and overall ROI.",
                analyze_value,
                ValueAnalysisInput,
            ),
            (
                "getAvailableWineOptions",
                "List the varietals, regions, countries and wine types present in the cellar.",
                get_available_wine_options,
                NoInput,
            ),
            (
                "retrieveNotesContext",
                "Search the user's personal tasting notes and bottle notes.",
                retrieve_notes_context,
                NotesContextInput,
            ),
            (
                "suggestFoodPairing",
                "Suggest wines from the user's cellar that pair well with a dish.",
                suggest_food_pairing,
                FoodPairingInput,
            ),
            (
                "getTastingNotes",
                "Get community tasting notes, reviews, score and bottle image for a wine by its iWine id.",
                get_tasting_notes,
                TastingNotesInput,
            ),
            (
                "createWineCards",
                "Create display cards with images and tasting-note summaries for wines being recommended.",
                create_wine_cards,
                WineCardsInput,
            ),
            (
                "wineDataAnalytics",
                "Answer analytical questions about the cellar with a chart: rankings, distributions, "
                "trends and comparisons.",
                wine_data_analytics,
                AnalyticsInput,
            ),
        ]

        return [
            StructuredTool.from_function(
                coroutine=coroutine, name=name, description=description, args_schema=schema
            )
            for name, description, coroutine, schema in definitions
        ]
