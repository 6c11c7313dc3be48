"""Integration tests for the cellar tools on a seeded database."""

from unittest.mock import AsyncMock, Mock

import pytest

from cellar_ai.models.cellar_models import FilterWinesInput, FoodPairingInput, WineFilters
from cellar_ai.services.cellartracker import CellarTrackerUnavailableError
from cellar_ai.services.llm_exceptions import TransientLLMError
from cellar_ai.services.tools import (
    CellarToolkit,
    FoodPairingService,
    analyze_value,
    filter_wines,
    get_available_wine_options,
    get_tasting_notes,
    retrieve_notes_context,
    summarize_inventory,
)
from cellar_ai.services.tools.cellar_tools import NO_WINES_MESSAGE
from tests.fixtures.cellartracker_pages import NOTES_PAGE, WINE_PAGE_WITH_PHOTO
from tests.fixtures.mock_llm_responses import MockLLMResponses

TOOL_NAMES = [
    "filterWines",
    "summarizeInventory",
    "analyzeValue",
    "getAvailableWineOptions",
    "retrieveNotesContext",
    "suggestFoodPairing",
    "getTastingNotes",
    "createWineCards",
    "wineDataAnalytics",
]


@pytest.fixture
def ct_client():
    client = Mock()
    client.base_url = "https://www.cellartracker.com"
    client.wine_page_url = Mock(side_effect=lambda i: f"https://www.cellartracker.com/wine.asp?iWine={i}")
    client.fetch_wine_page = AsyncMock(return_value=WINE_PAGE_WITH_PHOTO)
    client.fetch_notes_page = AsyncMock(return_value=NOTES_PAGE)
    return client


class TestFilterWines:
    @pytest.mark.asyncio
    async def test_filter_by_region(self, db_session, owner_id, other_owner_id):
        result = await filter_wines(db_session, owner_id, WineFilters(region="burgundy"))

        assert result["totalMatches"] == 2
        assert {w["iWine"] for w in result["wines"]} == {"1002", "1003"}
        assert result["hasMore"] is False

    @pytest.mark.asyncio
    async def test_filter_by_type_and_price(self, db_session, owner_id):
        result = await filter_wines(db_session, owner_id, WineFilters(wine_type="Red", price_min=200))

        assert {w["iWine"] for w in result["wines"]} == {"1001", "1003", "1004"}

    @pytest.mark.asyncio
    async def test_filter_by_color(self, db_session, owner_id, other_owner_id):
        result = await filter_wines(db_session, owner_id, WineFilters(color="white"))

        assert {w["iWine"] for w in result["wines"]} == {"1002", "1005"}
        assert {w["color"] for w in result["wines"]} == {"White"}

    @pytest.mark.asyncio
    async def test_filter_by_bin(self, db_session, owner_id, other_owner_id):
        result = await filter_wines(db_session, owner_id, WineFilters(location="cellar", bin="a1"))

        assert result["totalMatches"] == 1
        assert result["wines"][0]["iWine"] == "1001"
        assert result["wines"][0]["bin"] == "A1"

    @pytest.mark.asyncio
    async def test_filter_by_vintage(self, db_session, owner_id):
        result = await filter_wines(db_session, owner_id, WineFilters(vintage_min=2016))

        assert {w["iWine"] for w in result["wines"]} == {"1002", "1004", "1006"}

    @pytest.mark.asyncio
    async def test_count_only(self, db_session, owner_id):
        result = await filter_wines(db_session, owner_id, WineFilters(country="USA"), count_only=True)

        assert result == {"count": 2, "message": "Found 2 wines matching your criteria."}

    @pytest.mark.asyncio
    async def test_limit_samples_matches(self, db_session, ranked_owner_id):
        result = await filter_wines(db_session, ranked_owner_id, WineFilters(producer="P01"), limit=5)

        assert result["count"] == 5
        assert result["totalMatches"] == 40
        assert result["hasMore"] is True


class TestInventorySummary:
    @pytest.mark.asyncio
    async def test_summary(self, db_session, owner_id, other_owner_id):
        summary = await summarize_inventory(db_session, owner_id)

        assert summary["totalBottles"] == 6
        assert summary["uniqueWines"] == 6
        assert summary["byRegion"] == {"Burgundy": 2, "California": 2, "Bordeaux": 1, "Champagne": 1}
        assert summary["byType"] == {"Red": 4, "White": 1, "White - Sparkling": 1}
        assert summary["byVintageDecade"] == {"2010s": 5, "NV": 1}
        assert summary["averagePrice"] == 582.5
        assert summary["totalPurchaseValue"] == 3495.0
        assert summary["totalEstimatedValue"] == 3460.0
        assert summary["topProducers"][0] == {"producer": "Ridge", "bottles": 2}

    @pytest.mark.asyncio
    async def test_empty_cellar(self, db_session, empty_owner_id):
        assert await summarize_inventory(db_session, empty_owner_id) == {
            "totalBottles": 0,
            "message": NO_WINES_MESSAGE,
        }


class TestValueAnalysis:
    @pytest.mark.asyncio
    async def test_gainers_and_losers(self, db_session, owner_id):
        result = await analyze_value(db_session, owner_id, limit=2)

        assert result["analyzedBottles"] == 5
        assert [row["iWine"] for row in result["topGainers"]] == ["1001", "1004"]
        assert result["topGainers"][0]["roiPercent"] == 100.0
        assert [row["iWine"] for row in result["topLosers"]] == ["1003"]
        assert result["topLosers"][0]["gain"] == -400.0
        assert result["totalCost"] == 3315.0
        assert result["totalValue"] == 3460.0
        assert result["overallRoiPercent"] == 4.4

    @pytest.mark.asyncio
    async def test_empty_cellar(self, db_session, empty_owner_id):
        result = await analyze_value(db_session, empty_owner_id)

        assert result["analyzedBottles"] == 0


class TestOptionsAndNotes:
    @pytest.mark.asyncio
    async def test_available_options(self, db_session, owner_id):
        options = await get_available_wine_options(db_session, owner_id)

        assert options == {
            "varietals": [
                "Cabernet Sauvignon",
                "Champagne Blend",
                "Chardonnay",
                "Pinot Noir",
                "Red Bordeaux Blend",
                "Zinfandel",
            ],
            "regions": ["Bordeaux", "Burgundy", "California", "Champagne"],
            "countries": ["France", "USA"],
            "types": ["Red", "White", "White - Sparkling"],
        }

    @pytest.mark.asyncio
    async def test_notes_search_matches_personal_notes(self, db_session, owner_id):
        result = await retrieve_notes_context(db_session, owner_id, "steak")

        assert [n["iWine"] for n in result["notes"]] == ["1004"]

    @pytest.mark.asyncio
    async def test_notes_search_matches_bottle_note(self, db_session, owner_id):
        result = await retrieve_notes_context(db_session, owner_id, "gift from anna")

        assert [n["iWine"] for n in result["notes"]] == ["1002"]
        assert result["notes"][0]["bottleNote"] == "Gift from Anna"

    @pytest.mark.asyncio
    async def test_notes_search_without_matches(self, db_session, owner_id):
        result = await retrieve_notes_context(db_session, owner_id, "pizza")

        assert result["count"] == 0
        assert result["message"] == "No notes mention 'pizza'."


class TestTastingNotes:
    @pytest.mark.asyncio
    async def test_scraped_notes(self, db_session, owner_id, ct_client):
        result = await get_tasting_notes(db_session, owner_id, "1001", ct_client)

        data = result["wineData"]
        assert result["success"] is True
        assert data["bottleImageUrl"] == "https://www.cellartracker.com/wine_images/1001_label.jpg"
        assert len(data["tastingNotes"]) == 3
        assert data["professionalReviews"] == ["Wine Spectator 94", "Robert Parker 96+"]
        assert data["communityScore"] == "92.3"
        assert result["message"] == "Found 3 tasting notes for Château Margaux."

    @pytest.mark.asyncio
    async def test_max_notes(self, db_session, owner_id, ct_client):
        result = await get_tasting_notes(db_session, owner_id, "1001", ct_client, max_notes=1)

        assert len(result["wineData"]["tastingNotes"]) == 1

    @pytest.mark.asyncio
    async def test_network_failure_keeps_stored_details(self, db_session, owner_id, ct_client):
        ct_client.fetch_wine_page.side_effect = CellarTrackerUnavailableError("down")

        result = await get_tasting_notes(db_session, owner_id, "1001", ct_client)

        assert result["success"] is True
        assert result["wineData"]["communityScore"] == "96.1"
        assert result["wineData"]["communityNotes"] == "Cassis, violets and cedar. Needs time."
        assert "network error" in result["message"]

    @pytest.mark.asyncio
    async def test_notes_page_unavailable(self, db_session, owner_id, ct_client):
        ct_client.fetch_notes_page.return_value = None

        result = await get_tasting_notes(db_session, owner_id, "1001", ct_client)

        assert result["wineData"]["tastingNotes"] == []
        assert "not available" in result["message"]

    @pytest.mark.asyncio
    async def test_wine_of_another_owner_is_not_found(self, db_session, owner_id, other_owner_id, ct_client):
        result = await get_tasting_notes(db_session, owner_id, "91001", ct_client)

        assert result == {"iWine": "91001", "error": "Wine not found in your cellar"}
        ct_client.fetch_wine_page.assert_not_called()


class TestFoodPairing:
    @pytest.mark.asyncio
    async def test_pairing_searches_recommended_styles(
        self, db_session, owner_id, other_owner_id, mock_llm_service
    ):
        mock_llm_service.generate_structured.return_value = MockLLMResponses.pairing_for_steak()
        service = FoodPairingService(mock_llm_service)

        result = await service.suggest_food_pairing(db_session, owner_id, FoodPairingInput(food="ribeye steak"))

        assert result["dish"] == "ribeye steak"
        assert {w["iWine"] for w in result["wines"]} == {"1001", "1003", "1004", "1006"}
        assert all(w["producer"] != "Intruder Estate" for w in result["wines"])
        assert result["pairingAnalysis"]["recommendedVarietals"][0] == "Cabernet Sauvignon"
        prompt = mock_llm_service.generate_structured.call_args.args[0]
        assert "Zinfandel" in prompt
        assert "Malbec" not in prompt

    @pytest.mark.asyncio
    async def test_pairing_respects_limit(self, db_session, owner_id, mock_llm_service):
        mock_llm_service.generate_structured.return_value = MockLLMResponses.pairing_for_steak()
        service = FoodPairingService(mock_llm_service)

        result = await service.suggest_food_pairing(
            db_session, owner_id, FoodPairingInput(food="steak", limit=2)
        )

        assert result["count"] == 2

    @pytest.mark.asyncio
    async def test_pairing_falls_back_to_defaults(self, db_session, owner_id, mock_llm_service):
        mock_llm_service.generate_structured.side_effect = TransientLLMError("timeout")
        service = FoodPairingService(mock_llm_service)

        result = await service.suggest_food_pairing(
            db_session, owner_id, FoodPairingInput(food="roast chicken", wine_type="White")
        )

        assert result["pairingAnalysis"]["recommendedTypes"] == ["White"]
        assert {w["iWine"] for w in result["wines"]} == {"1002", "1003", "1005"}

    @pytest.mark.asyncio
    async def test_pairing_with_empty_cellar(self, db_session, empty_owner_id, mock_llm_service):
        service = FoodPairingService(mock_llm_service)

        result = await service.suggest_food_pairing(db_session, empty_owner_id, FoodPairingInput(food="steak"))

        assert result == {"error": "No wines found in your cellar."}
        mock_llm_service.generate_structured.assert_not_called()


class TestCellarToolkit:
    @pytest.fixture
    def analytics(self):
        analytics = Mock()
        analytics.analyze = AsyncMock(return_value={"type": "dynamic-wine-analytics"})
        return analytics

    @pytest.fixture
    def toolkit(self, mock_llm_service, ct_client, analytics, session_factory):
        return CellarToolkit(mock_llm_service, ct_client, analytics, session_factory=session_factory)

    def test_builds_all_tools(self, toolkit):
        assert [tool.name for tool in toolkit.build_cellar_tools("user-1")] == TOOL_NAMES

    @pytest.mark.asyncio
    async def test_tool_is_bound_to_owner(self, toolkit, owner_id, other_owner_id):
        tools = {tool.name: tool for tool in toolkit.build_cellar_tools(owner_id)}

        result = await tools["filterWines"].ainvoke({"producer": "Ridge", "count_only": True})

        assert result["count"] == 2

    @pytest.mark.asyncio
    async def test_no_argument_tool(self, toolkit, owner_id):
        tools = {tool.name: tool for tool in toolkit.build_cellar_tools(owner_id)}

        result = await tools["summarizeInventory"].ainvoke({})

        assert result["totalBottles"] == 6

    @pytest.mark.asyncio
    async def test_analytics_tool_delegates(self, toolkit, analytics):
        tools = {tool.name: tool for tool in toolkit.build_cellar_tools("user-1")}

        await tools["wineDataAnalytics"].ainvoke({"query": "top producers"})

        analytics.analyze.assert_awaited_once_with("top producers", "user-1")

    @pytest.mark.asyncio
    async def test_missing_owner(self, toolkit):
        result = await toolkit.filter_wines(None, FilterWinesInput())

        assert "error" in result

    @pytest.mark.asyncio
    async def test_wine_cards_tool(self, toolkit, owner_id, mock_llm_service):
        mock_llm_service.generate.return_value = "Young and structured."
        tools = {tool.name: tool for tool in toolkit.build_cellar_tools(owner_id)}

        result = await tools["createWineCards"].ainvoke(
            {"wines": [{"i_wine": "1001", "wine": "Château Margaux", "vintage": "2010"}]}
        )

        assert result["totalCards"] == 1
        assert result["wineCards"][0]["tastingNotesSummary"] == "Young and structured."
