"""End-to-end analytics: plan, execute with repair, shape and insight on a real database."""

import pytest

from cellar_ai.models.analytics_models import AnalyticsRequest
from cellar_ai.services.analytics import ANALYSIS_FAILED_MESSAGE, get_analytics_pipeline
from tests.fixtures.mock_llm_responses import (
    BROKEN_PRODUCERS_QUERY,
    TOP_PRODUCERS_QUERY,
    MockLLMResponses,
)

TOP_FIVE = [
    {"producer": "P01", "bottle_count": 40},
    {"producer": "P02", "bottle_count": 35},
    {"producer": "P03", "bottle_count": 30},
    {"producer": "P04", "bottle_count": 12},
    {"producer": "P05", "bottle_count": 8},
]


@pytest.fixture
def pipeline(session_factory, mock_llm_service):
    return get_analytics_pipeline(session_factory=session_factory, llm_service=mock_llm_service)


class TestAnalyticsEndToEnd:
    """Full pipeline runs with a scripted LLM."""

    @pytest.mark.asyncio
    async def test_top_producers_first_try(self, pipeline, mock_llm_service, ranked_owner_id):
        mock_llm_service.generate_structured.return_value = MockLLMResponses.top_producers_plan()
        mock_llm_service.generate.return_value = MockLLMResponses.insight()

        payload = await pipeline.analyze("Who are my top 5 producers?", ranked_owner_id)

        assert payload["data"] == TOP_FIVE
        assert payload["chartData"] == TOP_FIVE
        assert payload["config"]["chartType"] == "bar"
        assert payload["insights"] == MockLLMResponses.insight()
        assert payload["query"] == TOP_PRODUCERS_QUERY

    @pytest.mark.asyncio
    async def test_broken_query_is_repaired(self, pipeline, mock_llm_service, ranked_owner_id):
        mock_llm_service.generate_structured.return_value = MockLLMResponses.top_producers_plan(
            BROKEN_PRODUCERS_QUERY
        )
        # First call repairs the query, second writes the insight
        mock_llm_service.generate.side_effect = [
            f"```sql\n{TOP_PRODUCERS_QUERY}\n```",
            MockLLMResponses.insight(),
        ]

        payload = await pipeline.analyze("Who are my top 5 producers?", ranked_owner_id)

        assert payload["data"] == TOP_FIVE
        assert payload["query"] == TOP_PRODUCERS_QUERY
        repair_prompt = mock_llm_service.generate.call_args_list[0].args[0]
        assert "winery" in repair_prompt

    @pytest.mark.asyncio
    async def test_attempt_count_reported_by_run(self, pipeline, mock_llm_service, ranked_owner_id):
        mock_llm_service.generate_structured.return_value = MockLLMResponses.top_producers_plan(
            BROKEN_PRODUCERS_QUERY
        )
        mock_llm_service.generate.side_effect = [TOP_PRODUCERS_QUERY, MockLLMResponses.insight()]

        result = await pipeline.run(
            AnalyticsRequest(natural_language_query="top producers", owner_id=ranked_owner_id)
        )

        assert result.attempt_count == 2

    @pytest.mark.asyncio
    async def test_unrepairable_query_fails_cleanly(self, pipeline, mock_llm_service, ranked_owner_id):
        mock_llm_service.generate_structured.return_value = MockLLMResponses.top_producers_plan(
            BROKEN_PRODUCERS_QUERY
        )
        mock_llm_service.generate.return_value = BROKEN_PRODUCERS_QUERY

        payload = await pipeline.analyze("Who are my top 5 producers?", ranked_owner_id)

        assert payload == {"error": ANALYSIS_FAILED_MESSAGE}
        # Default budget of 10 attempts means 9 repairs
        assert mock_llm_service.generate.await_count == 9

    @pytest.mark.asyncio
    async def test_other_owners_rows_are_invisible(
        self, pipeline, mock_llm_service, owner_id, other_owner_id
    ):
        mock_llm_service.generate_structured.return_value = MockLLMResponses.top_producers_plan()

        payload = await pipeline.analyze("Who are my top 5 producers?", owner_id)

        producers = {row["producer"] for row in payload["data"]}
        assert "Intruder Estate" not in producers
        assert "Ridge" in producers

    @pytest.mark.asyncio
    async def test_repeated_runs_give_identical_results(
        self, pipeline, mock_llm_service, ranked_owner_id
    ):
        mock_llm_service.generate_structured.return_value = MockLLMResponses.top_producers_plan()
        mock_llm_service.generate.return_value = MockLLMResponses.insight()
        request = AnalyticsRequest(
            natural_language_query="top 5 producers by bottle count", owner_id=ranked_owner_id
        )

        first = await pipeline.run(request)
        second = await pipeline.run(request)

        assert first.final_query_text == second.final_query_text == TOP_PRODUCERS_QUERY
        assert first.shaped_dataset == second.shaped_dataset
        assert first.shaped_dataset.rows == TOP_FIVE
        assert first.plan.chart_kind.value == "bar"
