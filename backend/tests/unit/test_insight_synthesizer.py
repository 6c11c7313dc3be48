"""Tests for insight synthesis."""

import json

import pytest

from cellar_ai.services.analytics import InsightSynthesizer
from cellar_ai.services.llm_exceptions import PermanentLLMError, TransientLLMError
from tests.fixtures.mock_llm_responses import MockLLMResponses

ROWS = [{"producer": f"P{i:02d}", "bottle_count": 50 - i} for i in range(1, 6)]


class TestInsightSynthesizer:
    """Test suite for InsightSynthesizer."""

    @pytest.fixture
    def plan(self):
        return MockLLMResponses.top_producers_plan()

    @pytest.mark.asyncio
    async def test_returns_llm_commentary(self, mock_llm_service, plan):
        mock_llm_service.generate.return_value = f"  {MockLLMResponses.insight()}  "
        synthesizer = InsightSynthesizer(mock_llm_service)

        insight = await synthesizer.synthesize("top 5 producers", plan, ROWS, len(ROWS))

        assert insight == MockLLMResponses.insight()

    @pytest.mark.asyncio
    async def test_prompt_contains_only_sample_rows(self, mock_llm_service, plan):
        synthesizer = InsightSynthesizer(mock_llm_service, sample_size=3)

        await synthesizer.synthesize("top 5 producers", plan, ROWS, len(ROWS))

        prompt = mock_llm_service.generate.call_args.args[0]
        assert json.dumps(ROWS[:3], indent=2) in prompt
        assert "P04" not in prompt
        assert "top 5 producers" in prompt

    @pytest.mark.asyncio
    async def test_sample_size_override(self, mock_llm_service, plan):
        synthesizer = InsightSynthesizer(mock_llm_service, sample_size=3)

        await synthesizer.synthesize("top 5 producers", plan, ROWS, len(ROWS), sample_size=1)

        prompt = mock_llm_service.generate.call_args.args[0]
        assert "P01" in prompt
        assert "P02" not in prompt

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [TransientLLMError("timeout"), PermanentLLMError("bad key")])
    async def test_falls_back_to_narrative_hint(self, mock_llm_service, plan, error):
        mock_llm_service.generate.side_effect = error
        synthesizer = InsightSynthesizer(mock_llm_service)

        insight = await synthesizer.synthesize("top 5 producers", plan, ROWS, len(ROWS))

        assert insight == plan.narrative_hint

    @pytest.mark.asyncio
    async def test_blank_response_uses_narrative_hint(self, mock_llm_service, plan):
        mock_llm_service.generate.return_value = "   "
        synthesizer = InsightSynthesizer(mock_llm_service)

        insight = await synthesizer.synthesize("top 5 producers", plan, [], 0)

        assert insight == plan.narrative_hint
