"""Short natural-language commentary on an analytics result."""

import json
import logging
from typing import Any, Dict, Optional, Sequence

from cellar_ai.models.analytics_models import QueryPlan
from cellar_ai.services.llm_exceptions import LLMError
from cellar_ai.services.llm_service import LLMService

from .prompts import INSIGHT_PROMPT_TEMPLATE, INSIGHT_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


class InsightSynthesizer:
    """Writes 2-3 sentences about a chart, falling back to the plan's narrative hint."""

    def __init__(self, llm_service: LLMService, sample_size: int = 3):
        self.llm_service = llm_service
        self.sample_size = sample_size

    async def synthesize(
        self,
        original_query: str,
        plan: QueryPlan,
        sample_rows: Sequence[Dict[str, Any]],
        row_count: int,
        sample_size: Optional[int] = None,
    ) -> str:
        """Never raises for LLM failures; returns ``plan.narrative_hint`` instead."""
        sample = list(sample_rows)[: sample_size or self.sample_size]
        prompt = INSIGHT_PROMPT_TEMPLATE.format(
            query=original_query,
            chart_kind=plan.chart_kind.value,
            title=plan.title,
            description=plan.description,
            row_count=row_count,
            sample_rows=json.dumps(sample, indent=2, default=str),
        )

        try:
            insight = (await self.llm_service.generate(prompt, system_prompt=INSIGHT_SYSTEM_PROMPT)).strip()
        except LLMError as e:
            logger.warning(f"Insight generation failed, using narrative hint: {e}")
            return plan.narrative_hint

        return insight or plan.narrative_hint
