"""Query planning: natural-language question -> typed query plan."""

import logging
import re

from cellar_ai.db.models import WINE_SCHEMA_PROMPT
from cellar_ai.models.analytics_models import AnalyticsRequest, QueryPlan
from cellar_ai.services.llm_service import LLMService
from cellar_ai.services.security import OWNER_PARAM, strip_code_fences

from .prompts import PLANNER_PROMPT_TEMPLATE, PLANNER_SYSTEM_PROMPT, REPAIR_PROMPT_TEMPLATE

logger = logging.getLogger(__name__)


class QueryPlanner:
    """Asks the LLM for a query plan and for corrected queries when one fails."""

    def __init__(self, llm_service: LLMService):
        self.llm_service = llm_service

    async def plan(self, request: AnalyticsRequest) -> QueryPlan:
        """Produce a query plan for ``request``.

        Raises:
            LLMUnavailableError: The model could not be reached or returned an unusable plan
        """
        prompt = PLANNER_PROMPT_TEMPLATE.format(
            schema=WINE_SCHEMA_PROMPT,
            query=request.natural_language_query,
        )

        plan = await self.llm_service.generate_structured(
            prompt, QueryPlan, system_prompt=PLANNER_SYSTEM_PROMPT
        )

        query_text = self.normalize_query(plan.query_text, request.owner_id)
        logger.info(f"Planned {plan.chart_kind.value} chart '{plan.title}': {query_text}")
        return plan.with_query(query_text)

    async def repair(self, previous_query: str, error_message: str) -> str:
        """Ask for a corrected version of ``previous_query`` given the database error."""
        prompt = REPAIR_PROMPT_TEMPLATE.format(
            schema=WINE_SCHEMA_PROMPT,
            query=previous_query,
            error=error_message,
        )

        response = await self.llm_service.generate(prompt, system_prompt=PLANNER_SYSTEM_PROMPT)
        repaired = self.normalize_query(response)
        logger.info(f"Repaired query: {repaired}")
        return repaired

    @staticmethod
    def normalize_query(query_text: str, owner_id: str | None = None) -> str:
        """Strip fences and trailing semicolons; turn an inlined owner id back into the bind parameter."""
        query_text = strip_code_fences(query_text).strip().rstrip(";").strip()
        if owner_id:
            query_text = re.sub(
                r"'" + re.escape(owner_id) + r"'", f":{OWNER_PARAM}", query_text
            )
        return query_text
