"""Natural-language cellar analytics: plan -> execute/repair -> shape -> insight."""

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import async_sessionmaker

from cellar_ai.config import config
from cellar_ai.models.analytics_models import (
    AnalyticsRequest,
    AnalyticsResult,
    QueryPlan,
    ShapedDataset,
)
from cellar_ai.services.llm_exceptions import LLMError
from cellar_ai.services.llm_service import LLMService, get_llm_service
from cellar_ai.services.security import QueryAuditLogger

from .exceptions import AnalyticsError, ShapingError
from .executor import QueryExecutor
from .insights import InsightSynthesizer
from .planner import QueryPlanner
from .shaper import ResultShaper
from .store import CellarStore

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED_MESSAGE = "User not authenticated. Please connect to CellarTracker first."
ANALYSIS_FAILED_MESSAGE = "Failed to analyze wine data. Please try rephrasing your query."


class WineAnalyticsPipeline:
    """Answers analytics questions about one owner's cellar with a chart and commentary."""

    def __init__(
        self,
        planner: QueryPlanner,
        executor: QueryExecutor,
        shaper: Optional[ResultShaper] = None,
        synthesizer: Optional[InsightSynthesizer] = None,
    ):
        self.planner = planner
        self.executor = executor
        self.shaper = shaper or ResultShaper()
        self.synthesizer = synthesizer or InsightSynthesizer(planner.llm_service)

    async def run(self, request: AnalyticsRequest) -> AnalyticsResult:
        """Run the full pipeline.

        Raises:
            LLMUnavailableError: Planning failed
            TerminalError: No generated query succeeded within the attempt budget
            StoreUnavailableError: The database is unreachable
        """
        plan = await self.planner.plan(request)
        outcome = await self.executor.execute(plan.query_text, request.owner_id)

        final_plan = plan.with_query(outcome.final_query)

        try:
            dataset = self.shaper.shape(outcome.rows, final_plan)
        except ShapingError as e:
            logger.warning(f"Returning empty chart data: {e}")
            dataset = ShapedDataset.empty(outcome.rows, str(e))

        row_count = len(dataset.raw_rows)
        insight = await self.synthesizer.synthesize(
            request.natural_language_query,
            final_plan,
            dataset.rows or dataset.raw_rows,
            row_count,
        )

        return AnalyticsResult(
            plan=final_plan,
            final_query_text=outcome.final_query,
            shaped_dataset=dataset,
            insight=insight,
            attempt_count=outcome.attempt_count,
            summary=self._summary(final_plan, row_count, outcome.truncated),
            truncated=outcome.truncated,
        )

    async def analyze(self, query: str, owner_id: Optional[str]) -> Dict[str, Any]:
        """Tool entry point: returns the chart payload or ``{"error": ...}``, never raises."""
        if not owner_id:
            return {"error": NOT_AUTHENTICATED_MESSAGE}

        try:
            request = AnalyticsRequest(natural_language_query=query, owner_id=owner_id)
        except ValidationError as e:
            logger.info(f"Rejected analytics request: {e}")
            return {"error": ANALYSIS_FAILED_MESSAGE}

        try:
            result = await self.run(request)
        except (LLMError, AnalyticsError) as e:
            logger.error(f"Wine analytics failed for '{query}': {e}")
            return {"error": ANALYSIS_FAILED_MESSAGE}

        logger.info(
            f"Wine analytics answered '{query}' in {result.attempt_count} attempt(s), "
            f"{len(result.shaped_dataset.raw_rows)} rows"
        )
        return result.to_tool_payload()

    @staticmethod
    def _summary(plan: QueryPlan, row_count: int, truncated: bool = False) -> str:
        noun = "result" if row_count == 1 else "results"
        if truncated:
            return f"{plan.title}: first {row_count} {noun} (row limit reached). {plan.description}"
        return f"{plan.title}: {row_count} {noun}. {plan.description}"


def get_analytics_pipeline(
    session_factory: Optional[async_sessionmaker] = None,
    llm_service: Optional[LLMService] = None,
) -> WineAnalyticsPipeline:
    """Factory function wiring the pipeline from configuration."""
    analytics_config = config.get_analytics_config()
    llm_service = llm_service or get_llm_service(
        timeout_seconds=analytics_config["llm_timeout_seconds"]
    )
    planner = QueryPlanner(llm_service)
    executor = QueryExecutor(
        planner,
        CellarStore(
            session_factory=session_factory,
            timeout_seconds=analytics_config["query_timeout_seconds"],
        ),
        audit_logger=QueryAuditLogger(config.get_audit_config()),
    )
    return WineAnalyticsPipeline(
        planner,
        executor,
        synthesizer=InsightSynthesizer(
            llm_service, sample_size=analytics_config["insight_sample_rows"]
        ),
    )
