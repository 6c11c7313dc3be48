"""Query execution with a bounded LLM repair loop.

The loop is a small LangGraph state machine:

    execute --succeeded--> END
       |---exhausted---> END
       +---repair--> repair --> execute

Only query-level errors (including read-only validation rejections) route to
``repair``. Store and LLM availability errors propagate out of the graph
immediately.
"""

import logging
import operator
from typing import Annotated, Any, Dict, List, Optional, TypedDict

from langgraph.graph import END, StateGraph

from cellar_ai.config import config
from cellar_ai.models.analytics_models import ExecutionAttempt, ExecutionOutcome
from cellar_ai.services.security import (
    QueryAuditLogger,
    QueryValidationError,
    ReadOnlyQueryValidator,
)

from .exceptions import QueryError, TerminalError
from .planner import QueryPlanner
from .store import CellarStore

logger = logging.getLogger(__name__)


class RepairLoopState(TypedDict):
    """State carried between execute and repair nodes."""
    owner_id: str
    current_query: str
    attempt_number: int
    max_attempts: int
    attempts: Annotated[List[ExecutionAttempt], operator.add]
    rows: Optional[List[Dict[str, Any]]]
    last_error: Optional[str]
    truncated: bool


class QueryExecutor:
    """Runs a generated query, asking the planner for fixes until it succeeds or attempts run out."""

    def __init__(
        self,
        planner: QueryPlanner,
        store: CellarStore,
        validator: Optional[ReadOnlyQueryValidator] = None,
        audit_logger: Optional[QueryAuditLogger] = None,
        max_attempts: Optional[int] = None,
    ):
        analytics_config = config.get_analytics_config()
        self.planner = planner
        self.store = store
        self.validator = validator or ReadOnlyQueryValidator(row_limit=analytics_config["row_limit"])
        self.audit_logger = audit_logger or QueryAuditLogger({"enabled": False})
        self.max_attempts_ceiling = analytics_config["max_attempts_ceiling"]
        self.max_attempts = self._check_max_attempts(
            max_attempts if max_attempts is not None else analytics_config["max_attempts"]
        )
        self.graph = self._build_graph()

    def _check_max_attempts(self, max_attempts: int) -> int:
        if not isinstance(max_attempts, int) or isinstance(max_attempts, bool):
            raise ValueError(f"max_attempts must be an integer, got {max_attempts!r}")
        if max_attempts < 1 or max_attempts > self.max_attempts_ceiling:
            raise ValueError(
                f"max_attempts must be between 1 and {self.max_attempts_ceiling}, got {max_attempts}"
            )
        return max_attempts

    def _build_graph(self):
        workflow = StateGraph(RepairLoopState)

        workflow.add_node("execute", self._execute_node)
        workflow.add_node("repair", self._repair_node)

        workflow.set_entry_point("execute")

        workflow.add_conditional_edges(
            "execute",
            self._route_after_execute,
            {
                "succeeded": END,
                "repair": "repair",
                "exhausted": END,
            },
        )
        workflow.add_edge("repair", "execute")

        return workflow.compile()

    async def execute(
        self,
        initial_query: str,
        owner_id: str,
        max_attempts: Optional[int] = None,
    ) -> ExecutionOutcome:
        """Run ``initial_query`` for ``owner_id`` with up to ``max_attempts`` tries.

        Raises:
            TerminalError: Every attempt failed with a query-level error
            StoreUnavailableError: The database is unreachable
            LLMUnavailableError: The planner could not produce a repair
        """
        max_attempts = self._check_max_attempts(
            max_attempts if max_attempts is not None else self.max_attempts
        )

        initial_state: RepairLoopState = {
            "owner_id": owner_id,
            "current_query": initial_query,
            "attempt_number": 1,
            "max_attempts": max_attempts,
            "attempts": [],
            "rows": None,
            "last_error": None,
            "truncated": False,
        }

        # execute + repair per attempt, with headroom for the final routing step
        result = await self.graph.ainvoke(
            initial_state, config={"recursion_limit": 2 * max_attempts + 2}
        )

        attempts: List[ExecutionAttempt] = result["attempts"]
        if result.get("rows") is None:
            logger.warning(f"Repair loop exhausted after {len(attempts)} attempts")
            raise TerminalError(result.get("last_error") or "unknown error", len(attempts))

        final_attempt = attempts[-1]
        logger.info(
            f"Query succeeded on attempt {final_attempt.attempt_number}/{max_attempts} "
            f"with {len(result['rows'])} rows"
        )
        return ExecutionOutcome(
            rows=result["rows"],
            final_query=final_attempt.query_text,
            attempts=attempts,
            truncated=result.get("truncated", False),
        )

    async def _execute_node(self, state: RepairLoopState) -> Dict[str, Any]:
        """Node: validate and run the current query."""
        attempt_number = state["attempt_number"]
        query_text = state["current_query"]
        owner_id = state["owner_id"]

        logger.info(f"Attempt {attempt_number}/{state['max_attempts']}: {query_text}")

        try:
            query = self.validator.build(query_text)
            rows = await self.store.execute_read(query, owner_id)
        except QueryValidationError as e:
            self.audit_logger.log_security_violation(
                query_text, owner_id, e.violation_type or "unknown", e.details
            )
            return self._failed_attempt(attempt_number, query_text, str(e))
        except QueryError as e:
            self.audit_logger.log_query(query_text, owner_id, attempt_number, error=str(e))
            return self._failed_attempt(attempt_number, query_text, str(e))

        self.audit_logger.log_query(query.text, owner_id, attempt_number, rows_returned=len(rows))
        truncated = query.row_limit is not None and len(rows) >= query.row_limit
        if truncated:
            logger.warning(f"Result capped at the {query.row_limit}-row limit")
        return {
            "attempts": [
                ExecutionAttempt(attempt_number=attempt_number, query_text=query_text, rows=rows)
            ],
            "rows": rows,
            "last_error": None,
            "truncated": truncated,
        }

    @staticmethod
    def _failed_attempt(attempt_number: int, query_text: str, error: str) -> Dict[str, Any]:
        logger.warning(f"Attempt {attempt_number} failed: {error}")
        return {
            "attempts": [
                ExecutionAttempt(attempt_number=attempt_number, query_text=query_text, error=error)
            ],
            "rows": None,
            "last_error": error,
        }

    def _route_after_execute(self, state: RepairLoopState) -> str:
        if state.get("rows") is not None:
            return "succeeded"
        if state["attempt_number"] >= state["max_attempts"]:
            return "exhausted"
        return "repair"

    async def _repair_node(self, state: RepairLoopState) -> Dict[str, Any]:
        """Node: ask the planner for a corrected query."""
        repaired = await self.planner.repair(state["current_query"], state["last_error"] or "")
        return {
            "current_query": repaired,
            "attempt_number": state["attempt_number"] + 1,
        }
