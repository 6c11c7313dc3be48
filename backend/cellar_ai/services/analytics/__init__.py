"""Natural-language analytics over a user's cellar."""

from .exceptions import (
    AnalyticsError,
    QueryError,
    ShapingError,
    StoreUnavailableError,
    TerminalError,
)
from .executor import QueryExecutor
from .insights import InsightSynthesizer
from .pipeline import (
    ANALYSIS_FAILED_MESSAGE,
    NOT_AUTHENTICATED_MESSAGE,
    WineAnalyticsPipeline,
    get_analytics_pipeline,
)
from .planner import QueryPlanner
from .shaper import ResultShaper
from .store import CellarStore

__all__ = [
    "AnalyticsError",
    "QueryError",
    "ShapingError",
    "StoreUnavailableError",
    "TerminalError",
    "QueryPlanner",
    "QueryExecutor",
    "ResultShaper",
    "InsightSynthesizer",
    "CellarStore",
    "WineAnalyticsPipeline",
    "get_analytics_pipeline",
    "ANALYSIS_FAILED_MESSAGE",
    "NOT_AUTHENTICATED_MESSAGE",
]
