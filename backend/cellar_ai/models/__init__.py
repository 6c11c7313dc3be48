"""Pydantic models for the application.

- api_models: External API request/response models
- analytics_models: Natural-language analytics pipeline models
- cellar_models: Cellar tool inputs and LLM structured outputs
"""

# API models (external contracts)
from .api_models import (
    AnalyticsQueryRequest,
    CellarTrackerConnectRequest,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    GuestUserResponse,
    SummarizeRequest,
    SummarizeResponse,
)

# Analytics pipeline models
from .analytics_models import (
    AnalyticsRequest,
    AnalyticsResult,
    ChartKind,
    ExecutionAttempt,
    ExecutionOutcome,
    QueryPlan,
    ShapedDataset,
)

# Cellar tool models
from .cellar_models import (
    AnalyticsInput,
    FilterWinesInput,
    FoodPairingInput,
    NotesContextInput,
    PairingRecommendation,
    TastingNotesInput,
    ValueAnalysisInput,
    WineCardsInput,
    WineFilters,
    WineReference,
)

__all__ = [
    # API models
    "AnalyticsQueryRequest",
    "CellarTrackerConnectRequest",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "GuestUserResponse",
    "SummarizeRequest",
    "SummarizeResponse",
    # Analytics models
    "AnalyticsRequest",
    "AnalyticsResult",
    "ChartKind",
    "ExecutionAttempt",
    "ExecutionOutcome",
    "QueryPlan",
    "ShapedDataset",
    # Cellar tool models
    "AnalyticsInput",
    "FilterWinesInput",
    "FoodPairingInput",
    "NotesContextInput",
    "PairingRecommendation",
    "TastingNotesInput",
    "ValueAnalysisInput",
    "WineCardsInput",
    "WineFilters",
    "WineReference",
]
