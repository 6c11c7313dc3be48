"""Models for the natural-language analytics pipeline."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChartKind(str, Enum):
    """Supported visualizations for analytics results."""

    BAR = "bar"
    PIE = "pie"
    LINE = "line"
    TABLE = "table"


class AnalyticsRequest(BaseModel):
    """A single natural-language analytics question from an owner."""

    natural_language_query: str = Field(..., min_length=1, description="User's analytics question")
    owner_id: str = Field(..., min_length=1, description="Identifier of the requesting user")

    @field_validator("natural_language_query", "owner_id")
    @classmethod
    def must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class QueryPlan(BaseModel):
    """SQL query plus the chart that should render its rows.

    Plans are immutable; a repaired query produces a new plan via :meth:`with_query`.
    """

    model_config = ConfigDict(frozen=True)

    query_text: str = Field(
        ...,
        description=(
            'A single PostgreSQL SELECT statement over the "Wine" table that filters with '
            '"userId" = :owner_id'
        ),
    )
    chart_kind: ChartKind = Field(..., description="bar, pie, line or table")
    title: str = Field(..., description="Short chart title")
    description: str = Field(..., description="One sentence describing what the chart shows")
    x_field: str = Field(..., description="Result column used for the category / x axis")
    y_field: str = Field(..., description="Result column used for the value / y axis")
    color_field: Optional[str] = Field(
        default=None, description="Optional result column used to colour series"
    )
    narrative_hint: str = Field(
        ..., description="One or two sentences of insight to show if commentary is unavailable"
    )

    def with_query(self, query_text: str) -> "QueryPlan":
        """Return a copy of this plan with a revised query."""
        return self.model_copy(update={"query_text": query_text})


class ExecutionAttempt(BaseModel):
    """One try at running a generated query."""

    attempt_number: int = Field(..., ge=1)
    query_text: str
    rows: Optional[list[dict[str, Any]]] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.rows is not None


class ExecutionOutcome(BaseModel):
    """Rows from the first successful attempt plus the attempt history."""

    rows: list[dict[str, Any]]
    final_query: str
    attempts: list[ExecutionAttempt]
    truncated: bool = False

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


class ShapedDataset(BaseModel):
    """Rows projected to the chart fields, with the unprojected rows kept for detail views."""

    rows: list[dict[str, Any]] = Field(default_factory=list)
    raw_rows: list[dict[str, Any]] = Field(default_factory=list)
    degraded_reason: Optional[str] = None

    @classmethod
    def empty(cls, raw_rows: list[dict[str, Any]], reason: str) -> "ShapedDataset":
        return cls(rows=[], raw_rows=raw_rows, degraded_reason=reason)


class AnalyticsResult(BaseModel):
    """Terminal artifact of a successful analytics run."""

    plan: QueryPlan
    final_query_text: str
    shaped_dataset: ShapedDataset
    insight: str
    attempt_count: int = Field(..., ge=1)
    summary: str = ""
    truncated: bool = False

    def to_tool_payload(self) -> dict[str, Any]:
        """Render the caller-facing tool result."""
        return {
            "type": "dynamic-wine-analytics",
            "data": self.shaped_dataset.raw_rows,
            "chartData": self.shaped_dataset.rows,
            "config": {
                "chartType": self.plan.chart_kind.value,
                "title": self.plan.title,
                "description": self.plan.description,
                "xField": self.plan.x_field,
                "yField": self.plan.y_field,
                "colorField": self.plan.color_field,
            },
            "insights": self.insight,
            "summary": self.summary,
            "query": self.final_query_text,
        }
