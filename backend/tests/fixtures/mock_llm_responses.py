"""
Canned LLM outputs for analytics and chat tests.

Provides realistic responses without actual API calls.
"""

from cellar_ai.models.analytics_models import ChartKind, QueryPlan
from cellar_ai.models.cellar_models import PairingRecommendation

TOP_PRODUCERS_QUERY = (
    'SELECT "producer" AS producer, COUNT(*) AS bottle_count FROM "Wine" '
    'WHERE "userId" = :owner_id GROUP BY "producer" ORDER BY bottle_count DESC LIMIT 5'
)

# References a column that does not exist
BROKEN_PRODUCERS_QUERY = (
    'SELECT "winery" AS producer, COUNT(*) AS bottle_count FROM "Wine" '
    'WHERE "userId" = :owner_id GROUP BY "winery" ORDER BY bottle_count DESC LIMIT 5'
)


class MockLLMResponses:
    """Mock LLM responses for the analytics pipeline and cellar tools."""

    @staticmethod
    def top_producers_plan(query_text: str = TOP_PRODUCERS_QUERY) -> QueryPlan:
        return QueryPlan(
            query_text=query_text,
            chart_kind=ChartKind.BAR,
            title="Top 5 Producers",
            description="Producers ranked by number of bottles in the cellar",
            x_field="producer",
            y_field="bottle_count",
            narrative_hint="A handful of producers dominate the cellar.",
        )

    @staticmethod
    def varietal_share_plan() -> QueryPlan:
        return QueryPlan(
            query_text=(
                'SELECT "masterVarietal" AS varietal, COUNT(*) AS bottles FROM "Wine" '
                'WHERE "userId" = :owner_id GROUP BY "masterVarietal"'
            ),
            chart_kind=ChartKind.PIE,
            title="Bottles by Varietal",
            description="Share of bottles per master varietal",
            x_field="varietal",
            y_field="bottles",
            narrative_hint="Your cellar spans several varietals.",
        )

    @staticmethod
    def insight() -> str:
        return (
            "P01 leads the cellar with 40 bottles, closely followed by P02 and P03. "
            "The top three producers account for most of the collection."
        )

    @staticmethod
    def pairing_for_steak() -> PairingRecommendation:
        return PairingRecommendation(
            recommended_varietals=["Cabernet Sauvignon", "Red Bordeaux Blend", "Malbec"],
            recommended_regions=["California"],
            recommended_types=["Red"],
            reasoning="Structured reds with firm tannins cut through the richness of grilled beef.",
        )
