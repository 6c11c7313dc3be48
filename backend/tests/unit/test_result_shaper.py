"""Tests for result shaping."""

import pytest

from cellar_ai.models.analytics_models import ChartKind, QueryPlan
from cellar_ai.services.analytics import ResultShaper, ShapingError


def _plan(**overrides) -> QueryPlan:
    values = {
        "query_text": 'SELECT 1 FROM "Wine" WHERE "userId" = :owner_id',
        "chart_kind": ChartKind.BAR,
        "title": "Bottles by Region",
        "description": "Bottle count per region",
        "x_field": "region",
        "y_field": "bottles",
        "narrative_hint": "Bordeaux leads.",
    }
    values.update(overrides)
    return QueryPlan(**values)


class TestResultShaper:
    """Test suite for ResultShaper."""

    @pytest.fixture
    def shaper(self):
        return ResultShaper()

    def test_projects_to_chart_fields_in_order(self, shaper):
        rows = [
            {"region": "Bordeaux", "bottles": 12, "avg_price": 80.5},
            {"region": "Burgundy", "bottles": 7, "avg_price": 140.0},
        ]

        dataset = shaper.shape(rows, _plan())

        assert dataset.rows == [
            {"region": "Bordeaux", "bottles": 12},
            {"region": "Burgundy", "bottles": 7},
        ]
        assert dataset.raw_rows == rows

    def test_includes_color_field(self, shaper):
        rows = [{"region": "Bordeaux", "bottles": 12, "type": "Red"}]

        dataset = shaper.shape(rows, _plan(color_field="type"))

        assert dataset.rows == [{"region": "Bordeaux", "bottles": 12, "type": "Red"}]

    def test_omits_field_missing_from_single_row(self, shaper):
        rows = [{"region": "Bordeaux", "bottles": 12}, {"region": "Unknown"}]

        dataset = shaper.shape(rows, _plan())

        assert dataset.rows[1] == {"region": "Unknown"}

    def test_does_not_coerce_values(self, shaper):
        rows = [{"region": "Bordeaux", "bottles": "12"}]

        dataset = shaper.shape(rows, _plan())

        assert dataset.rows[0]["bottles"] == "12"

    def test_empty_rows_shape_to_empty_dataset(self, shaper):
        dataset = shaper.shape([], _plan())

        assert dataset.rows == []
        assert dataset.raw_rows == []

    @pytest.mark.parametrize("missing", ["region", "bottles"])
    def test_field_absent_from_every_row_raises(self, shaper, missing):
        rows = [{"region": "Bordeaux", "bottles": 12}]
        plan = _plan(**({"x_field": "country"} if missing == "region" else {"y_field": "count"}))

        with pytest.raises(ShapingError) as exc_info:
            shaper.shape(rows, plan)

        assert exc_info.value.field_name in {"country", "count"}

    def test_shaping_is_idempotent(self, shaper):
        rows = [{"region": "Bordeaux", "bottles": 12, "extra": 1}]
        plan = _plan()

        once = shaper.shape(rows, plan)
        twice = shaper.shape(once.rows, plan)

        assert twice.rows == once.rows
