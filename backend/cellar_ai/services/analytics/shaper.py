"""Projection of query rows onto the chart fields of a plan."""

from typing import Any, Dict, List, Sequence

from cellar_ai.models.analytics_models import QueryPlan, ShapedDataset

from .exceptions import ShapingError


class ResultShaper:
    """Pure projection: no sorting, aggregation or type coercion."""

    def shape(self, rows: Sequence[Dict[str, Any]], plan: QueryPlan) -> ShapedDataset:
        """Keep only the x, y and (optional) color fields of each row, in store order.

        A field missing from an individual row is omitted from that record.

        Raises:
            ShapingError: The x or y field is absent from every row
        """
        rows = list(rows)
        fields = [plan.x_field, plan.y_field]
        if plan.color_field:
            fields.append(plan.color_field)

        if rows:
            for required in (plan.x_field, plan.y_field):
                if not any(required in row for row in rows):
                    raise ShapingError(required)

        shaped: List[Dict[str, Any]] = [
            {name: row[name] for name in fields if name in row} for row in rows
        ]
        return ShapedDataset(rows=shaped, raw_rows=rows)
