"""Owner-scoped cellar queries used as LLM tools and API endpoints."""

import logging
import random
from datetime import date
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import Float, Integer, cast, distinct, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from cellar_ai.db.models import Wine
from cellar_ai.models.cellar_models import WineFilters

logger = logging.getLogger(__name__)

NON_VINTAGE = 1001
NO_WINES_MESSAGE = "No wines found in your cellar. Connect CellarTracker to import your inventory."


def _numeric(column, type_=Float):
    return cast(func.nullif(column, ""), type_)


def _contains(column, value: str):
    return column.ilike(f"%{value.strip()}%")


def ready_to_drink_condition(year: Optional[int] = None):
    """Drinking window includes ``year``; a missing bound counts as open."""
    year_text = str(year or date.today().year)
    return (
        or_(Wine.begin_consume.is_(None), Wine.begin_consume == "", Wine.begin_consume <= year_text)
        & or_(Wine.end_consume.is_(None), Wine.end_consume == "", Wine.end_consume >= year_text)
    )


def build_filter_conditions(owner_id: str, filters: WineFilters) -> list:
    conditions = [Wine.user_id == owner_id]

    if filters.varietal:
        conditions.append(
            or_(_contains(Wine.varietal, filters.varietal), _contains(Wine.master_varietal, filters.varietal))
        )
    if filters.region:
        conditions.append(
            or_(_contains(Wine.region, filters.region), _contains(Wine.sub_region, filters.region))
        )
    if filters.country:
        conditions.append(_contains(Wine.country, filters.country))
    if filters.producer:
        conditions.append(_contains(Wine.producer, filters.producer))
    if filters.wine_type:
        conditions.append(_contains(Wine.type, filters.wine_type))
    if filters.color:
        conditions.append(_contains(Wine.color, filters.color))
    if filters.location:
        conditions.append(_contains(Wine.location, filters.location))
    if filters.bin:
        conditions.append(_contains(Wine.bin, filters.bin))
    if filters.vintage_min is not None:
        conditions.append(_numeric(Wine.vintage, Integer) >= filters.vintage_min)
    if filters.vintage_max is not None:
        conditions.append(_numeric(Wine.vintage, Integer) <= filters.vintage_max)
    if filters.price_min is not None:
        conditions.append(_numeric(Wine.price) >= filters.price_min)
    if filters.price_max is not None:
        conditions.append(_numeric(Wine.price) <= filters.price_max)
    if filters.ready_to_drink:
        conditions.append(ready_to_drink_condition())

    return conditions


def wine_summary(wine: Wine) -> Dict[str, Any]:
    """Compact view of a bottle for tool output."""
    return {
        "iWine": wine.i_wine,
        "wine": wine.wine,
        "vintage": wine.vintage,
        "producer": wine.producer,
        "region": wine.region,
        "country": wine.country,
        "varietal": wine.master_varietal or wine.varietal,
        "type": wine.type,
        "color": wine.color,
        "location": wine.location,
        "bin": wine.bin,
        "price": wine.price,
        "valuation": wine.valuation,
        "beginConsume": wine.begin_consume,
        "endConsume": wine.end_consume,
    }


async def filter_wines(
    session: AsyncSession,
    owner_id: str,
    filters: WineFilters,
    limit: int = 20,
    count_only: bool = False,
) -> Dict[str, Any]:
    """Find bottles matching ``filters``; returns a random sample for variety."""
    conditions = build_filter_conditions(owner_id, filters)

    total = await session.scalar(select(func.count()).select_from(Wine).where(*conditions)) or 0
    noun = "wine" if total == 1 else "wines"

    if count_only:
        return {"count": total, "message": f"Found {total} {noun} matching your criteria."}

    result = await session.execute(select(Wine).where(*conditions).limit(max(limit * 2, 50)))
    candidates = list(result.scalars().all())
    chosen = random.sample(candidates, min(limit, len(candidates)))
    wines = [wine_summary(wine) for wine in chosen]

    return {
        "wines": wines,
        "count": len(wines),
        "totalMatches": total,
        "message": f"Showing {len(wines)} of {total} {noun} matching your criteria.",
        "hasMore": total > len(wines),
    }


async def _load_frame(session: AsyncSession, owner_id: str) -> pd.DataFrame:
    result = await session.execute(select(Wine).where(Wine.user_id == owner_id))
    records = [wine.to_dict() for wine in result.scalars().all()]
    frame = pd.DataFrame.from_records(records)
    if frame.empty:
        return frame

    frame["priceValue"] = pd.to_numeric(frame["price"], errors="coerce")
    frame["valuationValue"] = pd.to_numeric(frame["valuation"], errors="coerce")
    frame["vintageValue"] = pd.to_numeric(frame["vintage"], errors="coerce")
    master = frame["masterVarietal"].fillna("")
    frame["varietalLabel"] = master.where(master != "", frame["varietal"])
    return frame


def _counts(series: pd.Series, top: Optional[int] = None) -> Dict[str, int]:
    series = series[series.fillna("") != ""]
    counts = series.value_counts()
    if top:
        counts = counts.head(top)
    return {str(key): int(value) for key, value in counts.items()}


def _decade(vintage: float) -> str:
    if pd.isna(vintage) or int(vintage) == NON_VINTAGE:
        return "NV"
    return f"{int(vintage) // 10 * 10}s"


def _is_ready(frame: pd.DataFrame, year: int) -> pd.Series:
    begin = pd.to_numeric(frame["beginConsume"], errors="coerce")
    end = pd.to_numeric(frame["endConsume"], errors="coerce")
    return (begin.isna() | (begin <= year)) & (end.isna() | (end >= year))


async def summarize_inventory(session: AsyncSession, owner_id: str) -> Dict[str, Any]:
    """Cellar overview: totals, breakdowns, value and top producers."""
    frame = await _load_frame(session, owner_id)
    if frame.empty:
        return {"totalBottles": 0, "message": NO_WINES_MESSAGE}

    total = len(frame)
    prices = frame["priceValue"][frame["priceValue"] > 0]
    valuations = frame["valuationValue"][frame["valuationValue"] > 0]
    ready = int(_is_ready(frame, date.today().year).sum())
    top_producers = [
        {"producer": producer, "bottles": bottles}
        for producer, bottles in _counts(frame["producer"], top=5).items()
    ]

    average_price = round(float(prices.mean()), 2) if not prices.empty else None
    total_purchase = round(float(prices.sum()), 2)
    unique_wines = int(frame["iWine"].nunique())

    summary = f"Your cellar holds {total} bottles of {unique_wines} different wines"
    if top_producers:
        summary += f", led by {top_producers[0]['producer']} ({top_producers[0]['bottles']} bottles)"
    summary += f". {ready} bottles are in their drinking window now."

    return {
        "totalBottles": total,
        "uniqueWines": unique_wines,
        "byRegion": _counts(frame["region"], top=10),
        "byVarietal": _counts(frame["varietalLabel"], top=10),
        "byType": _counts(frame["type"]),
        "byVintageDecade": _counts(frame["vintageValue"].map(_decade)),
        "averagePrice": average_price,
        "totalPurchaseValue": total_purchase,
        "totalEstimatedValue": round(float(valuations.sum()), 2),
        "readyToDrink": ready,
        "topProducers": top_producers,
        "summary": summary,
    }


async def analyze_value(session: AsyncSession, owner_id: str, limit: int = 5) -> Dict[str, Any]:
    """Gain and ROI per bottle where both purchase price and valuation are known."""
    frame = await _load_frame(session, owner_id)
    if frame.empty:
        return {"message": NO_WINES_MESSAGE, "analyzedBottles": 0}

    valued = frame[(frame["priceValue"] > 0) & (frame["valuationValue"] > 0)].copy()
    if valued.empty:
        return {
            "message": "None of your bottles have both a purchase price and a valuation.",
            "analyzedBottles": 0,
        }

    valued["gain"] = valued["valuationValue"] - valued["priceValue"]
    valued["roi"] = valued["gain"] / valued["priceValue"] * 100

    def _rows(subset: pd.DataFrame) -> List[Dict[str, Any]]:
        return [
            {
                "iWine": row["iWine"],
                "wine": row["wine"],
                "vintage": row["vintage"],
                "producer": row["producer"],
                "price": round(float(row["priceValue"]), 2),
                "valuation": round(float(row["valuationValue"]), 2),
                "gain": round(float(row["gain"]), 2),
                "roiPercent": round(float(row["roi"]), 1),
            }
            for _, row in subset.iterrows()
        ]

    total_cost = float(valued["priceValue"].sum())
    total_value = float(valued["valuationValue"].sum())
    overall_roi = (total_value - total_cost) / total_cost * 100

    return {
        "analyzedBottles": len(valued),
        "topGainers": _rows(valued[valued["gain"] > 0].nlargest(limit, "gain")),
        "topLosers": _rows(valued[valued["gain"] < 0].nsmallest(limit, "gain")),
        "totalCost": round(total_cost, 2),
        "totalValue": round(total_value, 2),
        "overallRoiPercent": round(overall_roi, 1),
        "message": (
            f"Across {len(valued)} valued bottles your cellar has returned "
            f"{overall_roi:.1f}% on purchase price."
        ),
    }


async def get_available_wine_options(session: AsyncSession, owner_id: str) -> Dict[str, List[str]]:
    """Sorted distinct varietals, regions, countries and types in the cellar."""

    async def _distinct(*columns) -> List[str]:
        values = set()
        for column in columns:
            result = await session.execute(
                select(distinct(column)).where(Wine.user_id == owner_id, column.is_not(None), column != "")
            )
            values.update(value.strip() for value in result.scalars().all() if value.strip())
        return sorted(values)

    return {
        "varietals": await _distinct(Wine.master_varietal, Wine.varietal),
        "regions": await _distinct(Wine.region),
        "countries": await _distinct(Wine.country),
        "types": await _distinct(Wine.type),
    }


async def retrieve_notes_context(
    session: AsyncSession, owner_id: str, query: str, limit: int = 10
) -> Dict[str, Any]:
    """Bottles whose personal or bottle notes mention any word of ``query``."""
    terms = [term for term in query.split() if len(term) > 2] or [query.strip()]
    matches = [
        or_(_contains(Wine.c_notes, term), _contains(Wine.bottle_note, term)) for term in terms if term
    ]
    if not matches:
        return {"notes": [], "count": 0, "message": "Please provide something to search for."}

    result = await session.execute(
        select(Wine).where(Wine.user_id == owner_id, or_(*matches)).limit(limit)
    )
    notes = [
        {
            "iWine": wine.i_wine,
            "wine": wine.wine,
            "vintage": wine.vintage,
            "producer": wine.producer,
            "personalNotes": wine.c_notes or None,
            "bottleNote": wine.bottle_note or None,
        }
        for wine in result.scalars().all()
    ]
    return {
        "notes": notes,
        "count": len(notes),
        "message": f"Found {len(notes)} notes mentioning '{query}'." if notes else f"No notes mention '{query}'.",
    }
