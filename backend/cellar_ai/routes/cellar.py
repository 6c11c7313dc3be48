"""Direct access to the cellar tools."""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from cellar_ai.models.cellar_models import (
    FilterWinesInput,
    FoodPairingInput,
    NotesContextInput,
    TastingNotesInput,
    ValueAnalysisInput,
    WineCardsInput,
)
from cellar_ai.routes.deps import get_toolkit, require_user_id
from cellar_ai.services.tools import CellarToolkit

router = APIRouter(prefix="/cellar", tags=["cellar"])


@router.get("/summary")
async def summary(
    user_id: str = Depends(require_user_id),
    toolkit: CellarToolkit = Depends(get_toolkit),
) -> Dict[str, Any]:
    return await toolkit.summarize_inventory(user_id)


@router.post("/wines")
async def wines(
    request: FilterWinesInput,
    user_id: str = Depends(require_user_id),
    toolkit: CellarToolkit = Depends(get_toolkit),
) -> Dict[str, Any]:
    return await toolkit.filter_wines(user_id, request)


@router.get("/value")
async def value(
    limit: int = Query(default=5, ge=1, le=50),
    user_id: str = Depends(require_user_id),
    toolkit: CellarToolkit = Depends(get_toolkit),
) -> Dict[str, Any]:
    return await toolkit.analyze_value(user_id, ValueAnalysisInput(limit=limit))


@router.get("/options")
async def options(
    user_id: str = Depends(require_user_id),
    toolkit: CellarToolkit = Depends(get_toolkit),
) -> Dict[str, Any]:
    return await toolkit.get_available_wine_options(user_id)


@router.get("/notes")
async def search_notes(
    query: str = Query(..., min_length=1),
    limit: int = Query(default=10, ge=1, le=50),
    user_id: str = Depends(require_user_id),
    toolkit: CellarToolkit = Depends(get_toolkit),
) -> Dict[str, Any]:
    return await toolkit.retrieve_notes_context(user_id, NotesContextInput(query=query, limit=limit))


@router.get("/wines/{iwine}/notes")
async def tasting_notes(
    iwine: str,
    user_id: str = Depends(require_user_id),
    toolkit: CellarToolkit = Depends(get_toolkit),
) -> Dict[str, Any]:
    return await toolkit.get_tasting_notes(user_id, TastingNotesInput(i_wine=iwine))


@router.post("/pairing")
async def pairing(
    request: FoodPairingInput,
    user_id: str = Depends(require_user_id),
    toolkit: CellarToolkit = Depends(get_toolkit),
) -> Dict[str, Any]:
    return await toolkit.suggest_food_pairing(user_id, request)


@router.post("/cards")
async def cards(
    request: WineCardsInput,
    user_id: str = Depends(require_user_id),
    toolkit: CellarToolkit = Depends(get_toolkit),
) -> Dict[str, Any]:
    return await toolkit.create_wine_cards(user_id, request)
