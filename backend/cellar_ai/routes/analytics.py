"""Natural-language analytics endpoint."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from cellar_ai.models.api_models import AnalyticsQueryRequest
from cellar_ai.routes.deps import get_current_user_id, get_pipeline
from cellar_ai.services.analytics import WineAnalyticsPipeline

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.post("")
async def analyze(
    request: AnalyticsQueryRequest,
    user_id: Optional[str] = Depends(get_current_user_id),
    pipeline: WineAnalyticsPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """Chart payload for the question, or ``{"error": ...}`` exactly as the chat tool sees it."""
    return await pipeline.analyze(request.query, user_id)
