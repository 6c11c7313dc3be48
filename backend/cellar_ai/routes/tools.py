"""Tool-result summaries for the chat UI."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from cellar_ai.models.api_models import SummarizeRequest, SummarizeResponse
from cellar_ai.routes.deps import get_summarizer, get_summary_cache
from cellar_ai.services.summarizer import ToolResultSummarizer
from cellar_ai.services.summary_cache import SummaryCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tools", tags=["tools"])


@router.post("/summarize", response_model=SummarizeResponse)
async def summarize(
    request: SummarizeRequest,
    summarizer: ToolResultSummarizer = Depends(get_summarizer),
) -> SummarizeResponse:
    if not request.tool_name or request.result is None:
        raise HTTPException(status_code=400, detail="Missing toolName or result")

    summary, cached = await summarizer.summarize(request.tool_name, request.result)
    return SummarizeResponse(summary=summary, cached=cached)


@router.delete("/summaries")
async def invalidate_summaries(
    tool_name: Optional[str] = Query(default=None, alias="toolName"),
    key: Optional[str] = Query(default=None),
    cache: SummaryCache = Depends(get_summary_cache),
) -> Dict[str, Any]:
    """Drop one cached summary, every summary for a tool, or everything."""
    if key:
        removed = 1 if cache.invalidate(key) else 0
    elif tool_name:
        removed = cache.invalidate_tool(tool_name)
    else:
        removed = cache.clear()
    return {"removed": removed, "stats": cache.stats()}
