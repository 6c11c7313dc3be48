"""FastAPI dependencies shared by the routers."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from cellar_ai.db import session as db_session
from cellar_ai.services.analytics import WineAnalyticsPipeline, get_analytics_pipeline
from cellar_ai.services.cellartracker import CellarTrackerClient, get_cellartracker_client
from cellar_ai.services.chat_service import ChatService
from cellar_ai.services.llm_service import LLMService, get_llm_service
from cellar_ai.services.summarizer import ToolResultSummarizer
from cellar_ai.services.summary_cache import SummaryCache
from cellar_ai.services.tools import CellarToolkit


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Caller identity as asserted by the session provider in front of the API."""
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return None


async def require_user_id(user_id: Optional[str] = Depends(get_current_user_id)) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


def get_session_factory() -> async_sessionmaker:
    try:
        return db_session.get_session_factory()
    except RuntimeError:
        raise HTTPException(status_code=503, detail="Database not available")


def get_llm() -> LLMService:
    return get_llm_service()


def get_client() -> CellarTrackerClient:
    return get_cellartracker_client()


def get_pipeline(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> WineAnalyticsPipeline:
    return get_analytics_pipeline(session_factory=session_factory)


def get_toolkit(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    llm_service: LLMService = Depends(get_llm),
    client: CellarTrackerClient = Depends(get_client),
    pipeline: WineAnalyticsPipeline = Depends(get_pipeline),
) -> CellarToolkit:
    return CellarToolkit(llm_service, client, pipeline, session_factory=session_factory)


def get_summary_cache(request: Request) -> SummaryCache:
    return request.app.state.summary_cache


def get_summarizer(
    cache: SummaryCache = Depends(get_summary_cache),
    llm_service: LLMService = Depends(get_llm),
) -> ToolResultSummarizer:
    return ToolResultSummarizer(llm_service, cache)


def get_chat_service(
    llm_service: LLMService = Depends(get_llm),
    toolkit: CellarToolkit = Depends(get_toolkit),
) -> ChatService:
    return ChatService(llm_service, toolkit)
