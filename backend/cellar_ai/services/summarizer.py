"""Plain-language summaries of tool results for display."""

import hashlib
import json
import logging
from typing import Any

from cellar_ai.services.llm_exceptions import LLMError
from cellar_ai.services.llm_service import LLMService
from cellar_ai.services.summary_cache import SummaryCache

logger = logging.getLogger(__name__)

# These render their own output client-side
SKIP_SUMMARIZATION = {"createWineCards"}

SUMMARY_PROMPT_TEMPLATE = """You are helping to display the result of a wine-related tool call to a user.

Tool: {tool_name}
Result: {result}

Please create a brief, user-friendly summary of this result that:
1. Uses natural language instead of technical terms
2. Highlights the key information a wine enthusiast would care about
3. Is conversational and helpful
4. Avoids showing raw data or JSON
5. Is 2-3 sentences maximum

If this contains wine data, focus on the interesting insights. If it contains counts, present them naturally. If it contains errors, explain them helpfully."""


def result_text(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, sort_keys=True, default=str)


def fallback_summary(result: Any) -> str:
    if isinstance(result, dict):
        if result.get("message"):
            return str(result["message"])
        if result.get("error"):
            return f"Error: {result['error']}"
    return "Tool completed successfully."


class ToolResultSummarizer:
    """Summarizes tool results with the LLM, memoized in a :class:`SummaryCache`."""

    def __init__(self, llm_service: LLMService, cache: SummaryCache):
        self.llm_service = llm_service
        self.cache = cache

    @staticmethod
    def cache_key(tool_name: str, result: Any) -> str:
        digest = hashlib.sha256(result_text(result).encode()).hexdigest()
        return f"{tool_name}:{digest}"

    async def summarize(self, tool_name: str, result: Any) -> tuple[str, bool]:
        """Return ``(summary, cached)``."""
        if tool_name in SKIP_SUMMARIZATION:
            return result_text(result), False

        key = self.cache_key(tool_name, result)
        cached = self.cache.get(key)
        if cached is not None:
            return cached, True

        prompt = SUMMARY_PROMPT_TEMPLATE.format(tool_name=tool_name, result=result_text(result))
        try:
            summary = (await self.llm_service.generate(prompt)).strip()
        except LLMError as e:
            logger.error(f"Error summarizing {tool_name} result: {e}")
            return fallback_summary(result), False

        if not summary:
            return fallback_summary(result), False

        self.cache.set(key, summary, tool_name=tool_name)
        return summary, False
