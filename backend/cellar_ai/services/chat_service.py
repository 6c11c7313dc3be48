"""Tool-calling chat over a user's cellar."""

import json
import logging
from typing import Any, Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage

from cellar_ai.config import config
from cellar_ai.models.api_models import ChatMessage, ChatResponse
from cellar_ai.services.llm_service import LLMService, message_text
from cellar_ai.services.prompts import SOMMELIER_SYSTEM_PROMPT
from cellar_ai.services.tools import CellarToolkit

logger = logging.getLogger(__name__)

ROUNDS_EXHAUSTED_MESSAGE = "I gathered what I could but ran out of steps; please narrow the question."


class ChatService:
    """Runs a sommelier conversation turn, executing tool calls until the model answers."""

    def __init__(
        self,
        llm_service: LLMService,
        toolkit: CellarToolkit,
        max_tool_rounds: Optional[int] = None,
    ):
        self.llm_service = llm_service
        self.toolkit = toolkit
        self.max_tool_rounds = max_tool_rounds or config.get_chat_config().get("max_tool_rounds", 5)

    @staticmethod
    def _history_messages(history: List[ChatMessage]) -> List[BaseMessage]:
        messages: List[BaseMessage] = []
        for turn in history:
            if turn.role == "user":
                messages.append(HumanMessage(content=turn.content))
            elif turn.role == "assistant":
                messages.append(AIMessage(content=turn.content))
        return messages

    async def respond(
        self,
        owner_id: str,
        message: str,
        history: Optional[List[ChatMessage]] = None,
    ) -> ChatResponse:
        """Answer ``message`` for ``owner_id``.

        Raises:
            LLMUnavailableError: The model could not be reached
        """
        tools = self.toolkit.build_cellar_tools(owner_id)
        tools_by_name = {tool.name: tool for tool in tools}

        messages: List[BaseMessage] = [SystemMessage(content=SOMMELIER_SYSTEM_PROMPT)]
        messages.extend(self._history_messages(history or []))
        messages.append(HumanMessage(content=message))

        tool_results: List[Dict[str, Any]] = []

        for round_number in range(1, self.max_tool_rounds + 1):
            response = await self.llm_service.generate_with_tools(messages, tools)
            messages.append(response)

            if not response.tool_calls:
                return ChatResponse(message=message_text(response.content), tool_results=tool_results)

            logger.info(
                f"Chat round {round_number}: {[call['name'] for call in response.tool_calls]}"
            )
            for call in response.tool_calls:
                output = await self._run_tool(tools_by_name, call["name"], call.get("args", {}))
                tool_results.append({"toolName": call["name"], "args": call.get("args", {}), "result": output})
                messages.append(
                    ToolMessage(
                        content=json.dumps(output, default=str),
                        tool_call_id=call["id"],
                        name=call["name"],
                    )
                )

        # Out of tool rounds: ask for an answer from what has been gathered
        logger.warning(f"Chat reached {self.max_tool_rounds} tool rounds for user {owner_id}")
        messages.append(HumanMessage(content="Answer now using the tool results above, without calling more tools."))
        final = await self.llm_service.generate_with_tools(messages, tools)
        text = message_text(final.content) or ROUNDS_EXHAUSTED_MESSAGE
        return ChatResponse(message=text, tool_results=tool_results)

    @staticmethod
    async def _run_tool(tools_by_name: Dict[str, Any], name: str, args: Dict[str, Any]) -> Dict[str, Any]:
        tool = tools_by_name.get(name)
        if tool is None:
            return {"error": f"Unknown tool: {name}"}
        try:
            return await tool.ainvoke(args)
        except ValueError as e:
            # Pydantic rejects malformed tool arguments with a ValueError subclass
            logger.warning(f"Invalid arguments for {name}: {e}")
            return {"error": f"Invalid arguments for {name}: {e}"}
