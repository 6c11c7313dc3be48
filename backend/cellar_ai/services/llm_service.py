"""Model-agnostic LLM service supporting multiple providers."""

import asyncio
import logging
from typing import Any, Optional, Type, TypeVar

import httpx
from langchain_core.exceptions import OutputParserException
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from pydantic import BaseModel, ValidationError

from cellar_ai.config import config
from cellar_ai.services.llm_exceptions import (
    LLMUnavailableError,
    MalformedResponseError,
    PermanentLLMError,
    TokenLimitError,
    TransientLLMError,
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

TOKEN_LIMIT_MARKERS = [
    "context_length_exceeded",
    "maximum_context_length",
    "token_limit",
    "too many tokens",
]


def message_text(content: Any) -> str:
    """Flatten message content (plain string or list of content blocks) to text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content or "")


class LLMService:
    """Service for managing LLM interactions with model-agnostic design."""

    def __init__(
        self,
        provider: str | None = None,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout_seconds: float | None = None,
    ):
        if provider is None:
            llm_config = config.get_llm_config()
            provider = llm_config["provider"]
        self.provider = provider
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self._llm: BaseChatModel | None = None

    def _get_llm(self) -> BaseChatModel:
        """Get LLM instance based on provider configuration."""
        if self._llm is not None:
            return self._llm

        llm_config = config.get_llm_config(self.provider)
        model_name = self.model or llm_config["model"]
        temperature = (
            self.temperature if self.temperature is not None else llm_config["temperature"]
        )
        max_tokens = self.max_tokens if self.max_tokens is not None else llm_config["max_tokens"]

        logger.info(
            f"Initializing LLM: provider={self.provider}, model={model_name}, temperature={temperature}, max_tokens={max_tokens}"
        )

        if self.provider == "openai":
            from langchain_openai import ChatOpenAI

            provider_api_key = config.get_api_key("openai")
            if not provider_api_key:
                raise ValueError("OpenAI API key not configured")

            self._llm = ChatOpenAI(
                model=model_name,
                temperature=temperature,
                max_tokens=max_tokens,
                api_key=provider_api_key,
            )

        elif self.provider == "anthropic":
            from langchain_anthropic import ChatAnthropic

            provider_api_key = config.get_api_key("anthropic")
            if not provider_api_key:
                raise ValueError("Anthropic API key not configured")

            self._llm = ChatAnthropic(
                model=model_name,
                temperature=temperature,
                max_tokens=max_tokens,
                anthropic_api_key=provider_api_key,
            )

        elif self.provider == "google":
            from langchain_google_genai import ChatGoogleGenerativeAI

            provider_api_key = config.get_api_key("google")
            if not provider_api_key:
                raise ValueError("Google API key not configured")

            self._llm = ChatGoogleGenerativeAI(
                model=model_name,
                temperature=temperature,
                max_output_tokens=max_tokens,
                google_api_key=provider_api_key,
            )

        else:
            raise ValueError(f"Unsupported LLM provider: {self.provider}")

        return self._llm

    @property
    def llm(self) -> BaseChatModel:
        """Get the LLM instance."""
        try:
            return self._get_llm()
        except ValueError as e:
            raise PermanentLLMError(
                str(e), provider=self.provider, model=self.model, original_error=e
            ) from e

    def _build_messages(
        self,
        prompt: str,
        system_prompt: str | None = None,
        chat_history: list[dict[str, str]] | None = None,
    ) -> list[BaseMessage]:
        messages: list[BaseMessage] = []

        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))

        if chat_history:
            for msg in chat_history:
                if msg["role"] == "user":
                    messages.append(HumanMessage(content=msg["content"]))
                elif msg["role"] == "assistant":
                    messages.append(AIMessage(content=msg["content"]))

        messages.append(HumanMessage(content=prompt))
        return messages

    async def _with_timeout(self, awaitable):
        if self.timeout_seconds is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self.timeout_seconds)

    async def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        chat_history: list[dict[str, str]] | None = None,
    ) -> str:
        """
        Generate a free-text response from the LLM with error classification.

        Args:
            prompt: The prompt to send to the LLM
            system_prompt: Optional system prompt
            chat_history: Optional chat history

        Returns:
            Generated text response

        Raises:
            LLMUnavailableError: Any failure, classified into a subclass where possible
        """
        messages = self._build_messages(prompt, system_prompt, chat_history)

        logger.info(
            f"Calling LLM: {self.provider}/{self.model or 'default'}, "
            f"prompt_length={len(prompt)}, num_messages={len(messages)}"
        )

        try:
            response = await self._with_timeout(self.llm.ainvoke(messages))
        except LLMUnavailableError:
            raise
        except Exception as e:
            raise self._classify_error(e) from e

        text = message_text(response.content)
        logger.info(f"LLM response received: length={len(text)}")
        return text

    async def generate_structured(
        self,
        prompt: str,
        schema: Type[SchemaT],
        system_prompt: str | None = None,
    ) -> SchemaT:
        """
        Generate a response parsed into ``schema`` using the model's structured-output mode.

        Raises:
            MalformedResponseError: The response could not be parsed into ``schema``
            LLMUnavailableError: Any other failure
        """
        messages = self._build_messages(prompt, system_prompt)

        logger.info(
            f"Calling LLM (structured={schema.__name__}): {self.provider}/{self.model or 'default'}, "
            f"prompt_length={len(prompt)}"
        )

        try:
            structured_llm = self.llm.with_structured_output(schema)
            result = await self._with_timeout(structured_llm.ainvoke(messages))
            if isinstance(result, dict):
                result = schema.model_validate(result)
        except LLMUnavailableError:
            raise
        except Exception as e:
            raise self._classify_error(e, schema_name=schema.__name__) from e

        if not isinstance(result, schema):
            raise MalformedResponseError(
                f"Expected {schema.__name__}, got {type(result).__name__}",
                provider=self.provider,
                model=self.model,
                schema_name=schema.__name__,
            )
        return result

    async def generate_with_tools(
        self,
        messages: list[BaseMessage],
        tools: list[Any] | None = None,
    ) -> AIMessage:
        """
        Run one chat turn over ``messages`` with ``tools`` bound.

        The returned message may carry ``tool_calls``; executing them is the caller's job.

        Raises:
            LLMUnavailableError: Any failure, classified into a subclass where possible
        """
        logger.info(
            f"Calling LLM with {len(tools or [])} tools: {self.provider}/{self.model or 'default'}, "
            f"num_messages={len(messages)}"
        )

        try:
            llm = self.llm.bind_tools(tools) if tools else self.llm
            return await self._with_timeout(llm.ainvoke(messages))
        except LLMUnavailableError:
            raise
        except Exception as e:
            raise self._classify_error(e) from e

    def _classify_error(
        self, error: Exception, schema_name: Optional[str] = None
    ) -> LLMUnavailableError:
        """Convert a provider-specific exception into the LLM error taxonomy."""
        if isinstance(error, (OutputParserException, ValidationError)):
            logger.warning(f"Malformed structured output: {self.provider}/{self.model} - {error}")
            return MalformedResponseError(
                str(error),
                provider=self.provider,
                model=self.model,
                original_error=error,
                schema_name=schema_name,
            )

        if self._is_transient_error(error):
            logger.warning(f"Transient LLM error: {self.provider}/{self.model} - {error!r}")
            return TransientLLMError(
                str(error) or type(error).__name__,
                provider=self.provider,
                model=self.model,
                original_error=error,
            )

        error_str = str(error).lower()
        if any(marker in error_str for marker in TOKEN_LIMIT_MARKERS):
            logger.warning(f"Token limit error: {self.provider}/{self.model} - {error}")
            return TokenLimitError(
                str(error), provider=self.provider, model=self.model, original_error=error
            )

        if self._is_permanent_error(error):
            logger.error(f"Permanent LLM error: {self.provider}/{self.model} - {error}")
            return PermanentLLMError(
                str(error), provider=self.provider, model=self.model, original_error=error
            )

        logger.error(f"Unknown LLM error: {self.provider}/{self.model} - {error!r}")
        return LLMUnavailableError(
            str(error) or type(error).__name__,
            provider=self.provider,
            model=self.model,
            original_error=error,
        )

    def _is_transient_error(self, error: Exception) -> bool:
        """
        Check if error is transient.

        Transient errors include HTTP 429/503/504/408, connection errors
        and timeouts (including the per-call timeout).
        """
        if hasattr(error, "status_code"):
            return error.status_code in {429, 503, 504, 408}

        return isinstance(
            error,
            asyncio.TimeoutError | httpx.TimeoutException | httpx.ConnectError | httpx.NetworkError | httpx.RemoteProtocolError,
        )

    def _is_permanent_error(self, error: Exception) -> bool:
        """Check for HTTP 400/401/402/403 responses."""
        if hasattr(error, "status_code"):
            return error.status_code in {400, 401, 403, 402}
        return False


def get_llm_service(
    provider: str | None = None,
    model: str | None = None,
    temperature: float | None = None,
    max_tokens: int | None = None,
    timeout_seconds: float | None = None,
) -> LLMService:
    """Factory function to get LLM service."""
    return LLMService(
        provider=provider,
        model=model,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout_seconds=timeout_seconds,
    )
