"""
Chat model access for the advisor and the summarizer.
Every completion goes through LLMService: bounded concurrency, a deadline
per attempt, exponential-backoff retries and token usage in the logs.
"""

import time
import asyncio
from typing import Any
from tenacity import (
    AsyncRetrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
from langchain_core.callbacks import Callbacks
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage
from langchain_openai import ChatOpenAI
from langchain_google_genai import ChatGoogleGenerativeAI

from yc_advisor.utils.logger import get_logger

logger = get_logger(__name__)


class LLMError(Exception):
    """A completion failed on its last allowed attempt."""


class LLMTimeoutError(LLMError):
    """A completion attempt ran past its deadline."""


def create_llm(
    model_name: str, api_key: str, temperature: float = 0.7, streaming: bool = True
) -> BaseChatModel:
    """
    Builds the chat model behind a model name.

    "gpt*" names use OpenAI and "gemini*" names use Google. OpenAI models are
    created in streaming mode so token callbacks fire during a plain ainvoke.

    Raises:
        ValueError: If the name matches neither provider
    """
    if "gpt" in model_name:
        return ChatOpenAI(
            api_key=api_key,
            model=model_name,
            temperature=temperature,
            streaming=streaming,
        )
    if "gemini" in model_name:
        return ChatGoogleGenerativeAI(
            google_api_key=api_key, model=model_name, temperature=temperature
        )
    raise ValueError(
        f"Unsupported model: {model_name}. Expected a 'gpt' or 'gemini' model"
    )


class LLMService:
    """
    Runs completions against one chat model.
    Shared by all turns, so the semaphore bounds concurrent calls per model.
    """

    def __init__(
        self,
        model: BaseChatModel,
        max_retries: int = 3,
        timeout: int = 60,
        rate_limit: int = 5,
    ):
        """
        Args:
            model: Chat model built by create_llm
            max_retries: Attempts per completion, the first one included
            timeout: Seconds allowed per attempt
            rate_limit: Completions allowed to run at the same time
        """
        self.model = model
        self.model_name = getattr(model, "model_name", None) or "unknown"
        self.max_retries = max_retries
        self.timeout = timeout
        self.semaphore = asyncio.Semaphore(rate_limit)

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            retry=retry_if_exception_type(LLMError),
            reraise=True,
        )

    async def invoke_with_retry(
        self,
        messages: list[BaseMessage] | str,
        timeout: int | None = None,
        callbacks: Callbacks = None,
    ) -> BaseMessage:
        """
        Completes `messages`, retrying failed or timed-out attempts.

        Args:
            messages: Chat messages or a single rendered prompt
            timeout: Per-attempt deadline overriding the service default
            callbacks: LangChain callbacks for the model run (token streaming)

        Returns:
            The model's response message

        Raises:
            LLMTimeoutError: If the last attempt timed out
            LLMError: If the last attempt failed
        """
        timeout = timeout or self.timeout
        config: dict[str, Any] = {"callbacks": callbacks} if callbacks else {}
        started = time.monotonic()

        async for attempt in self._retrying():
            with attempt:
                response = await self._attempt(
                    messages, config, timeout, attempt.retry_state.attempt_number
                )

        self._log_usage(response, time.monotonic() - started)
        return response

    async def _attempt(
        self,
        messages: list[BaseMessage] | str,
        config: dict[str, Any],
        timeout: float,
        attempt: int,
    ) -> BaseMessage:
        logger.info(
            "llm_call_started", model=self.model_name, attempt=attempt, timeout=timeout
        )
        try:
            async with self.semaphore:
                return await asyncio.wait_for(
                    self.model.ainvoke(messages, config=config), timeout=timeout
                )
        except asyncio.TimeoutError as e:
            logger.error(
                "llm_call_timeout", model=self.model_name, attempt=attempt, timeout=timeout
            )
            raise LLMTimeoutError(f"LLM call exceeded timeout of {timeout}s") from e
        except Exception as e:
            logger.error(
                "llm_call_failed",
                exc_info=True,
                model=self.model_name,
                attempt=attempt,
                error=str(e),
            )
            raise LLMError(f"LLM invocation failed: {e}") from e

    def _log_usage(self, response: BaseMessage, elapsed: float) -> None:
        usage = getattr(response, "usage_metadata", None) or {}
        logger.info(
            "llm_call_completed",
            model=self.model_name,
            elapsed=round(elapsed, 3),
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
        )
