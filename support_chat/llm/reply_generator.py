"""
Reply Generator - Produces the assistant's next turn

Sends the system instruction, the replayed history and the new user message to
the chat model. Handles upstream throttling with a fixed backoff schedule,
falls back to the known-good default model when the configured one is
rejected, and bounds every call with a timeout.
"""

import asyncio
import enum
import re
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence, Tuple

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from loguru import logger

from support_chat.config.settings import settings
from support_chat.llm.client import create_llm
from support_chat.llm.history import FormattedTurn, to_langchain_messages
from support_chat.llm.response_utils import extract_text_from_response, extract_token_usage
from support_chat.utils.errors import (
    ModelNotFoundError,
    RateLimitExceededError,
    UpstreamServiceError,
    UpstreamTimeoutError,
)


@dataclass
class ReplyResult:
    """Generated reply plus performance metrics"""
    reply: str
    tokens_used: Optional[int]
    response_time_ms: int


class ReplyGenerator(Protocol):
    """Provider-independent reply generation capability"""

    async def generate(self, history: Sequence[FormattedTurn], user_message: str) -> ReplyResult:
        ...


_STATUS_IN_MESSAGE = re.compile(r"status code (\d{3})\b")


class AttemptOutcome(enum.Enum):
    """How a single upstream call ended"""
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    MODEL_NOT_FOUND = "model_not_found"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


def _status_code(error: BaseException) -> Optional[int]:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    # ChatOllama only reports it in the text: "Ollama call failed with status code 404. ..."
    match = _STATUS_IN_MESSAGE.search(str(error))
    return int(match.group(1)) if match else None


def classify_error(error: BaseException) -> AttemptOutcome:
    """Map an upstream exception to an attempt outcome"""
    if isinstance(error, asyncio.TimeoutError):
        return AttemptOutcome.TIMED_OUT

    status = _status_code(error)
    message = str(error).lower()

    if status == 429 or "429" in message or "quota" in message or "rate limit" in message:
        return AttemptOutcome.RATE_LIMITED
    if status == 404:
        return AttemptOutcome.MODEL_NOT_FOUND
    return AttemptOutcome.FAILED


class LangChainReplyGenerator:
    """
    Reply generator backed by a LangChain chat model.

    The active model name is instance state: after a fallback every later call
    on the same instance uses the default model.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        default_model: Optional[str] = None,
        system_instruction: Optional[str] = None,
        llm_factory: Optional[Callable[[str], BaseChatModel]] = None,
        max_attempts: Optional[int] = None,
        retry_delays: Optional[Sequence[float]] = None,
        timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize reply generator.

        Args:
            model: Model to use first (defaults to the provider's configured model)
            default_model: Known-good fallback model
            system_instruction: Standing directive sent before the history
            llm_factory: Builds a chat model for a model name (defaults to create_llm)
            max_attempts: Upstream calls allowed while rate limited
            retry_delays: Seconds to wait before the 2nd, 3rd, ... attempt
            timeout: Seconds allowed per upstream call
            sleep: Awaitable sleep used between attempts
        """
        self.model_name = model or settings.active_model
        self.default_model = default_model or settings.default_model
        self.system_instruction = system_instruction or settings.system_instruction
        self.max_attempts = max_attempts or settings.llm_max_attempts
        self.retry_delays: Tuple[float, ...] = tuple(
            retry_delays if retry_delays is not None else settings.llm_retry_delays_seconds
        )
        self.timeout = timeout or settings.llm_timeout_seconds
        self._sleep = sleep
        self._llm_factory = llm_factory or self._create_llm
        self.llm = self._llm_factory(self.model_name)
        logger.info(f"Initialized LangChainReplyGenerator with model: {self.model_name}")

    @staticmethod
    def _create_llm(model: str) -> BaseChatModel:
        return create_llm(
            model=model,
            temperature=settings.reply_temperature,
            max_completion_tokens=settings.max_output_tokens,
        )

    def _retry_delay(self, attempt: int) -> float:
        """Delay before the attempt after ``attempt`` (1-based)"""
        if attempt - 1 < len(self.retry_delays):
            return self.retry_delays[attempt - 1]
        return 10.0

    def _switch_to_default_model(self):
        logger.warning(f"Model {self.model_name} not found. Falling back to {self.default_model}")
        self.model_name = self.default_model
        self.llm = self._llm_factory(self.model_name)

    async def _call_model(self, history: Sequence[FormattedTurn], user_message: str) -> Any:
        messages = [SystemMessage(content=self.system_instruction)]
        messages.extend(to_langchain_messages(history))
        messages.append(HumanMessage(content=user_message))
        return await asyncio.wait_for(self.llm.ainvoke(messages), timeout=self.timeout)

    async def _attempt(
        self, history: Sequence[FormattedTurn], user_message: str
    ) -> Tuple[AttemptOutcome, Any]:
        """Run one upstream call and tag how it ended"""
        try:
            response = await self._call_model(history, user_message)
        except Exception as e:
            return classify_error(e), e
        return AttemptOutcome.SUCCESS, response

    async def generate(self, history: Sequence[FormattedTurn], user_message: str) -> ReplyResult:
        """
        Generate the assistant reply for ``user_message``.

        Args:
            history: Prior turns, already formatted for the model
            user_message: The new user turn

        Returns:
            ReplyResult with reply text, token usage and latency

        Raises:
            RateLimitExceededError: Still throttled after the last attempt
            ModelNotFoundError: The default model itself was rejected
            UpstreamTimeoutError: A call exceeded the timeout
            UpstreamServiceError: Any other upstream failure
        """
        start = time.perf_counter()
        attempt = 1

        while attempt <= self.max_attempts:
            outcome, payload = await self._attempt(history, user_message)

            if outcome is AttemptOutcome.SUCCESS:
                reply = extract_text_from_response(payload)
                tokens_used = extract_token_usage(payload)
                response_time_ms = int((time.perf_counter() - start) * 1000)
                logger.info(
                    f"Reply generated - model={self.model_name}, attempt={attempt}, "
                    f"response_time={response_time_ms}ms, tokens={tokens_used if tokens_used is not None else 'N/A'}"
                )
                return ReplyResult(reply=reply, tokens_used=tokens_used, response_time_ms=response_time_ms)

            if outcome is AttemptOutcome.MODEL_NOT_FOUND:
                if self.model_name != self.default_model:
                    self._switch_to_default_model()
                    continue
                logger.error(f"Model not found or not supported: {self.model_name}")
                raise ModelNotFoundError()

            if outcome is AttemptOutcome.RATE_LIMITED:
                if attempt < self.max_attempts:
                    delay = self._retry_delay(attempt)
                    logger.warning(
                        f"Rate limit hit, waiting {delay:g}s for quota reset... "
                        f"(Attempt {attempt}/{self.max_attempts})"
                    )
                    await self._sleep(delay)
                    attempt += 1
                    continue
                logger.error(f"Rate limit exceeded after {self.max_attempts} attempts")
                raise RateLimitExceededError()

            if outcome is AttemptOutcome.TIMED_OUT:
                logger.error(f"Upstream call timed out after {self.timeout:g}s (attempt {attempt})")
                raise UpstreamTimeoutError()

            logger.error(f"Upstream error: {payload}")
            raise UpstreamServiceError(upstream_message=str(payload))

        # Only reachable when max_attempts < 1
        raise UpstreamServiceError(upstream_message="Max retries exceeded")
