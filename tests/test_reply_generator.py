"""
Tests for the reply generator's retry, fallback and timeout handling.

The chat model is replaced with a scripted fake and the backoff sleep with a
recorder, so no test waits on real delays or touches the network.
"""

import asyncio

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from support_chat.llm.reply_generator import AttemptOutcome, LangChainReplyGenerator, classify_error
from support_chat.utils.errors import (
    ModelNotFoundError,
    RateLimitExceededError,
    UpstreamServiceError,
    UpstreamTimeoutError,
)


class ProviderError(Exception):
    """Upstream failure carrying a provider status code"""

    def __init__(self, status_code: int, message: str = "upstream failure"):
        super().__init__(message)
        self.status_code = status_code


class ScriptedModel:
    """Chat model fake that plays back one scripted outcome per call"""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            return await outcome()
        return outcome


class SleepRecorder:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def reply(text="Hello! How can I help?", **kwargs):
    return AIMessage(content=text, **kwargs)


def make_generator(models, model="gpt-4o-mini", default_model="gpt-4o-mini", **kwargs):
    """Build a generator whose factory hands out the scripted model for each name"""
    created = []

    def factory(name):
        created.append(name)
        return models[name]

    sleep = SleepRecorder()
    generator = LangChainReplyGenerator(
        model=model,
        default_model=default_model,
        system_instruction="You are Apex.",
        llm_factory=factory,
        max_attempts=kwargs.pop("max_attempts", 3),
        retry_delays=kwargs.pop("retry_delays", (10, 30, 65)),
        timeout=kwargs.pop("timeout", 30.0),
        sleep=sleep,
    )
    return generator, sleep, created


class TestClassifyError:
    """Test classify_error()"""

    def test_status_codes(self):
        assert classify_error(ProviderError(429)) is AttemptOutcome.RATE_LIMITED
        assert classify_error(ProviderError(404)) is AttemptOutcome.MODEL_NOT_FOUND
        assert classify_error(ProviderError(500)) is AttemptOutcome.FAILED

    def test_quota_message_without_status(self):
        assert classify_error(Exception("You exceeded your current quota")) is AttemptOutcome.RATE_LIMITED

    def test_status_code_in_message_only(self):
        error = Exception("Ollama call failed with status code 404. Maybe your model is not found")

        assert classify_error(error) is AttemptOutcome.MODEL_NOT_FOUND
        assert classify_error(Exception("Ollama call failed with status code 500.")) is AttemptOutcome.FAILED

    def test_timeout(self):
        assert classify_error(asyncio.TimeoutError()) is AttemptOutcome.TIMED_OUT


class TestSuccessfulReply:
    """Test the happy path"""

    def test_reply_and_metrics(self):
        model = ScriptedModel(reply(usage_metadata={"input_tokens": 20, "output_tokens": 10, "total_tokens": 30}))
        generator, sleep, _ = make_generator({"gpt-4o-mini": model})

        result = asyncio.run(generator.generate([], "Hi"))

        assert result.reply == "Hello! How can I help?"
        assert result.tokens_used == 30
        assert result.response_time_ms >= 0
        assert sleep.delays == []

    def test_missing_usage_reports_none(self):
        generator, _, _ = make_generator({"gpt-4o-mini": ScriptedModel(reply())})

        result = asyncio.run(generator.generate([], "Hi"))

        assert result.tokens_used is None

    def test_prompt_is_system_history_then_user(self):
        model = ScriptedModel(reply())
        generator, _, _ = make_generator({"gpt-4o-mini": model})
        history = [
            {"role": "user", "parts": [{"text": "Hi"}]},
            {"role": "model", "parts": [{"text": "Hello"}]},
        ]

        asyncio.run(generator.generate(history, "Do you ship to Canada?"))

        messages = model.calls[0]
        assert isinstance(messages[0], SystemMessage)
        assert messages[0].content == "You are Apex."
        assert [m.content for m in messages[1:]] == ["Hi", "Hello", "Do you ship to Canada?"]
        assert isinstance(messages[-1], HumanMessage)


class TestRateLimitRetry:
    """Test backoff under upstream throttling"""

    def test_always_throttled_gives_up_after_three_calls(self):
        model = ScriptedModel(ProviderError(429, "429 Too Many Requests"))
        generator, sleep, _ = make_generator({"gpt-4o-mini": model})

        with pytest.raises(RateLimitExceededError) as exc_info:
            asyncio.run(generator.generate([], "Hi"))

        assert len(model.calls) == 3
        assert sleep.delays == [10, 30]
        assert exc_info.value.status_code == 429
        assert exc_info.value.error_code == "RATE_LIMIT"

    def test_recovers_on_third_attempt(self):
        model = ScriptedModel(ProviderError(429), ProviderError(429), reply("Back online"))
        generator, sleep, _ = make_generator({"gpt-4o-mini": model})

        result = asyncio.run(generator.generate([], "Hi"))

        assert result.reply == "Back online"
        assert sleep.delays == [10, 30]

    def test_delay_schedule_falls_back_to_ten_seconds(self):
        model = ScriptedModel(ProviderError(429))
        generator, sleep, _ = make_generator({"gpt-4o-mini": model}, max_attempts=3, retry_delays=(5,))

        with pytest.raises(RateLimitExceededError):
            asyncio.run(generator.generate([], "Hi"))

        assert sleep.delays == [5, 10.0]


class TestModelFallback:
    """Test fallback to the default model on 404"""

    def test_unknown_model_falls_back_to_default(self):
        preview = ScriptedModel(ProviderError(404, "models/gpt-preview is not found"))
        default = ScriptedModel(reply("From the default model"))
        generator, sleep, created = make_generator(
            {"gpt-preview": preview, "gpt-4o-mini": default}, model="gpt-preview"
        )

        result = asyncio.run(generator.generate([], "Hi"))

        assert result.reply == "From the default model"
        assert created == ["gpt-preview", "gpt-4o-mini"]
        assert generator.model_name == "gpt-4o-mini"
        assert sleep.delays == []

    def test_fallback_does_not_use_up_an_attempt(self):
        preview = ScriptedModel(ProviderError(404))
        default = ScriptedModel(ProviderError(429), ProviderError(429), reply("Finally"))
        generator, sleep, _ = make_generator(
            {"gpt-preview": preview, "gpt-4o-mini": default}, model="gpt-preview"
        )

        result = asyncio.run(generator.generate([], "Hi"))

        assert result.reply == "Finally"
        assert len(preview.calls) == 1
        assert len(default.calls) == 3
        assert sleep.delays == [10, 30]

    def test_default_model_not_found(self):
        model = ScriptedModel(ProviderError(404))
        generator, _, _ = make_generator({"gpt-4o-mini": model})

        with pytest.raises(ModelNotFoundError) as exc_info:
            asyncio.run(generator.generate([], "Hi"))

        assert len(model.calls) == 1
        assert exc_info.value.status_code == 503
        assert exc_info.value.error_code == "SERVICE_UNAVAILABLE"

    def test_ollama_missing_model_falls_back_to_default(self):
        """ChatOllama reports the 404 only in the error text"""
        ollama = pytest.importorskip("langchain_community.llms.ollama")
        missing = ScriptedModel(ollama.OllamaEndpointNotFoundError(
            "Ollama call failed with status code 404. "
            "Maybe your model is not found and you should pull the model with `ollama pull llama3.1`."
        ))
        default = ScriptedModel(reply("From llama3"))
        generator, sleep, created = make_generator(
            {"llama3.1": missing, "llama3": default}, model="llama3.1", default_model="llama3"
        )

        result = asyncio.run(generator.generate([], "Hi"))

        assert result.reply == "From llama3"
        assert created == ["llama3.1", "llama3"]
        assert sleep.delays == []

    def test_fallback_sticks_for_later_calls(self):
        preview = ScriptedModel(ProviderError(404))
        default = ScriptedModel(reply())
        generator, _, _ = make_generator(
            {"gpt-preview": preview, "gpt-4o-mini": default}, model="gpt-preview"
        )

        asyncio.run(generator.generate([], "Hi"))
        asyncio.run(generator.generate([], "Hi again"))

        assert len(preview.calls) == 1
        assert len(default.calls) == 2


class TestOtherFailures:
    """Test timeout and generic upstream errors"""

    def test_timeout(self):
        async def slow():
            await asyncio.sleep(1)
            return reply()

        model = ScriptedModel(slow)
        generator, sleep, _ = make_generator({"gpt-4o-mini": model}, timeout=0.01)

        with pytest.raises(UpstreamTimeoutError) as exc_info:
            asyncio.run(generator.generate([], "Hi"))

        assert exc_info.value.status_code == 504
        assert exc_info.value.error_code == "TIMEOUT"
        assert len(model.calls) == 1
        assert sleep.delays == []

    def test_generic_error_is_not_retried(self):
        model = ScriptedModel(ProviderError(500, "internal error"))
        generator, sleep, _ = make_generator({"gpt-4o-mini": model})

        with pytest.raises(UpstreamServiceError) as exc_info:
            asyncio.run(generator.generate([], "Hi"))

        assert len(model.calls) == 1
        assert sleep.delays == []
        assert exc_info.value.upstream_message == "internal error"
        assert exc_info.value.status_code == 503
