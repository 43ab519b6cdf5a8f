"""
LLM client factory

Creates appropriate LangChain chat model instances based on provider configuration.
"""

from typing import Optional
from loguru import logger

from support_chat.config.settings import settings


def _validate_ollama_model(model: str):
    """Check that the requested Ollama model is pulled on the server."""
    import httpx
    try:
        response = httpx.get(f"{settings.ollama_base_url}/api/tags", timeout=3.0)
        response.raise_for_status()
        models_data = response.json()
        available_models = [m.get("name", "").split(":")[0] for m in models_data.get("models", [])]

        model_name = model.split(":")[0]
        if model_name not in available_models:
            logger.error(
                f"❌ Ollama model '{model}' is not available on the server. "
                f"Available models: {', '.join(available_models) if available_models else 'None'}. "
                f"To install: ollama pull {model}"
            )
        else:
            logger.debug(f"✅ Ollama model '{model}' is available")
    except httpx.RequestError as e:
        logger.warning(
            f"⚠️  Could not connect to Ollama server at {settings.ollama_base_url} to validate model. "
            f"Make sure Ollama is running. Error: {e}"
        )
    except httpx.HTTPStatusError as e:
        logger.warning(f"⚠️  Could not validate Ollama model availability: {e}")


def describe_provider() -> str:
    """One-line description of the configured provider, with the API key masked."""
    provider = settings.llm_provider.lower()
    if provider == "openai":
        key = settings.openai_api_key
        masked_key = key[:8] + "..." + key[-4:] if len(key) > 12 else ("***" if key else "not set")
        return f"OpenAI | Model: {settings.openai_model} | API key: {masked_key}"
    if provider == "ollama":
        return f"Ollama | Base URL: {settings.ollama_base_url} | Model: {settings.ollama_model}"
    return f"Unknown provider '{settings.llm_provider}'"


def create_llm(temperature: Optional[float] = None, max_completion_tokens: Optional[int] = None, model: Optional[str] = None):
    """
    Factory function to create appropriate LLM based on provider configuration.

    Args:
        temperature: Generation temperature (defaults to settings.reply_temperature)
        max_completion_tokens: Max tokens for completion (defaults to settings.max_output_tokens)
        model: Model name (defaults to the provider's configured model)

    Returns:
        LangChain ChatModel instance (ChatOpenAI or ChatOllama)
    """
    provider = settings.llm_provider.lower()
    max_tokens = max_completion_tokens or settings.max_output_tokens
    temperature = temperature if temperature is not None else settings.reply_temperature

    if provider == "openai":
        from langchain_openai import ChatOpenAI

        if not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required when LLM_PROVIDER=openai")

        return ChatOpenAI(
            model=model or settings.openai_model,
            api_key=settings.openai_api_key,
            temperature=temperature,
            max_completion_tokens=max_tokens,
            # Retries are owned by the reply generator
            max_retries=0,
        )

    elif provider == "ollama":
        try:
            from langchain_community.chat_models import ChatOllama
        except ImportError:
            raise ImportError(
                "Ollama support requires 'langchain-community'. "
                "Install it with: pip install langchain-community"
            )

        model_to_use = model or settings.ollama_model
        _validate_ollama_model(model_to_use)

        return ChatOllama(
            model=model_to_use,
            base_url=settings.ollama_base_url,
            temperature=temperature,
            num_predict=max_tokens,  # Ollama uses num_predict instead of max_completion_tokens
        )

    else:
        raise ValueError(f"Unsupported LLM provider: {provider}. Supported: 'openai', 'ollama'")
