"""
Configuration management for the application.
Loads settings from environment variables and the project .env file.
"""

from pathlib import Path
from typing import List, Tuple
from pydantic import Field
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
from loguru import logger

from support_chat.config.constants import (
    DEFAULT_OPENAI_MODEL,
    DEFAULT_OLLAMA_MODEL,
    DEFAULT_SYSTEM_INSTRUCTION,
)

# This file is at support_chat/config/settings.py, so project root is 3 levels up
_project_root = Path(__file__).resolve().parent.parent.parent

PROJECT_ROOT = _project_root

# Load environment variables from project root
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(dotenv_path=_env_file, override=True)
    logger.debug(f"Loaded .env from: {_env_file}")
else:
    logger.debug(f".env file not found at: {_env_file}")
    load_dotenv(override=False)


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # LLM Provider Selection
    llm_provider: str = Field(default="openai")  # Options: "openai" | "ollama"

    # API Keys
    openai_api_key: str = Field(default="")

    # OpenAI Configuration
    openai_model: str = Field(default=DEFAULT_OPENAI_MODEL)

    # Ollama Configuration
    ollama_base_url: str = Field(default="http://localhost:11434")
    ollama_model: str = Field(default=DEFAULT_OLLAMA_MODEL)

    # Reply generation (fixed per deployment, never per request)
    reply_temperature: float = Field(default=0.7)
    max_output_tokens: int = Field(default=500)
    llm_timeout_seconds: float = Field(default=30.0)
    llm_max_attempts: int = Field(default=3)
    llm_retry_delays_seconds: Tuple[float, ...] = Field(default=(10.0, 30.0, 65.0))

    # Assistant persona
    system_name: str = Field(default="Apex")
    system_instruction: str = Field(default=DEFAULT_SYSTEM_INSTRUCTION)

    # Conversation storage
    database_url: str = Field(default=f"sqlite+aiosqlite:///{_project_root / 'data' / 'support_chat.db'}")
    database_echo: bool = Field(default=False)
    max_conversation_messages: int = Field(default=0)  # 0 = replay the full history
    serialize_session_requests: bool = Field(default=True)

    # Chat rate limiting
    chat_rate_limit_window_ms: int = Field(default=60_000)
    chat_rate_limit_max_requests: int = Field(default=20)
    chat_rate_limit_message: str = Field(default="You're sending messages too quickly. Please wait a moment.")
    rate_limit_sweep_interval_seconds: float = Field(default=60.0)

    # HTTP
    cors_origins: List[str] = Field(default=["http://localhost:5173", "http://localhost:3000"])

    # Logging
    log_level: str = Field(default="INFO")
    log_dir: str = Field(default="data/logs")

    class Config:
        env_file = str(_project_root / ".env")
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def active_model(self) -> str:
        """Model configured for the selected provider"""
        if self.llm_provider.lower() == "ollama":
            return self.ollama_model
        return self.openai_model

    @property
    def default_model(self) -> str:
        """Known-good model the reply generator falls back to"""
        if self.llm_provider.lower() == "ollama":
            return DEFAULT_OLLAMA_MODEL
        return DEFAULT_OPENAI_MODEL


# Create global settings instance
settings = Settings()
