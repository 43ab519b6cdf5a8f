"""
Configuration layer - Settings and constants
"""

from support_chat.config.settings import settings, Settings, PROJECT_ROOT
from support_chat.config.constants import (
    DEFAULT_OPENAI_MODEL,
    DEFAULT_OLLAMA_MODEL,
    MAX_MESSAGE_LENGTH,
)

__all__ = [
    "settings",
    "Settings",
    "PROJECT_ROOT",
    "DEFAULT_OPENAI_MODEL",
    "DEFAULT_OLLAMA_MODEL",
    "MAX_MESSAGE_LENGTH",
]
