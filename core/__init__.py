"""Core business logic modules."""

from .config_loader import ClientConfig, ConfigError, ConfigLoader
from .llm_service import CompletionClient, LLMService, classify_error
from .prompt_builder import PromptBuilder
from .results import (
    AuthError,
    Completion,
    CompletionError,
    ErrorKind,
    RemoteError,
    TransportError,
    UnknownError,
)

__all__ = [
    "ClientConfig",
    "ConfigError",
    "ConfigLoader",
    "CompletionClient",
    "LLMService",
    "classify_error",
    "PromptBuilder",
    "AuthError",
    "Completion",
    "CompletionError",
    "ErrorKind",
    "RemoteError",
    "TransportError",
    "UnknownError",
]
