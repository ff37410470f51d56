"""
Core LLM service for single-shot questions.

This module contains the business logic for:
- Calling the Gemini API through LangChain's ChatOpenAI
- Classifying failures into auth, transport, remote and unknown errors
- Building the prompt and logging the outgoing call
"""

import logging
import json
from typing import List, Dict, Any, Optional

import httpx
import openai
from langchain_openai import ChatOpenAI
from langchain_core.messages import HumanMessage

from core.config_loader import ClientConfig
from core.prompt_builder import PromptBuilder
from core.results import (
    AuthError,
    Completion,
    CompletionError,
    RemoteError,
    TransportError,
    UnknownError,
)

# Gemini rejects a bad key with HTTP 400 rather than 401
INVALID_KEY_MARKERS = ("API key not valid", "API_KEY_INVALID")


def classify_error(error: Exception) -> CompletionError:
    """
    Map an exception raised during a completion call onto the error taxonomy.

    Args:
        error: Exception raised while building the client or invoking it

    Returns:
        CompletionError subclass chained to the original exception
    """
    if isinstance(error, CompletionError):
        return error

    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return AuthError(f"Credential rejected by the service: {error}", error)

    if isinstance(error, openai.BadRequestError) and any(
        marker in str(error) for marker in INVALID_KEY_MARKERS
    ):
        return AuthError(f"Credential rejected by the service: {error}", error)

    # APITimeoutError is a subclass of APIConnectionError
    if isinstance(error, openai.APIConnectionError):
        return TransportError(f"Could not reach the service: {error}", error)

    if isinstance(error, (httpx.TransportError, TimeoutError, ConnectionError, OSError)):
        return TransportError(f"Could not reach the service: {error}", error)

    if isinstance(error, openai.APIStatusError):
        return RemoteError(
            f"Service returned status {error.status_code}: {error.message}", error
        )

    if isinstance(error, openai.APIResponseValidationError):
        return RemoteError(f"Service returned an invalid response: {error}", error)

    return UnknownError(f"{type(error).__name__}: {error}", error)


def _content_to_text(content: Any) -> str:
    """Return message content as text, joining text parts when given a list."""
    if isinstance(content, str):
        return content

    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class CompletionClient:
    """Client for the Gemini OpenAI-compatible API using LangChain's ChatOpenAI."""

    def __init__(self, config: ClientConfig):
        self.config = config

    def build_api_params(self) -> Dict[str, Any]:
        """
        Build ChatOpenAI keyword arguments from the client config.

        Returns:
            Keyword arguments without the API key
        """
        kwargs = {
            "base_url": self.config.base_url,
            "model": self.config.model,
            "max_retries": 0,
        }
        if self.config.timeout is not None:
            kwargs["timeout"] = self.config.timeout
        kwargs.update(self.config.params)
        return kwargs

    def complete(self, prompt: str) -> str:
        """
        Send one completion request.

        Args:
            prompt: Fully built prompt

        Returns:
            Generated text, verbatim

        Raises:
            CompletionError: Classified failure (auth, transport, remote, unknown)
        """
        try:
            client = ChatOpenAI(api_key=self.config.api_key, **self.build_api_params())
            response = client.invoke([HumanMessage(content=prompt)])
        except Exception as e:
            raise classify_error(e) from e

        return _content_to_text(response.content)


class LLMService:
    """
    Core service for one question and one answer.

    Builds the prompt, logs the call and delegates to the completion client.
    """

    def __init__(
        self,
        prompt_builder: PromptBuilder,
        client: CompletionClient,
        logger: Optional[logging.Logger] = None,
    ):
        self.prompt_builder = prompt_builder
        self.client = client
        # Use app.prompt logger category for prompt logging
        self.logger = logger or logging.getLogger("app.prompt")

    def _messages_to_dict(self, prompt: str) -> List[Dict[str, str]]:
        """Convert the prompt to chat message format for logging."""
        return [{"role": "user", "content": prompt}]

    def ask(self, user_text: str) -> Completion:
        """
        Ask a single question.

        Args:
            user_text: User's line of input, possibly empty

        Returns:
            Completion with the model's response

        Raises:
            CompletionError: When the call fails
        """
        prompt = self.prompt_builder.build(user_text)

        api_call = {
            **self.client.build_api_params(),
            "messages": self._messages_to_dict(prompt),
        }
        api_call_str = json.dumps(api_call, indent=2, default=str)
        self.logger.info(f"API call:\n{api_call_str}")

        try:
            text = self.client.complete(prompt)
        except CompletionError as e:
            self.logger.error(f"Completion failed ({e.kind.value}): {e.message}")
            raise

        self.logger.debug(f"Response length: {len(text)} chars")
        return Completion(text=text)
