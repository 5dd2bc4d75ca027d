"""Completion service adapters.

Provides a vendor-neutral interface and an adapter for OpenAI-compatible
chat completion APIs.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from localseo.config import CompletionSettings
from localseo.errors import ConfigurationError, ProviderRequestError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCall:
    name: str
    arguments: dict[str, Any]


@dataclass(frozen=True)
class CompletionResponse:
    """Text answer and any tool calls requested by the model."""

    text: str
    tool_calls: list[ToolCall] = field(default_factory=list)


class BaseCompletionAdapter(ABC):
    """Abstract base for all completion adapters."""

    @abstractmethod
    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        tools: Optional[list[dict[str, Any]]] = None,
        json_mode: bool = False,
    ) -> CompletionResponse:
        """Send one system/user prompt pair and return the model answer.

        Args:
            system_prompt: Instructions for the model.
            user_prompt: The task content.
            tools: Optional function-tool definitions in OpenAI format.
            json_mode: Ask the service to return a single JSON object.

        Returns:
            The completion text and parsed tool calls.

        Raises:
            ProviderRequestError: If the service call fails.
        """


class OpenAICompletionAdapter(BaseCompletionAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Configured for deterministic, non-streaming output.
    """

    def __init__(self, settings: CompletionSettings, client: Optional[OpenAI] = None) -> None:
        """Initialise the OpenAI adapter.

        Args:
            settings: Completion settings; `api_key` is required unless a
                client is supplied.
            client: Optional pre-built client.
        """
        if client is None:
            if not settings.api_key:
                raise ConfigurationError("OPENAI_API_KEY is required for the completion service.")
            client_kwargs: dict[str, Any] = {
                "api_key": settings.api_key,
                "timeout": settings.timeout_seconds,
            }
            if settings.base_url:
                client_kwargs["base_url"] = settings.base_url
            client = OpenAI(**client_kwargs)

        self._client = client
        self._model = settings.model
        self._max_tokens = settings.max_tokens

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        tools: Optional[list[dict[str, Any]]] = None,
        json_mode: bool = False,
    ) -> CompletionResponse:
        request: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": 0,
            "max_tokens": self._max_tokens,
            "stream": False,
        }
        if tools:
            request["tools"] = tools
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        try:
            response = self._client.chat.completions.create(**request)
        except OpenAIError as exc:
            raise ProviderRequestError("openai", f"completion request failed: {exc}") from exc

        message = response.choices[0].message
        tool_calls: list[ToolCall] = []
        for call in message.tool_calls or []:
            try:
                arguments = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError:
                logger.warning("Discarding tool call with invalid arguments name=%s", call.function.name)
                continue
            tool_calls.append(ToolCall(name=call.function.name, arguments=arguments))

        return CompletionResponse(text=message.content or "", tool_calls=tool_calls)
