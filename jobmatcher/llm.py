"""Chat model client. Groq and OpenRouter both speak the OpenAI chat API."""
from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import openai
from openai import OpenAI

from jobmatcher.config import ModelProvider, Settings
from jobmatcher.errors import ProtocolViolation, UpstreamError
from jobmatcher.log import get_logger
from jobmatcher.models import ToolCall
from jobmatcher.retry import retry

log = get_logger(__name__)

PROVIDER_BASE_URLS: dict[ModelProvider, str] = {
    ModelProvider.GROQ: "https://api.groq.com/openai/v1",
    ModelProvider.OPENROUTER: "https://openrouter.ai/api/v1",
}


@dataclass
class ModelReply:
    text: str
    tool_calls: list[ToolCall] = field(default_factory=list)

    def as_message(self) -> dict[str, Any]:
        """The assistant message as it goes back into the conversation history."""
        message: dict[str, Any] = {"role": "assistant", "content": self.text or None}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                }
                for call in self.tool_calls
            ]
        return message


class ChatModel(ABC):
    @abstractmethod
    def complete(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]) -> ModelReply:
        """One model step: text, tool calls, or both."""


def parse_arguments(name: str, raw: Any) -> dict[str, Any]:
    # Some models send null or "" for no-argument tools
    if raw is None or raw == "" or raw == "null":
        return {}
    if isinstance(raw, dict):
        return raw
    try:
        value = json.loads(raw)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ProtocolViolation(f"Tool {name} sent unparseable arguments", tool_name=name) from exc
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ProtocolViolation(f"Tool {name} arguments must be an object", tool_name=name)
    return value


def _giveup(exc: BaseException) -> UpstreamError:
    return UpstreamError("model", str(exc))


class OpenAIChatModel(ChatModel):
    def __init__(
        self,
        provider: ModelProvider,
        api_key: str,
        model: str,
        max_tokens: int = 1024,
        client: OpenAI | None = None,
    ) -> None:
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens
        self.client = client or OpenAI(api_key=api_key, base_url=PROVIDER_BASE_URLS[provider])

    @classmethod
    def from_settings(cls, settings: Settings) -> OpenAIChatModel:
        return cls(settings.model_provider, settings.api_key, settings.model_name, settings.max_tokens)

    @retry(
        max_attempts=3,
        base_delay=2.0,
        retryable=(openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError),
        giveup=_giveup,
    )
    def _create(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]):
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        return self.client.chat.completions.create(**kwargs)

    def complete(self, messages: list[dict[str, Any]], tools: list[dict[str, Any]]) -> ModelReply:
        try:
            response = self._create(messages, tools)
        except openai.BadRequestError as exc:
            # Groq rejects a generation whose tool call it could not parse
            if "tool_use_failed" in str(exc):
                raise ProtocolViolation("Model produced a malformed tool call") from exc
            raise UpstreamError("model", str(exc)) from exc
        except openai.APIError as exc:
            raise UpstreamError("model", str(exc)) from exc

        if not response.choices:
            raise UpstreamError("model", "empty response")
        message = response.choices[0].message
        calls = [
            ToolCall(
                id=c.id,
                name=c.function.name,
                arguments=parse_arguments(c.function.name, c.function.arguments),
            )
            for c in (message.tool_calls or [])
        ]
        text = (message.content or "").strip()
        log.debug("Model %s → text=%d chars, calls=%s", self.model, len(text), [c.name for c in calls])
        return ModelReply(text=text, tool_calls=calls)
