from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Literal

import openai
from openai import AsyncOpenAI

from resumind.config import Settings
from resumind.core.deadline import race_deadline
from resumind.errors import AIServiceError, EmptyResponseError, MalformedJSONError, RequestTimeoutError
from resumind.types import ReasoningLevel

logger = logging.getLogger(__name__)

ResponseFormat = Literal["json", "text"]
Message = dict[str, str]


@dataclass(slots=True)
class CompletionConfig:
    model: str
    chat_model: str
    temperature: float
    top_p: float
    max_completion_tokens: int
    chat_max_completion_tokens: int
    timeout_sec: float


def system_user(system: str, user: str) -> list[Message]:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


@contextmanager
def provider_errors(model: str) -> Iterator[None]:
    """Translate SDK transport failures into the app's error kinds."""
    try:
        yield
    except openai.APITimeoutError as exc:
        logger.warning("AI provider timed out model=%s", model)
        raise RequestTimeoutError("AI timeout") from exc
    except openai.APIConnectionError as exc:
        logger.warning("AI provider unreachable model=%s: %s", model, exc)
        raise AIServiceError() from exc
    except openai.APIStatusError as exc:
        logger.warning("AI provider returned status %s model=%s: %s", exc.status_code, model, exc.message)
        raise AIServiceError() from exc


class AIClient:
    """One hosted-model client shared by every request handler.

    Each call is attempted exactly once and raced against a deadline; the
    SDK's own retries are disabled.
    """

    def __init__(self, client: Any, config: CompletionConfig):
        self.client = client
        self.config = config

    @classmethod
    def from_settings(cls, settings: Settings) -> AIClient:
        if not settings.ai_api_key:
            raise RuntimeError("Missing required setting: AI_API_KEY")

        client = AsyncOpenAI(
            base_url=settings.ai_base_url,
            api_key=settings.ai_api_key,
            max_retries=0,
            timeout=max(settings.ai_timeout_sec, settings.ai_long_timeout_sec) + 30.0,
        )
        return cls(
            client,
            CompletionConfig(
                model=settings.ai_model,
                chat_model=settings.ai_chat_model,
                temperature=settings.ai_temperature,
                top_p=settings.ai_top_p,
                max_completion_tokens=settings.ai_max_completion_tokens,
                chat_max_completion_tokens=settings.ai_chat_max_completion_tokens,
                timeout_sec=settings.ai_timeout_sec,
            ),
        )

    async def request(
        self,
        messages: list[Message],
        *,
        reasoning_level: ReasoningLevel = "low",
        response_format: ResponseFormat = "json",
        timeout_sec: float | None = None,
    ) -> dict[str, Any] | str:
        deadline = timeout_sec if timeout_sec is not None else self.config.timeout_sec
        call = self.client.chat.completions.create(
            model=self.config.model,
            messages=messages,
            temperature=self.config.temperature,
            top_p=self.config.top_p,
            max_completion_tokens=self.config.max_completion_tokens,
            reasoning_effort=reasoning_level,
            stream=False,
            response_format={"type": "json_object" if response_format == "json" else "text"},
        )
        with provider_errors(self.config.model):
            completion = await race_deadline(call, deadline, self._timeout_failure(deadline))

        text = self._extract_chat_text(completion)
        if not text:
            logger.warning("AI returned no content model=%s", self.config.model)
            raise EmptyResponseError()

        if response_format == "json":
            return parse_json(text)
        return text

    async def request_json(self, messages: list[Message], **kwargs: Any) -> dict[str, Any]:
        return await self.request(messages, response_format="json", **kwargs)

    async def request_text(self, messages: list[Message], **kwargs: Any) -> str:
        return await self.request(messages, response_format="text", **kwargs)

    async def stream_chat(
        self,
        messages: list[Message],
        *,
        tools: list[dict[str, Any]] | None = None,
    ) -> AsyncIterator[Any]:
        with provider_errors(self.config.chat_model):
            return await self.client.chat.completions.create(
                model=self.config.chat_model,
                messages=messages,
                tools=tools or [],
                tool_choice="auto",
                stream=True,
                temperature=self.config.temperature,
                max_completion_tokens=self.config.chat_max_completion_tokens,
            )

    @staticmethod
    def _timeout_failure(deadline: float):
        def build() -> RequestTimeoutError:
            logger.warning("AI request exceeded %.1fs deadline; abandoning call", deadline)
            return RequestTimeoutError("AI timeout")

        return build

    @staticmethod
    def _extract_chat_text(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""

        message = getattr(choices[0], "message", None)
        if message is None:
            return ""

        content = getattr(message, "content", "")
        if isinstance(content, str):
            return content
        return ""


def strip_code_fence(content: str) -> str:
    candidate = content.strip()
    if not candidate.startswith("```"):
        return candidate

    candidate = candidate[3:]
    if candidate[:4].lower() == "json":
        candidate = candidate[4:]
    if candidate.rstrip().endswith("```"):
        candidate = candidate.rstrip()[:-3]
    return candidate.strip()


def parse_json(content: str) -> dict[str, Any]:
    candidate = strip_code_fence(content)
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse JSON model output: %s", exc)
        raise MalformedJSONError() from exc

    if not isinstance(value, dict):
        logger.warning("JSON model output is not an object: %s", type(value).__name__)
        raise MalformedJSONError()
    return value
