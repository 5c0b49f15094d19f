"""Thin wrapper around the Google GenAI client: structured, streamed and chat calls."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Any, TypeVar

from google import genai
from google.genai import types
from pydantic import BaseModel

from trustle.config import Settings
from trustle.extraction import RawFallback, extract_json
from trustle.models import MediaFrame

logger = logging.getLogger(__name__)
T = TypeVar("T", bound=BaseModel)


class GeminiChat:
    """A multi-turn chat whose replies arrive as a lazy sequence of text chunks."""

    def __init__(self, chat: Any) -> None:
        self._chat = chat

    def send_stream(self, message: str) -> Iterator[str]:
        for chunk in self._chat.send_message_stream(message):
            if chunk.text:
                yield chunk.text


class GeminiClient:
    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client = genai.Client(api_key=settings.gemini_api_key)
        self._model_id = settings.model_id
        self.call_count = 0

    def generate(
        self,
        prompt: str,
        *,
        response_model: type[T] | None = None,
        use_search_grounding: bool = False,
        images: Sequence[MediaFrame] = (),
        temperature: float | None = None,
    ) -> str | T:
        """Generate content, optionally with structured output, search grounding or images.

        Search grounding cannot be combined with a response schema, so grounded
        calls that want a model are parsed from the free-text reply instead.
        """
        config_kwargs: dict[str, Any] = {
            "temperature": self._settings.temperature if temperature is None else temperature,
        }
        if use_search_grounding:
            config_kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]

        use_native_schema = response_model is not None and not use_search_grounding
        if use_native_schema:
            config_kwargs["response_mime_type"] = "application/json"
            config_kwargs["response_schema"] = response_model

        response = self._client.models.generate_content(
            model=self._model_id,
            contents=_contents(prompt, images),
            config=types.GenerateContentConfig(**config_kwargs),
        )
        self.call_count += 1
        response_text = response.text or ""

        if response_model is None:
            return response_text
        if use_native_schema:
            return response_model.model_validate_json(response_text)
        return self._parse_model_from_text(response_text, response_model)

    def generate_stream(self, prompt: str, *, temperature: float | None = None) -> Iterator[str]:
        """Stream a free-text reply. The iterator is finite and cannot be restarted."""
        config = types.GenerateContentConfig(
            temperature=self._settings.temperature if temperature is None else temperature,
        )
        self.call_count += 1
        for chunk in self._client.models.generate_content_stream(
            model=self._model_id,
            contents=prompt,
            config=config,
        ):
            if chunk.text:
                yield chunk.text

    def start_chat(self, system_instruction: str) -> GeminiChat:
        chat = self._client.chats.create(
            model=self._model_id,
            config=types.GenerateContentConfig(system_instruction=system_instruction),
        )
        return GeminiChat(chat)

    @staticmethod
    def _parse_model_from_text(text: str, model: type[T]) -> T:
        extracted = extract_json(text)
        if isinstance(extracted, RawFallback):
            raise ValueError(f"Model reply did not contain JSON for {model.__name__}")
        return model.model_validate(extracted.data)


def _contents(prompt: str, images: Sequence[MediaFrame]) -> Any:
    if not images:
        return prompt
    parts: list[Any] = [
        types.Part.from_bytes(data=image.data, mime_type=image.mime_type) for image in images
    ]
    parts.append(prompt)
    return parts
