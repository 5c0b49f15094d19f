"""Stage 2: Textual Analysis – summary, sentiment, entities and keywords."""

from __future__ import annotations

from trustle.gemini import GeminiClient
from trustle.models import TextualAnalysisOutput

_MAX_TEXT_CHARS = 20000


def _build_textual_prompt(text: str) -> str:
    return f"""You are a Textual Analysis Agent working for a misinformation desk.
Read the content below and return a JSON object:
{{
  "summary": "3-4 sentence neutral summary",
  "sentiment": "Positive" | "Negative" | "Neutral",
  "entities": ["people, organisations and places that matter"],
  "keywords": ["5-10 key terms"]
}}

Content:
{text[:_MAX_TEXT_CHARS]}

Return valid JSON only."""


class TextualAnalyst:
    def __init__(self, client: GeminiClient) -> None:
        self._client = client

    def run(self, text: str) -> TextualAnalysisOutput:
        return self._client.generate(
            _build_textual_prompt(text), response_model=TextualAnalysisOutput
        )
