"""Stage 3: Emotion Analysis – dominant emotion and manipulation level."""

from __future__ import annotations

from trustle.gemini import GeminiClient
from trustle.models import EmotionAnalysisOutput

_MAX_TEXT_CHARS = 20000


def _build_emotion_prompt(text: str) -> str:
    return f"""You are an Emotion Analysis Agent. Assess the emotional tone of the content
below and how strongly it tries to manipulate the reader's emotions.

Content:
{text[:_MAX_TEXT_CHARS]}

Return a JSON object:
{{
  "dominant_emotion": "e.g. Fear, Anger, Joy, Sadness, Trust, Surprise",
  "manipulation_level": "Low" | "Medium" | "High",
  "explanation": "1-2 sentences on the techniques used, if any"
}}

Return valid JSON only."""


class EmotionAnalyst:
    def __init__(self, client: GeminiClient) -> None:
        self._client = client

    def run(self, text: str) -> EmotionAnalysisOutput:
        return self._client.generate(
            _build_emotion_prompt(text), response_model=EmotionAnalysisOutput
        )
