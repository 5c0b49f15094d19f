"""Stage 4: Visual Analysis – manipulation cues in an image or sampled video frames."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from trustle.gemini import GeminiClient
from trustle.models import MediaFrame, VisualAnalysisOutput

logger = logging.getLogger(__name__)


def _build_visual_prompt(frame_count: int) -> str:
    subject = "this image" if frame_count == 1 else f"these {frame_count} frames taken in order from one video"
    return f"""You are a Visual Analysis Agent specialised in media forensics.
Examine {subject} for signs of editing, AI generation, missing context or misleading framing.

Return a JSON object:
{{
  "visual_insights": [
    {{
      "description": "what is shown",
      "manipulation_flag": "Low" | "Medium" | "High",
      "explanation": "evidence for the flag"
    }}
  ]
}}

Put the overall assessment first. Return valid JSON only."""


class VisualAnalyst:
    def __init__(self, client: GeminiClient) -> None:
        self._client = client

    def run(self, frames: Sequence[MediaFrame]) -> VisualAnalysisOutput:
        if not frames:
            raise ValueError("No image data to analyze")
        logger.info("Visual: analysing %d frame(s)", len(frames))
        return self._client.generate(
            _build_visual_prompt(len(frames)),
            response_model=VisualAnalysisOutput,
            images=frames,
        )
