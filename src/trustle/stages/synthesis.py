"""Stage 6: Final Synthesis – stream the verification brief."""

from __future__ import annotations

from collections.abc import Iterator

from trustle.gemini import GeminiClient
from trustle.models import AnalysisResults


def _build_synthesis_prompt(results: AnalysisResults) -> str:
    findings = results.model_dump_json(indent=2, exclude_none=True)
    return f"""You are the lead analyst of a misinformation desk. Independent agents have
examined one piece of content. Their findings:

{findings}

Write a verification brief in markdown with these sections:
## Verdict
## Key Findings
## Source Credibility
## Emotional & Visual Manipulation
## Recommendations

Be specific, cite the findings above, and say plainly when evidence is missing."""


class FinalSynthesis:
    def __init__(self, client: GeminiClient) -> None:
        self._client = client

    def stream(self, results: AnalysisResults) -> Iterator[str]:
        return self._client.generate_stream(_build_synthesis_prompt(results))
