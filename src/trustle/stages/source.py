"""Stage 5: Source Intelligence – credibility of the publishing domain."""

from __future__ import annotations

import logging

from trustle.gemini import GeminiClient
from trustle.models import SourceIntelligenceOutput

logger = logging.getLogger(__name__)


def _build_source_prompt(domain: str) -> str:
    return f"""You are a Source Intelligence Agent. Research the credibility of the domain
"{domain}" using web search: ownership, editorial standards, fact-check history, and
how other outlets and fact-checkers describe it.

Return a JSON object inside a markdown code block:
```json
{{
  "trust_score": 0-100,
  "source_validity": "High" | "Medium" | "Low",
  "source_validity_explanation": "2-3 sentences",
  "evidence": [
    {{"finding": "Positive" | "Negative" | "Neutral", "summary": "what was found", "source": "where"}}
  ]
}}
```"""


class SourceIntelligence:
    def __init__(self, client: GeminiClient) -> None:
        self._client = client

    def run(self, domain: str) -> SourceIntelligenceOutput:
        result = self._client.generate(
            _build_source_prompt(domain),
            response_model=SourceIntelligenceOutput,
            use_search_grounding=True,
        )
        logger.info("Source: %s scored %.0f", domain, result.trust_score)
        return result
