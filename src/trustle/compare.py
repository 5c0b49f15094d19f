"""Comparative synthesis across several stored analyses."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence

from trustle.errors import StreamError, friendly_error_message
from trustle.gemini import GeminiClient
from trustle.models import HistoryItem

logger = logging.getLogger(__name__)

_MAX_REPORT_CHARS = 6000
MIN_ITEMS = 2


def _describe(index: int, item: HistoryItem) -> str:
    results = item.analysis_results
    summary = results.textual.summary if results.textual else "N/A"
    trust = f"{results.source.trust_score:.0f}/100" if results.source else "not assessed"
    return f"""[ANALYSIS {index} source="{item.url}" analysed="{item.timestamp.date().isoformat()}"]
Summary: {summary}
Trust score: {trust}
Report:
{item.report[:_MAX_REPORT_CHARS]}
[/ANALYSIS {index}]"""


def _build_comparison_prompt(items: Sequence[HistoryItem]) -> str:
    blocks = "\n\n".join(_describe(i + 1, item) for i, item in enumerate(items))
    return f"""You are an intelligence analyst comparing {len(items)} earlier verification briefs.

{blocks}

Write a comparative brief in markdown:
## Overview
## Points of Agreement
## Contradictions
## Relative Source Credibility
## Overall Assessment

Refer to each analysis by its source."""


class ComparativeSynthesis:
    def __init__(self, client: GeminiClient) -> None:
        self._client = client

    def compare(self, items: Sequence[HistoryItem]) -> Iterator[str]:
        """Stream a brief comparing ``items``.

        Fewer than two items is a no-op: the iterator is empty and no model call
        is made. A failure mid-stream raises ``StreamError`` prefixed
        "Comparison failed"; chunks already yielded stand.
        """
        if len(items) < MIN_ITEMS:
            return
        logger.info("Comparing %d analyses", len(items))
        try:
            yield from self._client.generate_stream(_build_comparison_prompt(items))
        except Exception as exc:
            logger.exception("Comparison stream failed")
            raise StreamError(f"Comparison failed: {friendly_error_message(exc)}") from exc
