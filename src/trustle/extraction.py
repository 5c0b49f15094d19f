"""Defensive extraction of a JSON payload from free-form model output.

Models asked for JSON do not always comply. ``extract_json`` tries, in order:

1. a fenced ```json code block,
2. the span between the first ``{`` and the last ``}``,
3. the raw text itself.

The first candidate that decodes yields ``Structured``. When none does, the
result is a ``RawFallback`` holding the earliest candidate. ``RawFallback`` is
a degraded mode: callers must decide what the raw text means for them.
Fences tagged with another language are treated as prose.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Union

_FENCE_RE = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)


@dataclass(frozen=True)
class Structured:
    data: Any


@dataclass(frozen=True)
class RawFallback:
    text: str


Extraction = Union[Structured, RawFallback]


def _candidates(text: str) -> list[str]:
    found = []
    match = _FENCE_RE.search(text)
    if match and match.group(1):
        found.append(match.group(1))
    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        found.append(text[start : end + 1])
    return found or [text]


def extract_json(text: str | None) -> Extraction:
    raw = (text or "").strip()
    candidates = _candidates(raw)
    for candidate in candidates:
        try:
            return Structured(json.loads(candidate))
        except ValueError:
            continue
    return RawFallback(candidates[0].strip())
