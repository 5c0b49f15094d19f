"""Local JSON document store addressed by namespace."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from trustle.errors import StorageError

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def _safe_name(value: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", value.strip()).strip("._")
    return cleaned or "default"


class LocalStore:
    """Keeps one JSON document per ``(namespace, name)`` under ``root``.

    Independent namespaces never share files. Every failure to read, decode,
    write or remove a document is raised as ``StorageError``; callers decide
    whether to recover.
    """

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    def path_for(self, namespace: str, name: str) -> Path:
        return self._root / _safe_name(namespace) / f"{_safe_name(name)}.json"

    def load(self, namespace: str, name: str) -> Any | None:
        path = self.path_for(namespace, name)
        try:
            if not path.exists():
                return None
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageError(f"Could not read {path}") from exc

    def save(self, namespace: str, name: str, document: str) -> None:
        """Write an already-serialised JSON document."""
        path = self.path_for(namespace, name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".json.tmp")
            tmp.write_text(document, encoding="utf-8")
            tmp.replace(path)
        except OSError as exc:
            raise StorageError(f"Could not write {path}") from exc

    def remove(self, namespace: str, name: str) -> None:
        path = self.path_for(namespace, name)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Could not remove {path}") from exc
