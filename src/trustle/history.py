"""History of completed analysis runs, newest first."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from trustle.errors import StorageError
from trustle.models import HistoryFile, HistoryItem
from trustle.store import LocalStore

logger = logging.getLogger(__name__)

_DOCUMENT = "history"


class HistoryStore:
    """In-memory list of runs mirrored to a ``LocalStore`` on a best-effort basis.

    A failed write is logged and never rolls back the in-memory change: the
    run already happened and the user keeps its result for this session.
    """

    def __init__(self, store: LocalStore, namespace: str) -> None:
        self._store = store
        self._namespace = namespace
        self._data = HistoryFile()

    def load(self) -> list[HistoryItem]:
        try:
            raw = self._store.load(self._namespace, _DOCUMENT)
            self._data = HistoryFile() if raw is None else HistoryFile.model_validate(raw)
        except (StorageError, ValidationError):
            logger.warning("Could not load history for %s, starting empty", self._namespace, exc_info=True)
            self._data = HistoryFile()
        return self.all()

    def save(self) -> None:
        try:
            self._store.save(
                self._namespace,
                _DOCUMENT,
                self._data.model_dump_json(indent=2) + "\n",
            )
        except StorageError:
            logger.warning("Could not persist history for %s", self._namespace, exc_info=True)

    def append(self, item: HistoryItem) -> None:
        self._data.items = [item, *self._data.items]
        self.save()

    def all(self) -> list[HistoryItem]:
        return list(self._data.items)

    def find_by_id(self, item_id: str) -> HistoryItem | None:
        for item in self._data.items:
            if item.id == item_id:
                return item
        return None

    def select(self, ids: list[str]) -> list[HistoryItem]:
        """Items whose id is in ``ids``, in history order."""
        wanted = set(ids)
        return [item for item in self._data.items if item.id in wanted]

    def newest(self) -> HistoryItem | None:
        return self._data.items[0] if self._data.items else None

    def clear(self) -> None:
        self._data = HistoryFile()
        try:
            self._store.remove(self._namespace, _DOCUMENT)
        except StorageError:
            logger.warning("Could not clear persisted history for %s", self._namespace, exc_info=True)
