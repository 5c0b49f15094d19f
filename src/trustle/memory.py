"""Misinformation memory: domains previously found untrustworthy."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from trustle.errors import StorageError
from trustle.models import MisinformationFile, MisinformationRecord
from trustle.store import LocalStore

logger = logging.getLogger(__name__)

_DOCUMENT = "misinformation"


def normalize_domain(domain: str) -> str:
    return domain.strip().lower().rstrip(".")


class MisinformationMemory:
    """One record per domain; a later upsert for a domain replaces the earlier one."""

    def __init__(self, store: LocalStore, namespace: str) -> None:
        self._store = store
        self._namespace = namespace

    def _load(self) -> MisinformationFile:
        raw = self._store.load(self._namespace, _DOCUMENT)
        if raw is None:
            return MisinformationFile()
        try:
            return MisinformationFile.model_validate(raw)
        except ValidationError as exc:
            raise StorageError("Misinformation memory is corrupt") from exc

    def lookup(self, domain: str) -> MisinformationRecord | None:
        """Return the record for ``domain``; storage failures read as no record."""
        if not domain:
            return None
        try:
            data = self._load()
        except StorageError:
            logger.warning("Could not check misinformation memory for %s", domain, exc_info=True)
            return None
        return data.records.get(normalize_domain(domain))

    def upsert(self, record: MisinformationRecord) -> None:
        key = normalize_domain(record.domain)
        data = self._load()
        data.records[key] = record.model_copy(update={"domain": key})
        self._store.save(self._namespace, _DOCUMENT, data.model_dump_json(indent=2) + "\n")
        logger.info("Recorded %s in misinformation memory (trust score %.0f)", key, record.trust_score)

    def all(self) -> list[MisinformationRecord]:
        try:
            data = self._load()
        except StorageError:
            logger.warning("Could not read misinformation memory", exc_info=True)
            return []
        return sorted(data.records.values(), key=lambda r: r.timestamp, reverse=True)
