"""Stage 1: Content Ingestion – turn a submission into text and a source domain."""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from trustle.errors import IngestionError
from trustle.extraction import RawFallback, extract_json
from trustle.gemini import GeminiClient
from trustle.models import IngestionOutput, Submission

logger = logging.getLogger(__name__)


def domain_of(url: str) -> str:
    """Hostname of ``url``; a missing scheme is read as https."""
    candidate = url.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"
    host = urlparse(candidate).hostname
    if not host:
        raise IngestionError(f"Invalid URL: {url}")
    return host.lower()


def _build_ingestion_prompt(url: str) -> str:
    return f"""You are a Content Ingestion Agent. Your task is to act as a web scraper.
Access the content of the following URL and extract the main article text.

URL: {url}

Your response must be a single JSON object inside a markdown code block, like this:
```json
{{
  "text": "The full extracted text of the article goes here..."
}}
```
If you cannot access the URL or find any main content, return an empty string for the "text" value."""


class ContentIngestion:
    def __init__(self, client: GeminiClient) -> None:
        self._client = client

    def run(self, submission: Submission) -> tuple[IngestionOutput, str]:
        """Return the ingested content and a status detail for the stage."""
        if submission.url:
            return self._ingest_url(submission.url)
        if submission.text:
            return IngestionOutput(text=submission.text, domain=""), "Text processed"
        return IngestionOutput(text="", domain=""), "Media received"

    def _ingest_url(self, url: str) -> tuple[IngestionOutput, str]:
        domain = domain_of(url)
        response = self._client.generate(_build_ingestion_prompt(url), use_search_grounding=True)

        extracted = extract_json(response)
        if isinstance(extracted, RawFallback):
            logger.warning("Ingestion reply for %s was not JSON, using raw text", url)
            text = extracted.text
        elif isinstance(extracted.data, dict):
            text = str(extracted.data.get("text") or "")
        else:
            text = str(extracted.data)

        text = text.strip()
        detail = "Text extracted" if text else "No main text found"
        logger.info("Ingestion: %d chars from %s", len(text), domain)
        return IngestionOutput(text=text, domain=domain), detail
