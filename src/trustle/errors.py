"""Error taxonomy and translation of failures into user-presentable messages."""

from __future__ import annotations

import httpx

from trustle.models import AgentStage


class TrustleError(Exception):
    """Base class for failures raised by the verification core."""


class IngestionError(TrustleError):
    """The submitted content could not be fetched or understood."""


class StageError(TrustleError):
    def __init__(self, stage: AgentStage, message: str) -> None:
        super().__init__(message)
        self.stage = stage


class PreconditionError(TrustleError):
    """A stage was reached without the upstream data it needs."""


class StorageError(TrustleError):
    """Reading or writing persisted state failed."""


class StreamError(TrustleError):
    """A streamed model response failed mid-flight."""


class ChatBusyError(TrustleError):
    """A chat message was sent while the previous reply was still streaming."""


_GENERIC_MESSAGE = "An unexpected error occurred. Please try again."

_STAGE_TEMPLATES = {
    AgentStage.INGESTION: (
        "Content Ingestion failed. Please check if the URL is correct and publicly "
        "accessible, or try a different source."
    ),
    AgentStage.TEXTUAL_ANALYSIS: (
        "Textual Analysis failed. The content from the source might be malformed or empty."
    ),
    AgentStage.EMOTION_ANALYSIS: (
        "Emotion Analysis failed. The model could not determine the emotional tone of the content."
    ),
    AgentStage.VISUAL_ANALYSIS: (
        "Visual Analysis failed. The uploaded media might be corrupted or in an unsupported format."
    ),
    AgentStage.SOURCE_INTELLIGENCE: (
        "Source Intelligence failed. The model could not verify the source's credibility, "
        "which can happen with new or obscure domains."
    ),
    AgentStage.FINAL_SYNTHESIS: (
        "Final Synthesis failed. The model could not generate a brief from the collected data."
    ),
}


def friendly_error_message(exc: BaseException | str | None) -> str:
    """Map an arbitrary failure cause to a short message fit for the user."""
    if exc is None:
        return _GENERIC_MESSAGE
    if isinstance(exc, httpx.TimeoutException):
        return "The request timed out. Please check your connection and try again."
    if isinstance(exc, httpx.TransportError):
        return "A network error occurred. Please check your connection and try again."

    # Wrapped causes carry the provider's original wording.
    if isinstance(exc, BaseException) and exc.__cause__ is not None and not str(exc):
        return friendly_error_message(exc.__cause__)

    text = str(exc).strip()
    lowered = text.lower()
    if "429" in text or "resource_exhausted" in lowered or "quota" in lowered:
        return "The AI service is currently busy (rate limit reached). Please wait a moment and try again."
    if "api key" in lowered or "permission_denied" in lowered or "401" in text or "403" in text:
        return "The AI service rejected the request. Please check that the API key is valid."
    if "timed out" in lowered or "timeout" in lowered:
        return "The request timed out. Please check your connection and try again."
    if "safety" in lowered or "blocked" in lowered:
        return "The request was blocked by the AI service's safety filters."
    if "500" in text or "503" in text or "unavailable" in lowered:
        return "The AI service is temporarily unavailable. Please try again later."
    return text or _GENERIC_MESSAGE


def stage_failure_message(stage: AgentStage | None, friendly: str) -> str:
    if stage is None:
        return f"Pipeline failed: {friendly}"
    template = _STAGE_TEMPLATES.get(stage)
    if template is None:
        return f"An error occurred during the '{stage.value}' step. Details: {friendly}"
    return f"{template} Details: {friendly}"
