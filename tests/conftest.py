"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, TypeVar

import pytest
from pydantic import BaseModel

from trustle.config import Settings
from trustle.history import HistoryStore
from trustle.memory import MisinformationMemory
from trustle.models import (
    AgentStage,
    AnalysisResults,
    EmotionAnalysisOutput,
    HistoryItem,
    IngestionOutput,
    MediaFrame,
    PipelineState,
    SourceIntelligenceOutput,
    StageStatus,
    TextualAnalysisOutput,
)
from trustle.pipeline import Pipeline
from trustle.store import LocalStore

T = TypeVar("T", bound=BaseModel)


class MockChat:
    """A scripted chat: each send yields the next reply's chunks."""

    def __init__(self, system_instruction: str, replies: list[list[Any]]) -> None:
        self.system_instruction = system_instruction
        self.sent: list[str] = []
        self._replies = replies

    def send_stream(self, message: str) -> Iterator[str]:
        self.sent.append(message)
        chunks = self._replies.pop(0) if self._replies else []
        for chunk in chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk


class MockGeminiClient:
    """A mock Gemini client that returns pre-configured responses."""

    def __init__(self) -> None:
        self.call_count = 0
        self.prompts: list[str] = []
        self.calls: list[dict[str, Any]] = []
        self.stream_prompts: list[str] = []
        self.chats: list[MockChat] = []
        self._responses: list[Any] = []
        self._streams: list[list[Any]] = []
        self._chat_replies: list[list[Any]] = []

    def set_responses(self, responses: list[Any]) -> None:
        self._responses = list(responses)

    def set_streams(self, streams: list[list[Any]]) -> None:
        self._streams = list(streams)

    def set_chat_replies(self, replies: list[list[Any]]) -> None:
        # Chats already started share this list.
        self._chat_replies[:] = replies

    def generate(
        self,
        prompt: str,
        *,
        response_model: type[T] | None = None,
        use_search_grounding: bool = False,
        images: Sequence[MediaFrame] = (),
        temperature: float | None = None,
    ) -> str | T:
        self.call_count += 1
        self.prompts.append(prompt)
        self.calls.append(
            {"search": use_search_grounding, "images": list(images), "model": response_model}
        )

        if self._responses:
            resp = self._responses.pop(0)
            if isinstance(resp, Exception):
                raise resp
            if response_model is not None and isinstance(resp, dict):
                return response_model.model_validate(resp)
            return resp

        if response_model is not None:
            return response_model()
        return ""

    def generate_stream(self, prompt: str, *, temperature: float | None = None) -> Iterator[str]:
        self.call_count += 1
        self.stream_prompts.append(prompt)
        chunks = self._streams.pop(0) if self._streams else []
        for chunk in chunks:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    def start_chat(self, system_instruction: str) -> MockChat:
        chat = MockChat(system_instruction, self._chat_replies)
        self.chats.append(chat)
        return chat


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class StepClock:
    """Returns a strictly increasing, timezone-aware time on every call."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


@pytest.fixture
def mock_client() -> MockGeminiClient:
    return MockGeminiClient()


@pytest.fixture
def sample_settings(tmp_path: Path) -> Settings:
    return Settings(
        gemini_api_key="test-key",
        model_id="test-model",
        data_dir=str(tmp_path / "data"),
        namespace="alice",
        stage_cooldown_seconds=1.0,
    )


@pytest.fixture
def store(sample_settings: Settings) -> LocalStore:
    return LocalStore(sample_settings.data_dir)


@pytest.fixture
def history(store: LocalStore, sample_settings: Settings) -> HistoryStore:
    return HistoryStore(store, sample_settings.namespace)


@pytest.fixture
def memory(store: LocalStore, sample_settings: Settings) -> MisinformationMemory:
    return MisinformationMemory(store, sample_settings.namespace)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def pipeline(
    mock_client: MockGeminiClient,
    sample_settings: Settings,
    history: HistoryStore,
    memory: MisinformationMemory,
    sleeper: RecordingSleep,
) -> Pipeline:
    return Pipeline(
        mock_client,
        sample_settings,
        history,
        memory,
        sleep=sleeper,
        clock=StepClock(),
    )


@pytest.fixture
def textual_response() -> dict:
    return {
        "summary": "A city council approved a new transit budget.",
        "sentiment": "Neutral",
        "entities": ["City Council"],
        "keywords": ["transit", "budget"],
    }


@pytest.fixture
def emotion_response() -> dict:
    return {"dominant_emotion": "Trust", "manipulation_level": "Low"}


@pytest.fixture
def source_response() -> dict:
    return {
        "trust_score": 85,
        "source_validity": "High",
        "source_validity_explanation": "Established outlet.",
        "evidence": [{"finding": "Positive", "summary": "Corrections policy"}],
    }


def make_history_item(
    item_id: str,
    *,
    url: str = "https://example.com/a",
    report: str = "Report body",
    summary: str = "Summary",
) -> HistoryItem:
    state = PipelineState()
    for stage in AgentStage:
        state = state.with_stage(stage, StageStatus.COMPLETED, "done")
    return HistoryItem(
        id=item_id,
        url=url,
        report=report,
        timestamp=datetime.fromisoformat(item_id),
        pipeline_state=state,
        analysis_results=AnalysisResults(
            ingestion=IngestionOutput(text="Body", domain="example.com"),
            textual=TextualAnalysisOutput(summary=summary),
            emotion=EmotionAnalysisOutput(dominant_emotion="Calm"),
            source=SourceIntelligenceOutput(trust_score=70),
        ),
    )
