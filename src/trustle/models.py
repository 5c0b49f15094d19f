"""Pydantic data models for the verification pipeline."""

from __future__ import annotations

import math
from datetime import datetime
from enum import Enum
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

Sentiment = Literal["Positive", "Negative", "Neutral"]
Level = Literal["Low", "Medium", "High"]

# --- Pipeline state ---


class AgentStage(str, Enum):
    INGESTION = "Content Ingestion"
    TEXTUAL_ANALYSIS = "Textual Analysis"
    EMOTION_ANALYSIS = "Emotion Analysis"
    VISUAL_ANALYSIS = "Visual Analysis"
    SOURCE_INTELLIGENCE = "Source Intelligence"
    FINAL_SYNTHESIS = "Final Synthesis"


STAGE_ORDER: tuple[AgentStage, ...] = tuple(AgentStage)


class StageStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (StageStatus.COMPLETED, StageStatus.SKIPPED, StageStatus.ERROR)


class StageState(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: StageStatus = StageStatus.PENDING
    detail: str = ""


def _initial_stages() -> dict[AgentStage, StageState]:
    return {stage: StageState() for stage in STAGE_ORDER}


class PipelineState(BaseModel):
    """Status of every stage in one run.

    Always holds exactly one entry per stage, in stage order. Instances are
    never mutated: ``with_stage`` returns a new snapshot with a single entry
    replaced, so observers never see a half-applied transition.
    """

    model_config = ConfigDict(frozen=True)

    stages: dict[AgentStage, StageState] = Field(default_factory=_initial_stages)

    @field_validator("stages")
    @classmethod
    def _complete(cls, value: dict[AgentStage, StageState]) -> dict[AgentStage, StageState]:
        return {stage: value.get(stage, StageState()) for stage in STAGE_ORDER}

    def with_stage(self, stage: AgentStage, status: StageStatus, detail: str = "") -> PipelineState:
        stages = dict(self.stages)
        stages[stage] = StageState(status=status, detail=detail)
        return PipelineState(stages=stages)

    def status_of(self, stage: AgentStage) -> StageStatus:
        return self.stages[stage].status

    def detail_of(self, stage: AgentStage) -> str:
        return self.stages[stage].detail

    def running_stage(self) -> AgentStage | None:
        for stage, state in self.stages.items():
            if state.status is StageStatus.RUNNING:
                return stage
        return None

    @property
    def is_settled(self) -> bool:
        return all(state.status.is_terminal for state in self.stages.values())


# --- Stage outputs ---
#
# Grounded replies are parsed from free text without a schema, so labels are
# normalised and scores clamped instead of rejected.


def _label(value: Any, choices: tuple[str, ...], default: str) -> str:
    if isinstance(value, str):
        label = value.strip().title()
        if label in choices:
            return label
    return default


class IngestionOutput(BaseModel):
    text: str = ""
    domain: str = ""  # empty unless the submission was a URL


class TextualAnalysisOutput(BaseModel):
    summary: str = ""
    sentiment: Sentiment = "Neutral"
    entities: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)

    @field_validator("sentiment", mode="before")
    @classmethod
    def _sentiment(cls, value: Any) -> str:
        return _label(value, get_args(Sentiment), "Neutral")


class EmotionAnalysisOutput(BaseModel):
    dominant_emotion: str = ""
    manipulation_level: Level = "Low"
    explanation: str = ""

    @field_validator("manipulation_level", mode="before")
    @classmethod
    def _level(cls, value: Any) -> str:
        return _label(value, get_args(Level), "Low")


class VisualInsight(BaseModel):
    description: str = ""
    manipulation_flag: Level = "Low"
    explanation: str = ""

    @field_validator("manipulation_flag", mode="before")
    @classmethod
    def _level(cls, value: Any) -> str:
        return _label(value, get_args(Level), "Low")


class VisualAnalysisOutput(BaseModel):
    visual_insights: list[VisualInsight] = Field(default_factory=list)


class SourceEvidence(BaseModel):
    finding: Sentiment = "Neutral"
    summary: str = ""
    source: str = ""

    @field_validator("finding", mode="before")
    @classmethod
    def _finding(cls, value: Any) -> str:
        return _label(value, get_args(Sentiment), "Neutral")


class SourceIntelligenceOutput(BaseModel):
    trust_score: float = Field(default=50, ge=0, le=100)
    source_validity: str = ""
    source_validity_explanation: str = ""
    evidence: list[SourceEvidence] = Field(default_factory=list)

    @field_validator("trust_score", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> float:
        try:
            score = float(value)
        except (TypeError, ValueError):
            return 50
        if math.isnan(score):
            return 50
        return min(max(score, 0.0), 100.0)


class AnalysisResults(BaseModel):
    """Additive record of stage outputs; a field is set only when its stage completed."""

    ingestion: IngestionOutput | None = None
    textual: TextualAnalysisOutput | None = None
    emotion: EmotionAnalysisOutput | None = None
    visual: VisualAnalysisOutput | None = None
    source: SourceIntelligenceOutput | None = None


class RiskAssessment(BaseModel):
    score: int = Field(default=0, ge=0, le=100)
    breakdown: list[str] = Field(default_factory=list)


# --- Submission ---


class MediaInput(BaseModel):
    name: str
    data: bytes
    mime_type: str


class MediaFrame(BaseModel):
    data: bytes
    mime_type: str = "image/jpeg"


class Submission(BaseModel):
    url: str = ""
    text: str = ""
    image: MediaInput | None = None
    video: MediaInput | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.url or self.text or self.image or self.video)

    def descriptor(self) -> str:
        if self.url:
            return self.url
        if self.text:
            return "Direct Text Input"
        if self.image is not None:
            return self.image.name
        if self.video is not None:
            return self.video.name
        return ""


# --- Misinformation memory ---


class MisinformationRecord(BaseModel):
    domain: str
    url: str = ""
    trust_score: float
    timestamp: datetime


class MisinformationFile(BaseModel):
    records: dict[str, MisinformationRecord] = Field(default_factory=dict)  # domain -> record


# --- History ---


class HistoryItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    url: str
    report: str = ""
    timestamp: datetime
    pipeline_state: PipelineState = Field(default_factory=PipelineState)
    analysis_results: AnalysisResults = Field(default_factory=AnalysisResults)


class HistoryFile(BaseModel):
    items: list[HistoryItem] = Field(default_factory=list)  # newest first


# --- Chat ---


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"]
    content: str = ""
