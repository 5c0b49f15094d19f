"""Pipeline orchestrator – runs the six analysis stages for one submission."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from trustle.chat import ChatSession, FollowUpChat
from trustle.config import Settings
from trustle.errors import (
    IngestionError,
    PreconditionError,
    StageError,
    StorageError,
    StreamError,
    TrustleError,
    friendly_error_message,
    stage_failure_message,
)
from trustle.gemini import GeminiClient
from trustle.history import HistoryStore
from trustle.media import FrameExtractor, as_frame
from trustle.memory import MisinformationMemory
from trustle.models import (
    STAGE_ORDER,
    AgentStage,
    AnalysisResults,
    HistoryItem,
    MisinformationRecord,
    PipelineState,
    StageStatus,
    Submission,
)
from trustle.stages.emotion import EmotionAnalyst
from trustle.stages.ingestion import ContentIngestion, domain_of
from trustle.stages.source import SourceIntelligence
from trustle.stages.synthesis import FinalSynthesis
from trustle.stages.textual import TextualAnalyst
from trustle.stages.visual import VisualAnalyst
from trustle.streaming import ChunkCallback, StreamBuffer

logger = logging.getLogger(__name__)

Observer = Callable[[PipelineState, AnalysisResults], None]

REPORT_GREETING = "I've generated the brief. What specific details would you like to explore?"
NO_DATA_MESSAGE = "No data available to generate a brief. Provide a URL, image, or text."

_RUNNING_DETAILS = {
    AgentStage.TEXTUAL_ANALYSIS: "Analyzing text...",
    AgentStage.EMOTION_ANALYSIS: "Analyzing emotional tone...",
    AgentStage.VISUAL_ANALYSIS: "Analyzing uploaded media...",
    AgentStage.SOURCE_INTELLIGENCE: "Verifying source credibility...",
    AgentStage.FINAL_SYNTHESIS: "Generating final brief...",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PipelineRun:
    """Outcome of one run. On failure ``error`` holds the single user-facing message."""

    submission: Submission
    state: PipelineState = field(default_factory=PipelineState)
    results: AnalysisResults = field(default_factory=AnalysisResults)
    report: str = ""
    warning: MisinformationRecord | None = None
    error: str | None = None
    failure: TrustleError | None = None
    failed_stage: AgentStage | None = None
    history_item: HistoryItem | None = None
    chat: ChatSession | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.history_item is not None


class _Tracker:
    """Applies transitions to a run and publishes a snapshot after each one."""

    def __init__(self, run: PipelineRun, observer: Observer | None) -> None:
        self._run = run
        self._observer = observer

    def transition(self, stage: AgentStage, status: StageStatus, detail: str = "") -> None:
        self._run.state = self._run.state.with_stage(stage, status, detail)
        logger.debug("%s -> %s (%s)", stage.value, status.value, detail)
        if self._observer is not None:
            self._observer(self._run.state, self._run.results)

    def record(self, **outputs: object) -> None:
        self._run.results = self._run.results.model_copy(update=outputs)


class Pipeline:
    def __init__(
        self,
        client: GeminiClient,
        settings: Settings,
        history: HistoryStore,
        memory: MisinformationMemory,
        *,
        frame_extractor: FrameExtractor | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._settings = settings
        self._history = history
        self._memory = memory
        self._frame_extractor = frame_extractor
        self._sleep = sleep
        self._clock = clock
        self._ingestion = ContentIngestion(client)
        self._textual = TextualAnalyst(client)
        self._emotion = EmotionAnalyst(client)
        self._visual = VisualAnalyst(client)
        self._source = SourceIntelligence(client)
        self._synthesis = FinalSynthesis(client)
        self._chat = FollowUpChat(client)

    def check_source(self, url: str) -> MisinformationRecord | None:
        """Previously flagged record for the URL's domain, if any."""
        if not url:
            return None
        try:
            return self._memory.lookup(domain_of(url))
        except IngestionError:
            logger.warning("Could not check misinformation memory for %r", url)
            return None

    def run(
        self,
        submission: Submission,
        *,
        observer: Observer | None = None,
        on_report_chunk: ChunkCallback | None = None,
    ) -> PipelineRun:
        run = PipelineRun(submission=submission)
        run.warning = self.check_source(submission.url)
        if run.warning is not None:
            logger.warning(
                "%s was flagged before with trust score %.0f",
                run.warning.domain,
                run.warning.trust_score,
            )

        tracker = _Tracker(run, observer)
        invoked = False

        for stage in STAGE_ORDER:
            if stage is AgentStage.FINAL_SYNTHESIS and not (run.results.textual or run.results.visual):
                return self._fail(run, None, PreconditionError(NO_DATA_MESSAGE))

            skip_reason = self._skip_reason(stage, submission, run.results)
            if skip_reason:
                tracker.transition(stage, StageStatus.SKIPPED, skip_reason)
                continue

            if invoked:
                self._sleep(self._settings.stage_cooldown_seconds)
            invoked = True

            logger.info("=== Stage: %s ===", stage.value)
            tracker.transition(stage, StageStatus.RUNNING, self._running_detail(stage, submission))
            try:
                detail = self._execute(stage, submission, run, tracker, on_report_chunk)
            except Exception as exc:
                return self._fail(run, stage, exc, tracker)
            tracker.transition(stage, StageStatus.COMPLETED, detail)

        self._finish(run)
        return run

    # --- stage dispatch ---

    @staticmethod
    def _skip_reason(stage: AgentStage, submission: Submission, results: AnalysisResults) -> str:
        text = results.ingestion.text if results.ingestion else ""
        if stage is AgentStage.INGESTION and submission.is_empty:
            return "No input provided"
        if stage in (AgentStage.TEXTUAL_ANALYSIS, AgentStage.EMOTION_ANALYSIS) and not text:
            return "No text to analyze"
        if stage is AgentStage.VISUAL_ANALYSIS and submission.image is None and submission.video is None:
            return "No visual media uploaded"
        if stage is AgentStage.SOURCE_INTELLIGENCE and not (results.ingestion and results.ingestion.domain):
            return "No domain to verify"
        return ""

    @staticmethod
    def _running_detail(stage: AgentStage, submission: Submission) -> str:
        if stage is AgentStage.INGESTION:
            if submission.url:
                return "Ingesting content from URL..."
            if submission.text:
                return "Processing direct text..."
            return "Receiving media..."
        return _RUNNING_DETAILS[stage]

    def _execute(
        self,
        stage: AgentStage,
        submission: Submission,
        run: PipelineRun,
        tracker: _Tracker,
        on_report_chunk: ChunkCallback | None,
    ) -> str:
        """Run one stage, record its output and return the completion detail."""
        results = run.results

        if stage is AgentStage.INGESTION:
            ingestion, detail = self._ingestion.run(submission)
            tracker.record(ingestion=ingestion)
            return detail

        if stage is AgentStage.TEXTUAL_ANALYSIS:
            tracker.record(textual=self._textual.run(results.ingestion.text))
            return "Summary and entities extracted"

        if stage is AgentStage.EMOTION_ANALYSIS:
            emotion = self._emotion.run(results.ingestion.text)
            tracker.record(emotion=emotion)
            return f"Emotion: {emotion.dominant_emotion}"

        if stage is AgentStage.VISUAL_ANALYSIS:
            return self._analyze_media(submission, tracker)

        if stage is AgentStage.SOURCE_INTELLIGENCE:
            domain = results.ingestion.domain
            source = self._source.run(domain)
            tracker.record(source=source)
            if source.trust_score < self._settings.misinformation_threshold:
                self._remember(domain, submission.url, source.trust_score)
            return f"Credibility: {source.source_validity}"

        buffer = StreamBuffer(self._synthesis.stream(results))
        for chunk in buffer:
            run.report = buffer.text
            if on_report_chunk is not None:
                on_report_chunk(chunk)
        if not buffer.text.strip():
            raise ValueError("The model returned an empty brief")
        return "Brief generated successfully"

    def _analyze_media(self, submission: Submission, tracker: _Tracker) -> str:
        stage = AgentStage.VISUAL_ANALYSIS
        if submission.image is not None:
            tracker.transition(stage, StageStatus.RUNNING, "Analyzing uploaded image...")
            tracker.record(visual=self._visual.run([as_frame(submission.image)]))
            return "Image analysis complete"

        if self._frame_extractor is None:
            raise StageError(stage, "Video analysis requires a media decoder, none is configured")
        tracker.transition(stage, StageStatus.RUNNING, "Extracting frames from video...")
        frames = self._frame_extractor.extract_frames(
            submission.video, self._settings.video_frame_count
        )
        tracker.transition(stage, StageStatus.RUNNING, "Analyzing video frames...")
        tracker.record(visual=self._visual.run(frames))
        return "Video analysis complete"

    def _remember(self, domain: str, url: str, trust_score: float) -> None:
        record = MisinformationRecord(
            domain=domain,
            url=url,
            trust_score=trust_score,
            timestamp=self._clock(),
        )
        try:
            self._memory.upsert(record)
        except StorageError:
            logger.warning("Failed to save misinformation record for %s", domain, exc_info=True)

    # --- completion ---

    def _finish(self, run: PipelineRun) -> None:
        now = self._clock()
        newest = self._history.newest()
        if newest is not None and now <= newest.timestamp:
            now = newest.timestamp + timedelta(microseconds=1)

        run.history_item = HistoryItem(
            id=now.isoformat(),
            url=run.submission.descriptor(),
            report=run.report,
            timestamp=now,
            pipeline_state=run.state,
            analysis_results=run.results,
        )
        self._history.append(run.history_item)
        logger.info("Run %s complete (%d chars)", run.history_item.id, len(run.report))

        try:
            run.chat = self._chat.start(run.report, greeting=REPORT_GREETING)
        except Exception:
            logger.warning("Could not open a follow-up chat for run %s", run.history_item.id, exc_info=True)

    def _fail(
        self,
        run: PipelineRun,
        stage: AgentStage | None,
        exc: Exception,
        tracker: _Tracker | None = None,
    ) -> PipelineRun:
        friendly = friendly_error_message(exc)
        logger.error("Pipeline failed at %s: %s", stage.value if stage else "start", exc, exc_info=exc)

        if isinstance(exc, TrustleError) and not isinstance(exc, StageError):
            failure: TrustleError = exc
        elif stage is AgentStage.INGESTION:
            failure = IngestionError(friendly)
        elif stage is AgentStage.FINAL_SYNTHESIS:
            failure = StreamError(friendly)
        else:
            failure = StageError(stage, friendly)
        if failure is not exc:
            failure.__cause__ = exc

        if stage is not None and tracker is not None:
            tracker.transition(stage, StageStatus.ERROR, friendly)
        run.failure = failure
        run.failed_stage = stage
        run.error = stage_failure_message(stage, friendly)
        return run
