"""Session controller tying runs, history, comparison and follow-up chat together."""

from __future__ import annotations

import logging
from pathlib import Path

from trustle.chat import ChatSession, FollowUpChat
from trustle.compare import MIN_ITEMS, ComparativeSynthesis
from trustle.config import Settings
from trustle.errors import ChatBusyError, StreamError, friendly_error_message
from trustle.gemini import GeminiClient
from trustle.history import HistoryStore
from trustle.media import FrameExtractor
from trustle.memory import MisinformationMemory
from trustle.models import (
    AnalysisResults,
    ChatMessage,
    HistoryItem,
    MisinformationRecord,
    PipelineState,
    Submission,
)
from trustle.pipeline import Observer, Pipeline, PipelineRun
from trustle.store import LocalStore
from trustle.streaming import ChunkCallback

logger = logging.getLogger(__name__)

HISTORY_GREETING = "This is a past report. Feel free to ask me any questions about it."


class Workspace:
    """Everything one user sees: the current run, history, comparison and chat.

    Starting a new analysis or opening a history item abandons whatever came
    before. Each of those bumps ``epoch``; observer updates and stream chunks
    that belong to an older epoch are dropped instead of being applied.
    """

    def __init__(
        self,
        client: GeminiClient,
        settings: Settings,
        history: HistoryStore,
        memory: MisinformationMemory,
        pipeline: Pipeline | None = None,
    ) -> None:
        self._settings = settings
        self.history = history
        self.memory = memory
        self._pipeline = pipeline or Pipeline(client, settings, history, memory)
        self._comparison = ComparativeSynthesis(client)
        self._chat_factory = FollowUpChat(client)
        self.epoch = 0
        self.warning: MisinformationRecord | None = None
        self._reset()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        client: GeminiClient | None = None,
        frame_extractor: FrameExtractor | None = None,
    ) -> Workspace:
        client = client or GeminiClient(settings)
        store = LocalStore(Path(settings.data_dir))
        history = HistoryStore(store, settings.namespace)
        history.load()
        memory = MisinformationMemory(store, settings.namespace)
        pipeline = Pipeline(client, settings, history, memory, frame_extractor=frame_extractor)
        return cls(client, settings, history, memory, pipeline=pipeline)

    def _reset(self) -> None:
        self.epoch += 1
        self.source = ""
        self.pipeline_state = PipelineState()
        self.results = AnalysisResults()
        self.report: str | None = None
        self.error: str | None = None
        self.active_id: str | None = None
        self.chat: ChatSession | None = None
        self.compare_mode = False
        self.selected_ids: list[str] = []
        self.comparison_report: str | None = None

    @property
    def chat_messages(self) -> list[ChatMessage]:
        return self.chat.transcript if self.chat is not None else []

    # --- analysis ---

    def check_source(self, url: str) -> MisinformationRecord | None:
        return self._pipeline.check_source(url)

    def new_analysis(self) -> None:
        self._reset()
        self.warning = None

    def analyze(
        self,
        submission: Submission,
        *,
        observer: Observer | None = None,
        on_report_chunk: ChunkCallback | None = None,
    ) -> PipelineRun | None:
        """Run the pipeline for ``submission``; returns None for an empty submission."""
        if submission.is_empty:
            return None
        self.warning = None
        self._reset()
        epoch = self.epoch
        self.source = submission.descriptor()

        def track(state: PipelineState, results: AnalysisResults) -> None:
            if epoch != self.epoch:
                return
            self.pipeline_state = state
            self.results = results
            if observer is not None:
                observer(state, results)

        def stream(chunk: str) -> None:
            if epoch != self.epoch:
                return
            self.report = (self.report or "") + chunk
            if on_report_chunk is not None:
                on_report_chunk(chunk)

        run = self._pipeline.run(submission, observer=track, on_report_chunk=stream)
        if epoch != self.epoch:
            logger.info("Discarding result of an abandoned run")
            return run

        self.warning = run.warning
        self.pipeline_state = run.state
        self.results = run.results
        self.error = run.error
        if run.succeeded:
            self.report = run.report
            self.active_id = run.history_item.id
            self.chat = run.chat
        return run

    # --- history ---

    def select_history(self, item_id: str) -> HistoryItem | None:
        item = self.history.find_by_id(item_id)
        if item is None:
            return None
        self._reset()
        self.warning = None
        self.source = item.url
        self.report = item.report
        self.pipeline_state = item.pipeline_state
        self.results = item.analysis_results
        self.active_id = item.id
        self.chat = self._chat_factory.start(item.report, greeting=HISTORY_GREETING)
        return item

    def clear_history(self) -> None:
        self.history.clear()
        self._reset()

    # --- comparison ---

    def toggle_compare_mode(self) -> None:
        self.compare_mode = not self.compare_mode
        self.selected_ids = []

    def toggle_compare_selection(self, item_id: str) -> None:
        if item_id in self.selected_ids:
            self.selected_ids = [i for i in self.selected_ids if i != item_id]
        else:
            self.selected_ids = [*self.selected_ids, item_id]

    def run_comparison(self, on_chunk: ChunkCallback | None = None) -> str | None:
        """Stream a brief comparing the selected items; a no-op under two selections."""
        if len(self.selected_ids) < MIN_ITEMS:
            return None
        items = self.history.select(self.selected_ids)
        if len(items) < MIN_ITEMS:
            logger.warning("Only %d of the selected reports are still in history", len(items))
            return None
        epoch = self.epoch
        self.comparison_report = ""
        self.error = None
        try:
            for chunk in self._comparison.compare(items):
                if epoch != self.epoch:
                    return None
                self.comparison_report += chunk
                if on_chunk is not None:
                    on_chunk(chunk)
        except StreamError as exc:
            if epoch == self.epoch:
                self.error = str(exc)
                self.compare_mode = False
                self.selected_ids = []
            return None
        self.compare_mode = False
        return self.comparison_report

    # --- follow-up chat ---

    def send_chat(self, message: str, on_chunk: ChunkCallback | None = None) -> str | None:
        """Relay ``message`` to the current session; ignored when there is none or it is busy."""
        session = self.chat
        if session is None or not message.strip():
            return None
        try:
            return session.ask(message, on_chunk=on_chunk)
        except ChatBusyError:
            logger.info("Ignoring chat message while a reply is streaming")
            return None
        except StreamError as exc:
            # The session's transcript already carries the apology.
            logger.warning("Chat reply failed: %s", friendly_error_message(exc))
            return None
