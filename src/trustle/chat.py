"""Follow-up question answering grounded in one finished report."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from trustle.errors import ChatBusyError, StreamError, friendly_error_message
from trustle.gemini import GeminiChat, GeminiClient
from trustle.models import ChatMessage
from trustle.streaming import ChunkCallback, StreamBuffer

logger = logging.getLogger(__name__)


def _build_grounding_instruction(report: str) -> str:
    return f"""You are a follow-up assistant for a content verification brief.
Answer the user's questions using only the report below. If the report does not
contain the answer, say so instead of guessing. Keep answers concise.

REPORT:
{report}"""


class ChatSession:
    """Transcript plus model session for one grounding report.

    The transcript only grows. A send appends the user message, then a
    single empty model entry that is replaced chunk by chunk as the reply
    streams in. Only one send may be in flight at a time.
    """

    def __init__(self, chat: GeminiChat, report: str, greeting: str | None = None) -> None:
        self._chat = chat
        self.report = report
        self._transcript: list[ChatMessage] = []
        if greeting:
            self._transcript.append(ChatMessage(role="model", content=greeting))
        self._busy = False

    @property
    def transcript(self) -> list[ChatMessage]:
        return list(self._transcript)

    @property
    def is_busy(self) -> bool:
        return self._busy

    def send(self, message: str) -> Iterator[str]:
        """Relay ``message`` and yield the reply's chunks.

        Nothing is recorded until the first chunk is requested. Closing the
        iterator early keeps the partial reply and frees the session.
        """
        if self._busy:
            raise ChatBusyError("A reply is still streaming")
        self._busy = True
        self._transcript.append(ChatMessage(role="user", content=message))
        self._transcript.append(ChatMessage(role="model", content=""))
        slot = len(self._transcript) - 1
        reply = ""
        try:
            for chunk in self._chat.send_stream(message):
                reply += chunk
                self._transcript[slot] = ChatMessage(role="model", content=reply)
                yield chunk
        except Exception as exc:
            friendly = friendly_error_message(exc)
            logger.exception("Chat reply failed")
            self._transcript[slot] = ChatMessage(
                role="model", content=f"Sorry, an error occurred: {friendly}"
            )
            raise StreamError(friendly) from exc
        finally:
            self._busy = False

    def ask(self, message: str, on_chunk: ChunkCallback | None = None) -> str:
        """Send ``message`` and block until the full reply has streamed."""
        return StreamBuffer(self.send(message)).drain(on_chunk)


class FollowUpChat:
    def __init__(self, client: GeminiClient) -> None:
        self._client = client

    def start(self, report: str, greeting: str | None = None) -> ChatSession | None:
        """Open a session grounded in ``report``; an empty report yields no session."""
        if not report or not report.strip():
            return None
        chat = self._client.start_chat(_build_grounding_instruction(report))
        return ChatSession(chat, report, greeting=greeting)
