"""Consumer-side accumulation of streamed model replies."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

ChunkCallback = Callable[[str], None]


class StreamBuffer:
    """Pulls chunks from a finite stream one at a time and keeps the running text.

    Iterating yields each chunk in arrival order after appending it to
    ``text``. The underlying stream is consumed once; iterating again yields
    nothing new.
    """

    def __init__(self, chunks: Iterable[str]) -> None:
        self._chunks = iter(chunks)
        self.text = ""

    def __iter__(self) -> Iterator[str]:
        for chunk in self._chunks:
            if not chunk:
                continue
            self.text += chunk
            yield chunk

    def drain(self, on_chunk: ChunkCallback | None = None) -> str:
        for chunk in self:
            if on_chunk is not None:
                on_chunk(chunk)
        return self.text
