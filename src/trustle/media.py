"""Media inputs and the frame-extraction seam for video submissions."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Protocol

from trustle.models import MediaFrame, MediaInput


class FrameExtractor(Protocol):
    """Samples still frames from a video.

    Implementations return ``frame_count`` evenly spaced frames in playback
    order and raise when the media cannot be loaded or has no bounded
    duration (live streams).
    """

    def extract_frames(self, video: MediaInput, frame_count: int = 5) -> list[MediaFrame]: ...


def load_media(path: str | Path) -> MediaInput:
    path = Path(path)
    mime_type, _ = mimetypes.guess_type(path.name)
    return MediaInput(
        name=path.name,
        data=path.read_bytes(),
        mime_type=mime_type or "application/octet-stream",
    )


def as_frame(media: MediaInput) -> MediaFrame:
    return MediaFrame(data=media.data, mime_type=media.mime_type)
