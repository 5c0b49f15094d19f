"""Configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    gemini_api_key: str = ""
    model_id: str = "gemini-2.5-flash"
    temperature: float = 0.2
    data_dir: str = "data"
    namespace: str = "default"
    stage_cooldown_seconds: float = 1.0
    misinformation_threshold: int = 40
    video_frame_count: int = 5

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            gemini_api_key=os.environ.get("GEMINI_API_KEY", ""),
            model_id=os.environ.get("GEMINI_MODEL_ID", "gemini-2.5-flash"),
            temperature=float(os.environ.get("GEMINI_TEMPERATURE", "0.2")),
            data_dir=os.environ.get("TRUSTLE_DATA_DIR", "data"),
            namespace=os.environ.get("TRUSTLE_NAMESPACE", "default"),
            stage_cooldown_seconds=float(os.environ.get("STAGE_COOLDOWN_SECONDS", "1.0")),
            misinformation_threshold=int(os.environ.get("MISINFORMATION_THRESHOLD", "40")),
            video_frame_count=int(os.environ.get("VIDEO_FRAME_COUNT", "5")),
        )
