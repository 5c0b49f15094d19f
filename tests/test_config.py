"""Tests for environment configuration."""

from trustle.config import Settings


def test_defaults(monkeypatch):
    for name in (
        "GEMINI_API_KEY",
        "GEMINI_MODEL_ID",
        "TRUSTLE_NAMESPACE",
        "STAGE_COOLDOWN_SECONDS",
        "MISINFORMATION_THRESHOLD",
        "VIDEO_FRAME_COUNT",
    ):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.gemini_api_key == ""
    assert settings.model_id == "gemini-2.5-flash"
    assert settings.namespace == "default"
    assert settings.stage_cooldown_seconds == 1.0
    assert settings.misinformation_threshold == 40
    assert settings.video_frame_count == 5


def test_from_env(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "k")
    monkeypatch.setenv("TRUSTLE_NAMESPACE", "alice")
    monkeypatch.setenv("STAGE_COOLDOWN_SECONDS", "0.5")
    monkeypatch.setenv("MISINFORMATION_THRESHOLD", "30")
    settings = Settings.from_env()
    assert settings.gemini_api_key == "k"
    assert settings.namespace == "alice"
    assert settings.stage_cooldown_seconds == 0.5
    assert settings.misinformation_threshold == 30
