import json
import logging

from dataset_capture.config import AppConfig, CaptureConfig, DatabaseConfig, ExtractionConfig, UploadConfig
from dataset_capture.models.capture import DEFAULT_PHASES
from dataset_capture.services.account_session import AccountSessionProvider


def test_defaults(monkeypatch):
    for key in ("FRAME_RATE", "JPEG_QUALITY", "UPLOAD_MAX_ATTEMPTS", "CAPTURE_PHASES", "DATABASE_URL", "DATA_DIR"):
        monkeypatch.delenv(key, raising=False)

    config = AppConfig.from_env()

    assert config.extraction.frame_rate == 10
    assert config.extraction.jpeg_quality == 90
    assert config.upload.max_attempts == 3
    assert config.capture.phases == DEFAULT_PHASES
    assert config.database.url == "sqlite:///data/dataset_capture.db"
    assert config.validate()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("FRAME_RATE", "5")
    monkeypatch.setenv("UPLOAD_SKIP_EXISTING", "false")
    monkeypatch.setenv("RECORDING_RESOLUTION", "1920,1080")
    monkeypatch.setenv("CAPTURE_PHASES", json.dumps([
        {"instruction": "Top view", "short_label": "TOP", "icon": "↓", "duration_seconds": 3}
    ]))

    assert ExtractionConfig.from_env().frame_rate == 5
    assert UploadConfig.from_env().skip_existing_files is False
    capture = CaptureConfig.from_env()
    assert capture.resolution == (1920, 1080)
    assert [p.short_label for p in capture.phases] == ["TOP"]


def test_invalid_phase_table_falls_back(monkeypatch):
    monkeypatch.setenv("CAPTURE_PHASES", json.dumps([{"instruction": "x", "short_label": "X", "duration_seconds": 0}]))
    assert CaptureConfig.from_env().phases == DEFAULT_PHASES


def test_validate_reports_bad_values():
    config = AppConfig(
        extraction=ExtractionConfig(frame_rate=60, jpeg_quality=120),
        upload=UploadConfig(max_attempts=0, workers=0)
    )
    assert config.validate() is False


def test_retry_delay_doubles():
    upload = UploadConfig(retry_base_seconds=30)
    assert [upload.retry_delay(n) for n in (1, 2, 3)] == [30, 60, 120]


def test_database_paths():
    assert DatabaseConfig(url="sqlite:///data/x.db").sqlite_path == "data/x.db"
    assert DatabaseConfig(url="sqlite://").sqlite_path == ""
    assert DatabaseConfig(url="sqlite:///:memory:").is_memory
    assert DatabaseConfig(url="postgresql://u@h/db").sqlite_path == ""


def test_account_session_round_trip(tmp_path):
    provider = AccountSessionProvider(str(tmp_path / "account.json"), UploadConfig())
    assert provider.get_remote_store() is None

    provider.sign_in("someone@example.com", "tok")
    assert provider.get_session().email == "someone@example.com"
    assert provider.get_remote_store() is not None

    provider.sign_out()
    assert not provider.is_authenticated()


def test_malformed_env_values_fall_back(monkeypatch, caplog):
    monkeypatch.setenv("RECORDING_RESOLUTION", "wide")
    monkeypatch.setenv("RECORDING_FPS", "thirty")
    monkeypatch.setenv("RECORDING_CODEC", "")

    with caplog.at_level(logging.WARNING):
        capture = CaptureConfig.from_env()

    assert capture.resolution == (1280, 720)
    assert capture.recording_fps == 30
    assert capture.codec == "mp4v"
    assert "RECORDING_RESOLUTION" in caplog.text
    assert "RECORDING_FPS" in caplog.text


def test_codec_override(monkeypatch):
    monkeypatch.setenv("RECORDING_CODEC", "MJPG")
    assert CaptureConfig.from_env().codec == "MJPG"
