import os

import cv2
import numpy as np
import pytest

from dataset_capture.config import (
    AppConfig, CaptureConfig, DatabaseConfig, ExtractionConfig, StorageConfig, UploadConfig
)
from dataset_capture.di.dependencies import DatabaseManager
from dataset_capture.repositories.relational_db.recording_repository_impl import RecordingRepositoryImpl
from dataset_capture.repositories.relational_db.upload_job_repository_impl import UploadJobRepositoryImpl
from dataset_capture.services.account_session import AccountSessionProvider

from fakes import FakeRemoteStore, write_frame_set


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    data_dir = str(tmp_path / "data")
    return AppConfig(
        data_dir=data_dir,
        database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'test.db'}"),
        capture=CaptureConfig(tick_seconds=0.05),
        extraction=ExtractionConfig(
            videos_dir=os.path.join(data_dir, "Videos"),
            temp_frames_dir=os.path.join(data_dir, "TempFrames")
        ),
        upload=UploadConfig(workers=1, poll_interval=0.05),
        storage=StorageConfig(
            public_documents_dir=str(tmp_path / "Documents"),
            account_settings_file=os.path.join(data_dir, "account.json")
        )
    )


@pytest.fixture
def db_manager(app_config):
    manager = DatabaseManager(app_config)
    yield manager
    manager.close()


@pytest.fixture
def recording_repository(db_manager):
    return RecordingRepositoryImpl(db_manager.get_session)


@pytest.fixture
def job_repository(db_manager):
    return UploadJobRepositoryImpl(db_manager.get_session)


@pytest.fixture
def remote_store() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture
def account_provider(app_config, remote_store) -> AccountSessionProvider:
    provider = AccountSessionProvider(
        app_config.storage.account_settings_file,
        app_config.upload,
        store_factory=lambda session: remote_store
    )
    provider.sign_in("tester@example.com", "token-123")
    return provider


@pytest.fixture
def frames_dir(tmp_path) -> str:
    directory = str(tmp_path / "frames" / "mug_1700000000000")
    write_frame_set(directory)
    return directory


@pytest.fixture
def synthetic_video(tmp_path) -> str:
    """Two second 64x48 MJPG video at 10 FPS"""
    path = str(tmp_path / "synthetic.avi")
    writer = cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (64, 48))
    if not writer.isOpened():
        pytest.skip("OpenCV build cannot write MJPG video")
    for index in range(20):
        frame = np.full((48, 64, 3), index * 10, dtype=np.uint8)
        writer.write(frame)
    writer.release()
    return path
