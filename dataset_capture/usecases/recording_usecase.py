# dataset_capture/usecases/recording_usecase.py
import logging
import os
import time
from datetime import datetime
from typing import List, Optional

from dataset_capture.config.extraction import ExtractionConfig
from dataset_capture.models.recording import RecordingEntity, UploadStatus
from dataset_capture.repositories.recording_repository import RecordingRepository

logger = logging.getLogger(__name__)


class RecordingUseCase:
    def __init__(self, recording_repository: RecordingRepository, config: ExtractionConfig):
        self.recording_repo = recording_repository
        self.config = config

    def record(self, recording_id: str, object_name: str, video_path: str, frame_count: int,
               frame_folder_path: Optional[str] = None, timestamp: Optional[int] = None) -> RecordingEntity:
        """Insert or replace a recording as PENDING, stamped with the current time unless given"""
        try:
            recording = RecordingEntity(
                id=recording_id,
                object_name=object_name,
                video_path=video_path,
                frame_folder_path=frame_folder_path or os.path.join(self.config.temp_frames_dir, recording_id),
                upload_status=UploadStatus.PENDING,
                timestamp=timestamp if timestamp is not None else int(time.time() * 1000),
                frame_count=frame_count
            )
            return self.recording_repo.upsert_recording(recording)
        except Exception as e:
            logger.error(f"Error recording session {recording_id}: {e}")
            raise

    def get_recording(self, recording_id: str) -> Optional[RecordingEntity]:
        try:
            return self.recording_repo.get_recording(recording_id)
        except Exception as e:
            logger.error(f"Error getting recording: {e}")
            raise

    def list_recordings(self) -> List[RecordingEntity]:
        """All recordings, newest first"""
        try:
            return self.recording_repo.list_all()
        except Exception as e:
            logger.error(f"Error listing recordings: {e}")
            raise

    def list_pending_or_failed(self) -> List[RecordingEntity]:
        try:
            return self.recording_repo.list_by_status([UploadStatus.PENDING, UploadStatus.FAILED])
        except Exception as e:
            logger.error(f"Error listing pending recordings: {e}")
            raise

    def update_status(self, recording_id: str, status: UploadStatus) -> RecordingEntity:
        try:
            return self.recording_repo.update_status(recording_id, status)
        except Exception as e:
            logger.error(f"Error updating recording status: {e}")
            raise

    def list_videos(self) -> List[str]:
        """Video files in the videos directory, newest first"""
        videos_dir = self.config.videos_dir
        if not os.path.isdir(videos_dir):
            return []

        suffix = f".{self.config.video_extension}"
        videos = [
            os.path.join(videos_dir, name) for name in os.listdir(videos_dir)
            if name.endswith(suffix) and os.path.isfile(os.path.join(videos_dir, name))
        ]
        return sorted(videos, key=os.path.getmtime, reverse=True)

    def create_video_path(self, now: Optional[datetime] = None) -> str:
        now = now or datetime.now()
        os.makedirs(self.config.videos_dir, exist_ok=True)
        filename = f"VIDEO_{now.strftime('%Y%m%d_%H%M%S')}.{self.config.video_extension}"
        return os.path.join(self.config.videos_dir, filename)

    def discard_video(self, video_path: str) -> bool:
        """Delete a recorded video (retake); a missing file is not an error"""
        try:
            os.remove(video_path)
            logger.info(f"🗑️ Discarded video {video_path}")
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Error discarding video {video_path}: {e}")
            raise
