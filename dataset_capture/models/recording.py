# dataset_capture/models/recording.py
from dataclasses import dataclass
from enum import Enum


class UploadStatus(str, Enum):
    """Upload lifecycle of a recorded session"""
    PENDING = "PENDING"
    UPLOADING = "UPLOADING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass
class RecordingEntity:
    id: str
    object_name: str
    video_path: str
    frame_folder_path: str
    upload_status: UploadStatus = UploadStatus.PENDING
    timestamp: int = 0
    frame_count: int = 0
