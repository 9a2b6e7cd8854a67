# dataset_capture/repositories/recording_repository.py
from abc import ABC, abstractmethod
from typing import List, Optional
from dataset_capture.models.recording import RecordingEntity, UploadStatus


class RecordingRepository(ABC):
    @abstractmethod
    def upsert_recording(self, recording: RecordingEntity) -> RecordingEntity:
        pass

    @abstractmethod
    def get_recording(self, recording_id: str) -> Optional[RecordingEntity]:
        pass

    @abstractmethod
    def list_all(self) -> List[RecordingEntity]:
        pass

    @abstractmethod
    def list_by_status(self, statuses: List[UploadStatus]) -> List[RecordingEntity]:
        pass

    @abstractmethod
    def update_status(self, recording_id: str, status: UploadStatus) -> RecordingEntity:
        pass
