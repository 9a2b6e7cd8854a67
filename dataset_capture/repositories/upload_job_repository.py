# dataset_capture/repositories/upload_job_repository.py
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from dataset_capture.models.upload import UploadJob


class UploadJobRepository(ABC):
    @abstractmethod
    def create_job(self, job: UploadJob) -> UploadJob:
        pass

    @abstractmethod
    def get_job(self, job_id: int) -> Optional[UploadJob]:
        pass

    @abstractmethod
    def list_active_for_recording(self, recording_id: str) -> List[UploadJob]:
        pass

    @abstractmethod
    def claim_next(self, worker_id: str, now: datetime) -> Optional[UploadJob]:
        """Atomically move one due QUEUED job to RUNNING for this worker"""
        pass

    @abstractmethod
    def mark_succeeded(self, job_id: int, uploaded_count: int) -> UploadJob:
        pass

    @abstractmethod
    def schedule_retry(self, job_id: int, attempt_count: int, next_attempt_at: datetime,
                       error_message: Optional[str], uploaded_count: int) -> UploadJob:
        pass

    @abstractmethod
    def mark_failed(self, job_id: int, attempt_count: int, error_message: Optional[str],
                    uploaded_count: int) -> UploadJob:
        pass

    @abstractmethod
    def requeue_running(self) -> int:
        """Return jobs left RUNNING by a dead process to the queue"""
        pass
