# dataset_capture/models/upload.py
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class JobStatus(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


ACTIVE_JOB_STATUSES = (JobStatus.QUEUED, JobStatus.RUNNING)


@dataclass
class UploadJob:
    """Persisted background upload request for one frame set"""
    folder_path: str
    folder_name: str
    object_name: str
    session_folder_name: str
    id: Optional[int] = None
    recording_id: Optional[str] = None
    status: JobStatus = JobStatus.QUEUED
    attempt_count: int = 0
    uploaded_count: int = 0
    last_error: Optional[str] = None
    next_attempt_at: Optional[datetime] = None
    claimed_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class UploadProgress:
    current_file: int
    total_files: int
    current_file_name: str
    overall_progress: float


@dataclass
class UploadResult:
    success: bool
    folder_id: Optional[str] = None
    folder_name: Optional[str] = None
    uploaded_count: int = 0
    total_files: int = 0
    error_message: Optional[str] = None


class WorkOutcome(str, Enum):
    """What the queue should do with a job after one attempt"""
    SUCCESS = "SUCCESS"
    RETRY = "RETRY"


@dataclass
class WorkResult:
    outcome: WorkOutcome
    uploaded_count: int = 0
    error_message: Optional[str] = None
    # Not-authenticated retries do not spend the attempt budget
    counts_as_attempt: bool = True

    @classmethod
    def succeeded(cls, uploaded_count: int) -> 'WorkResult':
        return cls(WorkOutcome.SUCCESS, uploaded_count=uploaded_count)

    @classmethod
    def retry(cls, error_message: str, uploaded_count: int = 0, counts_as_attempt: bool = True) -> 'WorkResult':
        return cls(WorkOutcome.RETRY, uploaded_count=uploaded_count,
                   error_message=error_message, counts_as_attempt=counts_as_attempt)
