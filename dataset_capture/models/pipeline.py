# dataset_capture/models/pipeline.py
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class OutcomeKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class PipelineOutcome:
    """Terminal state of a user-facing flow: a location, or a message to retry from"""
    kind: OutcomeKind
    message: str
    location: Optional[str] = None
    frame_count: int = 0
    job_id: Optional[int] = None
    recording_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind == OutcomeKind.SUCCESS

    @classmethod
    def success(cls, message: str, location: Optional[str] = None, frame_count: int = 0,
                job_id: Optional[int] = None, recording_id: Optional[str] = None) -> 'PipelineOutcome':
        return cls(OutcomeKind.SUCCESS, message, location, frame_count, job_id, recording_id)

    @classmethod
    def error(cls, message: str) -> 'PipelineOutcome':
        return cls(OutcomeKind.ERROR, message)
