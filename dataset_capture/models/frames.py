# dataset_capture/models/frames.py
from dataclasses import dataclass, field
from typing import List
import os


@dataclass(frozen=True)
class ExtractionResult:
    """Frames extracted from one video plus the probed video metrics"""
    output_directory: str
    frames: List[str] = field(default_factory=list)
    video_width: int = 0
    video_height: int = 0
    video_duration_ms: int = 0
    fps: int = 1

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    @property
    def folder_name(self) -> str:
        return os.path.basename(os.path.normpath(self.output_directory))


@dataclass(frozen=True)
class VideoProbe:
    """Container-level facts read before sampling"""
    duration_ms: int
    width: int
    height: int
