# dataset_capture/models/metadata.py
from dataclasses import dataclass, asdict
from typing import Any, Dict

METADATA_FILENAME = "metadata.json"


@dataclass(frozen=True)
class RecordingMetadata:
    """Descriptor document stored next to a frame set"""
    object_name: str
    timestamp: int
    frame_count: int
    video_resolution: str
    video_width: int
    video_height: int
    video_duration_ms: int
    extraction_fps: int
    capture_date: str
    folder_name: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Field name -> required JSON type, in document order
METADATA_FIELDS = (
    ("object_name", str),
    ("timestamp", int),
    ("frame_count", int),
    ("video_resolution", str),
    ("video_width", int),
    ("video_height", int),
    ("video_duration_ms", int),
    ("extraction_fps", int),
    ("capture_date", str),
    ("folder_name", str),
)
