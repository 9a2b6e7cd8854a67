# dataset_capture/processors/metadata_generator.py
import json
import logging
import os
from datetime import datetime

from dataset_capture.errors import MetadataReadError, MetadataWriteError
from dataset_capture.models.metadata import METADATA_FIELDS, METADATA_FILENAME, RecordingMetadata

logger = logging.getLogger(__name__)


def get_resolution_label(width: int, height: int) -> str:
    """Human-readable resolution class from the larger dimension"""
    max_dimension = max(width, height)
    if max_dimension >= 3840:
        return "4K"
    if max_dimension >= 1920:
        return "1080p"
    if max_dimension >= 1280:
        return "720p"
    if max_dimension >= 854:
        return "480p"
    return f"{width}x{height}"


def format_capture_date(timestamp_ms: int) -> str:
    """Local time, ISO-8601, millisecond precision, numeric UTC offset"""
    local_time = datetime.fromtimestamp(timestamp_ms / 1000.0).astimezone()
    return local_time.isoformat(timespec="milliseconds")


def build_metadata(
    folder_name: str,
    object_name: str,
    timestamp: int,
    frame_count: int,
    video_width: int,
    video_height: int,
    video_duration_ms: int,
    extraction_fps: int
) -> RecordingMetadata:
    return RecordingMetadata(
        object_name=object_name,
        timestamp=int(timestamp),
        frame_count=int(frame_count),
        video_resolution=get_resolution_label(video_width, video_height),
        video_width=int(video_width),
        video_height=int(video_height),
        video_duration_ms=int(video_duration_ms),
        extraction_fps=int(extraction_fps),
        capture_date=format_capture_date(timestamp),
        folder_name=folder_name
    )


def generate_metadata_file(
    output_directory: str,
    object_name: str,
    timestamp: int,
    frame_count: int,
    video_width: int,
    video_height: int,
    video_duration_ms: int,
    extraction_fps: int
) -> str:
    """Write ``metadata.json`` into the frame-set directory and return its path"""
    folder_name = os.path.basename(os.path.normpath(output_directory))
    metadata_path = os.path.join(output_directory, METADATA_FILENAME)
    try:
        metadata = build_metadata(
            folder_name, object_name, timestamp, frame_count,
            video_width, video_height, video_duration_ms, extraction_fps
        )
        with open(metadata_path, "w", encoding="utf-8") as f:
            json.dump(metadata.to_dict(), f, indent=2, ensure_ascii=False)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to generate metadata file in {output_directory}: {e}")
        raise MetadataWriteError(f"Failed to generate metadata: {e}") from e

    logger.debug(f"Generated metadata file: {metadata_path}")
    return metadata_path


def read_metadata(metadata_path: str) -> RecordingMetadata:
    """Parse a metadata document, failing on any missing or mistyped field"""
    if not os.path.isfile(metadata_path):
        raise MetadataReadError(f"Metadata file does not exist: {metadata_path}")

    try:
        with open(metadata_path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except (OSError, ValueError) as e:
        raise MetadataReadError(f"Failed to read metadata file {metadata_path}: {e}") from e

    if not isinstance(document, dict):
        raise MetadataReadError(f"Metadata root must be an object: {metadata_path}")

    values = {}
    for name, expected_type in METADATA_FIELDS:
        if name not in document:
            raise MetadataReadError(f"Metadata field missing: {name}")
        value = document[name]
        # bool is an int subclass but never a valid count or size
        if isinstance(value, bool) or not isinstance(value, expected_type):
            raise MetadataReadError(
                f"Metadata field {name} must be {expected_type.__name__}, got {type(value).__name__}"
            )
        values[name] = value

    return RecordingMetadata(**values)
