import json
import os
import re

import pytest

from dataset_capture.errors import MetadataReadError, MetadataWriteError
from dataset_capture.models.metadata import METADATA_FIELDS
from dataset_capture.processors.metadata_generator import (
    format_capture_date, generate_metadata_file, get_resolution_label, read_metadata
)


@pytest.mark.parametrize("width, height, label", [
    (3840, 2160, "4K"),
    (2160, 3840, "4K"),
    (1920, 1080, "1080p"),
    (1080, 1920, "1080p"),
    (1280, 720, "720p"),
    (854, 480, "480p"),
    (640, 480, "640x480"),
])
def test_resolution_labels(width, height, label):
    assert get_resolution_label(width, height) == label


def test_capture_date_has_millis_and_offset():
    value = format_capture_date(1700000000123)
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.123[+-]\d{2}:\d{2}", value)


def test_generate_and_read_back(tmp_path):
    output_dir = tmp_path / "mug_1700000000000"
    output_dir.mkdir()

    path = generate_metadata_file(
        output_directory=str(output_dir),
        object_name="mug",
        timestamp=1700000000000,
        frame_count=42,
        video_width=1920,
        video_height=1080,
        video_duration_ms=16_000,
        extraction_fps=10
    )

    assert os.path.basename(path) == "metadata.json"
    with open(path, encoding="utf-8") as f:
        document = json.load(f)
    assert list(document) == [name for name, _ in METADATA_FIELDS]
    assert document["folder_name"] == "mug_1700000000000"
    assert document["video_resolution"] == "1080p"

    metadata = read_metadata(path)
    assert metadata.object_name == "mug"
    assert metadata.frame_count == 42
    assert metadata.extraction_fps == 10
    assert metadata.to_dict() == document


def test_non_ascii_object_name_is_kept(tmp_path):
    path = generate_metadata_file(str(tmp_path), "чайник", 1, 1, 640, 480, 1000, 1)

    with open(path, encoding="utf-8") as f:
        assert "чайник" in f.read()
    assert read_metadata(path).object_name == "чайник"


def test_write_into_missing_directory_fails(tmp_path):
    with pytest.raises(MetadataWriteError):
        generate_metadata_file(str(tmp_path / "missing"), "mug", 1, 1, 640, 480, 1000, 1)


def _write(tmp_path, document):
    path = tmp_path / "metadata.json"
    path.write_text(json.dumps(document), encoding="utf-8")
    return str(path)


def _valid_document():
    return {
        "object_name": "mug", "timestamp": 1, "frame_count": 3,
        "video_resolution": "720p", "video_width": 1280, "video_height": 720,
        "video_duration_ms": 1000, "extraction_fps": 3,
        "capture_date": "2026-10-19T14:03:07.123+05:00", "folder_name": "mug_1"
    }


def test_read_missing_file(tmp_path):
    with pytest.raises(MetadataReadError):
        read_metadata(str(tmp_path / "metadata.json"))


def test_read_invalid_json(tmp_path):
    path = tmp_path / "metadata.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(MetadataReadError):
        read_metadata(str(path))


def test_read_missing_field(tmp_path):
    document = _valid_document()
    del document["frame_count"]
    with pytest.raises(MetadataReadError):
        read_metadata(_write(tmp_path, document))


@pytest.mark.parametrize("field, value", [
    ("frame_count", "3"),
    ("frame_count", True),
    ("video_width", 1280.5),
    ("object_name", 7),
])
def test_read_wrong_type(tmp_path, field, value):
    document = _valid_document()
    document[field] = value
    with pytest.raises(MetadataReadError):
        read_metadata(_write(tmp_path, document))
