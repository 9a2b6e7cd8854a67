import os
import itertools
from typing import Dict, List, Optional, Set, Tuple

import numpy as np

from dataset_capture.errors import NotAuthenticatedError, RemoteStoreError
from dataset_capture.models.frames import VideoProbe
from dataset_capture.processors.video_source import VideoSource
from dataset_capture.repositories.remote_store import RemoteStore
from dataset_capture.services.video_recorder import RecordingFinalized, RecordingStarted, VideoRecorder


class FakeRemoteStore(RemoteStore):
    """In-memory drive: folders and files keyed by (name, parent id)"""

    def __init__(self):
        self._ids = itertools.count(1)
        self.folders: Dict[Tuple[str, str], str] = {}
        self.files: Dict[Tuple[str, str], str] = {}
        self.uploads: List[Tuple[str, str]] = []
        self.created_folders: List[Tuple[str, str]] = []
        self.failing_files: Set[str] = set()
        self.fail_folder_names: Set[str] = set()
        self.unauthorized = False

    def _check_auth(self):
        if self.unauthorized:
            raise NotAuthenticatedError("Token expired")

    def find_folder(self, name: str, parent_id: str) -> Optional[str]:
        self._check_auth()
        return self.folders.get((name, parent_id))

    def create_folder(self, name: str, parent_id: str) -> str:
        self._check_auth()
        if name in self.fail_folder_names:
            raise RemoteStoreError(f"HTTP 500 creating {name}")
        folder_id = f"folder-{next(self._ids)}"
        self.folders[(name, parent_id)] = folder_id
        self.created_folders.append((name, parent_id))
        return folder_id

    def find_file(self, name: str, parent_id: str) -> Optional[str]:
        self._check_auth()
        return self.files.get((name, parent_id))

    def upload_file(self, local_path: str, parent_id: str, mime_type: str) -> str:
        self._check_auth()
        name = os.path.basename(local_path)
        self.uploads.append((name, parent_id))
        if name in self.failing_files:
            raise RemoteStoreError(f"HTTP 503 uploading {name}")
        file_id = f"file-{next(self._ids)}"
        self.files[(name, parent_id)] = file_id
        return file_id

    def folder_path(self, *names: str) -> Optional[str]:
        parent = "root"
        for name in names:
            parent = self.folders.get((name, parent))
            if parent is None:
                return None
        return parent

    def file_names_in(self, folder_id: str) -> List[str]:
        return sorted(name for (name, parent) in self.files if parent == folder_id)


class FakeVideoSource(VideoSource):
    """Synthetic decoder; offsets listed in ``failing_offsets`` decode to None"""

    def __init__(self, duration_ms: int, width: int = 1920, height: int = 1080,
                 failing_offsets: Optional[Set[int]] = None):
        self.duration_ms = duration_ms
        self.width = width
        self.height = height
        self.failing_offsets = failing_offsets or set()
        self.offsets_read: List[int] = []
        self.released = False

    def probe(self) -> VideoProbe:
        return VideoProbe(duration_ms=self.duration_ms, width=self.width, height=self.height)

    def read_frame_at(self, offset_ms: int):
        self.offsets_read.append(offset_ms)
        if offset_ms in self.failing_offsets:
            return None
        return np.full((24, 32, 3), offset_ms % 255, dtype=np.uint8)

    def release(self):
        self.released = True


def write_frame_set(directory: str, frame_count: int = 3, with_metadata: bool = True) -> List[str]:
    os.makedirs(directory, exist_ok=True)
    paths = []
    for index in range(1, frame_count + 1):
        path = os.path.join(directory, f"frame_{index:04d}.jpg")
        with open(path, "wb") as f:
            f.write(b"\xff\xd8jpeg\xff\xd9")
        paths.append(path)
    if with_metadata:
        path = os.path.join(directory, "metadata.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("{}")
        paths.append(path)
    return paths


class ScriptedRecorder(VideoRecorder):
    """Emits recorder events synchronously and writes a placeholder file"""

    def __init__(self, fail_with=None):
        self.fail_with = fail_with
        self.output_path = None
        self.on_event = None
        self.preview_callback = None

    def bind_preview(self, callback):
        self.preview_callback = callback

    def push_preview(self, frame):
        self.preview_callback(frame)

    @property
    def is_recording(self) -> bool:
        return self.on_event is not None

    def start_recording(self, output_path, on_event):
        self.output_path = output_path
        self.on_event = on_event
        with open(output_path, "wb") as f:
            f.write(b"video")
        on_event(RecordingStarted(output_path))

    def stop_recording(self):
        on_event, self.on_event = self.on_event, None
        if on_event is not None:
            on_event(RecordingFinalized(self.output_path, self.fail_with))
