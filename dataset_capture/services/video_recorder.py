# dataset_capture/services/video_recorder.py
import logging
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional, Union

import cv2
import numpy as np

from dataset_capture.config.capture import CaptureConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordingStarted:
    output_path: str


@dataclass(frozen=True)
class RecordingFinalized:
    output_path: str
    error: Optional[str] = None

    @property
    def has_error(self) -> bool:
        return self.error is not None


RecordEvent = Union[RecordingStarted, RecordingFinalized]
RecordEventCallback = Callable[[RecordEvent], None]
PreviewCallback = Callable[[np.ndarray], None]


class VideoRecorder(ABC):
    """Camera collaborator: reports Started once writing begins and Finalized once the file is closed"""

    @abstractmethod
    def bind_preview(self, callback: Optional[PreviewCallback]):
        pass

    @abstractmethod
    def start_recording(self, output_path: str, on_event: RecordEventCallback):
        pass

    @abstractmethod
    def stop_recording(self):
        pass

    @property
    @abstractmethod
    def is_recording(self) -> bool:
        pass


class OpenCVVideoRecorder(VideoRecorder):
    """Records a local camera to a video file on a background thread"""

    def __init__(self, config: CaptureConfig):
        self.config = config
        self.preview_callback: Optional[PreviewCallback] = None

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

    def bind_preview(self, callback: Optional[PreviewCallback]):
        """Every captured frame is also handed to this callback"""
        self.preview_callback = callback

    @property
    def is_recording(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start_recording(self, output_path: str, on_event: RecordEventCallback):
        with self._lock:
            if self.is_recording:
                logger.warning("Recording already in progress")
                return

            self._stop_event.clear()
            self._thread = threading.Thread(
                target=self._record,
                args=(output_path, on_event),
                daemon=True,
                name="video_recorder"
            )
            self._thread.start()

    def stop_recording(self):
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=5)

    def _record(self, output_path: str, on_event: RecordEventCallback):
        cap = None
        writer = None
        error = None
        try:
            cap = cv2.VideoCapture(self.config.camera_index)
            if not cap.isOpened():
                raise RuntimeError(f"Cannot open camera {self.config.camera_index}")

            width, height = self.config.resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
            width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)) or width
            height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)) or height

            if os.path.dirname(output_path):
                os.makedirs(os.path.dirname(output_path), exist_ok=True)
            fourcc = cv2.VideoWriter_fourcc(*self.config.codec)
            writer = cv2.VideoWriter(output_path, fourcc, self.config.recording_fps, (width, height))
            if not writer.isOpened():
                raise RuntimeError(f"Cannot open video writer for {output_path}")

            logger.info(f"🎥 Recording started: {output_path} ({width}x{height} @ {self.config.recording_fps} FPS)")
            self._emit(on_event, RecordingStarted(output_path))

            while not self._stop_event.is_set():
                ret, frame = cap.read()
                if not ret or frame is None:
                    raise RuntimeError("Camera stopped delivering frames")
                if frame.shape[1] != width or frame.shape[0] != height:
                    frame = cv2.resize(frame, (width, height))
                writer.write(frame)
                self._show_preview(frame)

        except Exception as e:
            logger.error(f"Recording error: {e}")
            error = str(e)
        finally:
            if writer is not None:
                writer.release()
            if cap is not None:
                cap.release()

        logger.info(f"🎥 Recording finalized: {output_path}")
        self._emit(on_event, RecordingFinalized(output_path, error))

    def _show_preview(self, frame: np.ndarray):
        if self.preview_callback is None:
            return
        try:
            self.preview_callback(frame)
        except Exception as e:
            logger.error(f"Error in preview callback: {e}")

    def _emit(self, on_event: RecordEventCallback, event: RecordEvent):
        try:
            on_event(event)
        except Exception as e:
            logger.error(f"Error in record event callback: {e}")
