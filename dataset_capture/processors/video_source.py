# dataset_capture/processors/video_source.py
from abc import ABC, abstractmethod
from typing import Optional
import logging

import cv2
import numpy as np

from dataset_capture.errors import InvalidVideoError
from dataset_capture.models.frames import VideoProbe

logger = logging.getLogger(__name__)


class VideoSource(ABC):
    """Stateful, ordered random access to the frames of one video file"""

    @abstractmethod
    def probe(self) -> VideoProbe:
        pass

    @abstractmethod
    def read_frame_at(self, offset_ms: int) -> Optional[np.ndarray]:
        """Decoded BGR frame for the offset, or None when it cannot be decoded"""
        pass

    @abstractmethod
    def release(self):
        pass


class OpenCVVideoSource(VideoSource):
    """VideoSource backed by cv2.VideoCapture.

    Seeking uses CAP_PROP_POS_MSEC: the backend jumps to the preceding key frame
    and decodes forward, so the frame returned is the first one whose
    presentation time is at or after the requested offset.
    """

    def __init__(self, video_path: str):
        self.video_path = video_path
        self.capture = cv2.VideoCapture(video_path)
        if not self.capture.isOpened():
            self.capture.release()
            raise InvalidVideoError(f"Cannot open video: {video_path}")

    def probe(self) -> VideoProbe:
        fps = self.capture.get(cv2.CAP_PROP_FPS) or 0.0
        frame_count = self.capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0.0

        duration_ms = 0
        if fps > 0 and frame_count > 0:
            duration_ms = int(round(frame_count * 1000.0 / fps))

        return VideoProbe(
            duration_ms=duration_ms,
            width=int(self.capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0),
            height=int(self.capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        )

    def read_frame_at(self, offset_ms: int) -> Optional[np.ndarray]:
        self.capture.set(cv2.CAP_PROP_POS_MSEC, float(offset_ms))
        ok, frame = self.capture.read()
        if not ok or frame is None:
            return None
        return frame

    def release(self):
        self.capture.release()


def open_video_source(video_path: str) -> VideoSource:
    return OpenCVVideoSource(video_path)
