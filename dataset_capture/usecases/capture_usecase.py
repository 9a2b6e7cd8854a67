# dataset_capture/usecases/capture_usecase.py
import logging
import os
import threading
import time
from typing import Optional

import cv2
import numpy as np

from dataset_capture.models.capture import RecordingSession
from dataset_capture.models.recording import RecordingEntity
from dataset_capture.processors.capture_sequencer import CapturePhaseSequencer
from dataset_capture.processors.frame_extractor import frame_set_folder_name
from dataset_capture.services.video_recorder import (
    RecordEvent, RecordingFinalized, RecordingStarted, VideoRecorder
)
from dataset_capture.usecases.recording_usecase import RecordingUseCase

logger = logging.getLogger(__name__)


class CaptureUseCase:
    """Guided recording: the sequencer ticks only while the recorder is writing.

    Guidance starts on the recorder's Started event and stops on Finalized, so
    the counters always describe the file actually being written.
    """

    def __init__(self, recorder: VideoRecorder, sequencer: CapturePhaseSequencer,
                 recording_usecase: RecordingUseCase):
        self.recorder = recorder
        self.sequencer = sequencer
        self.recording_usecase = recording_usecase

        self.is_recording = False
        self.recorded_video_path: Optional[str] = None
        self.last_error: Optional[str] = None
        self._finalized = threading.Event()

        self._latest_frame: Optional[np.ndarray] = None
        self._frame_lock = threading.Lock()
        self.recorder.bind_preview(self._on_preview_frame)

    def toggle_recording(self) -> bool:
        """Start or stop recording; returns True when a recording was started"""
        if self.is_recording:
            self.stop_recording()
            return False
        self.start_recording()
        return True

    def start_recording(self) -> str:
        output_path = self.recording_usecase.create_video_path()
        self.last_error = None
        self._finalized.clear()
        self.recorder.start_recording(output_path, self._on_record_event)
        return output_path

    def stop_recording(self, timeout: float = 10.0) -> Optional[str]:
        """Stop the recorder and wait for the file to be finalized"""
        self.recorder.stop_recording()
        self._finalized.wait(timeout)
        return self.recorded_video_path

    def session(self) -> RecordingSession:
        return self.sequencer.snapshot()

    def acknowledge_pulse(self) -> bool:
        """Consumer played the phase-change cue"""
        return self.sequencer.acknowledge_pulse()

    def preview_jpeg(self, quality: int = 80) -> Optional[bytes]:
        """Last camera frame as JPEG, None before the first frame"""
        with self._frame_lock:
            frame = self._latest_frame
        if frame is None:
            return None
        ok, buffer = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), quality])
        return buffer.tobytes() if ok else None

    def retake(self) -> bool:
        """Drop the recorded video and clear guidance"""
        discarded = False
        if self.recorded_video_path:
            discarded = self.recording_usecase.discard_video(self.recorded_video_path)
        self.recorded_video_path = None
        self.sequencer.reset()
        return discarded

    def approve(self, object_name: str) -> RecordingEntity:
        """Register the recorded video as a PENDING recording under ``object_name``"""
        if not self.recorded_video_path:
            raise ValueError("No recorded video to approve")
        if not object_name or not object_name.strip():
            raise ValueError("Object name is required")

        object_name = object_name.strip()
        timestamp = int(time.time() * 1000)
        frame_folder = os.path.join(
            self.recording_usecase.config.temp_frames_dir,
            frame_set_folder_name(object_name, timestamp)
        )
        recording = self.recording_usecase.record(
            recording_id=str(timestamp),
            object_name=object_name,
            video_path=self.recorded_video_path,
            frame_count=0,
            frame_folder_path=frame_folder,
            timestamp=timestamp
        )
        logger.info(f"✅ Recording approved: {recording.id} ({object_name})")

        self.recorded_video_path = None
        self.sequencer.reset()
        return recording

    def _on_preview_frame(self, frame: np.ndarray):
        with self._frame_lock:
            self._latest_frame = frame

    def _on_record_event(self, event: RecordEvent):
        if isinstance(event, RecordingStarted):
            self.is_recording = True
            self.sequencer.start()
        elif isinstance(event, RecordingFinalized):
            self.is_recording = False
            self.sequencer.stop()
            if event.has_error:
                logger.error(f"Recording error: {event.error}")
                self.last_error = event.error
            else:
                self.recorded_video_path = event.output_path
            self._finalized.set()
