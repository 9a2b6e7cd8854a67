# dataset_capture/processors/frame_extractor.py
import logging
import math
import os
import shutil
from typing import Callable, List, Optional

import cv2

from dataset_capture.config.extraction import ExtractionConfig
from dataset_capture.errors import InvalidVideoError, NoFramesProducedError
from dataset_capture.models.frames import ExtractionResult
from dataset_capture.processors.video_source import VideoSource, open_video_source

logger = logging.getLogger(__name__)

FRAME_NAME_FORMAT = "frame_{:04d}.jpg"
STAGING_SUFFIX = ".partial"

# Progress weights: probing, sampling walk, finalization
PROBE_DONE = 0.10
WALK_SPAN = 0.85

ProgressCallback = Callable[[float], None]


def frame_interval_ms(fps: int) -> int:
    return 1000 // ExtractionConfig.clamp_fps(fps)


def expected_offset_count(duration_ms: int, fps: int) -> int:
    """Number of offsets sampled for a video of the given duration"""
    interval = frame_interval_ms(fps)
    return max(1, math.ceil(duration_ms / interval))


def frame_set_folder_name(object_name: str, timestamp: int) -> str:
    return f"{object_name}_{timestamp}"


class FrameExtractor:
    """Samples a finished video at a fixed rate and writes JPEG frames.

    Sampling is strictly sequential: the decoder is stateful, so offsets are
    visited in increasing order on the caller's thread.
    """

    def __init__(self, config: ExtractionConfig,
                 source_factory: Callable[[str], VideoSource] = open_video_source):
        self.config = config
        self.source_factory = source_factory

    def extract_frames(
        self,
        video_path: str,
        object_name: str,
        timestamp: int,
        fps: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> ExtractionResult:
        """Extract frames into ``{temp_frames_dir}/{object_name}_{timestamp}``.

        Frames are written to a staging sibling first and moved into place
        only on success, replacing any earlier frame set of the same name.
        Raises InvalidVideoError when the video cannot be opened or reports no
        duration, and NoFramesProducedError when every offset failed. In both
        cases an earlier frame set is left as it was.
        """
        fps = ExtractionConfig.clamp_fps(fps if fps is not None else self.config.frame_rate)
        output_dir = os.path.join(self.config.temp_frames_dir, frame_set_folder_name(object_name, timestamp))
        staging_dir = output_dir + STAGING_SUFFIX
        progress = _ProgressReporter(on_progress)

        source: Optional[VideoSource] = None
        succeeded = False
        try:
            progress.report(0.05)
            shutil.rmtree(staging_dir, ignore_errors=True)
            os.makedirs(staging_dir)

            try:
                source = self.source_factory(video_path)
                probe = source.probe()
            except InvalidVideoError:
                raise
            except Exception as e:
                raise InvalidVideoError(f"Unreadable video {video_path}: {e}") from e

            logger.debug(f"Video info: {probe.width}x{probe.height}, duration: {probe.duration_ms}ms")
            progress.report(PROBE_DONE)

            if probe.duration_ms <= 0:
                raise InvalidVideoError(f"Invalid video duration: {probe.duration_ms}")

            interval_ms = frame_interval_ms(fps)
            logger.info(
                f"🎞️ Extracting ~{expected_offset_count(probe.duration_ms, fps)} frames "
                f"at {fps} FPS (interval: {interval_ms}ms) from {video_path}"
            )

            staged = self._sample(source, staging_dir, probe.duration_ms, interval_ms, progress)

            if not staged:
                raise NoFramesProducedError(f"No frames were extracted from {video_path}")

            if os.path.isdir(output_dir):
                logger.info(f"Replacing earlier frame set {output_dir}")
                shutil.rmtree(output_dir)
            os.replace(staging_dir, output_dir)
            frames = [os.path.join(output_dir, os.path.basename(path)) for path in staged]

            logger.info(f"✅ Extracted {len(frames)} frames to {output_dir}")
            progress.report(1.0)
            succeeded = True

            return ExtractionResult(
                output_directory=output_dir,
                frames=frames,
                video_width=probe.width,
                video_height=probe.height,
                video_duration_ms=probe.duration_ms,
                fps=fps
            )
        finally:
            if source is not None:
                try:
                    source.release()
                except Exception as e:
                    logger.warning(f"Error releasing video source: {e}")
            if not succeeded:
                shutil.rmtree(staging_dir, ignore_errors=True)

    def _sample(self, source: VideoSource, output_dir: str, duration_ms: int,
                interval_ms: int, progress: '_ProgressReporter') -> List[str]:
        frames: List[str] = []
        frame_index = 1
        offset_ms = 0

        while offset_ms < duration_ms:
            frame_path = os.path.join(output_dir, FRAME_NAME_FORMAT.format(frame_index))
            if self._write_frame(source, offset_ms, frame_path):
                frames.append(frame_path)
                frame_index += 1

            progress.report(PROBE_DONE + WALK_SPAN * (offset_ms / duration_ms))
            offset_ms += interval_ms

        return frames

    def _write_frame(self, source: VideoSource, offset_ms: int, frame_path: str) -> bool:
        try:
            frame = source.read_frame_at(offset_ms)
            if frame is None:
                logger.warning(f"Frame decode skipped at {offset_ms}ms")
                return False

            params = [int(cv2.IMWRITE_JPEG_QUALITY), int(self.config.jpeg_quality)]
            if not cv2.imwrite(frame_path, frame, params):
                logger.warning(f"Failed to save frame: {os.path.basename(frame_path)}")
                return False
            return True
        except Exception as e:
            logger.warning(f"Frame decode skipped at {offset_ms}ms: {e}")
            return False

    @staticmethod
    def cleanup_frames(frame_directory: str) -> bool:
        """Recursively delete a frame set; a missing directory counts as cleaned"""
        if not os.path.isdir(frame_directory):
            logger.warning(f"Directory does not exist: {frame_directory}")
            return True
        try:
            shutil.rmtree(frame_directory)
            logger.debug(f"🧹 Cleaned up frames: {frame_directory}")
            return True
        except OSError as e:
            logger.error(f"Error cleaning up {frame_directory}: {e}")
            return False


class _ProgressReporter:
    """Forwards progress while keeping it non-decreasing"""

    def __init__(self, callback: Optional[ProgressCallback]):
        self.callback = callback
        self.value = 0.0

    def report(self, value: float):
        value = min(1.0, max(self.value, value))
        self.value = value
        if self.callback is None:
            return
        try:
            self.callback(value)
        except Exception as e:
            logger.error(f"Error in extraction progress callback: {e}")
