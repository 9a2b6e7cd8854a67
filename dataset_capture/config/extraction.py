# config/extraction.py
from dataclasses import dataclass
import os
from .base import BaseConfig

MIN_EXTRACTION_FPS = 1
MAX_EXTRACTION_FPS = 30


@dataclass
class ExtractionConfig(BaseConfig):
    """Frame extraction and local video layout"""
    frame_rate: int = 10
    jpeg_quality: int = 90
    videos_dir: str = "data/Videos"
    temp_frames_dir: str = "data/TempFrames"
    video_extension: str = "mp4"

    @classmethod
    def from_env(cls) -> 'ExtractionConfig':
        data_dir = os.getenv('DATA_DIR', 'data')
        return cls(
            frame_rate=cls.get_env_int('FRAME_RATE', 10),
            jpeg_quality=cls.get_env_int('JPEG_QUALITY', 90),
            videos_dir=os.getenv('VIDEOS_DIR', os.path.join(data_dir, 'Videos')),
            temp_frames_dir=os.getenv('TEMP_FRAMES_DIR', os.path.join(data_dir, 'TempFrames')),
            video_extension=os.getenv('VIDEO_EXTENSION', 'mp4').lstrip('.')
        )

    @staticmethod
    def clamp_fps(fps: int) -> int:
        return max(MIN_EXTRACTION_FPS, min(MAX_EXTRACTION_FPS, int(fps)))
