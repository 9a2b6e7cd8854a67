# config/capture.py
from dataclasses import dataclass, field
from typing import Tuple
import logging
import os
from .base import BaseConfig
from dataset_capture.models.capture import CapturePhase, DEFAULT_PHASES, build_phase_table

logger = logging.getLogger(__name__)


@dataclass
class CaptureConfig(BaseConfig):
    """Guided recording configuration"""
    phases: Tuple[CapturePhase, ...] = field(default_factory=lambda: DEFAULT_PHASES)
    tick_seconds: float = 1.0
    camera_index: int = 0
    recording_fps: int = 30
    resolution: Tuple[int, int] = (1280, 720)
    codec: str = "mp4v"

    @classmethod
    def from_env(cls) -> 'CaptureConfig':
        phases = DEFAULT_PHASES
        raw_phases = cls.get_env_json('CAPTURE_PHASES', None)
        if raw_phases:
            try:
                phases = build_phase_table(CapturePhase.from_dict(item) for item in raw_phases)
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Ignoring invalid CAPTURE_PHASES, using defaults: {e}")

        return cls(
            phases=phases,
            tick_seconds=cls.get_env_float('CAPTURE_TICK_SECONDS', 1.0),
            camera_index=cls.get_env_int('CAMERA_INDEX', 0),
            recording_fps=cls.get_env_int('RECORDING_FPS', 30),
            resolution=cls.get_env_size('RECORDING_RESOLUTION', (1280, 720)),
            codec=os.getenv('RECORDING_CODEC', '').strip() or 'mp4v'
        )
