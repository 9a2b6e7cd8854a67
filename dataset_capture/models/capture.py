# dataset_capture/models/capture.py
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple


@dataclass(frozen=True)
class CapturePhase:
    """One guided sub-step of a recording session"""
    instruction: str
    short_label: str
    icon: str
    duration_seconds: int = 5

    def __post_init__(self):
        if self.duration_seconds <= 0:
            raise ValueError(f"Phase {self.short_label} must last at least one second")

    @classmethod
    def from_dict(cls, data: Dict) -> 'CapturePhase':
        return cls(
            instruction=data["instruction"],
            short_label=data["short_label"],
            icon=data.get("icon", ""),
            duration_seconds=int(data.get("duration_seconds", 5))
        )


DEFAULT_PHASES: Tuple[CapturePhase, ...] = (
    CapturePhase("Record the LEFT SIDE\n(Back-end side view)", "LEFT", "←", 6),
    CapturePhase("MOVE smoothly to FRONT", "FRONT", "↑", 4),
    CapturePhase("Record the RIGHT SIDE", "RIGHT", "→", 6),
)


def build_phase_table(phases: Sequence[CapturePhase]) -> Tuple[CapturePhase, ...]:
    """Freeze a phase sequence, rejecting an empty table"""
    table = tuple(phases)
    if not table:
        raise ValueError("A capture needs at least one phase")
    return table


@dataclass(frozen=True)
class RecordingSession:
    """Read-only view of the sequencer state during an active capture"""
    phase_index: int
    elapsed_seconds: int
    total_seconds: int
    pulse: bool
    phase: CapturePhase
    is_running: bool = False

    @property
    def remaining_seconds(self) -> int:
        return max(0, self.phase.duration_seconds - self.elapsed_seconds)


def phases_to_dicts(phases: Sequence[CapturePhase]) -> List[Dict]:
    return [
        {
            "instruction": phase.instruction,
            "short_label": phase.short_label,
            "icon": phase.icon,
            "duration_seconds": phase.duration_seconds,
        }
        for phase in phases
    ]
