# dataset_capture/processors/capture_sequencer.py
import logging
import threading
from typing import Callable, List, Optional, Sequence

from dataset_capture.models.capture import (
    CapturePhase, DEFAULT_PHASES, RecordingSession, build_phase_table
)

logger = logging.getLogger(__name__)


class CapturePhaseSequencer:
    """Drives the guidance phases of one recording with a one second tick.

    The phase table is fixed at construction. ``start()`` resets the counters and
    launches a single timer thread; ``tick()`` advances elapsed/total seconds and
    moves to the next phase once the current duration is reached. The last phase
    never auto-advances, so a recording may continue past the guided total.

    Phase changes raise a pulse flag that stays set until the consumer calls
    ``acknowledge_pulse()``.
    """

    def __init__(self, phases: Sequence[CapturePhase] = DEFAULT_PHASES, tick_seconds: float = 1.0):
        self.phases = build_phase_table(phases)
        self.tick_seconds = tick_seconds

        self._phase_index = 0
        self._elapsed_seconds = 0
        self._total_seconds = 0
        self._pulse = False

        self._lock = threading.Lock()
        self._timer_thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

        self.tick_callbacks: List[Callable[[RecordingSession], None]] = []
        self.phase_callbacks: List[Callable[[RecordingSession], None]] = []

    def add_tick_callback(self, callback: Callable[[RecordingSession], None]):
        """Called after every tick with the current session view"""
        self.tick_callbacks.append(callback)

    def add_phase_callback(self, callback: Callable[[RecordingSession], None]):
        """Called after each phase advance (the haptic cue)"""
        self.phase_callbacks.append(callback)

    @property
    def phase_index(self) -> int:
        return self._phase_index

    @property
    def elapsed_seconds(self) -> int:
        return self._elapsed_seconds

    @property
    def total_seconds(self) -> int:
        return self._total_seconds

    @property
    def pulse(self) -> bool:
        return self._pulse

    @property
    def current_phase(self) -> CapturePhase:
        return self.phases[self._phase_index]

    @property
    def is_running(self) -> bool:
        return self._timer_thread is not None and self._timer_thread.is_alive()

    def start(self):
        """Reset to the first phase and begin ticking"""
        self._cancel_timer()
        self.reset()

        stop_event = threading.Event()
        timer_thread = threading.Thread(
            target=self._run_timer,
            args=(stop_event,),
            daemon=True,
            name="capture_sequencer"
        )
        self._stop_event = stop_event
        self._timer_thread = timer_thread
        timer_thread.start()
        logger.info(f"🎬 Guidance started: {len(self.phases)} phases, first '{self.current_phase.short_label}'")

    def stop(self):
        """Halt ticking; counters are kept until reset()"""
        if self._cancel_timer():
            logger.info(f"⏹️ Guidance stopped after {self._total_seconds}s in phase '{self.current_phase.short_label}'")

    def reset(self):
        with self._lock:
            self._phase_index = 0
            self._elapsed_seconds = 0
            self._total_seconds = 0
            self._pulse = False

    def tick(self) -> RecordingSession:
        """Advance the session by one second"""
        advanced = False
        with self._lock:
            self._elapsed_seconds += 1
            self._total_seconds += 1

            phase = self.phases[self._phase_index]
            has_next = self._phase_index + 1 < len(self.phases)
            if self._elapsed_seconds >= phase.duration_seconds and has_next:
                self._phase_index += 1
                self._elapsed_seconds = 0
                self._pulse = True
                advanced = True

            session = self._snapshot_locked()

        if advanced:
            logger.info(f"➡️ Phase {session.phase_index + 1}/{len(self.phases)}: {session.phase.short_label}")
            self._notify(self.phase_callbacks, session)
        self._notify(self.tick_callbacks, session)
        return session

    def acknowledge_pulse(self) -> bool:
        """Clear the pulse flag; returns whether it was set"""
        with self._lock:
            was_set = self._pulse
            self._pulse = False
        return was_set

    def remaining_seconds(self) -> int:
        return max(0, self.current_phase.duration_seconds - self._elapsed_seconds)

    def snapshot(self) -> RecordingSession:
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> RecordingSession:
        return RecordingSession(
            phase_index=self._phase_index,
            elapsed_seconds=self._elapsed_seconds,
            total_seconds=self._total_seconds,
            pulse=self._pulse,
            phase=self.phases[self._phase_index],
            is_running=self.is_running
        )

    def _run_timer(self, stop_event: threading.Event):
        while not stop_event.wait(self.tick_seconds):
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error in guidance tick: {e}")

    def _cancel_timer(self) -> bool:
        timer_thread, stop_event = self._timer_thread, self._stop_event
        self._timer_thread = None
        self._stop_event = None
        if timer_thread is None:
            return False

        stop_event.set()
        if timer_thread is not threading.current_thread():
            timer_thread.join(timeout=max(1.0, self.tick_seconds * 2))
        return True

    def _notify(self, callbacks, session: RecordingSession):
        for callback in callbacks:
            try:
                callback(session)
            except Exception as e:
                logger.error(f"Error in guidance callback: {e}")
