"""
Simulated progress for the background removal call.

The server reports nothing until the response arrives, so progress is
manufactured from a fixed timeline of phases. A single scheduler task owns
the displayed percentage and is fed by two sources:

- the simulated phase clock, advanced once per tick, which raises a target
  percentage but never past the simulation ceiling (90%);
- the real completion signal, ``complete()`` or ``fail()``, which cancels the
  scheduler immediately and always wins.

The displayed percentage follows the target in equal increments spread over
``smoothing_steps`` ticks (one second with the defaults), so it never jumps.
Target and display only ever increase.
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

import structlog

log = structlog.get_logger(__name__)

COMPLETED = "completed"


@dataclass(frozen=True)
class Phase:
    key: str
    duration: float  # estimated seconds


DEFAULT_PHASES = (
    Phase("upload", 0.5),
    Phase("model_loading", 0.8),
    Phase("inference", 3.0),
    Phase("post_processing", 0.8),
)

PHASE_MESSAGES = {
    "upload": "Uploading image...",
    "model_loading": "Loading AI model...",
    "inference": "Processing with AI...",
    "post_processing": "Refining result...",
    COMPLETED: "Done!",
}

PHASE_STEPS = 20
TICK_INTERVAL = 0.05  # seconds
SMOOTHING_STEPS = 20  # 20 ticks of 50ms: one second to catch up with the target
SIMULATION_CEILING = 90.0


@dataclass(frozen=True)
class ProgressInfo:
    """One progress update: the phase key, its step counter and the displayed percentage."""

    key: str
    current: int
    total: int
    percent: float

    @property
    def message(self) -> str:
        return PHASE_MESSAGES.get(self.key, "Processing...")


ProgressCallback = Callable[[ProgressInfo], None]


class ProgressState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ProgressSimulator:
    """
    Phase-labelled, smoothed progress for an operation with no progress signal.

    Use as an async context manager around the awaited call::

        async with ProgressSimulator(on_progress) as progress:
            response = await client.post(...)
            progress.complete()

    Leaving the block with an exception fails the simulator, leaving it
    normally completes it.
    """

    def __init__(
        self,
        on_progress: Optional[ProgressCallback] = None,
        phases: Sequence[Phase] = DEFAULT_PHASES,
        tick_interval: float = TICK_INTERVAL,
        phase_steps: int = PHASE_STEPS,
        smoothing_steps: int = SMOOTHING_STEPS,
        ceiling: float = SIMULATION_CEILING,
    ):
        if not phases:
            raise ValueError("ProgressSimulator needs at least one phase")
        if not 0 < ceiling < 100:
            raise ValueError("Simulation ceiling must be between 0 and 100")

        self.on_progress = on_progress
        self.phases = tuple(phases)
        self.tick_interval = tick_interval
        self.phase_steps = phase_steps
        self.smoothing_steps = smoothing_steps
        self.ceiling = ceiling

        self._phase_ticks = [max(1, round(phase.duration / tick_interval)) for phase in self.phases]
        self._total_ticks = sum(self._phase_ticks)

        self._state = ProgressState.PENDING
        self._task: Optional[asyncio.Task] = None
        self._phase_index = 0
        self._ticks_in_phase = 0
        self._ticks_done = 0
        self._key = self.phases[0].key
        self._current = 0
        self._total = phase_steps
        self._target = 0.0
        self._display = 0.0
        self._increment = 0.0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> ProgressState:
        return self._state

    @property
    def percent(self) -> float:
        return self._display

    @property
    def target(self) -> float:
        return self._target

    @property
    def is_settled(self) -> bool:
        return self._state in (ProgressState.COMPLETED, ProgressState.FAILED)

    @property
    def is_holding(self) -> bool:
        """True once every phase has elapsed and the display has caught up."""
        return self._phase_index >= len(self.phases) and self._display >= self._target

    @property
    def has_pending_timer(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self) -> ProgressInfo:
        return ProgressInfo(key=self._key, current=self._current, total=self._total, percent=self._display)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        """Emit the initial 0% update and start the scheduler task."""
        if self._state is not ProgressState.PENDING:
            raise RuntimeError(f"ProgressSimulator already {self._state.value}")
        self._state = ProgressState.RUNNING
        self._emit()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def complete(self):
        """Real success: stop the timers and jump to exactly 100%."""
        if self.is_settled:
            return
        self._cancel_timer()
        self._state = ProgressState.COMPLETED
        self._key = COMPLETED
        self._current = self._total = 100
        self._target = self._display = 100.0
        self._emit()

    def fail(self):
        """Real failure: stop the timers without emitting anything further."""
        if self.is_settled:
            return
        self._cancel_timer()
        self._state = ProgressState.FAILED
        log.debug("Progress simulation torn down", percent=round(self._display, 1))

    async def __aenter__(self) -> "ProgressSimulator":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.fail()
        else:
            self.complete()
        return False

    # ------------------------------------------------------------------
    # Scheduler
    # ------------------------------------------------------------------

    async def _run(self):
        while self._state is ProgressState.RUNNING and not self.is_holding:
            await asyncio.sleep(self.tick_interval)
            self.tick()

    def tick(self) -> Optional[ProgressInfo]:
        """Advance the simulated clock by one interval. Ignored once settled."""
        if self._state is not ProgressState.RUNNING:
            return None
        if self._phase_index < len(self.phases):
            self._advance_phase()
        self._advance_display()
        return self._emit()

    def _advance_phase(self):
        phase_ticks = self._phase_ticks[self._phase_index]
        self._ticks_in_phase += 1
        self._key = self.phases[self._phase_index].key
        self._current = min(self.phase_steps, self._ticks_in_phase * self.phase_steps // phase_ticks)
        self._total = self.phase_steps

        position = self._ticks_done + phase_ticks * self._current / self.phase_steps
        self._raise_target(self.ceiling * position / self._total_ticks)

        if self._ticks_in_phase >= phase_ticks:
            self._ticks_done += phase_ticks
            self._phase_index += 1
            self._ticks_in_phase = 0

    def _raise_target(self, value: float):
        if value <= self._target:
            return
        self._target = min(value, self.ceiling)
        self._increment = (self._target - self._display) / self.smoothing_steps

    def _advance_display(self):
        if self._display >= self._target:
            return
        self._display = min(self._target, self._display + self._increment)
        if self._target - self._display < 1e-9:
            self._display = self._target

    def _cancel_timer(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def _emit(self) -> ProgressInfo:
        info = self.snapshot()
        if self.on_progress is not None:
            try:
                self.on_progress(info)
            except Exception:
                # Callback errors never reach the awaited request
                log.exception("Progress callback failed", key=info.key)
        return info
