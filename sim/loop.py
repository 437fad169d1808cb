"""
Fixed-step time stepping.

Wall-clock frame deltas are capped, scaled and accumulated; the
accumulator is drained in whole physics steps of dt. Trajectories
therefore depend on total elapsed time, not on the frame rate.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np


@dataclass(frozen=True)
class LoopConfig:
    """
    Timing parameters for a running simulation.

    Attributes:
        max_frame_ms: Longest wall-clock delta honoured per frame (stall cap)
        render_interval_ms: Minimum wall-clock time between render callbacks
        plot_interval: Minimum simulated time between history samples (s)
        time_scale: Simulated ms per wall-clock ms; None uses the simulator default
    """
    max_frame_ms: float = 50.0
    render_interval_ms: float = 16.0
    plot_interval: float = 0.05
    time_scale: Optional[float] = None

    def __post_init__(self):
        if self.max_frame_ms <= 0:
            raise ValueError("max_frame_ms must be positive")
        if self.time_scale is not None and self.time_scale <= 0:
            raise ValueError("time_scale must be positive")


class FixedStepLoop:
    """
    Accumulator that runs step_fn once per elapsed dt.

    Host agnostic: the caller feeds elapsed wall-clock milliseconds through
    advance(); leftover time below one step is carried to the next frame.
    """

    def __init__(self, dt: float, step_fn: Callable[[], None],
                 time_scale: float = 1.0, max_frame_ms: float = 50.0):
        """
        Initialize loop.

        Args:
            dt: Physics step (seconds)
            step_fn: Called once per physics step
            time_scale: Simulated time per unit wall-clock time
            max_frame_ms: Stall cap applied to each frame delta
        """
        if dt <= 0:
            raise ValueError("dt must be positive")
        self.dt = dt
        self.step_fn = step_fn
        self.time_scale = time_scale
        self.max_frame_ms = max_frame_ms
        self.accumulator_ms = 0.0
        self.total_steps = 0

    @property
    def step_ms(self) -> float:
        return self.dt * 1000.0

    def advance(self, delta_ms: float) -> int:
        """
        Consume one frame of wall-clock time.

        Args:
            delta_ms: Wall-clock time since the previous frame

        Returns:
            Number of physics steps executed
        """
        delta_ms = float(np.clip(delta_ms, 0.0, self.max_frame_ms))
        self.accumulator_ms += delta_ms * self.time_scale

        steps = 0
        step_ms = self.step_ms
        while self.accumulator_ms >= step_ms:
            self.step_fn()
            self.accumulator_ms -= step_ms
            steps += 1

        self.total_steps += steps
        return steps

    def reset(self) -> None:
        self.accumulator_ms = 0.0
        self.total_steps = 0


class RateLimiter:
    """Lets an event through at most once per interval of its own clock."""

    def __init__(self, interval: float, start: float = 0.0):
        self.interval = interval
        self.start = start
        self.last = start

    def ready(self, now: float) -> bool:
        if now - self.last >= self.interval:
            self.last = now
            return True
        return False

    def reset(self, start: Optional[float] = None) -> None:
        if start is not None:
            self.start = start
        self.last = self.start
