"""
Time-indexed disturbances for the cart-pendulum.

Nudge train: alternating ±A impulses lasting impulse_duration at the start
of each half period of 1/f. Floor tilt: sinusoidal angle A sin(2π f t).
Impulse: a single push of fixed size over a short window.
"""

from dataclasses import dataclass

import numpy as np

NUDGE_IMPULSE_DURATION = 0.5  # s


def nudge_force(time: float, amplitude: float, freq: float,
                impulse_duration: float = NUDGE_IMPULSE_DURATION) -> float:
    """
    Alternating impulse force.

    Args:
        time: Simulated time (s)
        amplitude: Force magnitude (N)
        freq: Full left/right cycles per second
        impulse_duration: Active window at the start of each half period (s)

    Returns:
        +amplitude, -amplitude or 0.0
    """
    period = 1.0 / freq
    half_period = period / 2
    time_in_period = time % period

    first_half = time_in_period < half_period
    time_in_half = time_in_period if first_half else time_in_period - half_period

    if time_in_half < impulse_duration:
        return amplitude if first_half else -amplitude
    return 0.0


def tilt_angle(time: float, amplitude_rad: float, freq: float) -> float:
    return amplitude_rad * np.sin(2 * np.pi * freq * time)


@dataclass(frozen=True)
class NudgeTrain:
    """Periodic alternating pushes on the cart."""
    amplitude: float = 30.0
    frequency: float = 0.5
    impulse_duration: float = NUDGE_IMPULSE_DURATION

    def __post_init__(self):
        if self.frequency <= 0:
            raise ValueError("frequency must be positive")

    def __call__(self, time: float) -> float:
        return nudge_force(time, self.amplitude, self.frequency, self.impulse_duration)


@dataclass(frozen=True)
class FloorTilt:
    """Sinusoidal floor rocking; amplitude given in degrees."""
    amplitude_deg: float = 5.0
    frequency: float = 0.2

    def __post_init__(self):
        if self.frequency <= 0:
            raise ValueError("frequency must be positive")

    @property
    def amplitude_rad(self) -> float:
        return float(np.deg2rad(self.amplitude_deg))

    def __call__(self, time: float) -> float:
        return float(tilt_angle(time, self.amplitude_rad, self.frequency))


@dataclass(frozen=True)
class Impulse:
    """One-shot push active on [start, start + duration)."""
    start: float
    amplitude: float = 50.0
    duration: float = 0.2

    def __call__(self, time: float) -> float:
        if self.start <= time < self.start + self.duration:
            return self.amplitude
        return 0.0

    def expired(self, time: float) -> bool:
        return time >= self.start + self.duration
