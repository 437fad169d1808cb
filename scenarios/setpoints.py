"""
Setpoint profiles.

Pure functions of simulated time:
    constant:  r(t) = value
    sine:      r(t) = base + A sin(2π f t)
    box:       r(t) = base + A   for the first half of each period 1/f
                      base - A   for the second half
"""

from dataclasses import dataclass

import numpy as np

SETPOINT_MODES = ('constant', 'sine', 'box')


def constant_setpoint(time: float, value: float) -> float:
    return value


def sine_setpoint(time: float, base: float, amplitude: float, freq: float) -> float:
    return base + amplitude * np.sin(2 * np.pi * freq * time)


def box_setpoint(time: float, base: float, amplitude: float, freq: float) -> float:
    period = 1.0 / freq
    phase = (time % period) / period
    return base + (amplitude if phase < 0.5 else -amplitude)


@dataclass(frozen=True)
class SetpointProfile:
    """
    Setpoint generator selected by mode.

    Attributes:
        mode: 'constant', 'sine' or 'box'
        value: Level for the constant mode
        base: Centre line for sine and box modes
        amplitude: Swing around base
        frequency: Cycles per simulated second (sine and box)
    """
    mode: str = 'constant'
    value: float = 0.0
    base: float = 0.0
    amplitude: float = 0.0
    frequency: float = 0.1

    def __post_init__(self):
        if self.mode not in SETPOINT_MODES:
            raise ValueError(f"Unknown setpoint mode '{self.mode}'. Use one of {SETPOINT_MODES}")
        if self.mode != 'constant' and self.frequency <= 0:
            raise ValueError("frequency must be positive")

    def __call__(self, time: float) -> float:
        if self.mode == 'sine':
            return float(sine_setpoint(time, self.base, self.amplitude, self.frequency))
        if self.mode == 'box':
            return float(box_setpoint(time, self.base, self.amplitude, self.frequency))
        return float(constant_setpoint(time, self.value))

    @classmethod
    def constant(cls, value: float) -> 'SetpointProfile':
        return cls(mode='constant', value=value, base=value)

    @classmethod
    def sine(cls, base: float, amplitude: float, frequency: float) -> 'SetpointProfile':
        return cls(mode='sine', value=base, base=base, amplitude=amplitude,
                   frequency=frequency)

    @classmethod
    def box(cls, base: float, amplitude: float, frequency: float) -> 'SetpointProfile':
        return cls(mode='box', value=base, base=base, amplitude=amplitude,
                   frequency=frequency)
