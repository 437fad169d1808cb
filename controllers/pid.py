"""
PID compute unit for discrete-time plants.

Implements discrete PID with anti-windup and a moving-average derivative:
    I(k) = clip(I(k-1) + e(k)*dt, I_min, I_max)
    d(k) = (e(k) - e(k-1)) / dt        (0 on the first call after reset)
    D(k) = mean(d(k-N+1), ..., d(k))
    u(k) = Kp*e(k) + Ki*I(k) + Kd*D(k)

The output is not clamped here; actuator limits belong to the plant.
"""

from collections import deque
from dataclasses import dataclass
from typing import NamedTuple, Dict, Any

import numpy as np


@dataclass(frozen=True)
class PIDGains:
    """Proportional, integral and derivative gains."""
    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0


@dataclass(frozen=True)
class PIDConfig:
    """
    Anti-windup bounds and derivative filter length.

    Attributes:
        integral_min: Lower clamp for the integral accumulator
        integral_max: Upper clamp for the integral accumulator
        derivative_window: Number of raw derivative samples averaged
    """
    integral_min: float = -np.inf
    integral_max: float = np.inf
    derivative_window: int = 5

    def __post_init__(self):
        if self.integral_min > self.integral_max:
            raise ValueError("integral_min must not exceed integral_max")
        if self.derivative_window < 1:
            raise ValueError("derivative_window must be at least 1")


class PIDOutput(NamedTuple):
    """Result of one PID evaluation."""
    output: float
    error_p: float
    error_i: float
    error_d: float


class PIDController:
    """
    Stateful PID unit with integral clamping and derivative smoothing.

    Gains are passed on every call so the caller can retune them while
    the loop is running; only the error history lives in the controller.
    """

    def __init__(self, config: PIDConfig = PIDConfig()):
        """
        Initialize PID unit.

        Args:
            config: Anti-windup limits and derivative window size
        """
        self.config = config
        self._integral = 0.0
        self._prev_error = 0.0
        self._initialized = False
        self._derivative_history = deque(maxlen=config.derivative_window)

    @property
    def integral(self) -> float:
        """Current (clamped) integral accumulator."""
        return self._integral

    @property
    def initialized(self) -> bool:
        return self._initialized

    def compute(self, error: float, gains: PIDGains, dt: float) -> PIDOutput:
        """
        Advance the controller by one sample.

        Args:
            error: Current error (sign convention chosen by the plant)
            gains: Gains for this call
            dt: Sample period in seconds

        Returns:
            PIDOutput with the raw output and the P, I and D error terms
        """
        error = float(error)

        self._integral = float(np.clip(self._integral + error * dt,
                                       self.config.integral_min,
                                       self.config.integral_max))

        if self._initialized:
            raw_derivative = (error - self._prev_error) / dt
        else:
            raw_derivative = 0.0

        self._derivative_history.append(raw_derivative)
        derivative = sum(self._derivative_history) / len(self._derivative_history)

        output = gains.kp * error + gains.ki * self._integral + gains.kd * derivative

        self._prev_error = error
        self._initialized = True

        return PIDOutput(output=output, error_p=error,
                         error_i=self._integral, error_d=derivative)

    def reset(self) -> None:
        """Clear integral, previous error and the derivative window."""
        self._integral = 0.0
        self._prev_error = 0.0
        self._initialized = False
        self._derivative_history.clear()

    def reset_integral(self) -> None:
        """Drop the accumulated error only (e.g. after a setpoint jump)."""
        self._integral = 0.0

    def get_state(self) -> Dict[str, Any]:
        """Copy of the internal state for display."""
        return {
            'integral': self._integral,
            'prev_error': self._prev_error,
            'initialized': self._initialized,
            'derivative_history': list(self._derivative_history),
        }
