"""
Actuation sources for the two control modes.

PIDFeedback closes the loop through a PIDController using the plant's own
error definition. ManualController forwards a normalised operator input
scaled to the plant's actuator range.
"""

from typing import Tuple, Dict, Any

from .base import Controller
from .pid import PIDController, PIDConfig, PIDGains


class PIDFeedback(Controller):
    """
    Automatic mode: PID on the plant-defined error.

    The gains attribute may be replaced between steps (hot retuning);
    the integral and derivative history are kept across such changes.
    """

    def __init__(self,
                 gains: PIDGains = PIDGains(),
                 config: PIDConfig = PIDConfig(),
                 name: str = "PID"):
        """
        Initialize PID feedback.

        Args:
            gains: Initial gains
            config: Anti-windup limits and derivative window
            name: Controller name
        """
        super().__init__(name)
        self.gains = gains
        self.pid = PIDController(config)

    def reset(self) -> None:
        """Reset integral and derivative state."""
        self.pid.reset()

    def reset_integral(self) -> None:
        self.pid.reset_integral()

    def compute_control(self, state, setpoint: float,
                        dt: float) -> Tuple[float, Dict[str, Any]]:
        """
        Compute PID actuation for the bound plant.

        Args:
            state: Current plant state
            setpoint: Active setpoint
            dt: Physics time step

        Returns:
            u: Actuation before plant saturation
            diagnostics: Contains error, P/I/D terms and integral
        """
        if self.plant is None:
            raise ValueError("Plant not set. Call set_plant() first.")

        u, terms = self.plant.compute_control_signal(self.pid, state, setpoint,
                                                     self.gains, dt)

        diagnostics = {
            'error': terms.error_p,
            'P_term': self.gains.kp * terms.error_p,
            'I_term': self.gains.ki * terms.error_i,
            'D_term': self.gains.kd * terms.error_d,
            'error_p': terms.error_p,
            'error_i': terms.error_i,
            'error_d': terms.error_d,
            'integral': self.pid.integral,
            'pid_output': terms.output,
        }
        return u, diagnostics


class ManualController(Controller):
    """
    Manual mode: operator input in normalised units.

    The plant maps the input to physical units (e.g. 1.0 -> full heater
    power) and the plant's step clamps the result.
    """

    def __init__(self, value: float = 0.0, name: str = "Manual"):
        super().__init__(name)
        self.value = value

    def compute_control(self, state, setpoint: float,
                        dt: float) -> Tuple[float, Dict[str, Any]]:
        if self.plant is None:
            raise ValueError("Plant not set. Call set_plant() first.")

        u = self.plant.manual_actuation(self.value)
        diagnostics = {
            'error': self.plant.error(state, setpoint),
            'manual_input': self.value,
        }
        return u, diagnostics
