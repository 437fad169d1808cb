"""
Base controller interface.

All controllers must implement compute_control(state, setpoint, dt) -> (u, diagnostics).
"""

from abc import ABC, abstractmethod
from typing import Tuple, Dict, Any


class Controller(ABC):
    """
    Abstract base class for actuation sources.

    A controller turns the current plant state (and the active setpoint)
    into a raw actuation value. Saturation to actuator limits is left to
    the plant, so the returned value may be out of range.

    Attributes:
        name: Human-readable controller name
        plant: Reference to the plant model (for error definition and scaling)
    """

    def __init__(self, name: str = "BaseController"):
        """
        Initialize controller.

        Args:
            name: Controller identifier for diagnostics
        """
        self.name = name
        self.plant = None

    def set_plant(self, plant) -> None:
        """
        Associate controller with a plant model.

        Args:
            plant: Plant instance
        """
        self.plant = plant

    @abstractmethod
    def compute_control(self, state, setpoint: float,
                        dt: float) -> Tuple[float, Dict[str, Any]]:
        """
        Compute control action.

        Args:
            state: Current plant state
            setpoint: Active setpoint at state.time
            dt: Physics time step (seconds)

        Returns:
            u: Raw actuation (before saturation)
            diagnostics: Dictionary with controller-specific info, e.g.:
                - 'error': tracking error
                - 'P_term', 'I_term', 'D_term': PID contributions
        """
        pass

    def reset(self) -> None:
        """Reset controller state (for controllers with memory, e.g., PID)."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}')"
