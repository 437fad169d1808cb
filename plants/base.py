"""
Base class for fixed-step plant models.

Provides a standard interface for all plants used by the simulation loop:
a state-transition function, actuator saturation, the plant's error
definition and the hook that turns a PID evaluation into actuation.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class PlantState:
    """
    Fields shared by every plant state.

    Attributes:
        time: Elapsed simulated seconds since reset
        actuation: Last applied (saturated) control signal
        terminal: Sticky failure flag; step() is a no-op once set
        failure: Failure kind ('fallen', 'crashed') or None
    """
    time: float = 0.0
    actuation: float = 0.0
    terminal: bool = False
    failure: Optional[str] = None


class Plant(ABC):
    """
    Abstract base class for plant models.

    All plants implement the explicit transition:
        s(k+1) = step(s(k), u(k), dt, w(k))

    where:
        s: immutable state value (a PlantState subclass)
        u: raw actuation, saturated inside step()
        w: optional external disturbance

    Attributes:
        dt: Default physics step (seconds)
        rng: Random source for noise and randomized initial conditions
        u_bounds: Actuator limits as array [low, high]
        manual_scale: Physical units per unit of normalised manual input
        state_fields: Names of the continuous state variables
    """

    state_fields: Tuple[str, ...] = ()

    def __init__(self, dt: float, rng: Optional[np.random.Generator] = None):
        """
        Initialize plant.

        Args:
            dt: Physics step in seconds
            rng: Random number generator (for reproducibility)
        """
        if dt <= 0:
            raise ValueError("dt must be positive")
        self.dt = dt
        self.rng = rng if rng is not None else np.random.default_rng()
        self.manual_scale = 1.0
        self._setup_constraints()

    @abstractmethod
    def _setup_constraints(self) -> None:
        """Set up actuator bounds and manual scaling."""
        pass

    @abstractmethod
    def initial_state(self) -> PlantState:
        """Fresh state for a reset (may be randomized through self.rng)."""
        pass

    @abstractmethod
    def step(self, state: PlantState, u: float, dt: Optional[float] = None,
             w=None) -> PlantState:
        """
        Advance the plant by one physics step.

        Never raises for out-of-range actuation; the input is saturated.
        Returns the same state object when state.terminal is set.

        Args:
            state: Current state
            u: Raw actuation
            dt: Step size (defaults to self.dt)
            w: Disturbance (plant specific, ignored by plants without one)

        Returns:
            Next state
        """
        pass

    @abstractmethod
    def error(self, state: PlantState, setpoint: float) -> float:
        """Control error fed to the PID for this plant."""
        pass

    @abstractmethod
    def measured(self, state: PlantState) -> float:
        """Primary measured quantity (what the setpoint refers to)."""
        pass

    def derivatives(self, x: np.ndarray, u: float) -> np.ndarray:
        """
        Continuous-time dynamics dx/dt = f(x, u) on the state_fields vector.

        Optional: only get_linearization() calls it, and stepping never
        does. A plant without a continuous model can leave it out and
        simply cannot be linearized.
        """
        raise NotImplementedError(f"{self.__class__.__name__} has no continuous model")

    def saturate_input(self, u: float) -> float:
        """
        Saturate control input to respect actuator limits.

        NaN is treated as no actuation and infinities saturate to the
        nearest bound, so the result is always finite.

        Args:
            u: Raw control input

        Returns:
            Saturated control input within bounds
        """
        u = np.nan_to_num(u, nan=0.0)
        return float(np.clip(u, self.u_bounds[0], self.u_bounds[1]))

    def manual_actuation(self, value: float) -> float:
        """Map a normalised manual input to physical actuation."""
        return value * self.manual_scale

    def compute_control_signal(self, pid, state: PlantState, setpoint: float,
                               gains, dt: float):
        """
        Evaluate the PID on this plant's error.

        Args:
            pid: PIDController bound to this plant's loop
            state: Current state
            setpoint: Active setpoint
            gains: PIDGains for this call
            dt: Physics step

        Returns:
            u: Actuation before saturation
            terms: PIDOutput of the evaluation
        """
        terms = pid.compute(self.error(state, setpoint), gains, dt)
        return terms.output, terms

    def to_array(self, state: PlantState) -> np.ndarray:
        """Continuous state variables as a vector (order of state_fields)."""
        return np.array([getattr(state, name) for name in self.state_fields], dtype=float)

    def get_linearization(self, x_eq: np.ndarray,
                          u_eq: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Get continuous linearized matrices A, B around an operating point.

            dx/dt ≈ A @ (x - x_eq) + B * (u - u_eq)

        Uses central differences on derivatives().

        Args:
            x_eq: Operating point state vector
            u_eq: Operating point input

        Returns:
            A: State matrix (n x n)
            B: Input matrix (n x 1)
        """
        eps = 1e-6
        x_eq = np.asarray(x_eq, dtype=float)
        n = x_eq.shape[0]
        A = np.zeros((n, n))
        B = np.zeros((n, 1))

        # Compute A matrix (df/dx)
        for i in range(n):
            x_plus = x_eq.copy()
            x_minus = x_eq.copy()
            x_plus[i] += eps
            x_minus[i] -= eps
            A[:, i] = (self.derivatives(x_plus, u_eq) - self.derivatives(x_minus, u_eq)) / (2 * eps)

        # Compute B matrix (df/du)
        B[:, 0] = (self.derivatives(x_eq, u_eq + eps)
                   - self.derivatives(x_eq, u_eq - eps)) / (2 * eps)

        return A, B

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(dt={self.dt})"
