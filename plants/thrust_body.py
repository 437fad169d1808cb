"""
Vertical thrust body (drone altitude hold).

    F_net = (T_hover + u) - m g
    v(k+1) = v(k) + dt * F_net / m
    z(k+1) = z(k) + dt * v(k+1)

T_hover compensates the base mass only. Payload added between resets
raises the weight, so holding altitude needs a persistent offset in u,
which only the integral term can supply.
"""

from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from .base import Plant, PlantState


@dataclass(frozen=True)
class ThrustBodyParams:
    """Physical parameters of the drone."""
    gravity: float = 9.81
    base_mass: float = 2.0          # kg
    mass_increment: float = 1.0     # kg per payload event
    min_mass: float = 1.0
    max_mass: float = 100.0
    min_thrust: float = -500.0      # N, control signal bounds
    max_thrust: float = 500.0
    max_altitude: float = 100.0     # m
    initial_altitude: float = 50.0
    hover_thrust: Optional[float] = None   # N, defaults to base_mass * gravity
    setpoint_range: tuple = (20.0, 80.0)
    setpoint_base: float = 50.0

    def __post_init__(self):
        if not self.min_mass <= self.base_mass <= self.max_mass:
            raise ValueError("base_mass must lie within [min_mass, max_mass]")
        if self.min_mass <= 0:
            raise ValueError("min_mass must be positive")
        if self.min_thrust > self.max_thrust:
            raise ValueError("min_thrust must not exceed max_thrust")
        if not 0 < self.initial_altitude < self.max_altitude:
            raise ValueError("initial_altitude must lie strictly inside (0, max_altitude)")

    @property
    def hover_baseline(self) -> float:
        if self.hover_thrust is None:
            return self.base_mass * self.gravity
        return self.hover_thrust


@dataclass(frozen=True)
class ThrustState(PlantState):
    altitude: float = 50.0
    velocity: float = 0.0
    mass: float = 2.0


class ThrustBody(Plant):
    """
    Point mass lifted by a thrust command.

    State: [z, v] plus the current mass.
    Input: thrust correction on top of the hover baseline (N).

    Terminal ('crashed') when altitude reaches 0 or max_altitude; the
    altitude is clipped to the boundary and velocity zeroed.
    """

    state_fields = ('altitude', 'velocity')

    def __init__(self, params: ThrustBodyParams = ThrustBodyParams(),
                 dt: float = 0.001,
                 rng: Optional[np.random.Generator] = None):
        self.params = params
        super().__init__(dt, rng)

    def _setup_constraints(self) -> None:
        self.u_bounds = np.array([self.params.min_thrust, self.params.max_thrust])
        self.manual_scale = self.params.max_thrust

    def initial_state(self) -> ThrustState:
        return ThrustState(altitude=self.params.initial_altitude,
                           mass=self.params.base_mass)

    def hover_correction(self, mass: float) -> float:
        """Control signal that holds a body of the given mass in place."""
        return mass * self.params.gravity - self.params.hover_baseline

    def step(self, state: ThrustState, u: float, dt: Optional[float] = None,
             w=None) -> ThrustState:
        if state.terminal:
            return state
        dt = self.dt if dt is None else dt

        control = self.saturate_input(u)
        net_force = (self.params.hover_baseline + control) - state.mass * self.params.gravity
        acceleration = net_force / state.mass

        velocity = state.velocity + acceleration * dt
        altitude = state.altitude + velocity * dt

        terminal, failure = False, None
        if altitude <= 0 or altitude >= self.params.max_altitude:
            terminal, failure = True, 'crashed'
            altitude = float(np.clip(altitude, 0.0, self.params.max_altitude))
            velocity = 0.0

        return replace(state, time=state.time + dt, altitude=float(altitude),
                       velocity=float(velocity), actuation=control,
                       terminal=terminal, failure=failure)

    def derivatives(self, x: np.ndarray, u: float, mass: Optional[float] = None) -> np.ndarray:
        if mass is None:
            mass = self.params.base_mass
        net_force = (self.params.hover_baseline + u) - mass * self.params.gravity
        return np.array([x[1], net_force / mass])

    def error(self, state: ThrustState, setpoint: float) -> float:
        return setpoint - state.altitude

    def measured(self, state: ThrustState) -> float:
        return state.altitude

    def add_payload(self, state: ThrustState, amount: Optional[float] = None) -> ThrustState:
        """
        Increase the carried mass (capped at max_mass).

        Ignored once the body has crashed.
        """
        if state.terminal:
            return state
        if amount is None:
            amount = self.params.mass_increment
        mass = min(state.mass + amount, self.params.max_mass)
        return replace(state, mass=float(mass))
