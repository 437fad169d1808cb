"""
Inverted pendulum on a cart.

Coupled nonlinear dynamics with viscous friction on cart (b) and pivot (c):

    denom = l * (4/3 - m cos²θ / (M + m))
    θ̈ = (g sinθ + cosθ (-F - m l θ̇² sinθ + b ẋ) / (M + m) - c θ̇ / (m l) + n) / denom
    ẍ = (F + m l (θ̇² sinθ - θ̈ cosθ) - b ẋ) / (M + m)

integrated with semi-implicit Euler (velocities first). θ is measured from
the upright position and wrapped into (-π, π]. n is a small uniform noise
term drawn from the plant's random source every step.

A floor tilt φ rotates gravity relative to the track: the pendulum sees
θ + φ and the cart feels an along-track force (M + m) g sin φ.
"""

from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from .base import Plant, PlantState

TRACK_POLICIES = ('crash', 'bounce')


@dataclass(frozen=True)
class CartPendulumParams:
    """Physical parameters of the cart-pendulum."""
    gravity: float = 9.81
    pendulum_length: float = 2.0    # m
    pendulum_mass: float = 0.25     # kg
    cart_mass: float = 1.0          # kg
    cart_friction: float = 0.1
    pendulum_friction: float = 0.01
    noise_amplitude: float = 0.002
    track_width: float = 20.0       # m, total
    track_margin: float = 0.2       # m
    force_limit: float = 50.0       # N
    position_gain: float = 20.0     # N/m, cart centering added to PID output
    velocity_gain: float = 10.0     # N*s/m
    initial_angle_spread: float = 0.1  # rad, full width of the uniform draw
    track_policy: str = 'crash'
    restitution: float = 0.5

    def __post_init__(self):
        if self.pendulum_length <= 0:
            raise ValueError("pendulum_length must be positive")
        if self.pendulum_mass <= 0 or self.cart_mass <= 0:
            raise ValueError("masses must be positive")
        if self.track_width / 2 <= self.track_margin:
            raise ValueError("track_width too small for track_margin")
        if self.track_policy not in TRACK_POLICIES:
            raise ValueError(f"track_policy must be one of {TRACK_POLICIES}")

    @property
    def track_limit(self) -> float:
        """Largest |x| before the cart hits the end stops."""
        return self.track_width / 2 - self.track_margin


@dataclass(frozen=True)
class PendulumDisturbance:
    """External perturbation for one step."""
    force: float = 0.0   # N, added after actuator saturation
    tilt: float = 0.0    # rad, floor angle


@dataclass(frozen=True)
class PendulumState(PlantState):
    theta: float = 0.0
    theta_dot: float = 0.0
    x: float = 0.0
    x_dot: float = 0.0
    floor_tilt: float = 0.0
    disturbance_force: float = 0.0


def wrap_angle(theta: float) -> float:
    """Wrap an angle into (-π, π]."""
    while theta > np.pi:
        theta -= 2 * np.pi
    while theta <= -np.pi:
        theta += 2 * np.pi
    return theta


class CartPendulum(Plant):
    """
    Cart-pendulum plant.

    State: [θ, θ̇, x, ẋ]
    Input: horizontal force on the cart (N), saturated to ±force_limit.

    Terminal conditions:
        'crashed' when |x| exceeds the track limit (policy 'crash'),
        'fallen' when |θ| > π/2.
    With policy 'bounce' the cart is stopped at the limit and its
    velocity reflected with restitution instead of crashing.
    """

    state_fields = ('theta', 'theta_dot', 'x', 'x_dot')

    def __init__(self, params: CartPendulumParams = CartPendulumParams(),
                 dt: float = 0.001,
                 rng: Optional[np.random.Generator] = None):
        self.params = params
        super().__init__(dt, rng)

    def _setup_constraints(self) -> None:
        self.u_bounds = np.array([-self.params.force_limit, self.params.force_limit])
        self.manual_scale = 30.0

    def initial_state(self) -> PendulumState:
        half = self.params.initial_angle_spread / 2
        return PendulumState(theta=float(self.rng.uniform(-half, half)))

    def _accelerations(self, theta: float, theta_dot: float, x_dot: float,
                       force: float, tilt: float = 0.0, noise: float = 0.0):
        p = self.params
        m, M, l, g = p.pendulum_mass, p.cart_mass, p.pendulum_length, p.gravity
        b, c = p.cart_friction, p.pendulum_friction
        total_mass = M + m

        sin_t = np.sin(theta + tilt)
        cos_t = np.cos(theta + tilt)
        cart_gravity = total_mass * g * np.sin(tilt)

        denom = l * (4.0 / 3.0 - (m * cos_t * cos_t) / total_mass)
        theta_ddot = (g * sin_t
                      + cos_t * ((-force - cart_gravity - m * l * theta_dot ** 2 * sin_t
                                  + b * x_dot) / total_mass)
                      - c * theta_dot / (m * l) + noise) / denom
        x_ddot = (force + cart_gravity
                  + m * l * (theta_dot ** 2 * sin_t - theta_ddot * cos_t)
                  - b * x_dot) / total_mass
        return theta_ddot, x_ddot

    def step(self, state: PendulumState, u: float, dt: Optional[float] = None,
             w: Optional[PendulumDisturbance] = None) -> PendulumState:
        if state.terminal:
            return state
        dt = self.dt if dt is None else dt
        if w is None:
            w = PendulumDisturbance()

        commanded = self.saturate_input(u)
        force = commanded + w.force
        amp = self.params.noise_amplitude
        noise = float(self.rng.uniform(-amp, amp)) if amp > 0 else 0.0

        theta_ddot, x_ddot = self._accelerations(state.theta, state.theta_dot,
                                                 state.x_dot, force, w.tilt, noise)

        theta_dot = state.theta_dot + theta_ddot * dt
        theta = wrap_angle(state.theta + theta_dot * dt)
        x_dot = state.x_dot + x_ddot * dt
        x = state.x + x_dot * dt

        terminal, failure = False, None
        limit = self.params.track_limit
        if abs(x) > limit:
            if self.params.track_policy == 'bounce':
                x = float(np.sign(x) * limit)
                x_dot = -x_dot * self.params.restitution
            else:
                terminal, failure = True, 'crashed'
        if not terminal and abs(theta) > np.pi / 2:
            terminal, failure = True, 'fallen'

        return replace(state, time=state.time + dt, theta=float(theta),
                       theta_dot=float(theta_dot), x=float(x), x_dot=float(x_dot),
                       actuation=commanded, floor_tilt=w.tilt,
                       disturbance_force=w.force, terminal=terminal, failure=failure)

    def derivatives(self, x: np.ndarray, u: float) -> np.ndarray:
        theta, theta_dot, _, x_dot = x
        theta_ddot, x_ddot = self._accelerations(theta, theta_dot, x_dot, u)
        return np.array([theta_dot, theta_ddot, x_dot, x_ddot])

    def error(self, state: PendulumState, setpoint: float = 0.0) -> float:
        # Positive tilt needs positive force, so error is measured - setpoint
        return state.theta - setpoint

    def measured(self, state: PendulumState) -> float:
        return state.theta

    def compute_control_signal(self, pid, state: PendulumState, setpoint: float,
                               gains, dt: float):
        """PID on the angle plus proportional cart-centering feedback."""
        terms = pid.compute(self.error(state, setpoint), gains, dt)
        centering = self.params.position_gain * state.x + self.params.velocity_gain * state.x_dot
        return self.saturate_input(terms.output + centering), terms
