"""
Ready-made simulators for the three plants.

Each preset wires a plant with its default gains, anti-windup limits,
setpoint behaviour and one-shot events.
"""

from typing import Optional

import numpy as np

from controllers.pid import PIDGains, PIDConfig
from plants.thermal import ThermalTank, ThermalTankParams
from plants.cart_pendulum import CartPendulum, CartPendulumParams, PendulumDisturbance
from plants.thrust_body import ThrustBody, ThrustBodyParams
from scenarios.setpoints import SetpointProfile
from scenarios.disturbances import NudgeTrain, FloorTilt, Impulse
from .simulator import Simulator

DISTURBANCE_MODES = ('none', 'nudges', 'tilts')


class ThermalSimulator(Simulator):
    """
    Hot tub under heater control.

    Runs 600x faster than wall clock by default: a 0.1 s physics step
    and a tub that takes hours to warm up.
    """

    default_time_scale = 600.0

    def __init__(self, params: ThermalTankParams = ThermalTankParams(),
                 gains: PIDGains = PIDGains(kp=2500.0, ki=0.0, kd=0.0),
                 pid_config: PIDConfig = PIDConfig(),
                 dt: float = 0.1,
                 rng: Optional[np.random.Generator] = None,
                 **kwargs):
        plant = ThermalTank(params, dt=dt, rng=rng)
        kwargs.setdefault('setpoint', SetpointProfile.constant(params.initial_setpoint))
        kwargs.setdefault('setpoint_range', params.setpoint_range)
        super().__init__(plant, gains=gains, pid_config=pid_config, **kwargs)

    def set_ambient(self, ambient: float) -> None:
        self.state = self.plant.with_ambient(self.state, ambient)

    def randomize_ambient(self) -> float:
        """Draw a new ambient temperature from the configured range."""
        low, high = self.plant.params.ambient_range
        ambient = float(self.plant.rng.uniform(low, high))
        self.set_ambient(ambient)
        return ambient


class DroneSimulator(Simulator):
    """
    Altitude hold with payload changes.

    The hover baseline only covers the base mass, so every payload
    event adds a steady offset the integral term has to absorb.
    """

    def __init__(self, params: ThrustBodyParams = ThrustBodyParams(),
                 gains: PIDGains = PIDGains(kp=25.0, ki=0.0, kd=0.0),
                 pid_config: PIDConfig = PIDConfig(integral_min=-50.0, integral_max=50.0),
                 dt: float = 0.001,
                 rng: Optional[np.random.Generator] = None,
                 **kwargs):
        plant = ThrustBody(params, dt=dt, rng=rng)
        kwargs.setdefault('setpoint', SetpointProfile.constant(params.setpoint_base))
        kwargs.setdefault('setpoint_range', params.setpoint_range)
        super().__init__(plant, gains=gains, pid_config=pid_config, **kwargs)

    def set_setpoint_mode(self, mode: str, value: Optional[float] = None,
                          amplitude: float = 20.0, frequency: float = 0.1) -> None:
        """
        Select constant, sine or box setpoint around the base altitude.

        Args:
            mode: 'constant', 'sine' or 'box'
            value: Level for constant mode (defaults to the base altitude)
            amplitude: Swing for sine and box modes (m)
            frequency: Cycles per simulated second
        """
        base = self.plant.params.setpoint_base
        if mode == 'constant':
            profile = SetpointProfile.constant(base if value is None else value)
        elif mode == 'sine':
            profile = SetpointProfile.sine(base, amplitude, frequency)
        elif mode == 'box':
            profile = SetpointProfile.box(base, amplitude, frequency)
        else:
            raise ValueError(f"Unknown setpoint mode '{mode}'")
        self.set_setpoint_profile(profile)

    def add_payload(self, amount: Optional[float] = None) -> float:
        """
        Add mass to the drone (ignored after a crash).

        Returns:
            Current mass in kg
        """
        self.state = self.plant.add_payload(self.state, amount)
        return self.state.mass


class PendulumSimulator(Simulator):
    """
    Cart-pendulum balancing at the upright setpoint.

    Disturbance modes: 'none', 'nudges' (periodic alternating pushes) or
    'tilts' (rocking floor). apply_nudge() adds a single push on top of
    whichever mode is active.
    """

    def __init__(self, params: CartPendulumParams = CartPendulumParams(),
                 gains: PIDGains = PIDGains(kp=250.0, ki=25.0, kd=75.0),
                 pid_config: PIDConfig = PIDConfig(),
                 dt: float = 0.001,
                 rng: Optional[np.random.Generator] = None,
                 disturbance_mode: str = 'none',
                 nudge_train: NudgeTrain = NudgeTrain(),
                 floor_tilt: FloorTilt = FloorTilt(),
                 **kwargs):
        self.nudge_train = nudge_train
        self.floor_tilt = floor_tilt
        self._impulse: Optional[Impulse] = None
        self.best_time = 0.0
        self.set_disturbance_mode(disturbance_mode)

        plant = CartPendulum(params, dt=dt, rng=rng)
        kwargs.setdefault('setpoint', SetpointProfile.constant(0.0))
        super().__init__(plant, gains=gains, pid_config=pid_config, **kwargs)

    def set_disturbance_mode(self, mode: str) -> None:
        if mode not in DISTURBANCE_MODES:
            raise ValueError(f"Unknown disturbance mode '{mode}'. Use one of {DISTURBANCE_MODES}")
        self.disturbance_mode = mode

    def apply_nudge(self, amplitude: float = 50.0, duration: float = 0.2) -> None:
        """Push the cart once, starting at the current simulated time."""
        self._impulse = Impulse(start=self.state.time, amplitude=amplitude,
                                duration=duration)

    def disturbance(self, time: float) -> PendulumDisturbance:
        force = 0.0
        tilt = 0.0
        if self._impulse is not None:
            force += self._impulse(time)
            if self._impulse.expired(time):
                self._impulse = None
        if self.disturbance_mode == 'nudges':
            force += self.nudge_train(time)
        elif self.disturbance_mode == 'tilts':
            tilt = self.floor_tilt(time)
        return PendulumDisturbance(force=force, tilt=tilt)

    def reset(self) -> None:
        super().reset()
        self._impulse = None

    def step(self):
        state = super().step()
        if state.terminal:
            self.best_time = max(self.best_time, state.time)
        return state
