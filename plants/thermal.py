"""
Heated water tub (lumped thermal mass).

    heat_loss = h * (T - T_amb)
    T(k+1) = clip(T(k) + dt * (P(k) - heat_loss) / C, T_min, T_max)

with C = water_mass * specific_heat. The heater can only add energy,
so P is clamped to [0, P_max]; cooling happens through ambient loss alone.
Steady state under constant P: T_ss = T_amb + P / h.
"""

from dataclasses import dataclass, replace
from typing import Optional

import numpy as np

from .base import Plant, PlantState


@dataclass(frozen=True)
class ThermalTankParams:
    """Physical parameters of the tub."""
    water_mass: float = 1500.0          # kg
    specific_heat: float = 4186.0       # J/(kg*K)
    heat_loss_coefficient: float = 500.0  # W/K
    min_heater_power: float = 0.0       # W
    max_heater_power: float = 15000.0   # W
    min_temp: float = 0.0               # degC
    max_temp: float = 50.0              # degC
    initial_temp: float = 38.0
    initial_ambient: float = 20.0
    initial_setpoint: float = 38.0
    setpoint_range: tuple = (30.0, 42.0)
    ambient_range: tuple = (-10.0, 35.0)

    def __post_init__(self):
        if self.water_mass <= 0 or self.specific_heat <= 0:
            raise ValueError("water_mass and specific_heat must be positive")
        if self.heat_loss_coefficient < 0:
            raise ValueError("heat_loss_coefficient must be non-negative")
        if self.min_heater_power > self.max_heater_power:
            raise ValueError("min_heater_power must not exceed max_heater_power")
        if self.min_temp > self.max_temp:
            raise ValueError("min_temp must not exceed max_temp")

    @property
    def thermal_mass(self) -> float:
        """Energy per kelvin, J/K."""
        return self.water_mass * self.specific_heat


@dataclass(frozen=True)
class ThermalState(PlantState):
    temperature: float = 38.0
    ambient: float = 20.0


class ThermalTank(Plant):
    """
    First-order thermal plant.

    State: temperature (the ambient temperature travels with the state so
    an external event can change it between steps).
    Input: heater power in watts.

    Temperature saturation at [min_temp, max_temp] is a physical bound,
    not a failure, so this plant never becomes terminal.
    """

    state_fields = ('temperature',)

    def __init__(self, params: ThermalTankParams = ThermalTankParams(),
                 dt: float = 0.1,
                 rng: Optional[np.random.Generator] = None):
        self.params = params
        super().__init__(dt, rng)

    def _setup_constraints(self) -> None:
        self.u_bounds = np.array([self.params.min_heater_power,
                                  self.params.max_heater_power])
        # Manual input 0..1 maps onto the full heater range
        self.manual_scale = self.params.max_heater_power

    def initial_state(self) -> ThermalState:
        return ThermalState(temperature=self.params.initial_temp,
                            ambient=self.params.initial_ambient)

    def heat_loss(self, temperature: float, ambient: float) -> float:
        """Power lost to the surroundings (W); negative when ambient is hotter."""
        return self.params.heat_loss_coefficient * (temperature - ambient)

    def steady_state_temperature(self, power: float, ambient: float) -> float:
        """Temperature reached under constant heater power."""
        power = self.saturate_input(power)
        h = self.params.heat_loss_coefficient
        if h == 0:
            return self.params.max_temp if power > 0 else self.params.min_temp
        return float(np.clip(ambient + power / h,
                             self.params.min_temp, self.params.max_temp))

    def step(self, state: ThermalState, u: float, dt: Optional[float] = None,
             w=None) -> ThermalState:
        if state.terminal:
            return state
        dt = self.dt if dt is None else dt

        power = self.saturate_input(u)
        net_power = power - self.heat_loss(state.temperature, state.ambient)
        temperature = state.temperature + (net_power * dt) / self.params.thermal_mass
        temperature = float(np.clip(temperature, self.params.min_temp, self.params.max_temp))

        return replace(state, time=state.time + dt, temperature=temperature,
                       actuation=power)

    def derivatives(self, x: np.ndarray, u: float, ambient: Optional[float] = None) -> np.ndarray:
        if ambient is None:
            ambient = self.params.initial_ambient
        net_power = u - self.heat_loss(x[0], ambient)
        return np.array([net_power / self.params.thermal_mass])

    def error(self, state: ThermalState, setpoint: float) -> float:
        return setpoint - state.temperature

    def measured(self, state: ThermalState) -> float:
        return state.temperature

    def with_ambient(self, state: ThermalState, ambient: float) -> ThermalState:
        """Same state under a new ambient temperature."""
        return replace(state, ambient=float(ambient))
