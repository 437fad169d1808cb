"""
Plant models for fixed-step closed-loop simulation.

Each plant exposes step(state, u, dt, w) -> state' on immutable state values.
"""

from .base import Plant, PlantState
from .thermal import ThermalTank, ThermalTankParams, ThermalState
from .cart_pendulum import (CartPendulum, CartPendulumParams, PendulumState,
                            PendulumDisturbance, wrap_angle)
from .thrust_body import ThrustBody, ThrustBodyParams, ThrustState

__all__ = [
    'Plant',
    'PlantState',
    'ThermalTank',
    'ThermalTankParams',
    'ThermalState',
    'CartPendulum',
    'CartPendulumParams',
    'PendulumState',
    'PendulumDisturbance',
    'wrap_angle',
    'ThrustBody',
    'ThrustBodyParams',
    'ThrustState',
]
