"""
Scenario generators: setpoint profiles and external disturbances.

All generators are pure functions of simulated time.
"""

from .setpoints import (SetpointProfile, SETPOINT_MODES, constant_setpoint,
                        sine_setpoint, box_setpoint)
from .disturbances import (NudgeTrain, FloorTilt, Impulse, nudge_force,
                           tilt_angle, NUDGE_IMPULSE_DURATION)

__all__ = [
    'SetpointProfile',
    'SETPOINT_MODES',
    'constant_setpoint',
    'sine_setpoint',
    'box_setpoint',
    'NudgeTrain',
    'FloorTilt',
    'Impulse',
    'nudge_force',
    'tilt_angle',
    'NUDGE_IMPULSE_DURATION',
]
