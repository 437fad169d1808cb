"""
Simulation engine.

Provides the fixed-step accumulator loop, frame schedulers, the
closed-loop Simulator with per-plant presets, and snapshot/history
buffers for observers.
"""

from .simulator import Simulator, SimulationResult, CONTROL_MODES
from .presets import ThermalSimulator, DroneSimulator, PendulumSimulator, DISTURBANCE_MODES
from .loop import FixedStepLoop, LoopConfig, RateLimiter
from .scheduler import Scheduler, ManualScheduler, RealtimeScheduler
from .runner import SimulationRunner
from .history import History, Snapshot

__all__ = [
    'Simulator',
    'SimulationResult',
    'CONTROL_MODES',
    'ThermalSimulator',
    'DroneSimulator',
    'PendulumSimulator',
    'DISTURBANCE_MODES',
    'FixedStepLoop',
    'LoopConfig',
    'RateLimiter',
    'Scheduler',
    'ManualScheduler',
    'RealtimeScheduler',
    'SimulationRunner',
    'History',
    'Snapshot',
]
