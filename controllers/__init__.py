"""
Controller implementations for fixed-step plant simulation.

All actuation sources implement a standard interface via the Controller base class.
"""

from .base import Controller
from .pid import PIDController, PIDGains, PIDConfig, PIDOutput
from .feedback import PIDFeedback, ManualController

__all__ = [
    'Controller',
    'PIDController',
    'PIDGains',
    'PIDConfig',
    'PIDOutput',
    'PIDFeedback',
    'ManualController',
]
