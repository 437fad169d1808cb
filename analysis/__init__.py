"""
Stability analysis module.

Provides linearized closed-loop eigenvalue checks for PID loops and the
equilibrium of the proportional heater loop.
"""

from .stability import (StabilityReport, closed_loop_matrix, analyze,
                        analyze_pendulum, analyze_thrust_body, thermal_equilibrium)

__all__ = ['StabilityReport', 'closed_loop_matrix', 'analyze',
           'analyze_pendulum', 'analyze_thrust_body', 'thermal_equilibrium']
