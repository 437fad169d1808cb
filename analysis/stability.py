"""
Linearized closed-loop stability of PID loops.

Around an operating point the plant is dx/dt ≈ A δx + B δu. With the
PID written on the linearized error e = c δx and its rate ė = d δx,
plus optional extra state feedback f δx, the augmented state [δx, I]
(İ = e) evolves under

    A_cl = [[A + B (kp c + kd d + f),  ki B],
            [c,                        0   ]]

The loop is locally asymptotically stable when every eigenvalue of A_cl
has a negative real part. The derivative moving-average and actuator
saturation are ignored, so this is a small-signal check only.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy import linalg

from controllers.pid import PIDGains


@dataclass
class StabilityReport:
    """Result of a linearized closed-loop analysis."""
    eigenvalues: np.ndarray
    spectral_abscissa: float  # max real part
    is_stable: bool
    is_marginal: bool         # eigenvalues on the imaginary axis, none to the right
    closed_loop_matrix: np.ndarray


def closed_loop_matrix(A: np.ndarray, B: np.ndarray, gains: PIDGains,
                       error_row: np.ndarray, error_rate_row: np.ndarray,
                       feedback_row: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Build the augmented closed-loop matrix.

    Args:
        A: Plant state matrix (n x n)
        B: Plant input matrix (n x 1)
        gains: PID gains
        error_row: e = error_row @ δx
        error_rate_row: ė = error_rate_row @ δx
        feedback_row: Additional u += feedback_row @ δx

    Returns:
        A_cl: (n+1 x n+1) matrix on [δx, I]
    """
    n = A.shape[0]
    B = np.asarray(B, dtype=float).reshape(n, 1)
    c = np.asarray(error_row, dtype=float).reshape(1, n)
    d = np.asarray(error_rate_row, dtype=float).reshape(1, n)
    K = gains.kp * c + gains.kd * d
    if feedback_row is not None:
        K = K + np.asarray(feedback_row, dtype=float).reshape(1, n)

    A_cl = np.zeros((n + 1, n + 1))
    A_cl[:n, :n] = A + B @ K
    A_cl[:n, n:] = gains.ki * B
    A_cl[n:, :n] = c
    return A_cl


def analyze(A_cl: np.ndarray, tolerance: float = 1e-6) -> StabilityReport:
    """Eigenvalue test on a closed-loop matrix; |Re| <= tolerance counts as zero."""
    eigenvalues = linalg.eigvals(A_cl)
    abscissa = float(np.max(eigenvalues.real))
    return StabilityReport(eigenvalues=eigenvalues,
                           spectral_abscissa=abscissa,
                           is_stable=abscissa < -tolerance,
                           is_marginal=abs(abscissa) <= tolerance,
                           closed_loop_matrix=A_cl)


def analyze_pendulum(plant, gains: PIDGains) -> StabilityReport:
    """
    Upright equilibrium of the cart-pendulum under PID on θ plus the
    plant's cart-centering feedback.

    Args:
        plant: CartPendulum instance
        gains: PID gains on the angle loop

    Returns:
        StabilityReport
    """
    A, B = plant.get_linearization(np.zeros(4), 0.0)
    error_row = np.array([1.0, 0.0, 0.0, 0.0])          # e = θ
    error_rate_row = np.array([0.0, 1.0, 0.0, 0.0])     # ė = θ̇
    feedback_row = np.array([0.0, 0.0, plant.params.position_gain,
                             plant.params.velocity_gain])
    return analyze(closed_loop_matrix(A, B, gains, error_row, error_rate_row, feedback_row))


def analyze_thrust_body(plant, gains: PIDGains, mass: Optional[float] = None) -> StabilityReport:
    """
    Altitude loop of the thrust body around hover.

    Args:
        plant: ThrustBody instance
        gains: PID gains on altitude error
        mass: Carried mass (defaults to the base mass)

    Returns:
        StabilityReport
    """
    if mass is None:
        mass = plant.params.base_mass
    # Double integrator: z̈ = δu / m
    A = np.array([[0.0, 1.0],
                  [0.0, 0.0]])
    B = np.array([[0.0],
                  [1.0 / mass]])
    error_row = np.array([-1.0, 0.0])        # e = r - z
    error_rate_row = np.array([0.0, -1.0])   # ė = -v
    return analyze(closed_loop_matrix(A, B, gains, error_row, error_rate_row))


def thermal_equilibrium(plant, gains: PIDGains, setpoint: float,
                        ambient: Optional[float] = None) -> float:
    """
    Temperature a proportional-only heater loop settles at.

    Unsaturated, kp (r - T) = h (T - T_amb) gives
        T = (kp r + h T_amb) / (kp + h)
    which leaves an offset below the setpoint. When the required power is
    outside the heater range the tub settles at the saturated level instead.
    Any integral action removes the offset, so the setpoint is returned
    when it is reachable.

    Args:
        plant: ThermalTank instance
        gains: PID gains of the heater loop
        setpoint: Target temperature
        ambient: Ambient temperature (defaults to the plant's initial ambient)

    Returns:
        Equilibrium temperature
    """
    params = plant.params
    if ambient is None:
        ambient = params.initial_ambient
    h = params.heat_loss_coefficient

    if gains.ki != 0:
        required = h * (setpoint - ambient)
        if params.min_heater_power <= required <= params.max_heater_power:
            return float(np.clip(setpoint, params.min_temp, params.max_temp))
        return plant.steady_state_temperature(required, ambient)

    if gains.kp + h == 0:
        return plant.steady_state_temperature(0.0, ambient)
    temperature = (gains.kp * setpoint + h * ambient) / (gains.kp + h)
    power = gains.kp * (setpoint - temperature)
    if not params.min_heater_power <= power <= params.max_heater_power:
        return plant.steady_state_temperature(power, ambient)
    return float(np.clip(temperature, params.min_temp, params.max_temp))
