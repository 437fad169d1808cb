"""
Closed-loop simulation engine.

The Simulator owns one plant state and one PID instance. It is the only
writer of both; observers read Snapshots. Physics advances one step per
step() call; a SimulationRunner (or run() for headless use) decides how
often step() is called.
"""

import warnings
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, Iterable, Tuple

import numpy as np
from tqdm.auto import tqdm

from controllers.feedback import PIDFeedback, ManualController
from controllers.pid import PIDGains, PIDConfig
from scenarios.setpoints import SetpointProfile
from .history import History, Snapshot

CONTROL_MODES = ('pid', 'manual')


@dataclass
class SimulationResult:
    """
    Container for headless simulation results.

    Row 0 is the state at reset; row k is the state after k physics steps.

    Attributes:
        time: Time vector (T,)
        states: Continuous state trajectory (T x n_states)
        inputs: Applied actuation (T,)
        setpoints: Setpoint used for each row (T,)
        measured: Primary measured quantity (T,)
        errors: Plant-defined control error (T,)
        diagnostics: Controller diagnostics, one dict per physics step
        metadata: Additional simulation information
    """
    time: np.ndarray
    states: np.ndarray
    inputs: np.ndarray
    setpoints: np.ndarray
    measured: np.ndarray
    errors: np.ndarray
    diagnostics: List[Dict[str, Any]] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def terminal(self) -> bool:
        return bool(self.metadata.get('terminal', False))

    def compute_metrics(self) -> Dict[str, float]:
        """
        Compute performance metrics.

        Returns:
            Dictionary with final error, settling time (2% of the initial
            error), overshoot, integral absolute error and peak actuation.
        """
        if len(self.time) == 0:
            warnings.warn("Empty result, returning zero metrics")
            return {'final_error': 0.0, 'settling_time': 0.0, 'overshoot': 0.0,
                    'iae': 0.0, 'max_input': 0.0}

        metrics = {}
        abs_errors = np.abs(self.errors)
        metrics['final_error'] = float(abs_errors[-1])

        initial_error = abs_errors[0]
        if initial_error > 0:
            threshold = 0.02 * initial_error
            outside = np.where(abs_errors >= threshold)[0]
            if len(outside) == 0:
                metrics['settling_time'] = 0.0
            elif outside[-1] == len(abs_errors) - 1:
                metrics['settling_time'] = np.inf
            else:
                metrics['settling_time'] = float(self.time[outside[-1] + 1])
            # Overshoot: how far the error crosses to the opposite sign
            crossed = -np.sign(self.errors[0]) * self.errors
            metrics['overshoot'] = float(max(0.0, np.max(crossed)))
        else:
            metrics['settling_time'] = 0.0
            metrics['overshoot'] = 0.0

        dt = self.metadata.get('dt', 0.0)
        metrics['iae'] = float(np.sum(abs_errors[1:]) * dt)
        metrics['max_input'] = float(np.max(np.abs(self.inputs)))

        return metrics


class Simulator:
    """
    Fixed-step closed-loop simulator for a single plant.

    Control inputs (mode, gains, manual value, setpoint profile, one-shot
    events) may be changed between steps; they take effect on the next step.
    """

    default_time_scale = 1.0

    def __init__(self, plant,
                 gains: PIDGains = PIDGains(),
                 pid_config: PIDConfig = PIDConfig(),
                 setpoint: Optional[SetpointProfile] = None,
                 setpoint_range: Optional[Tuple[float, float]] = None,
                 mode: str = 'pid',
                 history_size: Optional[int] = None):
        """
        Initialize simulator.

        Args:
            plant: Plant instance (owns dt and the random source)
            gains: Initial PID gains
            pid_config: Anti-windup limits and derivative window
            setpoint: Setpoint profile (defaults to constant 0)
            setpoint_range: Range used by randomize_setpoint()
            mode: 'pid' or 'manual'
            history_size: Bound on sampled history (None for unbounded)
        """
        self.plant = plant
        self.pid = PIDFeedback(gains, pid_config)
        self.pid.set_plant(plant)
        self.manual = ManualController()
        self.manual.set_plant(plant)

        self.setpoint_profile = setpoint if setpoint is not None else SetpointProfile.constant(0.0)
        self.setpoint_range = setpoint_range
        self.set_mode(mode)
        self.history = History(maxlen=history_size)

        self.running = False
        self.reset()

    @property
    def dt(self) -> float:
        return self.plant.dt

    @property
    def controller(self):
        """Actuation source for the current mode."""
        return self.pid if self.mode == 'pid' else self.manual

    @property
    def gains(self) -> PIDGains:
        return self.pid.gains

    @gains.setter
    def gains(self, gains: PIDGains) -> None:
        self.pid.gains = gains

    @property
    def terminal(self) -> bool:
        return self.state.terminal

    # Control inputs

    def set_mode(self, mode: str) -> None:
        if mode not in CONTROL_MODES:
            raise ValueError(f"Unknown control mode '{mode}'. Use one of {CONTROL_MODES}")
        self.mode = mode

    def set_manual_input(self, value: float) -> None:
        self.manual.value = float(value)

    def set_setpoint_profile(self, profile: SetpointProfile) -> None:
        self.setpoint_profile = profile
        self.setpoint = profile(self.state.time)

    def randomize_setpoint(self) -> Optional[float]:
        """
        Jump to a random constant setpoint inside setpoint_range.

        The integral term is cleared so stale accumulated error does not
        carry over. Ignored once the plant is terminal.

        Returns:
            The new setpoint, or None if the event was ignored
        """
        if self.setpoint_range is None:
            raise ValueError("No setpoint_range configured for this simulator")
        if self.state.terminal:
            return None
        low, high = self.setpoint_range
        value = float(self.plant.rng.uniform(low, high))
        self.set_setpoint_profile(SetpointProfile.constant(value))
        self.pid.reset_integral()
        return value

    def reset_integral(self) -> None:
        self.pid.reset_integral()

    # Lifecycle

    def reset(self) -> None:
        """Fresh plant state, cleared controller, history and statistics."""
        self.running = False
        self.state = self.plant.initial_state()
        self.pid.reset()
        self.history.clear()
        self.setpoint = self.setpoint_profile(0.0)
        self.cumulative_error = 0.0
        self.last_diagnostics: Dict[str, Any] = {}

    def start(self) -> None:
        """Resume stepping; a terminal plant is reset first."""
        if self.state.terminal:
            self.reset()
        self.running = True

    def stop(self) -> None:
        """Freeze in place; state is kept exactly as last computed."""
        self.running = False

    def setpoint_at(self, time: float) -> float:
        return self.setpoint_profile(time)

    def disturbance(self, time: float):
        """External disturbance for the step starting at time (None by default)."""
        return None

    def step(self):
        """
        Advance the closed loop by one physics step.

        Returns:
            The new plant state (unchanged if already terminal)
        """
        state = self.state
        if state.terminal:
            return state

        setpoint = self.setpoint_at(state.time)
        u_raw, diag = self.controller.compute_control(state, setpoint, self.dt)
        w = self.disturbance(state.time)

        self.state = self.plant.step(state, u_raw, self.dt, w)
        self.setpoint = setpoint

        diag['u_raw'] = u_raw
        diag['u_saturated'] = self.state.actuation
        diag['saturated'] = not np.isclose(u_raw, self.state.actuation)
        self.last_diagnostics = diag

        self.cumulative_error += abs(self.plant.error(self.state, setpoint)) * self.dt

        return self.state

    # Observation

    def snapshot(self) -> Snapshot:
        diag = self.last_diagnostics
        return Snapshot(
            time=self.state.time,
            setpoint=self.setpoint,
            measured=self.plant.measured(self.state),
            actuation=self.state.actuation,
            terminal=self.state.terminal,
            failure=self.state.failure,
            mode=self.mode,
            state=self.state,
            error=self.plant.error(self.state, self.setpoint),
            error_p=diag.get('error_p', 0.0),
            error_i=diag.get('error_i', 0.0),
            error_d=diag.get('error_d', 0.0),
        )

    def sample(self) -> Snapshot:
        """Take a snapshot and append it to the plot history."""
        snapshot = self.snapshot()
        self.history.append(snapshot)
        return snapshot

    # Headless runs

    def run(self, duration: float, reset: bool = True) -> SimulationResult:
        """
        Step the closed loop for a fixed simulated duration.

        Stops early if the plant becomes terminal.

        Args:
            duration: Simulated time in seconds
            reset: Start from a fresh state

        Returns:
            SimulationResult with full trajectory data
        """
        if reset:
            self.reset()
        n_steps = int(round(duration / self.dt))

        time = [self.state.time]
        states = [self.plant.to_array(self.state)]
        inputs = [self.state.actuation]
        setpoints = [self.setpoint]
        measured = [self.plant.measured(self.state)]
        errors = [self.plant.error(self.state, self.setpoint)]
        diagnostics = []

        for _ in range(n_steps):
            if self.state.terminal:
                break
            self.step()
            time.append(self.state.time)
            states.append(self.plant.to_array(self.state))
            inputs.append(self.state.actuation)
            setpoints.append(self.setpoint)
            measured.append(self.plant.measured(self.state))
            errors.append(self.plant.error(self.state, self.setpoint))
            diagnostics.append(self.last_diagnostics)

        metadata = {
            'plant': self.plant.__class__.__name__,
            'controller': self.controller.name,
            'mode': self.mode,
            'gains': self.gains,
            'dt': self.dt,
            'terminal': self.state.terminal,
            'failure': self.state.failure,
            'cumulative_error': self.cumulative_error,
        }

        return SimulationResult(
            time=np.array(time),
            states=np.array(states),
            inputs=np.array(inputs),
            setpoints=np.array(setpoints),
            measured=np.array(measured),
            errors=np.array(errors),
            diagnostics=diagnostics,
            metadata=metadata
        )

    def run_batch(self, seeds: Iterable[int], duration: float,
                  progress: bool = True) -> List[SimulationResult]:
        """
        Run from fresh, differently seeded initial conditions.

        Args:
            seeds: One random seed per run
            duration: Simulated time per run
            progress: Show a progress bar

        Returns:
            List of SimulationResult objects
        """
        results = []
        for seed in tqdm(list(seeds), desc=self.plant.__class__.__name__, disable=not progress):
            self.plant.rng = np.random.default_rng(seed)
            results.append(self.run(duration))
        return results
