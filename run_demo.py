#!/usr/bin/env python3
"""
Headless demo of the three closed-loop plants.

Runs:
(a) Hot tub warming to a new setpoint under P control
(b) Drone altitude hold with payload added mid-flight (PI vs P)
(c) Cart-pendulum balancing with periodic nudges, driven frame by frame
    through the fixed-step loop

Prints summaries to the console.
"""

import numpy as np
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from controllers.pid import PIDGains
from sim.presets import ThermalSimulator, DroneSimulator, PendulumSimulator
from sim.scheduler import ManualScheduler
from sim.runner import SimulationRunner
from sim.loop import LoopConfig
from analysis.stability import analyze_pendulum, analyze_thrust_body, thermal_equilibrium
from scenarios.setpoints import SetpointProfile


def print_metrics(metrics):
    for key, value in metrics.items():
        print(f"  {key}: {value:.4f}")


def run_thermal_demo(seed=42):
    """Run hot tub demo."""
    print("\n" + "=" * 60)
    print("(a) HOT TUB")
    print("=" * 60)

    sim = ThermalSimulator(rng=np.random.default_rng(seed))
    sim.set_setpoint_profile(SetpointProfile.constant(41.0))
    result = sim.run(duration=4 * 3600.0)

    print(f"  Setpoint: {result.setpoints[-1]:.1f} C, ambient: {sim.state.ambient:.1f} C")
    print(f"  Final temperature: {result.measured[-1]:.2f} C")
    predicted = thermal_equilibrium(sim.plant, sim.gains, 41.0, sim.state.ambient)
    print(f"  Predicted P-only equilibrium: {predicted:.2f} C")
    print(f"  Final heater power: {result.inputs[-1]:.0f} W")
    print_metrics(result.compute_metrics())


def run_drone_demo(seed=42):
    """Run drone payload demo for P and PI gains."""
    print("\n" + "=" * 60)
    print("(b) DRONE ALTITUDE WITH PAYLOAD")
    print("=" * 60)

    for name, gains in [("P", PIDGains(kp=25.0, ki=0.0, kd=15.0)),
                        ("PI", PIDGains(kp=25.0, ki=5.0, kd=15.0))]:
        sim = DroneSimulator(gains=gains, rng=np.random.default_rng(seed))
        sim.run(duration=10.0)
        for _ in range(3):
            sim.add_payload()
        result = sim.run(duration=30.0, reset=False)

        report = analyze_thrust_body(sim.plant, gains, mass=sim.state.mass)
        print(f"\n  {name} gains: {gains}")
        print(f"  Mass: {sim.state.mass:.1f} kg, crashed: {result.terminal}")
        print(f"  Final altitude: {result.measured[-1]:.3f} m (setpoint {result.setpoints[-1]:.1f})")
        print(f"  Integral term: {sim.pid.pid.integral:.3f} (limits +/-50)")
        print(f"  Linearized loop stable: {report.is_stable}")


def run_pendulum_demo(seed=42, frames=600, frame_ms=16.0):
    """Drive the pendulum through the frame loop with nudges."""
    print("\n" + "=" * 60)
    print("(c) CART-PENDULUM WITH NUDGES")
    print("=" * 60)

    sim = PendulumSimulator(rng=np.random.default_rng(seed), disturbance_mode='nudges')
    scheduler = ManualScheduler()
    samples = []
    runner = SimulationRunner(sim, scheduler, LoopConfig(), on_sample=samples.append)

    report = analyze_pendulum(sim.plant, sim.gains)
    print(f"  Closed-loop eigenvalues: {np.round(report.eigenvalues, 3)}")
    print(f"  Linearized loop stable: {report.is_stable} (marginal: {report.is_marginal})")

    runner.start()
    fired = scheduler.run_frames(frames, frame_ms)

    print(f"  Frames: {fired}, physics steps: {runner.loop.total_steps}")
    print(f"  Simulated time: {sim.state.time:.3f} s, samples: {len(sim.history)}")
    print(f"  Angle: {np.degrees(sim.state.theta):.3f} deg, cart: {sim.state.x:.3f} m")
    if sim.terminal:
        print(f"  Terminal: {sim.state.failure} (best time {sim.best_time:.2f} s)")
    if samples:
        history = sim.history.to_arrays()
        angles = np.degrees(history['measured'])
        print(f"  Peak |angle|: {np.max(np.abs(angles)):.3f} deg")
        print(f"  Peak |actuation|: {np.max(np.abs(history['actuation'])):.2f} N")


def main():
    """Run all demos."""
    print("=" * 60)
    print("PID PLANT SIMULATIONS")
    print("=" * 60)

    run_thermal_demo()
    run_drone_demo()
    run_pendulum_demo()

    print("\nDone.")


if __name__ == '__main__':
    main()
