"""
Tests for fixed-step timing, schedulers and the frame runner.

Tests verify:
1. Accumulator step counts, stall cap and leftover carry
2. Frame-rate independence of trajectories
3. Render and plot rate limiting
4. Runner stop on terminal state
"""

import numpy as np
import pytest
import sys
import os
from dataclasses import replace

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from controllers.pid import PIDGains
from sim.loop import FixedStepLoop, LoopConfig, RateLimiter
from sim.scheduler import ManualScheduler, RealtimeScheduler
from sim.runner import SimulationRunner
from sim.presets import ThermalSimulator, PendulumSimulator


class Counter:
    def __init__(self):
        self.calls = 0

    def __call__(self):
        self.calls += 1


class TestFixedStepLoop:

    def test_steps_per_frame(self):
        """16 ms at dt = 1 ms is 16 physics steps."""
        counter = Counter()
        loop = FixedStepLoop(0.001, counter)

        assert loop.advance(16.0) == 16
        assert counter.calls == 16
        assert loop.accumulator_ms == pytest.approx(0.0)

    def test_stall_cap(self):
        """A long frame is capped at max_frame_ms."""
        counter = Counter()
        loop = FixedStepLoop(0.001, counter, max_frame_ms=50.0)

        assert loop.advance(100.0) == 50
        assert loop.total_steps == 50

    def test_leftover_carried(self):
        """Partial steps accumulate across frames."""
        counter = Counter()
        loop = FixedStepLoop(0.01, counter)

        assert loop.advance(16.0) == 1
        assert loop.accumulator_ms == pytest.approx(6.0)
        assert loop.advance(16.0) == 2
        assert loop.accumulator_ms == pytest.approx(2.0)

    def test_time_scale(self):
        """600x scale at dt = 0.1 s runs 96 steps per 16 ms frame."""
        counter = Counter()
        loop = FixedStepLoop(0.1, counter, time_scale=600.0)

        assert loop.advance(16.0) == 96

    def test_negative_delta_ignored(self):
        counter = Counter()
        loop = FixedStepLoop(0.001, counter)

        assert loop.advance(-10.0) == 0
        assert loop.accumulator_ms == 0.0

    def test_reset(self):
        loop = FixedStepLoop(0.01, Counter())
        loop.advance(25.0)
        loop.reset()

        assert loop.accumulator_ms == 0.0
        assert loop.total_steps == 0

    def test_invalid_dt(self):
        with pytest.raises(ValueError):
            FixedStepLoop(0.0, Counter())


class TestRateLimiter:

    def test_interval(self):
        limiter = RateLimiter(0.05)

        assert not limiter.ready(0.03)
        assert limiter.ready(0.05)
        assert not limiter.ready(0.09)
        assert limiter.ready(0.11)

    def test_reset(self):
        limiter = RateLimiter(10.0)
        limiter.ready(100.0)
        limiter.reset(0.0)

        assert limiter.ready(10.0)


class TestSchedulers:

    def test_manual_fire_delivers_once(self):
        scheduler = ManualScheduler()
        stamps = []

        assert not scheduler.fire(16.0)
        scheduler.request_tick(stamps.append)
        assert scheduler.pending
        assert scheduler.fire(16.0)
        assert not scheduler.pending
        assert not scheduler.fire(16.0)
        assert stamps == [32.0]

    def test_cancel(self):
        scheduler = ManualScheduler()
        scheduler.request_tick(lambda now: None)
        scheduler.cancel()

        assert not scheduler.pending
        assert scheduler.run_frames(5, 16.0) == 0

    def test_realtime_runs_until_no_request(self):
        scheduler = RealtimeScheduler(fps=1000.0)
        stamps = []

        def frame(now_ms):
            stamps.append(now_ms)
            if len(stamps) < 3:
                scheduler.request_tick(frame)

        scheduler.request_tick(frame)
        assert scheduler.run(max_duration=5.0) == 3
        assert stamps == sorted(stamps)

    def test_invalid_fps(self):
        with pytest.raises(ValueError):
            RealtimeScheduler(fps=0.0)


class TestSimulationRunner:

    def pendulum(self, seed=0, **kwargs):
        return PendulumSimulator(rng=np.random.default_rng(seed), **kwargs)

    def test_frame_rate_independence(self):
        """Three 16 ms frames and one 48 ms frame give the same state."""
        states = []
        for frames in ([16.0, 16.0, 16.0], [48.0]):
            sim = self.pendulum(seed=5)
            scheduler = ManualScheduler()
            runner = SimulationRunner(sim, scheduler)
            runner.start()
            scheduler.fire(0.0)
            for frame_ms in frames:
                scheduler.fire(frame_ms)
            assert runner.loop.total_steps == 48
            states.append(sim.state)

        assert states[0] == states[1]

    def test_first_frame_only_sets_time_base(self):
        sim = self.pendulum()
        scheduler = ManualScheduler(start_ms=1000.0)
        runner = SimulationRunner(sim, scheduler)
        runner.start()

        scheduler.fire(500.0)

        assert runner.loop.total_steps == 0
        assert sim.state.time == 0.0
        assert scheduler.pending

    def test_time_scale_from_simulator(self):
        """Thermal preset runs 96 steps per 16 ms frame."""
        sim = ThermalSimulator(rng=np.random.default_rng(0))
        scheduler = ManualScheduler()
        runner = SimulationRunner(sim, scheduler)
        runner.start()
        scheduler.fire(0.0)
        scheduler.fire(16.0)

        assert runner.loop.total_steps == 96
        assert sim.state.time == pytest.approx(9.6)

    def test_render_rate_limited(self):
        """8 ms frames render every other frame."""
        sim = ThermalSimulator(rng=np.random.default_rng(0))
        scheduler = ManualScheduler()
        renders = []
        runner = SimulationRunner(sim, scheduler, on_render=renders.append)
        runner.start()

        assert scheduler.run_frames(60, 8.0) == 60
        assert len(renders) == 30

    def test_sampling_uses_simulated_time(self):
        """History samples are at least plot_interval apart in sim time."""
        sim = self.pendulum()
        scheduler = ManualScheduler()
        samples = []
        runner = SimulationRunner(sim, scheduler, LoopConfig(plot_interval=0.05),
                                  on_sample=samples.append)
        runner.start()
        scheduler.fire(0.0)
        scheduler.run_frames(10, 16.0)

        assert 0 < len(samples) < 10
        assert len(sim.history) == len(samples)
        times = np.array([s.time for s in samples])
        assert np.all(np.diff(times) >= 0.05 - 1e-9)

    def test_stops_on_terminal(self):
        """A fallen pendulum stops the loop and releases the scheduler."""
        sim = self.pendulum(gains=PIDGains(kp=0.0, ki=0.0, kd=0.0))
        sim.state = replace(sim.state, theta=0.3)
        scheduler = ManualScheduler()
        renders = []
        runner = SimulationRunner(sim, scheduler, on_render=renders.append)
        runner.start()

        fired = scheduler.run_frames(500, 16.0)

        assert fired < 500
        assert sim.terminal
        assert not sim.running
        assert not scheduler.pending
        assert renders[-1].terminal

    def test_start_after_terminal_resets(self):
        sim = self.pendulum(gains=PIDGains(kp=0.0, ki=0.0, kd=0.0))
        sim.state = replace(sim.state, theta=0.3)
        scheduler = ManualScheduler()
        runner = SimulationRunner(sim, scheduler)
        runner.start()
        scheduler.run_frames(500, 16.0)
        assert sim.terminal

        runner.start()

        assert not sim.terminal
        assert sim.state.time == 0.0
        assert sim.running
        assert scheduler.pending

    def test_stop_freezes_state(self):
        sim = self.pendulum()
        scheduler = ManualScheduler()
        runner = SimulationRunner(sim, scheduler)
        runner.start()
        scheduler.run_frames(5, 16.0)
        runner.stop()
        frozen = sim.state

        assert scheduler.run_frames(5, 16.0) == 0
        assert sim.state is frozen


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
