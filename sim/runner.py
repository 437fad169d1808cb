"""
Frame-driven execution of a Simulator.

Each frame:
    1. cap, scale and accumulate the wall-clock delta
    2. run as many physics steps as the accumulator allows
    3. sample history at the plot interval (simulated time)
    4. notify the renderer at the render interval (wall-clock time)
    5. request the next frame unless stopped or terminal
"""

from typing import Callable, Optional

from .history import Snapshot
from .loop import FixedStepLoop, LoopConfig, RateLimiter
from .scheduler import Scheduler

Observer = Callable[[Snapshot], None]


class SimulationRunner:
    """
    Binds a Simulator to a Scheduler.

    Observers receive read-only Snapshots and must not touch the simulator.
    """

    def __init__(self, simulator, scheduler: Scheduler,
                 config: LoopConfig = LoopConfig(),
                 on_render: Optional[Observer] = None,
                 on_sample: Optional[Observer] = None):
        """
        Initialize runner.

        Args:
            simulator: Simulator to drive
            scheduler: Frame source
            config: Timing parameters
            on_render: Called at most once per render interval
            on_sample: Called for every history sample
        """
        self.simulator = simulator
        self.scheduler = scheduler
        self.config = config
        self.on_render = on_render
        self.on_sample = on_sample

        time_scale = config.time_scale
        if time_scale is None:
            time_scale = simulator.default_time_scale
        self.loop = FixedStepLoop(simulator.dt, simulator.step,
                                  time_scale=time_scale,
                                  max_frame_ms=config.max_frame_ms)
        self.render_limiter = RateLimiter(config.render_interval_ms)
        self.plot_limiter = RateLimiter(config.plot_interval)
        self._last_frame_ms: Optional[float] = None
        self.frames = 0

    @property
    def running(self) -> bool:
        return self.simulator.running

    def start(self) -> None:
        """Start (or resume) frame delivery; resets a terminal simulator."""
        was_terminal = self.simulator.terminal
        self.simulator.start()
        if was_terminal:
            self.loop.reset()
            self.plot_limiter.reset(0.0)
        self._last_frame_ms = None
        self.scheduler.request_tick(self._frame)

    def stop(self) -> None:
        self.simulator.stop()
        self.scheduler.cancel()

    def reset(self) -> None:
        """Stop and reinitialize the simulator and timing state."""
        self.stop()
        self.simulator.reset()
        self.loop.reset()
        self.plot_limiter.reset(0.0)
        self._last_frame_ms = None

    def _frame(self, now_ms: float) -> None:
        if not self.simulator.running:
            return

        if self._last_frame_ms is None:
            # First frame after start only establishes the time base
            self._last_frame_ms = now_ms
            self.render_limiter.reset(now_ms - self.config.render_interval_ms)
        delta_ms = now_ms - self._last_frame_ms
        self._last_frame_ms = now_ms
        self.frames += 1

        steps = self.loop.advance(delta_ms)

        if steps and self.plot_limiter.ready(self.simulator.state.time):
            snapshot = self.simulator.sample()
            if self.on_sample is not None:
                self.on_sample(snapshot)

        terminal = self.simulator.terminal
        if self.on_render is not None and (self.render_limiter.ready(now_ms) or terminal):
            self.on_render(self.simulator.snapshot())

        if terminal:
            self.stop()
            return

        self.scheduler.request_tick(self._frame)
