"""
Frame scheduling.

A Scheduler delivers one frame callback per request with a wall-clock
timestamp in milliseconds, the way a display refresh callback does.
Physics never runs inside the scheduler itself; the callback decides
whether to ask for another frame.
"""

import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

FrameCallback = Callable[[float], None]


class Scheduler(ABC):
    """Cooperative single-threaded frame source."""

    @abstractmethod
    def request_tick(self, callback: FrameCallback) -> None:
        """Schedule callback(now_ms) for the next frame."""
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Drop the pending frame, if any."""
        pass

    @property
    @abstractmethod
    def pending(self) -> bool:
        pass


class ManualScheduler(Scheduler):
    """
    Scheduler driven by explicit fire() calls.

    Used for tests and headless hosts that control the clock.
    """

    def __init__(self, start_ms: float = 0.0):
        self.now_ms = start_ms
        self._callback: Optional[FrameCallback] = None

    @property
    def pending(self) -> bool:
        return self._callback is not None

    def request_tick(self, callback: FrameCallback) -> None:
        self._callback = callback

    def cancel(self) -> None:
        self._callback = None

    def fire(self, delta_ms: float) -> bool:
        """
        Advance the clock and deliver the pending frame.

        Args:
            delta_ms: Wall-clock time elapsed since the previous frame

        Returns:
            True if a callback ran
        """
        self.now_ms += delta_ms
        callback = self._callback
        if callback is None:
            return False
        self._callback = None
        callback(self.now_ms)
        return True

    def run_frames(self, n_frames: int, frame_ms: float) -> int:
        """Fire up to n_frames frames; stops early when nothing is pending."""
        fired = 0
        for _ in range(n_frames):
            if not self.fire(frame_ms):
                break
            fired += 1
        return fired


class RealtimeScheduler(Scheduler):
    """
    Blocking wall-clock scheduler at a fixed frame rate.

    run() sleeps until the next frame boundary and delivers the pending
    callback with a time.perf_counter() timestamp.
    """

    def __init__(self, fps: float = 60.0):
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.frame_interval = 1.0 / fps
        self._callback: Optional[FrameCallback] = None

    @property
    def pending(self) -> bool:
        return self._callback is not None

    def request_tick(self, callback: FrameCallback) -> None:
        self._callback = callback

    def cancel(self) -> None:
        self._callback = None

    def run(self, max_duration: Optional[float] = None) -> int:
        """
        Deliver frames until no callback is pending.

        Args:
            max_duration: Wall-clock limit in seconds (None for no limit)

        Returns:
            Number of frames delivered
        """
        start = time.perf_counter()
        next_frame = start
        frames = 0
        while self._callback is not None:
            now = time.perf_counter()
            if max_duration is not None and now - start >= max_duration:
                break
            if now < next_frame:
                time.sleep(next_frame - now)
                now = time.perf_counter()
            next_frame = now + self.frame_interval

            callback = self._callback
            self._callback = None
            callback(now * 1000.0)
            frames += 1
        return frames
