from __future__ import annotations

import logging
import signal
import time
from typing import Any, Callable, Dict

from routesim.core.session import SimulationSession


class RealtimeDriver:
    """Runs a session against the wall clock.

    Frames are ticked with the measured elapsed time since the previous frame;
    the step clock advances playback on its own interval. Both stop at the
    deadline or on SIGINT/SIGTERM.
    """

    def __init__(
        self,
        session: SimulationSession,
        frame_interval: float = 1.0 / 30.0,
        step_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        if frame_interval <= 0 or step_interval <= 0:
            raise ValueError("frame_interval and step_interval must be > 0")
        self.session = session
        self.frame_interval = float(frame_interval)
        self.step_interval = float(step_interval)
        self._clock = clock
        self._sleep = sleep
        self._log = logger or logging.getLogger("routesim.driver")
        self._running = False

    def run(self, seconds: float, install_signal_handlers: bool = True) -> Dict[str, Any]:
        previous_handlers = self._install_signal_handlers() if install_signal_handlers else {}
        self._running = True
        started = self._clock()
        deadline = started + float(seconds)
        last_frame = started
        next_frame = started + self.frame_interval
        next_step = started + self.step_interval
        frames = 0
        self._log.info(
            "driver start: algorithm=%s start=%s seconds=%.2f",
            self.session.algorithm.value,
            self.session.start_node,
            seconds,
        )
        try:
            while self._running:
                now = self._clock()
                if now >= deadline:
                    break
                wake = min(next_frame, next_step, deadline)
                if wake > now:
                    self._sleep(wake - now)
                    now = self._clock()

                if now >= next_frame:
                    self.session.tick(now - last_frame)
                    last_frame = now
                    frames += 1
                    next_frame = now + self.frame_interval
                if now >= next_step:
                    self.session.advance()
                    next_step = now + self.step_interval
        finally:
            self._running = False
            for signum, handler in previous_handlers.items():
                signal.signal(signum, handler)
            self._log.info("driver stopped after %d frames", frames)

        stats = self.session.packet_sim.stats
        return {
            "frames": frames,
            "elapsed": self._clock() - started,
            "step_index": self.session.current_index,
            "trace_length": len(self.session.steps),
            **stats,
        }

    def stop(self) -> None:
        self._running = False

    def _install_signal_handlers(self) -> Dict[int, Any]:
        def _handle_signal(signum, _frame) -> None:  # type: ignore[no-untyped-def]
            self._log.info("received signal %s, stopping", signum)
            self.stop()

        previous = {}
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.getsignal(signum)
            signal.signal(signum, _handle_signal)
        return previous
