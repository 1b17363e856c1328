from __future__ import annotations

from routesim.core.session import SimulationSession
from routesim.core.topology import Topology
from routesim.runtime.driver import RealtimeDriver


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


def test_driver_runs_frames_and_steps_on_their_own_intervals():
    clock = FakeClock()
    session = SimulationSession(Topology.classic(), seed=2)
    session.spawn(4)
    driver = RealtimeDriver(session, frame_interval=0.25, step_interval=1.0, clock=clock, sleep=clock.sleep)

    summary = driver.run(3.0, install_signal_handlers=False)

    assert 10 <= summary["frames"] <= 12
    assert summary["step_index"] in (2, 3)
    assert summary["spawned"] == 4
    assert summary["elapsed"] >= 3.0


def test_stop_ends_the_loop():
    clock = FakeClock()
    session = SimulationSession(Topology.classic())
    driver = RealtimeDriver(session, frame_interval=0.5, clock=clock, sleep=clock.sleep)

    def sleep_then_stop(seconds: float) -> None:
        clock.sleep(seconds)
        driver.stop()

    driver._sleep = sleep_then_stop
    summary = driver.run(60.0, install_signal_handlers=False)

    assert summary["frames"] <= 1
