"""Shared fixtures: simulated bus, recording actuator and delay"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pytest

from blockarm.blocks import CancellationToken
from blockarm.config.robots import SO_ARM101
from blockarm.control import Actuator, ActuatorResult, JointStateSynchronizer
from blockarm.hardware import SimulatedTransport

CENTER = 2048  # 180 degrees


class RecordingActuator(Actuator):
    """Actuator that records every call in order"""

    def __init__(self, connected: bool = True):
        self.connected = connected
        self.calls: List[Tuple] = []
        # Operation name -> result to return instead of success
        self.results: Dict[str, ActuatorResult] = {}
        # Called after every recorded call
        self.on_call: Optional[Callable[[Tuple], None]] = None

    @property
    def is_connected(self) -> bool:
        return self.connected

    def _record(self, *call) -> ActuatorResult:
        self.calls.append(call)
        if self.on_call:
            self.on_call(call)
        return self.results.get(call[0], ActuatorResult.success())

    def connect(self) -> ActuatorResult:
        self.connected = True
        return self._record("connect")

    def disconnect(self) -> ActuatorResult:
        self.connected = False
        return self._record("disconnect")

    def home_robot(self) -> ActuatorResult:
        return self._record("home_robot")

    def open_gripper(self) -> ActuatorResult:
        return self._record("open_gripper")

    def close_gripper(self) -> ActuatorResult:
        return self._record("close_gripper")

    def update_joints_degrees(self, updates: Sequence[Tuple[int, float]]) -> ActuatorResult:
        return self._record("update_joints_degrees", list(updates))

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]


class RecordingDelay:
    """Instant delay that records requested durations"""

    def __init__(self, log: Optional[List[Tuple]] = None):
        self.waits: List[float] = []
        # Shared with a RecordingActuator to check interleaving
        self.log = log
        self.on_wait: Optional[Callable[[float, CancellationToken], None]] = None

    def __call__(self, seconds: float, token: CancellationToken) -> bool:
        self.waits.append(seconds)
        if self.log is not None:
            self.log.append(("delay", seconds))
        if self.on_wait:
            self.on_wait(seconds, token)
        return token.cancelled


@pytest.fixture
def actuator():
    return RecordingActuator()


@pytest.fixture
def delay(actuator):
    return RecordingDelay(actuator.calls)


@pytest.fixture
def transport():
    """Six servos centered at 180 degrees"""
    return SimulatedTransport(positions={servo_id: CENTER for servo_id in range(1, 7)})


@pytest.fixture
def synchronizer(transport):
    """Disconnected synchronizer, animation ticked by hand"""
    sync = JointStateSynchronizer.from_profile(SO_ARM101, transport, animate=False)
    yield sync
    sync.scheduler.stop()


@pytest.fixture
def connected(synchronizer):
    assert synchronizer.connect().ok
    return synchronizer
