"""
Actuator capability
The surface the block executor drives, implemented by the synchronizer
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass, field

from ..errors import BlockArmError

# (servo id, degrees)
JointUpdate = Tuple[int, float]


class ActuatorStatus(Enum):
    """Outcome of one actuator call"""
    OK = "ok"
    REFUSED = "refused"                  # Not applicable in the current state
    WRITE_ERROR = "write_error"          # A servo failed, link still usable
    CONNECTION_LOST = "connection_lost"  # Link is gone


@dataclass
class ActuatorResult:
    """Result of an actuator call, ``error`` matches ``status``"""
    status: ActuatorStatus = ActuatorStatus.OK
    error: Optional[BlockArmError] = None
    skipped: List[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is ActuatorStatus.OK

    @property
    def connection_lost(self) -> bool:
        return self.status is ActuatorStatus.CONNECTION_LOST

    @classmethod
    def success(cls, skipped: Sequence[int] = ()) -> "ActuatorResult":
        return cls(skipped=list(skipped))

    @classmethod
    def refused(cls, error: BlockArmError) -> "ActuatorResult":
        return cls(ActuatorStatus.REFUSED, error)

    @classmethod
    def write_error(cls, error: BlockArmError, skipped: Sequence[int] = ()) -> "ActuatorResult":
        return cls(ActuatorStatus.WRITE_ERROR, error, list(skipped))

    @classmethod
    def lost(cls, error: BlockArmError) -> "ActuatorResult":
        return cls(ActuatorStatus.CONNECTION_LOST, error)


class Actuator(ABC):
    """Everything the block executor needs to move the arm"""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """True while hardware is attached"""

    @abstractmethod
    def connect(self) -> ActuatorResult:
        pass

    @abstractmethod
    def disconnect(self) -> ActuatorResult:
        pass

    @abstractmethod
    def home_robot(self) -> ActuatorResult:
        pass

    @abstractmethod
    def open_gripper(self) -> ActuatorResult:
        pass

    @abstractmethod
    def close_gripper(self) -> ActuatorResult:
        pass

    @abstractmethod
    def update_joints_degrees(self, updates: Sequence[JointUpdate]) -> ActuatorResult:
        """Move several joints together"""
