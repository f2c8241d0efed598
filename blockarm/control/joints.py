"""
Joint registry and joint state
Static per-joint configuration and the mutable state the synchronizer owns
"""

from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional
from dataclasses import dataclass
from dataclasses_json import dataclass_json, LetterCase

# 0xFE addresses every servo on the bus
MAX_SERVO_ID = 0xFD


class JointKind(Enum):
    """Joint types"""
    REVOLUTE = "revolute"
    CONTINUOUS = "continuous"


@dataclass_json
@dataclass(frozen=True)
class JointLimit:
    """Optional bounds in degrees"""
    lower: Optional[float] = None
    upper: Optional[float] = None


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass(frozen=True)
class JointConfig:
    """Static configuration of one joint, never mutated after load"""
    name: str
    servo_id: int
    joint_type: JointKind = JointKind.REVOLUTE
    limit: Optional[JointLimit] = None

    @property
    def is_revolute(self) -> bool:
        return self.joint_type is JointKind.REVOLUTE

    @property
    def is_continuous(self) -> bool:
        return self.joint_type is JointKind.CONTINUOUS


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class JointState:
    """Current state of one joint"""
    name: str
    servo_id: int
    joint_type: JointKind
    degrees: float = 0.0
    target_degrees: Optional[float] = None
    is_moving: bool = False
    speed: int = 0
    connected_origin: float = 0.0
    limit: Optional[JointLimit] = None

    @classmethod
    def from_config(cls, joint: JointConfig, home_angle: Optional[float] = None) -> "JointState":
        """Initial state, revolute joints start at their home angle"""
        degrees = float(home_angle or 0.0) if joint.is_revolute else 0.0
        return cls(
            name=joint.name,
            servo_id=joint.servo_id,
            joint_type=joint.joint_type,
            degrees=degrees,
            target_degrees=degrees,
            limit=joint.limit,
        )


class JointRegistry:
    """Immutable set of joint configurations keyed by servo id"""

    def __init__(self, joints: Iterable[JointConfig]):
        self._joints: List[JointConfig] = list(joints)
        self._by_id: Dict[int, JointConfig] = {}
        self._by_name: Dict[str, JointConfig] = {}

        for joint in self._joints:
            if not isinstance(joint.servo_id, int) or not 0 < joint.servo_id <= MAX_SERVO_ID:
                raise ValueError(f"Joint '{joint.name}': servo id must be an integer from 1 to {MAX_SERVO_ID}")
            if joint.servo_id in self._by_id:
                raise ValueError(f"Duplicate servo id {joint.servo_id}")
            if joint.name in self._by_name:
                raise ValueError(f"Duplicate joint name '{joint.name}'")
            if joint.is_continuous and joint.limit is not None:
                raise ValueError(f"Joint '{joint.name}': continuous joints have no limit")
            self._by_id[joint.servo_id] = joint
            self._by_name[joint.name] = joint

    @classmethod
    def from_dicts(cls, details: Iterable[Mapping[str, Any]]) -> "JointRegistry":
        """Build from JSON/YAML shaped joint details (servoId, jointType, limit)"""
        return cls(JointConfig.from_dict(dict(d)) for d in details)

    def get(self, servo_id: int) -> Optional[JointConfig]:
        return self._by_id.get(servo_id)

    def by_name(self, name: str) -> Optional[JointConfig]:
        return self._by_name.get(name)

    @property
    def revolute(self) -> List[JointConfig]:
        return [j for j in self._joints if j.is_revolute]

    @property
    def continuous(self) -> List[JointConfig]:
        return [j for j in self._joints if j.is_continuous]

    def __iter__(self) -> Iterator[JointConfig]:
        return iter(self._joints)

    def __len__(self) -> int:
        return len(self._joints)

    def __contains__(self, servo_id: int) -> bool:
        return servo_id in self._by_id
