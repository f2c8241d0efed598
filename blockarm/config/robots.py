"""
Robot profiles
Joint tables and home angles per supported arm
"""

import logging
import yaml
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from dataclasses_json import dataclass_json, LetterCase

logger = logging.getLogger(__name__)


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class RobotProfile:
    """Static description of one arm"""
    name: str
    joint_details: List[Dict[str, Any]] = field(default_factory=list)
    home_angles: Dict[str, float] = field(default_factory=dict)
    gripper_servo_id: Optional[int] = None


SO_ARM101 = RobotProfile(
    name="so-arm101",
    joint_details=[
        {"name": "Rotation", "servoId": 1, "jointType": "revolute", "limit": {"lower": 0, "upper": 360}},
        {"name": "Pitch", "servoId": 2, "jointType": "revolute", "limit": {"lower": 0, "upper": 360}},
        {"name": "Elbow", "servoId": 3, "jointType": "revolute", "limit": {"lower": 0, "upper": 360}},
        {"name": "Wrist_Pitch", "servoId": 4, "jointType": "revolute", "limit": {"lower": 0, "upper": 360}},
        {"name": "Wrist_Roll", "servoId": 5, "jointType": "revolute", "limit": {"lower": 0, "upper": 360}},
        {"name": "Jaw", "servoId": 6, "jointType": "revolute", "limit": {"lower": 0, "upper": 360}},
    ],
    home_angles={
        "Rotation": 180.0,
        "Pitch": 90.0,
        "Elbow": 360.0,
        "Wrist_Pitch": 180.0,
        "Wrist_Roll": 180.0,
        "Jaw": 180.0,
    },
    gripper_servo_id=6,
)

ROBOT_PROFILES = {
    SO_ARM101.name: SO_ARM101,
}


def get_robot_profile(name: str) -> RobotProfile:
    """Look up a built-in profile by name"""
    try:
        return ROBOT_PROFILES[name]
    except KeyError:
        raise KeyError(
            f"Unknown robot '{name}' (available: {', '.join(sorted(ROBOT_PROFILES))})"
        ) from None


def load_robot_profile(filepath: str) -> RobotProfile:
    """
    Load a robot profile from a YAML file

    Expected keys: name, jointDetails, homeAngles, gripperServoId
    """
    with open(filepath, 'r', encoding='utf-8') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"{filepath}: invalid YAML: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"{filepath}: robot profile must be a mapping")

    profile = RobotProfile.from_dict(data)
    logger.info(f"Loaded robot profile '{profile.name}' ({len(profile.joint_details)} joints)")
    return profile
