"""
Joint limits validation and clamping
Ensures all movements stay within safe ranges
"""

import logging
from typing import Optional, Tuple

from ..config import SERVO_CONFIG, MOVE_JOINT_LIMITS

logger = logging.getLogger(__name__)

FULL_RANGE = (SERVO_CONFIG["angle_min"], SERVO_CONFIG["angle_max"])


def is_within_servo_range(value: float) -> bool:
    """True if value is a valid servo angle (0-360)"""
    min_val, max_val = FULL_RANGE
    return min_val <= value <= max_val


def get_move_joint_limits(joint: Optional[str]) -> Tuple[float, float]:
    """Safe range of a "move to" joint, full range for unknown joints"""
    if not joint:
        return FULL_RANGE
    return MOVE_JOINT_LIMITS.get(joint, FULL_RANGE)


def clamp_move_joint_angle(joint: Optional[str], angle: float) -> float:
    """Clamp angle to the joint's safe move range"""
    min_val, max_val = get_move_joint_limits(joint)
    clamped = max(min_val, min(max_val, angle))
    if clamped != angle:
        logger.warning(
            f"⚠️ {joint}={angle:.1f}° clamped to {clamped:.1f}° "
            f"(limits: {min_val:.1f}° to {max_val:.1f}°)"
        )
    return clamped


class JointLimits:
    """Range checks for configured joints"""

    @staticmethod
    def get_limits(config) -> Tuple[float, float]:
        """
        Effective range of a joint

        The configured limit narrows the servo range, it never widens it
        """
        min_val, max_val = FULL_RANGE
        limit = getattr(config, "limit", None)
        if limit is not None:
            if limit.lower is not None:
                min_val = max(min_val, limit.lower)
            if limit.upper is not None:
                max_val = min(max_val, limit.upper)
        return min_val, max_val

    @classmethod
    def allows(cls, config, value: float) -> bool:
        """True if value may be commanded to the joint"""
        min_val, max_val = cls.get_limits(config)
        return min_val <= value <= max_val
