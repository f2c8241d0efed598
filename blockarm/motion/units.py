"""
Unit conversion between degrees, radians and servo positions
One revolution is 4096 servo units
"""

import math

from ..config import SERVO_CONFIG

UNITS_PER_REVOLUTION = SERVO_CONFIG["position_max"]
UNITS_PER_DEGREE = UNITS_PER_REVOLUTION / 360.0


def position_to_degrees(position: float) -> float:
    """Servo position (0-4096) to angle (0-360)"""
    return position / UNITS_PER_DEGREE


def degrees_to_position(degrees: float) -> int:
    """Angle (0-360) to servo position, capped at full scale"""
    return min(round(degrees * UNITS_PER_DEGREE), UNITS_PER_REVOLUTION)


def radians_to_degrees(radians: float) -> float:
    return math.degrees(radians)


def degrees_to_radians(degrees: float) -> float:
    return math.radians(degrees)


def radians_to_position(radians: float) -> int:
    """Angle in radians to servo position, capped at full scale"""
    return min(round(radians * UNITS_PER_REVOLUTION / (2 * math.pi)), UNITS_PER_REVOLUTION)
