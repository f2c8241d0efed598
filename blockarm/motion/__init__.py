"""Motion module: units, limits and virtual interpolation"""

from .units import (position_to_degrees, degrees_to_position,
                    radians_to_degrees, degrees_to_radians, radians_to_position)
from .limits import (JointLimits, is_within_servo_range,
                     get_move_joint_limits, clamp_move_joint_angle)
from .interpolation import InterpolationScheduler

__all__ = [
    'position_to_degrees',
    'degrees_to_position',
    'radians_to_degrees',
    'degrees_to_radians',
    'radians_to_position',
    'JointLimits',
    'is_within_servo_range',
    'get_move_joint_limits',
    'clamp_move_joint_angle',
    'InterpolationScheduler'
]
