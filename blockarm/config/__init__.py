"""Configuration module for BlockArm"""

from .defaults import *
from .settings import Settings
from .robots import RobotProfile, get_robot_profile, load_robot_profile

__all__ = [
    'SERVO_CONFIG', 'GRIPPER_CONFIG', 'EXECUTION_CONFIG', 'INTERPOLATION_CONFIG',
    'JOINT_TO_SERVO_ID', 'MOVE_JOINT_LIMITS', 'SERIAL_DEFAULTS',
    'Settings', 'RobotProfile', 'get_robot_profile', 'load_robot_profile'
]
