"""
Default configuration values for BlockArm
Servo ranges, timing, gripper angles and serial settings
"""

# ==================== SERVO ====================

SERVO_CONFIG = {
    "position_min": 0,
    "position_max": 4096,       # Full scale of one revolution
    "angle_min": 0.0,
    "angle_max": 360.0,
    "speed_max": 0x7FFF,        # 15 bit magnitude, bit 15 is direction
}

# Gripper (Jaw on the SO-101)
GRIPPER_CONFIG = {
    "servo_id": 6,
    "open_angle": 270.0,
    "close_angle": 180.0,
}

# ==================== EXECUTION ====================

EXECUTION_CONFIG = {
    "inter_block_delay": 0.5,   # Settle delay between top-level blocks (s)
    "post_home_delay": 1.0,     # Delay after homing before a program (s)
    "default_wait": 1.0,        # Wait block default (s)
    "max_steps": 10000,         # Leaf actions per run before giving up
}

# ==================== VIRTUAL MOTION ====================

INTERPOLATION_CONFIG = {
    "max_step_degrees": 2.0,    # Per tick
    "snap_epsilon": 0.1,        # Below this delta the joint snaps to target
    "tick_hz": 60,              # Display refresh rate
}

# ==================== MOVE BLOCK ====================

# Joint names used by the "move to" block
JOINT_TO_SERVO_ID = {
    "base": 1,
    "shoulder": 2,
    "elbow": 3,
    "wrist_flex": 4,
    "wrist_roll": 5,
    "gripper": 6,
}

# SO-101 URDF limits converted to the 0-360 servo angle domain,
# 180 is the neutral pose: deg = rad * 180 / pi + 180
MOVE_JOINT_LIMITS = {
    "base": (70.0, 290.0),        # j1 [-1.91986, 1.91986]
    "shoulder": (80.0, 280.0),    # j2 [-1.74533, 1.74533]
    "elbow": (80.0, 270.0),       # j3 [-1.74533, 1.5708]
    "wrist_flex": (85.0, 275.0),  # j4 [-1.65806, 1.65806]
    "wrist_roll": (23.0, 343.0),  # j5 [-2.74385, 2.84121]
    "gripper": (170.0, 280.0),    # j6 [-0.174533, 1.74533]
}

# ==================== COMMUNICATION ====================

SERIAL_DEFAULTS = {
    "baudrate": 1000000,
    "timeout": 0.1,
    "write_timeout": 0.5,
    "retry_count": 2,
}
