"""
Joint State Synchronizer
Single owner of joint state, bridges the virtual twin and the servo bus
"""

import threading
import logging
import numpy as np
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import GRIPPER_CONFIG, INTERPOLATION_CONFIG
from ..config.robots import RobotProfile
from ..errors import (ActuatorWriteError, ConnectionLost, EmergencyStopNoop,
                      HomeRefused, TransportDisconnected, TransportError)
from ..hardware import Transport
from ..motion import (InterpolationScheduler, JointLimits, degrees_to_position,
                      is_within_servo_range, position_to_degrees)
from .actuator import Actuator, ActuatorResult, JointUpdate
from .joints import JointKind, JointRegistry, JointState

logger = logging.getLogger(__name__)


class JointStateSynchronizer(Actuator):
    """
    Owns the authoritative joint state

    Moves are applied to the virtual state immediately and animated by the
    interpolation scheduler. While connected they are also written to the
    servos, and the read-back position replaces the animation.
    """

    def __init__(self, registry: JointRegistry, transport: Transport,
                 home_angles: Optional[Dict[str, float]] = None,
                 gripper_servo_id: int = GRIPPER_CONFIG["servo_id"],
                 gripper_open_angle: float = GRIPPER_CONFIG["open_angle"],
                 gripper_close_angle: float = GRIPPER_CONFIG["close_angle"],
                 tick_hz: float = INTERPOLATION_CONFIG["tick_hz"],
                 animate: bool = True):
        """
        Args:
            registry: Joint configuration
            transport: Servo bus
            home_angles: Joint name -> home angle in degrees
            gripper_servo_id: Servo driven by open/close gripper
            tick_hz: Virtual animation rate
            animate: Start the animation thread automatically on moves
        """
        self.registry = registry
        self.transport = transport
        self.home_angles = dict(home_angles or {})

        self.gripper_servo_id = gripper_servo_id
        self.gripper_open_angle = gripper_open_angle
        self.gripper_close_angle = gripper_close_angle

        # Virtual motion
        self.max_step = INTERPOLATION_CONFIG["max_step_degrees"]
        self.snap_epsilon = INTERPOLATION_CONFIG["snap_epsilon"]
        self.animate = animate
        self.scheduler = InterpolationScheduler(self.step_interpolation, tick_hz)

        # State
        self._states: Dict[int, JointState] = {
            joint.servo_id: JointState.from_config(joint, self.home_angles.get(joint.name))
            for joint in registry
        }
        self._state_lock = threading.RLock()

        # One bus transaction sequence at a time
        self._bus_lock = threading.Lock()
        self._connected = False

    @classmethod
    def from_profile(cls, profile: RobotProfile, transport: Transport, **kwargs) -> "JointStateSynchronizer":
        """Build from a robot profile"""
        registry = JointRegistry.from_dicts(profile.joint_details)
        if profile.gripper_servo_id is not None:
            kwargs.setdefault("gripper_servo_id", profile.gripper_servo_id)
        return cls(registry, transport, home_angles=profile.home_angles, **kwargs)

    # ==================== State (read only) ====================

    @property
    def is_connected(self) -> bool:
        return self._connected and self.transport.is_open

    @property
    def joint_states(self) -> List[JointState]:
        """Snapshot of all joints"""
        with self._state_lock:
            return [replace(state) for state in self._states.values()]

    def get_joint_state(self, servo_id: int) -> Optional[JointState]:
        with self._state_lock:
            state = self._states.get(servo_id)
            return replace(state) if state else None

    def snapshot(self) -> List[dict]:
        """JSON shaped snapshot for renderers"""
        return [state.to_dict(encode_json=True) for state in self.joint_states]

    @property
    def initial_positions(self) -> Dict[int, float]:
        """Angles recorded at connect time"""
        with self._state_lock:
            return {sid: state.connected_origin for sid, state in self._states.items()}

    # ==================== Connection Management ====================

    def connect(self) -> ActuatorResult:
        """Open the bus and read every joint's starting position"""
        with self._bus_lock:
            try:
                self.transport.open()
            except TransportError as e:
                self._connected = False
                logger.error(f"Failed to connect to the robot: {e}")
                return ActuatorResult.lost(ConnectionLost(f"Failed to connect to the robot: {e}"))

            origins: Dict[int, float] = {}
            for joint in self.registry:
                sid = joint.servo_id
                try:
                    if joint.is_continuous:
                        self.transport.set_wheel_mode(sid)
                        self.transport.write_wheel_speed(sid, 0)
                        origins[sid] = 0.0
                    else:
                        self.transport.set_position_mode(sid)
                        self.transport.write_torque_enable(sid, True)
                        position = self.transport.read_position(sid)
                        origins[sid] = position_to_degrees(position)
                except TransportError as e:
                    logger.error(f"Failed to initialize joint {sid}: {e}")
                    origins[sid] = 0.0

        with self._state_lock:
            for sid, state in self._states.items():
                state.is_moving = False
                state.speed = 0
                if state.joint_type is JointKind.REVOLUTE:
                    state.degrees = origins[sid]
                    state.target_degrees = origins[sid]
                    state.connected_origin = origins[sid]
                else:
                    state.degrees = 0.0
                    state.connected_origin = 0.0
            self._connected = True

        logger.info("✅ Robot connected successfully")
        return ActuatorResult.success()

    def disconnect(self) -> ActuatorResult:
        """Release torque, stop wheels and close the bus, best effort"""
        with self._bus_lock:
            if self._connected:
                for joint in self.registry:
                    try:
                        if joint.is_continuous:
                            self.transport.write_wheel_speed(joint.servo_id, 0)
                        else:
                            self.transport.write_torque_enable(joint.servo_id, False)
                    except TransportError as e:
                        logger.error(f"Failed to reset joint {joint.servo_id} during disconnect: {e}")

            try:
                self.transport.close()
            except TransportError as e:
                logger.error(f"Failed to close the bus: {e}")
            self._connected = False

        with self._state_lock:
            for state in self._states.values():
                state.speed = 0

        logger.info("🔌 Robot disconnected")
        return ActuatorResult.success()

    def shutdown(self):
        """Disconnect if needed and stop the animation thread"""
        if self._connected:
            self.disconnect()
        self.scheduler.stop()

    # ==================== Revolute joints ====================

    def update_degrees(self, servo_id: int, value: float) -> ActuatorResult:
        """Move one joint"""
        return self.update_joints_degrees([(servo_id, value)])

    def update_joints_degrees(self, updates: Sequence[JointUpdate]) -> ActuatorResult:
        """
        Move several joints together

        Invalid entries are skipped and reported in ``skipped``, valid
        entries still proceed.
        """
        accepted: Dict[int, float] = {}
        skipped: List[int] = []

        with self._state_lock:
            for servo_id, value in updates:
                joint = self.registry.get(servo_id)
                if joint is None:
                    logger.warning(f"Unknown servo {servo_id}. Skipping update.")
                    skipped.append(servo_id)
                elif not joint.is_revolute:
                    logger.warning(f"Servo {servo_id} is a continuous joint. Skipping update.")
                    skipped.append(servo_id)
                elif not is_within_servo_range(value) or not JointLimits.allows(joint, value):
                    low, high = JointLimits.get_limits(joint)
                    logger.warning(
                        f"Value {value} for servo {servo_id} is out of range "
                        f"({low:g}-{high:g}). Skipping update."
                    )
                    skipped.append(servo_id)
                else:
                    state = self._states[servo_id]
                    state.target_degrees = float(value)
                    state.is_moving = True
                    accepted[servo_id] = float(value)

        if not accepted:
            return ActuatorResult.success(skipped)

        if self.animate:
            self.scheduler.start()

        if not self.is_connected:
            return ActuatorResult.success(skipped)

        return self._write_positions(accepted, skipped)

    def _write_positions(self, degrees: Dict[int, float], skipped: List[int]) -> ActuatorResult:
        """Write goal positions, then snap state to the read-back positions"""
        positions = {sid: degrees_to_position(value) for sid, value in degrees.items()}

        with self._bus_lock:
            try:
                if len(positions) == 1:
                    (sid, position), = positions.items()
                    self.transport.write_position(sid, position)
                else:
                    self.transport.sync_write_positions(positions)
            except TransportDisconnected as e:
                return self._connection_lost(e)
            except TransportError as e:
                logger.error(f"Failed to update servo degrees for {sorted(positions)}: {e}")
                self._hold(positions)
                servo_id = next(iter(positions)) if len(positions) == 1 else None
                return ActuatorResult.write_error(ActuatorWriteError(str(e), servo_id), skipped)

            unread = []
            for sid in positions:
                try:
                    actual = position_to_degrees(self.transport.read_position(sid))
                except TransportDisconnected as e:
                    return self._connection_lost(e)
                except TransportError as e:
                    logger.warning(f"Could not read back servo {sid}: {e}")
                    unread.append(sid)
                    continue
                self._snap(sid, actual)

        if unread:
            return ActuatorResult.write_error(
                ActuatorWriteError(f"Could not read back servos {unread}", unread[0]), skipped
            )
        return ActuatorResult.success(skipped)

    def _snap(self, servo_id: int, degrees: float):
        """Hardware position replaces the animation"""
        with self._state_lock:
            state = self._states[servo_id]
            state.degrees = degrees
            state.target_degrees = degrees
            state.is_moving = False

    def _hold(self, servo_ids):
        """Cancel a move the servos never received"""
        with self._state_lock:
            for sid in servo_ids:
                state = self._states[sid]
                state.target_degrees = state.degrees
                state.is_moving = False

    def _connection_lost(self, error: Exception) -> ActuatorResult:
        self._connected = False
        logger.error(f"Robot connection lost: {error}")
        return ActuatorResult.lost(ConnectionLost(f"Robot connection lost: {error}"))

    # ==================== Continuous joints ====================

    def update_speed(self, servo_id: int, speed: int) -> ActuatorResult:
        """Set one wheel speed"""
        return self.update_joints_speed([(servo_id, speed)])

    def update_joints_speed(self, updates: Sequence[Tuple[int, int]]) -> ActuatorResult:
        """Set several wheel speeds, no interpolation"""
        accepted: Dict[int, int] = {}
        skipped: List[int] = []

        with self._state_lock:
            for servo_id, speed in updates:
                joint = self.registry.get(servo_id)
                if joint is None or not joint.is_continuous:
                    logger.warning(f"Servo {servo_id} is not a continuous joint. Skipping speed update.")
                    skipped.append(servo_id)
                    continue
                self._states[servo_id].speed = int(speed)
                accepted[servo_id] = int(speed)

        if not accepted or not self.is_connected:
            return ActuatorResult.success(skipped)

        with self._bus_lock:
            try:
                if len(accepted) == 1:
                    (sid, speed), = accepted.items()
                    self.transport.write_wheel_speed(sid, speed)
                else:
                    self.transport.sync_write_wheel_speeds(accepted)
            except TransportError as e:
                logger.error(f"Failed to update speed for {sorted(accepted)}: {e}")
                with self._state_lock:
                    for sid in accepted:
                        self._states[sid].speed = 0
                if isinstance(e, TransportDisconnected):
                    return self._connection_lost(e)
                servo_id = next(iter(accepted)) if len(accepted) == 1 else None
                return ActuatorResult.write_error(ActuatorWriteError(str(e), servo_id), skipped)

        return ActuatorResult.success(skipped)

    # ==================== Convenience Methods ====================

    def home_robot(self) -> ActuatorResult:
        """Move every revolute joint to its home angle, one joint at a time"""
        if not self.is_connected:
            error = HomeRefused()
            logger.warning(str(error))
            return ActuatorResult.refused(error)

        logger.info("🏠 Homing robot")
        failure = None
        skipped = []
        for joint in self.registry.revolute:
            value = self.home_angles.get(joint.name, 0.0)
            result = self.update_degrees(joint.servo_id, value)
            if result.connection_lost:
                return result
            if not result.ok:
                logger.error(f"Failed to home joint {joint.servo_id}: {result.error}")
                failure = failure or result
            elif result.skipped:
                logger.warning(f"Home angle {value}° out of range for joint {joint.servo_id}, skipped")
                skipped.extend(result.skipped)
            else:
                logger.debug(f"Homed joint {joint.servo_id} to {value}°")

        return failure or ActuatorResult.success(skipped)

    def open_gripper(self) -> ActuatorResult:
        return self.update_degrees(self.gripper_servo_id, self.gripper_open_angle)

    def close_gripper(self) -> ActuatorResult:
        return self.update_degrees(self.gripper_servo_id, self.gripper_close_angle)

    def emergency_stop(self) -> ActuatorResult:
        """
        Release every servo and reset state to the connect-time origin

        Never fails while connected, individual write failures are logged.
        """
        if not self.is_connected:
            error = EmergencyStopNoop()
            logger.warning(str(error))
            return ActuatorResult.refused(error)

        logger.critical("🛑 EMERGENCY STOP")

        # No bus lock here: a stuck transaction must not delay the stop
        for joint in self.registry:
            try:
                if joint.is_continuous:
                    self.transport.write_wheel_speed(joint.servo_id, 0)
                else:
                    self.transport.write_torque_enable(joint.servo_id, False)
            except Exception as e:
                logger.error(f"Failed to release joint {joint.servo_id}: {e}")

        self.scheduler.stop()

        with self._state_lock:
            for state in self._states.values():
                if state.joint_type is JointKind.REVOLUTE:
                    state.degrees = state.connected_origin
                    state.target_degrees = state.connected_origin
                else:
                    state.degrees = 0.0
                    state.target_degrees = 0.0
                state.is_moving = False
                state.speed = 0

        logger.info("Emergency stop executed")
        return ActuatorResult.success()

    # ==================== Virtual motion ====================

    def step_interpolation(self) -> bool:
        """
        Advance every moving revolute joint by at most one step

        Returns:
            True while any joint is still moving
        """
        with self._state_lock:
            moving = []
            for state in self._states.values():
                if not state.is_moving:
                    continue
                if state.joint_type is not JointKind.REVOLUTE or state.target_degrees is None:
                    state.is_moving = False
                    continue
                moving.append(state)

            if not moving:
                return False

            current = np.array([state.degrees for state in moving], dtype=float)
            target = np.array([state.target_degrees for state in moving], dtype=float)
            diff = target - current
            steps = np.clip(diff, -self.max_step, self.max_step)
            arrived = np.abs(diff) <= self.snap_epsilon

            still_moving = False
            for state, step, done in zip(moving, steps, arrived):
                if done:
                    state.degrees = state.target_degrees
                    state.is_moving = False
                else:
                    state.degrees = float(state.degrees + step)
                    still_moving = True

            return still_moving
