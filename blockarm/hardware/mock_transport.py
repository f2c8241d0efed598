"""
Simulated servo bus
In-memory twin of the servo bus for running programs without hardware
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple
from dataclasses import dataclass

from ..errors import TransportError, TransportDisconnected
from .transport import Transport

logger = logging.getLogger(__name__)

CENTER_POSITION = 2048


@dataclass
class SimulatedServo:
    """Simulated register state of one servo"""
    servo_id: int
    position: int = CENTER_POSITION
    speed: int = 0
    wheel_mode: bool = False
    torque_enabled: bool = False


class SimulatedTransport(Transport):
    """
    Simulated bus - records every call and answers from in-memory state

    Failure injection:
        failing_servos: servo ids whose every operation raises TransportError
        fail_open: open() raises TransportDisconnected
        disconnect_after: number of successful operations before the link drops
    """

    def __init__(self, servo_ids: Iterable[int] = (),
                 positions: Optional[Dict[int, int]] = None):
        self.servos: Dict[int, SimulatedServo] = {}
        for servo_id in servo_ids:
            self.add_servo(servo_id)
        for servo_id, position in (positions or {}).items():
            self.add_servo(servo_id).position = position

        self._open = False
        self.history: List[Tuple] = []

        self.failing_servos: Set[int] = set()
        self.fail_open = False
        self.disconnect_after: Optional[int] = None

        # Achieved position differs from goal by this many units
        self.tracking_error = 0

        logger.info(f"🤖 SimulatedTransport initialized ({len(self.servos)} servos)")

    def add_servo(self, servo_id: int) -> SimulatedServo:
        servo = self.servos.get(servo_id)
        if servo is None:
            servo = self.servos[servo_id] = SimulatedServo(servo_id)
        return servo

    def simulate_disconnect(self):
        """Drop the link, every later call raises TransportDisconnected"""
        self._open = False
        logger.warning("Simulated link dropped")

    def calls(self, name: str) -> List[Tuple]:
        """History entries of one operation"""
        return [entry for entry in self.history if entry[0] == name]

    # ==================== Transport ====================

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self):
        if self.fail_open:
            raise TransportDisconnected("Simulated port unavailable")
        self._open = True
        logger.info("✅ Simulated bus opened")

    def close(self):
        self._open = False
        self.history.append(("close",))
        logger.info("Simulated bus closed")

    def set_position_mode(self, servo_id: int):
        self._servo("set_position_mode", servo_id).wheel_mode = False

    def set_wheel_mode(self, servo_id: int):
        self._servo("set_wheel_mode", servo_id).wheel_mode = True

    def write_torque_enable(self, servo_id: int, enable: bool):
        self._servo("write_torque_enable", servo_id, enable).torque_enabled = enable

    def read_position(self, servo_id: int) -> int:
        return self._servo("read_position", servo_id).position

    def write_position(self, servo_id: int, position: int):
        self._servo("write_position", servo_id, position).position = position + self.tracking_error

    def read_wheel_speed(self, servo_id: int) -> int:
        return self._servo("read_wheel_speed", servo_id).speed

    def write_wheel_speed(self, servo_id: int, speed: int):
        self._servo("write_wheel_speed", servo_id, speed).speed = speed

    def sync_write_positions(self, positions: Dict[int, int]):
        self._record("sync_write_positions", dict(positions))
        for servo_id in positions:
            self._check_servo(servo_id)
        for servo_id, position in positions.items():
            self.add_servo(servo_id).position = position + self.tracking_error

    def sync_write_wheel_speeds(self, speeds: Dict[int, int]):
        self._record("sync_write_wheel_speeds", dict(speeds))
        for servo_id in speeds:
            self._check_servo(servo_id)
        for servo_id, speed in speeds.items():
            self.add_servo(servo_id).speed = speed

    # ==================== Internals ====================

    def _servo(self, name: str, servo_id: int, *args) -> SimulatedServo:
        self._record(name, servo_id, *args)
        self._check_servo(servo_id)
        return self.add_servo(servo_id)

    def _record(self, name: str, *args):
        if not self._open:
            raise TransportDisconnected()

        if self.disconnect_after is not None:
            if self.disconnect_after <= 0:
                self.simulate_disconnect()
                raise TransportDisconnected("Simulated link lost")
            self.disconnect_after -= 1

        self.history.append((name,) + args)
        logger.debug(f"Simulated bus: {name}{args}")

    def _check_servo(self, servo_id: int):
        if servo_id in self.failing_servos:
            raise TransportError(f"No status packet from servo {servo_id}")
