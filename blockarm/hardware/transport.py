"""
Servo bus transport interface
Everything the synchronizer needs from the low-level bus driver
"""

from abc import ABC, abstractmethod
from typing import Dict


class Transport(ABC):
    """
    Per-servo bus operations

    Implementations raise TransportError when a single servo fails and
    TransportDisconnected when the link itself is gone.
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """True while the link is usable"""

    @abstractmethod
    def open(self):
        """Open the link, raises TransportDisconnected on failure"""

    @abstractmethod
    def close(self):
        """Close the link"""

    @abstractmethod
    def set_position_mode(self, servo_id: int):
        """Switch servo to position control"""

    @abstractmethod
    def set_wheel_mode(self, servo_id: int):
        """Switch servo to continuous rotation"""

    @abstractmethod
    def write_torque_enable(self, servo_id: int, enable: bool):
        """Enable or disable holding torque"""

    @abstractmethod
    def read_position(self, servo_id: int) -> int:
        """Present position in servo units"""

    @abstractmethod
    def write_position(self, servo_id: int, position: int):
        """Goal position in servo units"""

    @abstractmethod
    def read_wheel_speed(self, servo_id: int) -> int:
        """Present signed speed"""

    @abstractmethod
    def write_wheel_speed(self, servo_id: int, speed: int):
        """Goal signed speed"""

    @abstractmethod
    def sync_write_positions(self, positions: Dict[int, int]):
        """Goal positions for several servos in one bus transaction"""

    @abstractmethod
    def sync_write_wheel_speeds(self, speeds: Dict[int, int]):
        """Goal speeds for several servos in one bus transaction"""
