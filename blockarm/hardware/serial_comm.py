"""
Thread-safe serial transport for Feetech servo buses
Manages all low-level communication with the servos
"""

import serial
import time
import threading
import logging
from typing import Dict, Optional

from ..config import SERIAL_DEFAULTS
from ..errors import TransportError, TransportDisconnected
from . import protocol
from .protocol import REGISTERS
from .transport import Transport

logger = logging.getLogger(__name__)

STATUS_OVERHEAD = 6  # FF FF ID LEN ERR CHK


class SerialTransport(Transport):
    """Thread-safe serial communication with the servo bus"""

    def __init__(self, port: str,
                 baudrate: int = SERIAL_DEFAULTS["baudrate"],
                 timeout: float = SERIAL_DEFAULTS["timeout"],
                 retry_count: int = SERIAL_DEFAULTS["retry_count"]):
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout
        self.retry_count = retry_count
        self._serial: Optional[serial.Serial] = None
        self._lock = threading.Lock()
        self._connected = False

    @property
    def is_open(self) -> bool:
        """Check if serial connection is open"""
        return bool(self._connected and self._serial and self._serial.is_open)

    def open(self):
        """Establish serial connection"""
        with self._lock:
            try:
                if self._serial and self._serial.is_open:
                    self._serial.close()

                self._serial = serial.Serial(
                    port=self.port,
                    baudrate=self.baudrate,
                    timeout=self.timeout,
                    write_timeout=SERIAL_DEFAULTS["write_timeout"],
                    bytesize=serial.EIGHTBITS,
                    parity=serial.PARITY_NONE,
                    stopbits=serial.STOPBITS_ONE
                )
                self._flush_buffers()
                self._connected = True
                logger.info(f"✅ Connected to {self.port} @ {self.baudrate} baud")

            except serial.SerialException as e:
                self._connected = False
                logger.error(f"❌ Connection failed: {e}")
                raise TransportDisconnected(f"Could not open {self.port}: {e}") from e

    def close(self):
        """Close serial connection"""
        with self._lock:
            if self._serial and self._serial.is_open:
                try:
                    self._serial.close()
                    logger.info("🔌 Serial connection closed")
                except serial.SerialException as e:
                    logger.error(f"Error closing serial: {e}")
            self._connected = False

    # ==================== Servo operations ====================

    def set_position_mode(self, servo_id: int):
        self._write_eeprom(servo_id, REGISTERS["MODE"], bytes([protocol.MODE_POSITION]))

    def set_wheel_mode(self, servo_id: int):
        self._write_eeprom(servo_id, REGISTERS["MODE"], bytes([protocol.MODE_WHEEL]))

    def write_torque_enable(self, servo_id: int, enable: bool):
        self._write(servo_id, REGISTERS["TORQUE_ENABLE"], bytes([1 if enable else 0]))

    def read_position(self, servo_id: int) -> int:
        return protocol.decode_word(self._read(servo_id, REGISTERS["PRESENT_POSITION"], 2))

    def write_position(self, servo_id: int, position: int):
        self._write(servo_id, REGISTERS["GOAL_POSITION"], protocol.encode_word(int(position)))

    def read_wheel_speed(self, servo_id: int) -> int:
        return protocol.decode_speed(self._read(servo_id, REGISTERS["PRESENT_SPEED"], 2))

    def write_wheel_speed(self, servo_id: int, speed: int):
        self._write(servo_id, REGISTERS["GOAL_SPEED"], protocol.encode_speed(speed))

    def sync_write_positions(self, positions: Dict[int, int]):
        items = {sid: protocol.encode_word(int(pos)) for sid, pos in positions.items()}
        packet = protocol.build_sync_write(REGISTERS["GOAL_POSITION"], 2, items)
        self._transact(packet)

    def sync_write_wheel_speeds(self, speeds: Dict[int, int]):
        items = {sid: protocol.encode_speed(speed) for sid, speed in speeds.items()}
        packet = protocol.build_sync_write(REGISTERS["GOAL_SPEED"], 2, items)
        self._transact(packet)

    # ==================== Low level ====================

    def _write_eeprom(self, servo_id: int, address: int, data: bytes):
        """Write an EEPROM register (unlock, write, lock)"""
        self._write(servo_id, REGISTERS["LOCK"], bytes([0]))
        self._write(servo_id, address, data)
        self._write(servo_id, REGISTERS["LOCK"], bytes([1]))

    def _write(self, servo_id: int, address: int, data: bytes):
        packet = protocol.build_write(servo_id, address, data)
        self._request(packet, servo_id, 0)

    def _read(self, servo_id: int, address: int, length: int) -> bytes:
        packet = protocol.build_read(servo_id, address, length)
        params = self._request(packet, servo_id, length)
        if len(params) != length:
            raise TransportError(
                f"Servo {servo_id}: expected {length} bytes, got {len(params)}"
            )
        return params

    def _request(self, packet: bytes, servo_id: int, reply_params: int) -> bytes:
        """Send packet and parse the status reply, retrying servo errors"""
        last_error = None
        for attempt in range(self.retry_count + 1):
            try:
                reply = self._transact(packet, STATUS_OVERHEAD + reply_params)
                error, params = protocol.parse_status_packet(reply, servo_id)
                if error:
                    raise TransportError(f"Servo {servo_id} reported error 0x{error:02X}")
                return params
            except TransportDisconnected:
                raise
            except TransportError as e:
                last_error = e
                logger.debug(f"Servo {servo_id} attempt {attempt + 1} failed: {e}")
        raise last_error

    def _transact(self, packet: bytes, reply_length: int = 0) -> bytes:
        """One bus transaction, at most one in flight"""
        if not self.is_open:
            raise TransportDisconnected()

        with self._lock:
            try:
                # Drop stale bytes before sending
                if self._serial.in_waiting > 0:
                    self._serial.read(self._serial.in_waiting)

                self._serial.write(packet)
                self._serial.flush()

                if reply_length == 0:
                    return b""
                return self._serial.read(reply_length)

            except serial.SerialTimeoutException as e:
                raise TransportError(f"Serial write timeout: {e}") from e
            except (serial.SerialException, OSError) as e:
                self._connected = False
                logger.error(f"Serial link lost: {e}")
                raise TransportDisconnected(f"Serial link lost: {e}") from e

    def _flush_buffers(self):
        """Flush input and output buffers"""
        try:
            self._serial.reset_input_buffer()
            self._serial.reset_output_buffer()
            time.sleep(0.05)
        except serial.SerialException as e:
            logger.debug(f"Buffer flush error: {e}")
