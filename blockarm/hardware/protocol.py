"""
Packet builder for the Feetech SCS/STS servo protocol
Provides a clean interface for building and parsing bus packets

Instruction packet: FF FF ID LEN INSTR PARAM... CHK
Status packet:      FF FF ID LEN ERROR PARAM... CHK
LEN = number of params + 2, CHK = ~(ID + LEN + INSTR/ERROR + sum(PARAM)) & 0xFF
"""

from typing import Dict, Iterable, Tuple

from ..errors import TransportError

HEADER = b"\xff\xff"
BROADCAST_ID = 0xFE

# Instructions
INST_PING = 0x01
INST_READ = 0x02
INST_WRITE = 0x03
INST_SYNC_WRITE = 0x83

# Control table (STS series, little-endian words)
REGISTERS = {
    "MODE": 33,              # 0 = position, 1 = wheel
    "TORQUE_ENABLE": 40,
    "ACCELERATION": 41,
    "GOAL_POSITION": 42,     # 2 bytes
    "GOAL_SPEED": 46,        # 2 bytes, bit 15 = direction
    "LOCK": 55,              # EEPROM lock
    "PRESENT_POSITION": 56,  # 2 bytes
    "PRESENT_SPEED": 58,     # 2 bytes, bit 15 = direction
}

MODE_POSITION = 0
MODE_WHEEL = 1

SPEED_SIGN_BIT = 0x8000
SPEED_MAGNITUDE_MASK = 0x7FFF


def checksum(values: Iterable[int]) -> int:
    """Feetech checksum over ID, LEN, INSTR/ERROR and params"""
    return (~sum(values)) & 0xFF


def encode_word(value: int) -> bytes:
    """16 bit little-endian"""
    return bytes([value & 0xFF, (value >> 8) & 0xFF])


def decode_word(data: bytes) -> int:
    return data[0] | (data[1] << 8)


def encode_speed(speed: int) -> bytes:
    """Signed speed as sign-magnitude word"""
    magnitude = min(abs(int(speed)), SPEED_MAGNITUDE_MASK)
    if speed < 0:
        magnitude |= SPEED_SIGN_BIT
    return encode_word(magnitude)


def decode_speed(data: bytes) -> int:
    word = decode_word(data)
    magnitude = word & SPEED_MAGNITUDE_MASK
    return -magnitude if word & SPEED_SIGN_BIT else magnitude


def build_packet(servo_id: int, instruction: int, params: bytes = b"") -> bytes:
    """Build one instruction packet"""
    length = len(params) + 2
    body = bytes([servo_id, length, instruction]) + bytes(params)
    return HEADER + body + bytes([checksum(body)])


def build_write(servo_id: int, address: int, data: bytes) -> bytes:
    return build_packet(servo_id, INST_WRITE, bytes([address]) + bytes(data))


def build_read(servo_id: int, address: int, length: int) -> bytes:
    return build_packet(servo_id, INST_READ, bytes([address, length]))


def build_sync_write(address: int, data_length: int, items: Dict[int, bytes]) -> bytes:
    """
    Build a broadcast sync write

    Args:
        address: First register of the block written on every servo
        data_length: Bytes written per servo
        items: Servo id -> data (data_length bytes each)
    """
    params = bytearray([address, data_length])
    for servo_id, data in items.items():
        if len(data) != data_length:
            raise ValueError(
                f"Servo {servo_id}: expected {data_length} data bytes, got {len(data)}"
            )
        params.append(servo_id)
        params.extend(data)
    return build_packet(BROADCAST_ID, INST_SYNC_WRITE, bytes(params))


def parse_status_packet(data: bytes, expected_id: int) -> Tuple[int, bytes]:
    """
    Parse a status packet

    Returns:
        (error byte, params)

    Raises:
        TransportError: Missing header, wrong id, short packet or bad checksum
    """
    start = data.find(HEADER)
    if start < 0:
        raise TransportError(f"No status packet from servo {expected_id}")

    packet = data[start:]
    if len(packet) < 6:
        raise TransportError(f"Incomplete status packet from servo {expected_id}")

    servo_id, length = packet[2], packet[3]
    if servo_id != expected_id:
        raise TransportError(f"Status packet from servo {servo_id}, expected {expected_id}")

    end = 4 + length
    if len(packet) < end:
        raise TransportError(f"Incomplete status packet from servo {expected_id}")

    body = packet[2:end - 1]
    if checksum(body) != packet[end - 1]:
        raise TransportError(f"Bad checksum in status packet from servo {expected_id}")

    error = packet[4]
    params = bytes(packet[5:end - 1])
    return error, params
