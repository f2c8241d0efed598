"""
Serial port detection utilities
Works on macOS, Linux and Windows
"""

import sys
import serial.tools.list_ports
from typing import List, Optional

# USB-serial bridges used by servo driver boards
SERVO_BOARD_PATTERNS = [
    'usbmodem',     # macOS CDC devices
    'usbserial',    # macOS FTDI/CH340 devices
    'ttyACM',       # Linux CDC devices
    'CH340',        # Common USB-Serial chip
    'CH343',
    'CP210',
    'FTDI',
]


def get_default_port() -> str:
    """
    Auto-detect the most likely serial port for the servo bus
    Priority order:
    1. Ports matching a known servo board pattern
    2. /dev/cu.* ports (macOS), /dev/ttyUSB* (Linux), COM* ports (Windows)
    """
    found = find_servo_port()
    if found:
        return found

    ports = list(serial.tools.list_ports.comports())

    if not ports:
        # Return platform-specific default
        if sys.platform == "darwin":
            return "/dev/cu.usbmodem1"
        elif sys.platform.startswith("linux"):
            return "/dev/ttyACM0"
        else:
            return "COM3"

    if sys.platform == "darwin":
        cu_ports = [p.device for p in ports if p.device.startswith('/dev/cu.')]
        if cu_ports:
            return cu_ports[0]

    elif sys.platform.startswith("linux"):
        tty_ports = [p.device for p in ports if 'ttyUSB' in p.device]
        if tty_ports:
            return tty_ports[0]

    else:
        com_ports = [p.device for p in ports if p.device.startswith('COM')]
        if com_ports:
            # Prefer higher COM ports (usually USB adapters)
            return sorted(com_ports)[-1]

    # Fallback to first available port
    return ports[0].device


def list_available_ports() -> List[dict]:
    """
    List all available serial ports with details
    Returns list of dicts with device, description, and hwid
    """
    ports = []

    for port in serial.tools.list_ports.comports():
        description = port.description or 'Unknown'
        hwid = port.hwid or 'Unknown'
        ports.append({
            'device': port.device,
            'description': description,
            'hwid': hwid,
            'is_usb': 'USB' in description or 'USB' in hwid
        })

    ports.sort(key=lambda x: x['device'])
    return ports


def find_servo_port() -> Optional[str]:
    """Port whose name or description matches a known servo board"""
    for port in list_available_ports():
        device_lower = port['device'].lower()
        desc_lower = port['description'].lower()

        for pattern in SERVO_BOARD_PATTERNS:
            if pattern.lower() in device_lower or pattern.lower() in desc_lower:
                return port['device']

    return None
