"""Hardware communication module"""

from .transport import Transport
from .serial_comm import SerialTransport
from .mock_transport import SimulatedTransport
from .port_utils import get_default_port, list_available_ports, find_servo_port

__all__ = [
    'Transport',
    'SerialTransport',
    'SimulatedTransport',
    'get_default_port',
    'list_available_ports',
    'find_servo_port'
]
