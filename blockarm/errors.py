"""
Error taxonomy for BlockArm
Every error raised or reported by the package derives from BlockArmError
"""

from typing import Optional


class BlockArmError(Exception):
    """Base class for all BlockArm errors"""

    default_message = "BlockArm error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


# ==================== PROGRAM ====================

class ValidationError(BlockArmError):
    """Malformed program tree, rejected before a run starts"""

    default_message = "Invalid program"

    def __init__(self, message: Optional[str] = None, path: str = ""):
        self.path = path
        if path and message:
            message = f"{path}: {message}"
        super().__init__(message)


# ==================== EXECUTION ====================

class ExecutionAborted(BlockArmError):
    """Run was cancelled by the user"""

    default_message = "Execution was aborted"


class ConnectionLost(BlockArmError):
    """Robot connection went away while a run was active"""

    default_message = "Robot connection lost during execution"


class ExecutionLimitExceeded(BlockArmError):
    """Run exceeded the configured number of actions"""

    default_message = "Execution stopped due to safety limits"


class ExecutorBusy(BlockArmError):
    """A run is already active on this executor"""

    default_message = "A program is already running"


# ==================== ACTUATION ====================

class ActuatorWriteError(BlockArmError):
    """A single hardware write failed, the connection is still usable"""

    default_message = "Servo write failed"

    def __init__(self, message: Optional[str] = None, servo_id: Optional[int] = None):
        self.servo_id = servo_id
        super().__init__(message)


class ActuatorFault(BlockArmError):
    """The actuator raised instead of returning a result"""

    default_message = "Actuator failed unexpectedly"


class HomeRefused(BlockArmError):
    """Homing requested while disconnected"""

    default_message = "Robot is not connected. Cannot home robot."


class EmergencyStopNoop(BlockArmError):
    """Emergency stop requested while disconnected"""

    default_message = "Cannot execute emergency stop, robot is not connected."


# ==================== TRANSPORT ====================

class TransportError(BlockArmError):
    """A servo did not answer or answered with an error"""

    default_message = "Servo bus error"


class TransportDisconnected(TransportError):
    """The serial link itself is closed or gone"""

    default_message = "Serial link is not open"
