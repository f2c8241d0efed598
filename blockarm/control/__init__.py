"""Control module: joint model, actuator capability and synchronizer"""

from .joints import JointKind, JointLimit, JointConfig, JointState, JointRegistry
from .actuator import Actuator, ActuatorResult, ActuatorStatus, JointUpdate
from .synchronizer import JointStateSynchronizer

__all__ = [
    'JointKind',
    'JointLimit',
    'JointConfig',
    'JointState',
    'JointRegistry',
    'Actuator',
    'ActuatorResult',
    'ActuatorStatus',
    'JointUpdate',
    'JointStateSynchronizer'
]
