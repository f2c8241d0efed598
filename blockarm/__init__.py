"""
BlockArm - Block Programs for Servo Arms
========================================

Runs trees of instruction blocks on a serial-bus servo arm or on its
virtual twin, with cooperative cancellation and guaranteed emergency stop.
"""

__version__ = "1.0.0"
__author__ = "BlockArm Team"

# Version check
import sys
if sys.version_info < (3, 8):
    raise RuntimeError("BlockArm requires Python 3.8 or later")

# Convenience imports
from .control.synchronizer import JointStateSynchronizer
from .blocks.executor import BlockExecutor, CancellationToken
from .blocks.loader import load_program, load_program_file

__all__ = [
    'JointStateSynchronizer',
    'BlockExecutor',
    'CancellationToken',
    'load_program',
    'load_program_file'
]
