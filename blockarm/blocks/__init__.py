"""Blocks module: program model, registry, loader, executor and code generation"""

from .model import (Block, CompoundBlock, MoveTo, HomeRobot, OpenGripper, CloseGripper,
                    WaitSeconds, Repeat, IfCondition, IfElse, WhileLoop, Program, BLOCK_TYPES)
from .registry import (BlockParameter, BlockDefinition, BlockCategory, BlockRegistry,
                       create_default_registry)
from .loader import load_program, load_program_file
from .executor import (BlockExecutor, CancellationToken, ExecutionState, RunResult)
from .codegen import generate_code

__all__ = [
    'Block', 'CompoundBlock', 'MoveTo', 'HomeRobot', 'OpenGripper', 'CloseGripper',
    'WaitSeconds', 'Repeat', 'IfCondition', 'IfElse', 'WhileLoop', 'Program', 'BLOCK_TYPES',
    'BlockParameter', 'BlockDefinition', 'BlockCategory', 'BlockRegistry',
    'create_default_registry',
    'load_program', 'load_program_file',
    'BlockExecutor', 'CancellationToken', 'ExecutionState', 'RunResult',
    'generate_code'
]
