"""
Code generation
Renders a program as the text shown in the "Generated Code" panel
"""

import re
from typing import Any, List, Sequence

from .model import Block, IfElse, Program
from .registry import BlockRegistry

INDENT = "  "
PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


def format_value(value: Any) -> str:
    """Template text of one parameter value"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def generate_code(program: Program, registry: BlockRegistry) -> str:
    """Render every root block, one statement per line"""
    return _render_sequence(program.blocks, registry)


def _render_sequence(blocks: Sequence[Block], registry: BlockRegistry) -> str:
    return "\n".join(render_block(block, registry) for block in blocks)


def _indent_continuation(text: str) -> str:
    # The template already indents the first line of a body
    return text.replace("\n", "\n" + INDENT)


def render_block(block: Block, registry: BlockRegistry) -> str:
    definition = registry.get_block(block.kind)
    if definition is None:
        return f"// unknown block: {block.kind}"

    values = {name: format_value(value) for name, value in block.parameters().items()}
    if block.compound:
        values["children"] = _indent_continuation(_render_sequence(block.children, registry))
    if isinstance(block, IfElse):
        values["else"] = _indent_continuation(_render_sequence(block.else_children, registry))

    code = PLACEHOLDER.sub(lambda m: values.get(m.group(1), m.group(0)), definition.code_template)
    # Drop lines left empty by childless bodies
    lines: List[str] = [line for line in code.split("\n") if line.strip()]
    return "\n".join(lines)
