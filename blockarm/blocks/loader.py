"""
Program loader
Validates JSON shaped block trees and builds the typed Program
"""

import json
import math
import logging
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from ..config import JOINT_TO_SERVO_ID
from ..errors import ValidationError
from ..motion import clamp_move_joint_angle
from .model import (Block, CloseGripper, HomeRobot, IfCondition, IfElse, MoveTo,
                    OpenGripper, Program, Repeat, WaitSeconds, WhileLoop)
from .registry import BlockDefinition, BlockParameter, BlockRegistry, create_default_registry

logger = logging.getLogger(__name__)

ELSE_SLOT = "else"


def load_program(data: Any, registry: Optional[BlockRegistry] = None) -> Program:
    """
    Build a Program from a list of blocks or a project object

    Raises:
        ValidationError: on the first malformed block, with its path
    """
    registry = registry or create_default_registry()
    version = None

    if isinstance(data, dict):
        metadata = data.get("metadata")
        if not isinstance(metadata, dict):
            raise ValidationError("missing metadata", "project")
        version = metadata.get("version")
        if not isinstance(version, str):
            raise ValidationError("missing version", "project.metadata")
        data = data.get("blocks")
        if not isinstance(data, list):
            raise ValidationError("blocks should be an array", "project")
    elif not isinstance(data, list):
        raise ValidationError("expected a list of blocks or a project object")

    loader = _Loader(registry)
    blocks = tuple(loader.block(raw, f"blocks[{i}]") for i, raw in enumerate(data))
    program = Program(blocks, version)
    logger.debug(f"Loaded program: {len(blocks)} root blocks, {program.leaf_count()} leaves")
    return program


def load_program_file(filepath, registry: Optional[BlockRegistry] = None) -> Program:
    """Load a program from a .json (or .yaml) project file"""
    path = Path(filepath)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
        raise ValidationError(f"Could not parse {path.name}: {e}") from e

    program = load_program(data, registry)
    logger.info(f"📂 Loaded {path.name} ({program.leaf_count()} blocks)")
    return program


class _Loader:
    """Single pass validator, tracks ids across the whole tree"""

    def __init__(self, registry: BlockRegistry):
        self.registry = registry
        self.seen_ids: Set[str] = set()

    def block(self, raw: Any, path: str) -> Block:
        if not isinstance(raw, dict):
            raise ValidationError("expected an object", path)

        block_id = raw.get("id")
        if not isinstance(block_id, str) or not block_id:
            raise ValidationError("missing or invalid id", path)
        if block_id in self.seen_ids:
            raise ValidationError(f"duplicate id '{block_id}'", path)
        self.seen_ids.add(block_id)

        kind = raw.get("definitionId", raw.get("kind"))
        if not isinstance(kind, str) or not kind:
            raise ValidationError("missing or invalid definitionId", path)

        if not _is_number(raw.get("x")) or not _is_number(raw.get("y")):
            raise ValidationError("x and y must be numbers", path)

        parameters = raw.get("parameters")
        if not isinstance(parameters, dict):
            raise ValidationError("parameters must be an object", path)

        children = raw.get("children")
        if not isinstance(children, list):
            raise ValidationError("children must be an array", path)

        definition = self.registry.get_block(kind)
        if definition is None:
            raise ValidationError(f"unknown block '{kind}'", path)

        if children and not definition.has_children:
            raise ValidationError(f"'{kind}' blocks cannot have children", path)

        params = self.parameters(definition, parameters, path)

        then_branch: List[Block] = []
        else_branch: List[Block] = []
        for i, child in enumerate(children):
            child_path = f"{path}.children[{i}]"
            slot = child.get("childSlot") if isinstance(child, dict) else None
            built = self.block(child, child_path)
            if slot is None:
                then_branch.append(built)
            elif slot == ELSE_SLOT and kind == IfElse.kind:
                else_branch.append(built)
            else:
                raise ValidationError(f"invalid childSlot {slot!r}", child_path)

        return self.build(kind, block_id, params, tuple(then_branch), tuple(else_branch), path)

    # ==================== Parameters ====================

    def parameters(self, definition: BlockDefinition, raw: Dict[str, Any], path: str) -> Dict[str, Any]:
        """Apply defaults and coerce each parameter to its schema"""
        values = {}
        for param in definition.parameters:
            value = raw.get(param.name, param.default_value)
            values[param.name] = self.coerce(param, value, path)
        return values

    def coerce(self, param: BlockParameter, value: Any, path: str) -> Any:
        if param.type in ("number", "angle"):
            number = _to_number(value)
            if number is None:
                raise ValidationError(f"'{param.name}' must be a number, got {value!r}", path)
            if param.min is not None and number < param.min:
                raise ValidationError(f"'{param.name}' must be at least {param.min:g}", path)
            if param.max is not None and number > param.max:
                raise ValidationError(f"'{param.name}' must be at most {param.max:g}", path)
            return number

        if param.type == "dropdown":
            if param.options and value not in param.options:
                raise ValidationError(
                    f"'{param.name}' must be one of {', '.join(param.options)}, got {value!r}", path
                )
            return value

        if param.type == "boolean":
            if isinstance(value, bool):
                return value
            if isinstance(value, str) and value.strip().lower() in ("true", "false"):
                return value.strip().lower() == "true"
            raise ValidationError(f"'{param.name}' must be true or false, got {value!r}", path)

        return value

    # ==================== Typed blocks ====================

    def build(self, kind: str, block_id: str, params: Dict[str, Any],
              children: Tuple[Block, ...], else_children: Tuple[Block, ...], path: str) -> Block:
        if kind == MoveTo.kind:
            joint = params["joint"]
            servo_id = JOINT_TO_SERVO_ID.get(joint)
            if servo_id is None:
                raise ValidationError(f"no servo mapped to joint '{joint}'", path)
            angle = clamp_move_joint_angle(joint, params["angle"])
            return MoveTo(block_id, joint=joint, servo_id=servo_id, angle=angle)

        if kind == WaitSeconds.kind:
            return WaitSeconds(block_id, seconds=params["seconds"])

        if kind == Repeat.kind:
            times = params["times"]
            if not float(times).is_integer():
                raise ValidationError(f"'times' must be a whole number, got {times!r}", path)
            return Repeat(block_id, children=children, times=int(times))

        if kind == IfCondition.kind:
            return IfCondition(block_id, children=children, condition=params["condition"])

        if kind == IfElse.kind:
            return IfElse(block_id, children=children, condition=params["condition"],
                          else_children=else_children)

        if kind == WhileLoop.kind:
            return WhileLoop(block_id, children=children, condition=params["condition"])

        simple = {
            HomeRobot.kind: HomeRobot,
            OpenGripper.kind: OpenGripper,
            CloseGripper.kind: CloseGripper,
        }
        if kind in simple:
            return simple[kind](block_id)

        raise ValidationError(f"block '{kind}' has no executable form", path)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_number(value: Any) -> Optional[float]:
    """Numbers and numeric strings, None for anything else"""
    if _is_number(value):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None
