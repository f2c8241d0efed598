"""
Block registry
Block definitions (parameters, defaults, code templates) grouped by category
"""

import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from dataclasses_json import dataclass_json, LetterCase

from ..config import EXECUTION_CONFIG, JOINT_TO_SERVO_ID

logger = logging.getLogger(__name__)


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class BlockParameter:
    """One editable parameter of a block"""
    name: str
    type: str                       # number, angle, dropdown, boolean
    default_value: Any = None
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: Optional[List[str]] = None


@dataclass_json(letter_case=LetterCase.CAMEL)
@dataclass
class BlockDefinition:
    id: str
    category: str
    name: str
    code_template: str
    parameters: List[BlockParameter] = field(default_factory=list)
    color: Optional[str] = None
    shape: str = "command"

    @property
    def has_children(self) -> bool:
        """Compound blocks render their children into the template"""
        return "{{children}}" in self.code_template

    def get_parameter(self, name: str) -> Optional[BlockParameter]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def defaults(self) -> Dict[str, Any]:
        return {param.name: param.default_value for param in self.parameters}


@dataclass_json
@dataclass
class BlockCategory:
    id: str
    name: str
    color: str
    icon: Optional[str] = None


class BlockRegistry:
    """Known block definitions and categories"""

    def __init__(self):
        self._blocks: Dict[str, BlockDefinition] = {}
        self._categories: Dict[str, BlockCategory] = {}

    def register_block(self, block: BlockDefinition):
        if block.id in self._blocks:
            logger.debug(f"Replacing block definition '{block.id}'")
        self._blocks[block.id] = block

    def register_category(self, category: BlockCategory):
        self._categories[category.id] = category

    def get_block(self, block_id: str) -> Optional[BlockDefinition]:
        return self._blocks.get(block_id)

    def get_blocks_by_category(self, category_id: str) -> List[BlockDefinition]:
        return [block for block in self._blocks.values() if block.category == category_id]

    def all_blocks(self) -> List[BlockDefinition]:
        return list(self._blocks.values())

    def all_categories(self) -> List[BlockCategory]:
        return list(self._categories.values())

    def __contains__(self, block_id: str) -> bool:
        return block_id in self._blocks

    def __len__(self) -> int:
        return len(self._blocks)


# ==================== DEFAULTS ====================

MOTION_COLOR = "hsl(217, 91%, 60%)"
CONTROL_COLOR = "hsl(38, 92%, 50%)"
GRIPPER_COLOR = "hsl(120, 60%, 60%)"

DEFAULT_CATEGORIES = [
    BlockCategory("motion", "Motion", MOTION_COLOR, "🏃"),
    BlockCategory("control", "Control", CONTROL_COLOR, "🔄"),
    BlockCategory("gripper", "Gripper", GRIPPER_COLOR, "🤏"),
]


def _condition_parameter() -> BlockParameter:
    return BlockParameter("condition", "boolean", default_value=True)


def default_block_definitions() -> List[BlockDefinition]:
    """The built-in block palette"""
    return [
        # Motion
        BlockDefinition(
            id="move_to",
            category="motion",
            name="move to",
            color=MOTION_COLOR,
            parameters=[
                BlockParameter("joint", "dropdown", default_value="base",
                               options=list(JOINT_TO_SERVO_ID)),
                BlockParameter("angle", "angle", default_value=0, min=0, max=360),
            ],
            code_template="moveTo('{{joint}}', {{angle}});",
        ),
        BlockDefinition(
            id="home_robot",
            category="motion",
            name="home robot",
            color=MOTION_COLOR,
            code_template="homeRobot();",
        ),
        # Gripper
        BlockDefinition(
            id="open_gripper",
            category="gripper",
            name="open gripper",
            color=GRIPPER_COLOR,
            code_template="openGripper();",
        ),
        BlockDefinition(
            id="close_gripper",
            category="gripper",
            name="close gripper",
            color=GRIPPER_COLOR,
            code_template="closeGripper();",
        ),
        # Control
        BlockDefinition(
            id="wait_seconds",
            category="control",
            name="wait seconds",
            color=CONTROL_COLOR,
            parameters=[
                BlockParameter("seconds", "number",
                               default_value=EXECUTION_CONFIG["default_wait"],
                               min=0, max=60, step=1),
            ],
            code_template="wait({{seconds}});",
        ),
        BlockDefinition(
            id="repeat",
            category="control",
            name="repeat",
            color=CONTROL_COLOR,
            parameters=[
                BlockParameter("times", "number", default_value=3, min=1, max=999, step=1),
            ],
            code_template="for (let i = 0; i < {{times}}; i++) {\n  {{children}}\n}",
        ),
        BlockDefinition(
            id="if_condition",
            category="control",
            name="if then",
            color=CONTROL_COLOR,
            parameters=[_condition_parameter()],
            code_template="if ({{condition}}) {\n  {{children}}\n}",
        ),
        BlockDefinition(
            id="if_else",
            category="control",
            name="if then else",
            color=CONTROL_COLOR,
            parameters=[_condition_parameter()],
            code_template="if ({{condition}}) {\n  {{children}}\n} else {\n  {{else}}\n}",
        ),
        BlockDefinition(
            id="while_loop",
            category="control",
            name="while",
            color=CONTROL_COLOR,
            parameters=[_condition_parameter()],
            code_template="while ({{condition}}) {\n  {{children}}\n}",
        ),
    ]


def create_default_registry() -> BlockRegistry:
    """Registry with the default categories and blocks"""
    registry = BlockRegistry()
    for category in DEFAULT_CATEGORIES:
        registry.register_category(category)
    for block in default_block_definitions():
        registry.register_block(block)
    return registry
