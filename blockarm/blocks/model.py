"""
Program model
Typed, immutable block tree produced by the loader and run by the executor
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterator, Optional, Tuple


@dataclass(frozen=True)
class Block:
    """Base of all blocks, ``kind`` is the block definition id"""
    id: str

    kind: ClassVar[str] = ""
    compound: ClassVar[bool] = False

    def parameters(self) -> Dict[str, Any]:
        """Parameter values as shown in the editor"""
        return {}

    def walk(self) -> Iterator["Block"]:
        yield self


@dataclass(frozen=True)
class CompoundBlock(Block):
    """Block owning an ordered child sequence"""
    children: Tuple[Block, ...] = ()

    compound: ClassVar[bool] = True

    def branches(self) -> Tuple[Tuple[Block, ...], ...]:
        return (self.children,)

    def walk(self) -> Iterator[Block]:
        yield self
        for branch in self.branches():
            for child in branch:
                yield from child.walk()


# ==================== LEAVES ====================

@dataclass(frozen=True)
class MoveTo(Block):
    joint: str = "base"
    servo_id: int = 1
    angle: float = 0.0

    kind: ClassVar[str] = "move_to"

    def parameters(self) -> Dict[str, Any]:
        return {"joint": self.joint, "angle": self.angle}


@dataclass(frozen=True)
class HomeRobot(Block):
    kind: ClassVar[str] = "home_robot"


@dataclass(frozen=True)
class OpenGripper(Block):
    kind: ClassVar[str] = "open_gripper"


@dataclass(frozen=True)
class CloseGripper(Block):
    kind: ClassVar[str] = "close_gripper"


@dataclass(frozen=True)
class WaitSeconds(Block):
    seconds: float = 1.0

    kind: ClassVar[str] = "wait_seconds"

    def parameters(self) -> Dict[str, Any]:
        return {"seconds": self.seconds}


# ==================== COMPOUND ====================

@dataclass(frozen=True)
class Repeat(CompoundBlock):
    times: int = 3

    kind: ClassVar[str] = "repeat"

    def parameters(self) -> Dict[str, Any]:
        return {"times": self.times}


@dataclass(frozen=True)
class IfCondition(CompoundBlock):
    condition: bool = True

    kind: ClassVar[str] = "if_condition"

    def parameters(self) -> Dict[str, Any]:
        return {"condition": self.condition}


@dataclass(frozen=True)
class IfElse(CompoundBlock):
    condition: bool = True
    else_children: Tuple[Block, ...] = ()

    kind: ClassVar[str] = "if_else"

    def parameters(self) -> Dict[str, Any]:
        return {"condition": self.condition}

    def branches(self) -> Tuple[Tuple[Block, ...], ...]:
        return (self.children, self.else_children)


@dataclass(frozen=True)
class WhileLoop(CompoundBlock):
    """Literal condition, runs its children at most once"""
    condition: bool = True

    kind: ClassVar[str] = "while_loop"

    def parameters(self) -> Dict[str, Any]:
        return {"condition": self.condition}


BLOCK_TYPES = {
    cls.kind: cls
    for cls in (MoveTo, HomeRobot, OpenGripper, CloseGripper, WaitSeconds,
                Repeat, IfCondition, IfElse, WhileLoop)
}


@dataclass(frozen=True)
class Program:
    """Ordered root blocks of one workspace"""
    blocks: Tuple[Block, ...] = ()
    version: Optional[str] = None

    def walk(self) -> Iterator[Block]:
        """Every block, depth first in execution order"""
        for block in self.blocks:
            yield from block.walk()

    def leaf_count(self) -> int:
        """Number of leaf blocks in the tree (loops not unrolled)"""
        return sum(1 for block in self.walk() if not block.compound)

    def __iter__(self) -> Iterator[Block]:
        return iter(self.blocks)

    def __len__(self) -> int:
        return len(self.blocks)
