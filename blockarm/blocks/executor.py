"""
Block execution engine
Runs a program tree against an actuator with cooperative cancellation
"""

import threading
import logging
from enum import Enum
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..config import EXECUTION_CONFIG
from ..control.actuator import Actuator, ActuatorResult
from ..errors import (ActuatorFault, BlockArmError, ConnectionLost, ExecutionAborted,
                      ExecutionLimitExceeded, ExecutorBusy)
from .model import (Block, CloseGripper, HomeRobot, IfCondition, IfElse, MoveTo,
                    OpenGripper, Program, Repeat, WaitSeconds, WhileLoop)

logger = logging.getLogger(__name__)


class CancellationToken:
    """One-shot cancel flag shared between the caller and a run"""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to ``seconds``, returns True if cancelled meanwhile"""
        return self._event.wait(max(0.0, seconds))


# delay(seconds, token) -> True when the wait was cancelled
Delay = Callable[[float, CancellationToken], bool]


def _token_delay(seconds: float, token: CancellationToken) -> bool:
    return token.wait(seconds)


class ExecutionState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


@dataclass
class RunResult:
    """Terminal outcome of one run"""
    state: ExecutionState
    error: Optional[BlockArmError] = None
    steps: int = 0

    @property
    def completed(self) -> bool:
        return self.state is ExecutionState.COMPLETED

    @property
    def aborted(self) -> bool:
        return self.state is ExecutionState.ABORTED

    @property
    def failed(self) -> bool:
        return self.state is ExecutionState.FAILED


class _Run:
    """Per-run context"""

    def __init__(self, actuator: Actuator, token: CancellationToken, simulate: bool):
        self.actuator = actuator
        self.token = token
        self.simulate = simulate
        self.steps = 0


class BlockExecutor:
    """
    Sequential interpreter for block programs

    One run at a time. Every block is preceded by a cancellation check and,
    unless simulating, a connection check. A lost connection fails the run
    immediately, other actuator failures are logged and the run continues.
    """

    def __init__(self, settle_delay: float = EXECUTION_CONFIG["inter_block_delay"],
                 post_home_delay: float = EXECUTION_CONFIG["post_home_delay"],
                 home_before_run: bool = False,
                 max_steps: int = EXECUTION_CONFIG["max_steps"],
                 delay: Optional[Delay] = None):
        """
        Args:
            settle_delay: Pause between top-level blocks (s)
            post_home_delay: Pause after the pre-run home (s)
            home_before_run: Home the robot before the first block
            max_steps: Leaf actions allowed per run
            delay: Cancellable sleep, replaced in tests
        """
        self.settle_delay = settle_delay
        self.post_home_delay = post_home_delay
        self.home_before_run = home_before_run
        self.max_steps = max_steps
        self._delay = delay or _token_delay

        self._lock = threading.Lock()
        self._state = ExecutionState.IDLE
        self._token: Optional[CancellationToken] = None

    @classmethod
    def from_settings(cls, settings, delay: Optional[Delay] = None) -> "BlockExecutor":
        return cls(
            settle_delay=settings.settle_delay,
            home_before_run=settings.home_before_run,
            max_steps=settings.max_steps,
            delay=delay,
        )

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is ExecutionState.RUNNING

    def cancel(self):
        """Cancel the active run, if any"""
        token = self._token
        if token is not None:
            token.cancel()

    # ==================== Run ====================

    def run(self, program: Program, actuator: Actuator,
            token: Optional[CancellationToken] = None,
            simulate: bool = False) -> RunResult:
        """
        Execute ``program`` to completion, cancellation or failure

        Raises:
            ExecutorBusy: if a run is already active on this executor
        """
        with self._lock:
            if self._state is ExecutionState.RUNNING:
                raise ExecutorBusy()
            self._state = ExecutionState.RUNNING
            self._token = token = token or CancellationToken()

        run = _Run(actuator, token, simulate)
        logger.info(f"▶️ Running program ({len(program)} blocks{', simulated' if simulate else ''})")

        try:
            self._execute_program(program, run)
        except ExecutionAborted as e:
            result = RunResult(ExecutionState.ABORTED, e, run.steps)
            logger.warning(f"⏹️ {e}")
        except BlockArmError as e:
            result = RunResult(ExecutionState.FAILED, e, run.steps)
            logger.error(f"❌ Program failed: {e}")
        except Exception as e:
            error = ActuatorFault(f"{type(e).__name__}: {e}")
            error.__cause__ = e
            result = RunResult(ExecutionState.FAILED, error, run.steps)
            logger.exception(f"❌ Program failed: {error}")
        else:
            result = RunResult(ExecutionState.COMPLETED, None, run.steps)
            logger.info(f"✅ Program completed ({run.steps} steps)")

        self._finish(result.state)
        return result

    def _finish(self, state: ExecutionState):
        with self._lock:
            self._state = state
            self._token = None

    def _execute_program(self, program: Program, run: _Run):
        self._check(run)

        if self.home_before_run:
            logger.info("Homing robot before program execution")
            self._handle(None, run.actuator.home_robot())
            self._sleep(run, self.post_home_delay)

        for index, block in enumerate(program.blocks):
            if index > 0:
                self._sleep(run, self.settle_delay)
            self._execute_block(block, run)

    def _execute_sequence(self, blocks: Sequence[Block], run: _Run):
        for block in blocks:
            self._execute_block(block, run)

    def _execute_block(self, block: Block, run: _Run):
        self._check(run)

        if isinstance(block, Repeat):
            for _ in range(block.times):
                self._check(run)
                self._execute_sequence(block.children, run)
            return

        if isinstance(block, IfElse):
            self._execute_sequence(block.children if block.condition else block.else_children, run)
            return

        if isinstance(block, (IfCondition, WhileLoop)):
            # Conditions are literals, a true while loop body runs once
            if block.condition:
                self._execute_sequence(block.children, run)
            return

        self._count_step(run)
        logger.debug(f"Block {block.id}: {block.kind} {block.parameters()}")

        if isinstance(block, MoveTo):
            result = run.actuator.update_joints_degrees([(block.servo_id, block.angle)])
        elif isinstance(block, HomeRobot):
            result = run.actuator.home_robot()
        elif isinstance(block, OpenGripper):
            result = run.actuator.open_gripper()
        elif isinstance(block, CloseGripper):
            result = run.actuator.close_gripper()
        elif isinstance(block, WaitSeconds):
            self._sleep(run, block.seconds)
            return
        else:
            logger.warning(f"Skipping unsupported block '{block.kind}' ({block.id})")
            return

        self._handle(block, result)

    # ==================== Helpers ====================

    def _check(self, run: _Run):
        if run.token.cancelled:
            raise ExecutionAborted()
        if not run.simulate and not run.actuator.is_connected:
            raise ConnectionLost()

    def _sleep(self, run: _Run, seconds: float):
        if seconds <= 0:
            self._check(run)
            return
        if self._delay(seconds, run.token):
            raise ExecutionAborted()

    def _count_step(self, run: _Run):
        run.steps += 1
        if run.steps > self.max_steps:
            run.steps -= 1
            raise ExecutionLimitExceeded(
                f"Execution stopped after {self.max_steps} steps (safety limit)"
            )

    def _handle(self, block: Optional[Block], result: ActuatorResult):
        """Connection loss ends the run, anything else is logged"""
        label = f"{block.kind} ({block.id})" if block else "home"
        if result.skipped:
            logger.warning(f"⚠️ {label}: skipped servos {result.skipped}")
        if result.ok:
            return
        if result.connection_lost:
            if isinstance(result.error, ConnectionLost):
                raise result.error
            raise ConnectionLost(str(result.error) if result.error else None)
        logger.warning(f"⚠️ {label}: {result.error}")
