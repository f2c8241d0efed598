#!/usr/bin/env python3
"""
BlockArm - Main Entry Point
Runs a block program on the arm or on its virtual twin
"""

import sys
import time
import argparse
import logging
import threading
from typing import Optional

from blockarm import __version__
from blockarm.blocks import (BlockExecutor, CancellationToken, RunResult,
                             create_default_registry, generate_code, load_program_file)
from blockarm.config import Settings, get_robot_profile, load_robot_profile
from blockarm.control import JointStateSynchronizer
from blockarm.errors import BlockArmError, ValidationError
from blockarm.hardware import (SerialTransport, SimulatedTransport,
                               get_default_port, list_available_ports)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_ABORTED = 130


def setup_logging(level: str = "INFO"):
    """Configure logging system"""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    # Console handler
    console_handler = logging.StreamHandler()
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(console_handler)

    # Reduce noise from pyserial
    logging.getLogger('serial').setLevel(logging.WARNING)


def list_ports_command():
    """List available serial ports"""
    print("📋 Available Serial Ports:")
    print("-" * 50)

    ports = list_available_ports()

    if not ports:
        print("❌ No serial ports found!")
        print("\nPossible issues:")
        print("  - No USB devices connected")
        print("  - Missing USB drivers")
        print("  - Permission issues")
        return

    for port in ports:
        print(f"\n📍 {port['device']}")
        print(f"   Description: {port['description']}")
        print(f"   Hardware ID: {port['hwid']}")
        if port['is_usb']:
            print("   ✅ USB Device")


def list_blocks_command():
    """Print the block palette"""
    registry = create_default_registry()
    for category in registry.all_categories():
        print(f"\n{category.icon or ''} {category.name}")
        print("-" * 50)
        for block in registry.get_blocks_by_category(category.id):
            params = ", ".join(
                f"{p.name}={p.default_value}" for p in block.parameters
            )
            print(f"  {block.id:<15} {block.name:<15} {params}")


def print_joint_states(synchronizer: JointStateSynchronizer):
    print("\n📊 Joint states:")
    for state in synchronizer.joint_states:
        print(f"  {state.servo_id}: {state.name:<12} {state.degrees:7.1f}°")


def wait_for_motion(synchronizer: JointStateSynchronizer, timeout: float = 5.0):
    """Let the virtual animation settle"""
    deadline = time.monotonic() + timeout
    while synchronizer.scheduler.running and time.monotonic() < deadline:
        time.sleep(0.05)


def run_program(executor: BlockExecutor, program, synchronizer: JointStateSynchronizer,
                simulate: bool) -> RunResult:
    """
    Run on a worker thread so Ctrl+C can cancel the run

    A cancelled run on real hardware ends with an emergency stop.
    """
    token = CancellationToken()
    outcome = {}

    def worker():
        outcome["result"] = executor.run(program, synchronizer, token, simulate=simulate)

    thread = threading.Thread(target=worker, name="executor", daemon=True)
    thread.start()

    try:
        while thread.is_alive():
            thread.join(0.1)
    except KeyboardInterrupt:
        print("\n\n🛑 Interrupted by user")
        token.cancel()
        thread.join()
        if synchronizer.is_connected:
            synchronizer.emergency_stop()

    return outcome.get("result")


def main(argv: Optional[list] = None):
    """Main entry point"""
    parser = argparse.ArgumentParser(
        description=f'BlockArm v{__version__} - Block programs for servo arms',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  blockarm program.json                # Run on the auto-detected port
  blockarm --port COM3 program.json    # Use specific port
  blockarm --simulate program.json     # Run on the virtual twin
  blockarm --show-code program.json    # Print the generated code
  blockarm --list-ports                # Show available ports
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'BlockArm v{__version__}'
    )

    parser.add_argument(
        'program',
        nargs='?',
        help='Program file (.json or .yaml)'
    )

    parser.add_argument(
        '--port', '-p',
        default=None,
        help='Serial port (auto-detect if not specified)'
    )

    parser.add_argument(
        '--simulate', '-s',
        action='store_true',
        help='Run on the virtual twin without hardware'
    )

    robot = parser.add_mutually_exclusive_group()
    robot.add_argument(
        '--robot',
        default=None,
        help='Built-in robot profile (default: so-arm101)'
    )
    robot.add_argument(
        '--robot-file',
        default=None,
        help='Robot profile YAML file'
    )

    parser.add_argument(
        '--settings',
        default=None,
        help='Settings file (default: ~/.blockarm/settings.yaml)'
    )

    parser.add_argument(
        '--list-ports', '-l',
        action='store_true',
        help='List available serial ports and exit'
    )

    parser.add_argument(
        '--list-blocks',
        action='store_true',
        help='List available blocks and exit'
    )

    parser.add_argument(
        '--show-code',
        action='store_true',
        help='Print the generated code of the program and exit'
    )

    parser.add_argument(
        '--debug', '-d',
        action='store_true',
        help='Enable debug logging'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Set logging level (default: from settings, INFO)'
    )

    args = parser.parse_args(argv)
    settings = Settings.load(args.settings)

    # Setup logging
    if args.debug:
        args.log_level = 'DEBUG'
    setup_logging(args.log_level or settings.log_level)

    # Handle list commands
    if args.list_ports:
        list_ports_command()
        return EXIT_OK

    if args.list_blocks:
        list_blocks_command()
        return EXIT_OK

    if not args.program:
        parser.error("a program file is required")

    registry = create_default_registry()
    try:
        program = load_program_file(args.program, registry)
    except ValidationError as e:
        logger.error(f"❌ Invalid program: {e}")
        return EXIT_FAILED
    except OSError as e:
        logger.error(f"❌ Cannot read {args.program}: {e}")
        return EXIT_FAILED

    if args.show_code:
        print(generate_code(program, registry))
        return EXIT_OK

    try:
        if args.robot_file:
            profile = load_robot_profile(args.robot_file)
        else:
            profile = get_robot_profile(args.robot or settings.robot)

        simulate = args.simulate or settings.simulate
        if simulate:
            transport = SimulatedTransport()
        else:
            port = args.port or settings.port or get_default_port()
            logger.info(f"Using port {port}")
            transport = SerialTransport(port, baudrate=settings.baudrate)

        synchronizer = JointStateSynchronizer.from_profile(profile, transport)
    except (KeyError, TypeError, ValueError, OSError) as e:
        logger.error(f"❌ Robot profile: {e}")
        return EXIT_FAILED

    executor = BlockExecutor.from_settings(settings)

    try:
        if not simulate:
            result = synchronizer.connect()
            if not result.ok:
                logger.error(f"❌ {result.error}")
                return EXIT_FAILED

        result = run_program(executor, program, synchronizer, simulate)

        if simulate:
            wait_for_motion(synchronizer)
        print_joint_states(synchronizer)

    except BlockArmError as e:
        logger.error(f"Fatal error: {e}")
        return EXIT_FAILED
    finally:
        synchronizer.shutdown()

    if result is None:
        return EXIT_FAILED
    if result.completed:
        return EXIT_OK
    if result.aborted:
        return EXIT_ABORTED
    return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
