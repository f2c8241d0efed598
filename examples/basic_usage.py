#!/usr/bin/env python3
"""
Basic usage example for BlockArm
Shows how to use the library programmatically
"""

import logging
from pathlib import Path

from blockarm import BlockExecutor, JointStateSynchronizer, load_program_file
from blockarm.config import get_robot_profile
from blockarm.hardware import SerialTransport, get_default_port


def main():
    logging.basicConfig(level=logging.INFO)

    # Create synchronizer
    port = get_default_port()
    print(f"Using port: {port}")

    profile = get_robot_profile("so-arm101")
    synchronizer = JointStateSynchronizer.from_profile(profile, SerialTransport(port))

    # Connect
    if not synchronizer.connect().ok:
        print("Failed to connect!")
        return

    print("Connected successfully!")

    try:
        # 1. Direct joint control
        print("\n1. Moving base and shoulder together...")
        result = synchronizer.update_joints_degrees([(1, 150.0), (2, 120.0)])
        print(f"   Result: {result.status.value}")

        # 2. Current position
        print("\n2. Current position:")
        for state in synchronizer.joint_states:
            print(f"   {state.name}: {state.degrees:.1f}°")

        # 3. Run a block program
        print("\n3. Running pick_and_place.json...")
        program = load_program_file(Path(__file__).parent / "pick_and_place.json")
        outcome = BlockExecutor().run(program, synchronizer)
        print(f"   Outcome: {outcome.state.value} after {outcome.steps} steps")

        # 4. Return home
        print("\n4. Returning to home...")
        synchronizer.home_robot()

    except KeyboardInterrupt:
        print("\nInterrupted!")
        synchronizer.emergency_stop()
    finally:
        # Safe shutdown
        synchronizer.shutdown()
        print("\nDisconnected.")


if __name__ == "__main__":
    main()
