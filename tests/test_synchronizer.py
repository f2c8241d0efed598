import numpy as np
import pytest

from blockarm.control import (ActuatorStatus, JointConfig, JointKind, JointLimit,
                              JointRegistry, JointStateSynchronizer)
from blockarm.errors import (ActuatorWriteError, ConnectionLost, EmergencyStopNoop,
                             HomeRefused)
from blockarm.hardware import SimulatedTransport


def degrees_of(sync):
    return {state.servo_id: state.degrees for state in sync.joint_states}


# ==================== Connection ====================

def test_connect_reads_origin(synchronizer, transport):
    transport.servos[2].position = 1024  # 90 degrees

    result = synchronizer.connect()

    assert result.ok
    assert synchronizer.is_connected
    state = synchronizer.get_joint_state(2)
    assert state.degrees == pytest.approx(90.0)
    assert state.target_degrees == pytest.approx(90.0)
    assert state.connected_origin == pytest.approx(90.0)
    assert transport.servos[2].torque_enabled


def test_connect_failure_stays_disconnected(synchronizer, transport):
    transport.fail_open = True

    result = synchronizer.connect()

    assert result.status is ActuatorStatus.CONNECTION_LOST
    assert isinstance(result.error, ConnectionLost)
    assert not synchronizer.is_connected


def test_connect_defaults_failed_joint(synchronizer, transport):
    """A joint that does not answer starts at 0 without failing connect"""
    transport.failing_servos.add(4)

    assert synchronizer.connect().ok

    state = synchronizer.get_joint_state(4)
    assert state.degrees == 0.0
    assert state.connected_origin == 0.0
    assert synchronizer.get_joint_state(3).degrees == pytest.approx(180.0)


def test_disconnect_releases_torque(connected, transport):
    result = connected.disconnect()

    assert result.ok
    assert not connected.is_connected
    assert not any(servo.torque_enabled for servo in transport.servos.values())
    assert transport.history[-1] == ("close",)


def test_disconnect_continues_past_failures(connected, transport):
    transport.failing_servos.update({1, 2})

    assert connected.disconnect().ok
    assert transport.history[-1] == ("close",)
    assert not transport.servos[3].torque_enabled


# ==================== Moves ====================

def test_single_move_uses_one_write_and_snaps(connected, transport):
    result = connected.update_degrees(1, 90.0)

    assert result.ok
    assert transport.calls("write_position") == [("write_position", 1, 1024)]
    assert transport.calls("sync_write_positions") == []
    state = connected.get_joint_state(1)
    assert state.degrees == pytest.approx(90.0)
    assert not state.is_moving


def test_batch_move_uses_sync_write(connected, transport):
    result = connected.update_joints_degrees([(1, 90.0), (2, 270.0)])

    assert result.ok
    assert transport.calls("sync_write_positions") == [
        ("sync_write_positions", {1: 1024, 2: 3072})
    ]
    assert transport.calls("write_position") == []


def test_partial_batch_skips_out_of_range(connected, transport):
    """[(1, 400), (2, 90)]: 400 skipped, 90 applied"""
    result = connected.update_joints_degrees([(1, 400.0), (2, 90.0)])

    assert result.ok
    assert result.skipped == [1]
    assert transport.calls("write_position") == [("write_position", 2, 1024)]
    assert connected.get_joint_state(1).degrees == pytest.approx(180.0)
    assert connected.get_joint_state(2).degrees == pytest.approx(90.0)


def test_read_back_replaces_requested_angle(connected, transport):
    transport.tracking_error = 10

    connected.update_degrees(1, 90.0)

    state = connected.get_joint_state(1)
    assert state.degrees == pytest.approx(1034 * 360 / 4096)
    assert state.target_degrees == state.degrees
    assert not state.is_moving


def test_write_error_is_returned(connected, transport):
    transport.failing_servos.add(3)

    result = connected.update_degrees(3, 100.0)

    assert result.status is ActuatorStatus.WRITE_ERROR
    assert isinstance(result.error, ActuatorWriteError)
    assert result.error.servo_id == 3
    state = connected.get_joint_state(3)
    assert state.degrees == pytest.approx(180.0)
    assert not state.is_moving


def test_connection_loss_during_write(connected, transport):
    transport.disconnect_after = 0

    result = connected.update_degrees(1, 90.0)

    assert result.connection_lost
    assert isinstance(result.error, ConnectionLost)
    assert not connected.is_connected


def test_connection_loss_during_read_back(connected, transport):
    transport.disconnect_after = 1  # Sync write goes through, read back fails

    result = connected.update_joints_degrees([(1, 90.0), (2, 90.0)])

    assert result.connection_lost
    assert not connected.is_connected


def test_unknown_and_limited_joints_are_skipped(transport):
    registry = JointRegistry([
        JointConfig("arm", 1, limit=JointLimit(lower=90, upper=270)),
        JointConfig("wheel", 7, joint_type=JointKind.CONTINUOUS),
    ])
    sync = JointStateSynchronizer(registry, transport, animate=False)

    result = sync.update_joints_degrees([(1, 45.0), (7, 90.0), (9, 90.0), (1, 100.0)])

    assert result.skipped == [1, 7, 9]
    assert sync.get_joint_state(1).target_degrees == 100.0


def test_boundaries_are_inclusive(synchronizer):
    result = synchronizer.update_joints_degrees([(1, 0.0), (2, 360.0)])

    assert result.ok
    assert result.skipped == []


# ==================== Virtual motion ====================

def test_disconnected_move_animates(synchronizer, transport):
    """At most 2 degrees per tick, then a snap onto the target"""
    start = synchronizer.get_joint_state(1).degrees
    result = synchronizer.update_degrees(1, start + 9.0)

    assert result.ok
    assert transport.history == []
    assert synchronizer.get_joint_state(1).is_moving

    previous = start
    positions = []
    while synchronizer.scheduler.tick():
        current = synchronizer.get_joint_state(1).degrees
        assert abs(current - previous) <= 2.0 + 1e-9
        positions.append(current)
        previous = current

    state = synchronizer.get_joint_state(1)
    assert state.degrees == start + 9.0
    assert not state.is_moving
    np.testing.assert_allclose(positions, start + np.array([2.0, 4.0, 6.0, 8.0, 9.0]))


def test_batch_animates_together(synchronizer):
    synchronizer.update_joints_degrees([(1, 170.0), (2, 190.0)])

    synchronizer.scheduler.tick()

    degrees = degrees_of(synchronizer)
    assert degrees[1] == pytest.approx(178.0)
    assert degrees[2] == pytest.approx(92.0)  # Pitch starts at 90


def test_small_delta_snaps(synchronizer):
    synchronizer.update_degrees(1, 180.05)

    assert synchronizer.scheduler.tick() is False
    assert synchronizer.get_joint_state(1).degrees == 180.05


def test_background_scheduler_stops_when_idle(transport):
    from blockarm.config.robots import SO_ARM101
    sync = JointStateSynchronizer.from_profile(SO_ARM101, transport, tick_hz=1000)

    sync.update_degrees(1, 170.0)

    thread = sync.scheduler._thread
    if thread is not None:
        thread.join(2.0)

    assert not sync.scheduler.running
    assert sync.get_joint_state(1).degrees == 170.0


# ==================== Home / gripper / speed ====================

def test_home_requires_connection(synchronizer, transport):
    before = degrees_of(synchronizer)

    result = synchronizer.home_robot()

    assert result.status is ActuatorStatus.REFUSED
    assert isinstance(result.error, HomeRefused)
    assert degrees_of(synchronizer) == before
    assert transport.history == []


def test_home_moves_each_joint_in_turn(connected, transport):
    result = connected.home_robot()

    assert result.ok
    writes = transport.calls("write_position")
    assert [w[1] for w in writes] == [1, 2, 3, 4, 5, 6]
    assert writes[1] == ("write_position", 2, 1024)   # Pitch home 90
    assert writes[2] == ("write_position", 3, 4096)   # Elbow home 360
    assert transport.calls("sync_write_positions") == []


def test_gripper_open_close(connected, transport):
    assert connected.open_gripper().ok
    assert connected.get_joint_state(6).degrees == pytest.approx(270.0)

    assert connected.close_gripper().ok
    assert connected.get_joint_state(6).degrees == pytest.approx(180.0)


def test_speed_updates_continuous_joints(transport):
    registry = JointRegistry([
        JointConfig("arm", 1),
        JointConfig("left", 7, joint_type=JointKind.CONTINUOUS),
        JointConfig("right", 8, joint_type=JointKind.CONTINUOUS),
    ])
    transport.add_servo(7)
    transport.add_servo(8)
    sync = JointStateSynchronizer(registry, transport, animate=False)
    sync.connect()

    result = sync.update_joints_speed([(7, 500), (8, -500), (1, 100)])

    assert result.skipped == [1]
    assert transport.calls("sync_write_wheel_speeds") == [
        ("sync_write_wheel_speeds", {7: 500, 8: -500})
    ]
    assert sync.get_joint_state(8).speed == -500
    assert sync.get_joint_state(7).degrees == 0.0


def test_speed_write_failure_resets_speed(transport):
    registry = JointRegistry([JointConfig("wheel", 7, joint_type=JointKind.CONTINUOUS)])
    transport.add_servo(7)
    sync = JointStateSynchronizer(registry, transport, animate=False)
    sync.connect()
    transport.failing_servos.add(7)

    result = sync.update_speed(7, 300)

    assert result.status is ActuatorStatus.WRITE_ERROR
    assert sync.get_joint_state(7).speed == 0


# ==================== Emergency stop ====================

def test_emergency_stop_requires_connection(synchronizer, transport):
    result = synchronizer.emergency_stop()

    assert result.status is ActuatorStatus.REFUSED
    assert isinstance(result.error, EmergencyStopNoop)
    assert transport.history == []


def test_emergency_stop_resets_to_origin(connected, transport):
    connected.update_degrees(1, 90.0)

    result = connected.emergency_stop()

    assert result.ok
    state = connected.get_joint_state(1)
    assert state.degrees == pytest.approx(180.0)
    assert state.target_degrees == pytest.approx(180.0)
    assert not state.is_moving
    assert not any(servo.torque_enabled for servo in transport.servos.values())


def test_emergency_stop_succeeds_when_every_write_fails(connected, transport):
    connected.update_joints_degrees([(1, 100.0), (2, 100.0)])
    transport.failing_servos.update(range(1, 7))

    result = connected.emergency_stop()

    assert result.ok
    for state in connected.joint_states:
        assert state.degrees == state.connected_origin
        assert not state.is_moving
        assert state.speed == 0


# ==================== Read model ====================

def test_joint_states_are_copies(connected):
    states = connected.joint_states
    states[0].degrees = -1.0

    assert connected.get_joint_state(states[0].servo_id).degrees != -1.0


def test_snapshot_is_json_shaped(connected):
    snapshot = connected.snapshot()

    assert len(snapshot) == 6
    first = snapshot[0]
    assert first["servoId"] == 1
    assert first["jointType"] == "revolute"
    assert first["isMoving"] is False


def test_initial_positions(connected):
    assert connected.initial_positions == {sid: pytest.approx(180.0) for sid in range(1, 7)}


def test_registry_rejects_duplicates():
    with pytest.raises(ValueError):
        JointRegistry([JointConfig("a", 1), JointConfig("b", 1)])
    with pytest.raises(ValueError):
        JointRegistry([JointConfig("a", 1), JointConfig("a", 2)])
    with pytest.raises(ValueError):
        JointRegistry([JointConfig("a", 0)])


def test_new_synchronizer_starts_at_home_angles():
    from blockarm.config.robots import SO_ARM101
    sync = JointStateSynchronizer.from_profile(SO_ARM101, SimulatedTransport(), animate=False)

    assert sync.get_joint_state(2).degrees == 90.0
    assert sync.get_joint_state(3).degrees == 360.0


def test_registry_rejects_broadcast_id():
    with pytest.raises(ValueError, match="253"):
        JointRegistry([JointConfig("a", 0xFE)])
    assert JointRegistry([JointConfig("a", 253)]).get(253).name == "a"


def test_home_reports_out_of_range_home_angle(transport):
    registry = JointRegistry([
        JointConfig("arm", 1, limit=JointLimit(lower=90, upper=270)),
        JointConfig("wrist", 2),
    ])
    sync = JointStateSynchronizer(registry, transport, home_angles={"arm": 10.0, "wrist": 90.0},
                                  animate=False)
    sync.connect()

    result = sync.home_robot()

    assert result.ok
    assert result.skipped == [1]
    assert transport.calls("write_position") == [("write_position", 2, 1024)]
