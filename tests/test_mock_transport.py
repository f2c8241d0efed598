import pytest

from blockarm.errors import TransportDisconnected, TransportError
from blockarm.hardware import SimulatedTransport


def test_calls_before_open_are_refused():
    transport = SimulatedTransport([1])

    with pytest.raises(TransportDisconnected):
        transport.read_position(1)


def test_history_and_state():
    transport = SimulatedTransport([1, 2])
    transport.open()

    transport.write_torque_enable(1, True)
    transport.sync_write_positions({1: 100, 2: 200})

    assert transport.servos[1].torque_enabled
    assert transport.read_position(2) == 200
    assert transport.calls("sync_write_positions") == [("sync_write_positions", {1: 100, 2: 200})]
    assert [entry[0] for entry in transport.history] == [
        "write_torque_enable", "sync_write_positions", "read_position"
    ]


def test_failing_servo():
    transport = SimulatedTransport([1, 2])
    transport.open()
    transport.failing_servos.add(2)

    transport.write_position(1, 10)
    with pytest.raises(TransportError):
        transport.write_position(2, 10)
    with pytest.raises(TransportError):
        transport.sync_write_positions({1: 20, 2: 20})
    assert transport.servos[1].position == 10


def test_disconnect_after():
    transport = SimulatedTransport([1])
    transport.open()
    transport.disconnect_after = 2

    transport.read_position(1)
    transport.read_position(1)
    with pytest.raises(TransportDisconnected):
        transport.read_position(1)
    assert not transport.is_open


def test_fail_open():
    transport = SimulatedTransport()
    transport.fail_open = True

    with pytest.raises(TransportDisconnected):
        transport.open()
    assert not transport.is_open


def test_wheel_mode():
    transport = SimulatedTransport()
    transport.open()

    transport.set_wheel_mode(9)
    transport.write_wheel_speed(9, -300)

    assert transport.servos[9].wheel_mode
    assert transport.read_wheel_speed(9) == -300
