import pytest

from core.alarms import AlarmSeverity
from core.antenna_tracking import LockState, TrackingSnapshot
from core.errors import OutOfRangeError, UnpoweredEquipmentError
from core.rf_models import RfSignal, SignalOrigin


def downlinks(scenario, exclude=()):
    return [s for sat in scenario.satellites if sat.satellite_id not in exclude
            for s in sat.downlink_signals()]


def messages(tracker):
    return [a.message for a in tracker.get_status_alarms()]


@pytest.fixture
def powered(tracker):
    tracker.set_power(True)
    return tracker


def test_controls_rejected_while_unpowered(tracker):
    with pytest.raises(UnpoweredEquipmentError):
        tracker.set_pointing(10.0, 10.0)
    with pytest.raises(UnpoweredEquipmentError):
        tracker.toggle_auto_track()
    assert tracker.get_status_alarms()[0].severity is AlarmSeverity.OFF


def test_pointing_limits(powered):
    with pytest.raises(OutOfRangeError):
        powered.set_pointing(10.0, 95.0)
    with pytest.raises(OutOfRangeError):
        powered.set_skew(120.0)

    powered.set_pointing(370.0, 45.0)
    assert powered.antenna.azimuth_deg == pytest.approx(10.0)


def test_acquisition_times_out_to_failed(powered, scenario):
    powered.set_pointing(203.5, 38.2)
    assert powered.toggle_auto_track() is LockState.ACQUIRING

    # Nothing arrives from the south-west
    candidates = downlinks(scenario, exclude=("SAT-3",))
    powered.update(1000.0, candidates)
    powered.update(1000.0, candidates)
    assert powered.lock_state is LockState.ACQUIRING

    powered.update(1000.0, candidates)
    assert powered.lock_state is LockState.FAILED
    assert not powered.is_auto_track
    assert "AUTO TRACK FAILED" in messages(powered)


def test_failed_retries_when_auto_track_enabled_again(powered):
    powered.toggle_auto_track()
    powered.update(5000.0, [])
    assert powered.lock_state is LockState.FAILED

    assert powered.toggle_auto_track() is LockState.ACQUIRING
    assert powered.snapshot().acquisition_elapsed_ms == 0.0


def test_locks_on_strongest_signal_in_view(powered, scenario):
    powered.set_pointing(247.0, 78.0)
    powered.toggle_auto_track()
    state = powered.update(100.0, downlinks(scenario))

    assert state is LockState.LOCKED
    assert powered.locked_signal_id == "1"
    assert powered.antenna.azimuth_deg == pytest.approx(247.3)
    assert powered.antenna.elevation_deg == pytest.approx(78.2)
    assert messages(powered) == ["LOCKED ON SATELLITE"]


def test_weak_signal_does_not_qualify(powered):
    weak = RfSignal("W", 3.7e9, 1e6, -120.0, azimuth_deg=0.0, elevation_deg=0.0)
    powered.toggle_auto_track()
    assert powered.update(100.0, [weak]) is LockState.ACQUIRING


def test_manual_edit_breaks_lock_synchronously(powered, scenario):
    powered.set_pointing(247.3, 78.2)
    powered.toggle_auto_track()
    powered.update(100.0, downlinks(scenario))
    assert powered.lock_state is LockState.LOCKED

    powered.set_pointing(250.0, 78.2)
    assert powered.lock_state is LockState.MANUAL
    assert not powered.is_auto_track
    assert powered.locked_signal_id is None


def test_unchanged_pointing_keeps_lock(powered, scenario):
    powered.set_pointing(247.3, 78.2)
    powered.toggle_auto_track()
    powered.update(100.0, downlinks(scenario))

    powered.set_pointing(247.3, 78.2)
    assert powered.lock_state is LockState.LOCKED


def test_skew_edit_keeps_lock(powered, scenario):
    powered.set_pointing(247.3, 78.2)
    powered.toggle_auto_track()
    powered.update(100.0, downlinks(scenario))

    powered.set_skew(60.0)
    assert powered.lock_state is LockState.LOCKED
    assert "HIGH POLARIZATION" in messages(powered)


def test_lost_signal_returns_to_acquiring(powered, scenario):
    powered.set_pointing(247.3, 78.2)
    powered.toggle_auto_track()
    powered.update(100.0, downlinks(scenario))

    assert powered.update(100.0, []) is LockState.ACQUIRING
    assert powered.is_auto_track


def test_power_off_resets_tracking(powered, scenario):
    powered.set_pointing(247.3, 78.2)
    powered.toggle_auto_track()
    powered.update(100.0, downlinks(scenario))

    powered.set_power(False)
    assert powered.lock_state is LockState.MANUAL
    assert not powered.is_auto_track


def test_visibility_gate(powered, scenario):
    uplink = RfSignal("U", 5.9e9, 1e6, -20.0, origin=SignalOrigin.TRANSMITTER)
    signals = downlinks(scenario) + [uplink]

    powered.set_pointing(203.5, 38.2)
    assert [s.signal_id for s in powered.visible_signals(signals)] == ["4", "U"]

    powered.toggle_auto_track()
    assert [s.signal_id for s in powered.visible_signals(signals)] == ["U"]


def test_loopback_alarm_excludes_reception_status(powered):
    powered.toggle_loopback()
    assert messages(powered) == ["LOOPBACK ENABLED"]


def test_manual_status(powered):
    assert messages(powered) == ["Manual Tracking Enabled"]


def test_snapshot_round_trip(powered, scenario):
    powered.set_pointing(247.3, 78.2)
    powered.toggle_auto_track()
    powered.update(100.0, downlinks(scenario))

    snap = powered.snapshot()
    assert TrackingSnapshot.from_dict(snap.to_dict()) == snap
    assert snap.path_loss_db > 190.0
