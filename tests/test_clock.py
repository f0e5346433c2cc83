from datetime import datetime, timedelta

import pytest

from signage.errors import NotFoundError, ValidationFailed
from signage.models.screen import Screen
from signage.models.venue import Space, Venue
from signage.services.clock import ClockService, validate_speed
from signage.services.realtime import NotificationBus, screen_channel
from signage.timeutil import utcnow

T0 = datetime(2024, 1, 3, 12, 0, 0)


@pytest.fixture
def clocks():
    return ClockService(NotificationBus())


def make_screen(db, name="Wall 1") -> Screen:
    venue = Venue(name="Venue")
    db.add(venue)
    db.commit()
    space = Space(venue_id=venue.id, name="Space")
    db.add(space)
    db.commit()
    screen = Screen(space_id=space.id, name=name)
    db.add(screen)
    db.commit()
    return screen


@pytest.mark.parametrize("speed", [0.1, 0, -1, 10.01, "fast", None, float("nan")])
def test_speed_outside_range_is_rejected(speed):
    with pytest.raises(ValidationFailed) as excinfo:
        validate_speed(speed)
    assert "speed" in excinfo.value.errors


@pytest.mark.parametrize("speed", [0.11, 1, 10])
def test_speed_inside_range_is_accepted(speed):
    assert validate_speed(speed) == float(speed)


def test_new_clock_is_running(db, clocks):
    timecode = clocks.create(db, "  Lobby  ", 1.5)
    assert timecode.name == "Lobby"
    assert timecode.is_running
    assert timecode.speed == 1.5


def test_create_rejects_blank_name(db, clocks):
    with pytest.raises(ValidationFailed):
        clocks.create(db, "   ")


def test_elapsed_time_scales_with_speed(db, clocks):
    timecode = clocks.create(db, "Double", 2)
    clocks.start(db, timecode.id, now=T0)
    status = clocks.status(db, timecode.id, now=T0 + timedelta(seconds=10))
    assert status["isRunning"] is True
    assert status["elapsedMs"] == pytest.approx(20000)


def test_stopped_clock_reads_zero(db, clocks):
    timecode = clocks.create(db, "Paused")
    clocks.start(db, timecode.id, now=T0)
    clocks.stop(db, timecode.id)
    status = clocks.status(db, timecode.id, now=T0 + timedelta(seconds=30))
    assert status["isRunning"] is False
    assert status["elapsedMs"] == 0


def test_restart_resets_the_epoch(db, clocks):
    timecode = clocks.create(db, "Loop")
    clocks.start(db, timecode.id, now=T0)
    clocks.start(db, timecode.id, now=T0 + timedelta(minutes=5))
    status = clocks.status(db, timecode.id, now=T0 + timedelta(minutes=5, seconds=1))
    assert status["elapsedMs"] == pytest.approx(1000)


def test_start_and_stop_notify_bound_screens(db):
    bus = NotificationBus()
    clocks = ClockService(bus)
    screen = make_screen(db)
    timecode = clocks.create(db, "Wall")
    clocks.assign(db, screen.id, timecode.id)

    received = []
    bus.subscribe(screen_channel(screen.id), received.append)
    clocks.start(db, timecode.id, now=T0)
    clocks.stop(db, timecode.id)
    clocks.update(db, timecode.id, speed=3)

    assert [event["type"] for event in received] == ["timecode:started", "timecode:stopped", "timecode:updated"]
    assert received[0]["startedAt"] == T0
    assert received[2]["speed"] == 3.0


def test_assign_and_unassign(db, clocks):
    screen = make_screen(db)
    timecode = clocks.create(db, "Wall")
    assert clocks.assign(db, screen.id, timecode.id).timecode_id == timecode.id
    assert clocks.assign(db, screen.id, "").timecode_id is None


def test_assign_unknown_clock_fails(db, clocks):
    screen = make_screen(db)
    with pytest.raises(NotFoundError):
        clocks.assign(db, screen.id, "missing")


def test_delete_unbinds_screens(db):
    bus = NotificationBus()
    clocks = ClockService(bus)
    screen = make_screen(db)
    timecode = clocks.create(db, "Wall")
    clocks.assign(db, screen.id, timecode.id)
    received = []
    bus.subscribe(screen_channel(screen.id), received.append)

    clocks.delete(db, timecode.id)

    db.expire_all()
    assert db.get(Screen, screen.id).timecode_id is None
    assert received == [{"type": "timecode:assigned", "timecodeId": None}]
    with pytest.raises(NotFoundError):
        clocks.status(db, timecode.id)


def test_elapsed_against_wall_clock(db, clocks):
    timecode = clocks.create(db, "Live", 2.0)
    clocks.start(db, timecode.id, now=utcnow() - timedelta(milliseconds=10000))
    assert clocks.status(db, timecode.id)["elapsedMs"] == pytest.approx(20000, abs=500)


def test_unknown_ids_do_not_leave_locks_behind(db, clocks):
    for i in range(50):
        for action in (clocks.start, clocks.stop, clocks.delete):
            with pytest.raises(NotFoundError):
                action(db, f"ghost-{i}")
        with pytest.raises(NotFoundError):
            clocks.update(db, f"ghost-{i}", speed=2)
    assert clocks._locks == {}

    timecode = clocks.create(db, "Real")
    clocks.stop(db, timecode.id)
    assert list(clocks._locks) == [timecode.id]
