from datetime import datetime, timedelta

from signage.services.health import ONLINE_THRESHOLD_SEC, is_online

NOW = datetime(2024, 1, 3, 12, 0, 0)


def test_recent_heartbeat_is_online():
    assert is_online(NOW - timedelta(seconds=5), NOW)


def test_threshold_boundary_is_offline():
    assert is_online(NOW - timedelta(milliseconds=ONLINE_THRESHOLD_SEC * 1000 - 1), NOW)
    assert not is_online(NOW - timedelta(milliseconds=ONLINE_THRESHOLD_SEC * 1000), NOW)


def test_missing_heartbeat_is_offline():
    assert not is_online(None, NOW)
