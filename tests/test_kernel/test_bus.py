"""
Tests for the notification bus and the controllable clock
"""

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel

from proposal_register.kernel.bus import ALL_NOTIFICATIONS, NotificationBus
from proposal_register.kernel.time import RealTimeProvider, TestTimeProvider


class Ping(BaseModel):
    n: int


def test_publish_reaches_kind_subscribers_in_order() -> None:
    """Test handlers for a kind run in registration order"""
    bus = NotificationBus()
    calls: list[str] = []
    bus.subscribe("Ping", lambda kind, n: calls.append(f"first:{n.n}"))
    bus.subscribe("Ping", lambda kind, n: calls.append(f"second:{n.n}"))

    bus.publish("Ping", Ping(n=1))

    assert calls == ["first:1", "second:1"]


def test_publish_skips_other_kinds() -> None:
    """Test a handler only sees the kind it subscribed to"""
    bus = NotificationBus()
    calls: list[str] = []
    bus.subscribe("Pong", lambda kind, n: calls.append(kind))

    bus.publish("Ping", Ping(n=1))

    assert calls == []


def test_wildcard_subscriber_sees_everything() -> None:
    """Test ALL_NOTIFICATIONS receives every kind after kind-specific handlers"""
    bus = NotificationBus()
    calls: list[str] = []
    bus.subscribe(ALL_NOTIFICATIONS, lambda kind, n: calls.append(f"*:{kind}"))
    bus.subscribe("Ping", lambda kind, n: calls.append(f"ping:{kind}"))

    bus.publish("Ping", Ping(n=1))
    bus.publish("Pong", Ping(n=2))

    assert calls == ["ping:Ping", "*:Ping", "*:Pong"]


def test_unsubscribe_stops_delivery() -> None:
    """Test the returned callable removes the subscription"""
    bus = NotificationBus()
    calls: list[int] = []
    unsubscribe = bus.subscribe("Ping", lambda kind, n: calls.append(n.n))

    bus.publish("Ping", Ping(n=1))
    unsubscribe()
    bus.publish("Ping", Ping(n=2))
    unsubscribe()  # second call is harmless

    assert calls == [1]
    assert bus.get_kinds() == []


def test_failing_handler_does_not_stop_others() -> None:
    """Test a raising subscriber is logged and skipped"""
    bus = NotificationBus()
    calls: list[int] = []

    def broken(kind: str, n: BaseModel) -> None:
        raise RuntimeError("subscriber bug")

    bus.subscribe("Ping", broken)
    bus.subscribe("Ping", lambda kind, n: calls.append(n.n))

    bus.publish("Ping", Ping(n=7))

    assert calls == [7]


def test_clear_removes_all_subscribers() -> None:
    bus = NotificationBus()
    bus.subscribe("Ping", lambda kind, n: None)
    bus.subscribe(ALL_NOTIFICATIONS, lambda kind, n: None)
    assert set(bus.get_kinds()) == {"Ping", ALL_NOTIFICATIONS}

    bus.clear()

    assert bus.get_kinds() == []


def test_test_time_provider_moves_only_when_told() -> None:
    """Test the controllable clock"""
    start = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)
    clock = TestTimeProvider(start)
    assert clock.now() == start

    clock.advance_seconds(30)
    assert clock.now() == start + timedelta(seconds=30)

    clock.advance(timedelta(microseconds=1))
    assert clock.now() == start + timedelta(seconds=30, microseconds=1)

    clock.set_time(start)
    assert clock.now() == start


def test_real_time_provider_is_utc() -> None:
    assert RealTimeProvider().now().tzinfo == timezone.utc
