"""Tests for ServiceConnection, pubsub sinks, and subscription bookkeeping."""

from unittest.mock import Mock

import pytest
from pubsub import pub

from tunnelstate.reconciler import (
    COMMAND_CONNECT,
    COMMAND_DISCONNECT,
    COMMAND_RECONNECT,
    SERVICE_LOST_TOPIC,
    SERVICE_STATUS_TOPIC,
    STATUS_CHANGED_TOPIC,
    CommandError,
    PubSubStatusSink,
    ServiceConnection,
    StatusTag,
    SubscriptionManager,
    TunnelStatus,
)


@pytest.fixture
def sender():
    return Mock()


@pytest.fixture
def connection(reconciler, sender):
    """Logged-in ServiceConnection around a settled reconciler."""
    conn = ServiceConnection(reconciler, sender, logged_in=True)
    yield conn
    conn.close()


class TestServiceNotifications:
    """Raw notifications published by the service transport."""

    def test_published_notification_reaches_reconciler(self, connection, sink):
        pub.sendMessage(SERVICE_STATUS_TOPIC, notification={"state": "connected"})

        assert connection.status == TunnelStatus.connected()
        assert sink.statuses == [TunnelStatus.connected()]

    def test_status_objects_are_accepted(self, connection, sink):
        assert connection.handle_notification(TunnelStatus.error("no route"))
        assert sink.last == TunnelStatus.error("no route")

    def test_undecodable_notification_is_dropped(self, connection, sink, caplog):
        with caplog.at_level("WARNING", logger="tunnelstate"):
            handled = connection.handle_notification({"state": "teleporting"})

        assert handled is False
        assert sink.statuses == []
        assert "Dropping undecodable status notification" in caplog.text

    def test_service_lost_resets_fallback(self, connection, reconciler, clock, caplog):
        connection.connect()
        assert reconciler.fallback is not None

        with caplog.at_level("INFO", logger="tunnelstate"):
            pub.sendMessage(SERVICE_LOST_TOPIC)

        assert not connection.service_reachable
        assert reconciler.fallback is None
        assert not reconciler.has_pending_fallback
        assert "Lost connection to tunnel service" in caplog.text

        clock.advance(5000)
        assert connection.status == TunnelStatus.connecting()

    def test_notification_marks_service_reachable(self, connection):
        connection.on_service_lost()
        connection.handle_notification({"state": "disconnected"})
        assert connection.service_reachable


class TestUserActions:
    def test_connect_sends_command_and_shows_connecting(self, connection, sender, sink):
        assert connection.connect() is True

        sender.assert_called_once_with(COMMAND_CONNECT)
        assert sink.tags == [StatusTag.CONNECTING]

    def test_connect_requires_login(self, reconciler, sender, sink):
        conn = ServiceConnection(reconciler, sender)
        try:
            assert conn.connect() is False
            sender.assert_not_called()
            assert sink.statuses == []

            conn.set_logged_in(True)
            assert conn.connect() is True
        finally:
            conn.close()

    def test_connect_not_allowed_without_service(self, connection, sender):
        connection.on_service_lost()
        assert connection.connect() is False
        sender.assert_not_called()

    def test_disconnect_from_connected(self, connection, sender, sink):
        connection.handle_notification({"state": "connected"})

        assert connection.disconnect() is True
        sender.assert_called_once_with(COMMAND_DISCONNECT)
        assert sink.last == TunnelStatus.disconnecting()

    def test_disconnect_not_allowed_when_disconnected(self, connection, sender):
        assert connection.disconnect() is False
        sender.assert_not_called()

    def test_reconnect_from_connected(self, connection, reconciler, sender, sink):
        connection.handle_notification({"state": "connected"})

        assert connection.reconnect() is True
        sender.assert_called_once_with(COMMAND_RECONNECT)
        assert sink.last == TunnelStatus.connecting()
        assert reconciler.fallback == TunnelStatus.connected()

    def test_reconnect_not_allowed_when_disconnected(self, connection, sender):
        assert connection.reconnect() is False
        sender.assert_not_called()

    def test_failed_command_raises_and_reverts_at_timeout(self, connection, reconciler, sender, clock):
        sender.side_effect = ConnectionError("socket closed")

        with pytest.raises(CommandError) as excinfo:
            connection.connect()

        assert excinfo.value.command == COMMAND_CONNECT
        assert isinstance(excinfo.value.__cause__, ConnectionError)
        assert "socket closed" in str(excinfo.value)
        assert reconciler.has_pending_fallback

        clock.advance(3000)
        assert connection.status == TunnelStatus.disconnected()


class TestClose:
    def test_close_unsubscribes_and_closes_reconciler(self, reconciler, sender, sink):
        conn = ServiceConnection(reconciler, sender, logged_in=True)
        conn.close()

        pub.sendMessage(SERVICE_STATUS_TOPIC, notification={"state": "connected"})

        assert sink.statuses == []
        assert reconciler.closed
        assert len(conn._subscriptions) == 0

    def test_context_manager(self, reconciler, sender):
        with ServiceConnection(reconciler, sender) as conn:
            assert len(conn._subscriptions) == 2
        assert reconciler.closed


class TestPubSubStatusSink:
    def test_commits_are_published(self, make_reconciler, clock):
        received = []

        def listener(status):
            received.append(status)

        pub.subscribe(listener, STATUS_CHANGED_TOPIC)
        reconciler = make_reconciler(sink=PubSubStatusSink())
        clock.advance(200)

        reconciler.expect_next_status("connecting")
        reconciler.handle_new_status(TunnelStatus.connected())
        clock.advance(3000)

        assert received == [TunnelStatus.connecting(), TunnelStatus.connected()]

    def test_custom_topic(self):
        received = []

        def listener(status):
            received.append(status)

        pub.subscribe(listener, "tunnelstate.test.custom")
        PubSubStatusSink("tunnelstate.test.custom").on_status_changed(
            TunnelStatus.disconnected()
        )
        assert received == [TunnelStatus.disconnected()]


class TestSubscriptionManager:
    def test_tracks_and_removes_listeners(self):
        manager = SubscriptionManager()
        received = []

        def listener(status):
            received.append(status)

        token = manager.subscribe("tunnelstate.test.manager", listener)
        assert token == 0
        assert len(manager) == 1

        pub.sendMessage("tunnelstate.test.manager", status=1)
        manager.unsubscribe_all()
        pub.sendMessage("tunnelstate.test.manager", status=2)

        assert received == [1]
        assert len(manager) == 0

    def test_tokens_are_unique(self):
        manager = SubscriptionManager()
        tokens = {
            manager.subscribe("tunnelstate.test.tokens", lambda status: None)
            for _ in range(3)
        }
        assert len(tokens) == 3
        manager.unsubscribe_all()

    def test_two_listeners_on_one_topic_are_both_removed(self):
        manager = SubscriptionManager()
        received = []

        def first(status):
            received.append(("first", status))

        def second(status):
            received.append(("second", status))

        manager.subscribe("tunnelstate.test.shared", first)
        manager.subscribe("tunnelstate.test.shared", second)
        assert len(manager) == 2

        pub.sendMessage("tunnelstate.test.shared", status=1)
        manager.unsubscribe_all()
        pub.sendMessage("tunnelstate.test.shared", status=2)

        assert sorted(received) == [("first", 1), ("second", 1)]
