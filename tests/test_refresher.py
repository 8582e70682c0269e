"""
Tests for refresh cycles driven through a mock transport
"""

import threading

import pytest

from pyodamex.config import LauncherConfig
from pyodamex.events import EventType
from pyodamex.serverlist.models import ServerAddress
from pyodamex.serverlist.refresher import (
    NO_SERVERS_ERROR,
    NO_VALID_SERVERS_ERROR,
    PlayerActivityTracker,
    ServerRefresher,
)
from pyodamex.serverlist.store import ServersStore
from pyodamex.testing import MockTransport, make_server

MASTER = ("master1.odamex.net", 15000)


@pytest.fixture
def transport():
    transport = MockTransport()
    transport.add_master(*MASTER, [("10.0.0.1", 10666), ("10.0.0.2", 10667), ("10.0.0.3", 10668)])
    transport.add_server(make_server("10.0.0.1", 10666, name="Alpha", players=2), ping=30)
    transport.add_server(make_server("10.0.0.2", 10667, name="Bravo"), ping=60)
    transport.add_server(make_server("10.0.0.3", 10668, name="Charlie", players=1), ping=90)
    return transport


@pytest.fixture
def store():
    return ServersStore()


@pytest.fixture
def refresher(transport, store):
    config = LauncherConfig(master_servers=["master1.odamex.net:15000"], max_concurrent_queries=2)
    return ServerRefresher(transport, store, config)


class TestRefreshCycle:
    """refresh_servers()"""

    def test_successful_refresh(self, refresher, store, transport):
        assert refresher.refresh_servers() is True

        assert [s.name for s in store.servers] == ["Alpha", "Bravo", "Charlie"]
        assert store.loading is False
        assert store.error is None
        assert store.last_updated is not None
        assert transport.master_queries == [ServerAddress(*MASTER)]

    def test_pings_are_applied(self, refresher, store):
        refresher.refresh_servers()
        assert [s.ping for s in store.servers] == [30, 60, 90]

    def test_loading_then_result(self, refresher, store):
        states = []
        store.subscribe(states.append)
        refresher.refresh_servers()

        assert states[0].loading is True
        assert states[-1].loading is False
        assert any(s.servers for s in states)

    def test_keeps_master_order_with_bounded_pool(self, refresher, store, transport):
        transport.add_master(*MASTER, [(f"10.0.1.{i}", 10666) for i in range(1, 8)])
        for i in range(1, 8):
            transport.add_server(make_server(f"10.0.1.{i}", 10666, name=f"S{i}"))

        refresher.refresh_servers()

        assert [s.name for s in store.servers] == [f"S{i}" for i in range(1, 8)]

    def test_unresponsive_servers_are_dropped(self, refresher, store, transport):
        transport.fail("10.0.0.2", 10667)
        transport.add_server(make_server("10.0.0.3", 10668, name="Charlie", responded=False))

        refresher.refresh_servers()

        assert [s.name for s in store.servers] == ["Alpha"]

    def test_invalid_master_entries_are_never_queried(self, refresher, store, transport):
        transport.add_master(*MASTER, [
            ("10.0.0.1", 10666), ("300.0.0.1", 10666), ("bad_host", 10666),
            ("10.0.0.2", 0), ("10.0.0.1", 10666),
        ])

        refresher.refresh_servers()

        assert transport.server_queries == [ServerAddress("10.0.0.1", 10666)]
        assert [s.name for s in store.servers] == ["Alpha"]

    def test_empty_master_list(self, refresher, store, transport):
        transport.add_master(*MASTER, [])
        assert refresher.refresh_servers() is False
        assert store.error == NO_SERVERS_ERROR
        assert store.loading is False

    def test_no_responding_servers(self, refresher, store, transport):
        for host, port in [("10.0.0.1", 10666), ("10.0.0.2", 10667), ("10.0.0.3", 10668)]:
            transport.fail(host, port)
        refresher.refresh_servers()
        assert store.error == NO_VALID_SERVERS_ERROR

    def test_master_failure_keeps_stale_servers(self, refresher, store, transport):
        refresher.refresh_servers()
        previous = store.servers
        stamp = store.last_updated

        transport.fail(*MASTER)
        assert refresher.refresh_servers() is False

        assert store.error == "master1.odamex.net:15000 timed out"
        assert store.servers == previous
        assert store.last_updated == stamp
        assert store.loading is False

    def test_transport_error_without_message(self, refresher, store, transport):
        transport.fail(*MASTER, RuntimeError())
        refresher.refresh_servers()
        assert store.error == "Failed to query master server"

    def test_second_master_used_when_first_fails(self, store, transport):
        transport.add_master("master2.odamex.net", 15000, [("10.0.0.2", 10667)])
        transport.fail(*MASTER)
        config = LauncherConfig(master_servers=["master1.odamex.net:15000", "master2.odamex.net:15000"])
        refresher = ServerRefresher(transport, store, config)

        refresher.refresh_servers()

        assert [s.name for s in store.servers] == ["Bravo"]
        assert store.error is None

    def test_invalid_master_configuration(self, store, transport):
        config = LauncherConfig(master_servers=["not a master"])
        refresher = ServerRefresher(transport, store, config)
        refresher.refresh_servers()
        assert transport.master_queries == []
        assert store.error == NO_SERVERS_ERROR

    def test_failed_ping_leaves_query_ping(self, refresher, store, transport):
        del transport.pings[ServerAddress("10.0.0.2", 10667)]
        refresher.refresh_servers()
        assert store.servers[1].ping == 0
        assert store.error is None

    def test_events(self, refresher, store):
        seen = []
        for event_type in (EventType.REFRESH_STARTED, EventType.REFRESH_COMPLETED, EventType.REFRESH_FAILED):
            store.events.subscribe(event_type, lambda data, t=event_type: seen.append((t, data)))

        refresher.refresh_servers()

        assert seen == [(EventType.REFRESH_STARTED, None), (EventType.REFRESH_COMPLETED, 3)]


class TestConcurrencyAndCancel:
    """Overlapping and cancelled refreshes"""

    def test_overlapping_refresh_is_refused(self, refresher, transport):
        results = []
        started = threading.Event()
        release = threading.Event()

        def block(address):
            started.set()
            release.wait(5)

        transport.on_query_server = block
        worker = threading.Thread(target=lambda: results.append(refresher.refresh_servers()))
        worker.start()
        assert started.wait(5)

        assert refresher.is_refreshing
        assert refresher.refresh_servers() is False

        release.set()
        worker.join(5)
        assert results == [True]
        assert not refresher.is_refreshing

    def test_cancel_leaves_previous_list(self, refresher, store, transport):
        refresher.refresh_servers()
        previous = store.servers

        transport.on_query_server = lambda address: refresher.cancel_refresh()
        cancelled = []
        store.events.subscribe(EventType.REFRESH_CANCELLED, cancelled.append)

        assert refresher.refresh_servers() is False

        assert store.servers == previous
        assert store.loading is False
        assert store.error is None
        assert cancelled == [None]

    def test_cancel_without_refresh_is_harmless(self, refresher, store):
        refresher.cancel_refresh()
        assert refresher.refresh_servers() is True

    def test_slow_server_counts_as_no_response(self, store, transport):
        release = threading.Event()

        def stall_bravo(address):
            if address.host == "10.0.0.2":
                release.wait(5)

        transport.on_query_server = stall_bravo
        config = LauncherConfig(master_servers=["master1.odamex.net:15000"], query_timeout=0.2)
        refresher = ServerRefresher(transport, store, config)
        try:
            assert refresher.refresh_servers() is True
            assert [s.name for s in store.servers] == ["Alpha", "Charlie"]
            assert not release.is_set()
        finally:
            release.set()


class TestExplicitAddresses:
    """query_addresses() and refresh_local_servers()"""

    def test_query_addresses_skips_invalid(self, refresher, transport):
        servers = refresher.query_addresses(["10.0.0.3:10668", "nonsense", "10.0.0.1:10666", "10.0.0.9:1"])
        assert [s.name for s in servers] == ["Charlie", "Alpha"]
        assert ServerAddress("10.0.0.9", 1) in transport.server_queries

    def test_refresh_local_servers(self, refresher, store):
        refresher.refresh_servers()
        stamp = store.last_updated

        local = refresher.refresh_local_servers(["10.0.0.2:10667"])

        assert [s.name for s in local] == ["Bravo"]
        assert store.local_servers == tuple(local)
        assert store.last_updated == stamp


class TestPlayerActivity:
    """PlayerActivityTracker"""

    def test_new_servers_with_players(self):
        tracker = PlayerActivityTracker()
        messages = tracker.check([make_server("a", 1, name="A", players=3), make_server("b", 2, name="B")])
        assert messages == ["New server: A (3 players)"]

    def test_joins_and_leaves(self):
        tracker = PlayerActivityTracker()
        tracker.check([make_server("a", 1, name="A", players=3), make_server("b", 2, name="B", players=1)])
        messages = tracker.check([make_server("a", 1, name="A", players=1), make_server("b", 2, name="B", players=4)])
        assert messages == ["A: 2 player(s) left", "B: 3 player(s) joined"]

    def test_unchanged_is_quiet(self):
        tracker = PlayerActivityTracker()
        tracker.check([make_server("a", 1, players=2)])
        assert tracker.check([make_server("a", 1, players=2)]) == []

    def test_summary(self):
        assert PlayerActivityTracker.summarize([]) is None

        single = PlayerActivityTracker.summarize(["one"])
        assert single.title == "Server Activity"
        assert single.body == "one"

        many = PlayerActivityTracker.summarize(["1", "2", "3", "4", "5"])
        assert many.title == "Server Activity (5)"
        assert many.body == "1\n2\n3\n... and 2 more"

    def test_refresh_emits_activity(self, refresher, store):
        summaries = []
        store.events.subscribe(EventType.PLAYER_ACTIVITY, summaries.append)

        refresher.refresh_servers()

        assert summaries[0].title == "Server Activity (2)"
        assert summaries[0].messages == ["New server: Alpha (2 players)", "New server: Charlie (1 players)"]


class TestAutoRefresh:
    """Auto-refresh settings"""

    def test_disabled_config_does_not_start(self, refresher):
        refresher.config.auto_refresh_enabled = False
        assert refresher.start_auto_refresh() is False
        assert not refresher.is_auto_refreshing

    def test_start_and_stop(self, refresher):
        assert refresher.start_auto_refresh() is True
        assert refresher.is_auto_refreshing
        assert refresher.start_auto_refresh() is False
        refresher.stop_auto_refresh()
        assert not refresher.is_auto_refreshing

    def test_set_enabled(self, refresher):
        refresher.set_enabled(True)
        assert refresher.is_auto_refreshing
        refresher.set_enabled(False)
        assert not refresher.is_auto_refreshing
        assert refresher.config.auto_refresh_enabled is False

    def test_set_minutes_ignores_non_positive(self, refresher):
        refresher.set_minutes(0)
        refresher.set_minutes(-3)
        assert refresher.config.auto_refresh_minutes == 5
        refresher.set_minutes(15)
        assert refresher.config.auto_refresh_minutes == 15

    def test_timer_runs_refresh(self, refresher, store):
        refresher.config.auto_refresh_minutes = 0.001  # 60ms
        done = threading.Event()
        store.events.subscribe(EventType.REFRESH_COMPLETED, lambda _: done.set())

        refresher.start_auto_refresh()
        try:
            assert done.wait(5)
        finally:
            refresher.stop_auto_refresh()
        assert store.servers

    def test_restart_while_refresh_is_blocked(self, refresher, transport):
        refresher.config.auto_refresh_minutes = 0.001
        refresher.auto_stop_timeout = 0.1
        started = threading.Event()
        release = threading.Event()

        def block(address):
            started.set()
            release.wait(5)

        transport.on_query_server = block
        refresher.start_auto_refresh()
        try:
            assert started.wait(5)
            old_thread = refresher._auto_thread

            refresher.set_minutes(10)
            assert old_thread.is_alive()
            assert refresher.is_auto_refreshing

            release.set()
            old_thread.join(5)
            assert not old_thread.is_alive()
            alive = [t for t in threading.enumerate() if t.name == "AutoRefresh" and t.is_alive()]
            assert alive == [refresher._auto_thread]
        finally:
            release.set()
            refresher.stop_auto_refresh()
