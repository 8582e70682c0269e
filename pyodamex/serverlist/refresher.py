"""
Server refresher - drives directory refresh cycles into the store

The refresher is the store's single writer. Network queries run on a
bounded worker pool, but every store mutation happens on the thread that
called refresh_servers(), one at a time.
"""

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from ..config.client_config import LauncherConfig
from ..events import EventManager, EventType
from ..validation import validate_ip_address, validate_port, validate_server_address
from .models import ServerAddress, ServerInfo
from .store import ServersStore
from .transport import ServerTransport

logger = logging.getLogger(__name__)

NO_SERVERS_ERROR = "No servers returned from master server"
NO_VALID_SERVERS_ERROR = "No valid servers found. All servers timed out or returned invalid responses."
MASTER_QUERY_ERROR = "Failed to query master server"

MAX_SUMMARY_LINES = 3


@dataclass
class ActivitySummary:
    """A notification-sized description of player activity"""
    title: str
    body: str
    messages: List[str]


class PlayerActivityTracker:
    """Tracks player counts between refreshes and reports changes"""

    def __init__(self):
        self._previous: Dict[str, int] = {}

    def check(self, servers: Iterable[ServerInfo]) -> List[str]:
        """Compare against the previous refresh; return activity messages"""
        messages = []
        for server in servers:
            key = str(server.address)
            current = server.player_count
            previous = self._previous.get(key)

            if previous is None:
                if current > 0:
                    messages.append(f"New server: {server.name} ({current} players)")
            elif previous != current:
                change = current - previous
                action = "joined" if change > 0 else "left"
                messages.append(f"{server.name}: {abs(change)} player(s) {action}")

            self._previous[key] = current
        return messages

    @staticmethod
    def summarize(messages: Sequence[str]) -> Optional[ActivitySummary]:
        """Fold activity messages into one notification"""
        if not messages:
            return None

        title = "Server Activity" if len(messages) == 1 else f"Server Activity ({len(messages)})"
        body = "\n".join(messages[:MAX_SUMMARY_LINES])
        if len(messages) > MAX_SUMMARY_LINES:
            body += f"\n... and {len(messages) - MAX_SUMMARY_LINES} more"
        return ActivitySummary(title=title, body=body, messages=list(messages))

    def clear(self):
        self._previous.clear()


class RefreshCancelled(Exception):
    """Raised internally when cancel_refresh() interrupts a cycle"""
    pass


class ServerRefresher:
    """Runs master-server refresh cycles and ping checks"""

    def __init__(self, transport: ServerTransport, store: ServersStore,
                 config: Optional[LauncherConfig] = None,
                 events: Optional[EventManager] = None):
        self.transport = transport
        self.store = store
        self.config = config or LauncherConfig()
        self.events = events or store.events
        self.activity = PlayerActivityTracker()

        self._refresh_lock = threading.Lock()
        self._cancel_event = threading.Event()

        self._auto_thread: Optional[threading.Thread] = None
        self._auto_stop_event = threading.Event()
        self.auto_stop_timeout = 5.0

    # -------- Refresh cycle --------

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_lock.locked()

    def cancel_refresh(self) -> None:
        """Ask the in-flight refresh, if any, to stop at the next checkpoint"""
        if self.is_refreshing:
            logger.info("Cancelling refresh")
            self._cancel_event.set()

    def refresh_servers(self) -> bool:
        """Run one full refresh cycle.

        Returns True if the store received a new server list. Returns False
        without doing anything if another refresh is already running.
        """
        if not self._refresh_lock.acquire(blocking=False):
            logger.debug("Refresh already in progress")
            return False

        self._cancel_event.clear()
        try:
            return self._run_refresh()
        finally:
            self._refresh_lock.release()

    def _run_refresh(self) -> bool:
        self.store.set_loading(True)
        self.store.clear_error()
        self.events.emit(EventType.REFRESH_STARTED)

        try:
            addresses = self._query_masters()
            self._check_cancelled()

            if not addresses:
                self._fail(NO_SERVERS_ERROR)
                return False

            results = self._query_servers(addresses)
            self._check_cancelled()

            servers = [s for s in results if s is not None and s.responded]
            if not servers:
                self._fail(NO_VALID_SERVERS_ERROR)
                return False

            self._report_activity(servers)
            self.store.set_servers(servers)
            logger.info(f"Refresh complete: {len(servers)} of {len(addresses)} servers responded")
            self.events.emit(EventType.REFRESH_COMPLETED, len(servers))

            self._ping_servers([s.address for s in servers])
            return True

        except RefreshCancelled:
            logger.info("Refresh cancelled")
            self.store.set_loading(False)
            self.events.emit(EventType.REFRESH_CANCELLED)
            return False
        except Exception as e:
            logger.error(f"Failed to refresh servers: {e}")
            self._fail(str(e) or MASTER_QUERY_ERROR)
            return False

    def _fail(self, message: str) -> None:
        self.store.set_error(message)
        self.events.emit(EventType.REFRESH_FAILED, message)

    def _check_cancelled(self) -> None:
        if self._cancel_event.is_set():
            raise RefreshCancelled()

    def _query_masters(self) -> List[ServerAddress]:
        """Collect game server addresses from every configured master.

        Invalid master entries and invalid returned addresses are skipped.
        Raises the last transport error if no master answered.
        """
        addresses: List[ServerAddress] = []
        seen = set()
        last_error: Optional[Exception] = None
        answered = False

        for entry in self.config.master_servers:
            result = validate_server_address(entry)
            if not result.valid:
                logger.warning(f"Skipping master server {entry!r}: {result.error}")
                continue

            master = ServerAddress.from_validation(result)
            try:
                pairs = self.transport.query_master(master)
            except Exception as e:
                logger.warning(f"Master server {master} failed: {e}")
                last_error = e
                continue

            answered = True
            for host, port in pairs:
                address = self._checked_address(host, port)
                if address is not None and address not in seen:
                    seen.add(address)
                    addresses.append(address)

        if not answered and last_error is not None:
            raise last_error
        return addresses

    @staticmethod
    def _checked_address(host, port) -> Optional[ServerAddress]:
        host_result = validate_ip_address(host)
        port_result = validate_port(port)
        if not host_result.valid or not port_result.valid:
            logger.debug(f"Dropping master entry {host!r}:{port!r}: "
                         f"{host_result.error or port_result.error}")
            return None
        return ServerAddress(host_result.sanitized, int(port_result.sanitized))

    def _run_bounded(self, func: Callable[[ServerAddress], Any],
                     addresses: Sequence[ServerAddress]) -> Iterator[Tuple[int, Future]]:
        """Call ``func`` for each address, at most max_concurrent_queries at a time.

        Yields (index, future) as calls finish. A call still running
        query_timeout seconds after it was submitted is abandoned and never
        yielded. Stops early when the refresh is cancelled.
        """
        limit = self.config.max_concurrent_queries
        timeout = self.config.query_timeout
        queue = list(enumerate(addresses))
        pending: Dict[Future, Tuple[int, float]] = {}

        pool = ThreadPoolExecutor(max_workers=limit, thread_name_prefix="ServerQuery")
        try:
            while queue or pending:
                if self._cancel_event.is_set():
                    break

                while queue and len(pending) < limit:
                    index, address = queue.pop(0)
                    pending[pool.submit(func, address)] = (index, time.monotonic() + timeout)

                next_deadline = min(deadline for _, deadline in pending.values())
                done, _ = wait(pending, timeout=max(next_deadline - time.monotonic(), 0),
                               return_when=FIRST_COMPLETED)
                for future in done:
                    index, _ = pending.pop(future)
                    yield index, future

                now = time.monotonic()
                for future, (index, deadline) in list(pending.items()):
                    if deadline <= now:
                        del pending[future]
                        logger.warning(f"No answer from {addresses[index]} within {timeout}s")
        finally:
            # Abandoned calls finish in the background; nothing waits for them
            for future in pending:
                future.cancel()
            pool.shutdown(wait=False)

    def _query_one(self, address: ServerAddress) -> Optional[ServerInfo]:
        try:
            return self.transport.query_server(address)
        except Exception as e:
            logger.warning(f"Failed to query server {address}: {e}")
            return None

    def _query_servers(self, addresses: Sequence[ServerAddress]) -> List[Optional[ServerInfo]]:
        """Query game servers; results keep the order of ``addresses``"""
        results: List[Optional[ServerInfo]] = [None] * len(addresses)
        for index, future in self._run_bounded(self._query_one, addresses):
            results[index] = future.result()
        return results

    def _ping_servers(self, addresses: Sequence[ServerAddress]) -> None:
        """Probe each server and apply pings to the store as they arrive"""
        for index, future in self._run_bounded(self.transport.ping_server, addresses):
            try:
                ping = future.result()
            except Exception as e:
                logger.debug(f"Ping to {addresses[index]} failed: {e}")
                continue
            self.store.update_server_ping(addresses[index], ping)

    def _report_activity(self, servers: Sequence[ServerInfo]) -> None:
        summary = self.activity.summarize(self.activity.check(servers))
        if summary is not None:
            logger.info(f"{summary.title}: {'; '.join(summary.messages)}")
            self.events.emit(EventType.PLAYER_ACTIVITY, summary)

    # -------- Explicit address lists --------

    def query_addresses(self, addresses: Iterable[str]) -> List[ServerInfo]:
        """Query an explicit list of host:port strings.

        Invalid strings are skipped. Returns the servers that responded,
        in input order.
        """
        checked = []
        for entry in addresses:
            result = validate_server_address(entry)
            if result.valid:
                checked.append(ServerAddress.from_validation(result))
            else:
                logger.warning(f"Skipping server {entry!r}: {result.error}")

        results = self._query_servers(checked)
        return [s for s in results if s is not None and s.responded]

    def refresh_local_servers(self, addresses: Iterable[str]) -> List[ServerInfo]:
        """Query local-network addresses and publish them to the store"""
        servers = self.query_addresses(addresses)
        self.store.set_local_servers(servers)
        return servers

    # -------- Auto refresh --------

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable automatic refresh"""
        self.config.auto_refresh_enabled = enabled
        if enabled:
            self.start_auto_refresh()
        else:
            self.stop_auto_refresh()

    def set_minutes(self, minutes: int) -> None:
        """Change the auto-refresh interval; non-positive values are ignored"""
        if minutes <= 0:
            logger.debug(f"Ignoring auto-refresh interval {minutes}")
            return
        self.config.auto_refresh_minutes = minutes
        if self.is_auto_refreshing:
            self.stop_auto_refresh()
            self.start_auto_refresh()

    @property
    def is_auto_refreshing(self) -> bool:
        return self._auto_thread is not None and self._auto_thread.is_alive()

    def start_auto_refresh(self) -> bool:
        """Start the background refresh timer"""
        if not self.config.auto_refresh_enabled:
            return False
        if self.is_auto_refreshing:
            logger.debug("Auto refresh already running")
            return False

        # Each timer thread owns its stop event, so a thread that outlives
        # stop_auto_refresh() still exits once its current refresh returns
        stop_event = threading.Event()
        self._auto_stop_event = stop_event
        self._auto_thread = threading.Thread(
            target=self._auto_refresh_loop,
            args=(stop_event,),
            name="AutoRefresh",
            daemon=True
        )
        self._auto_thread.start()
        logger.info(f"Auto refresh every {self.config.auto_refresh_minutes} minute(s)")
        return True

    def stop_auto_refresh(self) -> None:
        """Stop the background timer and cancel any refresh it started"""
        if self._auto_thread and self._auto_thread.is_alive():
            self._auto_stop_event.set()
            self.cancel_refresh()
            self._auto_thread.join(timeout=self.auto_stop_timeout)
            if self._auto_thread.is_alive():
                logger.warning("Auto refresh thread did not stop gracefully")
        self._auto_thread = None

    def _auto_refresh_loop(self, stop_event: threading.Event) -> None:
        interval = self.config.auto_refresh_minutes * 60
        while not stop_event.wait(interval):
            self.refresh_servers()
