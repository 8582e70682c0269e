"""
Server directory store.

Holds the single authoritative view of the server list: the servers from
the last successful refresh, servers found on the local network, a loading
flag, the last error and the time of the last successful refresh.

The store is single-writer: one coordinating thread (the refresher) calls
the mutators, never concurrently. Each mutation replaces the immutable
DirectoryState snapshot and notifies observers synchronously. Nothing here
raises or blocks.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Tuple

from ..events import EventManager, EventType
from .models import ServerAddress, ServerInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryState:
    """Read-only snapshot of the server directory."""
    servers: Tuple[ServerInfo, ...] = ()
    local_servers: Tuple[ServerInfo, ...] = ()
    loading: bool = False
    error: Optional[str] = None
    last_updated: Optional[datetime] = None


INITIAL_STATE = DirectoryState()


def _with_ping(servers: Tuple[ServerInfo, ...], address: ServerAddress,
               ping: int) -> Optional[Tuple[ServerInfo, ...]]:
    """New sequence with the matching entry's ping replaced, or None if absent."""
    for index, server in enumerate(servers):
        if server.address == address:
            return servers[:index] + (server.with_ping(ping),) + servers[index + 1:]
    return None


class ServersStore:
    """Observable store for the known server list."""

    def __init__(self, events: Optional[EventManager] = None):
        self.events = events or EventManager()
        self._state = INITIAL_STATE

    # -------- Observation --------

    @property
    def state(self) -> DirectoryState:
        return self._state

    @property
    def servers(self) -> Tuple[ServerInfo, ...]:
        return self._state.servers

    @property
    def local_servers(self) -> Tuple[ServerInfo, ...]:
        return self._state.local_servers

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def last_updated(self) -> Optional[datetime]:
        return self._state.last_updated

    def find_server(self, address: ServerAddress) -> Optional[ServerInfo]:
        """Find a server by address in the master list."""
        for server in self._state.servers:
            if server.address == address:
                return server
        return None

    def subscribe(self, handler: Callable[[DirectoryState], None]) -> Callable[[], None]:
        """Call ``handler`` with the new state after every mutation.

        Returns a function that removes the subscription.
        """
        self.events.subscribe(EventType.STATE_CHANGED, handler)
        return lambda: self.events.unsubscribe(EventType.STATE_CHANGED, handler)

    # -------- Mutations --------

    def set_servers(self, servers: Iterable[ServerInfo]) -> None:
        """Replace the server list after a successful refresh."""
        servers = tuple(servers)
        logger.debug(f"Replacing server list with {len(servers)} servers")
        self._publish(replace(
            self._state,
            servers=servers,
            loading=False,
            error=None,
            last_updated=datetime.now(timezone.utc),
        ))

    def set_local_servers(self, servers: Iterable[ServerInfo]) -> None:
        """Replace the list of servers found on the local network."""
        servers = tuple(servers)
        logger.debug(f"Replacing local server list with {len(servers)} servers")
        self._publish(replace(self._state, local_servers=servers))

    def set_loading(self, loading: bool) -> None:
        self._publish(replace(self._state, loading=loading))

    def set_error(self, error: str) -> None:
        """Report a failed refresh; the last known servers stay visible."""
        logger.debug(f"Refresh error reported: {error}")
        self._publish(replace(self._state, error=error, loading=False))

    def clear_error(self) -> None:
        self._publish(replace(self._state, error=None))

    def update_server_ping(self, address: ServerAddress, ping: int) -> None:
        """Update one server's ping in every list that contains it.

        Unknown addresses are ignored: a ping may finish after a
        refresh dropped its server.
        """
        servers = _with_ping(self._state.servers, address, ping)
        local_servers = _with_ping(self._state.local_servers, address, ping)

        if servers is None and local_servers is None:
            logger.debug(f"Ignoring ping for unknown server {address}")
            return

        self._publish(replace(
            self._state,
            servers=self._state.servers if servers is None else servers,
            local_servers=self._state.local_servers if local_servers is None else local_servers,
        ))

    def reset(self) -> None:
        """Return to the initial empty, idle state."""
        logger.debug("Resetting server directory")
        self._publish(INITIAL_STATE)

    def _publish(self, state: DirectoryState) -> None:
        self._state = state
        self.events.emit(EventType.STATE_CHANGED, state)

    def __repr__(self) -> str:
        return (
            f"ServersStore(servers={len(self._state.servers)}, "
            f"local_servers={len(self._state.local_servers)}, "
            f"loading={self._state.loading}, error={self._state.error!r})"
        )
