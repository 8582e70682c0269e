"""
Transport interface - the network side of a directory refresh

Implementations speak the master-server and game-server wire protocols.
They may block; the refresher calls them from worker threads. Failures are
reported by raising (OSError, socket.timeout, TransportError).
"""

from typing import List, Tuple

from .models import ServerAddress, ServerInfo


class TransportError(Exception):
    """Raised by transports when a query gets no usable answer"""
    pass


class ServerTransport:
    """Base class for directory transports"""

    def query_master(self, address: ServerAddress) -> List[Tuple[str, int]]:
        """Ask a master server for its list of game server addresses.

        The returned pairs are untrusted and are validated by the caller.
        """
        raise NotImplementedError

    def query_server(self, address: ServerAddress) -> ServerInfo:
        """Query one game server; ``ping`` is set from the round trip."""
        raise NotImplementedError

    def ping_server(self, address: ServerAddress) -> int:
        """Measure a game server's latency in milliseconds."""
        raise NotImplementedError

    @property
    def name(self):
        return self.__class__.__name__
