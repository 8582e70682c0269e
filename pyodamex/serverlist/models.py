"""Server information data structures."""

from dataclasses import dataclass, field, replace
from enum import IntEnum
from typing import Optional, Tuple

from ..validation import ValidAddress, ValidationResult


class GameType(IntEnum):
    """Game modes reported by a server."""
    COOPERATIVE = 0
    DEATHMATCH = 1
    TEAM_DEATHMATCH = 2
    CAPTURE_THE_FLAG = 3


@dataclass(frozen=True)
class ServerAddress:
    """A validated server address (host and port)."""

    host: str
    port: int

    @classmethod
    def from_validation(cls, result: ValidationResult) -> "ServerAddress":
        """Build an address from a successful validate_server_address() result."""
        if not isinstance(result, ValidAddress):
            raise ValueError(f"Cannot build a server address from {result!r}")
        return cls(result.ip, result.port)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class Player:
    """A player on a game server."""
    name: str
    color: int = 0
    kills: int = 0
    deaths: int = 0
    time: int = 0
    frags: int = 0
    ping: int = 0
    team: int = 0
    spectator: bool = False


@dataclass(frozen=True)
class Team:
    name: str
    color: int = 0
    score: int = 0


@dataclass(frozen=True)
class Wad:
    name: str
    hash: str = ""


@dataclass(frozen=True)
class ServerInfo:
    """Information about a game server from a directory refresh.

    Only ``ping`` changes between refreshes; use with_ping() to get an
    updated copy. Everything else is payload reported by the server.
    """

    address: ServerAddress
    name: str = ""
    ping: Optional[int] = None  # milliseconds, None when unknown
    current_map: str = ""
    game_type: GameType = GameType.COOPERATIVE
    players: Tuple[Player, ...] = field(default_factory=tuple)
    teams: Tuple[Team, ...] = field(default_factory=tuple)
    wads: Tuple[Wad, ...] = field(default_factory=tuple)
    patches: Tuple[str, ...] = field(default_factory=tuple)
    cvars: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    max_clients: int = 0
    max_players: int = 0
    password_hash: str = ""
    version: str = ""
    responded: bool = False

    @property
    def player_count(self) -> int:
        """Number of players currently on the server."""
        return len(self.players)

    @property
    def game_type_name(self) -> str:
        """Get human-readable game type name."""
        type_map = {
            GameType.COOPERATIVE: "Cooperative",
            GameType.DEATHMATCH: "Deathmatch",
            GameType.TEAM_DEATHMATCH: "Team Deathmatch",
            GameType.CAPTURE_THE_FLAG: "Capture The Flag",
        }
        return type_map.get(self.game_type, "Unknown")

    @property
    def requires_password(self) -> bool:
        return bool(self.password_hash)

    def with_ping(self, ping: Optional[int]) -> "ServerInfo":
        """Copy of this server with a new ping value."""
        return replace(self, ping=ping)

    def __str__(self) -> str:
        """String representation of server."""
        return f"{self.name} ({self.player_count}/{self.max_players} players) - {self.address}"
