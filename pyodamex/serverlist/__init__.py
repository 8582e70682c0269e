"""
pyodamex Server List - directory state and refresh
"""

from .custom_servers import CustomServerAddress, CustomServerList
from .models import GameType, Player, ServerAddress, ServerInfo, Team, Wad
from .refresher import ActivitySummary, PlayerActivityTracker, ServerRefresher
from .store import DirectoryState, ServersStore
from .transport import ServerTransport, TransportError

__all__ = [
    'ActivitySummary',
    'CustomServerAddress',
    'CustomServerList',
    'DirectoryState',
    'GameType',
    'Player',
    'PlayerActivityTracker',
    'ServerAddress',
    'ServerInfo',
    'ServerRefresher',
    'ServerTransport',
    'ServersStore',
    'Team',
    'TransportError',
    'Wad',
]
