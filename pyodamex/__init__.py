"""
pyodamex - server directory core for an Odamex launcher

Validate untrusted input before it reaches the network or the disk:
    from pyodamex import validate_server_address, sanitize_file_path

    result = validate_server_address("192.168.1.1:10666")
    if result.valid:
        print(result.ip, result.port)
    else:
        print(result.error)

Keep an observable server list fed by a transport:
    from pyodamex import LauncherConfig, ServersStore, ServerRefresher

    store = ServersStore()
    store.subscribe(lambda state: print(len(state.servers), state.error))

    refresher = ServerRefresher(my_transport, store, LauncherConfig())
    refresher.refresh_servers()      # one cycle: master query, server queries, pings
    refresher.start_auto_refresh()   # then every auto_refresh_minutes

Custom servers:
    from pyodamex import CustomServerList

    custom = CustomServerList("custom_servers.json")
    custom.add_address("play.example.net:10666")
    servers = refresher.query_addresses(custom.address_strings())
"""

__version__ = "1.0.0"

from .config import ConfigValidationError, LauncherConfig
from .events import EventManager, EventType
from .serverlist import (
    CustomServerList,
    DirectoryState,
    ServerAddress,
    ServerInfo,
    ServerRefresher,
    ServersStore,
    ServerTransport,
)
from .validation import (
    Invalid,
    Valid,
    ValidAddress,
    ValidationResult,
    sanitize_file_path,
    sanitize_text,
    validate_ip_address,
    validate_port,
    validate_server_address,
    validate_url,
)

__all__ = [
    "ConfigValidationError",
    "CustomServerList",
    "DirectoryState",
    "EventManager",
    "EventType",
    "Invalid",
    "LauncherConfig",
    "ServerAddress",
    "ServerInfo",
    "ServerRefresher",
    "ServerTransport",
    "ServersStore",
    "Valid",
    "ValidAddress",
    "ValidationResult",
    "sanitize_file_path",
    "sanitize_text",
    "validate_ip_address",
    "validate_port",
    "validate_server_address",
    "validate_url",
]
