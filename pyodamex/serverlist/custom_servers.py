"""
Custom server list - user-maintained server addresses with persistence
"""

import json
import logging
import os
from dataclasses import dataclass, replace
from typing import List, Optional

from ..validation import Invalid, ValidationResult, sanitize_file_path, validate_server_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CustomServerAddress:
    """A saved server address and its display position"""
    address: str
    order: int


class CustomServerList:
    """Ordered list of custom server addresses.

    Addresses are validated before they are stored. When persistence is
    enabled every change is written to ``persist_path`` as JSON.
    """

    def __init__(self, persist_path: Optional[str] = None, enable_persistence: bool = True):
        self.persist_path: Optional[str] = None
        self.enable_persistence = enable_persistence and persist_path is not None

        if self.enable_persistence:
            checked = sanitize_file_path(persist_path)
            if checked.valid:
                self.persist_path = checked.sanitized
            else:
                logger.error(f"Custom server file {persist_path!r} rejected: {checked.error}")
                self.enable_persistence = False

        self._addresses: List[CustomServerAddress] = self._load()

    @classmethod
    def from_config(cls, config, enable_persistence: bool = True) -> "CustomServerList":
        """Open the list stored at a LauncherConfig's custom_servers_file"""
        return cls(config.custom_servers_file, enable_persistence=enable_persistence)

    @property
    def addresses(self) -> List[CustomServerAddress]:
        return list(self._addresses)

    def address_strings(self) -> List[str]:
        """Saved addresses in display order"""
        return [a.address for a in sorted(self._addresses, key=lambda a: a.order)]

    def __contains__(self, address: str) -> bool:
        return any(a.address == address for a in self._addresses)

    def __len__(self) -> int:
        return len(self._addresses)

    def add_address(self, address: str) -> ValidationResult:
        """Validate and append an address"""
        result = validate_server_address(address)
        if not result.valid:
            return result
        if result.sanitized in self:
            return Invalid("Server address already added")

        next_order = max((a.order for a in self._addresses), default=-1) + 1
        self._addresses.append(CustomServerAddress(result.sanitized, next_order))
        self._save()
        logger.info(f"Added custom server {result.sanitized}")
        return result

    def remove_address(self, address: str) -> bool:
        """Remove an address; returns False if it wasn't saved"""
        remaining = [a for a in self._addresses if a.address != address]
        if len(remaining) == len(self._addresses):
            return False
        self._addresses = remaining
        self._save()
        logger.info(f"Removed custom server {address}")
        return True

    def update_address(self, old_address: str, new_address: str) -> ValidationResult:
        """Replace a saved address, keeping its position"""
        result = validate_server_address(new_address)
        if not result.valid:
            return result

        for index, entry in enumerate(self._addresses):
            if entry.address == old_address:
                if result.sanitized != old_address and result.sanitized in self:
                    return Invalid("Server address already added")
                self._addresses[index] = replace(entry, address=result.sanitized)
                self._save()
                return result

        return Invalid(f"Unknown server address: {old_address}")

    def reorder_addresses(self, addresses: List[str]) -> None:
        """Set the display order; orders are renumbered from 0"""
        known = {a.address for a in self._addresses}
        ordered = [a for a in addresses if a in known]
        # Anything the caller left out keeps its relative order at the end
        ordered += [a for a in self.address_strings() if a not in ordered]
        self._addresses = [CustomServerAddress(a, i) for i, a in enumerate(ordered)]
        self._save()

    def clear(self) -> None:
        self._addresses = []
        self._save()

    def _load(self) -> List[CustomServerAddress]:
        if not self.enable_persistence or not os.path.exists(self.persist_path):
            return []

        try:
            with open(self.persist_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            loaded = []
            for item in data:
                result = validate_server_address(item.get("address"))
                if result.valid:
                    loaded.append(CustomServerAddress(result.sanitized, int(item.get("order", len(loaded)))))
                else:
                    logger.warning(f"Dropping saved server {item!r}: {result.error}")
            logger.debug(f"Loaded {len(loaded)} custom servers from {self.persist_path}")
            return loaded
        except (OSError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Failed to load custom servers from {self.persist_path}: {e}")
            return []

    def _save(self) -> None:
        if not self.enable_persistence:
            return

        try:
            with open(self.persist_path, "w", encoding="utf-8") as f:
                json.dump([{"address": a.address, "order": a.order} for a in self._addresses], f, indent=2)
        except OSError as e:
            logger.error(f"Failed to save custom servers to {self.persist_path}: {e}")

    def __repr__(self) -> str:
        return f"CustomServerList(addresses={len(self._addresses)}, persist_path={self.persist_path!r})"
