"""A thread-safe registry of running cluster clients keyed by namespaced name."""

from __future__ import annotations

import threading
from typing import Optional, Protocol

from .objects import NamespacedName


class ClusterClient(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


class Clusters:
    """Holds one client per cluster; adding starts a client, removing stops it."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._clients: dict[str, ClusterClient] = {}

    def get(self, name: NamespacedName) -> Optional[ClusterClient]:
        """Return the client registered under ``name``, or None."""
        with self._lock:
            return self._clients.get(str(name))

    def has(self, *args: NamespacedName) -> bool:
        """True when any of the given names is registered."""
        with self._lock:
            return any(str(name) in self._clients for name in args)

    def _add(self, name: NamespacedName, client: ClusterClient) -> bool:
        key = str(name)
        if key in self._clients:
            return False
        threading.Thread(target=client.start, name=f"cluster-{key}", daemon=True).start()
        self._clients[key] = client
        return True

    def add(self, name: NamespacedName, client: ClusterClient) -> bool:
        """Register and start ``client``, stopping any client it replaces."""
        with self._lock:
            self._remove(name)
            return self._add(name, client)

    def _remove(self, name: NamespacedName) -> bool:
        client = self._clients.pop(str(name), None)
        if client is None:
            return False
        client.stop()
        return True

    def remove(self, name: NamespacedName) -> bool:
        """Stop and unregister the client under ``name``; False if there was none."""
        with self._lock:
            return self._remove(name)