"""
Last-known-good endpoint storage.

The registry writes the URL of every endpoint that answers successfully
and reads it back at startup so a restarted session tries it first.

Example:
    store = FileEndpointStore("~/.vigie/endpoints.json")
    store.set("RPC_ADDRESS", "https://node.example.com/rpc")
    store.get("RPC_ADDRESS")
"""

import json
import os
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from vigie.domain.exceptions import PersistenceError


class EndpointStore(Protocol):
    """
    Protocol for durable key-value storage of endpoint URLs.

    Implementations raise PersistenceError when the backend fails.
    Stores with `blocking = True` do network I/O; the registry writes
    to them from a worker thread instead of the caller's.
    """

    blocking: bool

    def get(self, key: str) -> Optional[str]:
        """
        Get stored URL.

        Args:
            key: Storage key

        Returns:
            Stored URL or None if not found
        """
        ...

    def set(self, key: str, value: str) -> None:
        """
        Store URL.

        Args:
            key: Storage key
            value: Endpoint URL
        """
        ...


class InMemoryEndpointStore:
    """
    In-memory endpoint store for testing.

    NOT DURABLE - data lost on restart.
    """

    blocking = False

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._store: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def set(self, key: str, value: str) -> None:
        self._store[key] = value


class FileEndpointStore:
    """
    JSON file endpoint store.

    The whole file is a flat object of key -> URL. Writes go to a
    temporary file first and are then moved into place.
    """

    blocking = False

    def __init__(self, path: str):
        self.path = Path(os.path.expanduser(path))
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(
                f"Cannot read endpoint store: {e}",
                details={"path": str(self.path)},
            ) from e

        if not isinstance(data, dict):
            raise PersistenceError(
                "Endpoint store is not a JSON object",
                details={"path": str(self.path)},
            )
        return data

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value

            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2)
                os.replace(tmp_path, self.path)
            except OSError as e:
                raise PersistenceError(
                    f"Cannot write endpoint store: {e}",
                    details={"path": str(self.path)},
                ) from e
