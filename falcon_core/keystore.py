"""
Secret key storage.

The signer only needs a mapping from the names "f", "g", "F", "G" to packed
polynomials. ``KeyStore`` is that interface; two implementations are
provided, one kept in memory and one persisted as hex strings in a JSON file.
Encryption at rest is left to whoever provides the store.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)


class KeyStore(ABC):
    """Named byte-string storage for secret key material."""

    @abstractmethod
    def get(self, name: str) -> Optional[bytes]:
        """Return the value stored under name, or None."""

    @abstractmethod
    def set(self, name: str, value: bytes) -> None:
        """Store value under name, replacing any previous value."""


class InMemoryKeyStore(KeyStore):
    """Dictionary-backed store, mainly for tests and one-off sessions."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def get(self, name: str) -> Optional[bytes]:
        return self._data.get(name)

    def set(self, name: str, value: bytes) -> None:
        self._data[name] = bytes(value)

    def __len__(self) -> int:
        return len(self._data)


class JsonFileKeyStore(KeyStore):
    """
    Store persisted as a JSON object of hex strings.

    The file is re-read on every access and rewritten on every ``set``, so
    several instances pointed at the same path see each other's writes.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not hold a JSON object")
        return data

    def get(self, name: str) -> Optional[bytes]:
        value = self._load().get(name)
        return None if value is None else bytes.fromhex(value)

    def set(self, name: str, value: bytes) -> None:
        data = self._load()
        data[name] = bytes(value).hex()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)
        os.replace(tmp_path, self.path)
        logger.debug(f"Stored {name} in {self.path}")
