"""
Client-side key-value storage.

Two namespaces back the client state:
- short-lived (MemoryStore): lives as long as the browsing context; holds the cart
- durable (JsonFileStore): survives restarts; holds the token and cached profile

Business code never talks to a store directly; it goes through a
JsonRepository, so the backing store can be swapped without touching it.
"""
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Optional, TypeVar, Union

from storefront.logging import get_logger, redact_secrets

logger = get_logger(__name__)

T = TypeVar("T")


class StorageKeys:
    """Fixed storage keys."""

    CART = "cart"  # short-lived
    TOKEN = "token"  # durable
    USER = "user"  # durable


class KeyValueStore:
    """Minimal string key-value store interface."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process store; cleared when the process (browsing context) ends."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStore(KeyValueStore):
    """
    Durable store persisted as a single JSON object on disk.

    Writes go to a temp file that replaces the target, so a crash mid-write
    leaves the previous file intact. An unreadable file reads as empty.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Durable store unreadable at {self.path}: {e}")
            return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Durable store corrupted at {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Durable store at {self.path} is not an object, ignoring")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class JsonRepository(Generic[T]):
    """
    Typed record stored as JSON under one key.

    load() never raises: a missing or malformed record yields default()
    and the malformed record is removed.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        decode: Callable[[Any], T],
        encode: Callable[[T], Any],
        default: Callable[[], T],
    ):
        self.store = store
        self.key = key
        self._decode = decode
        self._encode = encode
        self._default = default

    def load(self) -> T:
        raw = self.store.get(self.key)
        if raw is None:
            return self._default()

        try:
            return self._decode(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            # Corrupted data - clear it and fall back to the default
            logger.warning(f"Corrupted '{self.key}' record in storage, resetting: {redact_secrets(e)}")
            self.clear()
            return self._default()

    def save(self, value: T) -> None:
        self.store.set(self.key, json.dumps(self._encode(value)))

    def clear(self) -> None:
        self.store.delete(self.key)
