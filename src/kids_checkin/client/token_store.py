"""Client-side identity: bearer token and cached staff record.

Both live in a string-keyed store and are written and cleared together.
"""
from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Optional, Protocol

from ..core.constants import STAFF_STORE_KEY, TOKEN_STORE_KEY

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """Survives process restarts. Writes go through a temp file + rename."""

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> dict[str, str]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except ValueError:
            logger.warning("ignoring unreadable credential store %s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(data), encoding="utf-8")
        os.replace(tmp, self._path)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._load().get(key)
            return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load()
            if data.pop(key, None) is not None:
                self._save(data)


class TokenStore:
    def __init__(self, store: KeyValueStore):
        self._store = store
        self._token: Optional[str] = store.get(TOKEN_STORE_KEY)

    def set(self, token: str) -> None:
        self._token = token
        self._store.set(TOKEN_STORE_KEY, token)

    def clear(self) -> None:
        self._token = None
        self._store.delete(TOKEN_STORE_KEY)

    def current_token(self) -> Optional[str]:
        return self._token


class SessionContext:
    """The signed-in staff member, passed explicitly to whoever needs it.

    ``restore()`` at startup, ``begin()`` after login, ``teardown()`` on logout
    or when the server rejects the credential.
    """

    def __init__(self, store: KeyValueStore):
        self._store = store
        self.tokens = TokenStore(store)
        self.staff: Optional[dict] = None

    @property
    def is_authenticated(self) -> bool:
        return self.tokens.current_token() is not None and self.staff is not None

    def restore(self) -> bool:
        raw_staff = self._store.get(STAFF_STORE_KEY)
        token = self._store.get(TOKEN_STORE_KEY)
        if not raw_staff or not token:
            self.teardown()
            return False
        try:
            staff = json.loads(raw_staff)
        except ValueError:
            self.teardown()
            return False
        if not isinstance(staff, dict):
            self.teardown()
            return False

        self.staff = staff
        self.tokens.set(token)
        return True

    def begin(self, token: str, staff: dict) -> None:
        self.tokens.set(token)
        self.staff = dict(staff)
        self._store.set(STAFF_STORE_KEY, json.dumps(self.staff))

    def teardown(self) -> None:
        self.staff = None
        self.tokens.clear()
        self._store.delete(STAFF_STORE_KEY)

    @property
    def staff_id(self) -> Optional[str]:
        return (self.staff or {}).get("id")
