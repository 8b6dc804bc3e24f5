from __future__ import annotations

import json
import logging
import threading
from pathlib import Path


logger = logging.getLogger(__name__)


class SessionPersistence:
    def load(self) -> str | None:
        raise NotImplementedError

    def save(self, token: str) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemorySessionPersistence(SessionPersistence):
    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def load(self) -> str | None:
        return self._token

    def save(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileSessionPersistence(SessionPersistence):
    """Keeps the token in a small JSON document under a fixed storage key."""

    def __init__(self, path: str | Path, storage_key: str = 'auth-storage') -> None:
        self.path = Path(path)
        self.storage_key = storage_key

    def _read(self) -> dict:
        try:
            raw = self.path.read_text(encoding='utf-8')
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning('session_file_unreadable path=%s', self.path)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> str | None:
        entry = self._read().get(self.storage_key)
        if not isinstance(entry, dict):
            return None
        token = entry.get('key')
        return str(token) if token else None

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + '.tmp')
        tmp_path.write_text(json.dumps(data), encoding='utf-8')
        tmp_path.replace(self.path)

    def save(self, token: str) -> None:
        data = self._read()
        data[self.storage_key] = {'key': token}
        self._write(data)

    def clear(self) -> None:
        data = self._read()
        if self.storage_key not in data:
            return
        data.pop(self.storage_key, None)
        if data:
            self._write(data)
        else:
            self.path.unlink(missing_ok=True)


class SessionStore:
    def __init__(self, persistence: SessionPersistence | None = None) -> None:
        self._persistence = persistence or MemorySessionPersistence()
        self._lock = threading.Lock()
        self._token = self._persistence.load() or None

    def get_token(self) -> str | None:
        with self._lock:
            return self._token

    def set_token(self, token: str) -> None:
        clean = str(token or '').strip()
        if not clean:
            raise ValueError('Session token must not be empty')
        with self._lock:
            self._persistence.save(clean)
            self._token = clean
        logger.info('session_token_stored')

    def clear(self) -> None:
        with self._lock:
            self._persistence.clear()
            self._token = None
        logger.info('session_cleared')

    @property
    def is_authenticated(self) -> bool:
        return self.get_token() is not None
