"""Session stores: a JSON file for the app, a dict for tests."""

import json
from pathlib import Path
from typing import Optional

import structlog

from gigledger.services.session.interface import SessionStoreError, SessionStoreInterface


logger = structlog.get_logger("gigledger.session")


class JsonFileSessionStore(SessionStoreInterface):
    """
    Keeps the session in a small JSON file.

    An unreadable or corrupt file is treated as "no session" so the user
    is simply asked to sign in again.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[dict]:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("session_file_unreadable", path=str(self._path), error=str(e))
            return None
        return data if isinstance(data, dict) else None

    def save(self, data: dict) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp.write_text(json.dumps(data), encoding="utf-8")
            tmp.replace(self._path)
        except OSError as e:
            raise SessionStoreError(f"Cannot write session file {self._path}: {e}") from e

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError as e:
            raise SessionStoreError(f"Cannot remove session file {self._path}: {e}") from e


class InMemorySessionStore(SessionStoreInterface):
    def __init__(self, data: Optional[dict] = None):
        self.data = dict(data) if data else None

    def load(self) -> Optional[dict]:
        return dict(self.data) if self.data else None

    def save(self, data: dict) -> None:
        self.data = dict(data)

    def clear(self) -> None:
        self.data = None
