"""Anonymous session id scoping document uploads.

The id lives in a small file under the client data directory so it survives
restarts, the way a browser keeps it in local storage.
"""

import logging
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

SESSION_FILE_NAME = "session_id"


class SessionIdentity:
    """Generates and persists the session id."""

    def __init__(self, data_dir: Path) -> None:
        self._path = data_dir / SESSION_FILE_NAME
        self._current: str | None = None

    @property
    def path(self) -> Path:
        return self._path

    def current_id(self) -> str:
        """Return the persisted id, creating one on first use."""
        if self._current is None:
            stored = self._path.read_text().strip() if self._path.exists() else ""
            self._current = stored or self._store(uuid.uuid4())
        return self._current

    def rotate(self) -> str:
        """Replace the persisted id with a fresh one.

        Called whenever a new conversation begins so that documents uploaded
        before it are not attributed to it.
        """
        previous = self._current
        self._current = self._store(uuid.uuid4())
        logger.debug(f"Rotated session id {previous} -> {self._current}")
        return self._current

    def _store(self, value: uuid.UUID) -> str:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(str(value))
        return str(value)
