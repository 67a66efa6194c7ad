"""JSON file session store.

All state is stored in flat JSON files under a configurable base directory.
There is no database or ORM; reads and writes go through plain helper
methods that load and dump JSON. The store is constructed once at startup
and handed to whoever needs it; it keeps no global state.

Directory layout:

    {base}/
      users/
        {user_id}.json        ← User
      sessions/
        {session_id}.json     ← SessionRecord (story + serialized GameState)
        {session_id}/
          choices.json        ← append-only ChoiceLogEntry list

Every file is written to a sibling ".tmp" file first and moved into place,
so a crash mid-write leaves the previous version intact.

Ids are random hex tokens. Anything that is not a url-safe token is treated
as a missing session, so ids can never escape the base directory.

The store does no locking or versioning; concurrent turns for one session
are serialised by the engine.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from life_sim.models import ChoiceLogEntry, SessionRecord, User

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class SessionNotFound(LookupError):
    """Raised when a session id does not resolve to a stored session."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session {session_id!r} not found")
        self.session_id = session_id


class StorageError(RuntimeError):
    """Raised when the underlying files cannot be read or written."""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid.uuid4().hex


class SessionStore:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._users_root = base_path / "users"
        self._sessions_root = base_path / "sessions"
        self._closed = False

    def open(self) -> SessionStore:
        """Create the directory tree. Safe to call more than once."""
        try:
            self._users_root.mkdir(parents=True, exist_ok=True)
            self._sessions_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot initialise storage at {self._base}: {e}") from e
        self._closed = False
        logger.info("Session store opened at %s", self._base)
        return self

    def close(self) -> None:
        self._closed = True
        logger.info("Session store closed")

    @property
    def base_path(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _check_open(self) -> None:
        if self._closed:
            raise StorageError("Session store is closed")

    def _session_file(self, session_id: str) -> Path:
        return self._sessions_root / f"{session_id}.json"

    def _session_dir(self, session_id: str) -> Path:
        return self._sessions_root / session_id

    def _read_json(self, path: Path) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {path.name}: {e}") from e

    def _write_json(self, path: Path, data: Any) -> None:
        """Write through a sibling temp file so readers never see a partial file."""
        tmp = path.with_name(f"{path.name}.tmp")
        try:
            tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            tmp.unlink(missing_ok=True)
            raise StorageError(f"Cannot write {path.name}: {e}") from e

    def _existing_session_file(self, session_id: str) -> Path:
        self._check_open()
        if not isinstance(session_id, str) or not _ID_PATTERN.match(session_id):
            raise SessionNotFound(str(session_id))
        path = self._session_file(session_id)
        if not path.is_file():
            raise SessionNotFound(session_id)
        return path

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def create_user(self, username: str) -> User:
        self._check_open()
        user = User(id=_new_id(), username=username, created_at=_now())
        self._write_json(self._users_root / f"{user.id}.json", user.model_dump())
        return user

    def get_user(self, user_id: str) -> User | None:
        if not _ID_PATTERN.match(user_id):
            return None
        path = self._users_root / f"{user_id}.json"
        if not path.is_file():
            return None
        return User.model_validate(self._read_json(path))

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create(self, username: str, initial_story: str, initial_state: str) -> str:
        """Create a user and a session for it. Returns the new session id."""
        user = self.create_user(username)
        now = _now()
        record = SessionRecord(
            id=_new_id(),
            user_id=user.id,
            story=initial_story,
            state=initial_state,
            created_at=now,
            updated_at=now,
        )
        self._write_json(self._session_file(record.id), record.model_dump())
        try:
            self._session_dir(record.id).mkdir(exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create session directory: {e}") from e
        logger.info("Created session %s for user %s", record.id, user.id)
        return record.id

    def load(self, session_id: str) -> SessionRecord:
        path = self._existing_session_file(session_id)
        return SessionRecord.model_validate(self._read_json(path))

    def save(self, session_id: str, story: str, state: str) -> SessionRecord:
        """Overwrite story and state of an existing session. Returns the stored record."""
        path = self._existing_session_file(session_id)
        record = SessionRecord.model_validate(self._read_json(path))
        record = record.model_copy(update={"story": story, "state": state, "updated_at": _now()})
        self._write_json(path, record.model_dump())
        return record

    # ------------------------------------------------------------------
    # Choice audit log (append-only)
    # ------------------------------------------------------------------

    def get_choices(self, session_id: str) -> list[ChoiceLogEntry]:
        self._existing_session_file(session_id)
        path = self._session_dir(session_id) / "choices.json"
        if not path.exists():
            return []
        return [ChoiceLogEntry.model_validate(c) for c in self._read_json(path)]

    def append_choice(self, session_id: str, user_choice: str, ai_response: str) -> ChoiceLogEntry:
        entries = self.get_choices(session_id)
        entry = ChoiceLogEntry(user_choice=user_choice, ai_response=ai_response, created_at=_now())
        entries.append(entry)
        session_dir = self._session_dir(session_id)
        try:
            session_dir.mkdir(exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create session directory: {e}") from e
        self._write_json(session_dir / "choices.json", [c.model_dump() for c in entries])
        return entry
