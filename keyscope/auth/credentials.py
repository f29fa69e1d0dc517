"""Scoped token storage for keyscope.

Tokens live in ~/.keyscope/config.json, keyed by the canonical directory
they are scoped to:

    {"scoped": {"/": {"token": "...", "api_host": "...", "dashboard_host": "..."}}}

The file is written atomically with restrictive permissions, and mutating
commands hold an exclusive lock on it for their whole duration.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Any, Iterator

from filelock import FileLock, Timeout

from ..config import ENV_CONFIG_FILE, parse_bool
from ..exceptions import StoreError
from .constants import CONFIG_DIR, CONFIG_FILE, LOCK_SUFFIX, LOCK_TIMEOUT_SECONDS, SCOPED_KEY
from .types import TokenRecord

logger = logging.getLogger(__name__)

_RECORD_FIELDS = ("token", "api_host", "dashboard_host", "enclave_project", "enclave_config")


def get_config_path() -> Path:
    override = os.environ.get(ENV_CONFIG_FILE)
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_DIR / CONFIG_FILE


def canonicalize_scope(scope: str) -> str:
    """Resolve ``~``, ``.``, ``..`` and symlinks into an absolute path."""
    return os.path.realpath(os.path.expanduser(scope))


def _record_to_dict(record: TokenRecord) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for name in _RECORD_FIELDS:
        value = getattr(record, name)
        if value:
            data[name] = value
    # only persist verify_tls when it differs from the default
    if not record.verify_tls:
        data["verify_tls"] = False
    return data


def _record_from_dict(scope: str, data: Any) -> TokenRecord:
    if not isinstance(data, dict):
        raise StoreError(f"Invalid entry for scope {scope!r}: expected an object")
    values: dict[str, Any] = {}
    for name in _RECORD_FIELDS:
        value = data.get(name)
        if value is None:
            continue
        if not isinstance(value, str):
            raise StoreError(f"Invalid {name!r} for scope {scope!r}: expected a string")
        values[name] = value
    verify_tls = data.get("verify_tls", True)
    if isinstance(verify_tls, str):
        verify_tls = parse_bool(verify_tls, True)
    elif not isinstance(verify_tls, bool):
        raise StoreError(f"Invalid 'verify_tls' for scope {scope!r}: expected a boolean")
    return TokenRecord(verify_tls=verify_tls, **values)


class ScopeStore:
    """In-memory mapping of canonical scope to TokenRecord.

    Lookups are exact: a token scoped to ``/a`` does not satisfy ``/a/b``.
    """

    def __init__(
        self,
        entries: dict[str, TokenRecord] | None = None,
        *,
        path: Path | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.path = path
        self._entries: dict[str, TokenRecord] = {}
        self._extra = dict(extra or {})
        self.dirty = False
        for scope, record in (entries or {}).items():
            self._entries[canonicalize_scope(scope)] = record

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, scope: str) -> bool:
        return canonicalize_scope(scope) in self._entries

    def get(self, scope: str) -> TokenRecord | None:
        return self._entries.get(canonicalize_scope(scope))

    def set(self, scope: str, record: TokenRecord) -> None:
        self._entries[canonicalize_scope(scope)] = record
        self.dirty = True

    def update(self, scope: str, **changes: Any) -> TokenRecord:
        """Replace selected fields of an existing record."""
        key = canonicalize_scope(scope)
        if key not in self._entries:
            raise KeyError(key)
        record = replace(self._entries[key], **changes)
        self._entries[key] = record
        self.dirty = True
        return record

    def delete(self, scope: str) -> None:
        if self._entries.pop(canonicalize_scope(scope), None) is not None:
            self.dirty = True

    def all(self) -> list[tuple[str, TokenRecord]]:
        return sorted(self._entries.items())

    def scopes_with_token(self, token: str) -> list[str]:
        if not token:
            return []
        return [scope for scope, record in self.all() if record.token == token]

    def to_dict(self) -> dict[str, Any]:
        data = dict(self._extra)
        data[SCOPED_KEY] = {scope: _record_to_dict(record) for scope, record in self.all()}
        return data

    @classmethod
    def from_dict(cls, data: Any, *, path: Path | None = None) -> ScopeStore:
        if not isinstance(data, dict):
            raise StoreError("Invalid config file: expected a JSON object")
        scoped = data.get(SCOPED_KEY, {})
        if not isinstance(scoped, dict):
            raise StoreError(f"Invalid config file: {SCOPED_KEY!r} must be an object")
        entries = {scope: _record_from_dict(scope, entry) for scope, entry in scoped.items()}
        extra = {k: v for k, v in data.items() if k != SCOPED_KEY}
        return cls(entries, path=path, extra=extra)


def load_store(path: Path | None = None) -> ScopeStore:
    """Load the store, returning an empty one if the file does not exist.

    A file that cannot be parsed is rejected rather than treated as empty, so
    a damaged store is never silently overwritten.
    """
    config_path = path or get_config_path()
    if not config_path.exists():
        return ScopeStore(path=config_path)
    try:
        data = json.loads(config_path.read_text())
    except json.JSONDecodeError as e:
        raise StoreError(f"Config file {config_path} is corrupt: {e}") from e
    except OSError as e:
        raise StoreError(f"Unable to read config file {config_path}: {e}") from e
    return ScopeStore.from_dict(data, path=config_path)


def save_store(store: ScopeStore, path: Path | None = None) -> None:
    """Save the store with atomic write and restrictive permissions.

    - Directory: 0700 (owner read/write/execute only)
    - File: 0600 (owner read/write only)
    - Atomic: writes to temp file in same dir, then os.replace()
    """
    config_path = path or store.path or get_config_path()
    config_dir = config_path.parent
    content = json.dumps(store.to_dict(), indent=2, sort_keys=True) + "\n"

    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(config_dir, 0o700)
        fd, tmp_path = tempfile.mkstemp(dir=config_dir, prefix=".config_", suffix=".tmp")
    except OSError as e:
        raise StoreError(f"Unable to write config file {config_path}: {e}") from e

    try:
        with os.fdopen(fd, "w") as f:
            f.write(content)
        os.chmod(tmp_path, 0o600)
        os.replace(tmp_path, config_path)
    except BaseException as e:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        if isinstance(e, OSError):
            raise StoreError(f"Unable to write config file {config_path}: {e}") from e
        raise

    store.path = config_path
    store.dirty = False
    logger.debug("Saved %d scoped entries to %s", len(store), config_path)


@contextmanager
def locked_store(path: Path | None = None, timeout: float = LOCK_TIMEOUT_SECONDS) -> Iterator[ScopeStore]:
    """Hold an exclusive lock on the store for the duration of a command.

    The store is saved only when the body exits cleanly and changed something.
    """
    config_path = path or get_config_path()
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StoreError(f"Unable to create config directory {config_path.parent}: {e}") from e

    lock = FileLock(f"{config_path}{LOCK_SUFFIX}", timeout=timeout)
    try:
        lock.acquire()
    except Timeout as e:
        raise StoreError(f"Timed out waiting for lock on {config_path}; is another keyscope command running?") from e

    try:
        store = load_store(config_path)
        yield store
        if store.dirty:
            save_store(store, config_path)
    finally:
        lock.release()
