#!/usr/bin/env python3
"""
tierguard Core Trust — Bypass State Store
===========================================
The only code that touches the bypass state files. Everything else goes
through this narrow, typed API.

Directory (mode 0700):
    passphrase.hash         salt:digest
    active.token            v2 version:created:expires:hmac  (v1 read-only)
    failures.json           {"count": N, "last_failure": epoch}
    last_activity           epoch
    zone-rate-limit.state   window_start:count
    inactivity.timeout      seconds (per-activation idle limit)
    checksums.sha256        integrity manifest

Writes are atomic (temp file in the same directory, fsync, rename) with
mode 0600. Read-modify-write sequences hold an advisory flock on .lock.
A file that exists but does not parse is deleted and reported as absent.

Import from: tierguard.core.trust.state_store
"""

import fcntl
import json
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional

from tierguard.core.constants import (
    ACTIVITY_FILE, CHECKSUMS_FILE, DIR_MODE, FAILURES_FILE, FILE_MODE,
    INACTIVITY_LIMIT_FILE, LOCK_FILE, PASSPHRASE_FILE, RATE_WINDOW_FILE, TOKEN_FILE,
)
from tierguard.core.types import (
    BypassToken, FailureRecord, PassphraseRecord, RateWindow, StateCorruptionError,
)

__all__ = ['BypassStateStore']

logger = logging.getLogger("tierguard.core.trust.state_store")


class BypassStateStore:
    """Typed repository over the per-user bypass directory.

    Usage:
        store = BypassStateStore(config.bypass_dir)
        with store.locked():
            failures = store.read_failures()
            failures.count += 1
            store.write_failures(failures)
    """

    def __init__(self, directory):
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    @property
    def manifest_path(self) -> Path:
        return self._dir / CHECKSUMS_FILE

    def path_for(self, name: str) -> Path:
        return self._dir / name

    # -------------------------------------------------------------------------
    # Low-level file handling
    # -------------------------------------------------------------------------

    def ensure_dir(self) -> None:
        """Create the directory and tighten its mode to owner-only."""
        self._dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self._dir, DIR_MODE)

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Exclusive advisory lock across processes for read-modify-write."""
        self.ensure_dir()
        fd = os.open(self._dir / LOCK_FILE, os.O_RDWR | os.O_CREAT, FILE_MODE)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
            try:
                yield
            finally:
                fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

    def _read_text(self, name: str) -> Optional[str]:
        path = self._dir / name
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot read %s: %s", path, e)
            return None

    def _write_text(self, name: str, text: str) -> None:
        """Atomically replace a state file. Errors propagate."""
        self.ensure_dir()
        path = self._dir / name
        fd, tmp_name = tempfile.mkstemp(prefix=f".{name}.", suffix='.tmp', dir=str(self._dir))
        try:
            os.fchmod(fd, FILE_MODE)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    def _delete(self, name: str) -> bool:
        try:
            (self._dir / name).unlink()
            return True
        except FileNotFoundError:
            return False

    def _discard_corrupt(self, name: str, error: Exception) -> None:
        logger.warning("Discarding corrupt state file %s: %s", name, error)
        try:
            self._delete(name)
        except OSError as e:
            logger.error("Cannot remove corrupt state file %s: %s", name, e)

    # -------------------------------------------------------------------------
    # Passphrase record
    # -------------------------------------------------------------------------

    def read_record(self) -> Optional[PassphraseRecord]:
        text = self._read_text(PASSPHRASE_FILE)
        if text is None:
            return None
        try:
            return PassphraseRecord.from_line(text)
        except StateCorruptionError as e:
            self._discard_corrupt(PASSPHRASE_FILE, e)
            return None

    def write_record(self, record: PassphraseRecord) -> None:
        self._write_text(PASSPHRASE_FILE, record.to_line() + '\n')

    # -------------------------------------------------------------------------
    # Active token
    # -------------------------------------------------------------------------

    def has_token(self) -> bool:
        return (self._dir / TOKEN_FILE).exists()

    def read_token(self) -> Optional[BypassToken]:
        text = self._read_text(TOKEN_FILE)
        if text is None:
            return None
        try:
            return BypassToken.from_line(text)
        except StateCorruptionError as e:
            self._discard_corrupt(TOKEN_FILE, e)
            return None

    def write_token(self, token: BypassToken) -> None:
        self._write_text(TOKEN_FILE, token.to_line() + '\n')

    def delete_token(self) -> bool:
        return self._delete(TOKEN_FILE)

    # -------------------------------------------------------------------------
    # Activity timestamp
    # -------------------------------------------------------------------------

    def read_activity(self) -> Optional[int]:
        text = self._read_text(ACTIVITY_FILE)
        if text is None:
            return None
        try:
            return int(text.strip())
        except ValueError as e:
            self._discard_corrupt(ACTIVITY_FILE, e)
            return None

    def touch_activity(self, now: int) -> None:
        self._write_text(ACTIVITY_FILE, f"{int(now)}\n")

    def delete_activity(self) -> bool:
        return self._delete(ACTIVITY_FILE)

    # -------------------------------------------------------------------------
    # Failure counter
    # -------------------------------------------------------------------------

    def read_failures(self) -> FailureRecord:
        """Current failure record; a missing or corrupt file counts as zero."""
        text = self._read_text(FAILURES_FILE)
        if text is None:
            return FailureRecord()
        try:
            return FailureRecord.from_dict(json.loads(text))
        except (ValueError, StateCorruptionError) as e:
            self._discard_corrupt(FAILURES_FILE, e)
            return FailureRecord()

    def write_failures(self, record: FailureRecord) -> None:
        self._write_text(FAILURES_FILE, json.dumps(record.to_dict()) + '\n')

    def delete_failures(self) -> bool:
        return self._delete(FAILURES_FILE)

    # -------------------------------------------------------------------------
    # Operation rate window
    # -------------------------------------------------------------------------

    def read_rate_window(self) -> Optional[RateWindow]:
        text = self._read_text(RATE_WINDOW_FILE)
        if text is None:
            return None
        try:
            return RateWindow.from_line(text)
        except StateCorruptionError as e:
            self._discard_corrupt(RATE_WINDOW_FILE, e)
            return None

    def write_rate_window(self, window: RateWindow) -> None:
        self._write_text(RATE_WINDOW_FILE, window.to_line() + '\n')

    def delete_rate_window(self) -> bool:
        return self._delete(RATE_WINDOW_FILE)

    # -------------------------------------------------------------------------
    # Per-activation inactivity limit
    # -------------------------------------------------------------------------

    def read_inactivity_limit(self, ceiling: int) -> Optional[int]:
        """Stored idle limit clamped to ceiling, or None if unset."""
        text = self._read_text(INACTIVITY_LIMIT_FILE)
        if text is None:
            return None
        try:
            value = int(text.strip())
        except ValueError as e:
            self._discard_corrupt(INACTIVITY_LIMIT_FILE, e)
            return None
        if value <= 0:
            self._discard_corrupt(INACTIVITY_LIMIT_FILE, ValueError(f"non-positive limit {value}"))
            return None
        return min(value, ceiling)

    def write_inactivity_limit(self, seconds: int, ceiling: int) -> int:
        value = max(1, min(int(seconds), ceiling))
        self._write_text(INACTIVITY_LIMIT_FILE, f"{value}\n")
        return value

    def delete_inactivity_limit(self) -> bool:
        return self._delete(INACTIVITY_LIMIT_FILE)

    # -------------------------------------------------------------------------
    # Integrity manifest
    # -------------------------------------------------------------------------

    def write_manifest(self, lines: Iterable[str]) -> None:
        """Replace the checksum manifest; each line ends with a newline."""
        self._write_text(CHECKSUMS_FILE, ''.join(lines))
