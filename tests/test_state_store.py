"""
Bypass state store tests: permissions, atomic writes, self-healing reads.

Run with:  pytest tests/test_state_store.py -v
"""

import json
import stat

from tierguard.core.constants import (
    ACTIVITY_FILE, FAILURES_FILE, INACTIVITY_LIMIT_FILE, PASSPHRASE_FILE,
    RATE_WINDOW_FILE, TOKEN_FILE,
)
from tierguard.core.crypto.passphrase import hash_passphrase
from tierguard.core.crypto.tokens import mint_token
from tierguard.core.types import FailureRecord, RateWindow

from conftest import PASSPHRASE, START_TIME


def _mode(path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


class TestPermissions:

    def test_directory_and_file_modes(self, store):
        store.write_record(hash_passphrase(PASSPHRASE))
        assert _mode(store.directory) == 0o700
        assert _mode(store.path_for(PASSPHRASE_FILE)) == 0o600

    def test_no_temporary_files_left(self, store):
        store.write_record(hash_passphrase(PASSPHRASE))
        store.touch_activity(START_TIME)
        store.write_failures(FailureRecord(count=2, last_failure=START_TIME))
        names = sorted(p.name for p in store.directory.iterdir() if not p.name.startswith('.lock'))
        assert names == sorted([PASSPHRASE_FILE, ACTIVITY_FILE, FAILURES_FILE])

    def test_lock_file_created(self, store):
        with store.locked():
            pass
        assert (store.directory / ".lock").exists()


class TestRecords:

    def test_missing_files_read_as_absent(self, store):
        assert store.read_record() is None
        assert store.read_token() is None
        assert store.read_activity() is None
        assert store.read_rate_window() is None
        assert store.read_failures() == FailureRecord()
        assert not store.has_token()

    def test_record_round_trip(self, store):
        record = hash_passphrase(PASSPHRASE)
        store.write_record(record)
        assert store.read_record() == record

    def test_token_round_trip_and_delete(self, store):
        token = mint_token(hash_passphrase(PASSPHRASE), START_TIME, 60)
        store.write_token(token)
        assert store.has_token()
        assert store.read_token() == token
        assert store.delete_token()
        assert not store.delete_token()

    def test_failures_file_is_json(self, store):
        store.write_failures(FailureRecord(count=4, last_failure=START_TIME))
        data = json.loads(store.path_for(FAILURES_FILE).read_text())
        assert data == {"count": 4, "last_failure": START_TIME}

    def test_rate_window_format(self, store):
        store.write_rate_window(RateWindow(window_start=START_TIME, count=7))
        assert store.path_for(RATE_WINDOW_FILE).read_text().strip() == f"{START_TIME}:7"


class TestSelfHealing:

    def test_corrupt_token_is_deleted(self, store):
        store.ensure_dir()
        store.path_for(TOKEN_FILE).write_text("not a token\n")
        assert store.read_token() is None
        assert not store.path_for(TOKEN_FILE).exists()

    def test_corrupt_record_is_deleted(self, store):
        store.ensure_dir()
        store.path_for(PASSPHRASE_FILE).write_text("abc:def\n")
        assert store.read_record() is None
        assert not store.path_for(PASSPHRASE_FILE).exists()

    def test_corrupt_failures_reset_to_zero(self, store):
        store.ensure_dir()
        store.path_for(FAILURES_FILE).write_text("{not json")
        assert store.read_failures() == FailureRecord()
        assert not store.path_for(FAILURES_FILE).exists()

    def test_negative_failure_count_is_corrupt(self, store):
        store.ensure_dir()
        store.path_for(FAILURES_FILE).write_text('{"count": -3, "last_failure": 0}')
        assert store.read_failures() == FailureRecord()

    def test_corrupt_activity(self, store):
        store.ensure_dir()
        store.path_for(ACTIVITY_FILE).write_text("yesterday")
        assert store.read_activity() is None
        assert not store.path_for(ACTIVITY_FILE).exists()


class TestInactivityLimit:

    def test_write_clamps_to_ceiling(self, store):
        assert store.write_inactivity_limit(99999, ceiling=1800) == 1800
        assert store.read_inactivity_limit(ceiling=1800) == 1800

    def test_tampered_value_is_clamped_on_read(self, store):
        store.write_inactivity_limit(600, ceiling=1800)
        store.path_for(INACTIVITY_LIMIT_FILE).write_text("86400\n")
        assert store.read_inactivity_limit(ceiling=1800) == 1800

    def test_non_positive_is_discarded(self, store):
        store.ensure_dir()
        store.path_for(INACTIVITY_LIMIT_FILE).write_text("0\n")
        assert store.read_inactivity_limit(ceiling=1800) is None

    def test_unset(self, store):
        assert store.read_inactivity_limit(ceiling=1800) is None


class TestManifest:

    def test_write_manifest(self, store):
        lines = [f"{'a' * 64}  /opt/tierguard/cli.py\n", f"{'b' * 64}  /opt/tierguard/core/types.py\n"]
        store.write_manifest(lines)
        assert store.manifest_path.read_text() == "".join(lines)
        assert _mode(store.manifest_path) == 0o600

    def test_rewrite_replaces_manifest(self, store):
        store.write_manifest([f"{'a' * 64}  /x\n"])
        store.write_manifest([f"{'c' * 64}  /y\n"])
        assert store.manifest_path.read_text() == f"{'c' * 64}  /y\n"
