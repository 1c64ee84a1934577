"""
Crypto layer tests: passphrase hashing, token signing, terminal gate.

Run with:  pytest tests/test_crypto.py -v
"""

import dataclasses
import hashlib
import io
import os
import sys
from unittest.mock import patch

import pytest

from tierguard.core.crypto import passphrase as passphrase_mod
from tierguard.core.crypto.passphrase import (
    hash_passphrase, require_primitives, verify_passphrase,
)
from tierguard.core.crypto.terminal import has_interactive_tty, require_tty
from tierguard.core.crypto.tokens import mint_token, sign, verify_signature
from tierguard.core.types import (
    BypassToken, CryptoUnavailableError, PassphraseError, PassphraseRecord,
    StateCorruptionError, TTYRequiredError,
)
from tierguard.core.version import LEGACY_TOKEN_VERSION, TOKEN_VERSION

from conftest import PASSPHRASE, START_TIME


@pytest.fixture
def record():
    return hash_passphrase(PASSPHRASE)


def _flip_last_hex(text: str) -> str:
    return text[:-1] + format(int(text[-1], 16) ^ 1, 'x')


class TestPassphraseHashing:

    def test_record_shape(self, record):
        assert len(record.salt) == 32
        assert len(record.digest) == 128
        assert PassphraseRecord.from_line(record.to_line()) == record

    def test_digest_is_sha512_of_salt_then_passphrase(self):
        salt = "ab" * 16
        record = hash_passphrase(PASSPHRASE, salt=salt)
        assert record.digest == hashlib.sha512(f"{salt}{PASSPHRASE}".encode()).hexdigest()

    def test_salts_are_random(self):
        assert hash_passphrase(PASSPHRASE).salt != hash_passphrase(PASSPHRASE).salt

    def test_verify(self, record):
        assert verify_passphrase(PASSPHRASE, record)
        assert not verify_passphrase(PASSPHRASE + "x", record)
        assert not verify_passphrase("", record)

    def test_unicode_passphrase(self):
        record = hash_passphrase("pässwört-ñ-日本")
        assert verify_passphrase("pässwört-ñ-日本", record)

    def test_minimum_length(self):
        with pytest.raises(PassphraseError):
            hash_passphrase("short")
        assert hash_passphrase("x" * 8)

    @pytest.mark.parametrize("line", [
        "",
        "nocolon",
        "zz" * 16 + ":" + "a" * 128,
        "a" * 32 + ":" + "a" * 127,
    ])
    def test_malformed_record(self, line):
        with pytest.raises(StateCorruptionError):
            PassphraseRecord.from_line(line)

    def test_missing_sha512_is_fatal(self):
        with patch.object(passphrase_mod.hashlib, 'algorithms_available', set()):
            with pytest.raises(CryptoUnavailableError):
                require_primitives()
            with pytest.raises(CryptoUnavailableError):
                hash_passphrase(PASSPHRASE)


class TestTokens:

    def test_mint_and_verify(self, record):
        token = mint_token(record, START_TIME, 14400)
        assert token.version == TOKEN_VERSION
        assert token.expires == START_TIME + 14400
        assert verify_signature(token, record)

    def test_line_format(self, record):
        token = mint_token(record, START_TIME, 60)
        version, created, expires, signature = token.to_line().split(':')
        assert (int(version), int(created), int(expires)) == (2, START_TIME, START_TIME + 60)
        assert len(signature) == 128
        assert BypassToken.from_line(token.to_line()) == token

    def test_flipped_signature_bit(self, record):
        token = mint_token(record, START_TIME, 60)
        forged = dataclasses.replace(token, signature=_flip_last_hex(token.signature))
        assert not verify_signature(forged, record)

    @pytest.mark.parametrize("field", ["created", "expires"])
    def test_flipped_field_bit(self, record, field):
        token = mint_token(record, START_TIME, 60)
        forged = dataclasses.replace(token, **{field: getattr(token, field) ^ 1})
        assert not verify_signature(forged, record)

    def test_key_is_stored_digest(self, record):
        token = mint_token(record, START_TIME, 60)
        other = hash_passphrase(PASSPHRASE)
        assert not verify_signature(token, other)

    def test_non_hex_signature(self, record):
        token = BypassToken(version=2, created=START_TIME, expires=START_TIME + 1, signature="zz" * 64)
        assert not verify_signature(token, record)

    def test_legacy_v1_still_verifies(self, record):
        message = f"{LEGACY_TOKEN_VERSION}:{START_TIME}"
        token = BypassToken.from_line(f"{message}:{sign(message, record)}")
        assert token.is_legacy
        assert token.expires is None
        assert verify_signature(token, record)

    @pytest.mark.parametrize("line", [
        "",
        "garbage",
        "2:1:2",
        "3:1:2:" + "a" * 128,
        "2:1:" + "a" * 128,
        "1:1:2:" + "a" * 128,
    ])
    def test_malformed_token(self, line):
        with pytest.raises(StateCorruptionError):
            BypassToken.from_line(line)


class TestTerminalGate:

    def test_string_stdin_is_not_a_tty(self, monkeypatch):
        monkeypatch.setattr(sys, 'stdin', io.StringIO("secret\n"))
        assert not has_interactive_tty()

    def test_pipe_is_not_a_tty(self, monkeypatch):
        read_fd, write_fd = os.pipe()
        try:
            with os.fdopen(read_fd, 'r') as pipe_in:
                monkeypatch.setattr(sys, 'stdin', pipe_in)
                assert not has_interactive_tty()
        finally:
            os.close(write_fd)

    def test_require_tty_raises(self, monkeypatch):
        monkeypatch.setattr(sys, 'stdin', io.StringIO(""))
        with pytest.raises(TTYRequiredError):
            require_tty("Bypass activation")
