#!/usr/bin/env python3
"""
tierguard Core Crypto — Passphrase Hashing
============================================
Salted SHA-512 for the bypass passphrase.

    salt   = 16 random bytes, hex-encoded (32 chars)
    digest = SHA-512(salt_hex || passphrase)   (128 hex chars)
    record = "salt:digest"

Verification uses a constant-time comparison so the position of the first
mismatching character does not leak through timing.

Import from: tierguard.core.crypto.passphrase
"""

import hashlib
import hmac
import os
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from tierguard.core.constants import MIN_PASSPHRASE_LENGTH, SALT_BYTES
from tierguard.core.types import CryptoUnavailableError, PassphraseError, PassphraseRecord


def require_primitives() -> None:
    """Fail hard if SHA-512 or HMAC-SHA512 is unavailable.

    Raises:
        CryptoUnavailableError: the engine cannot hash or sign; callers
            must abort and leave the system locked.
    """
    if 'sha512' not in hashlib.algorithms_available:
        raise CryptoUnavailableError("SHA-512 is not available in this interpreter")
    try:
        crypto_hmac.HMAC(b'probe', hashes.SHA512())
    except UnsupportedAlgorithm as e:
        raise CryptoUnavailableError(f"HMAC-SHA512 is not available: {e}") from e


def _digest(salt: str, passphrase: str) -> str:
    return hashlib.sha512(f"{salt}{passphrase}".encode('utf-8')).hexdigest()


def validate_passphrase(passphrase: str) -> None:
    if len(passphrase) < MIN_PASSPHRASE_LENGTH:
        raise PassphraseError(
            f"Passphrase must be at least {MIN_PASSPHRASE_LENGTH} characters"
        )


def hash_passphrase(passphrase: str, salt: Optional[str] = None) -> PassphraseRecord:
    """Create a new salted record. A fresh random salt is used unless given."""
    require_primitives()
    validate_passphrase(passphrase)
    if salt is None:
        salt = os.urandom(SALT_BYTES).hex()
    return PassphraseRecord(salt=salt, digest=_digest(salt, passphrase))


def verify_passphrase(passphrase: str, record: PassphraseRecord) -> bool:
    """Constant-time check of a candidate passphrase against a stored record."""
    require_primitives()
    computed = _digest(record.salt, passphrase)
    return hmac.compare_digest(computed.encode('ascii'), record.digest.encode('ascii'))


__all__ = ['require_primitives', 'validate_passphrase', 'hash_passphrase', 'verify_passphrase']
