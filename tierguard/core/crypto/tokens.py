#!/usr/bin/env python3
"""
tierguard Core Crypto — Bypass Tokens
=======================================
HMAC-SHA512 signed activation tokens.

    v2: version:created:expires:signature
    v1: version:created:signature          (legacy, read-only)

The HMAC key is the stored passphrase DIGEST, not the passphrase itself,
so re-enrolling silently invalidates every outstanding token.

Import from: tierguard.core.crypto.tokens
"""

import logging

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from tierguard.core.crypto.passphrase import require_primitives
from tierguard.core.types import BypassToken, PassphraseRecord
from tierguard.core.version import TOKEN_VERSION

logger = logging.getLogger("tierguard.core.crypto.tokens")


def _hmac(record: PassphraseRecord) -> hmac.HMAC:
    return hmac.HMAC(record.digest.encode('ascii'), hashes.SHA512())


def sign(message: str, record: PassphraseRecord) -> str:
    """Hex HMAC-SHA512 of message keyed with the record digest."""
    require_primitives()
    h = _hmac(record)
    h.update(message.encode('utf-8'))
    return h.finalize().hex()


def mint_token(record: PassphraseRecord, created: int, max_duration: int) -> BypassToken:
    """Mint a v2 token valid from created until created + max_duration."""
    expires = created + max_duration
    unsigned = BypassToken(version=TOKEN_VERSION, created=created, expires=expires, signature='')
    return BypassToken(
        version=TOKEN_VERSION,
        created=created,
        expires=expires,
        signature=sign(unsigned.signed_message, record),
    )


def verify_signature(token: BypassToken, record: PassphraseRecord) -> bool:
    """Constant-time signature check. Expiry is NOT checked here."""
    require_primitives()
    try:
        signature = bytes.fromhex(token.signature)
    except ValueError:
        return False
    h = _hmac(record)
    h.update(token.signed_message.encode('utf-8'))
    try:
        h.verify(signature)
    except InvalidSignature:
        logger.warning("Token verification failed: HMAC mismatch")
        return False
    if token.is_legacy:
        logger.warning("Legacy v1 bypass token in use (no absolute expiry); re-activate to upgrade")
    return True


__all__ = ['sign', 'mint_token', 'verify_signature']
