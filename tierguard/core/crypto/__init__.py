"""
Crypto Layer — Passphrase hashing, bypass tokens, terminal gate.

Functions:
- hash_passphrase / verify_passphrase: salted SHA-512, constant-time compare
- mint_token / verify_signature: HMAC-SHA512 tokens keyed by the stored digest
- has_interactive_tty / read_passphrase: TTY enforcement and masked input
"""

from tierguard.core.crypto.passphrase import (
    require_primitives,
    hash_passphrase,
    verify_passphrase,
)
from tierguard.core.crypto.tokens import sign, mint_token, verify_signature
from tierguard.core.crypto.terminal import has_interactive_tty, require_tty, read_passphrase

__all__ = [
    'require_primitives',
    'hash_passphrase',
    'verify_passphrase',
    'sign',
    'mint_token',
    'verify_signature',
    'has_interactive_tty',
    'require_tty',
    'read_passphrase',
]
