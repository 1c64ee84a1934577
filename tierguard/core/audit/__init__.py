"""
Audit Layer — Logging and integrity.

Classes:
- SecurityLogger: Tamper-evident logging with chain hashing
- IntegrityVerifier: SHA-256 checksum manifest of tierguard's own files
"""

from tierguard.core.audit.logger import SecurityLogger, verify_chain
from tierguard.core.audit.integrity import IntegrityVerifier

__all__ = [
    'SecurityLogger',
    'verify_chain',
    'IntegrityVerifier',
]
