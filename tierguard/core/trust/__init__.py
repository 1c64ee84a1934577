"""
Trust Layer — Tier 1 bypass elevation.

Classes:
- AuthProvider: Capability interface probed by the authorization facade
- BypassAuthenticator: Passphrase enrollment, activation, safety dead-bolt
- BypassStateStore: Atomic, locked access to the bypass state files
"""

from tierguard.core.trust.state_store import BypassStateStore
from tierguard.core.trust.bypass import AuthProvider, BypassAuthenticator
from tierguard.core.trust.duration import parse_duration, format_duration

__all__ = [
    'AuthProvider',
    'BypassAuthenticator',
    'BypassStateStore',
    'parse_duration',
    'format_duration',
]
