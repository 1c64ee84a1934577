"""
tierguard Core — Zone Authorization Engine

Submodules:
- version   : Version constants (single source of truth)
- types     : Shared enums, dataclasses, exceptions
- config    : UnifiedConfig with environment overrides
- patterns  : Zone and nuclear pattern tables
- access/   : Zone classifier, nuclear guard, tier matrix, authorization facade
- crypto/   : Passphrase hashing, HMAC tokens, terminal gate
- trust/    : Bypass authenticator, state store, durations
- resources/: Authentication backoff, operation-rate cap
- audit/    : Security logger, integrity verifier

Quick imports:
    from tierguard.core import AuthorizationFacade, BypassAuthenticator
    from tierguard.core import Zone, Tier, Decision
"""

from tierguard.core.version import __version__, TOKEN_VERSION, LEGACY_TOKEN_VERSION

from tierguard.core.types import (
    # Exceptions
    SecurityError,
    NotConfiguredError,
    TTYRequiredError,
    PassphraseError,
    AuthenticationError,
    RateLimitedError,
    PromptTimeoutError,
    CryptoUnavailableError,
    IntegrityError,
    # Enums
    Zone,
    Tier,
    Decision,
    BypassState,
    AlertSeverity,
    # Dataclasses
    AuthorizationResult,
)

from tierguard.core.config import UnifiedConfig
from tierguard.core.access import AuthorizationFacade, ZoneClassifier, NuclearGuard
from tierguard.core.trust import BypassAuthenticator, BypassStateStore

__all__ = [
    '__version__', 'TOKEN_VERSION', 'LEGACY_TOKEN_VERSION',
    'SecurityError', 'NotConfiguredError', 'TTYRequiredError', 'PassphraseError',
    'AuthenticationError', 'RateLimitedError', 'PromptTimeoutError',
    'CryptoUnavailableError', 'IntegrityError',
    'Zone', 'Tier', 'Decision', 'BypassState', 'AlertSeverity',
    'AuthorizationResult',
    'UnifiedConfig',
    'AuthorizationFacade', 'ZoneClassifier', 'NuclearGuard',
    'BypassAuthenticator', 'BypassStateStore',
]
