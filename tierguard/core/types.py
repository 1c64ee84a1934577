"""
tierguard Core Types — Shared enums, dataclasses, and exceptions.

This module centralizes the type definitions used across the engine.
The state records carry their own on-disk codecs (to_line / from_line,
to_dict / from_dict); cryptography lives in tierguard.core.crypto.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Optional, Pattern, Tuple

from tierguard.core.constants import DIGEST_HEX_LENGTH, SALT_BYTES
from tierguard.core.version import LEGACY_TOKEN_VERSION, TOKEN_VERSION


# =============================================================================
# EXCEPTIONS
# =============================================================================

class SecurityError(Exception):
    """Base exception for all tierguard security errors."""
    pass


class NotConfiguredError(SecurityError):
    """Raised when activation is attempted before a passphrase is enrolled."""
    pass


class TTYRequiredError(SecurityError):
    """Raised when credential entry is attempted without a real terminal."""
    pass


class PassphraseError(SecurityError):
    """Raised when an enrollment passphrase is rejected."""
    pass


class AuthenticationError(SecurityError):
    """Raised when a passphrase does not match the enrolled record."""

    def __init__(self, message: str, failures: int = 0):
        super().__init__(message)
        self.failures = failures


class RateLimitedError(SecurityError):
    """Raised while an authentication lockout is in force."""

    def __init__(self, message: str, remaining: int = 0, permanent: bool = False):
        super().__init__(message)
        self.remaining = remaining
        self.permanent = permanent


class PromptTimeoutError(SecurityError):
    """Raised when the interactive passphrase prompt is left unanswered."""
    pass


class CryptoUnavailableError(SecurityError):
    """Raised when SHA-512 or HMAC-SHA512 cannot be used. Always fatal."""
    pass


class IntegrityError(SecurityError):
    """Raised when engine files do not match the checksum manifest."""
    pass


class StateCorruptionError(Exception):
    """A state file exists but cannot be parsed."""
    pass


# =============================================================================
# ENUMS
# =============================================================================

class Zone(Enum):
    """Security zone of a filesystem path."""
    SELF = "SELF"                # The engine's own code, data and hook entrypoint
    SENSITIVE = "SENSITIVE"      # Credentials and keys
    CONFIG = "CONFIG"            # User configuration
    SYSTEM = "SYSTEM"            # Operating system files
    DEVELOPMENT = "DEVELOPMENT"  # The user's project work area
    GENERAL = "GENERAL"          # Everything else


class Tier(IntEnum):
    """Privilege tier. Ordered: a higher tier satisfies every lower one."""
    NORMAL = 0       # No auth required
    BYPASS = 1       # Passphrase
    SUPERADMIN = 2   # Stronger external authenticator
    NUCLEAR = 3      # Never unlockable; only produced by the nuclear guard

    @property
    def label(self) -> str:
        return f"Tier {self.value} ({self.name})"


class Decision(IntEnum):
    """Authorization outcome. The value is the process exit code."""
    ALLOW = 0
    WARN = 1
    TIER1_BLOCKED = 2
    TIER2_BLOCKED = 3
    NUCLEAR_BLOCKED = 4

    @property
    def is_blocked(self) -> bool:
        return self >= Decision.TIER1_BLOCKED


class BypassState(Enum):
    """Bypass authenticator state as reported to the operator."""
    UNCONFIGURED = "UNCONFIGURED"
    CONFIGURED_LOCKED = "CONFIGURED-LOCKED"
    ACTIVE = "ACTIVE"


class AlertSeverity(Enum):
    """Severity levels for audit events."""
    INFO = "info"
    WARNING = "warning"
    HIGH = "high"
    CRITICAL = "critical"


# =============================================================================
# PERSISTED RECORDS
# =============================================================================

_RECORD_RE = re.compile(r'^([0-9a-f]{%d}):([0-9a-f]{%d})$' % (SALT_BYTES * 2, DIGEST_HEX_LENGTH))
_TOKEN_V2_RE = re.compile(r'^(\d+):(\d+):(\d+):([0-9a-f]{%d})$' % DIGEST_HEX_LENGTH)
_TOKEN_V1_RE = re.compile(r'^(\d+):(\d+):([0-9a-f]{%d})$' % DIGEST_HEX_LENGTH)
_RATE_RE = re.compile(r'^(\d+):(\d+)$')


@dataclass(frozen=True)
class PassphraseRecord:
    """Salted SHA-512 of the bypass passphrase. Persisted as ``salt:digest``."""
    salt: str
    digest: str

    def to_line(self) -> str:
        return f"{self.salt}:{self.digest}"

    @classmethod
    def from_line(cls, line: str) -> 'PassphraseRecord':
        match = _RECORD_RE.match(line.strip())
        if not match:
            raise StateCorruptionError("passphrase record has an invalid format")
        return cls(salt=match.group(1), digest=match.group(2))


@dataclass(frozen=True)
class BypassToken:
    """An HMAC-signed activation token.

    v2: ``version:created:expires:signature``
    v1: ``version:created:signature`` (legacy, no absolute expiry)
    """
    version: int
    created: int
    expires: Optional[int]
    signature: str

    @property
    def is_legacy(self) -> bool:
        return self.expires is None

    @property
    def signed_message(self) -> str:
        """The exact text covered by the signature."""
        if self.expires is None:
            return f"{self.version}:{self.created}"
        return f"{self.version}:{self.created}:{self.expires}"

    def to_line(self) -> str:
        return f"{self.signed_message}:{self.signature}"

    @classmethod
    def from_line(cls, line: str) -> 'BypassToken':
        text = line.strip()
        match = _TOKEN_V2_RE.match(text)
        if match:
            version = int(match.group(1))
            if version != TOKEN_VERSION:
                raise StateCorruptionError(f"unexpected v2 token version {version}")
            return cls(version=version, created=int(match.group(2)),
                       expires=int(match.group(3)), signature=match.group(4))
        match = _TOKEN_V1_RE.match(text)
        if match:
            version = int(match.group(1))
            if version != LEGACY_TOKEN_VERSION:
                raise StateCorruptionError(f"unexpected v1 token version {version}")
            return cls(version=version, created=int(match.group(2)),
                       expires=None, signature=match.group(3))
        raise StateCorruptionError("token has an invalid format")


@dataclass
class FailureRecord:
    """Consecutive failed verifications. Reset to zero on success."""
    count: int = 0
    last_failure: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {'count': self.count, 'last_failure': self.last_failure}

    @classmethod
    def from_dict(cls, data: Any) -> 'FailureRecord':
        if not isinstance(data, dict):
            raise StateCorruptionError("failure record is not an object")
        count = data.get('count')
        last = data.get('last_failure')
        if not isinstance(count, int) or not isinstance(last, int) or count < 0:
            raise StateCorruptionError("failure record has invalid fields")
        return cls(count=count, last_failure=last)


@dataclass
class RateWindow:
    """Fixed operation-count window used while bypass is active."""
    window_start: int
    count: int = 0

    def to_line(self) -> str:
        return f"{self.window_start}:{self.count}"

    @classmethod
    def from_line(cls, line: str) -> 'RateWindow':
        match = _RATE_RE.match(line.strip())
        if not match:
            raise StateCorruptionError("rate window has an invalid format")
        return cls(window_start=int(match.group(1)), count=int(match.group(2)))


# =============================================================================
# RULE TABLES AND RESULTS
# =============================================================================

@dataclass(frozen=True)
class ZoneRule:
    """One row of the compiled zone table: a zone, its tier, its patterns."""
    zone: Zone
    tier: Tier
    patterns: Tuple[Pattern, ...]

    def matches(self, path: str) -> bool:
        return any(p.search(path) for p in self.patterns)


@dataclass
class AuthorizationResult:
    """Outcome of one authorization check."""
    decision: Decision
    zone: Zone
    required_tier: Tier
    auth_level: Tier
    path: str = ""
    reason: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def allowed(self) -> bool:
        return not self.decision.is_blocked

    def to_dict(self) -> Dict[str, Any]:
        return {
            'decision': self.decision.name,
            'code': int(self.decision),
            'zone': self.zone.value,
            'required_tier': self.required_tier.name,
            'auth_level': self.auth_level.name,
            'path': self.path,
            'reason': self.reason,
            **self.details,
        }


__all__ = [
    # Exceptions
    'SecurityError', 'NotConfiguredError', 'TTYRequiredError', 'PassphraseError',
    'AuthenticationError', 'RateLimitedError', 'PromptTimeoutError',
    'CryptoUnavailableError', 'IntegrityError', 'StateCorruptionError',
    # Enums
    'Zone', 'Tier', 'Decision', 'BypassState', 'AlertSeverity',
    # Records
    'PassphraseRecord', 'BypassToken', 'FailureRecord', 'RateWindow',
    'ZoneRule', 'AuthorizationResult',
]
