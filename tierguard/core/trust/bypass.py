#!/usr/bin/env python3
"""
tierguard Core Trust — Bypass Authenticator
=============================================
Tier 1 temporary privilege elevation.

State machine:
    UNCONFIGURED ──enroll──▶ CONFIGURED-LOCKED ──activate──▶ ACTIVE
                                    ▲                          │
                                    └──── deactivate / expiry ─┘

- Enroll and activate read the passphrase from the controlling terminal
  only. Without a real TTY neither is reachable, which is what keeps the
  supervised agent from elevating itself.
- Activation mints an HMAC-SHA512 token keyed with the stored digest.
- Every is_active() call re-verifies the token and applies the safety
  dead-bolt: absolute expiry (created + max duration) and rolling
  inactivity (now - last activity > idle limit). Either one deactivates.
- Invalid or malformed tokens are deleted and reported as inactive.
- Failed verifications feed the FailureBackoff lockout.

Import from: tierguard.core.trust.bypass
"""

import hmac
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from tierguard.core.config import UnifiedConfig
from tierguard.core.constants import PERMANENT_LOCKOUT
from tierguard.core.crypto.passphrase import (
    hash_passphrase, require_primitives, validate_passphrase, verify_passphrase,
)
from tierguard.core.crypto.terminal import has_interactive_tty, read_passphrase
from tierguard.core.crypto.tokens import mint_token, verify_signature
from tierguard.core.resources.limiter import FailureBackoff, OperationRateLimiter, lockout_for
from tierguard.core.trust.state_store import BypassStateStore
from tierguard.core.types import (
    AlertSeverity, AuthenticationError, BypassState, BypassToken, CryptoUnavailableError,
    NotConfiguredError, PassphraseError, PassphraseRecord, PromptTimeoutError,
    RateLimitedError, Tier, TTYRequiredError,
)

__all__ = ['AuthProvider', 'BypassAuthenticator']

logger = logging.getLogger("tierguard.core.trust.bypass")


class AuthProvider(ABC):
    """Something that can grant an authentication tier.

    The authorization facade probes providers highest tier first; the
    first active one sets the current auth level.
    """

    tier: Tier = Tier.NORMAL
    name: str = ""

    @abstractmethod
    def is_active(self) -> bool:
        ...

    def record_operation(self) -> bool:
        """Account for one operation allowed under this provider.

        Returns False when the provider refuses further operations for now.
        """
        return True


class BypassAuthenticator(AuthProvider):
    """Passphrase-gated Tier 1 elevation with the safety dead-bolt.

    Args:
        config: Engine configuration (directories, timeouts, rate cap).
        store: State repository; defaults to one over config.bypass_dir.
        audit: Optional SecurityLogger for the audit trail.
        clock: Returns epoch seconds. Injected by tests.
        prompt: ``prompt(message, timeout) -> str`` for masked input.
        tty_check: Returns True when a real terminal is attached.
    """

    tier = Tier.BYPASS
    name = "bypass"

    def __init__(self, config: Optional[UnifiedConfig] = None,
                 store: Optional[BypassStateStore] = None,
                 audit=None,
                 clock: Optional[Callable[[], float]] = None,
                 prompt: Optional[Callable[[str, float], str]] = None,
                 tty_check: Optional[Callable[[], bool]] = None):
        self.config = config or UnifiedConfig.from_env()
        self.store = store or BypassStateStore(self.config.bypass_dir)
        self.audit = audit
        self._clock = clock or time.time
        self._prompt = prompt or read_passphrase
        self._tty_check = tty_check or has_interactive_tty

        self.backoff = FailureBackoff(self.store, clock=self._clock)
        self.rate_limiter = OperationRateLimiter(
            self.store,
            limit=self.config.operation_rate_limit,
            window=self.config.operation_rate_window,
            clock=self._clock,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _now(self) -> int:
        return int(self._clock())

    def _audit(self, event: str, severity: AlertSeverity, details: Dict = None) -> None:
        if self.audit is not None:
            self.audit.log_event(event, severity, details or {})

    def _require_tty(self, action: str) -> None:
        if not self._tty_check():
            logger.warning("%s refused: no interactive terminal", action)
            raise TTYRequiredError(
                f"{action} requires an interactive terminal. "
                "Run this command yourself, not through the agent or a pipe."
            )

    def _ask(self, message: str) -> str:
        return self._prompt(message, self.config.prompt_timeout)

    def _record_failure(self, reason: str) -> int:
        record = self.backoff.record_failure()
        lockout = lockout_for(record.count)
        self._audit("BYPASS_AUTH_FAILED", AlertSeverity.HIGH, {
            'reason': reason,
            'failures': record.count,
            'lockout': 'permanent' if lockout == PERMANENT_LOCKOUT else lockout,
        })
        return record.count

    def _verify_interactively(self, record: PassphraseRecord, message: str) -> None:
        """Prompt once and verify, honouring the failure lockout."""
        try:
            self.backoff.check()
        except RateLimitedError as e:
            self._audit("BYPASS_LOCKED_OUT", AlertSeverity.WARNING, {
                'remaining': e.remaining, 'permanent': e.permanent,
            })
            raise

        try:
            candidate = self._ask(message)
        except PromptTimeoutError:
            self._record_failure("prompt_timeout")
            raise

        if not verify_passphrase(candidate, record):
            failures = self._record_failure("wrong_passphrase")
            raise AuthenticationError("Incorrect passphrase", failures=failures)

    def _clear_session(self) -> bool:
        had_token = self.store.delete_token()
        self.store.delete_activity()
        self.store.delete_inactivity_limit()
        self.rate_limiter.reset()
        return had_token

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def is_configured(self) -> bool:
        return self.store.read_record() is not None

    def state(self) -> BypassState:
        if not self.is_configured():
            return BypassState.UNCONFIGURED
        if self.is_active():
            return BypassState.ACTIVE
        return BypassState.CONFIGURED_LOCKED

    def inactivity_timeout(self) -> int:
        """Idle limit for the current session, never above the configured one."""
        ceiling = self.config.bypass_inactivity_timeout
        stored = self.store.read_inactivity_limit(ceiling)
        return ceiling if stored is None else stored

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def enroll(self) -> PassphraseRecord:
        """Set (or change) the bypass passphrase.

        Changing an existing passphrase first requires the current one.
        Re-enrolling invalidates every outstanding token.
        """
        self._require_tty("Passphrase setup")
        require_primitives()

        existing = self.store.read_record()
        if existing is not None:
            self._verify_interactively(existing, "Current passphrase: ")

        passphrase = self._ask("New bypass passphrase: ")
        validate_passphrase(passphrase)
        confirm = self._ask("Confirm passphrase: ")
        if not hmac.compare_digest(passphrase.encode('utf-8'), confirm.encode('utf-8')):
            raise PassphraseError("Passphrases do not match")

        record = hash_passphrase(passphrase)
        self.store.ensure_dir()
        self.store.write_record(record)
        self._clear_session()
        self.backoff.reset()

        logger.info("Bypass passphrase %s", "changed" if existing else "configured")
        self._audit("BYPASS_ENROLLED", AlertSeverity.INFO, {'changed': existing is not None})
        return record

    def activate(self, duration: Optional[int] = None,
                 inactivity: Optional[int] = None) -> BypassToken:
        """Verify the passphrase at the terminal and mint a session token.

        Args:
            duration: Absolute lifetime in seconds (default: config max).
            inactivity: Idle limit in seconds, clamped to the configured one.

        Raises:
            TTYRequiredError, NotConfiguredError, RateLimitedError,
            AuthenticationError, PromptTimeoutError, CryptoUnavailableError
        """
        self._require_tty("Bypass activation")
        require_primitives()

        max_duration = self.config.bypass_max_duration if duration is None else int(duration)
        if max_duration <= 0:
            raise ValueError("Bypass duration must be positive")
        if inactivity is not None and int(inactivity) <= 0:
            raise ValueError("Inactivity timeout must be positive")

        record = self.store.read_record()
        if record is None:
            raise NotConfiguredError(
                "Bypass is not configured. Run 'tierguard bypass setup' first."
            )

        self._verify_interactively(record, "Bypass passphrase: ")

        now = self._now()
        token = mint_token(record, now, max_duration)
        self.store.write_token(token)
        self.store.touch_activity(now)
        if inactivity is None:
            self.store.delete_inactivity_limit()
            idle = self.config.bypass_inactivity_timeout
        else:
            idle = self.store.write_inactivity_limit(int(inactivity),
                                                     self.config.bypass_inactivity_timeout)
        self.rate_limiter.reset()
        self.backoff.reset()

        logger.info("Bypass activated (max %ds, idle %ds)", max_duration, idle)
        self._audit("BYPASS_ACTIVATED", AlertSeverity.HIGH, {
            'expires': token.expires, 'max_duration': max_duration, 'inactivity': idle,
        })
        return token

    def deactivate(self, reason: str = "manual") -> bool:
        """Relock. No credential is needed. Returns True if a token existed."""
        had_token = self._clear_session()
        if had_token or reason != "manual":
            logger.info("Bypass deactivated (%s)", reason)
            self._audit("BYPASS_DEACTIVATED", AlertSeverity.INFO, {'reason': reason})
        return had_token

    def reset_lockout(self) -> None:
        """Clear the failure counter, including a permanent lockout."""
        self._require_tty("Lockout reset")
        self.backoff.reset()
        logger.info("Bypass failure lockout reset")
        self._audit("BYPASS_LOCKOUT_RESET", AlertSeverity.WARNING)

    # -------------------------------------------------------------------------
    # Queries (never raise on bad state; resolve to locked)
    # -------------------------------------------------------------------------

    def is_active(self) -> bool:
        if not self.store.has_token():
            return False

        try:
            require_primitives()
        except CryptoUnavailableError as e:
            logger.error("Treating bypass as inactive: %s", e)
            return False

        record = self.store.read_record()
        token = self.store.read_token()
        if record is None or token is None or not verify_signature(token, record):
            logger.warning("Invalid bypass token removed")
            self.deactivate(reason="invalid_token")
            return False

        now = self._now()
        if token.expires is not None and now > token.expires:
            logger.warning("Safety dead-bolt: bypass expired (max duration reached)")
            self.deactivate(reason="expired")
            return False

        last_activity = self.store.read_activity()
        idle_limit = self.inactivity_timeout()
        if last_activity is None or now - last_activity > idle_limit:
            logger.warning("Safety dead-bolt: bypass deactivated after inactivity")
            self.deactivate(reason="inactivity")
            return False

        return True

    def touch(self) -> None:
        """Refresh the inactivity clock."""
        self.store.touch_activity(self._now())

    def record_operation(self) -> bool:
        """Count one bypass-covered operation against the rate cap.

        Refreshes the inactivity clock when allowed.
        """
        if not self.rate_limiter.check_and_count():
            count, limit, _ = self.rate_limiter.stats()
            self._audit("OPERATION_RATE_LIMITED", AlertSeverity.WARNING, {
                'count': count, 'limit': limit,
            })
            return False
        self.touch()
        return True

    def remaining_seconds(self) -> int:
        """Seconds to absolute expiry; -1 for legacy tokens; 0 if inactive."""
        if not self.is_active():
            return 0
        token = self.store.read_token()
        if token is None:
            return 0
        if token.is_legacy:
            return -1
        return max(0, token.expires - self._now())

    def idle_seconds(self) -> Optional[int]:
        last_activity = self.store.read_activity()
        if last_activity is None:
            return None
        return max(0, self._now() - last_activity)

    def status(self) -> Dict[str, Any]:
        state = self.state()
        failures = self.store.read_failures()
        count, limit, window_left = self.rate_limiter.stats()
        info: Dict[str, Any] = {
            'state': state.value,
            'configured': state is not BypassState.UNCONFIGURED,
            'active': state is BypassState.ACTIVE,
            'failures': failures.count,
            'lockout_remaining': self.backoff.remaining(),
            'max_duration': self.config.bypass_max_duration,
            'inactivity_timeout': self.inactivity_timeout(),
        }
        if state is BypassState.ACTIVE:
            info.update({
                'remaining': self.remaining_seconds(),
                'idle': self.idle_seconds(),
                'operations': count,
                'operation_limit': limit,
                'window_remaining': window_left,
            })
        return info
