#!/usr/bin/env python3
"""
tierguard Core Access — Authorization Facade
==============================================
The single decision function every external validator calls.

    validator → integrity check → auth level probe
              → nuclear guard (short-circuit) → zone → tier → decision

The auth level comes from injected AuthProvider objects probed highest
tier first (progressive disclosure: SuperAdmin satisfies Bypass checks).
Operation text that references the engine's own files raises the
required tier to SUPERADMIN. While Bypass is what allows an operation,
the operation counts against the bypass rate cap.

Import from: tierguard.core.access.authorization
"""

import logging
from dataclasses import replace
from typing import Iterable, Optional, Tuple

from tierguard.core.access.nuclear_guard import NuclearGuard
from tierguard.core.access.tier_matrix import decision_for, required_tier
from tierguard.core.access.zone_classifier import ZoneClassifier
from tierguard.core.types import (
    AuthorizationResult, Decision, SecurityError, Tier, Zone,
)

__all__ = ['authorize', 'AuthorizationFacade']

logger = logging.getLogger("tierguard.core.access.authorization")

RATE_LIMIT_ACTION = "Wait for the one-minute operation window to roll over, then retry"


def authorize(path: str, operation: str, auth_level: Tier,
              classifier: ZoneClassifier, guard: NuclearGuard,
              cwd: Optional[str] = None) -> AuthorizationResult:
    """Pure decision for one operation at a known auth level."""
    operation = operation or ""
    zone = classifier.classify(path or "", cwd)

    nuclear = guard.nuclear_reason(operation)
    if nuclear is not None:
        return AuthorizationResult(
            decision=Decision.NUCLEAR_BLOCKED, zone=zone, required_tier=Tier.NUCLEAR,
            auth_level=auth_level, path=path or "", reason="Destructive operation",
            details={'nuclear_category': nuclear},
        )

    tier = required_tier(zone)
    reason = ""
    details = {}
    if tier < Tier.SUPERADMIN and guard.touches_self(operation):
        details['path_zone'] = zone.value
        zone = Zone.SELF
        tier = required_tier(Zone.SELF)
        reason = "Operation references tierguard's own files"

    return AuthorizationResult(
        decision=decision_for(tier, auth_level), zone=zone, required_tier=tier,
        auth_level=auth_level, path=path or "", reason=reason, details=details,
    )


class AuthorizationFacade:
    """Composes classifier, guard, providers, integrity and audit.

    Usage:
        facade = AuthorizationFacade(providers=[bypass], audit=security_logger)
        result = facade.check("~/Projects/app/main.py", "Edit")
        sys.exit(int(result.decision))
    """

    def __init__(self, providers: Iterable = (), classifier: Optional[ZoneClassifier] = None,
                 guard: Optional[NuclearGuard] = None, audit=None, integrity=None):
        self.providers = sorted(providers, key=lambda p: p.tier, reverse=True)
        self.classifier = classifier or ZoneClassifier()
        self.guard = guard or NuclearGuard()
        self.audit = audit
        self.integrity = integrity

    def current_auth_level(self) -> Tuple[Tier, Optional[object]]:
        """Highest active tier and the provider granting it."""
        for provider in self.providers:
            try:
                active = provider.is_active()
            except (SecurityError, OSError) as e:
                logger.error("Auth provider %s check failed, treating as inactive: %s",
                             provider.name or type(provider).__name__, e)
                active = False
            if active:
                return provider.tier, provider
        return Tier.NORMAL, None

    def check(self, path: str, operation: str = "", cwd: Optional[str] = None) -> AuthorizationResult:
        """Authorize one operation.

        Raises:
            IntegrityError: engine files do not match the manifest. No
                decision is issued.
        """
        if self.integrity is not None:
            self.integrity.require_intact()

        auth_level, provider = self.current_auth_level()
        result = authorize(path, operation, auth_level, self.classifier, self.guard, cwd)

        if (result.decision is Decision.ALLOW and provider is not None
                and provider.tier is Tier.BYPASS and result.required_tier is Tier.BYPASS):
            if not provider.record_operation():
                result = replace(
                    result,
                    decision=Decision.TIER1_BLOCKED,
                    reason="Bypass operation rate limit exceeded",
                    details={**result.details, 'rate_limited': True, 'action': RATE_LIMIT_ACTION},
                )

        if result.decision.is_blocked:
            logger.info("%s: %s (%s)", result.decision.name, result.path, result.zone.value)
            if self.audit is not None:
                self.audit.log_blocked(result.decision.name, result.path or operation,
                                       result.reason or result.zone.value)
        return result
