#!/usr/bin/env python3
"""
tierguard Core Access — Nuclear Guard
=======================================
Matches an operation's literal text against the immutable deny list:
- full-filesystem or top-level-directory recursive deletion
- raw writes to block devices
- filesystem format commands
- fork bombs
- shutdown / halt / init 0
- cloud metadata endpoints in URLs or network client commands

The guard runs BEFORE any zone or tier logic and its verdict cannot be
overridden by any authentication tier.

Also answers whether operation text touches the engine's own files
(self-protection), which raises the required tier but is not nuclear.

Import from: tierguard.core.access.nuclear_guard
"""

import re
from typing import Optional, Pattern, Tuple

from tierguard.core.patterns import NUCLEAR_PATTERN_GROUPS, SELF_PROTECTION_TEXT_PATTERNS


class NuclearGuard:
    def __init__(self):
        self.nuclear_patterns: Tuple[Tuple[str, Pattern], ...] = tuple(
            (reason, re.compile(p))
            for reason, patterns in NUCLEAR_PATTERN_GROUPS.items()
            for p in patterns
        )
        self.self_patterns: Tuple[Pattern, ...] = tuple(
            re.compile(p) for p in SELF_PROTECTION_TEXT_PATTERNS
        )

    def is_nuclear(self, operation: str) -> bool:
        return self.nuclear_reason(operation) is not None

    def nuclear_reason(self, operation: str) -> Optional[str]:
        """Category of the first nuclear pattern matched, or None.

        For audit logs only; user-facing messages just say "not unlockable".
        """
        if not operation:
            return None
        for reason, pattern in self.nuclear_patterns:
            if pattern.search(operation):
                return reason
        return None

    def touches_self(self, operation: str) -> bool:
        """True if the text references the engine's credentials, state or source."""
        if not operation:
            return False
        return any(p.search(operation) for p in self.self_patterns)


__all__ = ['NuclearGuard', 'NUCLEAR_PATTERN_GROUPS', 'SELF_PROTECTION_TEXT_PATTERNS']
