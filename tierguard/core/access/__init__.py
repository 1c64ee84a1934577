"""
Access Control — Zone classification, nuclear guard, tier matrix.

Submodules:
- zone_classifier: Path → Zone with SELF-first precedence
- nuclear_guard: Never-unlockable operation patterns
- tier_matrix: Zone → required Tier, block messages
- authorization: authorize() and the AuthorizationFacade
"""

from tierguard.core.access.zone_classifier import ZoneClassifier, compile_zone_rules
from tierguard.core.access.nuclear_guard import NuclearGuard
from tierguard.core.access.tier_matrix import (
    TIER_MATRIX,
    required_tier,
    decision_for,
    format_block_message,
)
from tierguard.core.access.authorization import authorize, AuthorizationFacade

__all__ = [
    # Classification
    'ZoneClassifier',
    'compile_zone_rules',
    'NuclearGuard',

    # Tier matrix
    'TIER_MATRIX',
    'required_tier',
    'decision_for',
    'format_block_message',

    # Facade
    'authorize',
    'AuthorizationFacade',
]
