#!/usr/bin/env python3
"""
tierguard Core Access — Tier Matrix
=====================================
Pure, total mapping from Zone to the minimum Tier that unlocks it, plus
the user-facing text for each block.

    DEVELOPMENT                      → BYPASS
    CONFIG, SENSITIVE, SYSTEM, SELF  → SUPERADMIN
    GENERAL                          → NORMAL

NUCLEAR never appears here: only the nuclear guard produces it.

Import from: tierguard.core.access.tier_matrix
"""

from types import MappingProxyType
from typing import Mapping

from tierguard.core.patterns import ZONE_DESCRIPTIONS, ZONE_RULE_TABLE
from tierguard.core.types import AuthorizationResult, Decision, Tier, Zone

__all__ = [
    'TIER_MATRIX', 'required_tier', 'decision_for', 'describe_zone',
    'action_for', 'format_block_message',
]

TIER_MATRIX: Mapping[Zone, Tier] = MappingProxyType({
    **{zone: tier for zone, tier, _ in ZONE_RULE_TABLE},
    Zone.GENERAL: Tier.NORMAL,
})

BYPASS_COMMAND = "tierguard bypass activate"

_ACTIONS = {
    Decision.TIER1_BLOCKED: f"Run '{BYPASS_COMMAND}' to temporarily unlock project files",
    Decision.TIER2_BLOCKED: "SuperAdmin authorization is required to unlock protected files",
    Decision.NUCLEAR_BLOCKED: (
        "This operation cannot be unlocked. Perform it manually outside the agent if truly needed."
    ),
}


def required_tier(zone: Zone) -> Tier:
    return TIER_MATRIX[zone]


def decision_for(tier: Tier, auth_level: Tier) -> Decision:
    """Compare the required tier with the current auth level.

    Progressive disclosure: any level at or above the requirement allows.
    """
    if tier is Tier.NUCLEAR:
        return Decision.NUCLEAR_BLOCKED
    if auth_level >= tier:
        return Decision.ALLOW
    if tier is Tier.BYPASS:
        return Decision.TIER1_BLOCKED
    return Decision.TIER2_BLOCKED


def describe_zone(zone: Zone) -> str:
    return ZONE_DESCRIPTIONS[zone]


def action_for(decision: Decision) -> str:
    return _ACTIONS.get(decision, "")


def format_block_message(result: AuthorizationResult) -> str:
    """Multi-line message naming the required tier and what to do about it."""
    decision = result.decision
    if decision is Decision.NUCLEAR_BLOCKED:
        return "\n".join([
            "NUCLEAR BLOCKED: Destructive operation (not unlockable)",
            f"Action: {action_for(decision)}",
        ])
    if not decision.is_blocked:
        return ""

    header = "TIER 1 BLOCKED" if decision is Decision.TIER1_BLOCKED else "TIER 2 BLOCKED"
    lines = [
        f"{header}: {describe_zone(result.zone)}",
        f"Required: {result.required_tier.label}",
    ]
    if result.path:
        lines.append(f"Path: {result.path}")
    if result.reason:
        lines.append(f"Reason: {result.reason}")
    lines.append(f"Action: {result.details.get('action') or action_for(decision)}")
    return "\n".join(lines)
