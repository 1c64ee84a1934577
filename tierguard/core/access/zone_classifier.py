#!/usr/bin/env python3
"""
tierguard Core Access — Zone Classifier
=========================================
Maps a filesystem path to exactly one security zone.

Precedence: SELF > SENSITIVE > CONFIG > SYSTEM > DEVELOPMENT > GENERAL.
Self-protection is checked first so the engine's own files win even when
they also look like a development path.

Before matching:
- ``~`` is expanded to the home directory
- relative paths are resolved against the working directory
- ``..`` segments are collapsed lexically
- symlinks are resolved on the un-collapsed path and the target is
  classified too; the more restrictive of the two zones wins (symlink
  evasion, including "link/../x" forms)

Unmatched input, including the empty string, is GENERAL. There is no
error path.

Import from: tierguard.core.access.zone_classifier
"""

import logging
import os
import posixpath
import re
from pathlib import Path
from typing import Iterable, Optional, Tuple

from tierguard.core.patterns import ZONE_RULE_TABLE, expand_home_tokens
from tierguard.core.types import Zone, ZoneRule

logger = logging.getLogger("tierguard.core.access.zone_classifier")

# Index in the precedence order, lower = more restrictive
_PRECEDENCE = {zone: i for i, (zone, _, _) in enumerate(ZONE_RULE_TABLE)}
_PRECEDENCE[Zone.GENERAL] = len(ZONE_RULE_TABLE)


def compile_zone_rules(home: str, extra_self_paths: Iterable[str] = ()) -> Tuple[ZoneRule, ...]:
    """Compile the zone table into an immutable tuple of ZoneRule.

    Args:
        home: Home directory substituted for the {HOME}/{HOMES} tokens.
        extra_self_paths: Additional directories to treat as SELF (the
            configured data directory when it is not the default).
    """
    rules = []
    for zone, tier, raw_patterns in ZONE_RULE_TABLE:
        patterns = [re.compile(expand_home_tokens(p, home)) for p in raw_patterns]
        if zone is Zone.SELF:
            for extra in extra_self_paths:
                prefix = re.escape(str(extra).rstrip('/'))
                patterns.append(re.compile(r'^%s(?:/|$)' % prefix))
        rules.append(ZoneRule(zone=zone, tier=tier, patterns=tuple(patterns)))
    return tuple(rules)


class ZoneClassifier:
    """Total, deterministic path → Zone classification."""

    def __init__(self, home: Optional[str] = None, extra_self_paths: Iterable[str] = (),
                 resolve_symlinks: bool = True):
        self.home = str(home or Path.home())
        self.resolve_symlinks = resolve_symlinks
        self.rules = compile_zone_rules(self.home, extra_self_paths)

    def anchor(self, path: str, cwd: Optional[str] = None) -> str:
        """Expand ``~`` and anchor relative paths, leaving ``..`` in place."""
        if path == '~' or path.startswith('~/'):
            path = self.home + path[1:]
        if not posixpath.isabs(path):
            path = posixpath.join(cwd or os.getcwd(), path)
        return path

    def normalize(self, path: str, cwd: Optional[str] = None) -> str:
        """Expand ``~``, anchor relative paths and collapse ``..`` lexically."""
        normalized = posixpath.normpath(self.anchor(path, cwd))
        # normpath keeps a leading "//"
        if normalized.startswith('//'):
            normalized = '/' + normalized.lstrip('/')
        return normalized

    def match(self, normalized: str) -> Zone:
        """Classify an already-normalized path against the rule table."""
        for rule in self.rules:
            if rule.matches(normalized):
                return rule.zone
        return Zone.GENERAL

    def classify(self, path: str, cwd: Optional[str] = None) -> Zone:
        if not path or not path.strip():
            return Zone.GENERAL

        anchored = self.anchor(path.strip(), cwd)
        normalized = self.normalize(anchored)
        zone = self.match(normalized)

        if self.resolve_symlinks:
            # realpath sees the raw ".." so a symlink before it is followed
            try:
                resolved = os.path.realpath(anchored)
            except (OSError, ValueError):
                resolved = normalized
            if resolved != normalized:
                target_zone = self.match(resolved)
                if _PRECEDENCE[target_zone] < _PRECEDENCE[zone]:
                    logger.debug("Symlink %s resolves into %s zone", normalized, target_zone.value)
                    zone = target_zone

        return zone


__all__ = ['ZoneClassifier', 'compile_zone_rules']
