#!/usr/bin/env python3
"""
tierguard Core Audit — Security Logger
========================================
Tamper-evident JSONL audit trail:
- Chain hashing: each entry carries SHA-256(previous_hash:entry)
- The chain continues across invocations (the last hash is reloaded)
- Session id and sequence number per process

Files in config.log_dir:
    security_events.log    bypass lifecycle, auth failures, integrity
    blocked.log            every blocked authorization decision

An audit write failure is reported through the module logger and never
changes an authorization decision.

Import from: tierguard.core.audit.logger
"""

import json
import hashlib
import secrets
import logging
from pathlib import Path
from datetime import datetime
from typing import Dict, Optional
from collections import defaultdict

from tierguard.core.types import AlertSeverity
from tierguard.core.constants import SESSION_ID_BYTES

GENESIS_HASH = "0" * 64

logger = logging.getLogger("tierguard.core.audit.logger")


def _entry_hash(previous_hash: str, entry_str: str) -> str:
    return hashlib.sha256(f"{previous_hash}:{entry_str}".encode()).hexdigest()


class SecurityLogger:
    """Chain-hashed audit logging for security events."""

    def __init__(self, config):
        self.config = config
        self.enabled = getattr(config, 'audit_log_enabled', True)
        self.log_dir = Path(config.log_dir)

        self.main_log = self.log_dir / "security_events.log"
        self.blocked_log = self.log_dir / "blocked.log"

        self.session_id = secrets.token_hex(SESSION_ID_BYTES)
        self.entry_counter = 0
        self.previous_hashes: Dict[Path, str] = {}
        self.stats = defaultdict(int)

    def _previous_hash(self, log_file: Path) -> str:
        if log_file not in self.previous_hashes:
            self.previous_hashes[log_file] = self._load_last_hash(log_file)
        return self.previous_hashes[log_file]

    @staticmethod
    def _load_last_hash(log_file: Path) -> str:
        try:
            with open(log_file, 'r', encoding='utf-8') as f:
                last = None
                for line in f:
                    if line.strip():
                        last = line
        except FileNotFoundError:
            return GENESIS_HASH
        except OSError as e:
            logger.warning("Cannot read audit log %s: %s", log_file, e)
            return GENESIS_HASH
        if last is None:
            return GENESIS_HASH
        try:
            return json.loads(last).get('chain_hash') or GENESIS_HASH
        except (ValueError, AttributeError):
            logger.warning("Last audit entry in %s is unreadable; chain restarts", log_file)
            return GENESIS_HASH

    def _write(self, log_file: Path, entry: Dict) -> None:
        if not self.enabled:
            return
        self.entry_counter += 1
        entry.update({
            'timestamp': datetime.now().isoformat(),
            'session_id': self.session_id,
            'sequence': self.entry_counter
        })
        previous = self._previous_hash(log_file)
        entry_str = json.dumps(entry, sort_keys=True)
        entry['chain_hash'] = _entry_hash(previous, entry_str)

        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            with open(log_file, 'a', encoding='utf-8') as f:
                f.write(json.dumps(entry) + '\n')
        except OSError as e:
            logger.warning("Audit write to %s failed: %s", log_file, e)
            return
        self.previous_hashes[log_file] = entry['chain_hash']

    def log_event(self, event: str, severity: AlertSeverity, details: Dict = None) -> None:
        self._write(self.main_log, {'event': event, 'severity': severity.value, 'details': details or {}})
        self.stats[f'{severity.value}_{event}'] += 1

        if severity in (AlertSeverity.HIGH, AlertSeverity.CRITICAL):
            logger.warning("[%s] %s", severity.value.upper(), event)

    def log_blocked(self, action: str, target: str, reason: str) -> None:
        self._write(self.blocked_log, {'action': action, 'target': target[:200], 'reason': reason})
        self.stats['blocked'] += 1
        logger.info("BLOCKED: %s | %s", action, reason)


def verify_chain(log_file: Path) -> Optional[int]:
    """Re-walk a log's hash chain.

    Returns None when intact, else the 1-based line number of the first
    entry whose chain hash does not match.
    """
    previous = GENESIS_HASH
    with open(log_file, 'r', encoding='utf-8') as f:
        for lineno, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
            except ValueError:
                return lineno
            if not isinstance(entry, dict) or 'chain_hash' not in entry:
                return lineno
            recorded = entry.pop('chain_hash')
            expected = _entry_hash(previous, json.dumps(entry, sort_keys=True))
            if recorded != expected:
                return lineno
            previous = recorded
    return None


__all__ = ['SecurityLogger', 'verify_chain', 'GENESIS_HASH']
