#!/usr/bin/env python3
"""
tierguard Core Audit — Integrity Verifier
===========================================
SHA-256 checksum manifest over the engine's own source files.

- generate_manifest(): operator action, writes ``<sha256>  <path>`` lines
- verify_manifest(): re-hashes every listed file; missing or modified
  files are reported
- require_intact(): called before every authorization decision when a
  manifest exists; raises IntegrityError so no decision is issued

Import from: tierguard.core.audit.integrity
"""

import hashlib
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import tierguard
from tierguard.core.constants import HASH_CHUNK_SIZE
from tierguard.core.types import AlertSeverity, IntegrityError

logger = logging.getLogger("tierguard.core.audit.integrity")


def default_protected_files() -> List[Path]:
    """Every Python source file of the installed tierguard package."""
    root = Path(tierguard.__file__).resolve().parent
    return sorted(p for p in root.rglob('*.py') if '__pycache__' not in p.parts)


class IntegrityVerifier:
    def __init__(self, store, protected_files: Optional[Iterable[Path]] = None,
                 logger=None):
        self.store = store
        self.manifest_path = Path(store.manifest_path)
        self._protected = list(protected_files) if protected_files is not None else None
        self.logger = logger

    @property
    def protected_files(self) -> List[Path]:
        if self._protected is None:
            self._protected = default_protected_files()
        return [Path(p) for p in self._protected]

    @property
    def has_manifest(self) -> bool:
        return self.manifest_path.exists()

    def compute_hash(self, path: Path) -> str:
        sha256 = hashlib.sha256()
        with open(path, 'rb') as f:
            for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b''):
                sha256.update(chunk)
        return sha256.hexdigest()

    def generate_manifest(self) -> int:
        """Hash the protected files into the manifest. Returns the file count."""
        lines = [f"{self.compute_hash(p)}  {p}\n" for p in self.protected_files]
        self.store.write_manifest(lines)

        if self.logger:
            self.logger.log_event("CHECKSUMS_GENERATED", AlertSeverity.INFO, {'files': len(lines)})
        return len(lines)

    def _read_manifest(self) -> List[Tuple[str, Path]]:
        entries = []
        with open(self.manifest_path, 'r', encoding='utf-8') as f:
            for lineno, line in enumerate(f, 1):
                line = line.rstrip('\n')
                if not line.strip():
                    continue
                digest, sep, name = line.partition('  ')
                if not sep or len(digest) != 64:
                    raise IntegrityError(f"Malformed manifest line {lineno}")
                entries.append((digest, Path(name)))
        return entries

    def verify_manifest(self) -> Tuple[bool, List[str]]:
        """Check every listed file. Returns (ok, problems).

        An absent manifest is reported as ok with no problems.
        """
        if not self.has_manifest:
            return True, []
        try:
            entries = self._read_manifest()
        except (OSError, IntegrityError) as e:
            return False, [f"manifest unreadable: {e}"]

        problems = []
        for expected, path in entries:
            try:
                current = self.compute_hash(path)
            except FileNotFoundError:
                problems.append(f"missing: {path}")
                continue
            except OSError as e:
                problems.append(f"unreadable: {path} ({e})")
                continue
            if current != expected:
                problems.append(f"modified: {path}")
        return not problems, problems

    def require_intact(self) -> None:
        ok, problems = self.verify_manifest()
        if ok:
            return
        logger.error("Integrity check failed: %s", "; ".join(problems))
        if self.logger:
            self.logger.log_event("INTEGRITY_FAILURE", AlertSeverity.CRITICAL, {
                'problems': problems[:20],
            })
        raise IntegrityError(f"tierguard files failed integrity verification: {problems[0]}")


__all__ = ['IntegrityVerifier', 'default_protected_files']
