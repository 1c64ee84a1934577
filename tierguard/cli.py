#!/usr/bin/env python3
"""
tierguard Operator CLI
========================

Usage:
  tierguard bypass setup                        # Enroll / change passphrase (TTY)
  tierguard bypass activate [--duration 4h] [--idle 30m]   # Unlock Tier 1 (TTY)
  tierguard bypass deactivate                   # Relock immediately
  tierguard bypass status                       # UNCONFIGURED / CONFIGURED-LOCKED / ACTIVE
  tierguard bypass reset-lockout                # Clear failure lockout (TTY)
  tierguard checksums generate                  # Record engine file hashes (TTY)
  tierguard checksums verify                    # Compare against the manifest
  tierguard logs verify                         # Re-walk the audit hash chains
  tierguard check --path P [--operation TEXT]   # Authorize one operation

`check` exits with the decision code: 0 ALLOW, 1 WARN, 2 TIER1_BLOCKED,
3 TIER2_BLOCKED, 4 NUCLEAR_BLOCKED, 5 integrity failure (no decision).
"""

import os
import sys
import json
import shutil
import logging
import argparse
from typing import List, Optional

from tierguard.core.version import __version__
from tierguard.core.config import UnifiedConfig
from tierguard.core.constants import EXIT_INTEGRITY_FAILURE, EXIT_USAGE_ERROR, PERMANENT_LOCKOUT
from tierguard.core.types import (
    AuthenticationError, BypassState, IntegrityError, RateLimitedError, SecurityError,
)
from tierguard.core.access.authorization import AuthorizationFacade
from tierguard.core.access.tier_matrix import format_block_message
from tierguard.core.access.zone_classifier import ZoneClassifier
from tierguard.core.audit.integrity import IntegrityVerifier
from tierguard.core.audit.logger import SecurityLogger, verify_chain
from tierguard.core.crypto.terminal import has_interactive_tty, read_passphrase
from tierguard.core.trust.bypass import BypassAuthenticator
from tierguard.core.trust.duration import format_duration, parse_duration
from tierguard.core.trust.state_store import BypassStateStore

logger = logging.getLogger("tierguard.cli")

# =============================================================================
# TERMINAL FORMATTING
# =============================================================================

class Colors:
    """ANSI color codes, disabled by NO_COLOR or a non-terminal stdout."""
    ENABLED = True

    @classmethod
    def _try_enable(cls):
        if os.environ.get('NO_COLOR') or not sys.stdout.isatty():
            cls.ENABLED = False

    @classmethod
    def _c(cls, code: str, text: str) -> str:
        return f"\033[{code}m{text}\033[0m" if cls.ENABLED else text

    @classmethod
    def bold(cls, t): return cls._c("1", t)
    @classmethod
    def dim(cls, t): return cls._c("2", t)
    @classmethod
    def green(cls, t): return cls._c("32", t)
    @classmethod
    def red(cls, t): return cls._c("31", t)
    @classmethod
    def yellow(cls, t): return cls._c("33", t)
    @classmethod
    def cyan(cls, t): return cls._c("36", t)

Colors._try_enable()

OK = Colors.green("✓")
FAIL = Colors.red("✗")
WARN = Colors.yellow("⚠")
INFO = Colors.cyan("ℹ")


def heading(text: str):
    width = min(shutil.get_terminal_size().columns, 72)
    print(f"\n{Colors.bold(text)}")
    print(Colors.dim("─" * width))


def table_row(label: str, value: str, status: str = ""):
    label_col = f"  {label:<24}"
    if status:
        print(f"{label_col} {status} {value}")
    else:
        print(f"{label_col} {value}")


def _err(message: str):
    print(message, file=sys.stderr)


# =============================================================================
# COMPONENT WIRING
# =============================================================================

def _build_authenticator(config: UnifiedConfig, audit) -> BypassAuthenticator:
    return BypassAuthenticator(
        config,
        store=BypassStateStore(config.bypass_dir),
        audit=audit,
        prompt=read_passphrase,
        tty_check=has_interactive_tty,
    )


def _build_integrity(config: UnifiedConfig, audit) -> IntegrityVerifier:
    store = BypassStateStore(config.bypass_dir)
    return IntegrityVerifier(store, logger=audit)


def _build_facade(config: UnifiedConfig, audit) -> AuthorizationFacade:
    bypass = _build_authenticator(config, audit)
    classifier = ZoneClassifier(extra_self_paths=[str(config.base_dir)])
    return AuthorizationFacade(
        providers=[bypass],
        classifier=classifier,
        audit=audit,
        integrity=_build_integrity(config, audit),
    )


# =============================================================================
# BYPASS
# =============================================================================

def _bypass_setup(auth: BypassAuthenticator, args) -> int:
    heading("Bypass Passphrase Setup")
    print(f"  Minimum length: {auth.config.min_passphrase_length} characters")
    auth.enroll()
    print(f"  {OK} Passphrase saved. Any active bypass session was ended.")
    return 0


def _bypass_activate(auth: BypassAuthenticator, args) -> int:
    try:
        duration = parse_duration(args.duration) if args.duration else None
        idle = parse_duration(args.idle) if args.idle else None
    except ValueError as e:
        _err(f"{FAIL} {e}")
        return EXIT_USAGE_ERROR
    if duration == 0 or idle == 0:
        _err(f"{FAIL} Durations must be greater than zero")
        return EXIT_USAGE_ERROR

    token = auth.activate(duration=duration, inactivity=idle)
    lifetime = token.expires - token.created
    print(f"  {OK} Bypass {Colors.bold('ACTIVE')}: development files unlocked")
    table_row("Expires in", format_duration(lifetime))
    table_row("Idle timeout", format_duration(auth.inactivity_timeout()))
    print(f"  {Colors.dim('Relock any time with: tierguard bypass deactivate')}")
    return 0


def _bypass_deactivate(auth: BypassAuthenticator, args) -> int:
    if auth.deactivate(reason="manual"):
        print(f"  {OK} Protection re-enabled")
    else:
        print(f"  {INFO} Bypass was not active")
    return 0


def _bypass_status(auth: BypassAuthenticator, args) -> int:
    info = auth.status()
    if args.json:
        print(json.dumps(info, indent=2))
        return 0

    heading("Bypass Status")
    state = BypassState(info['state'])
    badge = {
        BypassState.ACTIVE: WARN,
        BypassState.CONFIGURED_LOCKED: OK,
        BypassState.UNCONFIGURED: INFO,
    }[state]
    table_row("State", state.value, badge)

    if state is BypassState.ACTIVE:
        remaining = info['remaining']
        table_row("Remaining", "no expiry (legacy token)" if remaining < 0 else format_duration(remaining))
        idle = info['idle'] or 0
        table_row("Idle", f"{format_duration(idle)} of {format_duration(info['inactivity_timeout'])}")
        table_row("Operations this minute", f"{info['operations']}/{info['operation_limit']}")
    else:
        table_row("Max duration", format_duration(info['max_duration']))
        table_row("Idle timeout", format_duration(info['inactivity_timeout']))

    if info['failures']:
        table_row("Failed attempts", str(info['failures']), WARN)
    lockout = info['lockout_remaining']
    if lockout == PERMANENT_LOCKOUT:
        table_row("Lockout", "until 'tierguard bypass reset-lockout'", FAIL)
    elif lockout > 0:
        table_row("Lockout", f"{lockout}s remaining", FAIL)
    return 0


def _bypass_reset_lockout(auth: BypassAuthenticator, args) -> int:
    auth.reset_lockout()
    print(f"  {OK} Failure lockout cleared")
    return 0


def cmd_bypass(args, config: UnifiedConfig, audit) -> int:
    """Bypass management subcommand."""
    auth = _build_authenticator(config, audit)
    handlers = {
        'setup': _bypass_setup,
        'activate': _bypass_activate,
        'deactivate': _bypass_deactivate,
        'status': _bypass_status,
        'reset-lockout': _bypass_reset_lockout,
    }
    handler = handlers.get(args.bypass_command)
    if handler is None:
        _err("Usage: tierguard bypass {setup,activate,deactivate,status,reset-lockout}")
        return EXIT_USAGE_ERROR

    try:
        return handler(auth, args)
    except RateLimitedError as e:
        _err(f"{FAIL} {e}")
        return 1
    except AuthenticationError as e:
        _err(f"{FAIL} {e} ({e.failures} consecutive failure{'s' if e.failures != 1 else ''})")
        return 1
    except SecurityError as e:
        _err(f"{FAIL} {e}")
        return 1
    except ValueError as e:
        _err(f"{FAIL} {e}")
        return EXIT_USAGE_ERROR


# =============================================================================
# CHECKSUMS
# =============================================================================

def cmd_checksums(args, config: UnifiedConfig, audit) -> int:
    """Integrity manifest subcommand."""
    verifier = _build_integrity(config, audit)

    if args.checksums_command == 'generate':
        if not has_interactive_tty():
            _err(f"{FAIL} Generating checksums requires an interactive terminal")
            return 1
        count = verifier.generate_manifest()
        print(f"  {OK} Recorded {count} file hashes in {verifier.manifest_path}")
        return 0

    if args.checksums_command == 'verify':
        if not verifier.has_manifest:
            print(f"  {INFO} No manifest. Run 'tierguard checksums generate' first.")
            return 0
        ok, problems = verifier.verify_manifest()
        if ok:
            print(f"  {OK} All protected files match the manifest")
            return 0
        for problem in problems:
            _err(f"  {FAIL} {problem}")
        return EXIT_INTEGRITY_FAILURE

    _err("Usage: tierguard checksums {generate,verify}")
    return EXIT_USAGE_ERROR


# =============================================================================
# LOGS
# =============================================================================

def cmd_logs(args, config: UnifiedConfig, audit) -> int:
    heading("Audit Log Integrity")
    broken = False
    for log_file in (audit.main_log, audit.blocked_log):
        if not log_file.exists():
            table_row(log_file.name, "not present", INFO)
            continue
        bad_line = verify_chain(log_file)
        if bad_line is None:
            table_row(log_file.name, "chain intact", OK)
        else:
            table_row(log_file.name, f"chain broken at line {bad_line}", FAIL)
            broken = True
    return EXIT_INTEGRITY_FAILURE if broken else 0


# =============================================================================
# CHECK
# =============================================================================

def cmd_check(args, config: UnifiedConfig, audit) -> int:
    """Authorize one operation; the exit code is the decision."""
    facade = _build_facade(config, audit)
    try:
        result = facade.check(args.path or "", args.operation or "", cwd=args.cwd)
    except IntegrityError as e:
        _err(f"{FAIL} INTEGRITY FAILURE: {e}")
        _err("  No authorization decision was issued. Re-verify the installation.")
        return EXIT_INTEGRITY_FAILURE

    if args.json:
        print(json.dumps(result.to_dict()))
    if result.decision.is_blocked:
        _err(format_block_message(result))
    return int(result.decision)


# =============================================================================
# PARSER
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tierguard',
        description='tierguard — tiered zone-based authorization for AI coding agents',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tierguard bypass setup
  tierguard bypass activate --duration 2h --idle 15m
  tierguard bypass status --json
  tierguard check --path ~/Projects/app/main.py --operation Edit
  tierguard check --operation "rm -rf /"
        """
    )
    parser.add_argument('--version', action='version', version=f'tierguard {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    sub = parser.add_subparsers(dest='command')

    # bypass
    bypass_p = sub.add_parser('bypass', help='Tier 1 bypass management')
    bypass_sub = bypass_p.add_subparsers(dest='bypass_command')
    bypass_sub.add_parser('setup', help='Enroll or change the bypass passphrase')
    act = bypass_sub.add_parser('activate', help='Unlock development files')
    act.add_argument('--duration', help='Max session length (e.g. 4h, 90m, 2h30m)')
    act.add_argument('--idle', help='Inactivity timeout (e.g. 30m)')
    bypass_sub.add_parser('deactivate', help='Relock immediately')
    status_p = bypass_sub.add_parser('status', help='Show bypass state')
    status_p.add_argument('--json', action='store_true', help='Machine-readable output')
    bypass_sub.add_parser('reset-lockout', help='Clear the failed-attempt lockout')

    # checksums
    sums_p = sub.add_parser('checksums', help='Integrity manifest')
    sums_sub = sums_p.add_subparsers(dest='checksums_command')
    sums_sub.add_parser('generate', help='Record hashes of tierguard files')
    sums_sub.add_parser('verify', help='Compare tierguard files to the manifest')

    # logs
    logs_p = sub.add_parser('logs', help='Audit log tools')
    logs_sub = logs_p.add_subparsers(dest='logs_command')
    logs_sub.add_parser('verify', help='Verify audit log hash chains')

    # check
    check_p = sub.add_parser('check', help='Authorize one operation')
    check_p.add_argument('--path', default='', help='Filesystem path touched')
    check_p.add_argument('--operation', default='', help='Operation text (command, URL, tool name)')
    check_p.add_argument('--cwd', help='Working directory for relative paths')
    check_p.add_argument('--json', action='store_true', help='Print the result as JSON')

    return parser


# =============================================================================
# MAIN
# =============================================================================

def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='[%(asctime)s] %(message)s')

    dispatch = {
        'bypass': cmd_bypass,
        'checksums': cmd_checksums,
        'logs': cmd_logs,
        'check': cmd_check,
    }
    handler = dispatch.get(args.command)
    if handler is None:
        parser.print_help()
        return EXIT_USAGE_ERROR

    config = UnifiedConfig.from_env()
    audit = SecurityLogger(config)
    try:
        return handler(args, config, audit)
    except KeyboardInterrupt:
        print(f"\n  {Colors.dim('Interrupted.')}")
        return 130


if __name__ == '__main__':
    sys.exit(main())
