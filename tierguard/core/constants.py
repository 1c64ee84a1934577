"""
tierguard Constants — Numeric Values, Limits, and File Names
=============================================================
Non-pattern constants used across the engine. Salt sizes, default
timeouts, the authentication backoff schedule, state file names.

Import from: tierguard.core.constants
"""

import sys

# =============================================================================
# PLATFORM DETECTION
# =============================================================================

IS_WINDOWS = sys.platform == 'win32'

# =============================================================================
# CRYPTO SIZES
# =============================================================================

SALT_BYTES = 16                 # 32 hex chars of salt
SESSION_ID_BYTES = 8            # 16 hex chars for audit session IDs
DIGEST_HEX_LENGTH = 128         # SHA-512 hex digest

# SECURITY-CRITICAL: in code, not config. Config write access must not be
# able to weaken the minimum passphrase length.
MIN_PASSPHRASE_LENGTH = 8

# =============================================================================
# FILE I/O
# =============================================================================

HASH_CHUNK_SIZE = 8192          # Bytes per read when hashing files
DIR_MODE = 0o700
FILE_MODE = 0o600

# State file names inside the bypass directory
PASSPHRASE_FILE = "passphrase.hash"
TOKEN_FILE = "active.token"
FAILURES_FILE = "failures.json"
ACTIVITY_FILE = "last_activity"
RATE_WINDOW_FILE = "zone-rate-limit.state"
CHECKSUMS_FILE = "checksums.sha256"
INACTIVITY_LIMIT_FILE = "inactivity.timeout"
LOCK_FILE = ".lock"

# =============================================================================
# SAFETY DEAD-BOLT DEFAULTS (seconds)
# =============================================================================

DEFAULT_MAX_DURATION = 14400        # 4 hours
DEFAULT_INACTIVITY_TIMEOUT = 1800   # 30 minutes
DEFAULT_PROMPT_TIMEOUT = 120

# =============================================================================
# OPERATION RATE CAP (bypass active only)
# =============================================================================

DEFAULT_OPERATION_RATE_LIMIT = 50
OPERATION_RATE_WINDOW = 60

# =============================================================================
# AUTHENTICATION BACKOFF
# =============================================================================

# Sentinel for "locked until manual reset"
PERMANENT_LOCKOUT = -1

# (minimum consecutive failures, lockout seconds), highest threshold first.
# SECURITY-CRITICAL: in code, not config.
FAILURE_LOCKOUT_SCHEDULE = (
    (10, PERMANENT_LOCKOUT),
    (6, 3600),
    (5, 900),
    (4, 300),
    (3, 60),
)

# =============================================================================
# CLI EXIT CODES
# =============================================================================

EXIT_INTEGRITY_FAILURE = 5
EXIT_USAGE_ERROR = 64
