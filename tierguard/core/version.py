"""
tierguard Core — Version Constants

Single source of truth for all version-related values.

Usage:
    from tierguard.core.version import __version__, TOKEN_VERSION
"""

# =============================================================================
# PACKAGE VERSION
# =============================================================================

__version__ = "1.2.0"


# =============================================================================
# TOKEN FORMAT
# =============================================================================

# Current bypass token version. v2 carries an absolute expiry.
TOKEN_VERSION = 2

# Legacy token version: version:created:signature, no expiry.
# Still verified so an upgrade never strands an active session, but logged
# as deprecated.
LEGACY_TOKEN_VERSION = 1


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    '__version__',
    'TOKEN_VERSION',
    'LEGACY_TOKEN_VERSION',
]
