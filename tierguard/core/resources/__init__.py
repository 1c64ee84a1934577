"""
Resource Management — Rate limiting.

Classes:
- FailureBackoff: Lockout after consecutive failed passphrase attempts
- OperationRateLimiter: Per-minute cap on bypass-covered operations
"""

from tierguard.core.resources.limiter import (
    lockout_for,
    FailureBackoff,
    OperationRateLimiter,
)

__all__ = ['lockout_for', 'FailureBackoff', 'OperationRateLimiter']
