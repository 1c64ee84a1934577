"""
tierguard Configuration — UnifiedConfig
=========================================
Central configuration dataclass with defaults for every engine setting.
All values are optional; environment variables override the defaults.

Security constants (pattern tables, minimum passphrase length, backoff
schedule) are deliberately NOT configurable here.

Import from: tierguard.core.config
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from tierguard.core.constants import (
    DEFAULT_MAX_DURATION, DEFAULT_INACTIVITY_TIMEOUT, DEFAULT_PROMPT_TIMEOUT,
    DEFAULT_OPERATION_RATE_LIMIT, OPERATION_RATE_WINDOW, MIN_PASSPHRASE_LENGTH,
)

logger = logging.getLogger("tierguard.core.config")

ENV_HOME = 'TIERGUARD_HOME'
ENV_MAX_DURATION = 'TIERGUARD_BYPASS_MAX_DURATION'
ENV_INACTIVITY = 'TIERGUARD_BYPASS_INACTIVITY'
ENV_RATE_LIMIT = 'TIERGUARD_RATE_LIMIT_OPS'
ENV_PROMPT_TIMEOUT = 'TIERGUARD_PROMPT_TIMEOUT'
ENV_AUDIT_LOG = 'TIERGUARD_AUDIT_LOG'


def _env_positive_int(name: str, default: int) -> int:
    """Read a positive integer from the environment, falling back to default."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("Ignoring %s=%r: not an integer (using %d)", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring %s=%r: must be positive (using %d)", name, raw, default)
        return default
    return value


def _default_home() -> Path:
    return Path(os.environ.get(ENV_HOME) or Path.home() / '.tierguard').expanduser()


@dataclass
class UnifiedConfig:
    base_dir: Path = field(default_factory=_default_home)
    bypass_dir: Path = None
    log_dir: Path = None

    bypass_max_duration: int = field(
        default_factory=lambda: _env_positive_int(ENV_MAX_DURATION, DEFAULT_MAX_DURATION))
    bypass_inactivity_timeout: int = field(
        default_factory=lambda: _env_positive_int(ENV_INACTIVITY, DEFAULT_INACTIVITY_TIMEOUT))
    operation_rate_limit: int = field(
        default_factory=lambda: _env_positive_int(ENV_RATE_LIMIT, DEFAULT_OPERATION_RATE_LIMIT))
    operation_rate_window: int = OPERATION_RATE_WINDOW
    prompt_timeout: int = field(
        default_factory=lambda: _env_positive_int(ENV_PROMPT_TIMEOUT, DEFAULT_PROMPT_TIMEOUT))

    audit_log_enabled: bool = field(
        default_factory=lambda: os.environ.get(ENV_AUDIT_LOG, '1').strip() != '0')

    def __post_init__(self):
        self.base_dir = Path(self.base_dir)
        if self.bypass_dir is None:
            self.bypass_dir = self.base_dir / "bypass"
        if self.log_dir is None:
            self.log_dir = self.base_dir / "logs"

    @property
    def min_passphrase_length(self) -> int:
        return MIN_PASSPHRASE_LENGTH

    @classmethod
    def from_env(cls) -> 'UnifiedConfig':
        """Build a config from the current environment."""
        return cls()


__all__ = ['UnifiedConfig']
