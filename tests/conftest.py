"""
Shared pytest fixtures for the tierguard test suite.

Provides a fake clock, a scripted passphrase prompt and a mock
SecurityLogger so the authenticator, dead-bolt and backoff can be tested
without a terminal, real time or audit files.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import after path fix
from tierguard.core.config import UnifiedConfig
from tierguard.core.access.nuclear_guard import NuclearGuard
from tierguard.core.access.zone_classifier import ZoneClassifier
from tierguard.core.audit.logger import SecurityLogger
from tierguard.core.trust.bypass import AuthProvider, BypassAuthenticator
from tierguard.core.trust.state_store import BypassStateStore
from tierguard.core.types import Tier

PASSPHRASE = "correct horse battery"
START_TIME = 1_700_000_000


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------

class FakeClock:
    """Callable epoch clock that only moves when told to."""

    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return float(self.now)

    def advance(self, seconds: int) -> None:
        self.now += seconds


class ScriptedPrompt:
    """Stands in for read_passphrase(message, timeout).

    Responses are consumed in order; an exception instance is raised
    instead of returned.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.messages = []

    def push(self, *responses) -> None:
        self.responses.extend(responses)

    def __call__(self, message: str, timeout: float) -> str:
        self.messages.append(message)
        if not self.responses:
            raise AssertionError(f"Unexpected prompt: {message!r}")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


class FakeProvider(AuthProvider):
    """AuthProvider with a fixed answer, for facade tests."""

    def __init__(self, tier: Tier, active: bool = True, allow_operations: bool = True,
                 name: str = "fake"):
        self.tier = tier
        self.name = name
        self.active = active
        self.allow_operations = allow_operations
        self.is_active_calls = 0
        self.operations = 0

    def is_active(self) -> bool:
        self.is_active_calls += 1
        return self.active

    def record_operation(self) -> bool:
        self.operations += 1
        return self.allow_operations


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def home(tmp_path):
    """A fake home directory with a project and a credential file."""
    home_dir = tmp_path / "home"
    (home_dir / "Projects" / "app").mkdir(parents=True)
    (home_dir / ".ssh").mkdir()
    (home_dir / "Projects" / "app" / "main.py").write_text("print('hi')\n")
    (home_dir / ".ssh" / "id_rsa").write_text("-----BEGIN KEY-----\n")
    return home_dir


@pytest.fixture
def config(tmp_path):
    """A UnifiedConfig pointing at a temporary data directory."""
    return UnifiedConfig(
        base_dir=tmp_path / "data",
        bypass_max_duration=14400,
        bypass_inactivity_timeout=1800,
        operation_rate_limit=50,
        prompt_timeout=5,
        audit_log_enabled=True,
    )


@pytest.fixture
def store(config):
    return BypassStateStore(config.bypass_dir)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def prompt():
    return ScriptedPrompt()


@pytest.fixture
def mock_logger():
    """A mock SecurityLogger that records calls without writing files."""
    return MagicMock(spec=SecurityLogger)


@pytest.fixture
def audit_logger(config):
    """A real SecurityLogger writing into the temp log directory."""
    return SecurityLogger(config)


# ---------------------------------------------------------------------------
# Authenticator fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def bypass(config, store, clock, prompt, mock_logger):
    """A BypassAuthenticator with a terminal attached."""
    return BypassAuthenticator(config, store=store, audit=mock_logger, clock=clock,
                               prompt=prompt, tty_check=lambda: True)


@pytest.fixture
def no_tty_bypass(config, store, clock, prompt, mock_logger):
    """A BypassAuthenticator running without a terminal (agent / pipe)."""
    return BypassAuthenticator(config, store=store, audit=mock_logger, clock=clock,
                               prompt=prompt, tty_check=lambda: False)


@pytest.fixture
def enrolled(bypass, prompt):
    prompt.push(PASSPHRASE, PASSPHRASE)
    bypass.enroll()
    return bypass


@pytest.fixture
def active(enrolled, prompt):
    prompt.push(PASSPHRASE)
    enrolled.activate()
    return enrolled


# ---------------------------------------------------------------------------
# Access fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def classifier(home, config):
    return ZoneClassifier(home=str(home), extra_self_paths=[str(config.base_dir)])


@pytest.fixture
def guard():
    return NuclearGuard()
