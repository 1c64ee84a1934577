"""
End-to-end tests: the authorization facade wired to a real bypass
authenticator, state store and audit logger, on a fake clock.

Walks one operator session from an unconfigured install through
enrollment, activation, scoped access, nuclear blocking, lockout and
expiry.

Run with:  pytest tests/test_e2e.py -v
"""

import pytest

from tierguard.core.access.authorization import AuthorizationFacade
from tierguard.core.audit.integrity import IntegrityVerifier
from tierguard.core.constants import TOKEN_FILE
from tierguard.core.types import (
    AuthenticationError, Decision, IntegrityError, RateLimitedError, Tier, Zone,
)

from conftest import PASSPHRASE, FakeProvider


@pytest.fixture
def superadmin():
    return FakeProvider(Tier.SUPERADMIN, active=False, name="superadmin")


@pytest.fixture
def facade(bypass, superadmin, classifier, guard, audit_logger, store):
    return AuthorizationFacade(
        providers=[bypass, superadmin],
        classifier=classifier,
        guard=guard,
        audit=audit_logger,
        integrity=IntegrityVerifier(store, logger=audit_logger),
    )


class TestOperatorSession:

    def test_unconfigured_system_file(self, facade, bypass):
        assert not bypass.is_configured()
        result = facade.check("/etc/passwd", "Read")
        assert result.decision is Decision.TIER2_BLOCKED
        assert result.zone is Zone.SYSTEM
        assert facade.audit.stats['blocked'] == 1

    def test_unconfigured_project_file(self, facade):
        assert facade.check("~/Projects/app/main.py", "Edit").decision is Decision.TIER1_BLOCKED

    def test_activated_session_scoping(self, facade, bypass, prompt, store):
        prompt.push(PASSPHRASE, PASSPHRASE, PASSPHRASE)
        bypass.enroll()
        bypass.activate(duration=14400, inactivity=1800)
        assert store.has_token()
        assert bypass.is_active()

        allowed = facade.check("~/Projects/app/main.py", "Edit")
        assert allowed.decision is Decision.ALLOW
        assert allowed.auth_level is Tier.BYPASS

        blocked = facade.check("~/.ssh/id_rsa", "Read")
        assert blocked.decision is Decision.TIER2_BLOCKED
        assert blocked.zone is Zone.SENSITIVE

        assert bypass.rate_limiter.stats()[0] == 1

    def test_project_symlink_cannot_reach_credentials(self, facade, bypass, prompt, home):
        prompt.push(PASSPHRASE, PASSPHRASE, PASSPHRASE)
        bypass.enroll()
        bypass.activate()
        (home / ".ssh" / "config.d").mkdir()
        (home / "Projects" / "lnk").symlink_to(home / ".ssh" / "config.d")
        result = facade.check("~/Projects/lnk/../id_rsa", "Read")
        assert result.decision is Decision.TIER2_BLOCKED
        assert result.zone is Zone.SENSITIVE

    @pytest.mark.parametrize("operation", ["rm -r -f /*", "rm -r /usr", "rm -rf //"])
    def test_split_flag_deletion_is_nuclear(self, facade, superadmin, operation):
        superadmin.active = True
        assert facade.check("", operation).decision is Decision.NUCLEAR_BLOCKED

    def test_nuclear_with_superadmin(self, facade, superadmin):
        superadmin.active = True
        result = facade.check("/", "rm -rf /")
        assert result.decision is Decision.NUCLEAR_BLOCKED
        assert result.auth_level is Tier.SUPERADMIN
        assert facade.check("/etc/hosts", "Edit").decision is Decision.ALLOW

    def test_lockout_message(self, bypass, prompt):
        prompt.push(PASSPHRASE, PASSPHRASE)
        bypass.enroll()
        for _ in range(3):
            prompt.push("not the passphrase")
            with pytest.raises(AuthenticationError):
                bypass.activate()
        with pytest.raises(RateLimitedError) as exc:
            bypass.activate()
        assert "60 seconds" in str(exc.value)

    def test_session_expires(self, facade, bypass, prompt, clock, store):
        prompt.push(PASSPHRASE, PASSPHRASE, PASSPHRASE)
        bypass.enroll()
        bypass.activate(duration=2)
        clock.advance(3)
        assert not bypass.is_active()
        assert not store.path_for(TOKEN_FILE).exists()
        assert facade.check("~/Projects/app/main.py", "Edit").decision is Decision.TIER1_BLOCKED

    def test_rate_cap_through_facade(self, facade, bypass, prompt):
        bypass.rate_limiter.limit = 2
        prompt.push(PASSPHRASE, PASSPHRASE, PASSPHRASE)
        bypass.enroll()
        bypass.activate()
        decisions = [facade.check("~/Projects/app/main.py", "Edit") for _ in range(3)]
        assert [r.decision for r in decisions] == [
            Decision.ALLOW, Decision.ALLOW, Decision.TIER1_BLOCKED,
        ]
        assert decisions[-1].details['rate_limited'] is True
        # General files never count against the cap
        assert facade.check("/tmp/notes.txt", "Write").decision is Decision.ALLOW

    def test_tampered_engine_issues_no_decision(self, facade, store, tmp_path):
        watched = tmp_path / "engine.py"
        watched.write_text("ALLOW = False\n")
        facade.integrity = IntegrityVerifier(store, protected_files=[watched])
        facade.integrity.generate_manifest()
        assert facade.check("/tmp/x").decision is Decision.ALLOW

        watched.write_text("ALLOW = True\n")
        with pytest.raises(IntegrityError):
            facade.check("/tmp/x")
