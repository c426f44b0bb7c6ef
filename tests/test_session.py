"""Tests for the shared-secret session guard."""

import pytest
from itsdangerous import TimestampSigner

from day_planner.config import ConfigError
from day_planner.core.session import SESSION_MAX_AGE, InvalidCredential, SessionGuard


class TestSessionGuard:
    def test_login_issues_verifiable_token(self):
        guard = SessionGuard("hunter2")
        token = guard.login("hunter2")
        assert guard.verify(token)

    def test_wrong_password(self):
        with pytest.raises(InvalidCredential):
            SessionGuard("hunter2").login("hunter3")

    def test_missing_password(self):
        with pytest.raises(InvalidCredential):
            SessionGuard("hunter2").login(None)

    def test_unconfigured_secret(self):
        with pytest.raises(ConfigError, match="DP_APP_PASSWORD"):
            SessionGuard(None).login("anything")

    def test_unconfigured_secret_never_verifies(self):
        assert not SessionGuard(None).verify("whatever")

    def test_tampered_token(self):
        guard = SessionGuard("hunter2")
        token = guard.login("hunter2")
        assert not guard.verify(token + "x")

    def test_token_from_other_secret(self):
        token = SessionGuard("one").login("one")
        assert not SessionGuard("two").verify(token)

    def test_empty_token(self):
        assert not SessionGuard("hunter2").verify("")
        assert not SessionGuard("hunter2").verify(None)

    def test_expires_after_seven_days(self, monkeypatch):
        guard = SessionGuard("hunter2")
        issued = 1_700_000_000
        monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: issued)
        token = guard.login("hunter2")

        monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: issued + SESSION_MAX_AGE - 1)
        assert guard.verify(token)

        monkeypatch.setattr(TimestampSigner, "get_timestamp", lambda self: issued + SESSION_MAX_AGE + 1)
        assert not guard.verify(token)
