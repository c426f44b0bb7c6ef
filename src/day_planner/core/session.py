"""Shared-secret login and signed session tokens."""

import hmac

from itsdangerous import BadSignature, SignatureExpired, TimestampSigner

from day_planner.config import ConfigError

SESSION_COOKIE = "session"
SESSION_MAX_AGE = 60 * 60 * 24 * 7
SESSION_VALUE = b"authenticated"


class InvalidCredential(Exception):
    """Raised when the supplied password does not match."""


class SessionGuard:
    """Checks the app password and issues tokens valid for `max_age` seconds."""

    def __init__(self, secret: str | None, max_age: int = SESSION_MAX_AGE):
        self.secret = secret
        self.max_age = max_age

    def _signer(self) -> TimestampSigner:
        if not self.secret:
            raise ConfigError("App password not configured: DP_APP_PASSWORD not set")
        return TimestampSigner(self.secret, salt="day-planner.session")

    def login(self, credential: str | None) -> str:
        signer = self._signer()
        if not isinstance(credential, str) or not hmac.compare_digest(
            credential.encode(), self.secret.encode()
        ):
            raise InvalidCredential("Invalid password")
        return signer.sign(SESSION_VALUE).decode()

    def verify(self, token: str | None) -> bool:
        if not token or not self.secret:
            return False
        try:
            value = self._signer().unsign(token, max_age=self.max_age)
        except (SignatureExpired, BadSignature):
            return False
        return value == SESSION_VALUE
