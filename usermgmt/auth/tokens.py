"""Session token issuance and verification."""

from datetime import datetime

from ..config import UserMgmtConfig
from ..errors import InvalidTokenError
from ..utils.security import create_access_token, decode_access_token


class TokenService:
    """Issues and verifies stateless, signed, time-limited session tokens.

    Tokens are never stored server-side: validity is decided by signature
    and expiry alone. Blocking or deleting an account does not revoke its
    tokens; the access gate rechecks the account on every request instead.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expires_minutes: int = 60):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    @classmethod
    def from_config(cls, config: UserMgmtConfig) -> "TokenService":
        return cls(
            secret_key=config.secret_key,
            algorithm=config.jwt_algorithm,
            expires_minutes=config.jwt_expiry_minutes,
        )

    def issue(self, account_id: int, now: datetime | None = None) -> str:
        return create_access_token(
            {"sub": str(account_id)},
            secret_key=self.secret_key,
            algorithm=self.algorithm,
            expires_minutes=self.expires_minutes,
            now=now,
        )

    def verify(self, token: str) -> int:
        """Return the account id the token was issued for.

        Raises InvalidTokenError for any malformed, tampered or expired token.
        """
        payload = decode_access_token(token, self.secret_key, self.algorithm)
        if payload is None:
            raise InvalidTokenError()
        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise InvalidTokenError()
