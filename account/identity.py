from datetime import datetime, timedelta, timezone

import jwt
from django.conf import settings


class Identity:
    """
    A caller verified by the identity provider.

    The user catalog lives outside this service, so nothing is loaded from
    the database: the verified token claims are the whole record.
    """

    is_authenticated = True
    is_anonymous = False

    def __init__(self, user_id: str, username: str = "", claims: dict | None = None):
        self.id = str(user_id)
        self.pk = self.id
        self.username = username or ""
        self.claims = claims or {}

    def __str__(self) -> str:
        return self.username or self.id

    def __repr__(self) -> str:
        return f"Identity(id={self.id!r}, username={self.username!r})"


def issue_identity_token(user_id: str, username: str = "", ttl_seconds: int = 3600) -> str:
    # Used by tooling and tests; production tokens come from the identity provider.
    now = datetime.now(timezone.utc)
    return jwt.encode(
        {
            "sub": str(user_id),
            "username": username,
            "iat": now,
            "exp": now + timedelta(seconds=ttl_seconds),
        },
        settings.IDENTITY_TOKEN_SECRET,
        algorithm="HS256",
    )
