import logging

import jwt
from django.conf import settings
from rest_framework import authentication, exceptions

from .identity import Identity

logger = logging.getLogger(__name__)


class JWTAuthentication(authentication.BaseAuthentication):
    """
    Authorization: Bearer <identity jwt>
    Resolves the caller to an Identity (id + username) without a user table.
    """

    keyword = "Bearer"

    def authenticate(self, request):
        header = authentication.get_authorization_header(request).decode("utf-8", errors="ignore")
        if not header:
            return None

        parts = header.split()
        if len(parts) != 2 or parts[0] != self.keyword:
            return None

        token = parts[1]
        try:
            payload = jwt.decode(token, settings.IDENTITY_TOKEN_SECRET, algorithms=["HS256"])
        except jwt.ExpiredSignatureError:
            raise exceptions.AuthenticationFailed("identity token expired", code="token_expired")
        except jwt.InvalidTokenError as e:
            logger.debug("identity token rejected: %s", e)
            raise exceptions.AuthenticationFailed("invalid identity token", code="invalid_token")

        user_id = payload.get("sub") or payload.get("user_id") or payload.get("uid")
        if not user_id:
            raise exceptions.AuthenticationFailed("identity token has no subject", code="invalid_token")

        return Identity(user_id, payload.get("username", ""), payload), token

    def authenticate_header(self, request):
        return self.keyword
