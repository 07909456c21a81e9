from __future__ import annotations

import time
from dataclasses import dataclass

import jwt
from django.conf import settings

ALGORITHM = "HS256"


class TokenError(Exception):
    reason = "invalid_token"


class InvalidInput(TokenError):
    reason = "invalid_input"


class MalformedToken(TokenError):
    reason = "malformed_token"


class InvalidSignature(TokenError):
    reason = "invalid_signature"


class Expired(TokenError):
    reason = "token_expired"


@dataclass(frozen=True)
class AccessClaims:
    key: str
    buyer_id: str
    buyer_username: str
    vendor_id: str
    vendor_username: str
    order_id: str
    issued_at: int
    expires_at: float
    pack_id: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "AccessClaims":
        return cls(
            key=str(payload.get("contentKey") or ""),
            buyer_id=str(payload.get("userId") or ""),
            buyer_username=str(payload.get("username") or ""),
            vendor_id=str(payload.get("vendorId") or ""),
            vendor_username=str(payload.get("vendorUsername") or ""),
            order_id=str(payload.get("orderId") or ""),
            issued_at=int(payload.get("iat") or 0),
            expires_at=payload["exp"],
            pack_id=(str(payload["packId"]) if payload.get("packId") else None),
        )


class AccessTokenService:
    """
    Stateless capability tokens: one buyer, one content key, one order.

    Expiry is the only invalidation. `clock` returns unix seconds and is
    injectable so expiry can be checked at exact instants.
    """

    def __init__(self, secret: str, ttl: int = 120, clock=time.time):
        if not secret:
            raise ValueError("access token secret must be set")
        self.secret = secret
        self.ttl = int(ttl)
        self.clock = clock

    def issue(self, key, buyer_id, buyer_username, vendor_id, vendor_username, order_id,
              ttl: int | None = None, pack_id: str | None = None) -> str:
        fields = {
            "key": key,
            "buyer_id": buyer_id,
            "buyer_username": buyer_username,
            "vendor_id": vendor_id,
            "vendor_username": vendor_username,
            "order_id": order_id,
        }
        missing = [name for name, v in fields.items() if v is None or str(v).strip() == ""]
        if missing:
            raise InvalidInput(f"missing fields: {', '.join(missing)}")

        ttl = self.ttl if ttl is None else int(ttl)
        if ttl <= 0:
            raise InvalidInput("ttl must be positive")

        now = self.clock()
        payload = {
            "contentKey": str(key),
            "userId": str(buyer_id),
            "username": str(buyer_username),
            "vendorId": str(vendor_id),
            "vendorUsername": str(vendor_username),
            "orderId": str(order_id),
            "iat": int(now),
            # fractional: valid until the issuing instant + ttl
            "exp": now + ttl,
        }
        if pack_id:
            payload["packId"] = str(pack_id)
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def verify(self, token) -> AccessClaims:
        if not isinstance(token, str) or token.count(".") != 2:
            raise MalformedToken("token must have three segments")

        try:
            # expiry is checked below against the injected clock
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidSignatureError:
            raise InvalidSignature("signature mismatch")
        except jwt.InvalidTokenError as e:
            raise MalformedToken(f"undecodable token: {e}")

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise MalformedToken("token has no expiry")
        if self.clock() >= exp:
            raise Expired("token expired")

        return AccessClaims.from_payload(payload)


def build_token_service() -> AccessTokenService:
    return AccessTokenService(settings.ACCESS_TOKEN_SECRET, ttl=settings.ACCESS_TOKEN_TTL_SECONDS)
