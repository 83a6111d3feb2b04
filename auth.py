"""Bearer token issuing and verification.

Tokens use the JWT compact form signed with HMAC-SHA256 and carry the
account id in ``sub``. Every verification failure surfaces as the same
``AuthError`` so callers cannot tell a bad signature from an expired token or
a vanished account.
"""

import base64
import hashlib
import hmac
import json
import time
from typing import Optional

from fastapi import Header, HTTPException

from db import NotFoundError, UserRepository

AUTH_REQUIRED = "Authentication required"

_HEADER = {"alg": "HS256", "typ": "JWT"}


class AuthError(Exception):
    """Raised when a bearer token cannot be resolved to an account."""


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode().rstrip("=")


def _ub64(value: str) -> bytes:
    pad = "=" * ((4 - len(value) % 4) % 4)
    return base64.urlsafe_b64decode((value + pad).encode())


class TokenSigner:
    """Issue and verify signed tokens with a process-wide secret."""

    def __init__(self, secret: str, ttl_seconds: int = 7 * 24 * 3600) -> None:
        self._secret = secret.encode()
        self.ttl_seconds = ttl_seconds

    def _sign(self, signing_input: str) -> str:
        digest = hmac.new(self._secret, signing_input.encode(), hashlib.sha256).digest()
        return _b64(digest)

    def issue(self, user_id: str, now: Optional[float] = None) -> str:
        issued = int(now if now is not None else time.time())
        payload = {"sub": user_id, "iat": issued, "exp": issued + self.ttl_seconds}
        head = _b64(json.dumps(_HEADER, separators=(",", ":")).encode())
        body = _b64(json.dumps(payload, separators=(",", ":")).encode())
        signing_input = f"{head}.{body}"
        return f"{signing_input}.{self._sign(signing_input)}"

    def verify(self, token: str, now: Optional[float] = None) -> str:
        """Return the account id embedded in ``token``."""
        try:
            head, body, signature = token.split(".")
            expected = self._sign(f"{head}.{body}")
            if not hmac.compare_digest(expected, signature):
                raise AuthError("bad signature")
            header = json.loads(_ub64(head))
            if header.get("alg") != "HS256":
                raise AuthError("unsupported algorithm")
            payload = json.loads(_ub64(body))
            current = now if now is not None else time.time()
            if int(payload["exp"]) < current:
                raise AuthError("expired")
            user_id = payload["sub"]
        except AuthError:
            raise
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise AuthError(str(e))
        if not isinstance(user_id, str) or not user_id:
            raise AuthError("missing subject")
        return user_id


def bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise AuthError("missing header")
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token or " " in token:
        raise AuthError("malformed header")
    return token


class CredentialVerifier:
    """FastAPI dependency resolving the bearer token to the caller's account."""

    def __init__(self, signer: TokenSigner, users: UserRepository) -> None:
        self.signer = signer
        self.users = users

    async def resolve(self, authorization: Optional[str]) -> dict:
        user_id = self.signer.verify(bearer_token(authorization))
        try:
            return await self.users.fetch(user_id)
        except NotFoundError:
            raise AuthError("unknown account")

    async def __call__(self, authorization: Optional[str] = Header(default=None)) -> dict:
        try:
            return await self.resolve(authorization)
        except AuthError:
            raise HTTPException(
                status_code=401,
                detail=AUTH_REQUIRED,
                headers={"WWW-Authenticate": "Bearer"},
            )
