from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

import jwt

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class IdentityProvider(Protocol):
    def current_user_id(self) -> str | None:
        """Return the authenticated user's id, or None when nobody is signed in."""
        ...


class StaticIdentityProvider(IdentityProvider):
    """
    Fixed identity, mostly for scripts and tests.

    `user_id` may be reassigned by the owner; the client only ever reads a snapshot.
    """

    def __init__(self, user_id: str | None = None) -> None:
        self.user_id = user_id

    def current_user_id(self) -> str | None:
        return self.user_id


class JwtIdentityProvider(IdentityProvider):
    """
    Reads the user id from the `sub` claim of the current bearer token.

    Token acquisition/refresh lives elsewhere; this only decodes whatever the
    token provider hands back. With a secret configured the signature and
    expiry are verified, otherwise the claims are read as-is. The `aud` claim
    is checked only when an audience is configured.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        *,
        secret: str = "",
        algorithm: str = "HS256",
        audience: str = "",
    ) -> None:
        self._token_provider = token_provider
        self._secret = secret
        self._algorithm = algorithm
        self._audience = audience

    def current_user_id(self) -> str | None:
        try:
            token = self._token_provider()
        except Exception as e:
            logger.warning("IDENTITY: token provider failed: %r", e)
            return None
        if not isinstance(token, str) or not token.strip():
            return None

        try:
            if self._secret:
                payload = jwt.decode(
                    token,
                    self._secret,
                    algorithms=[self._algorithm],
                    audience=self._audience or None,
                    options={"require": ["sub"], "verify_aud": bool(self._audience)},
                )
            else:
                payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            logger.info("IDENTITY: jwt decode failed: %r", e)
            return None

        sub = payload.get("sub")
        if not isinstance(sub, str) or not sub.strip():
            logger.info("IDENTITY: bad sub")
            return None
        return sub.strip()
