"""
Anti-forgery tokens for admin actions.

Tokens are short-lived JWTs bound to an action name (for example
``duplicate_post_42``) and to the user they were minted for. Expiry is
checked against the injected clock so tests can move time.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Protocol

from jose import jwt

from duplicate_post.api.auth_utils import ALGORITHM, create_access_token

logger = logging.getLogger(__name__)

NONCE_TOKEN_TYPE = "nonce"


class _Clock(Protocol):
    def now_utc(self) -> Any: ...


class JWTNonceService:
    """Mint and verify action-scoped anti-forgery tokens."""

    def __init__(self, secret_key: str, ttl_minutes: int, clock: _Clock) -> None:
        self._secret_key = secret_key
        self._ttl = timedelta(minutes=ttl_minutes)
        self._clock = clock

    def create(self, action: str, user_id: int) -> str:
        return create_access_token(
            {"typ": NONCE_TOKEN_TYPE, "act": action, "uid": user_id},
            expires_delta=self._ttl,
            now_utc=self._clock.now_utc(),
            secret_key=self._secret_key,
        )

    def verify(self, token: str | None, action: str, user_id: int) -> bool:
        if not token:
            return False

        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                options={"verify_exp": False},
            )
        except jwt.JWTError:
            logger.info("Rejected malformed nonce for %s", action)
            return False

        if payload.get("typ") != NONCE_TOKEN_TYPE:
            return False
        if payload.get("act") != action or payload.get("uid") != user_id:
            return False

        exp = payload.get("exp")
        if not isinstance(exp, int | float):
            return False
        if exp <= self._clock.now_utc().timestamp():
            logger.info("Rejected expired nonce for %s", action)
            return False

        return True
