"""
Bearer-token verification against Firebase Authentication.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

from firebase_admin import auth as firebase_auth

from transactions_backend.config import Settings
from transactions_backend.errors import TransactionsError
from transactions_backend.firebase import get_firebase_app

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


class TokenVerifier(Protocol):
    """Turns a bearer credential into a caller uid, or raises."""

    def verify(self, token: str) -> str:
        ...


@dataclass
class FirebaseTokenVerifier:
    settings: Settings

    def verify(self, token: str) -> str:
        app = get_firebase_app(self.settings)
        decoded = firebase_auth.verify_id_token(
            token, app=app, check_revoked=self.settings.firebase_check_revoked
        )
        uid = decoded.get("uid") if decoded else None
        if not uid:
            raise ValueError("Verified token carries no uid")
        return uid


@dataclass
class InMemoryTokenVerifier:
    """Test/dev double: accepts a fixed set of tokens."""

    tokens: dict[str, str] = field(default_factory=dict)

    def verify(self, token: str) -> str:
        try:
            return self.tokens[token]
        except KeyError:
            raise ValueError("Unknown token") from None


def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    parts = authorization.split(None, 1)
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        return None
    return parts[1].strip() or None


def verify_caller(
    authorization: Optional[str], verifier: TokenVerifier
) -> Optional[str]:
    """
    Return the caller uid for an Authorization header, or None.

    Rejections of any kind collapse into None. Only configuration problems
    (already typed as TransactionsError) propagate.
    """
    token = parse_bearer_token(authorization)
    if token is None:
        logger.debug("Rejected request: missing or malformed Authorization header")
        return None
    try:
        return verifier.verify(token)
    except TransactionsError:
        raise
    except Exception as exc:
        logger.warning("Rejected bearer token: %s", exc.__class__.__name__)
        return None
