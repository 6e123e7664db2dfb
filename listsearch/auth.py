# listsearch/auth.py
"""
Tokens handed to the Teams tab by the bot: HS256 JWTs signed with
TOKEN_SIGNING_KEY, issued for APP_BASE_URI, carrying the caller's tenant in `tid`.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from .config import TOKEN_SIGNING_KEY, APP_BASE_URI, TOKEN_LIFETIME_MIN
from .errors import AuthError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def token_from_authorization_header(header: Optional[str]) -> str:
    """'bearer <token>' -> '<token>'; anything else -> ''."""
    if not header or not header.lower().startswith("bearer"):
        return ""
    parts = header.split()
    return parts[1] if len(parts) > 1 else ""


class JwtHelper:
    def __init__(self, signing_key: str = TOKEN_SIGNING_KEY, app_base_uri: str = APP_BASE_URI,
                 lifetime_min: int = TOKEN_LIFETIME_MIN):
        self.signing_key = signing_key
        self.app_base_uri = app_base_uri
        self.lifetime_min = lifetime_min

    def generate_token(self, tenant_id: str, user_id: str = "", session_id: str = "") -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "tid": tenant_id,
            "sub": user_id,
            "sid": session_id,
            "iss": self.app_base_uri,
            "aud": self.app_base_uri,
            "iat": now,
            "nbf": now,
            "exp": now + timedelta(minutes=self.lifetime_min),
        }
        return jwt.encode(claims, self.signing_key, algorithm=ALGORITHM)

    def validate_token(self, token: Optional[str], tenant_id: str) -> Dict[str, Any]:
        if not token:
            logger.warning("token validation failed: no token")
            raise AuthError("missing token")
        if not self.signing_key:
            raise AuthError("token signing key is not configured")
        try:
            claims = jwt.decode(
                token,
                self.signing_key,
                algorithms=[ALGORITHM],
                audience=self.app_base_uri or None,
                issuer=self.app_base_uri or None,
                options={"require": ["exp", "tid"], "verify_aud": bool(self.app_base_uri)},
            )
        except jwt.ExpiredSignatureError as e:
            logger.warning("token validation failed: expired")
            raise AuthError("token expired") from e
        except jwt.InvalidTokenError as e:
            logger.warning("token validation failed: %s", type(e).__name__)
            raise AuthError("invalid token") from e

        if not tenant_id or claims.get("tid") != tenant_id:
            logger.warning("token validation failed: tenant mismatch")
            raise AuthError("token was not issued for this tenant")
        return claims
