from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from outbound.core.config import get_settings


@dataclass(frozen=True, slots=True)
class TokenClaims:
    user_id: uuid.UUID
    role: str
    issued_at: int | None
    email: str | None = None


class TokenVerifier:
    """Verifies HS-signed access tokens carrying userId/role/iat claims."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    def verify(self, token: str) -> TokenClaims | None:
        try:
            payload: dict[str, Any] = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError:
            return None

        user_id_raw = payload.get("userId")
        role = payload.get("role")
        if not isinstance(user_id_raw, str) or not isinstance(role, str) or not role:
            return None
        try:
            user_id = uuid.UUID(user_id_raw)
        except ValueError:
            return None

        issued_at_raw = payload.get("iat")
        issued_at = int(issued_at_raw) if isinstance(issued_at_raw, (int, float)) and not isinstance(issued_at_raw, bool) else None
        email = payload.get("email")
        return TokenClaims(
            user_id=user_id,
            role=role,
            issued_at=issued_at,
            email=email if isinstance(email, str) else None,
        )


def create_access_token(
    *,
    user_id: uuid.UUID,
    role: str,
    secret: str,
    algorithm: str = "HS256",
    email: str | None = None,
    expires_in: timedelta | None = None,
    issued_at: datetime | None = None,
) -> str:
    issued = issued_at or datetime.now(timezone.utc)
    if expires_in is None:
        expires_in = timedelta(days=get_settings().access_token_days)
    claims: dict[str, Any] = {
        "userId": str(user_id),
        "role": role,
        "iat": int(issued.timestamp()),
        "exp": int((issued + expires_in).timestamp()),
    }
    if email is not None:
        claims["email"] = email
    return jwt.encode(claims, secret, algorithm=algorithm)
