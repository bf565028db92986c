"""
Purpose: Stateless credential check.
What it does:
Turns a bearer token ("Bearer <jwt>" or the bare jwt) into a Caller. Tokens
are HS256 JWTs carrying {"userId": ..., "role": "rider" | "driver"}, the
payload the login service issues. Issuing tokens is out of scope here except
for issue_token(), which tests and scripts use to mint credentials.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

import jwt

from rides.errors import AuthenticationError, InputError
from .models import Caller, Role

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class TokenAuthenticator:
    def __init__(self, secret: str, *, algorithm: str = ALGORITHM):
        if not secret:
            raise ValueError("a signing secret is required")
        self.secret = secret
        self.algorithm = algorithm

    def authenticate(self, credential: Optional[str]) -> Caller:
        token = _strip_scheme(credential)
        if not token:
            raise AuthenticationError("missing credential")

        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError("token has expired") from exc
        except jwt.InvalidTokenError as exc:
            logger.info("rejected token: %s", exc)
            raise AuthenticationError("invalid token") from exc

        try:
            return Caller.new(payload.get("userId"), payload.get("role") or "")
        except InputError as exc:
            raise AuthenticationError(f"token payload rejected: {exc.message}") from exc

    def issue_token(self, identity: str, role: Role | str, *, expires_in: Optional[timedelta] = None) -> str:
        caller = Caller.new(identity, role)
        payload = {"userId": caller.identity, "role": caller.role.value}
        if expires_in is not None:
            payload["exp"] = datetime.now(timezone.utc) + expires_in
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)


def _strip_scheme(credential: Optional[str]) -> Optional[str]:
    if not credential:
        return None
    parts = credential.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    if len(parts) == 1:
        return parts[0]
    return None
