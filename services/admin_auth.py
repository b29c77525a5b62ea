"""Admin sign-in backed by signed session tokens."""

from __future__ import annotations

import time
from typing import Callable, Dict, List, Optional

import jwt  # PyJWT library for token generation


SESSION_TTL_SECONDS = 24 * 3600


class AuthError(Exception):
    pass


class AdminAuthenticator:
    def __init__(self, email: str, password: str, secret: str, *, ttl: int = SESSION_TTL_SECONDS) -> None:
        self._email = email
        self._password = password
        self._secret = secret
        self._ttl = ttl
        self._listeners: List[Callable[[str, Optional[Dict]], None]] = []

    def sign_in_with_password(self, email: str, password: str) -> str:
        if (email or "").strip().lower() != self._email.lower() or password != self._password:
            raise AuthError("Invalid credentials")
        now = int(time.time())
        token = jwt.encode(
            {"sub": "admin", "email": self._email, "iat": now, "exp": now + self._ttl},
            self._secret,
            algorithm="HS256",
        )
        self._notify("SIGNED_IN", {"email": self._email})
        return token

    def get_session(self, token: Optional[str]) -> Optional[Dict]:
        if not token:
            return None
        try:
            claims = jwt.decode(token, self._secret, algorithms=["HS256"])
        except jwt.InvalidTokenError:
            return None
        return {"user": {"email": claims.get("email"), "id": claims.get("sub")}, "expires_at": claims.get("exp")}

    def sign_out(self) -> None:
        self._notify("SIGNED_OUT", None)

    def on_auth_state_change(self, callback: Callable[[str, Optional[Dict]], None]) -> Callable[[], None]:
        """Register ``callback(event, session)``; returns an unsubscribe function."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _notify(self, event: str, session: Optional[Dict]) -> None:
        for listener in list(self._listeners):
            listener(event, session)
