"""Email/password identity provider backed by the document store.

Credentials live in their own collection keyed by user id; sessions are
signed JWTs whose subject is that id.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from jose import JWTError

from travel_threads.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from travel_threads.core.settings import Settings
from travel_threads.db.time import to_timestamp, utcnow
from travel_threads.errors import IdentityError
from travel_threads.schemas.auth import Session
from travel_threads.schemas.user import DEFAULT_DISPLAY_NAME
from travel_threads.services.collections import CREDENTIALS, USERS
from travel_threads.services.social import default_profile_document
from travel_threads.store.base import DocumentStore, Query, new_document_id

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

USER_NOT_FOUND = "auth/user-not-found"
WRONG_PASSWORD = "auth/wrong-password"
TOO_MANY_REQUESTS = "auth/too-many-requests"
EMAIL_ALREADY_IN_USE = "auth/email-already-in-use"
INVALID_EMAIL = "auth/invalid-email"
WEAK_PASSWORD = "auth/weak-password"
INVALID_TOKEN = "auth/invalid-token"

_MESSAGES: dict[str, dict[str, str]] = {
    "login": {
        USER_NOT_FOUND: "Invalid email or password",
        WRONG_PASSWORD: "Invalid email or password",
        TOO_MANY_REQUESTS: "Too many failed login attempts. Please try again later.",
    },
    "signup": {
        EMAIL_ALREADY_IN_USE: "Email is already in use",
        INVALID_EMAIL: "Invalid email address",
        WEAK_PASSWORD: "Password is too weak",
    },
}
_FALLBACKS = {"login": "Login failed", "signup": "Signup failed"}

# Called with the user id and the new session, or None when a session ends.
SessionListener = Callable[[str, Session | None], None]


def user_message(code: str, context: str = "login") -> str:
    """Map an identity error code to the message shown to the user.

    Args:
        code: ``auth/...`` error code
        context: ``login`` or ``signup``; selects the table and the fallback

    Returns:
        The user-facing message, or the generic failure message for the context
    """
    if code == INVALID_TOKEN:
        return "Your session has expired. Please sign in again."
    messages = _MESSAGES.get(context, {})
    return messages.get(code, _FALLBACKS.get(context, "Authentication failed"))


class LocalIdentityProvider:
    """Sign-up, sign-in and token sessions for email/password accounts.

    One provider serves every request, so it holds no "current" session: a
    session is the signed token itself. The provider only remembers revoked
    token ids until they expire and recent login failures per email.
    """

    def __init__(
        self,
        store: DocumentStore,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._settings = settings
        self._clock = clock
        self._failures: dict[str, list[datetime]] = {}
        self._revoked: dict[str, float] = {}
        self._listeners: list[SessionListener] = []

    async def _find_credential(self, email: str) -> tuple[str, dict] | None:
        query = Query(CREDENTIALS).where("email", "==", email).limit_to(1)
        snapshots = await self._store.query(query)
        if not snapshots:
            return None
        return snapshots[0].id, snapshots[0].to_dict()

    async def sign_up(
        self,
        email: str,
        password: str,
        display_name: str | None = None,
    ) -> Session:
        """Register a new account and open a session for it.

        The credential and the default profile are written in one batch.

        Raises:
            IdentityError: ``auth/invalid-email``, ``auth/weak-password`` or
                ``auth/email-already-in-use``
        """
        email = email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise IdentityError(INVALID_EMAIL)
        if len(password) < self._settings.min_password_length:
            raise IdentityError(WEAK_PASSWORD)
        if await self._find_credential(email) is not None:
            raise IdentityError(EMAIL_ALREADY_IN_USE)

        user_id = new_document_id()
        created_at = to_timestamp(self._clock())
        batch = self._store.batch()
        batch.set(
            CREDENTIALS,
            user_id,
            {"email": email, "passwordHash": hash_password(password), "createdAt": created_at},
        )
        batch.set(
            USERS,
            user_id,
            default_profile_document(
                created_at,
                display_name=display_name or DEFAULT_DISPLAY_NAME,
                email=email,
            ),
        )
        await batch.commit()
        logger.info("Registered user %s", user_id)
        return self._open_session(user_id, email)

    async def sign_in(self, email: str, password: str) -> Session:
        """Check an email/password pair and open a session.

        Wrong passwords are counted per email over a sliding window of
        ``login_lockout_seconds``; once ``login_max_failures`` fall inside
        it, sign-in is refused until the oldest one ages out.

        Raises:
            IdentityError: ``auth/user-not-found``, ``auth/wrong-password`` or,
                after too many recent wrong passwords, ``auth/too-many-requests``
        """
        email = email.strip().lower()
        now = self._clock()
        window = timedelta(seconds=self._settings.login_lockout_seconds)
        recent = [at for at in self._failures.get(email, []) if now - at < window]
        if recent:
            self._failures[email] = recent
        else:
            self._failures.pop(email, None)
        if len(recent) >= self._settings.login_max_failures:
            raise IdentityError(TOO_MANY_REQUESTS)
        found = await self._find_credential(email)
        if found is None:
            raise IdentityError(USER_NOT_FOUND)
        user_id, credential = found
        if not verify_password(credential.get("passwordHash", ""), password):
            self._failures[email] = [*recent, now]
            logger.warning("Wrong password for %s (%d)", email, len(recent) + 1)
            raise IdentityError(WRONG_PASSWORD)
        self._failures.pop(email, None)
        return self._open_session(user_id, email)

    def sign_out(self, token: str) -> None:
        """End the session carried by ``token``."""
        self.revoke_token(token)

    def current_session(self, token: str) -> Session | None:
        """Return the session carried by ``token``, or None if it is not valid."""
        try:
            payload = self._decode(token)
        except IdentityError:
            return None
        return Session(
            user_id=str(payload["sub"]),
            email=payload.get("email", ""),
            access_token=token,
        )

    def revoke_token(self, token: str) -> None:
        """Reject ``token`` from now on. Invalid or already revoked tokens are ignored."""
        try:
            payload = self._decode(token)
        except IdentityError:
            return
        # Expiry is checked against wall-clock time by the JWT library.
        now = utcnow().timestamp()
        self._revoked = {jti: exp for jti, exp in self._revoked.items() if exp > now}
        if payload.get("jti"):
            self._revoked[payload["jti"]] = float(payload.get("exp", now))
        self._notify(str(payload["sub"]), None)

    def verify_token(self, token: str) -> str:
        """Return the user id carried by a valid, unrevoked token.

        Raises:
            IdentityError: ``auth/invalid-token``
        """
        return str(self._decode(token)["sub"])

    async def delete_user(self, user_id: str) -> None:
        """Remove the credential record for ``user_id``.

        Raises:
            IdentityError: ``auth/user-not-found`` if no credential exists
        """
        snapshot = await self._store.get(CREDENTIALS, user_id)
        if not snapshot.exists:
            raise IdentityError(USER_NOT_FOUND)
        await self._store.delete(CREDENTIALS, user_id)
        logger.info("Deleted credential for %s", user_id)
        self._notify(user_id, None)

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener`` for sessions being opened or ended.

        Returns:
            A callable that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _decode(self, token: str) -> dict[str, Any]:
        try:
            payload = decode_access_token(token, self._settings)
        except JWTError as exc:
            raise IdentityError(INVALID_TOKEN) from exc
        if payload.get("jti") in self._revoked:
            raise IdentityError(INVALID_TOKEN, "Token has been revoked")
        return payload

    def _open_session(self, user_id: str, email: str) -> Session:
        token = create_access_token(user_id, self._settings, {"email": email})
        session = Session(user_id=user_id, email=email, access_token=token)
        self._notify(user_id, session)
        return session

    def _notify(self, user_id: str, session: Session | None) -> None:
        for listener in list(self._listeners):
            listener(user_id, session)


__all__ = ["LocalIdentityProvider", "user_message", "EMAIL_PATTERN"]
