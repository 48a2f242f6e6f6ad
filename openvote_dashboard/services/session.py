# SPDX-License-Identifier: Apache-2.0

"""
Session management for the dashboard.

This module owns the authenticated identity. The credential is a JWT issued by
the backend; its payload is decoded WITHOUT signature verification to read the
role and expiry for interface gating only. Verifying here would require the
signing secret on the client. Authenticity was established by the issuing
backend, which re-checks the credential on every request.

The session blob lives in volatile storage only and never survives a restart.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import jwt
from opentelemetry import trace

from ..config import DEFAULT_SESSION_KEY
from ..exceptions import AuthenticationError
from ..models.entities import AuthSession
from ..models.enums import UserRole

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
LogoutListener = Callable[[str], None]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MalformedCredentialError(ValueError):
    """Raised when a credential cannot be decoded into a session."""
    pass


def decode_credential(token: str) -> Dict[str, Any]:
    """
    Decode a JWT payload without verifying its signature.

    Args:
        token: JWT string

    Returns:
        Decoded claims

    Raises:
        MalformedCredentialError: If the token is not a well-formed JWT
    """
    try:
        return jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        raise MalformedCredentialError(f"Malformed credential: {str(e)}") from e


def session_from_token(token: str, username: Optional[str] = None) -> AuthSession:
    """
    Build an AuthSession from a credential.

    The username comes from the `username` claim when present, otherwise from
    the name used at login, otherwise from the subject.

    Args:
        token: JWT string
        username: Name supplied at login

    Returns:
        AuthSession (not checked for expiry)

    Raises:
        MalformedCredentialError: If role or expiry are missing or invalid
    """
    claims = decode_credential(token)

    try:
        role = UserRole(claims.get("role"))
    except ValueError:
        raise MalformedCredentialError(f"Unknown role in credential: {claims.get('role')!r}")

    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise MalformedCredentialError("Credential has no valid expiry")
    try:
        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise MalformedCredentialError(f"Credential expiry out of range: {exp}") from e

    subject = claims.get("sub")
    name = claims.get("username") or username or subject
    if not name:
        raise MalformedCredentialError("Credential carries no user identity")

    return AuthSession(
        token=token,
        role=role,
        username=str(name),
        expires_at=expires_at,
        user_id=str(subject) if subject is not None else None,
        region_id=claims.get("region_id") or None
    )


class MemorySessionStorage:
    """
    Volatile key/value storage scoped to one dashboard instance.

    Stands in for tab-scoped browser storage: contents are lost when the
    process ends and are never written to disk.
    """

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    def __contains__(self, key: str) -> bool:
        return key in self._data


class SessionManager:
    """
    Owns the authenticated identity and its validity window.

    Dependent components register a logout listener; it is called once each
    time an active session ends (explicit logout, rejected credential or
    detected expiry).
    """

    def __init__(
        self,
        api_client,
        storage: Optional[MemorySessionStorage] = None,
        storage_key: str = DEFAULT_SESSION_KEY,
        clock: Optional[Clock] = None
    ):
        """
        Initialize the session manager.

        Args:
            api_client: OpenVoteAPIClient used for login/registration
            storage: Volatile session storage
            storage_key: Fixed key of the session blob
            clock: Callable returning the current aware datetime
        """
        self.api_client = api_client
        self.storage = storage if storage is not None else MemorySessionStorage()
        self.storage_key = storage_key
        self.clock = clock or utc_now
        self._session: Optional[AuthSession] = None
        self._listeners: List[LogoutListener] = []

    def add_logout_listener(self, listener: LogoutListener) -> None:
        self._listeners.append(listener)

    def remove_logout_listener(self, listener: LogoutListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def current(self) -> Optional[AuthSession]:
        """The active session; an expired session is logged out and reported as None."""
        if self._session is not None and not self._session.is_valid(self.clock()):
            logger.info("Session expired", extra={"username": self._session.username})
            self.logout(reason="expired")
        return self._session

    def is_authenticated(self) -> bool:
        return self.current is not None

    def token(self) -> Optional[str]:
        session = self.current
        return session.token if session else None

    def restore(self) -> Optional[AuthSession]:
        """
        Restore the session from storage.

        Malformed or expired blobs are discarded.

        Returns:
            A valid AuthSession, or None
        """
        with tracer.start_as_current_span("session.restore") as span:
            blob = self.storage.get(self.storage_key)
            if not blob:
                span.set_attribute("session.result", "absent")
                return None

            try:
                data = json.loads(blob)
                if not isinstance(data, dict) or not isinstance(data.get("token"), str):
                    raise MalformedCredentialError("Session blob has no credential")
                session = session_from_token(data["token"], data.get("username"))
            except (ValueError, TypeError) as e:
                span.set_attribute("session.result", "malformed")
                logger.warning(f"Discarding stored session: {str(e)}")
                self.storage.delete(self.storage_key)
                return None

            if not session.is_valid(self.clock()):
                span.set_attribute("session.result", "expired")
                logger.info("Discarding expired stored session", extra={"username": session.username})
                self.storage.delete(self.storage_key)
                return None

            span.set_attributes({"session.result": "restored", "session.role": session.role.value})
            self._session = session
            logger.info("Session restored", extra={"username": session.username, "role": session.role.value})
            return session

    def _open(self, token: str, username: Optional[str]) -> AuthSession:
        try:
            session = session_from_token(token, username)
        except MalformedCredentialError as e:
            raise AuthenticationError(f"Server returned an unusable credential: {str(e)}") from e

        if not session.is_valid(self.clock()):
            raise AuthenticationError("Server returned an expired credential")

        self.storage.set(self.storage_key, json.dumps({"token": token, "username": session.username}))
        self._session = session
        logger.info(
            "Session opened",
            extra={
                "username": session.username,
                "role": session.role.value,
                "expires_at": session.expires_at.isoformat()
            }
        )
        return session

    async def login(self, username: str, password: str) -> AuthSession:
        """
        Authenticate against the backend and open a session.

        Raises:
            ValidationException: Missing username or password
            AuthenticationError: Credentials rejected, with the backend's reason
            TransientNetworkError: Backend unreachable
        """
        with tracer.start_as_current_span("session.login") as span:
            token = await self.api_client.login(username, password)
            session = self._open(token, username)
            span.set_attribute("session.role", session.role.value)
            return session

    async def register(self, username: str, password: str) -> Dict[str, Any]:
        """Create an account. Registration does not open a session."""
        with tracer.start_as_current_span("session.register"):
            user = await self.api_client.register(username, password)
            logger.info("Account registered", extra={"username": username})
            return user

    async def enroll(self, activation_token: str, pin: str) -> AuthSession:
        """Activate an account and open a session with the returned credential."""
        with tracer.start_as_current_span("session.enroll"):
            body = await self.api_client.enroll(activation_token, pin)
            user = body.get("user") or {}
            return self._open(body["access_token"], user.get("username"))

    def logout(self, reason: str = "logout") -> None:
        """
        Clear the stored credential and notify dependent components.

        Args:
            reason: "logout", "expired" or "unauthorized"
        """
        self.storage.delete(self.storage_key)
        session, self._session = self._session, None
        if session is None:
            return

        logger.info("Session closed", extra={"username": session.username, "reason": reason})
        for listener in list(self._listeners):
            try:
                listener(reason)
            except Exception:
                logger.exception("Logout listener failed")
