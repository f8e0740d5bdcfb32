from __future__ import annotations

import json
import logging
import os
from typing import Any, Protocol

from msal_extensions import FilePersistence, FilePersistenceWithDataProtection

from lists_client.config import AppSettings
from lists_client.http import ApiHttpError, HttpClient
from lists_client.models import AuthState, Session, User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_CODE = "invalid_credentials"
# Older GoTrue releases only report this phrase, with no machine-readable code.
INVALID_CREDENTIALS_PHRASE = "Invalid login credentials"


class IdentityServiceError(RuntimeError):
    """A failure reported by the identity provider in a structured response."""

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class InvalidCredentialsError(IdentityServiceError):
    pass


def is_invalid_credentials(code: str | None, message: str) -> bool:
    if code == INVALID_CREDENTIALS_CODE:
        return True
    return INVALID_CREDENTIALS_PHRASE in message


class IdentityService(Protocol):
    def sign_in_with_password(self, identifier: str, secret: str) -> Session | None:
        ...


class SupabaseIdentityService:
    """Password sign-in against a GoTrue-compatible auth REST API."""

    def __init__(self, http_client: HttpClient):
        self._http_client = http_client

    def sign_in_with_password(self, identifier: str, secret: str) -> Session | None:
        payload = self._call_token_grant(
            "password",
            {"email": identifier, "password": secret},
        )
        if not payload.get("access_token"):
            return None
        return Session.from_payload(payload)

    def refresh_session(self, refresh_token: str) -> Session | None:
        payload = self._call_token_grant("refresh_token", {"refresh_token": refresh_token})
        if not payload.get("access_token"):
            return None
        return Session.from_payload(payload)

    def get_user(self, access_token: str) -> User:
        try:
            payload = self._http_client.get_json("/user", token=access_token)
        except ApiHttpError as exc:
            raise self._translate_error(exc) from exc
        return User.from_payload(payload)

    def sign_out(self, access_token: str) -> None:
        try:
            self._http_client.post_json("/logout", {}, token=access_token)
        except ApiHttpError as exc:
            raise self._translate_error(exc) from exc

    def _call_token_grant(self, grant_type: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            return self._http_client.post_json(
                "/token",
                body,
                params={"grant_type": grant_type},
                # Password grants are sent exactly once.
                retry=grant_type != "password",
            )
        except ApiHttpError as exc:
            raise self._translate_error(exc) from exc

    @staticmethod
    def _translate_error(error: ApiHttpError) -> Exception:
        # Responses without a JSON error body (gateway pages, proxies) are not
        # structured failures and surface unchanged.
        if not error.body:
            return error

        message = str(error)
        raw_code = error.body.get("error_code") or error.body.get("error")
        code = str(raw_code) if isinstance(raw_code, str) else None

        if is_invalid_credentials(code, message):
            return InvalidCredentialsError(message, code=code, status_code=error.status_code)
        return IdentityServiceError(message, code=code, status_code=error.status_code)


class SessionStore:
    def __init__(self, path: str):
        self._persistence = self._build_persistence(path)

    @staticmethod
    def _build_persistence(path: str):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        try:
            return FilePersistenceWithDataProtection(path)
        except Exception:
            return FilePersistence(path)

    def load(self) -> Session | None:
        try:
            raw = self._persistence.load()
        except OSError:
            return None
        if not raw:
            return None

        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                raise ValueError("session cache is not a JSON object")
            return Session.from_payload(payload)
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding unreadable session cache")
            self.clear()
            return None

    def save(self, session: Session) -> None:
        self._persistence.save(json.dumps(session.to_payload()))

    def clear(self) -> None:
        self._persistence.save("")


class AuthManager:
    """Identity service used by the app: signs in, keeps the session on disk,
    restores it on start-up and signs out."""

    def __init__(self, identity: SupabaseIdentityService, store: SessionStore):
        self._identity = identity
        self._store = store
        self._session: Session | None = None

    @property
    def session(self) -> Session | None:
        return self._session

    def sign_in_with_password(self, identifier: str, secret: str) -> Session | None:
        session = self._identity.sign_in_with_password(identifier, secret)
        if session is not None:
            self._session = session
            self._store.save(session)
            logger.info("Signed in as user %s", session.user.id if session.user else "unknown")
        return session

    def restore_session(self) -> Session | None:
        """Return a stored session the server still accepts, refreshing it once
        if the access token has expired."""
        session = self._store.load()
        if session is None:
            return None

        try:
            if session.is_expired() and session.refresh_token:
                session = self._identity.refresh_session(session.refresh_token)
                if session is None:
                    self._forget()
                    return None
            user = self._identity.get_user(session.access_token)
        except IdentityServiceError as exc:
            if exc.status_code is not None and exc.status_code >= 500:
                logger.warning("Could not verify stored session: %s", exc.message)
                return None
            logger.info("Stored session rejected: %s", exc.message)
            self._forget()
            return None

        restored = Session(
            access_token=session.access_token,
            refresh_token=session.refresh_token,
            token_type=session.token_type,
            expires_at=session.expires_at,
            user=user,
        )
        self._session = restored
        self._store.save(restored)
        return restored

    def get_auth_state(self) -> AuthState:
        if self._session is None:
            return AuthState(is_signed_in=False)
        email = self._session.user.email if self._session.user else None
        return AuthState(is_signed_in=True, email=email)

    def sign_out(self) -> None:
        session = self._session or self._store.load()
        if session is not None:
            try:
                self._identity.sign_out(session.access_token)
            except Exception:
                logger.exception("Server-side sign out failed")
        self._forget()

    def _forget(self) -> None:
        self._session = None
        self._store.clear()


def build_auth_manager(settings: AppSettings) -> AuthManager:
    identity = SupabaseIdentityService(HttpClient(settings))
    return AuthManager(identity, SessionStore(settings.session_cache_path))
