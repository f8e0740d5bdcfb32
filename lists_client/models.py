from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import time
from typing import Any, Union


@dataclass(frozen=True)
class User:
    id: str
    email: str | None = None

    @staticmethod
    def from_payload(payload: dict[str, Any]) -> "User":
        return User(id=str(payload.get("id") or ""), email=payload.get("email"))


@dataclass(frozen=True)
class Session:
    access_token: str
    refresh_token: str = ""
    token_type: str = "bearer"
    expires_at: int | None = None
    user: User | None = None

    @staticmethod
    def from_payload(payload: dict[str, Any]) -> "Session":
        expires_at = payload.get("expires_at")
        if expires_at is None and payload.get("expires_in") is not None:
            expires_at = int(time.time()) + int(payload["expires_in"])

        user_payload = payload.get("user")
        return Session(
            access_token=str(payload["access_token"]),
            refresh_token=str(payload.get("refresh_token") or ""),
            token_type=str(payload.get("token_type") or "bearer"),
            expires_at=int(expires_at) if expires_at is not None else None,
            user=User.from_payload(user_payload) if isinstance(user_payload, dict) else None,
        )

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "token_type": self.token_type,
            "expires_at": self.expires_at,
        }
        if self.user is not None:
            payload["user"] = {"id": self.user.id, "email": self.user.email}
        return payload

    def is_expired(self, now: float | None = None, leeway_seconds: int = 30) -> bool:
        if self.expires_at is None:
            return False
        current = time.time() if now is None else now
        return self.expires_at - leeway_seconds <= current


@dataclass(frozen=True)
class AuthState:
    is_signed_in: bool
    email: str | None = None


class FormPhase(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    ERROR = "error"
    REDIRECTED = "redirected"


@dataclass
class FormState:
    identifier: str = ""
    secret: str = ""
    error_message: str = ""
    is_submitting: bool = False
    phase: FormPhase = FormPhase.IDLE


@dataclass(frozen=True)
class Credentials:
    identifier: str
    secret: str = field(repr=False)


@dataclass(frozen=True)
class Success:
    session: Session


@dataclass(frozen=True)
class InvalidCredentials:
    pass


@dataclass(frozen=True)
class ServiceError:
    message: str


@dataclass(frozen=True)
class UnexpectedFailure:
    pass


SubmissionOutcome = Union[Success, InvalidCredentials, ServiceError, UnexpectedFailure]
