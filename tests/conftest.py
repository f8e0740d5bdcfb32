from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
import requests

from lists_client.config import AppSettings
from lists_client.models import Session, User
from lists_client.navigation import HistoryNavigator


class FakeIdentity:
    """Identity service double that records every sign-in call."""

    def __init__(self, result=None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[str, str]] = []
        self.during_call = None

    def sign_in_with_password(self, identifier: str, secret: str):
        self.calls.append((identifier, secret))
        if self.during_call is not None:
            self.during_call()
        if self.error is not None:
            raise self.error
        return self.result


def build_settings(**overrides) -> AppSettings:
    values = dict(
        supabase_url="https://project.supabase.co",
        anon_key="anon-key",
        home_path="/",
        login_path="/login",
        timeout_seconds=10,
        retry_attempts=2,
        session_cache_path="/tmp/lists-client/session.json",
        log_level="INFO",
    )
    values.update(overrides)
    return AppSettings(**values)


def build_response(status_code: int, body=None, text: str | None = None) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if body is not None:
        response.text = json.dumps(body)
        response.content = response.text.encode()
        response.json.return_value = body
    else:
        response.text = text or ""
        response.content = response.text.encode()
        response.json.side_effect = ValueError("Expecting value")
    return response


@pytest.fixture
def make_settings():
    return build_settings


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def fake_identity():
    return FakeIdentity


@pytest.fixture
def http_session() -> MagicMock:
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    return session


@pytest.fixture
def session() -> Session:
    return Session(
        access_token="access-token",
        refresh_token="refresh-token",
        expires_at=4102444800,
        user=User(id="user-1", email="user@example.com"),
    )


@pytest.fixture
def identity(session) -> FakeIdentity:
    return FakeIdentity(result=session)


@pytest.fixture
def navigator() -> MagicMock:
    return MagicMock(spec=HistoryNavigator)
