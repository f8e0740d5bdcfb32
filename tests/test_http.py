from __future__ import annotations

import pytest

from lists_client.http import ApiHttpError, HttpClient


def test_client_sends_api_key_and_json_headers(http_session, make_settings):
    HttpClient(make_settings(), session=http_session)

    assert http_session.headers["apikey"] == "anon-key"
    assert http_session.headers["Content-Type"] == "application/json"


def test_post_json_targets_auth_url_with_bearer_token(http_session, make_settings, make_response):
    http_session.post.return_value = make_response(200, {"ok": True})
    client = HttpClient(make_settings(), session=http_session)

    result = client.post_json("/logout", {}, token="abc")

    assert result == {"ok": True}
    args, kwargs = http_session.post.call_args
    assert args[0] == "https://project.supabase.co/auth/v1/logout"
    assert kwargs["headers"] == {"Authorization": "Bearer abc"}
    assert kwargs["timeout"] == 10


def test_post_json_retries_transient_failures(http_session, make_settings, make_response, monkeypatch):
    sleeps = []
    monkeypatch.setattr("lists_client.http.time.sleep", sleeps.append)
    http_session.post.side_effect = [
        make_response(503, {"msg": "unavailable"}),
        make_response(200, {"access_token": "t"}),
    ]
    client = HttpClient(make_settings(), session=http_session)

    assert client.post_json("/token", {}) == {"access_token": "t"}
    assert http_session.post.call_count == 2
    assert sleeps == [1.5]


def test_post_json_gives_up_after_configured_retries(
    http_session, make_settings, make_response, monkeypatch
):
    monkeypatch.setattr("lists_client.http.time.sleep", lambda _: None)
    http_session.post.return_value = make_response(503, {"msg": "unavailable"})
    client = HttpClient(make_settings(retry_attempts=1), session=http_session)

    with pytest.raises(ApiHttpError) as excinfo:
        client.post_json("/token", {})

    assert excinfo.value.status_code == 503
    assert http_session.post.call_count == 2


@pytest.mark.parametrize("status_code", [429, 503])
def test_post_json_without_retry_sends_once(
    http_session, make_settings, make_response, monkeypatch, status_code
):
    sleeps = []
    monkeypatch.setattr("lists_client.http.time.sleep", sleeps.append)
    http_session.post.return_value = make_response(status_code, {"msg": "slow down"})
    client = HttpClient(make_settings(retry_attempts=2), session=http_session)

    with pytest.raises(ApiHttpError) as excinfo:
        client.post_json("/token", {}, retry=False)

    assert excinfo.value.status_code == status_code
    assert http_session.post.call_count == 1
    assert sleeps == []


def test_client_errors_are_not_retried(http_session, make_settings, make_response):
    http_session.post.return_value = make_response(
        400, {"code": 400, "error_code": "invalid_credentials", "msg": "Invalid login credentials"}
    )
    client = HttpClient(make_settings(), session=http_session)

    with pytest.raises(ApiHttpError) as excinfo:
        client.post_json("/token", {})

    assert str(excinfo.value) == "Invalid login credentials"
    assert excinfo.value.body["error_code"] == "invalid_credentials"
    assert http_session.post.call_count == 1


@pytest.mark.parametrize(
    "body, expected",
    [
        ({"error": "invalid_grant", "error_description": "Email not confirmed"}, "Email not confirmed"),
        ({"message": "Invalid API key"}, "Invalid API key"),
        ({"error": "server_error"}, "server_error"),
    ],
)
def test_error_message_is_taken_from_known_fields(
    http_session, make_settings, make_response, body, expected
):
    http_session.get.return_value = make_response(401, body)
    client = HttpClient(make_settings(), session=http_session)

    with pytest.raises(ApiHttpError, match=expected):
        client.get_json("/user", token="abc")


def test_non_json_error_body_falls_back_to_text(http_session, make_settings, make_response):
    http_session.get.return_value = make_response(502, text="<html>Bad Gateway</html>")
    client = HttpClient(make_settings(), session=http_session)

    with pytest.raises(ApiHttpError) as excinfo:
        client.get_json("/user", token="abc")

    assert excinfo.value.body == {}
    assert "Bad Gateway" in str(excinfo.value)
