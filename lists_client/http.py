from __future__ import annotations

import logging
import time
from typing import Any

import requests

from lists_client.config import AppSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (429, 500, 502, 503, 504)


class ApiHttpError(RuntimeError):
    def __init__(self, status_code: int, message: str, body: dict[str, Any] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body or {}


class HttpClient:
    def __init__(self, settings: AppSettings, session: requests.Session | None = None):
        self._settings = settings
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json",
                "apikey": settings.anon_key,
            }
        )

    def post_json(
        self,
        path: str,
        payload: dict[str, Any],
        token: str | None = None,
        params: dict[str, Any] | None = None,
        retry: bool = True,
    ) -> dict[str, Any]:
        url = f"{self._settings.auth_url}{path}"
        headers = self._auth_headers(token)

        last_error: ApiHttpError | None = None
        attempts = self._settings.retry_attempts + 1 if retry else 1
        for attempt in range(1, attempts + 1):
            response = self._session.post(
                url,
                headers=headers,
                params=params,
                json=payload,
                timeout=self._settings.timeout_seconds,
            )

            if response.ok:
                return self._decode(response)

            last_error = self._build_error(response)
            if response.status_code in RETRYABLE_STATUS_CODES and attempt < attempts:
                logger.warning(
                    "POST %s returned HTTP %s, retrying (%s/%s)",
                    path,
                    response.status_code,
                    attempt,
                    attempts - 1,
                )
                time.sleep(1.5 * attempt)
                continue
            raise last_error

        if last_error is None:
            raise ApiHttpError(status_code=0, message="Request failed")
        raise last_error

    def get_json(
        self,
        path: str,
        token: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        url = f"{self._settings.auth_url}{path}"

        response = self._session.get(
            url,
            headers=self._auth_headers(token),
            params=params,
            timeout=self._settings.timeout_seconds,
        )

        if response.ok:
            return self._decode(response)
        raise self._build_error(response)

    @staticmethod
    def _auth_headers(token: str | None) -> dict[str, str]:
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _decode(response: requests.Response) -> dict[str, Any]:
        if not response.content:
            return {}
        parsed = response.json()
        if isinstance(parsed, dict):
            return parsed
        return {"value": parsed}

    @staticmethod
    def _build_error(response: requests.Response) -> ApiHttpError:
        body: dict[str, Any] = {}
        try:
            parsed = response.json()
            if isinstance(parsed, dict):
                body = parsed
        except ValueError:
            pass

        message = str(
            body.get("msg")
            or body.get("error_description")
            or body.get("message")
            or body.get("error")
            or response.text[:500]
            or f"HTTP {response.status_code}"
        )
        return ApiHttpError(status_code=response.status_code, message=message, body=body)
