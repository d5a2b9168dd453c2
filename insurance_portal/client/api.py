"""Synchronous HTTP client for the portal API.

Wraps httpx and carries the bearer token returned by login, so callers
never deal with cookies or the CSRF header.
"""

import logging
import os
from datetime import date
from typing import Any, BinaryIO

import httpx

from insurance_portal.client.errors import AuthError, ClientError, ConflictError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT = 10.0


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str):
        return detail
    if detail is not None:
        return str(detail)
    return response.reason_phrase


class PortalClient:
    """
    Client for /api/auth, /api/forms and /api/upload.

    Pass `http_client` to reuse a configured httpx.Client (tests pass one
    built on httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str | None = None,
        *,
        http_client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.token = token
        self.user: dict | None = None
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "PortalClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # =========================================================================
    # Transport
    # =========================================================================

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ClientError(None, f"Request failed: {e}") from e

        if response.is_success:
            return response

        detail = _error_detail(response)
        logger.debug("%s %s -> %s", method, path, response.status_code)
        if response.status_code == 401:
            raise AuthError(401, detail)
        if response.status_code == 409:
            raise ConflictError(409, detail)
        raise ClientError(response.status_code, detail)

    # =========================================================================
    # Auth
    # =========================================================================

    def _login(self, body: dict[str, Any]) -> dict:
        data = self._request("POST", "/api/auth/login", json=body).json()
        self.token = data["token"]
        self.user = data["user"]
        return self.user

    def login_admin(self, access_key: str) -> dict:
        return self._login({"type": "admin", "accessKey": access_key})

    def login_client(self, full_name: str, date_of_birth: date) -> dict:
        return self._login({
            "type": "client",
            "fullName": full_name,
            "dateOfBirth": date_of_birth.isoformat(),
        })

    def logout(self) -> None:
        self._request("POST", "/api/auth/logout")
        self.token = None
        self.user = None

    def me(self) -> dict:
        return self._request("GET", "/api/auth/me").json()

    # =========================================================================
    # Forms
    # =========================================================================

    def list_forms(self, status: str | None = None, q: str | None = None) -> list[dict]:
        params = {}
        if status:
            params["status"] = status
        if q:
            params["q"] = q
        return self._request("GET", "/api/forms", params=params).json()

    def get_form(self, form_id: str) -> dict:
        return self._request("GET", f"/api/forms/{form_id}").json()

    def create_form(self, payload: dict) -> dict:
        return self._request("POST", "/api/forms", json=payload).json()

    def update_form(self, form_id: str, payload: dict) -> dict:
        """
        Replace a form's fields and items.

        Raises:
            ConflictError: payload `version` is stale
        """
        return self._request("PUT", f"/api/forms/{form_id}", json=payload).json()

    def delete_form(self, form_id: str) -> None:
        self._request("DELETE", f"/api/forms/{form_id}")

    def download_pdf(self, form_id: str) -> bytes:
        return self._request("GET", f"/api/forms/{form_id}/pdf").content

    # =========================================================================
    # Uploads
    # =========================================================================

    def upload(self, name: str, file: BinaryIO, content_type: str = "application/octet-stream") -> dict:
        """Upload one file; returns {"fileUrl": ..., "name": ...} for a document entry."""
        files = {"file": (name, file, content_type)}
        return self._request("POST", "/api/upload", files=files).json()

    def upload_path(self, path: str) -> dict:
        with open(path, "rb") as f:
            return self.upload(os.path.basename(path), f)
