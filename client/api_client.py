"""
client/api_client.py
Centralized API client for dashboard requests to the listings backend.

This module ensures:
1. Every request carries the session's bearer token (never printed)
2. Error responses ({"error": ...}) are raised as the matching ListingError kind
3. Idempotent GETs that fail with a store error are retried once; nothing else is
"""

from typing import Any, Dict, Literal, Optional

import requests

from client.config import IS_DEV, REQUEST_TIMEOUT, get_api_base_url
from domains.listing.errors import ListingError, error_for_status

__all__ = ["ApiSession", "BackendUnavailable", "api_request"]


class BackendUnavailable(ListingError):
    """Backend could not be reached (timeout, connection refused)."""

    status_code = 503


class ApiSession:
    """Base URL and bearer token for one signed-in dashboard user."""

    def __init__(self, token: Optional[str] = None, base_url: Optional[str] = None):
        self.token = token
        self.base_url = (base_url or get_api_base_url()).rstrip("/")
        self.http = requests.Session()

    def auth_header(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def __repr__(self) -> str:
        # Token deliberately omitted
        return f"ApiSession(base_url={self.base_url!r}, authenticated={bool(self.token)})"


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200] or f"HTTP {resp.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {resp.status_code}"


def api_request(
    session: ApiSession,
    method: Literal["GET", "POST", "PUT", "DELETE"],
    path: str,
    json: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: int = REQUEST_TIMEOUT,
    _retry: bool = True,
) -> Any:
    """
    Make an API request and return the decoded JSON body.

    Args:
        session: ApiSession with base URL and token
        method: HTTP method (GET, POST, PUT, DELETE)
        path: API endpoint path (e.g., "/api/properties/dashboard")
        json: JSON body for POST/PUT requests
        params: Query parameters
        timeout: Request timeout in seconds
        _retry: Internal flag to prevent retry loops (do not set manually)

    Raises:
        ValidationError / Forbidden / NotFound / InvalidState / StoreError:
            mapped from the response status
        BackendUnavailable: timeout or connection failure
    """
    if method not in ("GET", "POST", "PUT", "DELETE"):
        raise ValueError(f"Unsupported HTTP method: {method}")

    url = f"{session.base_url}{path}"
    headers = {"Accept": "application/json"}
    headers.update(session.auth_header())

    try:
        resp = session.http.request(
            method, url, json=json, params=params, headers=headers, timeout=timeout
        )
    except requests.exceptions.Timeout:
        if IS_DEV:
            print(f"[API] Timeout on {method} {path}")
        raise BackendUnavailable(f"Request timed out after {timeout}s")
    except requests.exceptions.ConnectionError:
        if IS_DEV:
            print(f"[API] Connection error on {method} {path}")
        raise BackendUnavailable(f"Cannot connect to backend at {session.base_url}")

    if resp.status_code >= 500 and method == "GET" and _retry:
        if IS_DEV:
            print(f"[API] {resp.status_code} on GET {path}, retrying once...")
        return api_request(session, method, path, json=json, params=params, timeout=timeout, _retry=False)

    if resp.status_code >= 400:
        message = _error_message(resp)
        if IS_DEV:
            print(f"[API] {method} {path} -> {resp.status_code}: {message}")
        raise error_for_status(resp.status_code, message)

    if not resp.content:
        return None
    return resp.json()
