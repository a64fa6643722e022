"""HTTP helper utilities for tests."""

from __future__ import annotations


def json_headers(auth_token: str | None = None) -> dict[str, str]:
    """Return standard JSON headers.

    Parameters
    ----------
    auth_token:
        Optional bearer token to include.

    Returns
    -------
    dict[str, str]
        HTTP headers dictionary.
    """

    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if auth_token:
        headers["Authorization"] = f"Bearer {auth_token}"
    return headers


def assert_error(resp, status: int, code: str) -> dict:
    """Check a failure envelope and return its ``error`` object."""

    assert resp.status_code == status, resp.get_json()
    body = resp.get_json()
    assert body["success"] is False
    assert body["error"]["code"] == code
    assert body["request_id"]
    return body["error"]
