"""
Error envelopes of the two API generations.

API 3.0 answers ``{"Response": {"Error": {"Code": ..., "Message": ...}}}``
(the client already unwraps ``Response``); API 2.0 answers
``{"code": 4100, "message": ..., "codeDesc": ...}`` with ``code == 0`` on success.
"""

from __future__ import annotations

from typing import Any, Mapping

from tcmonitor.core.errors import APIError, AuthenticationFailure
from tcmonitor.endpoints import Generation


def extract_error(response: Mapping[str, Any], generation: Generation) -> tuple[str, str] | None:
    """Return ``(code, message)`` when the body carries an error, else None."""
    if generation == 3:
        error = response.get("Error") or {}
        code = error.get("Code")
        if not code:
            return None
        return str(code), str(error.get("Message", ""))

    code = response.get("code")
    if code in (None, 0, "0", ""):
        return None
    return str(code), str(response.get("codeDesc") or response.get("message") or "")


def is_auth_failure(code: str, generation: Generation) -> bool:
    if generation == 3:
        return "AuthFailure" in code
    return code.startswith("4")


def check_response(
    response: Mapping[str, Any],
    generation: Generation,
    service: str = "",
) -> Mapping[str, Any]:
    """Raise AuthenticationFailure / APIError for error envelopes."""
    error = extract_error(response, generation)
    if error is None:
        return response
    code, message = error
    if is_auth_failure(code, generation):
        raise AuthenticationFailure(code, message, service)
    raise APIError(code, message, service)
