"""
Request signing for the two Tencent Cloud API generations.

API 2.0 signs the sorted query string and carries the signature as a
query parameter; API 3.0 (TC3-HMAC-SHA256) signs a canonical request and
carries the signature in the Authorization header. Both are pure functions
of their SignatureContext, so a fixed timestamp yields byte-identical output.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from tcmonitor.endpoints import V2_REQUEST_PATH, Generation

TC3_ALGORITHM = "TC3-HMAC-SHA256"
V2_SIGNATURE_METHOD = "HmacSHA256"
CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class SignatureContext:
    secret_id: str
    secret_key: str
    service_id: str
    host: str
    api_version: str
    action: str
    region: str
    timestamp: int
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SignedRequest:
    """Signing material ready to hand to the transport."""

    headers: dict[str, str]
    params: dict[str, str]
    body: bytes = b""


class SignatureScheme(Protocol):
    generation: Generation

    def sign(self, context: SignatureContext) -> SignedRequest:
        ...


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def encode_payload(payload: dict[str, Any]) -> bytes:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def flatten_params(payload: dict[str, Any], prefix: str = "") -> dict[str, str]:
    """Flatten nested payloads into API 2.0 dotted keys (``ids.0=...``)."""
    flat: dict[str, str] = {}
    for key, value in payload.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(flatten_params(value, name))
        elif isinstance(value, (list, tuple)):
            flat.update(flatten_params({str(i): v for i, v in enumerate(value)}, name))
        elif isinstance(value, bool):
            flat[name] = "true" if value else "false"
        else:
            flat[name] = str(value)
    return flat


class SignatureSchemeV2:
    """Legacy query-string signature (API 2.0)."""

    generation: Generation = 2

    def nonce(self, context: SignatureContext) -> int:
        digest = hashlib.sha256(f"{context.secret_id}:{context.timestamp}".encode()).digest()
        return int.from_bytes(digest[:4], "big") % 1_000_000 + 1

    def string_to_sign(self, context: SignatureContext, params: dict[str, str]) -> str:
        query = "&".join(f"{key}={params[key]}" for key in sorted(params))
        return f"POST{context.host}{V2_REQUEST_PATH}?{query}"

    def sign(self, context: SignatureContext) -> SignedRequest:
        params = flatten_params(context.payload)
        params.update(
            {
                "Action": context.action,
                "Nonce": str(self.nonce(context)),
                "Timestamp": str(context.timestamp),
                "SecretId": context.secret_id,
                "SignatureMethod": V2_SIGNATURE_METHOD,
            }
        )
        if context.region:
            params["Region"] = context.region
        digest = hmac.new(
            context.secret_key.encode("utf-8"),
            self.string_to_sign(context, params).encode("utf-8"),
            hashlib.sha256,
        ).digest()
        params["Signature"] = base64.b64encode(digest).decode("ascii")
        return SignedRequest(headers={"Content-Type": CONTENT_TYPE}, params=params)


class SignatureSchemeV3:
    """TC3-HMAC-SHA256 header signature (API 3.0)."""

    generation: Generation = 3
    signed_headers = "content-type;host"

    def canonical_request(self, context: SignatureContext, body: bytes) -> str:
        canonical_headers = f"content-type:{CONTENT_TYPE}\nhost:{context.host}\n"
        return "\n".join(
            [
                "POST",
                "/",
                "",
                canonical_headers,
                self.signed_headers,
                _sha256_hex(body),
            ]
        )

    def credential_scope(self, context: SignatureContext) -> str:
        date = datetime.fromtimestamp(context.timestamp, tz=timezone.utc).strftime("%Y-%m-%d")
        return f"{date}/{context.service_id}/tc3_request"

    def signature(self, context: SignatureContext, body: bytes) -> str:
        scope = self.credential_scope(context)
        date = scope.split("/", 1)[0]
        string_to_sign = "\n".join(
            [
                TC3_ALGORITHM,
                str(context.timestamp),
                scope,
                _sha256_hex(self.canonical_request(context, body).encode("utf-8")),
            ]
        )
        secret_date = _hmac_sha256(f"TC3{context.secret_key}".encode("utf-8"), date)
        secret_service = _hmac_sha256(secret_date, context.service_id)
        secret_signing = _hmac_sha256(secret_service, "tc3_request")
        return hmac.new(secret_signing, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

    def sign(self, context: SignatureContext) -> SignedRequest:
        body = encode_payload(context.payload)
        authorization = (
            f"{TC3_ALGORITHM} "
            f"Credential={context.secret_id}/{self.credential_scope(context)}, "
            f"SignedHeaders={self.signed_headers}, "
            f"Signature={self.signature(context, body)}"
        )
        headers = {
            "Authorization": authorization,
            "Content-Type": CONTENT_TYPE,
            "Host": context.host,
            "X-TC-Action": context.action,
            "X-TC-Timestamp": str(context.timestamp),
            "X-TC-Version": context.api_version,
        }
        if context.region:
            headers["X-TC-Region"] = context.region
        return SignedRequest(headers=headers, params={}, body=body)


SCHEMES: dict[int, SignatureScheme] = {
    2: SignatureSchemeV2(),
    3: SignatureSchemeV3(),
}


def sign(context: SignatureContext, generation: Generation) -> SignedRequest:
    """Sign ``context`` with the scheme for the given API generation."""
    try:
        scheme = SCHEMES[generation]
    except KeyError:
        raise ValueError(f"Unsupported API generation: {generation}") from None
    return scheme.sign(context)
