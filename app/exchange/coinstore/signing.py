"""
Coinstore request signing.

Two rounds of HMAC-SHA256:

    key  = hex(HMAC(secret, str(expires // 30000)))
    sign = hex(HMAC(key, query_string + body))

The derived key is used as the UTF-8 bytes of its hex text, not the decoded
digest. The server re-derives the bucket from X-CS-EXPIRES, so a signature
stays valid for the rest of its 30 second window.
"""
from __future__ import annotations

import hashlib
import hmac
import json
import time
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlencode

TIME_BUCKET_MS = 30_000
CONTENT_TYPE = "application/json"

HEADER_API_KEY = "X-CS-APIKEY"
HEADER_EXPIRES = "X-CS-EXPIRES"
HEADER_SIGN = "X-CS-SIGN"
HEADER_CONTENT_TYPE = "Content-Type"


class ConfigurationError(ValueError):
    """Credentials are missing; fix the config, retrying will not help."""


@dataclass(frozen=True)
class Credentials:
    api_key: str
    api_secret: str = field(repr=False)


@dataclass(frozen=True)
class SignRequest:
    # exactly what follows "?" in the URL, without the "?"
    query_string: str = ""
    # exactly the bytes sent as the request body
    body: str = ""


@dataclass(frozen=True)
class SignedHeaders:
    api_key: str
    expires: str
    sign: str
    content_type: str = CONTENT_TYPE

    def as_dict(self) -> dict[str, str]:
        return {
            HEADER_API_KEY: self.api_key,
            HEADER_EXPIRES: self.expires,
            HEADER_SIGN: self.sign,
            HEADER_CONTENT_TYPE: self.content_type,
        }


def current_ms() -> int:
    return int(time.time() * 1000)


def time_bucket(expires_ms: int) -> str:
    return str(int(expires_ms) // TIME_BUCKET_MS)


def _hmac_hex(key: str, message: str) -> str:
    return hmac.new(
        key.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def derive_key(api_secret: str, bucket: str) -> str:
    return _hmac_hex(api_secret, bucket)


def build_payload(request: SignRequest) -> str:
    # plain concatenation, no sorting and no separator
    return f"{request.query_string}{request.body}"


def build_query(params: Mapping[str, Any] | None) -> str:
    """
    Form-encode params in insertion order, e.g. "symbol=BTCUSDT&limit=10".
    None values are dropped. Returns "" for no params.
    """
    if not params:
        return ""
    return urlencode(
        [(k, v) for k, v in params.items() if v is not None],
        doseq=True,
    )


def serialize_body(obj: Any) -> str:
    """
    Compact JSON with the caller's key order. The returned text is both what
    gets signed and what goes on the wire.
    """
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def compute_signed_headers(
    credentials: Credentials,
    request: SignRequest,
    now_ms: int | None = None,
) -> SignedHeaders:
    """
    Compute the X-CS-* headers for one request.

    `now_ms` defaults to the wall clock. For a fixed
    (credentials, request, now_ms) the result is always the same.
    """
    if not credentials.api_key or not credentials.api_secret:
        raise ConfigurationError("Missing CS_API_KEY/CS_API_SECRET")

    expires = int(current_ms() if now_ms is None else now_ms)
    if expires < 0:
        raise ValueError(f"expires must be a non-negative epoch ms value, got {expires}")

    key = derive_key(credentials.api_secret, time_bucket(expires))
    signature = _hmac_hex(key, build_payload(request))

    return SignedHeaders(
        api_key=credentials.api_key,
        expires=str(expires),
        sign=signature,
    )
