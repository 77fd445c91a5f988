"""AWS Signature Version 4 request signing.

Implemented directly on hashlib/hmac so the search function can be
invoked over plain HTTPS without a provider SDK. Output must match the
reference algorithm byte for byte.

    signing key = HMAC chain of "AWS4" + secret, date, region, service, "aws4_request"
    canonical request -> SHA-256 hex
    string to sign = algorithm, timestamp, scope, canonical request hash
    signature = hex(HMAC(signing key, string to sign))
"""

import hashlib
import hmac
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional, Union
from urllib.parse import urlsplit

ALGORITHM = "AWS4-HMAC-SHA256"
TERMINATOR = "aws4_request"
AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"


def sha256_hex(data: Union[str, bytes]) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def amz_timestamp(now: Optional[datetime] = None) -> str:
    """Compact ISO-8601 timestamp, e.g. ``20150830T123600Z``."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime(AMZ_DATE_FORMAT)


def credential_scope(date_stamp: str, region: str, service: str) -> str:
    return f"{date_stamp}/{region}/{service}/{TERMINATOR}"


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str) -> bytes:
    k_date = hmac_sha256(("AWS4" + secret_key).encode("utf-8"), date_stamp)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service)
    return hmac_sha256(k_service, TERMINATOR)


def canonical_headers(headers: Mapping[str, str]) -> tuple[str, str]:
    """Return (canonical header block, signed header list)."""
    normalized = sorted((name.lower().strip(), " ".join(str(value).split())) for name, value in headers.items())
    block = "".join(f"{name}:{value}\n" for name, value in normalized)
    signed = ";".join(name for name, _ in normalized)
    return block, signed


def build_canonical_request(
    method: str,
    canonical_uri: str,
    headers: Mapping[str, str],
    payload_hash: str,
    query_string: str = "",
) -> str:
    block, signed = canonical_headers(headers)
    return "\n".join([method.upper(), canonical_uri, query_string, block, signed, payload_hash])


def build_string_to_sign(amz_date: str, scope: str, canonical_request_hash: str) -> str:
    return "\n".join([ALGORITHM, amz_date, scope, canonical_request_hash])


def sign(secret_key: str, service: str, region: str, amz_date: str, canonical_request_hash: str) -> str:
    """Compute the hex signature for a hashed canonical request.

    ``amz_date`` is the full compact timestamp; its first 8 characters
    form the date stamp of the credential scope.
    """
    date_stamp = amz_date[:8]
    string_to_sign = build_string_to_sign(
        amz_date, credential_scope(date_stamp, region, service), canonical_request_hash
    )
    signing_key = derive_signing_key(secret_key, date_stamp, region, service)
    return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def sign_request(
    method: str,
    url: str,
    body: str,
    access_key_id: str,
    secret_key: str,
    region: str,
    service: str,
    now: Optional[datetime] = None,
) -> Dict[str, str]:
    """Build the headers for a signed JSON request with an empty query string."""
    parts = urlsplit(url)
    amz_date = amz_timestamp(now)
    payload_hash = sha256_hex(body)

    signed_headers_map = {
        "content-type": "application/json",
        "host": parts.netloc,
        "x-amz-date": amz_date,
    }
    canonical_request = build_canonical_request(
        method, parts.path or "/", signed_headers_map, payload_hash
    )
    signature = sign(secret_key, service, region, amz_date, sha256_hex(canonical_request))

    _, signed = canonical_headers(signed_headers_map)
    scope = credential_scope(amz_date[:8], region, service)
    authorization = (
        f"{ALGORITHM} Credential={access_key_id}/{scope}, "
        f"SignedHeaders={signed}, Signature={signature}"
    )
    return {
        "Content-Type": "application/json",
        "X-Amz-Date": amz_date,
        "Authorization": authorization,
    }
