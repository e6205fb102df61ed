"""
Indodax private API (TAPI) credentials, request signing and dispatch.
"""
import asyncio
import hashlib
import hmac
import json
import logging
import os
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlencode

import requests

from .errors import APIError, MalformedResponseError, TransportError

DEFAULT_API_URL = "https://indodax.com/tapi"
DEFAULT_RECV_WINDOW = int(os.getenv("INDODAX_RECV_WINDOW", "5000"))
DEFAULT_TIMEOUT = float(os.getenv("INDODAX_TIMEOUT", "30"))

# Always serialized first, in this order; everything else follows sorted by key.
ENVELOPE_KEYS = ("method", "timestamp", "recvWindow")


@dataclass(frozen=True)
class IndodaxCredentials:
    """API key pair for the private API. Keys are kept out of ``repr()``."""

    api_key: str = field(repr=False)
    secret_key: str = field(repr=False)
    name: str = "default"

    @classmethod
    def from_env(cls, env_var: str = "INDODAX_CREDENTIALS") -> "IndodaxCredentials":
        """
        Load credentials from an environment variable containing JSON.

        Expected JSON format:
        {
            "name": "my-account",
            "api_key": "ABCD-1234",
            "secret_key": "0123abcd..."
        }

        Args:
            env_var: Environment variable name containing JSON credentials

        Returns:
            IndodaxCredentials instance

        Raises:
            ValueError: If credentials are missing or invalid
        """
        creds_json = os.getenv(env_var)
        if not creds_json:
            raise ValueError(f"Environment variable '{env_var}' is not set")

        try:
            creds_data: Dict[str, Any] = json.loads(creds_json)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in '{env_var}': {e}")
        if not isinstance(creds_data, dict):
            raise ValueError(f"Credentials in '{env_var}' must be a JSON object")

        required_fields = ["api_key", "secret_key"]
        missing = [f for f in required_fields if not creds_data.get(f)]
        if missing:
            raise ValueError(f"Missing required credential fields: {', '.join(missing)}")

        return cls(
            api_key=creds_data["api_key"],
            secret_key=creds_data["secret_key"],
            name=creds_data.get("name", "default"),
        )


def _wire_value(value: Any) -> str:
    """Render a parameter value the way the exchange expects it on the wire."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    return str(value)


def canonical_payload(envelope: Mapping[str, Any]) -> str:
    """
    Serialize a request envelope into the form-urlencoded body that gets signed.

    Keys with a ``None`` value are left out entirely. The envelope keys come
    first, the operation parameters follow sorted by name, so two mappings
    with the same items always produce the same string.
    """
    present = {k: v for k, v in envelope.items() if v is not None}
    ordered = [k for k in ENVELOPE_KEYS if k in present]
    ordered += sorted(k for k in present if k not in ENVELOPE_KEYS)
    return urlencode([(k, _wire_value(present[k])) for k in ordered])


def sign(envelope: Mapping[str, Any], secret_key: str) -> Tuple[str, str]:
    """
    Build the canonical payload and its HMAC-SHA512 signature.

    Args:
        envelope: method, timestamp, recvWindow and the operation parameters
        secret_key: API secret used as the HMAC key

    Returns:
        Tuple of (payload, lowercase hex signature)

    Raises:
        ValueError: If secret_key is empty
    """
    if not secret_key:
        raise ValueError("secret_key is required to sign a request")

    payload = canonical_payload(envelope)
    signature = hmac.new(
        secret_key.encode("utf-8"),
        payload.encode("utf-8"),
        hashlib.sha512,
    ).hexdigest()
    return payload, signature


def build_envelope(method: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """Merge the per-call envelope fields with the operation parameters."""
    envelope: Dict[str, Any] = {
        "method": method,
        "timestamp": int(time.time() * 1000),
        "recvWindow": DEFAULT_RECV_WINDOW,
    }
    if params:
        envelope.update(params)
    # method is fixed by the caller, a stray "method" param must not replace it
    envelope["method"] = method
    return envelope


async def call_private_api(
    method: str,
    params: Optional[Mapping[str, Any]],
    credentials: IndodaxCredentials,
    api_url: Optional[str] = None,
    timeout: Optional[float] = None
) -> Dict[str, Any]:
    """
    Sign and send one private API call.

    Args:
        method: TAPI method name (e.g. "getInfo", "trade")
        params: Operation parameters; may override recvWindow
        credentials: API key pair
        api_url: Override the endpoint (for testing)
        timeout: HTTP timeout in seconds

    Returns:
        The ``return`` object of the response envelope, unmodified

    Raises:
        TransportError: If the HTTP request fails
        APIError: If the server answers with success=0
        MalformedResponseError: If the response is not a valid envelope
    """
    if api_url is None:
        api_url = os.getenv("INDODAX_API_URL", DEFAULT_API_URL)
    if timeout is None:
        timeout = DEFAULT_TIMEOUT

    envelope = build_envelope(method, params)
    payload, signature = sign(envelope, credentials.secret_key)

    headers = {
        "Content-Type": "application/x-www-form-urlencoded",
        "Key": credentials.api_key,
        "Sign": signature,
    }

    logging.info(f"Calling Indodax private API: {method} ({api_url})")
    logging.debug(f"Request body: {payload}")

    try:
        response = await asyncio.to_thread(
            requests.post, api_url, data=payload, headers=headers, timeout=timeout
        )
    except requests.RequestException as e:
        logging.warning(f"Indodax {method} transport failure: {type(e).__name__}: {e}")
        raise TransportError(f"Request to Indodax failed: {e}") from e

    try:
        body = response.json()
    except ValueError as e:
        if not response.ok:
            raise TransportError(
                f"Indodax returned HTTP {response.status_code}",
                status_code=response.status_code,
            ) from e
        raise MalformedResponseError("Response body is not valid JSON") from e

    if not isinstance(body, dict):
        raise MalformedResponseError("Response body is not a JSON object")

    logging.debug(f"Full API response: {json.dumps(body)}")

    if not body.get("success"):
        error_msg = body.get("error") or "Failed to call API"
        error_code = body.get("error_code")
        logging.warning(f"Indodax {method} failed - Error: {error_code}, Message: {error_msg}")
        raise APIError(error_msg, error_code=error_code)

    if "return" not in body:
        raise MalformedResponseError("Successful response has no 'return' object", field="return")

    return body["return"]
