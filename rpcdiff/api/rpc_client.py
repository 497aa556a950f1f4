"""
JSON-RPC HTTP client

Sends one request body to one endpoint and returns both the parsed response
and the exact bytes received.
"""

import json
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

import requests

from rpcdiff.exceptions import DecodingError, EncodingError, TransportError
from rpcdiff.utils.logger import get_logger, log_operation, mask_endpoint

logger = get_logger(__name__)

SNIPPET_CHARS = 200


@dataclass
class FetchedResponse:
    """Response of one endpoint: parsed tree plus the raw body as received."""

    endpoint: str
    parsed: Dict[str, Any]
    raw: bytes
    status_code: Optional[int] = None
    elapsed_seconds: float = 0.0


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def decode_json_object(raw: bytes, endpoint: Optional[str] = None) -> Dict[str, Any]:
    """
    Parse a response body that must be a JSON object.

    Numbers with a fraction or exponent are decoded as Decimal so values are
    kept exactly and compare equal to integers of the same value. NaN and
    Infinity are rejected.

    Raises:
        DecodingError: If the body is not valid JSON or not an object
    """
    snippet = raw[:SNIPPET_CHARS].decode("utf-8", errors="replace")
    try:
        parsed = json.loads(raw, parse_float=Decimal, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodingError(endpoint, str(e), snippet) from e

    if not isinstance(parsed, dict):
        raise DecodingError(
            endpoint, f"expected a JSON object, got {type(parsed).__name__}", snippet
        )
    return parsed


class RpcClient:
    """
    Client posting JSON-RPC payloads to arbitrary endpoints.

    Attributes:
        session: requests-like session used for every exchange
        timeout_seconds: Per-request timeout, None to wait indefinitely
    """

    CONTENT_TYPE = "application/json"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize RPC client.

        Args:
            session: Optional requests.Session (useful for testing)
            timeout_seconds: Optional timeout; no timeout by default
        """
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def encode_body(request_body: Any) -> bytes:
        """
        Serialize the request body.

        Raises:
            EncodingError: If the body is not JSON serializable
        """
        try:
            return json.dumps(request_body, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncodingError(f"Failed to serialize request body: {e}") from e

    @log_operation("fetch")
    def fetch(self, endpoint: str, request_body: Any) -> FetchedResponse:
        """
        Perform exactly one POST of ``request_body`` to ``endpoint``.

        Non-2xx statuses are not errors: the body is decoded and compared like
        any other. There are no retries.

        Args:
            endpoint: Endpoint URL
            request_body: JSON value to send

        Returns:
            FetchedResponse with parsed object and raw bytes

        Raises:
            EncodingError: If the body cannot be serialized
            TransportError: If the HTTP exchange fails
            DecodingError: If the response is not a JSON object
        """
        payload = self.encode_body(request_body)
        masked = mask_endpoint(endpoint)

        logger.info(f"Sending request to {masked}", context={"endpoint": masked})
        started_at = time.monotonic()
        try:
            response = self.session.post(
                endpoint,
                data=payload,
                headers={"Content-Type": self.CONTENT_TYPE},
                timeout=self.timeout_seconds,
            )
            raw = response.content
        except requests.RequestException as e:
            raise TransportError(masked, str(e)) from e
        elapsed = time.monotonic() - started_at

        status_code = getattr(response, "status_code", None)
        logger.debug(
            f"Got response from {masked}",
            context={
                "endpoint": masked,
                "status": status_code,
                "size_bytes": len(raw),
            },
        )
        if status_code is not None and status_code >= 400:
            logger.warning(
                "Endpoint answered with an HTTP error status; comparing body anyway",
                context={"endpoint": masked, "status": status_code},
            )

        parsed = decode_json_object(raw, masked)
        return FetchedResponse(
            endpoint=endpoint,
            parsed=parsed,
            raw=raw,
            status_code=status_code,
            elapsed_seconds=elapsed,
        )
