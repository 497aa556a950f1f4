"""
Exception hierarchy for differential RPC runs.

Every error raised by the library derives from RpcDiffError so the command line
entry point can treat all of them as fatal at a single boundary.
"""

from typing import List, Optional


class RpcDiffError(Exception):
    """
    Base exception for all rpcdiff errors.

    None of the subclasses are recovered locally; each one ends the run.
    """

    pass


class ConfigError(RpcDiffError):
    """
    Raised when the run configuration is unusable.

    Covers duplicate or empty server lists, unparseable endpoints, invalid
    configuration files and a missing request body. Always raised before any
    network call is made.
    """

    pass


class TransportError(RpcDiffError):
    """Raised when the HTTP exchange with an endpoint cannot complete."""

    def __init__(self, endpoint: str, reason: str) -> None:
        super().__init__(f"Request to {endpoint} failed: {reason}")
        self.endpoint = endpoint
        self.reason = reason


class EncodingError(RpcDiffError):
    """Raised when the request body cannot be serialized to JSON."""

    pass


class DecodingError(RpcDiffError):
    """
    Raised when a response body is not a JSON object.

    The endpoint and a short snippet of the offending body are kept for the
    diagnostic message.
    """

    def __init__(
        self,
        endpoint: Optional[str],
        reason: str,
        body_snippet: Optional[str] = None,
    ) -> None:
        source = f" from {endpoint}" if endpoint else ""
        snippet_fragment = (
            f" - {body_snippet.strip()}" if body_snippet and body_snippet.strip() else ""
        )
        super().__init__(f"Invalid JSON response{source}: {reason}{snippet_fragment}")
        self.endpoint = endpoint
        self.reason = reason
        self.body_snippet = body_snippet


class EvidenceWriteError(RpcDiffError):
    """
    Raised when the evidence directory or an evidence file cannot be written.

    Wraps the underlying OSError.
    """

    pass


class MismatchError(RpcDiffError):
    """
    Raised when two adjacent servers return structurally different responses.

    Attributes:
        left_server: Endpoint earlier in the server list
        right_server: Endpoint that disagreed with it
        diff: Rendered structural diff
        evidence_paths: Files written for the two servers (empty when disabled)
    """

    def __init__(
        self,
        left_server: str,
        right_server: str,
        diff: str,
        evidence_paths: Optional[List[str]] = None,
    ) -> None:
        super().__init__(f"Responses from {left_server} and {right_server} differ")
        self.left_server = left_server
        self.right_server = right_server
        self.diff = diff
        self.evidence_paths = list(evidence_paths or [])
