"""Evidence capture for mismatching responses."""

from __future__ import annotations

import json
import re
import time
from decimal import Decimal
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlsplit

from rpcdiff.exceptions import ConfigError, DecodingError, EvidenceWriteError
from rpcdiff.utils.logger import get_logger, mask_endpoint

logger = get_logger(__name__)

DEFAULT_EVIDENCE_DIR = Path("bodies")
FILE_PREFIX = "body"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def new_run_id() -> int:
    """Run identifier: wall-clock seconds at run start."""
    return int(time.time())


def host_identifier(endpoint: str) -> str:
    """
    Directory-safe identifier for an endpoint: its host name only.

    Userinfo, port, path and query are dropped. Endpoints without a scheme
    (``localhost:8899``) are read as http URLs.

    Raises:
        ConfigError: If no host can be derived
    """
    candidate = endpoint.strip()
    if "://" not in candidate:
        candidate = f"http://{candidate}"
    try:
        hostname = urlsplit(candidate).hostname
    except ValueError as e:
        raise ConfigError(f"Cannot parse endpoint {mask_endpoint(endpoint)}: {e}") from e

    if not hostname:
        raise ConfigError(f"Endpoint has no host: {mask_endpoint(endpoint)}")
    return _UNSAFE_CHARS.sub("_", hostname)


def _reject_constant(name: str):
    raise ValueError(f"non-standard JSON constant {name}")


def _reindent(text: str, indent: str = "\t") -> str:
    out: List[str] = []
    depth = 0
    in_string = False
    escaped = False
    opened = False

    for char in text:
        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char in " \t\r\n":
            continue

        if opened:
            opened = False
            if char in "}]":
                # Empty containers stay on one line
                depth -= 1
                out.append(char)
                continue
            out.append("\n" + indent * depth)

        if char in "{[":
            out.append(char)
            depth += 1
            opened = True
        elif char in "}]":
            depth -= 1
            out.append("\n" + indent * depth + char)
        elif char == ",":
            out.append(",\n" + indent * depth)
        elif char == ":":
            out.append(": ")
        else:
            if char == '"':
                in_string = True
            out.append(char)

    return "".join(out)


def pretty_print_json(raw: bytes) -> bytes:
    """
    Re-indent a JSON document with tabs.

    Only insignificant whitespace changes: number tokens, string escapes,
    key order and non-ASCII text are written exactly as received.

    Raises:
        DecodingError: If ``raw`` is not valid JSON
    """
    try:
        text = raw.decode(json.detect_encoding(raw))
        json.loads(text, parse_float=Decimal, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodingError(None, f"cannot pretty-print evidence: {e}") from e
    return _reindent(text).encode("utf-8")


class EvidenceStore:
    """
    Writes the raw bodies of disagreeing servers for offline inspection.

    Files are named ``body_<run_id>_<host>.json`` inside ``evidence_dir``.
    """

    def __init__(self, evidence_dir: Optional[Path] = None) -> None:
        self.evidence_dir = (
            Path(evidence_dir) if evidence_dir is not None else DEFAULT_EVIDENCE_DIR
        )

    def file_name(self, server: str, run_id: int) -> str:
        return f"{FILE_PREFIX}_{run_id}_{host_identifier(server)}.json"

    def file_pattern(self, run_id: int) -> str:
        """Glob matching every evidence file of a run, as an absolute path."""
        return str(self.evidence_dir.resolve() / f"{FILE_PREFIX}_{run_id}_*.json")

    def persist(self, server: str, raw: bytes, run_id: int) -> Path:
        """
        Pretty-print ``raw`` and write it for ``server``.

        An existing file for the same run and host is overwritten.

        Returns:
            Path of the written file

        Raises:
            EvidenceWriteError: If the directory or file cannot be written
        """
        target = self.evidence_dir / self.file_name(server, run_id)
        body = pretty_print_json(raw)

        try:
            self.evidence_dir.mkdir(parents=True, exist_ok=True)
            target.write_bytes(body)
        except OSError as e:
            raise EvidenceWriteError(f"Failed to write evidence file {target}: {e}") from e

        logger.info(
            "Saved response body",
            operation="persist_evidence",
            run_id=run_id,
            context={
                "endpoint": mask_endpoint(server),
                "path": str(target),
                "size_bytes": len(body),
            },
        )
        return target
