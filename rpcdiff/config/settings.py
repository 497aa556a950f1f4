"""
Configuration loader for rpcdiff

Merges an optional YAML configuration file, environment variables and
command line values into one Settings object, and provides log redaction for
credentials embedded in endpoint URLs.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import parse_qsl, urlsplit

import jsonschema
import yaml

from rpcdiff.evidence.store import DEFAULT_EVIDENCE_DIR
from rpcdiff.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV = "RPCDIFF_CONFIG_FILE"
EVIDENCE_DIR_ENV = "RPCDIFF_EVIDENCE_DIR"
SAVE_BODIES_ENV = "RPCDIFF_SAVE_BODIES"
TIMEOUT_ENV = "RPCDIFF_TIMEOUT_SECONDS"

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "servers": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
        },
        "ignore_fields": {
            "type": "array",
            "items": {"type": "string", "minLength": 1},
        },
        "evidence_dir": {"type": "string", "minLength": 1},
        "save_bodies": {"type": "boolean"},
        "timeout_seconds": {
            "oneOf": [{"type": "number", "exclusiveMinimum": 0}, {"type": "null"}]
        },
        "request": {},
    },
}


class EndpointRedactionFilter(logging.Filter):
    """
    Logging filter that redacts credentials found in endpoint URLs.

    Userinfo (``user:password@``) and query string values are treated as
    secrets and replaced with ***REDACTED*** in log messages and arguments.
    """

    def __init__(self, endpoints: Optional[Iterable[str]] = None):
        """
        Initialize filter with endpoints whose secrets must be redacted.

        Args:
            endpoints: Endpoint URLs configured for the run
        """
        super().__init__()
        self.endpoints = list(endpoints or [])
        self.redacted_values: set[str] = set()
        for endpoint in self.endpoints:
            self._extract_secret_values(endpoint)

    def _extract_secret_values(self, endpoint: str) -> None:
        try:
            parts = urlsplit(endpoint)
        except ValueError:
            return

        candidates: List[str] = []
        if parts.username:
            candidates.append(parts.username)
        if parts.password:
            candidates.append(parts.password)
        candidates.extend(value for _, value in parse_qsl(parts.query))

        for value in candidates:
            # Only redact strings with meaningful length
            if value and len(value) > 3:
                self.redacted_values.add(value)

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter and redact log record."""
        if not self.redacted_values:
            return True
        record.msg = self._redact_string(str(record.msg))
        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._redact_string(str(v)) for k, v in record.args.items()}
            elif isinstance(record.args, (list, tuple)):
                record.args = tuple(self._redact_string(str(arg)) for arg in record.args)
        return True

    def _redact_string(self, text: str) -> str:
        """Redact all secret values from string."""
        for secret in self.redacted_values:
            if secret in text:
                text = text.replace(secret, "***REDACTED***")
        return text


def _read_bool_env(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip().lower() == "true"


def _read_timeout_env(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value


class Settings:
    """
    Effective configuration of one run.

    Precedence: explicit values (command line) > environment > file > defaults.
    """

    def __init__(
        self,
        servers: Optional[List[str]] = None,
        ignore_fields: Optional[List[str]] = None,
        evidence_dir: Optional[Path] = None,
        save_bodies: bool = True,
        timeout_seconds: Optional[float] = None,
        request: Any = None,
        has_request: bool = False,
    ):
        self.servers = list(servers or [])
        self.ignore_fields = list(ignore_fields or [])
        self.evidence_dir = Path(evidence_dir) if evidence_dir else DEFAULT_EVIDENCE_DIR
        self.save_bodies = save_bodies
        self.timeout_seconds = timeout_seconds
        self.request = request
        # A request of JSON null is still a request
        self.has_request = has_request or request is not None

    @staticmethod
    def load_file(config_path: str) -> Dict[str, Any]:
        """
        Load and validate a YAML configuration file.

        Args:
            config_path: Path to the YAML file

        Returns:
            Validated configuration mapping (empty for an empty file)

        Raises:
            ConfigError: If the file is missing, not YAML, or fails the schema
        """
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigError(f"Configuration file not found: {config_path}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if content is None:
            logger.warning("Empty configuration file: %s", config_path)
            return {}

        try:
            jsonschema.validate(instance=content, schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ConfigError(f"Configuration {config_path} is invalid: {e.message}") from e

        logger.debug("Loaded configuration from %s", config_path)
        return content


def load_settings(
    config_path: Optional[str] = None,
    servers: Optional[List[str]] = None,
    ignore_fields: Optional[List[str]] = None,
    evidence_dir: Optional[str] = None,
    save_bodies: Optional[bool] = None,
    timeout_seconds: Optional[float] = None,
) -> Settings:
    """
    Build Settings from file, environment and explicit values.

    Lists given explicitly replace the file's lists rather than extending them.

    Raises:
        ConfigError: If any source is invalid
    """
    config_path = config_path or os.getenv(CONFIG_FILE_ENV)
    file_values: Dict[str, Any] = Settings.load_file(config_path) if config_path else {}

    resolved_save = save_bodies
    if resolved_save is None:
        resolved_save = _read_bool_env(SAVE_BODIES_ENV)
    if resolved_save is None:
        resolved_save = file_values.get("save_bodies", True)

    resolved_timeout = timeout_seconds
    if resolved_timeout is None:
        resolved_timeout = _read_timeout_env(TIMEOUT_ENV)
    if resolved_timeout is None:
        resolved_timeout = file_values.get("timeout_seconds")
    if resolved_timeout is not None and resolved_timeout <= 0:
        raise ConfigError(f"Timeout must be positive, got {resolved_timeout}")

    resolved_dir = evidence_dir or os.getenv(EVIDENCE_DIR_ENV) or file_values.get("evidence_dir")

    return Settings(
        servers=servers if servers else file_values.get("servers", []),
        ignore_fields=ignore_fields if ignore_fields else file_values.get("ignore_fields", []),
        evidence_dir=Path(resolved_dir) if resolved_dir else None,
        save_bodies=resolved_save,
        timeout_seconds=resolved_timeout,
        request=file_values.get("request"),
        has_request="request" in file_values,
    )


def setup_logging_redaction(endpoints: Iterable[str]) -> EndpointRedactionFilter:
    """
    Install endpoint redaction on root handlers and on rpcdiff logger handlers.

    Filters attached to handlers see records propagated from child loggers,
    which a filter on the root logger itself would not.
    """
    redaction_filter = EndpointRedactionFilter(endpoints)

    handlers = list(logging.getLogger().handlers)
    for name, candidate in logging.root.manager.loggerDict.items():
        if name.startswith("rpcdiff") and isinstance(candidate, logging.Logger):
            handlers.extend(candidate.handlers)

    for handler in handlers:
        handler.addFilter(redaction_filter)
    return redaction_filter
