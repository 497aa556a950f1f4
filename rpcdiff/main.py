"""
rpcdiff command line entry point

Sends one JSON-RPC request to several servers and fails when two adjacent
servers disagree.

Usage:
    rpcdiff --rpc http://node-a:8899 --rpc http://node-b:8899 \\
        --ignore-field ts '{"jsonrpc": "2.0", "id": 1, "method": "getSlot"}'

    rpcdiff --config compare.yaml

Environment:
    RPCDIFF_CONFIG_FILE      default configuration file
    RPCDIFF_EVIDENCE_DIR     directory for evidence bodies (default ./bodies)
    RPCDIFF_SAVE_BODIES      "false" to never write evidence
    RPCDIFF_TIMEOUT_SECONDS  per-request timeout (default: none)
"""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional, TextIO

from rpcdiff.api.rpc_client import RpcClient
from rpcdiff.config.settings import Settings, load_settings, setup_logging_redaction
from rpcdiff.evidence.store import EvidenceStore
from rpcdiff.exceptions import ConfigError, MismatchError, RpcDiffError
from rpcdiff.runner.orchestrator import ComparisonRunner
from rpcdiff.utils.logger import get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rpcdiff",
        description="Send the same JSON-RPC request to several servers and diff the responses.",
    )
    parser.add_argument(
        "body",
        nargs="?",
        help="Request body as a JSON string, or @FILE to read it from a file",
    )
    parser.add_argument(
        "--rpc",
        dest="servers",
        action="append",
        default=[],
        metavar="URL",
        help="The RPC server to send the request to. Can be specified multiple times.",
    )
    parser.add_argument(
        "--ignore-field",
        dest="ignore_fields",
        action="append",
        default=[],
        metavar="NAME",
        help="Ignore the given field in the diff. Can be specified multiple times.",
    )
    parser.add_argument(
        "--no-save-body",
        dest="save_bodies",
        action="store_const",
        const=False,
        default=None,
        help="Don't save the response bodies to disk.",
    )
    parser.add_argument("--evidence-dir", help="Directory for saved response bodies")
    parser.add_argument(
        "--timeout", type=float, metavar="SECONDS", help="Per-request timeout in seconds"
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logs")
    return parser


def parse_request_body(text: str) -> Any:
    """
    Parse the request body argument.

    Args:
        text: JSON document, or ``@path`` naming a file that holds one

    Raises:
        ConfigError: If the file cannot be read or the text is not JSON
    """
    if text.startswith("@"):
        path = text[1:]
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise ConfigError(f"Cannot read request body file {path}: {e}") from e

    try:
        return json.loads(text)
    except ValueError as e:
        raise ConfigError(f"Request body is not valid JSON: {e}") from e


def _configure_verbosity(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    for name, candidate in logging.root.manager.loggerDict.items():
        if name.startswith("rpcdiff") and isinstance(candidate, logging.Logger):
            for handler in candidate.handlers:
                handler.setLevel(level)


def _resolve_request(args: argparse.Namespace, settings: Settings) -> Any:
    if args.body is not None:
        return parse_request_body(args.body)
    if settings.has_request:
        return settings.request
    raise ConfigError("No request body provided")


def run(args: argparse.Namespace, output: TextIO) -> int:
    settings = load_settings(
        config_path=args.config,
        servers=args.servers,
        ignore_fields=args.ignore_fields,
        evidence_dir=args.evidence_dir,
        save_bodies=args.save_bodies,
        timeout_seconds=args.timeout,
    )
    setup_logging_redaction(settings.servers)
    request_body = _resolve_request(args, settings)

    print("body:", file=output)
    print(json.dumps(request_body, indent=2, ensure_ascii=False), file=output)

    runner = ComparisonRunner(
        fetcher=RpcClient(timeout_seconds=settings.timeout_seconds),
        evidence_store=EvidenceStore(settings.evidence_dir),
        save_bodies=settings.save_bodies,
        output=output,
    )
    result = runner.run(request_body, settings.servers, settings.ignore_fields)
    print(
        f"OK: {len(result.servers)} servers, {result.compared_pairs} pairs compared",
        file=output,
    )
    return 0


def main(argv: Optional[List[str]] = None, output: Optional[TextIO] = None) -> int:
    """
    Run rpcdiff and return the process exit code.

    This is the only place errors are turned into exit status: 0 when every
    adjacent pair matched, 1 on any rpcdiff error.
    """
    args = build_parser().parse_args(argv)
    _configure_verbosity(args.verbose)
    output = output or sys.stdout

    try:
        return run(args, output)
    except MismatchError as e:
        logger.error(
            "mismatch (-want +got)",
            context={
                "left_server": e.left_server,
                "right_server": e.right_server,
                "evidence": e.evidence_paths,
            },
            error=str(e),
        )
        print(f"FAIL: {e}", file=sys.stderr)
        return 1
    except RpcDiffError as e:
        logger.error(
            "Run aborted",
            context={"error_type": type(e).__name__},
            error=str(e),
        )
        print(f"FAIL: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
