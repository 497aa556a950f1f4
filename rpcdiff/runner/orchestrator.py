"""
Comparison Runner

Sends one request to every server in order, compares each response with the
previous server's, and stops at the first disagreement after saving both raw
bodies as evidence.
"""

import json
import sys
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, TextIO

from rpcdiff.api.rpc_client import FetchedResponse, RpcClient
from rpcdiff.comparison.comparator import differences
from rpcdiff.comparison.diff_reporter import render_diff, render_mismatch_header, summarize
from rpcdiff.comparison.field_filter import build_ignore_predicate
from rpcdiff.evidence.store import EvidenceStore, host_identifier, new_run_id
from rpcdiff.exceptions import ConfigError, MismatchError
from rpcdiff.utils.logger import get_logger, mask_endpoint

logger = get_logger(__name__)


def green(text: str) -> str:
    return f"\033[32m{text}\033[0m"


@dataclass
class PairResult:
    """Outcome of one adjacent-pair comparison that matched."""

    left_server: str
    right_server: str
    equal: bool = True


@dataclass
class RunResult:
    """Successful run: every adjacent pair matched."""

    run_id: int
    servers: List[str]
    pairs: List[PairResult] = field(default_factory=list)

    @property
    def compared_pairs(self) -> int:
        return len(self.pairs)


def validate_servers(servers: Sequence[str], check_hosts: bool = False) -> List[str]:
    """
    Check the server list before any network work.

    Args:
        servers: Ordered endpoints
        check_hosts: Also require a host name usable for evidence files

    Returns:
        The servers as a list, order preserved

    Raises:
        ConfigError: On an empty list, a blank entry, or a duplicate entry
    """
    server_list = list(servers)
    if not server_list:
        raise ConfigError("No servers given")

    seen = set()
    for server in server_list:
        if not isinstance(server, str) or not server.strip():
            raise ConfigError(f"Invalid server entry: {server!r}")
        if server in seen:
            raise ConfigError(f"Duplicate server: {mask_endpoint(server)}")
        seen.add(server)
        if check_hosts:
            host_identifier(server)

    return server_list


class ComparisonRunner:
    """
    Orchestrates one differential run.

    Responsibilities:
    - Reject unusable server lists before fetching
    - Fetch servers strictly in list order, one at a time
    - Compare each response with the previous one only
    - On first mismatch save both bodies, print the diff and raise MismatchError
    """

    def __init__(
        self,
        fetcher: Optional[RpcClient] = None,
        evidence_store: Optional[EvidenceStore] = None,
        save_bodies: bool = True,
        output: Optional[TextIO] = None,
    ):
        """
        Initialize runner.

        Args:
            fetcher: Object with ``fetch(endpoint=..., request_body=...)``
            evidence_store: Where mismatching bodies are written
            save_bodies: False to skip evidence capture on mismatch
            output: Stream receiving the mismatch report (stdout by default)
        """
        self.fetcher = fetcher or RpcClient()
        self.evidence_store = evidence_store or EvidenceStore()
        self.save_bodies = save_bodies
        self.output = output

    def _print(self, text: str) -> None:
        print(text, file=self.output or sys.stdout)

    def run(
        self,
        request_body: Any,
        servers: Sequence[str],
        ignore_fields: Iterable[str] = (),
        run_id: Optional[int] = None,
    ) -> RunResult:
        """
        Execute the run.

        Args:
            request_body: JSON value sent unchanged to every server
            servers: Ordered, duplicate-free endpoints
            ignore_fields: Field names excluded from comparison
            run_id: Evidence scope; derived from the clock when omitted

        Returns:
            RunResult listing the matched pairs

        Raises:
            ConfigError: Before any fetch, for an unusable server list
            TransportError, EncodingError, DecodingError: From the fetcher
            EvidenceWriteError: If evidence cannot be written
            MismatchError: On the first pair of differing responses
        """
        server_list = validate_servers(servers, check_hosts=self.save_bodies)
        ignored = sorted(set(ignore_fields))
        predicate = build_ignore_predicate(ignored)

        if run_id is None:
            run_id = new_run_id()
        result = RunResult(run_id=run_id, servers=server_list)

        logger.info(
            f"runID: {run_id}",
            run_id=run_id,
            context={
                "servers": [mask_endpoint(server) for server in server_list],
                "ignore_fields": ignored,
            },
        )
        if self.save_bodies:
            logger.info(
                f"Will save response bodies to {self.evidence_store.file_pattern(run_id)}",
                run_id=run_id,
            )
        logger.debug(
            "Request body",
            context={"body": json.dumps(request_body, ensure_ascii=False, default=str)},
        )
        if len(server_list) == 1:
            logger.warning("Only one server given; nothing to compare against")

        previous: Optional[FetchedResponse] = None
        for server in server_list:
            current = self.fetcher.fetch(endpoint=server, request_body=request_body)

            if previous is not None:
                self._compare(previous, current, predicate, run_id)
                result.pairs.append(
                    PairResult(left_server=previous.endpoint, right_server=current.endpoint)
                )

            previous = current

        logger.info(
            "All responses are equal",
            run_id=run_id,
            context={"compared_pairs": result.compared_pairs},
        )
        return result

    def _compare(
        self,
        previous: FetchedResponse,
        current: FetchedResponse,
        predicate,
        run_id: int,
    ) -> None:
        left = mask_endpoint(previous.endpoint)
        right = mask_endpoint(current.endpoint)
        logger.info(f"Comparing responses from {left} and {right}")

        entries = differences(previous.parsed, current.parsed, predicate)
        if not entries:
            logger.info(green(f"Responses from {left} and {right} are EQUAL"))
            return

        diff_text = render_diff(entries)
        logger.error(
            f"Responses from {left} and {right} differ",
            run_id=run_id,
            context={"differences": summarize(entries)},
        )
        self._print(render_mismatch_header(left, right))
        self._print(diff_text)

        evidence_paths: List[str] = []
        if self.save_bodies:
            for fetched in (previous, current):
                path = self.evidence_store.persist(fetched.endpoint, fetched.raw, run_id)
                evidence_paths.append(str(path))

        raise MismatchError(
            left_server=left,
            right_server=right,
            diff=diff_text,
            evidence_paths=evidence_paths,
        )
