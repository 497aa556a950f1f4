"""Adjacent-pair differential runs across JSON-RPC servers."""

from .orchestrator import ComparisonRunner, PairResult, RunResult, validate_servers

__all__ = [
    "ComparisonRunner",
    "PairResult",
    "RunResult",
    "validate_servers",
]
