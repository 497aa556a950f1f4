"""Evidence files written when two servers disagree."""

from .store import (
    DEFAULT_EVIDENCE_DIR,
    EvidenceStore,
    host_identifier,
    new_run_id,
    pretty_print_json,
)

__all__ = [
    "DEFAULT_EVIDENCE_DIR",
    "EvidenceStore",
    "host_identifier",
    "new_run_id",
    "pretty_print_json",
]
