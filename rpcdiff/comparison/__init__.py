"""Structural comparison of JSON documents with field exclusion."""

from .comparator import diff, differences, equal, iter_differences, json_type
from .diff_reporter import DiffEntry, render_diff, render_mismatch_header, summarize
from .field_filter import PathPredicate, build_ignore_predicate
from .paths import IndexSegment, KeySegment, StructuralPath, format_path

__all__ = [
    "diff",
    "differences",
    "equal",
    "iter_differences",
    "json_type",
    "DiffEntry",
    "render_diff",
    "render_mismatch_header",
    "summarize",
    "PathPredicate",
    "build_ignore_predicate",
    "IndexSegment",
    "KeySegment",
    "StructuralPath",
    "format_path",
]
