"""Structure-aware truncation: line/fence helpers, diff hunks, and the waterfall."""

from .diff import (
    DiffFile,
    DiffHunk,
    build_diff_summary,
    changed_file_paths,
    emergency_truncate_diff,
    parse_unified_diff,
    summarize_diff,
)
from .structural import (
    close_open_fence,
    count_fences,
    cut_at_line_boundary,
    find_unclosed_fence,
    fit_prefix,
)
from .waterfall import WaterfallTruncator

__all__ = [
    "DiffFile",
    "DiffHunk",
    "WaterfallTruncator",
    "build_diff_summary",
    "changed_file_paths",
    "close_open_fence",
    "count_fences",
    "cut_at_line_boundary",
    "emergency_truncate_diff",
    "find_unclosed_fence",
    "fit_prefix",
    "parse_unified_diff",
    "summarize_diff",
]
