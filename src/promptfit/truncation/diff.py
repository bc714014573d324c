"""Hunk-aware handling of unified diffs.

Emergency truncation keeps whole hunks only, so the smallest unit that
survives is a complete ``@@`` hunk together with the file headers it
belongs to. When not even one hunk fits, the diff collapses into a short
list of the files it touches.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from promptfit.models.components import TruncationResult

if TYPE_CHECKING:
    from promptfit.tokens.session import TokenSession

logger = logging.getLogger(__name__)

_HUNK_HEADER_RE = re.compile(r"^@@ -\d+(?:,(\d+))? \+\d+(?:,(\d+))? @@")

FILE_HEADER_PREFIXES: tuple[str, ...] = (
    "diff --git",
    "index ",
    "--- ",
    "+++ ",
    "new file mode",
    "deleted file mode",
    "old mode",
    "new mode",
    "similarity index",
    "dissimilarity index",
    "rename from",
    "rename to",
    "copy from",
    "copy to",
    "Binary files",
)

SUMMARY_HEADER = "[EMERGENCY TRUNCATION: Diff too large for analysis]"
SUMMARY_FOOTER = (
    "[Complete diff analysis unavailable due to token limits. "
    "Consider analyzing smaller change sets.]"
)


@dataclass(slots=True)
class DiffHunk:
    """One ``@@`` hunk: the header line followed by its body lines."""

    lines: list[str]

    @property
    def header(self) -> str:
        return self.lines[0]


@dataclass(slots=True)
class DiffFile:
    """Header lines of one file section and the hunks that follow them."""

    header_lines: list[str] = field(default_factory=list)
    hunks: list[DiffHunk] = field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        """Paths named by the ``---``/``+++`` headers, or by ``diff --git``."""
        paths: list[str] = []
        for line in self.header_lines:
            if line.startswith(("--- ", "+++ ")):
                path = _strip_side_prefix(line[4:].split("\t")[0].strip())
                if path and path != "/dev/null" and path not in paths:
                    paths.append(path)
        if paths:
            return paths
        for line in self.header_lines:
            if line.startswith("diff --git "):
                parts = line[len("diff --git ") :].split(" ")
                if parts:
                    return [_strip_side_prefix(parts[-1])]
        return []


def _strip_side_prefix(path: str) -> str:
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path


def is_file_header_line(line: str) -> bool:
    return line.startswith(FILE_HEADER_PREFIXES)


def _hunk_line_counts(header: str) -> tuple[int, int] | None:
    match = _HUNK_HEADER_RE.match(header)
    if match is None:
        return None
    old_count, new_count = match.groups()
    return int(old_count or 1), int(new_count or 1)


def parse_unified_diff(diff_text: str) -> list[DiffFile]:
    """Split a unified diff into file sections and hunks.

    Hunk bodies are consumed using the line counts of their ``@@`` header,
    so a removed line that happens to start with ``---`` stays inside its
    hunk. Headers without counts fall back to prefix matching.
    """
    files: list[DiffFile] = []
    current: DiffFile | None = None
    hunk: DiffHunk | None = None
    old_left = new_left = 0
    counted = False

    for line in diff_text.split("\n"):
        if (
            hunk is not None
            and counted
            and (old_left > 0 or new_left > 0)
            and not line.startswith("diff --git")
        ):
            hunk.lines.append(line)
            if line.startswith("\\"):
                continue
            if line.startswith("-"):
                old_left -= 1
            elif line.startswith("+"):
                new_left -= 1
            else:
                old_left -= 1
                new_left -= 1
            continue

        if line.startswith("@@"):
            if current is None:
                current = DiffFile()
                files.append(current)
            hunk = DiffHunk([line])
            current.hunks.append(hunk)
            counts = _hunk_line_counts(line)
            counted = counts is not None
            old_left, new_left = counts or (0, 0)
            continue

        if line.startswith("diff --git") or (
            is_file_header_line(line) and (current is None or current.hunks)
        ):
            current = DiffFile([line])
            files.append(current)
            hunk = None
            continue

        if hunk is not None:
            hunk.lines.append(line)
        else:
            if current is None:
                current = DiffFile()
                files.append(current)
            current.header_lines.append(line)

    return files


def changed_file_paths(diff_text: str) -> list[str]:
    """Deduplicated paths touched by the diff, in order of appearance."""
    seen: dict[str, None] = {}
    for diff_file in parse_unified_diff(diff_text):
        for path in diff_file.paths:
            seen.setdefault(path, None)
    return list(seen)


def build_diff_summary(paths: list[str], shown: int) -> str:
    """Render the minimal textual summary listing at most ``shown`` paths."""
    total = len(paths)
    listed = paths[:shown]
    heading = f"Files modified ({total} total"
    heading += f", showing first {len(listed)}):" if len(listed) < total else "):"
    lines = [SUMMARY_HEADER, "", heading, *(f"- {path}" for path in listed)]
    if len(listed) < total:
        lines.append(f"- ... and {total - len(listed)} more")
    lines.extend(["", SUMMARY_FOOTER])
    return "\n".join(lines)


async def summarize_diff(
    session: TokenSession, diff_text: str, target_tokens: int
) -> TruncationResult:
    """Minimal summary of ``diff_text`` that fits ``target_tokens``.

    Listed files are dropped one at a time until the summary fits; if even
    the bare summary is too large the result is empty.
    """
    paths = changed_file_paths(diff_text)
    shown = min(len(paths), session.settings.max_summary_files)
    while shown >= 0:
        summary = build_diff_summary(paths, shown)
        if await session.count(summary) <= target_tokens:
            return TruncationResult(summary, True)
        shown -= 1
    logger.warning("Diff summary does not fit %d tokens; omitting diff", target_tokens)
    return TruncationResult("", True)


async def emergency_truncate_diff(
    session: TokenSession, diff_text: str, target_tokens: int
) -> TruncationResult:
    """Keep the longest prefix of whole hunks that fits ``target_tokens``.

    File headers are kept with the first retained hunk of their file. The
    scan stops at the first hunk that would overflow; nothing after it is
    considered. Targets below ``min_hunk_tokens``, or diffs whose first
    hunk alone is too large, produce :func:`summarize_diff` instead.
    """
    settings = session.settings
    if target_tokens < settings.min_hunk_tokens:
        return await summarize_diff(session, diff_text, target_tokens)

    budget = target_tokens - await session.count(settings.diff_marker)
    kept: list[str] = []
    used = 0
    hunks_kept = 0
    for diff_file in parse_unified_diff(diff_text):
        # headers travel with the first hunk of their file
        units = [
            diff_file.header_lines + hunk.lines if i == 0 else hunk.lines
            for i, hunk in enumerate(diff_file.hunks)
        ]
        if not units:
            units = [diff_file.header_lines]
        fitted = 0
        for unit in units:
            cost = await session.count("\n".join(unit) + "\n")
            if used + cost > budget:
                break
            kept.extend(unit)
            used += cost
            fitted += 1
        hunks_kept += min(fitted, len(diff_file.hunks))
        if fitted < len(units):
            break

    if hunks_kept == 0:
        logger.warning(
            "No complete hunk fits %d tokens; summarizing diff instead", target_tokens
        )
        return await summarize_diff(session, diff_text, target_tokens)

    logger.debug("Emergency diff truncation kept %d hunks in %d tokens", hunks_kept, used)
    return TruncationResult("\n".join(kept) + settings.diff_marker, True)
