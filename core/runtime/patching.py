"""Unified-diff creation/application and line-level change summaries."""

from __future__ import annotations

import difflib
import re

from pydantic import BaseModel

from .errors import PatchApplyError

NO_NEWLINE_MARKER = "\\ No newline at end of file"

_HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


class ChangeBlock(BaseModel):
    """One run of equal, added or removed lines."""

    value: str
    count: int
    added: bool = False
    removed: bool = False


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, keeping line endings (``str.splitlines`` also splits on \\r, \\x0b, ...)."""
    return _LINE_RE.findall(text)


def create_two_files_patch(old_name: str, new_name: str, old: str, new: str, context: int = 3) -> str:
    out: list[str] = []
    for line in difflib.unified_diff(
        split_lines(old),
        split_lines(new),
        fromfile=old_name,
        tofile=new_name,
        n=context,
    ):
        if line.endswith("\n"):
            out.append(line)
        else:
            out.append(f"{line}\n{NO_NEWLINE_MARKER}\n")
    return "".join(out)


class _Hunk:
    __slots__ = ("old_start", "old_count", "new_count", "old_lines", "new_lines")

    def __init__(self, old_start: int, old_count: int, new_count: int):
        self.old_start = old_start
        self.old_count = old_count
        self.new_count = new_count
        self.old_lines: list[str] = []
        self.new_lines: list[str] = []


def _parse_hunks(patch: str) -> list[_Hunk]:
    hunks: list[_Hunk] = []
    current: _Hunk | None = None
    last_targets: tuple[list[str], ...] = ()

    for raw in split_lines(patch):
        if raw.startswith(("--- ", "+++ ")) and (current is None or _hunk_is_full(current)):
            continue
        match = _HUNK_RE.match(raw)
        if match:
            old_count = int(match.group(2)) if match.group(2) is not None else 1
            new_count = int(match.group(4)) if match.group(4) is not None else 1
            current = _Hunk(int(match.group(1)), old_count, new_count)
            hunks.append(current)
            last_targets = ()
            continue
        if current is None:
            continue
        if raw.startswith("\\"):
            # Strip the newline from the line(s) the marker refers to.
            for target in last_targets:
                if target and target[-1].endswith("\n"):
                    target[-1] = target[-1][:-1]
            continue

        tag, body = raw[:1], raw[1:]
        if tag == " ":
            current.old_lines.append(body)
            current.new_lines.append(body)
            last_targets = (current.old_lines, current.new_lines)
        elif tag == "-":
            current.old_lines.append(body)
            last_targets = (current.old_lines,)
        elif tag == "+":
            current.new_lines.append(body)
            last_targets = (current.new_lines,)
        elif raw.strip() == "":
            # Blank context line whose leading space was stripped in transit.
            current.old_lines.append("\n")
            current.new_lines.append("\n")
            last_targets = (current.old_lines, current.new_lines)
        else:
            raise PatchApplyError(f"Malformed patch line: {raw!r}")

    return hunks


def _hunk_is_full(hunk: _Hunk) -> bool:
    return len(hunk.old_lines) >= hunk.old_count and len(hunk.new_lines) >= hunk.new_count


def _find_block(lines: list[str], block: list[str], expected: int) -> int | None:
    """Locate ``block`` at ``expected`` or the nearest offset from it."""
    limit = len(lines) - len(block)
    if limit < 0:
        return None
    expected = min(max(expected, 0), limit)
    for distance in range(limit + 1):
        for candidate in (expected - distance, expected + distance):
            if 0 <= candidate <= limit and lines[candidate : candidate + len(block)] == block:
                return candidate
    return None


def apply_patch(source: str, patch: str) -> str:
    """Apply a unified diff produced by :func:`create_two_files_patch` to ``source``."""
    hunks = _parse_hunks(patch)
    if not hunks and patch.strip():
        raise PatchApplyError("Patch contains no hunks")

    lines = split_lines(source)
    offset = 0
    for hunk in hunks:
        expected = (hunk.old_start if hunk.old_count == 0 else hunk.old_start - 1) + offset
        position = _find_block(lines, hunk.old_lines, expected)
        if position is None:
            raise PatchApplyError(f"Hunk at line {hunk.old_start} does not match")
        lines[position : position + len(hunk.old_lines)] = hunk.new_lines
        offset = position - (expected - offset) + len(hunk.new_lines) - len(hunk.old_lines)
    return "".join(lines)


def diff_lines(old: str, new: str) -> list[ChangeBlock]:
    old_lines = split_lines(old)
    new_lines = split_lines(new)
    blocks: list[ChangeBlock] = []
    matcher = difflib.SequenceMatcher(None, old_lines, new_lines, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            blocks.append(ChangeBlock(value="".join(old_lines[i1:i2]), count=i2 - i1))
            continue
        if tag in ("delete", "replace"):
            blocks.append(ChangeBlock(value="".join(old_lines[i1:i2]), count=i2 - i1, removed=True))
        if tag in ("insert", "replace"):
            blocks.append(ChangeBlock(value="".join(new_lines[j1:j2]), count=j2 - j1, added=True))
    return blocks
