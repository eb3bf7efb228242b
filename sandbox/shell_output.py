"""Shared shell output normalization helpers."""

from __future__ import annotations

import re

_ANSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07]*(?:\x07|\x1b\\)")


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


def normalize_shell_output(output: str) -> str:
    """Make captured terminal output readable in an alert.

    Drops escape sequences, keeps only the final redraw of carriage-return
    progress lines, and trims prompt-only trailing lines.
    """
    text = strip_ansi(output).replace("\r\n", "\n")

    lines: list[str] = []
    for line in text.split("\n"):
        if "\r" in line:
            # Progress bars redraw with \r; the last segment is what the user saw.
            segments = [s for s in line.split("\r") if s]
            line = segments[-1] if segments else ""
        lines.append(line)

    while lines and re.fullmatch(r"\s*[%#$>❯]\s*", lines[-1]):
        lines.pop()
    while lines and not lines[0].strip():
        lines.pop(0)

    return "\n".join(lines).strip()
