"""Unified diff parser primitives."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from re import Match, compile
from typing import Literal

logger = logging.getLogger(__name__)

HUNK_HEADER_RE = compile(r"^@@ -(?P<old_start>\d+)(?:,\d+)? \+(?P<new_start>\d+)(?:,\d+)? @@")
FILE_HEADER_PREFIXES = ("--- ", "+++ ", "diff ")
NO_NEWLINE_PREFIX = "\\ "

LineKind = Literal["hunk", "add", "del", "ctx"]
DiffInput = str | Sequence[str] | None


@dataclass(frozen=True, slots=True)
class DiffLine:
    """A single parsed diff record.

    ``index`` is the record position in the parsed stream and stays stable
    after noise filtering drops records around it. ``consecutive`` is set on
    add/del records whose predecessor record has the same kind.
    """

    kind: LineKind
    text: str
    index: int
    old_lineno: int | None = None
    new_lineno: int | None = None
    consecutive: bool = False

    @property
    def is_change(self) -> bool:
        return self.kind in ("add", "del")


def to_lines(diff_input: DiffInput) -> list[str]:
    """Normalize a patch string or pre-split line list into raw lines."""
    if not diff_input:
        return []
    if isinstance(diff_input, str):
        lines = [line[:-1] if line.endswith("\r") else line for line in diff_input.split("\n")]
        if lines and lines[-1] == "":
            lines.pop()
        return lines
    if isinstance(diff_input, (list, tuple)):
        return [str(line) for line in diff_input]
    logger.debug("Unsupported diff input type %s; treating as empty", type(diff_input).__name__)
    return []


def parse_diff(diff_input: DiffInput) -> list[DiffLine]:
    """Parse unified diff text into an ordered list of typed records."""
    records: list[DiffLine] = []
    old_lineno = 0
    new_lineno = 0
    last_kind: LineKind | None = None
    in_file_header = False

    for raw_line in to_lines(diff_input):
        if raw_line.startswith(FILE_HEADER_PREFIXES):
            in_file_header = raw_line.startswith("diff ") or in_file_header
            continue

        if raw_line.startswith("@@"):
            in_file_header = False
            parsed = _parse_hunk_header(raw_line)
            if parsed is not None:
                old_lineno, new_lineno = parsed
            records.append(DiffLine(kind="hunk", text=raw_line, index=len(records)))
            last_kind = "hunk"
            continue

        # index/mode/rename lines between a "diff " header and its first hunk
        if in_file_header or raw_line.startswith(NO_NEWLINE_PREFIX):
            continue

        if raw_line.startswith("+"):
            records.append(
                DiffLine(
                    kind="add",
                    text=raw_line[1:],
                    index=len(records),
                    new_lineno=new_lineno,
                    consecutive=last_kind == "add",
                )
            )
            new_lineno += 1
            last_kind = "add"
        elif raw_line.startswith("-"):
            records.append(
                DiffLine(
                    kind="del",
                    text=raw_line[1:],
                    index=len(records),
                    old_lineno=old_lineno,
                    consecutive=last_kind == "del",
                )
            )
            old_lineno += 1
            last_kind = "del"
        else:
            records.append(
                DiffLine(
                    kind="ctx",
                    text=raw_line[1:] if raw_line.startswith(" ") else raw_line,
                    index=len(records),
                    old_lineno=old_lineno,
                    new_lineno=new_lineno,
                )
            )
            old_lineno += 1
            new_lineno += 1
            last_kind = "ctx"

    return records


def _parse_hunk_header(header: str) -> tuple[int, int] | None:
    match: Match[str] | None = HUNK_HEADER_RE.match(header)
    if match is None:
        logger.debug("Unparseable hunk header, keeping line counters: %s", header)
        return None
    return (int(match.group("old_start")), int(match.group("new_start")))
