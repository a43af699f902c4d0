"""Moved-code detection over filtered diff records.

Deleted and added blocks are grown from runs of consecutive records and
compared position by position on whitespace-normalized text. Matching is
greedy: each deletion block takes the first addition block that clears the
bar, even if a closer match appears later in the stream.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from diff_canvas.config import MoveConfig
from diff_canvas.diff_parser import DiffLine

_WHITESPACE_RUN_RE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class MoveMatch:
    """Match tag for one line of a moved block."""

    exact: bool


@dataclass(slots=True)
class MoveMarks:
    """Move tags keyed by ``DiffLine.index``."""

    deleted: dict[int, MoveMatch] = field(default_factory=dict)
    added: dict[int, MoveMatch] = field(default_factory=dict)

    def for_line(self, line: DiffLine) -> MoveMatch | None:
        if line.kind == "del":
            return self.deleted.get(line.index)
        if line.kind == "add":
            return self.added.get(line.index)
        return None


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE_RUN_RE.sub(" ", text).strip()


def detect_moves(lines: Sequence[DiffLine], settings: MoveConfig | None = None) -> MoveMarks:
    """Tag deleted/added blocks that look like relocated code."""
    settings = settings or MoveConfig()
    dels = [line for line in lines if line.kind == "del"]
    adds = [line for line in lines if line.kind == "add"]
    matched_dels: set[int] = set()
    matched_adds: set[int] = set()
    marks = MoveMarks()

    for del_pos in range(len(dels)):
        if del_pos in matched_dels:
            continue
        del_block = _grow_block(dels, del_pos, matched_dels, settings.window)
        if len(del_block) < settings.min_block_size:
            continue
        del_norm = [normalize_whitespace(dels[pos].text) for pos in del_block]

        for add_pos in range(len(adds)):
            if add_pos in matched_adds:
                continue
            add_block = _grow_block(adds, add_pos, matched_adds, settings.window)
            if len(add_block) < settings.min_block_size:
                continue
            add_norm = [normalize_whitespace(adds[pos].text) for pos in add_block]

            overlap = min(len(del_norm), len(add_norm))
            match_count = sum(1 for pos in range(overlap) if del_norm[pos] == add_norm[pos])
            if match_count < settings.min_block_size:
                continue
            if match_count < settings.min_match_ratio * overlap:
                continue

            for offset in range(overlap):
                deleted = dels[del_block[offset]]
                added = adds[add_block[offset]]
                match = MoveMatch(exact=deleted.text == added.text)
                marks.deleted[deleted.index] = match
                marks.added[added.index] = match
                matched_dels.add(del_block[offset])
                matched_adds.add(add_block[offset])
            break

    return marks


def _grow_block(
    records: Sequence[DiffLine], start: int, matched: set[int], window: int
) -> list[int]:
    block = [start]
    limit = min(len(records), start + window)
    for pos in range(start + 1, limit):
        if not records[pos].consecutive or pos in matched:
            break
        block.append(pos)
    return block
