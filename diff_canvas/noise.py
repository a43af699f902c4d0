"""Noise filters applied to parsed diff records before move detection."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from diff_canvas.config import DEFAULT_IMPORT_PREFIXES, FilterConfig
from diff_canvas.diff_parser import DiffLine

_WHITESPACE_RE = re.compile(r"\s+")


def is_import_line(text: str, prefixes: Iterable[str] = DEFAULT_IMPORT_PREFIXES) -> bool:
    """Return True when marker-less line text is an import statement."""
    stripped = text.strip()
    return any(stripped.startswith(prefix) for prefix in prefixes)


def is_whitespace_only_change(deleted: str, added: str) -> bool:
    return _WHITESPACE_RE.sub("", deleted) == _WHITESPACE_RE.sub("", added)


def drop_import_lines(
    lines: Sequence[DiffLine],
    prefixes: Iterable[str] = DEFAULT_IMPORT_PREFIXES,
) -> list[DiffLine]:
    """Drop added/deleted import statements; hunk and context records are kept."""
    prefixes = tuple(prefixes)
    return [
        line for line in lines if not (line.is_change and is_import_line(line.text, prefixes))
    ]


def collapse_whitespace_changes(lines: Sequence[DiffLine]) -> list[DiffLine]:
    """Turn whitespace-only del/add runs into context records.

    A maximal run of deletions directly followed by an equally long run of
    additions collapses only when every pair differs by whitespace alone.
    The collapsed record shows the added text.
    """
    output: list[DiffLine] = []
    position = 0
    total = len(lines)

    while position < total:
        if lines[position].kind != "del":
            output.append(lines[position])
            position += 1
            continue

        dels_end = _run_end(lines, position, "del")
        adds_end = _run_end(lines, dels_end, "add")
        deleted = lines[position:dels_end]
        added = lines[dels_end:adds_end]

        if len(deleted) == len(added) and all(
            is_whitespace_only_change(old.text, new.text) for old, new in zip(deleted, added)
        ):
            output.extend(
                DiffLine(
                    kind="ctx",
                    text=new.text,
                    index=new.index,
                    old_lineno=old.old_lineno,
                    new_lineno=new.new_lineno,
                )
                for old, new in zip(deleted, added)
            )
            position = adds_end
            continue

        output.extend(deleted)
        position = dels_end

    return output


def filter_noise(lines: Sequence[DiffLine], filters: FilterConfig | None = None) -> list[DiffLine]:
    """Apply the import pass then the whitespace pass."""
    filters = filters or FilterConfig()
    filtered = list(lines)
    if filters.drop_imports:
        filtered = drop_import_lines(filtered, filters.import_prefixes)
    if filters.collapse_whitespace:
        filtered = collapse_whitespace_changes(filtered)
    return filtered


def _run_end(lines: Sequence[DiffLine], start: int, kind: str) -> int:
    end = start
    while end < len(lines) and lines[end].kind == kind:
        end += 1
    return end
