"""Row rendering pipeline: parse, filter, detect moves, emit display rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from html import escape
from typing import Any, Literal, Protocol

from diff_canvas.config import AppConfig
from diff_canvas.diff_parser import DiffInput, DiffLine, parse_diff, to_lines
from diff_canvas.moves import MoveMarks, detect_moves
from diff_canvas.noise import filter_noise

logger = logging.getLogger(__name__)

RowCategory = Literal[
    "hunk",
    "add",
    "del",
    "ctx",
    "moved-add",
    "moved-add-edited",
    "moved-del",
    "moved-del-edited",
    "empty",
]
ROW_CATEGORIES: tuple[RowCategory, ...] = (
    "hunk",
    "add",
    "del",
    "ctx",
    "moved-add",
    "moved-add-edited",
    "moved-del",
    "moved-del-edited",
    "empty",
)


@dataclass(frozen=True, slots=True)
class RenderRow:
    """One display row handed to the styling layer."""

    category: RowCategory
    escaped_text: str
    old_lineno: int | None = None
    new_lineno: int | None = None


class DiffDisplay(Protocol):
    """Display layer that owns target lookup and row presentation."""

    def resolve(self, target: Any) -> Any | None:
        """Return the element for an element reference, id, or selector."""

    def show(self, element: Any, rows: list[RenderRow]) -> None:
        """Replace the element contents with the given rows."""


def escape_text(text: str) -> str:
    return escape(text, quote=False)


def empty_row(message: str) -> RenderRow:
    return RenderRow(category="empty", escaped_text=escape_text(message))


def build_rows(diff_input: DiffInput, config: AppConfig | None = None) -> list[RenderRow]:
    """Run the full pipeline and return display rows.

    Empty or absent input, and input with nothing left to show, produces a
    single informational row instead of an empty list.
    """
    config = config or AppConfig()
    if not to_lines(diff_input):
        return [empty_row(config.empty_message)]

    lines = filter_noise(parse_diff(diff_input), config.filters)
    marks = detect_moves(lines, config.moves) if config.moves.enabled else MoveMarks()
    rows = [_to_row(line, marks) for line in lines]
    if not rows:
        return [empty_row(config.empty_message)]
    return rows


def render_diff(
    target: Any,
    diff_input: DiffInput,
    display: DiffDisplay,
    config: AppConfig | None = None,
) -> None:
    """Render a diff into the display element identified by ``target``."""
    element = display.resolve(target)
    if element is None:
        logger.debug("No display element for target %r; skipping render", target)
        return
    display.show(element, build_rows(diff_input, config))


def _to_row(line: DiffLine, marks: MoveMarks) -> RenderRow:
    text = escape_text(line.text)
    if line.kind == "hunk":
        return RenderRow(category="hunk", escaped_text=text)
    if line.kind == "ctx":
        return RenderRow(
            category="ctx",
            escaped_text=text,
            old_lineno=line.old_lineno,
            new_lineno=line.new_lineno,
        )

    match = marks.for_line(line)
    if line.kind == "add":
        if match is None:
            category: RowCategory = "add"
        else:
            category = "moved-add" if match.exact else "moved-add-edited"
        return RenderRow(category=category, escaped_text=text, new_lineno=line.new_lineno)

    if match is None:
        category = "del"
    else:
        category = "moved-del" if match.exact else "moved-del-edited"
    return RenderRow(category=category, escaped_text=text, old_lineno=line.old_lineno)
