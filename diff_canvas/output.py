"""Output rendering."""

from __future__ import annotations

import json
from collections import Counter
from datetime import UTC, datetime
from html import unescape
from typing import Any

import click

from diff_canvas import __version__
from diff_canvas.render import ROW_CATEGORIES, RenderRow

CATEGORY_COLORS: dict[str, str | None] = {
    "hunk": "cyan",
    "add": "green",
    "del": "red",
    "ctx": None,
    "moved-add": "blue",
    "moved-add-edited": "bright_blue",
    "moved-del": "magenta",
    "moved-del-edited": "bright_magenta",
    "empty": "bright_black",
}

TABLE_CSS = """\
.diff-table { border-collapse: collapse; width: 100%; font-family: monospace; font-size: 12px; }
.diff-table td { padding: 0 6px; white-space: pre; vertical-align: top; }
.diff-ln { color: #888; text-align: right; user-select: none; width: 1%; }
.diff-hunk { background: #f1f8ff; color: #57606a; }
.diff-add { background: #e6ffec; }
.diff-del { background: #ffebe9; }
.diff-moved-add { background: #ddf4ff; }
.diff-moved-add-edited { background: #ddf4ff; border-left: 3px solid #54aeff; }
.diff-moved-del { background: #fbefff; }
.diff-moved-del-edited { background: #fbefff; border-left: 3px solid #c297ff; }
.diff-empty { padding: 12px; color: #777; }
"""


def render_html_table(rows: list[RenderRow]) -> str:
    """Render rows as an HTML table; row text is already escaped."""
    if len(rows) == 1 and rows[0].category == "empty":
        return f'<div class="diff-empty">{rows[0].escaped_text}</div>'

    parts = ['<table class="diff-table"><tbody>']
    for row in rows:
        parts.append(
            f'<tr class="diff-{row.category}">'
            f'<td class="diff-ln">{_lineno(row.old_lineno)}</td>'
            f'<td class="diff-ln">{_lineno(row.new_lineno)}</td>'
            f'<td class="diff-code">{row.escaped_text}</td>'
            "</tr>"
        )
    parts.append("</tbody></table>")
    return "".join(parts)


def render_json(rows: list[RenderRow], *, source: str | None = None) -> str:
    """Render stable JSON output for automation."""
    return json.dumps(build_json_payload(rows, source=source), sort_keys=True)


def build_json_payload(rows: list[RenderRow], *, source: str | None = None) -> dict[str, Any]:
    counts = Counter(row.category for row in rows)
    return {
        "rows": [_serialize_row(row) for row in rows],
        "meta": {
            "generated_at": datetime.now(tz=UTC)
            .replace(microsecond=0)
            .isoformat()
            .replace("+00:00", "Z"),
            "source": source,
            "version": __version__,
            "counts": {category: counts[category] for category in ROW_CATEGORIES},
        },
    }


def render_human(rows: list[RenderRow]) -> str:
    """Render a compact colorized terminal view."""
    lines: list[str] = []
    for row in rows:
        text = unescape(row.escaped_text)
        if row.category in ("hunk", "empty"):
            lines.append(click.style(text, fg=CATEGORY_COLORS[row.category]))
            continue
        gutter = f"{_lineno(row.old_lineno):>5} {_lineno(row.new_lineno):>5} "
        marker = _MARKERS[row.category]
        lines.append(gutter + click.style(f"{marker} {text}", fg=CATEGORY_COLORS[row.category]))
    return "\n".join(lines)


_MARKERS = {
    "add": "+",
    "del": "-",
    "ctx": " ",
    "moved-add": ">",
    "moved-add-edited": "}",
    "moved-del": "<",
    "moved-del-edited": "{",
}


def _serialize_row(row: RenderRow) -> dict[str, Any]:
    return {
        "category": row.category,
        "old_lineno": row.old_lineno,
        "new_lineno": row.new_lineno,
        "text": row.escaped_text,
    }


def _lineno(value: int | None) -> str:
    return "" if value is None else str(value)
