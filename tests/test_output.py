"""Output rendering tests."""

from __future__ import annotations

import json

import click

from diff_canvas.output import render_html_table, render_human, render_json
from diff_canvas.render import RenderRow, build_rows

ROWS = [
    RenderRow(category="hunk", escaped_text="@@ -1,2 +1,2 @@"),
    RenderRow(category="del", escaped_text="a &lt; b", old_lineno=1),
    RenderRow(category="moved-add", escaped_text="moved()", new_lineno=1),
    RenderRow(category="ctx", escaped_text="same", old_lineno=2, new_lineno=2),
]


def test_render_html_table_rows() -> None:
    html = render_html_table(ROWS)
    assert html.startswith('<table class="diff-table"><tbody>')
    assert html.endswith("</tbody></table>")
    assert html.count("<tr ") == 4
    assert (
        '<tr class="diff-del"><td class="diff-ln">1</td><td class="diff-ln"></td>'
        '<td class="diff-code">a &lt; b</td></tr>'
    ) in html
    assert '<tr class="diff-moved-add">' in html


def test_render_html_table_empty_state() -> None:
    html = render_html_table(build_rows(""))
    assert html == '<div class="diff-empty">No diff data</div>'


def test_render_json_has_stable_schema_keys() -> None:
    payload = json.loads(render_json(ROWS, source="stdin"))
    assert set(payload.keys()) == {"rows", "meta"}
    assert set(payload["meta"].keys()) == {"generated_at", "source", "version", "counts"}
    assert payload["meta"]["source"] == "stdin"
    assert payload["meta"]["counts"]["moved-add"] == 1
    assert payload["meta"]["counts"]["add"] == 0
    assert payload["rows"][1] == {
        "category": "del",
        "old_lineno": 1,
        "new_lineno": None,
        "text": "a &lt; b",
    }


def test_render_human_unescapes_text_and_shows_line_numbers() -> None:
    output = click.unstyle(render_human(ROWS))
    lines = output.splitlines()
    assert lines[0] == "@@ -1,2 +1,2 @@"
    assert lines[1] == "    1       - a < b"
    assert lines[2] == "          1 > moved()"
    assert lines[3] == "    2     2   same"
