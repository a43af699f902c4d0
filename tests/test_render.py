"""Tests for the parse/filter/detect/render pipeline."""

from __future__ import annotations

from html import unescape
from pathlib import Path

from diff_canvas.config import AppConfig, MoveConfig
from diff_canvas.display import HtmlCanvas
from diff_canvas.render import RenderRow, build_rows, render_diff

FIXTURE_DIR = Path(__file__).parent / "fixtures" / "diffs"

BLOCK = [
    "def total(items):",
    "    acc = 0",
    "    for item in items:",
    "        acc += item",
    "    return acc",
]


def _load_fixture(name: str) -> str:
    return (FIXTURE_DIR / name).read_text(encoding="utf-8")


def _split_hunks(rows: list[RenderRow]) -> list[list[RenderRow]]:
    hunks: list[list[RenderRow]] = []
    for row in rows:
        if row.category == "hunk":
            hunks.append([])
        else:
            hunks[-1].append(row)
    return hunks


def test_simple_diff_rows() -> None:
    rows = build_rows(_load_fixture("simple.diff"))
    assert [row.category for row in rows] == ["hunk", "ctx", "del", "add", "add", "ctx"]
    assert rows[2].escaped_text == 'console.log("old");'
    assert (rows[2].old_lineno, rows[2].new_lineno) == (2, None)
    assert (rows[3].old_lineno, rows[3].new_lineno) == (None, 2)
    assert (rows[5].old_lineno, rows[5].new_lineno) == (3, 4)


def test_text_is_html_escaped() -> None:
    rows = build_rows(_load_fixture("multi_hunk.diff"))
    added = [row for row in rows if row.category == "add"]
    assert added[-1].escaped_text == '        return f"&lt;b&gt;{self.label}&lt;/b&gt;"'
    assert all("<b>" not in row.escaped_text for row in rows)

    rows = build_rows(["+a && b"])
    assert rows[0].escaped_text == "a &amp;&amp; b"


def test_rows_reconstruct_both_sides_of_each_hunk() -> None:
    raw = _load_fixture("multi_hunk.diff").splitlines()
    expected_old: list[list[str]] = []
    expected_new: list[list[str]] = []
    for line in raw:
        if line.startswith(("--- ", "+++ ", "\\ ")):
            continue
        if line.startswith("@@"):
            expected_old.append([])
            expected_new.append([])
        elif line.startswith("-"):
            expected_old[-1].append(line[1:])
        elif line.startswith("+"):
            expected_new[-1].append(line[1:])
        else:
            expected_old[-1].append(line[1:])
            expected_new[-1].append(line[1:])

    hunks = _split_hunks(build_rows(raw))
    assert len(hunks) == 2
    for rows, old_side, new_side in zip(hunks, expected_old, expected_new):
        old_text = [unescape(r.escaped_text) for r in rows if r.category in ("ctx", "del")]
        new_text = [unescape(r.escaped_text) for r in rows if r.category in ("ctx", "add")]
        assert old_text == old_side
        assert new_text == new_side


def test_line_numbers_never_decrease_within_a_hunk() -> None:
    for rows in _split_hunks(build_rows(_load_fixture("multi_hunk.diff"))):
        old_numbers = [row.old_lineno for row in rows if row.old_lineno is not None]
        new_numbers = [row.new_lineno for row in rows if row.new_lineno is not None]
        assert old_numbers == sorted(old_numbers)
        assert new_numbers == sorted(new_numbers)


def test_pipeline_is_idempotent() -> None:
    diff_text = _load_fixture("multi_hunk.diff")
    assert build_rows(diff_text) == build_rows(diff_text)


def test_import_lines_never_become_rows() -> None:
    rows = build_rows(["-import foo from 'bar'", "+const x = 1;"])
    assert rows == [RenderRow(category="add", escaped_text="const x = 1;", new_lineno=0)]


def test_whitespace_only_change_renders_as_context() -> None:
    rows = build_rows(["-  const y = 2;", "+    const y = 2;"])
    assert [row.category for row in rows] == ["ctx"]
    assert rows[0].escaped_text.strip() == "const y = 2;"


def test_exact_move_categories() -> None:
    lines = ["@@ -1,205 +1,205 @@"]
    lines += [f"-{text}" for text in BLOCK]
    lines += [f" filler {idx}" for idx in range(200)]
    lines += [f"+{text}" for text in BLOCK]

    rows = build_rows(lines)
    categories = [row.category for row in rows]
    assert categories[1:6] == ["moved-del"] * 5
    assert categories[-5:] == ["moved-add"] * 5
    assert "add" not in categories
    assert "del" not in categories


def test_edited_move_categories() -> None:
    edited = list(BLOCK)
    edited[2] = "    for item in reversed(items):"
    lines = ["@@ -1,205 +1,205 @@"]
    lines += [f"-{text}" for text in BLOCK]
    lines += [f" filler {idx}" for idx in range(200)]
    lines += [f"+{text}" for text in edited]

    categories = [row.category for row in build_rows(lines)]
    assert categories[1:6] == [
        "moved-del",
        "moved-del",
        "moved-del-edited",
        "moved-del",
        "moved-del",
    ]
    assert categories[-5:] == [
        "moved-add",
        "moved-add",
        "moved-add-edited",
        "moved-add",
        "moved-add",
    ]


def test_move_detection_can_be_disabled() -> None:
    lines = [f"-{text}" for text in BLOCK] + [" keep"] + [f"+{text}" for text in BLOCK]
    config = AppConfig(moves=MoveConfig(enabled=False))
    categories = {row.category for row in build_rows(lines, config)}
    assert categories == {"del", "ctx", "add"}


def test_empty_input_yields_single_informational_row() -> None:
    for empty in ("", None, []):
        rows = build_rows(empty)
        assert rows == [RenderRow(category="empty", escaped_text="No diff data")]


def test_input_with_nothing_to_show_yields_informational_row() -> None:
    rows = build_rows(["--- a/x.py", "+++ b/x.py", "+import os"])
    assert [row.category for row in rows] == ["empty"]

    rows = build_rows("", AppConfig(empty_message="Nothing <here>"))
    assert rows[0].escaped_text == "Nothing &lt;here&gt;"


def test_render_diff_resolves_target_through_display() -> None:
    canvas = HtmlCanvas()
    placeholder = canvas.add(element_id="diff-app", diff_key="src/app.js")

    render_diff("diff-app", _load_fixture("simple.diff"), canvas)
    assert placeholder.content.startswith('<table class="diff-table">')
    assert 'class="diff-del"' in placeholder.content


def test_render_diff_with_empty_input_is_never_blank() -> None:
    canvas = HtmlCanvas()
    placeholder = canvas.add(element_id="diff-empty")
    render_diff(placeholder, "", canvas)
    assert "No diff data" in placeholder.content


def test_render_diff_unknown_target_is_a_no_op() -> None:
    canvas = HtmlCanvas()
    placeholder = canvas.add(element_id="known")
    render_diff("#missing", "+x", canvas)
    assert placeholder.content == ""
