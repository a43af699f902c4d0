"""In-memory HTML display layer for rendered diff rows."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from html import escape
from typing import Any

from diff_canvas.output import TABLE_CSS, render_html_table
from diff_canvas.render import RenderRow

_ATTRIBUTE_SELECTOR_RE = re.compile(
    r"""^\[data-diff(?:=(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\]"']+)))?\]$"""
)


@dataclass(slots=True)
class Placeholder:
    """A page element that receives a rendered diff."""

    element_id: str | None = None
    diff_key: str | None = None
    label: str | None = None
    content: str = ""

    def to_html(self) -> str:
        heading = f'<h3 class="diff-file">{escape(self.label)}</h3>\n' if self.label else ""
        attrs = ['class="diff-placeholder"']
        if self.element_id is not None:
            attrs.append(f'id="{escape(self.element_id)}"')
        if self.diff_key is not None:
            attrs.append(f'data-diff="{escape(self.diff_key)}"')
        return f"{heading}<div {' '.join(attrs)}>{self.content}</div>"


@dataclass(slots=True)
class HtmlCanvas:
    """Ordered set of placeholders that can be rendered into one HTML page.

    String targets resolve by element id first, then as a selector:
    ``#id``, ``[data-diff="key"]`` or ``[data-diff]`` (first match).
    """

    placeholders: list[Placeholder] = field(default_factory=list)

    def add(
        self,
        element_id: str | None = None,
        diff_key: str | None = None,
        label: str | None = None,
    ) -> Placeholder:
        placeholder = Placeholder(element_id=element_id, diff_key=diff_key, label=label)
        self.placeholders.append(placeholder)
        return placeholder

    def keyed_placeholders(self) -> list[Placeholder]:
        return [item for item in self.placeholders if item.diff_key]

    def resolve(self, target: Any) -> Placeholder | None:
        if isinstance(target, Placeholder):
            return target if any(item is target for item in self.placeholders) else None
        if not isinstance(target, str):
            return None
        by_id = self._find(lambda item: item.element_id == target)
        if by_id is not None:
            return by_id
        return self._select(target)

    def show(self, element: Placeholder, rows: list[RenderRow]) -> None:
        element.content = render_html_table(rows)

    def to_html(self, title: str = "Diff review") -> str:
        body = "\n".join(item.to_html() for item in self.placeholders)
        return "\n".join(
            [
                "<!DOCTYPE html>",
                "<html>",
                "<head>",
                '<meta charset="utf-8">',
                f"<title>{escape(title)}</title>",
                f"<style>\n{TABLE_CSS}</style>",
                "</head>",
                "<body>",
                body,
                "</body>",
                "</html>",
                "",
            ]
        )

    def _select(self, selector: str) -> Placeholder | None:
        selector = selector.strip()
        if selector.startswith("#"):
            element_id = selector[1:]
            return self._find(lambda item: item.element_id == element_id)

        match = _ATTRIBUTE_SELECTOR_RE.match(selector)
        if match is None:
            return None
        key = next(
            (value for value in match.group("dq", "sq", "bare") if value is not None), None
        )
        if key is None:
            return self._find(lambda item: item.diff_key is not None)
        return self._find(lambda item: item.diff_key == key.strip())

    def _find(self, predicate: Any) -> Placeholder | None:
        for item in self.placeholders:
            if predicate(item):
                return item
        return None
