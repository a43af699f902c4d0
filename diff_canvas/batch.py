"""Batch rendering of keyed diff payloads into registered targets."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from diff_canvas.config import AppConfig
from diff_canvas.display import HtmlCanvas
from diff_canvas.render import DiffDisplay, render_diff

logger = logging.getLogger(__name__)


def load_diff_payload(text: str | None) -> dict[str, Any] | None:
    """Decode a keyed diff payload; return None when missing or invalid."""
    if not text or not text.strip():
        logger.warning("Diff payload is missing or empty; nothing to render")
        return None
    try:
        loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse diff payload JSON: %s", exc)
        return None
    if not isinstance(loaded, dict):
        logger.warning(
            "Diff payload must be a JSON object, got %s; nothing to render",
            type(loaded).__name__,
        )
        return None
    return loaded


class BatchOrchestrator:
    """Render each registered (target, key) pair whose key is in the payload.

    Placeholders whose key is absent from the payload are left untouched. A
    target registered more than once is rendered only the first time.
    """

    def __init__(
        self,
        placeholders: Iterable[tuple[Any, str]],
        payload: str | Mapping[str, Any] | None,
        display: DiffDisplay,
        config: AppConfig | None = None,
    ) -> None:
        self.placeholders = list(placeholders)
        self.display = display
        self.config = config
        if payload is None or isinstance(payload, str):
            self.payload = load_diff_payload(payload)
        else:
            self.payload = dict(payload)

    @classmethod
    def from_canvas(
        cls,
        canvas: HtmlCanvas,
        payload: str | Mapping[str, Any] | None,
        config: AppConfig | None = None,
    ) -> BatchOrchestrator:
        """Register every canvas placeholder that carries a diff key."""
        pairs = [(item, item.diff_key) for item in canvas.keyed_placeholders()]
        return cls(pairs, payload, canvas, config=config)

    def run(self) -> int:
        """Render all matching placeholders and return the render count."""
        if self.payload is None:
            return 0

        rendered_ids: set[int] = set()
        rendered = 0
        for target, key in self.placeholders:
            if key not in self.payload:
                logger.debug("No diff for key %r; leaving target untouched", key)
                continue
            element = self.display.resolve(target)
            if element is None:
                logger.debug("No display element for target %r; skipping", target)
                continue
            if id(element) in rendered_ids:
                logger.debug("Target %r already rendered; skipping duplicate", target)
                continue
            rendered_ids.add(id(element))
            render_diff(element, self.payload[key], self.display, self.config)
            rendered += 1
        return rendered
