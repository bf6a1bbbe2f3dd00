"""Report document assembly.

A renderer turns a named template plus its context into a page, collects the
pages in order and persists them as a single artifact:

    document = JsonReportDocument(pretty=True)
    page = document.render("summary", {"summary": [...]})
    document.add_page(page, {"header-left": "My project"})
    document.save_as("report.json")

``JsonReportDocument`` keeps each page as plain data so any downstream
templating tool can lay it out.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TEMPLATES = ("summary", "issues", "vulnerabilities", "hotspots", "duplications")


class RenderError(Exception):
    """Raised when a page cannot be rendered."""


class JsonReportDocument:
    """Ordered list of rendered pages, saved as one JSON file."""

    def __init__(self, pretty: bool = False) -> None:
        self.pretty = pretty
        self.pages: list[dict] = []

    def render(self, template: str, context: dict[str, Any]) -> dict:
        if template not in TEMPLATES:
            raise RenderError(
                f"Unknown template '{template}'. Available: {', '.join(TEMPLATES)}"
            )
        return {"template": template, "context": context}

    def add_page(self, page: dict, options: dict[str, Any] | None = None) -> None:
        self.pages.append({**page, "options": dict(options or {})})

    def to_dict(self) -> dict:
        return {
            "report_type":  "quality_report",
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "pages":        self.pages,
        }

    def to_json(self) -> str:
        indent = 2 if self.pretty else None
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save_as(self, path: str) -> bool:
        """Write the document to *path*; False (and an error log) on failure."""
        try:
            Path(path).write_text(self.to_json(), encoding="utf-8")
        except OSError as exc:
            logger.error("Unable to write report to '%s': %s", path, exc)
            return False
        return True
