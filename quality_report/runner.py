"""Report orchestration.

Usage:
    runner = ReportRunner(client, JsonReportDocument())
    ok = runner.create_report(["proj-a", "proj-b"], "report.json")

The document holds one summary page covering every project, then for each
project one page per report in REPORTS order. Any failure aborts the whole
run: nothing is saved and ``create_report`` returns False.
"""

import logging
import time
from typing import Callable, Iterable

from quality_report.aggregate import MissingSortKey
from quality_report.client import QueryFailure, SonarClient
from quality_report.project import Project
from quality_report.render import JsonReportDocument, RenderError
from quality_report.reports.issues import build_severity_summary

logger = logging.getLogger(__name__)

REPORTS: tuple[str, ...] = ("issues", "vulnerabilities", "hotspots", "duplications")

#: Reports whose page also carries per-severity and per-type counts
_COUNTED_REPORTS = ("issues", "vulnerabilities")


def wait_for_empty_queue(
    client: SonarClient,
    sleep_time: float = 10,
    max_tries: int = 6,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Poll the analysis queue until it is empty.

    Sleeps *sleep_time* seconds between polls and gives up after *max_tries*
    sleeps. Returns False instead of raising when the queue never empties.
    """
    tries = 0
    while not client.is_queue_empty():
        if tries >= max_tries:
            logger.error("Analysis queue still busy after %d checks", tries + 1)
            return False
        logger.info("Analysis queue busy, retrying in %ss", sleep_time)
        sleep(sleep_time)
        tries += 1
    return True


class ReportRunner:
    """Build the multi-project report document and save it."""

    def __init__(
        self,
        client: SonarClient,
        renderer: JsonReportDocument,
        sleep_time: float = 10,
        max_tries: int = 6,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.renderer = renderer
        self.sleep_time = sleep_time
        self.max_tries = max_tries
        self._sleep = sleep

    def create_report(self, projects: str | Iterable[str], output_path: str) -> bool:
        logger.info("Starting to create report")
        if isinstance(projects, str):
            projects = [projects]

        data = {key: Project(self.client, key) for key in projects}

        logger.info("Checking project analysis queue")
        try:
            ready = wait_for_empty_queue(
                self.client, self.sleep_time, self.max_tries, self._sleep
            )
        except QueryFailure as exc:
            logger.error("Unable to check the analysis queue: %s", exc)
            return False
        if not ready:
            logger.error("Project analysis queue is not empty")
            return False

        try:
            self._build(data)
        except (QueryFailure, MissingSortKey, RenderError) as exc:
            logger.error("Report generation failed: %s", exc)
            return False

        logger.info("Saving report to '%s'", output_path)
        return self.renderer.save_as(output_path)

    def _build(self, data: dict[str, Project]) -> None:
        logger.info("Creating summary for %s", ", ".join(data))
        summary_page = self.renderer.render("summary", {
            "summary": {key: project.get_summary() for key, project in data.items()},
        })
        self.renderer.add_page(summary_page)

        for project in data.values():
            logger.info("Starting on the report - %s", project.name)
            options = {"header-left": project.name}
            summary = project.get_summary()
            items = project.get_items()
            for report in REPORTS:
                logger.info("Building report %s", report)
                context = {
                    "title":   "",
                    "items":   items[report],
                    "summary": summary,
                }
                if report in _COUNTED_REPORTS:
                    context["counts"] = build_severity_summary(items[report])
                page = self.renderer.render(report, context)
                self.renderer.add_page(page, options)
