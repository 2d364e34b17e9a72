"""Report renderer.

Renders repository results using Jinja2 templates (text and Markdown) or
plain JSON serialization.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from jinja2 import Environment, PackageLoader, select_autoescape

from vigil.models import Finding, RepositoryResult, Severity

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("text", "json", "markdown")

_TEMPLATES = {
    "text": "REPORT.txt.j2",
    "markdown": "REPORT.md.j2",
}

# Number of files listed in the complexity hot-spot table
TOP_COMPLEX_FILES = 10


def format_datetime(dt: datetime | str | None) -> str:
    """Format datetime for display in reports.

    Args:
        dt: Datetime object or ISO string

    Returns:
        Formatted date string
    """
    if dt is None:
        return "N/A"

    if isinstance(dt, str):
        try:
            dt = datetime.fromisoformat(dt)
        except ValueError:
            return dt

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)

    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


def severity_label(severity: Severity) -> str:
    """Upper-case severity label padded for column alignment."""
    return severity.value.upper().ljust(8)


class ReportRenderer:
    """Renders repository results for humans and machines.

    Usage:
        renderer = ReportRenderer()
        markdown = renderer.render(result, "markdown", title="my-repo")
    """

    def __init__(self) -> None:
        """Initialize the Jinja2 environment with package templates."""
        self._env = Environment(
            loader=PackageLoader("vigil", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

        self._env.filters["format_datetime"] = format_datetime
        self._env.filters["severity_label"] = severity_label

    def render(
        self,
        result: RepositoryResult,
        output_format: str = "text",
        title: str = "Repository",
    ) -> str:
        """Render a repository result.

        Args:
            result: Finalized repository result
            output_format: One of REPORT_FORMATS
            title: Heading for the report (usually the repository name)

        Returns:
            Rendered report

        Raises:
            ValueError: If the format is unknown or the template fails
        """
        if output_format == "json":
            payload = {"title": title, **result.to_dict()}
            return json.dumps(payload, indent=2, default=str) + "\n"

        template_name = _TEMPLATES.get(output_format)
        if template_name is None:
            raise ValueError(
                f"Unknown report format: {output_format}. Valid: {list(REPORT_FORMATS)}"
            )

        try:
            template = self._env.get_template(template_name)
        except Exception as e:
            logger.error("Failed to load template %s: %s", template_name, e)
            raise ValueError(f"Template not found: {template_name}") from e

        context = self._build_context(result, title)

        try:
            rendered = template.render(**context)
        except Exception as e:
            logger.error("Template rendering failed: %s", e)
            raise ValueError(f"Template rendering failed: {e}") from e

        logger.debug("Rendered %s report (%d characters)", output_format, len(rendered))
        return rendered

    def _build_context(self, result: RepositoryResult, title: str) -> dict[str, Any]:
        """Build the template rendering context."""
        by_file: dict[str, list[Finding]] = {}
        for finding in result.findings:
            by_file.setdefault(finding.location.path, []).append(finding)

        hot_spots = sorted(result.complexity.files, key=lambda e: (-e[1], e[0]))

        return {
            "title": title,
            "result": result,
            "summary": result.summary(),
            "tally": result.tally,
            "severities": sorted(Severity, reverse=True),
            "findings_by_file": sorted(by_file.items()),
            "hot_spots": hot_spots[:TOP_COMPLEX_FILES],
            "errors": result.errors,
        }
