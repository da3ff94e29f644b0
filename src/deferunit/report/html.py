"""HTML report sink using Jinja2 templates."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from deferunit.core.models import RunStatistics, TestResult
from deferunit.report.base import AdvancedResultSink

logger = logging.getLogger(__name__)


class HtmlReportSink(AdvancedResultSink):
    """Collects results and writes a static HTML report at the end of the run."""

    id = "html"

    def __init__(self, output_path: Path | str, title: str = "Test Results"):
        """Initialize the report sink.

        Args:
            output_path: File the report is written to
            title: Report title
        """
        super().__init__()
        self.output_path = Path(output_path)
        self.title = title
        self.results: list[TestResult] = []
        self.class_order: list[str] = []

        template_dir = Path(__file__).parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )
        self.env.filters["duration_format"] = self._format_duration
        self.env.filters["percentage"] = self._format_percentage

    def set_current_test_class(self, class_name: Optional[str]) -> None:
        if class_name is not None and class_name not in self.class_order:
            self.class_order.append(class_name)

    def add_pass(self, result: TestResult) -> None:
        self.results.append(result)

    def add_fail(self, result: TestResult) -> None:
        self.results.append(result)

    def add_error(self, result: TestResult) -> None:
        self.results.append(result)

    def add_ignore(self, result: TestResult) -> None:
        self.results.append(result)

    def report_final_statistics(self, total, passed, failed, errors, ignored, elapsed) -> None:
        statistics = RunStatistics(
            total=total,
            passed=passed,
            failed=failed,
            errors=errors,
            ignored=ignored,
            elapsed=elapsed,
        )
        self.generate(statistics)
        self.complete()

    def generate(self, statistics: RunStatistics) -> Path:
        """Render the report and write it to ``output_path``.

        Returns:
            Path to the generated report file
        """
        template = self.env.get_template("report.html")
        html_content = template.render(**self._prepare_context(statistics))

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.output_path.write_text(html_content, encoding="utf-8")
        logger.info("HTML report written to %s", self.output_path)
        return self.output_path

    def _prepare_context(self, statistics: RunStatistics) -> dict[str, Any]:
        classes: dict[str, list[dict]] = {name: [] for name in self.class_order}
        for result in self.results:
            classes.setdefault(result.class_name, []).append(result.to_dict())

        return {
            "title": self.title,
            "generated_at": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "stats": statistics.to_dict(),
            "pass_rate": statistics.pass_rate,
            "classes": classes,
        }

    @staticmethod
    def _format_duration(ms: int) -> str:
        """Format duration in milliseconds to human-readable string."""
        if ms < 1000:
            return f"{ms}ms"
        return f"{ms / 1000:.2f}s"

    @staticmethod
    def _format_percentage(value: float) -> str:
        return f"{value * 100:.1f}%"
