"""Result sinks."""

from deferunit.report.base import AdvancedResultSink, ResultSink
from deferunit.report.collector import CollectingSink
from deferunit.report.console import ConsoleSink
from deferunit.report.html import HtmlReportSink

__all__ = [
    "ResultSink",
    "AdvancedResultSink",
    "CollectingSink",
    "ConsoleSink",
    "HtmlReportSink",
]
