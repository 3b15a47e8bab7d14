"""
Destinations for finished reports.

Storage is owned by the caller; the report engine only needs something with
an ``async save(report)`` method.
"""

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Union, runtime_checkable

from ai_visibility.models.report import Report
from ai_visibility.utils.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class ReportSink(Protocol):
    async def save(self, report: Report) -> None:
        ...


class InMemoryReportSink:
    """Keeps saved reports in a list; used by tests and the CLI."""

    def __init__(self) -> None:
        self.reports: List[Report] = []

    async def save(self, report: Report) -> None:
        self.reports.append(report)

    def get(self, report_id: str) -> Optional[Report]:
        for report in self.reports:
            if report.id == report_id:
                return report
        return None

    def latest_for(self, business_name: str) -> Optional[Report]:
        """Most recently saved completed report for a business."""
        for report in reversed(self.reports):
            if report.business.name == business_name and report.overall_score is not None:
                return report
        return None


class JsonFileReportSink:
    """Writes each report to ``<directory>/<report id>.json``."""

    def __init__(self, directory: Union[str, Path], indent: int = 2):
        self.directory = Path(directory)
        self.indent = indent
        self.saved: Dict[str, Path] = {}

    async def save(self, report: Report) -> None:
        path = self.directory / f"{report.id}.json"
        payload = report.model_dump_json(indent=self.indent)
        await asyncio.to_thread(self._write, path, payload)
        self.saved[report.id] = path
        logger.info("Report written", report_id=report.id, path=str(path))

    def _write(self, path: Path, payload: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        tmp_path.replace(path)
