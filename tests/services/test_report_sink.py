"""
Tests for report sinks.
"""

import json

import pytest

from ai_visibility.models.report import BusinessProfile, Report
from ai_visibility.services.report_sink import (
    InMemoryReportSink,
    JsonFileReportSink,
    ReportSink,
)


def make_report(name="Espresso Elegance", score=None):
    return Report(
        business=BusinessProfile(name=name, category="cafe", location="Portland"),
        overall_score=score,
    )


class TestInMemoryReportSink:
    @pytest.mark.asyncio
    async def test_save_and_lookup(self):
        sink = InMemoryReportSink()
        first = make_report(score=40)
        failed = make_report(score=None)
        other = make_report(name="Blue Bottle", score=90)

        for report in (first, failed, other):
            await sink.save(report)

        assert isinstance(sink, ReportSink)
        assert sink.get(first.id) is first
        assert sink.get("missing") is None
        assert sink.latest_for("Espresso Elegance") is first
        assert sink.latest_for("Nobody") is None


class TestJsonFileReportSink:
    @pytest.mark.asyncio
    async def test_writes_json(self, tmp_path):
        sink = JsonFileReportSink(tmp_path / "reports")
        report = make_report(score=75)

        await sink.save(report)

        path = tmp_path / "reports" / f"{report.id}.json"
        assert sink.saved[report.id] == path
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["overall_score"] == 75
        assert data["business"]["name"] == "Espresso Elegance"
        assert not list((tmp_path / "reports").glob("*.tmp"))
