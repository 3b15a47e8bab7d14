"""
Tests for the report CLI.
"""

import json
from unittest.mock import AsyncMock

import pytest

from ai_visibility.services.platform_manager import PlatformManager
from ai_visibility.services.report_generator import AIVisibilityService
from ai_visibility.tools import run_report

ANSWER = "1. Espresso Elegance - excellent coffee.\n2. Heart Coffee"


@pytest.fixture
def patch_service(monkeypatch, empty_settings):
    def install(platforms):
        def factory(sink=None):
            return AIVisibilityService(
                platform_manager=PlatformManager(empty_settings, platforms=platforms),
                sink=sink,
                app_settings=empty_settings,
                sleep=AsyncMock(),
            )

        monkeypatch.setattr(run_report, "AIVisibilityService", factory)

    return install


class TestBuildParser:
    def test_generate_arguments(self):
        args = run_report.build_parser().parse_args(
            [
                "generate",
                "Espresso Elegance",
                "coffee shop",
                "Portland",
                "--query",
                "best latte in Portland",
                "--count",
                "3",
                "--platform",
                "chatgpt",
                "--platform",
                "claude",
                "--previous-score",
                "40",
                "--disable-competitor",
                "Heart Coffee",
            ]
        )

        assert args.command == "generate"
        assert args.name == "Espresso Elegance"
        assert args.queries == ["best latte in Portland"]
        assert args.count == 3
        assert args.platforms == ["chatgpt", "claude"]
        assert args.previous_score == 40
        assert args.disabled_competitors == ["Heart Coffee"]
        assert args.output_dir is None

    def test_command_required(self):
        with pytest.raises(SystemExit):
            run_report.build_parser().parse_args([])


class TestRun:
    @pytest.mark.asyncio
    async def test_generate_prints_completed_report(self, patch_service, make_platform, capsys):
        patch_service({"chatgpt": make_platform("chatgpt", ANSWER)})

        code = await run_report.run(
            ["generate", "Espresso Elegance", "coffee shop", "Portland", "--count", "2"]
        )

        assert code == 0
        assert '"status": "completed"' in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_generate_writes_output_dir(self, patch_service, make_platform, tmp_path):
        patch_service({"chatgpt": make_platform("chatgpt", ANSWER)})

        code = await run_report.run(
            [
                "generate",
                "Espresso Elegance",
                "coffee shop",
                "Portland",
                "--count",
                "1",
                "--output-dir",
                str(tmp_path),
            ]
        )

        assert code == 0
        (written,) = tmp_path.glob("*.json")
        report = json.loads(written.read_text(encoding="utf-8"))
        assert report["status"] == "completed"
        assert len(report["queries"]) == 1

    @pytest.mark.asyncio
    async def test_generate_without_platforms_returns_error_code(self, patch_service, capsys):
        patch_service({})

        code = await run_report.run(["generate", "Espresso Elegance", "coffee shop", "Portland"])

        assert code == 1
        assert '"status": "failed"' in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_health(self, patch_service, make_platform, capsys):
        patch_service({"chatgpt": make_platform("chatgpt", "Hi there")})

        code = await run_report.run(["health"])

        assert code == 0
        assert '"available": true' in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_unexpected_error_returns_error_code(self, monkeypatch):
        def broken(sink=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(run_report, "AIVisibilityService", broken)

        assert await run_report.run(["health"]) == 1
