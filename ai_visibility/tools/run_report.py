import argparse
import asyncio
import json
import os
import sys
from typing import List, Optional

# Allow running this script directly from a checkout without installing it
sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
)

from ai_visibility.models.report import BusinessProfile
from ai_visibility.services.report_generator import (
    AIVisibilityService,
    GenerateReportParams,
)
from ai_visibility.services.report_sink import InMemoryReportSink, JsonFileReportSink
from ai_visibility.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate AI visibility reports for a local business."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Run a report")
    generate.add_argument("name", help="Business name")
    generate.add_argument("category", help="Business type, e.g. 'coffee shop'")
    generate.add_argument("location", help="City or neighbourhood")
    generate.add_argument(
        "--query",
        dest="queries",
        action="append",
        default=[],
        help="Custom query to run first (repeatable)",
    )
    generate.add_argument("--count", type=int, help="Number of queries to run")
    generate.add_argument(
        "--platform",
        dest="platforms",
        action="append",
        help="Restrict to a platform (chatgpt, claude, gemini, perplexity); repeatable",
    )
    generate.add_argument(
        "--previous-score", type=int, help="Overall score of the previous report"
    )
    generate.add_argument(
        "--disable-competitor",
        dest="disabled_competitors",
        action="append",
        default=[],
        help="Competitor name to flag as disabled (repeatable)",
    )
    generate.add_argument(
        "--output-dir", help="Write the report JSON into this directory"
    )

    subparsers.add_parser("health", help="Probe every configured platform")
    return parser


async def generate_report(args: argparse.Namespace) -> int:
    sink = (
        JsonFileReportSink(args.output_dir)
        if args.output_dir
        else InMemoryReportSink()
    )
    service = AIVisibilityService(sink=sink)
    params = GenerateReportParams(
        business=BusinessProfile(
            name=args.name,
            category=args.category,
            location=args.location,
            custom_queries=tuple(args.queries),
        ),
        query_count=args.count,
        platforms=args.platforms,
        previous_overall_score=args.previous_score,
        disabled_competitors=args.disabled_competitors,
    )

    report = await service.generate_monthly_report(params)
    print(report.model_dump_json(indent=2))
    return 0 if report.status.value == "completed" else 1


async def check_health() -> int:
    service = AIVisibilityService()
    status = await service.check_all_providers_health()
    print(json.dumps(status, indent=2))
    return 0 if any(s["available"] for s in status.values()) else 1


async def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        if args.command == "generate":
            return await generate_report(args)
        return await check_health()
    except Exception as e:
        logger.error(f"Command '{args.command}' failed: {e}", exc_info=True)
        return 1


def main(argv: Optional[List[str]] = None) -> None:
    configure_logging()
    sys.exit(asyncio.run(run(argv)))


if __name__ == "__main__":
    # python -m ai_visibility.tools.run_report generate "Espresso Elegance" "coffee shop" "Portland"
    main()
