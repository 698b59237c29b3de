"""Command-line interface for the report layout engine."""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .config import RenderConfig, load_config
from .errors import ReportGenerationError, ReportValidationError
from .models import ReportData
from .pdf_renderer import ReportRenderer
from .samples import build_sample_report
from .xlsx_writer import CONTENT_TYPES, SpreadsheetExporter, output_filename

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_GENERATION_FAILED = 1
EXIT_INVALID_PAYLOAD = 2


def envelope(status: str, message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Status envelope printed for every command."""
    result: Dict[str, Any] = {"status": status, "message": message}
    if data is not None:
        result["data"] = data
    return result


def emit(result: Dict[str, Any]) -> None:
    print(json.dumps(result, ensure_ascii=False))


def render_report(report: ReportData, fmt: str, config: RenderConfig) -> bytes:
    if fmt == "xlsx":
        return SpreadsheetExporter().export(report)
    return ReportRenderer(config).render(report)


def cmd_render(args: argparse.Namespace) -> int:
    try:
        config = load_config(args.config)
    except OSError as e:
        emit(envelope("error", f"Cannot read {args.config}: {e.strerror}"))
        return EXIT_INVALID_PAYLOAD
    except (yaml.YAMLError, TypeError, AttributeError) as e:
        emit(envelope("error", f"Invalid configuration {args.config}: {e}"))
        return EXIT_INVALID_PAYLOAD

    try:
        report = ReportData.from_json(Path(args.input).read_text(encoding="utf-8"))
    except OSError as e:
        emit(envelope("error", f"Cannot read {args.input}: {e.strerror}"))
        return EXIT_INVALID_PAYLOAD
    except ReportValidationError as e:
        emit(envelope("error", str(e)))
        return EXIT_INVALID_PAYLOAD

    try:
        content = render_report(report, args.format, config)
    except ReportGenerationError as e:
        emit(envelope("error", str(e)))
        return EXIT_GENERATION_FAILED

    out = args.out or Path(output_filename(report, args.format))
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(content)

    emit(envelope("success", "Report generated", {
        "path": str(out),
        "contentType": CONTENT_TYPES[args.format],
        "size": len(content),
    }))
    return EXIT_OK


def cmd_demo(args: argparse.Namespace) -> int:
    payload = build_sample_report(seed=args.seed, num_orders=args.rows)
    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    emit(envelope("success", "Sample payload written", {"path": str(args.out)}))
    return EXIT_OK


def cmd_health(args: argparse.Namespace) -> int:
    emit(envelope("success", "Service is running"))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="report-layout",
        description="Render JSON report descriptions to PDF or XLSX",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render", help="Render a report description")
    render.add_argument("input", type=Path, help="Path to the report JSON file")
    render.add_argument(
        "--out",
        type=Path,
        help="Output file (default: <reportType>.<format>)",
    )
    render.add_argument(
        "--format",
        choices=sorted(CONTENT_TYPES),
        default="pdf",
        help="Output format",
    )
    render.add_argument(
        "--config",
        type=Path,
        help="Path to YAML configuration file",
    )
    render.set_defaults(func=cmd_render)

    demo = subparsers.add_parser("demo", help="Write a sample report description")
    demo.add_argument("--seed", type=int, default=42, help="Random seed")
    demo.add_argument("--rows", type=int, default=5, help="Number of orders")
    demo.add_argument(
        "--out",
        type=Path,
        default=Path("sample_report.json"),
        help="Output JSON file",
    )
    demo.set_defaults(func=cmd_demo)

    health = subparsers.add_parser("health", help="Check that the renderer is available")
    health.set_defaults(func=cmd_health)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
