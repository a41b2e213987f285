#!/usr/bin/env python3
"""
Generate documentation from the command line.

Run:
    techdocs github https://github.com/owner/repo --name "My Project"
    techdocs local ./path/to/project --name "My Project" --email team@example.com

Requires: OPENAI_API_KEY in your .env file (and the MICROSOFT_* values plus
EMAIL_FROM when --email is given).
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Callable, List, Optional

from techdocs.config import Settings, configure_logging, get_settings
from techdocs.errors import TechDocsError
from techdocs.models import (
    AnalysisResult,
    DeliveryOptions,
    IngestionSource,
    LocalSource,
    ProjectInfo,
    RemoteSource,
)
from techdocs.pipeline.progress import CallbackObserver
from techdocs.service import TechDocsGenerator

logger = logging.getLogger(__name__)

TECHNICAL_SPEC_FILENAME = "technical-spec.md"
FUNCTIONAL_SPEC_FILENAME = "functional-spec.html"


def print_progress(label: str, percent: float) -> None:
    print(f"[{percent:3.0f}%] {label}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="techdocs",
        description="Generate technical and functional specifications for a codebase",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="source_type", required=True)

    github = subparsers.add_parser("github", help="Analyze a GitHub repository")
    github.add_argument("url", help="Repository URL (e.g., https://github.com/org/repo)")
    github.add_argument("--token", "-t", default=None, help="Personal access token for private repos")

    local = subparsers.add_parser("local", help="Analyze a local folder")
    local.add_argument("path", help="Path to the project folder")

    for sub in (github, local):
        sub.add_argument("--name", "-n", required=True, help="Project name")
        sub.add_argument("--description", "-d", default=None, help="Short project description")
        sub.add_argument("--email", "-e", default=None, help="Send both documents to this address")
        sub.add_argument("--output", "-o", default="output", help="Output directory")

    return parser


def source_from_args(args: argparse.Namespace) -> IngestionSource:
    if args.source_type == "github":
        return RemoteSource(url=args.url, token=args.token)
    return LocalSource(path=args.path)


def write_outputs(result: AnalysisResult, output_dir: str) -> List[Path]:
    """Write both documents into output_dir, creating it if needed."""
    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    technical = directory / TECHNICAL_SPEC_FILENAME
    functional = directory / FUNCTIONAL_SPEC_FILENAME
    technical.write_text(result.technical_spec, encoding="utf-8")
    functional.write_text(result.functional_spec, encoding="utf-8")
    return [technical, functional]


def print_summary(result: AnalysisResult, written: List[Path]) -> None:
    metadata = result.metadata
    print("")
    print("=" * 50)
    print("✅ Documentation generated!")
    print(f"   Files analyzed: {metadata.files_analyzed}")
    print(f"   Languages: {', '.join(metadata.code_languages) or 'none'}")
    print(f"   Frameworks: {', '.join(metadata.frameworks) or 'none'}")
    print(f"   Architecture: {metadata.architecture}")
    if metadata.delivery_requested:
        status = "sent" if metadata.delivery_succeeded else "failed"
        print(f"   Email: {status}")
    for path in written:
        print(f"   Wrote {path}")


async def run(args: argparse.Namespace, generator: TechDocsGenerator) -> bool:
    project = ProjectInfo(name=args.name, description=args.description)
    options = DeliveryOptions(send_email=bool(args.email), recipient=args.email)

    print(f"🔄 Generating documentation for {args.name}")
    print("")

    try:
        result = await generator.generate(
            source_from_args(args),
            project,
            options,
            CallbackObserver(print_progress),
        )
    except TechDocsError as e:
        print(f"❌ ERROR: {e}", file=sys.stderr)
        return False
    finally:
        await generator.close()

    written = write_outputs(result, args.output)
    print_summary(result, written)
    return True


def main(
    argv: Optional[List[str]] = None,
    generator_factory: Callable[[Settings], TechDocsGenerator] = TechDocsGenerator.from_settings,
) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    missing = settings.missing_required()
    if missing:
        logger.warning(f"Missing environment variables: {', '.join(missing)}")

    if args.email and not settings.email_configured():
        print("⚠️  Email is not configured; documents will only be written to disk", file=sys.stderr)

    try:
        generator = generator_factory(settings)
    except ValueError as e:
        print(f"❌ ERROR: {e}", file=sys.stderr)
        print("   Set OPENAI_API_KEY in your environment or .env file", file=sys.stderr)
        return 1

    success = asyncio.run(run(args, generator))
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
