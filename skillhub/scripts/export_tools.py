"""Export all integration tools to XML or JSON.

Usage:
    skillhub-export-tools [--output PATH] [--filter all|system|user] [--format xml|json]
"""

import argparse
import logging
import sys
from typing import IO, List, Optional

from pydantic import ValidationError

from ..config import get_settings
from ..integrations.catalog import build_default_registry
from ..integrations.export import FORMATS, CatalogExporter, count_tools
from ..integrations.registry import CATEGORIES, IntegrationRegistry
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="skillhub-export-tools",
        description="Export all integration tools to XML format",
    )
    parser.add_argument("-o", "--output", help="Output file path (default: stdout)")
    # Validated in main() so an invalid value yields our message and exit code
    parser.add_argument("-f", "--filter", default="all", help="Filter by category: system, user, or all")
    parser.add_argument("--format", default="xml", choices=FORMATS, help="Document format (default: xml)")
    return parser


def main(
    argv: Optional[List[str]] = None,
    registry: Optional[IntegrationRegistry] = None,
    stdout: Optional[IO[str]] = None,
    stderr: Optional[IO[str]] = None
) -> int:
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    args = build_parser().parse_args(argv)

    if args.filter not in CATEGORIES:
        print(f"[ERROR] Invalid filter option. Use: {', '.join(CATEGORIES)}", file=stderr)
        return 1

    if registry is None:
        try:
            settings = get_settings()
            logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO), stream=stderr)
            registry = build_default_registry(settings)
        except (ValidationError, ConfigurationError) as e:
            print(f"[ERROR] Failed to export tools: {e}", file=stderr)
            return 1

    integrations = registry.select(args.filter)
    if not integrations:
        print("[WARNING] No integrations found", file=stderr)
        return 0

    exporter = CatalogExporter()
    try:
        if args.output:
            exporter.write(integrations, args.output, args.format)
            print(f"[OK] Tools exported to: {args.output}", file=stderr)
        else:
            exporter.write(integrations, stdout, args.format)
    except OSError as e:
        print(f"[ERROR] Failed to export tools: {e}", file=stderr)
        return 1

    print("Export Statistics", file=stderr)
    print(f"  Integrations: {len(integrations)}", file=stderr)
    print(f"  Total Tools:  {count_tools(integrations)}", file=stderr)
    return 0


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
