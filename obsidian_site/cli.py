"""Command line entry point: ``obsidian-site -v VAULT -o OUTPUT``."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from obsidian_site.config import SiteConfig, load_config
from obsidian_site.core.models import FatalRunError, RunReport
from obsidian_site.core.pipeline import SitePipeline

EXIT_OK = 0
EXIT_ITEM_FAILURES = 1
EXIT_FATAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="obsidian-site",
        description="Convert an Obsidian vault into a static HTML site.",
    )
    parser.add_argument("-v", "--vault-path", type=Path, required=True,
                        help="Path to the Obsidian vault")
    parser.add_argument("-o", "--output-dir", type=Path, required=True,
                        help="Path to the output directory (created if absent)")
    parser.add_argument("-c", "--config", type=Path,
                        help="YAML configuration file")
    parser.add_argument("-j", "--jobs", type=int, dest="workers",
                        help="Number of documents rendered in parallel")
    parser.add_argument("--title", dest="site_title",
                        help="Site title (default: vault folder name)")
    parser.add_argument("--absolute-links", action="store_const", const="absolute",
                        dest="link_style", help="Use site-absolute hrefs")
    parser.add_argument("--base-url", help="URL prefix for absolute hrefs")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging verbosity (default: WARNING)")
    return parser


def print_report(report: RunReport) -> None:
    print(f"Built {len(report.succeeded)} items, {len(report.failed)} failed, "
          f"{len(report.warnings)} warnings.")
    for warning in report.warnings:
        print(f"Warning: {warning}")
    for failure in report.failed:
        print(f"Error: {failure}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else SiteConfig()
        config = config.with_overrides(
            workers=args.workers,
            site_title=args.site_title,
            link_style=args.link_style,
            base_url=args.base_url,
        )
        report = SitePipeline(args.vault_path, args.output_dir, config).run()
    except FatalRunError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FATAL

    print_report(report)
    return EXIT_OK if report.ok else EXIT_ITEM_FAILURES


if __name__ == "__main__":
    sys.exit(main())
