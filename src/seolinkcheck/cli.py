"""
Command-line interface for the link checker.
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from seolinkcheck.config import DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT, REPORTS_DIR, CheckSettings
from seolinkcheck.core import check_site
from seolinkcheck.errors import InvalidURLError
from seolinkcheck.models import CrawlStats
from seolinkcheck.report import links_to_json, open_report, write_html_report


def print_summary(stats: CrawlStats) -> None:
    """Print run summary to stderr."""
    sys.stderr.write("=" * 50 + "\n")
    sys.stderr.write("LINK CHECK SUMMARY\n")
    sys.stderr.write("=" * 50 + "\n\n")

    sys.stderr.write(f"Links discovered:       {stats.links_discovered}\n")
    sys.stderr.write(f"Links verified:         {stats.links_verified}\n")
    sys.stderr.write(f"Links with mismatches:  {stats.mismatched}\n")
    sys.stderr.write(f"Pages without title:    {stats.pages_without_title}\n\n")

    if stats.status_counts:
        sys.stderr.write("Responses by status:\n")
        for status_code, count in sorted(stats.status_counts.items(), reverse=True):
            sys.stderr.write(f"  HTTP {status_code}: {count}\n")
    if stats.network_errors or stats.render_errors or stats.other_failures:
        sys.stderr.write(f"Connection errors:      {stats.network_errors}\n")
        sys.stderr.write(f"Render errors:          {stats.render_errors}\n")
        sys.stderr.write(f"Other failures:         {stats.other_failures}\n")

    sys.stderr.write("\n")


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seolinkcheck",
        usage="%(prog)s [-u] <url> [options]",
        description=(
            "Check every same-domain link on a page (or feed) for status, "
            "canonical and title consistency between raw and rendered HTML."
        ),
    )
    parser.add_argument("start_url", nargs="?", help="URL to crawl (e.g. https://example.com)")
    parser.add_argument("-u", "--url", dest="url", help="URL to crawl")
    parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT,
        help=f"Static request timeout in seconds (default: {DEFAULT_TIMEOUT:g})",
    )
    parser.add_argument(
        "--concurrency", type=non_negative_int, default=DEFAULT_CONCURRENCY,
        help=f"Links verified at once, 0 for no limit (default: {DEFAULT_CONCURRENCY})",
    )
    parser.add_argument(
        "--out-dir", type=Path, default=REPORTS_DIR,
        help=f"Directory for the HTML report (default: {REPORTS_DIR})",
    )
    parser.add_argument("--json", dest="json_out", help="Also write JSON results to this path, or '-' for stdout")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON")
    parser.add_argument("--headed", action="store_true", help="Show the browser window while rendering")
    parser.add_argument("--no-open", action="store_true", help="Do not open the report when done")
    parser.add_argument("--verbose", action="store_true", help="Show progress and summary")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the link checker CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    seed_url = args.url or args.start_url
    if not seed_url:
        parser.error("a URL is required")

    configure_logging(args.verbose)

    settings = CheckSettings(
        timeout_s=args.timeout,
        concurrency=args.concurrency or None,
        headless=not args.headed,
        reports_dir=args.out_dir,
    )
    try:
        result = check_site(seed_url, settings)
    except InvalidURLError as e:
        sys.stderr.write(f"error: {e}\n")
        return 1

    if args.verbose:
        print_summary(result.stats)

    report_path = write_html_report(seed_url, result.links, settings.reports_dir)
    sys.stderr.write(f"HTML report generated: {report_path}\n")

    if args.json_out:
        json_text = links_to_json(result.links, pretty=args.pretty)
        if args.json_out == "-":
            print(json_text)
        else:
            output_path = Path(args.json_out)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(json_text, encoding="utf-8")
            if args.verbose:
                sys.stderr.write(f"Results written to: {output_path}\n")

    if not args.no_open:
        open_report(report_path)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
