"""
CLI entry point for group_stats. Wires the pipeline: fetch feeds -> normalize -> rank/densify -> report
"""

import argparse
import json
import logging
import os
import sys
import webbrowser
from datetime import datetime, timezone
from typing import Optional
from analytics.statistics import build_group_statistics
from analytics.utils import load_settings, load_preset
from ingest.stats_service import StatsServiceClient, GroupFeeds, fetch_group_feeds
from report.renderer import render
from storage.retry import configure_retry

FILE_FORMATS = ("html", "md", "csv", "json")


def _open_file_in_browser(path: str):
    """Open a file URL in the system default web browser."""
    webbrowser.open("file://" + os.path.abspath(path))


def _write_report_file(path_base: str, ext: str, content: str, open_html: bool = False) -> str:
    """Write the rendered content to a file and optionally open HTML in the browser."""
    out_path = path_base if path_base.lower().endswith(f".{ext}") else f"{path_base}.{ext}"
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    # newline='' is safe for CSV on Windows and harmless for other formats
    with open(out_path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(content)
    print(f"Wrote report to {out_path}")
    if open_html:
        try:
            _open_file_in_browser(out_path)
        except webbrowser.Error:
            print('Failed to open browser automatically; file saved at', out_path)
    return out_path


def write_output(fmt: str, rendered: str, args):
    """Write file formats to disk (default name when --out-file is empty); print the rest."""
    if fmt not in FILE_FORMATS:
        print(rendered)
        return
    base = args.out_file.strip() or f"group_stats_{args.group}_{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}"
    _write_report_file(base, fmt, rendered, open_html=(args.open and fmt == "html"))


def _load_json_file(path: str, description: str):
    """Load a JSON file and return the parsed object or None on failure."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        print(f"Failed to read {description} {path}: {e}")
        return None


def _resolve_settings(args, parser) -> dict:
    """Merge settings: YAML defaults, then the optional preset, then explicit CLI flags."""
    if args.preset:
        try:
            settings = load_preset(args.preset, args.settings or None)
        except ValueError as ex:
            parser.error(str(ex))
    else:
        settings = load_settings(args.settings or None)
    if args.base_url:
        settings['base_url'] = args.base_url
    if args.timeout is not None:
        settings['timeout'] = args.timeout
    if args.max_retries is not None:
        settings['max_retries'] = args.max_retries
    if args.output:
        settings['output'] = args.output
    return settings


def _resolve_token(args, parser):
    """Resolve the service token from the CLI flag or GROUPSTATS_TOKEN; required only for live fetches."""
    token = args.token or os.getenv('GROUPSTATS_TOKEN')
    if not token and not args.feeds_file:
        parser.error('Missing required token (CLI flag --token or env GROUPSTATS_TOKEN)')
    args.token = token


def load_feeds(args, settings) -> Optional[GroupFeeds]:
    """Load feeds from a snapshot file, or fetch them live from the statistics service."""
    if args.feeds_file:
        data = _load_json_file(args.feeds_file, 'feeds file')
        if data is None:
            return None
        return GroupFeeds.from_dict(data)
    client = StatsServiceClient(args.token, base_url=settings['base_url'], timeout=settings['timeout'], max_retries=settings['max_retries'])
    return fetch_group_feeds(client, args.group)


def run_pipeline(feeds: GroupFeeds, settings: dict, scope: str):
    """Build statistics from the feeds and render them; returns (fmt, rendered)."""
    stats = build_group_statistics(feeds.overview, feeds.distribution, feeds.weekly, feeds.dev_weekly, failed_feeds=feeds.failed)
    fmt = (settings.get('output') or 'text').lower()
    rendered = render(
        stats,
        fmt=fmt,
        generated_at=datetime.now(timezone.utc).isoformat(),
        scope=scope,
        saturation=settings['color_saturation'],
        lightness=settings['color_lightness'],
    )
    return fmt, rendered


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Group work statistics report")
    parser.add_argument("--group", type=str, required=True, help="Group id to report on")
    parser.add_argument("--base-url", type=str, default="", help="Statistics service base URL (overrides settings)")
    parser.add_argument("--token", type=str, default="", help="Service API token (or set GROUPSTATS_TOKEN env var)")
    parser.add_argument("--feeds-file", type=str, default="", help="Render from a JSON snapshot of the four feeds instead of fetching")
    parser.add_argument("--save-feeds", type=str, default="", help="Write the fetched feeds to this JSON file")
    parser.add_argument("--output", type=str, default="", help="Output format (text, md, csv, json, html)")
    parser.add_argument("--out-file", type=str, default="", help="Output file path (for HTML/MD/CSV/JSON). If omitted a default name will be used")
    parser.add_argument("--export-all", action="store_true", help="Write HTML, MD, CSV and JSON copies of the report")
    parser.add_argument("--open", action="store_true", help="Open the generated HTML report in the default browser")
    parser.add_argument("--settings", type=str, default="", help="Path to settings YAML (default: config/settings.yaml)")
    parser.add_argument("--preset", type=str, default="", help="Named preset from the settings YAML")
    parser.add_argument("--timeout", type=float, default=None, help="Per-request timeout in seconds")
    # retry/backoff knobs; GROUPSTATS_MAX_RETRIES, GROUPSTATS_BACKOFF_BASE, GROUPSTATS_BACKOFF_JITTER and
    # GROUPSTATS_MAX_BACKOFF set the defaults
    parser.add_argument("--max-retries", type=int, default=None, help="Maximum attempts per HTTP request")
    parser.add_argument("--backoff-base", type=float, default=None, help="Base backoff seconds")
    parser.add_argument("--backoff-jitter", type=float, default=None, help="Jitter seconds added to backoff")
    parser.add_argument("--max-backoff", type=float, default=None, help="Maximum backoff cap in seconds")
    parser.add_argument("--log-level", type=str, default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = _resolve_settings(args, parser)
    _resolve_token(args, parser)
    configure_retry(max_retries=args.max_retries, backoff_base=args.backoff_base, backoff_jitter=args.backoff_jitter, max_backoff=args.max_backoff)

    feeds = load_feeds(args, settings)
    if feeds is None:
        return 1
    if feeds.failed:
        print(f"Warning: unavailable feeds for group {args.group}: {', '.join(feeds.failed)}")

    if args.save_feeds:
        _write_report_file(args.save_feeds, 'json', json.dumps(feeds.as_dict(), indent=2))

    scope = f"group {args.group}"
    if args.export_all:
        base = args.out_file.strip() or f"group_stats_{args.group}_{datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%SZ')}"
        for ffmt in FILE_FORMATS:
            _, content = run_pipeline(feeds, dict(settings, output=ffmt), scope)
            _write_report_file(base, ffmt, content, open_html=(ffmt == 'html' and args.open))
        return 0

    fmt, rendered = run_pipeline(feeds, settings, scope)
    write_output(fmt, rendered, args)
    return 0


if __name__ == "__main__":
    sys.exit(main())
