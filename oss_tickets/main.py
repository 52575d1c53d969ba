"""Command line entry point: run one export, or serve the HTTP API."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from oss_tickets.config import PortalSettings
from oss_tickets.errors import InvalidRequest
from oss_tickets.exporter import scrape_tickets
from oss_tickets.models import KNOWN_STATUS_LABELS, ScrapeRequest
from oss_tickets.notifier import WarningCollector, format_failure, send_notification

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OSS trouble ticket exporter")
    sub = parser.add_subparsers(dest="command", required=True)

    scrape = sub.add_parser("scrape", help="Export tickets once and print them as JSON")
    scrape.add_argument("--ticket-type", required=True, help="Exact 'Ticket Type' option, e.g. Complaint")
    scrape.add_argument("--start", required=True, help="Start date (YYYY-MM-DD)")
    scrape.add_argument("--end", required=True, help="End date (YYYY-MM-DD)")
    scrape.add_argument(
        "--radio",
        default="Current",
        help=f"Status filter, one of the portal's radio labels ({', '.join(KNOWN_STATUS_LABELS)})",
    )
    scrape.add_argument("--output", type=Path, help="Write JSON here instead of stdout")
    scrape.add_argument("--headed", action="store_true", help="Show the browser window")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    return parser


def run_scrape(args: argparse.Namespace) -> int:
    try:
        request = ScrapeRequest.from_params(args.ticket_type, args.start, args.end, args.radio)
    except InvalidRequest as e:
        logger.error(f"Invalid arguments: {e}")
        return 2

    collector = WarningCollector()
    logging.getLogger().addHandler(collector)
    try:
        settings = PortalSettings.from_env()
        if args.headed:
            settings = replace(settings, headless=False)
        records = scrape_tickets(request, settings)
    except Exception as e:
        subject, body = format_failure(e, collector.messages)
        send_notification(subject, body)
        logger.error(f"Export failed: {e}")
        return 1
    finally:
        logging.getLogger().removeHandler(collector)

    payload = json.dumps(records, indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(payload, encoding="utf-8")
        logger.info(f"Wrote {len(records)} records to {args.output}")
    else:
        print(payload)
    return 0


def run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("oss_tickets.api:app", host=args.host, port=args.port)
    return 0


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = _build_parser().parse_args(argv)
    if args.command == "serve":
        return run_serve(args)
    return run_scrape(args)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    sys.exit(main())
