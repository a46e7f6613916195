"""
Seller Contact Harvester - command line entry point

Modes:
    scrape  Run (or resume) the seller loop in Chrome
    view    Print the collected records with Found / Not Found status
    export  Write the collected records to JSON, CSV or Excel
"""

import argparse
import logging
import os
import signal
import sys

from .browser import SeleniumPageProbe, create_driver
from .config import STORE_FILE, load_selectors
from .control import START, STOP, ControlChannel
from .engine import RunState, SellerIterationEngine
from .export import EXPORTERS, filter_records, format_table, summarize
from .store import ResumeStore

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Collect seller contact details from a category listing, with resume support',
        epilog='''
The scrape mode works on a category listing page. Either pass --url, or start
Chrome yourself with --remote-debugging-port=9222, open the listing, and pass
--debugger-address 127.0.0.1:9222 to reuse that session.

Progress is saved after every seller. Ctrl+C stops after the current seller;
running the same command again resumes with the next one.
        '''
    )
    parser.add_argument('--mode', choices=['scrape', 'view', 'export'], default='scrape',
                        help='What to do (default: scrape)')
    parser.add_argument('--url', type=str, default=None,
                        help='Category listing URL to open before scraping')
    parser.add_argument('--store', type=str, default=STORE_FILE,
                        help='Path of the JSON store holding records and the resume cursor')
    parser.add_argument('--selectors', type=str, default=None,
                        help='JSON file with selector overrides')
    parser.add_argument('--headless', action='store_true',
                        help='Run Chrome headless')
    parser.add_argument('--debugger-address', type=str, default=None,
                        help='Attach to a running Chrome (host:port) instead of launching one')
    parser.add_argument('--restart', action='store_true',
                        help='Start again from the first seller (keeps existing records)')
    parser.add_argument('--clear-data', action='store_true',
                        help='Delete all stored records and the resume cursor')
    parser.add_argument('--format', choices=sorted(EXPORTERS), default='csv',
                        help='Export format (default: csv)')
    parser.add_argument('--output', type=str, default=None,
                        help='Export file path (scrape mode exports here when finished)')
    parser.add_argument('--search', type=str, default=None,
                        help='Filter records in view mode by business name, email or seller id')
    parser.add_argument('--verbose', action='store_true',
                        help='Debug logging')
    return parser


def export_records(store: ResumeStore, fmt: str, output: str) -> str:
    records = store.load_records()
    if not output:
        output = f"seller-data.{fmt}"
    return EXPORTERS[fmt](records, output)


def view_records(store: ResumeStore, search: str = None):
    records = store.load_records()
    stats = summarize(records)
    shown = filter_records(records, search)

    print(f"Total sellers: {stats['total']} | Emails found: {stats['emails_found']}")
    category = store.get("categoryName")
    if category:
        print(f"Category: {category}")
    print("=" * 50)
    if not shown:
        print("No seller data yet." if not records else "No records match the search.")
        return
    print(format_table(shown))


def run_scrape(args, store: ResumeStore) -> int:
    selectors = load_selectors(args.selectors)
    driver = create_driver(headless=args.headless, debugger_address=args.debugger_address)

    try:
        if args.url:
            logger.info(f"Opening {args.url}")
            driver.get(args.url)

        probe = SeleniumPageProbe(driver, selectors)
        engine = SellerIterationEngine(probe, store)
        channel = ControlChannel(engine)

        def signal_handler(signum, frame):
            if engine.cancel_token.cancelled:
                logger.warning("Stop already requested - waiting for the current seller to finish")
                return
            logger.warning(f"\nInterrupt received (signal {signum}). Stopping after the current seller...")
            channel.send(STOP)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        channel.send(START)
        summary = channel.wait()
    finally:
        if args.debugger_address:
            # Leave the user's own browser open
            logger.info("Detaching from Chrome")
        else:
            driver.quit()
            logger.info("Selenium WebDriver closed")

    if summary is None:
        print("Automation did not run.")
        return 1

    print("\n" + "=" * 50)
    print(f"Run finished: {summary.state.value}")
    print(f"Sellers processed this run: {summary.processed} ({summary.found} with email)")
    print(f"Position: {summary.cursor}/{summary.total_sellers}")
    if summary.recovery_failures:
        print(f"Listing recoveries failed: {summary.recovery_failures}")
    if summary.state == RunState.ABORTED:
        print("Resume by running the same command again.")

    if args.output:
        path = export_records(store, args.format, args.output)
        print(f"Data exported to: {path}")

    return 1 if summary.state == RunState.FATAL else 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    store = ResumeStore(args.store)

    if args.clear_data:
        store.clear()
        print("Seller data cleared.")

    if args.mode == 'view':
        view_records(store, args.search)
        return 0

    if args.mode == 'export':
        path = export_records(store, args.format, args.output)
        print(f"Data exported to: {path}")
        return 0

    if args.restart:
        store.set_cursor(0)
        print("Starting again from the first seller.")

    print("Starting Seller Contact Harvester...")
    print(f"Store: {os.path.abspath(store.path)}")
    print("=" * 50)
    return run_scrape(args, store)


if __name__ == "__main__":
    sys.exit(main())
