#!/usr/bin/env python3
"""
atSpoke Graph Connector — Entry Point.

Collects users, teams, webhooks, requests and request types from atSpoke,
maps them into graph entities and relationships, saves the result as JSON and
optionally pushes it to Veza as an OAA custom application.

Usage:
    python run.py                    # Collect and save JSON (dry run)
    python run.py --push             # Collect and push to Veza
    python run.py --num-requests 50  # Also collect up to ~50 requests and request types
    python run.py --debug            # Verbose output
    python run.py --env /path        # Use alternate .env file
    python run.py --version          # Show version
"""

import argparse
import logging
import sys
from pathlib import Path

from core import AtSpokeOrchestrator

VERSION_FILE = Path(__file__).resolve().parent / "VERSION"
VERSION = VERSION_FILE.read_text().strip() if VERSION_FILE.exists() else "unknown"


def main():
    """Parse CLI arguments and run the collection pipeline."""
    parser = argparse.ArgumentParser(
        description="atSpoke Graph Connector - Collect atSpoke users, teams and webhooks"
    )
    parser.add_argument("--env", "-e", default="./.env", help="Path to .env file")
    parser.add_argument("--debug", action="store_true", help="Enable debug output")
    parser.add_argument("--dry-run", action="store_true", help="Generate JSON only (no push)")
    parser.add_argument("--push", action="store_true", help="Push to Veza")
    parser.add_argument(
        "--num-requests", type=int, help="Record cap for requests and request types (0 = skip)"
    )
    parser.add_argument("--version", "-v", action="store_true", help="Show version and exit")

    args = parser.parse_args()

    if args.version:
        print(f"atspoke-graph-connector {VERSION}")
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(name)s - %(levelname)s - %(message)s",
    )
    if args.debug:
        logging.getLogger("oaaclient").setLevel(logging.DEBUG)

    orchestrator = AtSpokeOrchestrator(env_file=args.env)

    if args.debug:
        orchestrator.debug = True
    if args.dry_run:
        orchestrator.dry_run = True
    if args.push:
        orchestrator.dry_run = False
    if args.num_requests is not None:
        orchestrator.num_requests = args.num_requests

    print(f"\n{'='*60}")
    print(f"ATSPOKE GRAPH CONNECTOR v{VERSION}")
    print("="*60)
    print(f"Mode: {'DRY RUN' if orchestrator.dry_run else 'LIVE PUSH'}")
    print(f"Requests cap: {orchestrator.num_requests or 'disabled'}")

    if not orchestrator.validate_config():
        sys.exit(1)

    deleted = orchestrator.output_manager.cleanup_old_folders()
    if deleted > 0:
        print(f"Cleaned up {deleted} old output folder(s)")

    results = orchestrator.run()
    orchestrator.print_summary(results)

    if not results.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
