"""
Command line entry point for fetching Business Profile listing data as JSON
"""

import sys
import json
import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config_loader import ConfigLoader, ConfigurationError, EnvironmentError
from .endpoints import ListingFetcher, LegacyEndpointDisabled
from .http_client import RequestError
from .pagination_strategy import PaginationLimitExceeded

DEFAULT_CONFIG_PATH = Path('config') / 'google_business_profile.toml'

EXIT_OK = 0
EXIT_REQUEST_FAILED = 1
EXIT_CONFIG_ERROR = 2

logger = logging.getLogger("listing_fetcher")


def configure_logging(logging_config: Dict[str, Any]) -> None:
    """
    Configure root logging with a log file and a console stream

    Args:
        logging_config: Contents of the [logging] section
    """
    log_dir = Path(logging_config.get('log_dir', 'logs'))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / logging_config.get('log_file_name', 'listing_fetcher.log')

    logging.basicConfig(
        level=getattr(logging, str(logging_config.get('level', 'INFO')).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='listing-fetcher',
        description="Retrieve accounts, locations and related data from the Google Business Profile APIs"
    )
    parser.add_argument("--config", "-c", type=Path, default=DEFAULT_CONFIG_PATH,
                        help=f"TOML configuration file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--output", "-o", type=Path, default=None,
                        help="Write JSON to this file instead of stdout")

    subparsers = parser.add_subparsers(dest="command", required=True)

    accounts = subparsers.add_parser("accounts", help="List accounts")
    accounts.add_argument("--parent-account", default='',
                          help="Only list accounts under this parent account name")

    locations = subparsers.add_parser("locations", help="List locations of an account")
    locations.add_argument("--account", required=True, help="Account name, e.g. accounts/123")

    subparsers.add_parser("categories", help="List all categories for the configured region")
    subparsers.add_parser("attributes", help="List all attribute metadata for the configured region")

    search = subparsers.add_parser("search-locations", help="Search Google locations")
    search.add_argument("--query", required=True)

    insights = subparsers.add_parser("insights", help="Report insights for up to 10 locations (legacy)")
    insights.add_argument("--account", required=True)
    insights.add_argument("--locations", nargs="+", required=True,
                          help="Location names, e.g. locations/456")
    insights.add_argument("--start", required=True, help="Start time, RFC 3339")
    insights.add_argument("--end", required=True, help="End time, RFC 3339")

    for name, help_text in (
        ("location-attributes", "Get attributes set on a location"),
        ("google-updated", "Get the Google-updated version of a location"),
        ("place-action-links", "List place action links of a location"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--location", required=True)

    chains = subparsers.add_parser("chains", help="Search chains by name")
    chains.add_argument("--name", required=True)

    for name, help_text in (
        ("local-posts", "List local posts of a location (legacy)"),
        ("reviews", "List reviews of a location (legacy)"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--account", required=True)
        sub.add_argument("--location", required=True)

    return parser


def run_command(fetcher: ListingFetcher, args: argparse.Namespace) -> Any:
    """Dispatch the parsed command to the matching fetcher operation"""
    command = args.command

    if command == "accounts":
        return fetcher.get_accounts(args.parent_account)
    if command == "locations":
        return fetcher.get_locations(args.account)
    if command == "categories":
        return fetcher.search_all_categories()
    if command == "attributes":
        return fetcher.search_all_attributes()
    if command == "search-locations":
        return fetcher.search_locations(args.query)
    if command == "insights":
        return fetcher.get_insights(args.account, args.locations, args.start, args.end)
    if command == "location-attributes":
        return fetcher.get_attributes(args.location)
    if command == "google-updated":
        return fetcher.get_google_updated(args.location)
    if command == "place-action-links":
        return fetcher.get_place_action_links(args.location)
    if command == "chains":
        return fetcher.search_chains(args.name)
    if command == "local-posts":
        return fetcher.get_local_posts(args.account, args.location)
    if command == "reviews":
        return fetcher.get_reviews(args.account, args.location)

    raise ValueError(f"Unknown command: {command}")


def write_result(result: Any, output: Optional[Path]) -> None:
    text = json.dumps(result, ensure_ascii=False, indent=2)
    if output is None:
        sys.stdout.write(text + "\n")
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, 'w', encoding='utf-8') as f:
        f.write(text + "\n")
    logger.info(f"Wrote result to {output}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to fetch one resource and emit it as JSON."""
    args = build_parser().parse_args(argv)

    try:
        config = ConfigLoader.load_toml_config(args.config)
        configure_logging(config.logging)
        fetcher = ListingFetcher.from_config(config)
    except (FileNotFoundError, ConfigurationError, EnvironmentError) as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR

    try:
        result = run_command(fetcher, args)
    except (RequestError, PaginationLimitExceeded, LegacyEndpointDisabled) as e:
        logger.error(f"Command '{args.command}' failed: {e}")
        return EXIT_REQUEST_FAILED
    except EnvironmentError as e:
        # Token variable removed after start-up
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG_ERROR
    finally:
        fetcher.close()

    write_result(result, args.output)
    return EXIT_OK
