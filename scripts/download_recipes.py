#!/usr/bin/env python3
"""
Bulk-downloads recipes from the configured recipe APIs into the local SQLite corpus.
"""

import argparse
import logging
import sys

from cooksmart_utils.config import Settings
from cooksmart_utils.discovery import DownloadOptions, build_orchestrator
from cooksmart_utils.errors import RecipeDiscoveryError

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def log_progress(progress):
    if progress.status in ("processing", "saving", "complete", "error"):
        logger.info(f"[{progress.status}] {progress.message}")


def main():
    """Download recipes and report the corpus size."""
    parser = argparse.ArgumentParser(description="Download recipes into the local database")
    parser.add_argument(
        "--max-recipes",
        type=int,
        default=1000,
        help="Maximum number of recipes to store",
    )
    parser.add_argument(
        "--categories",
        nargs="+",
        default=[],
        help="Search terms to download (defaults to a built-in category list)",
    )
    parser.add_argument("--cuisine", type=str, help="Restrict downloads to one cuisine")
    parser.add_argument("--diet", type=str, help="Restrict downloads to one diet")
    parser.add_argument(
        "--clear-existing",
        action="store_true",
        help="Delete stored recipes before downloading",
    )
    parser.add_argument("--db-path", type=str, help="Path to the database file")
    args = parser.parse_args()

    settings = Settings()
    if args.db_path:
        settings.db_path = args.db_path
    orchestrator = build_orchestrator(settings)

    options = DownloadOptions(
        max_recipes=args.max_recipes,
        categories=args.categories,
        cuisines=[args.cuisine] if args.cuisine else [],
        diets=[args.diet] if args.diet else [],
        clear_existing=args.clear_existing,
        on_progress=log_progress,
    )
    try:
        orchestrator.download_recipes(options)
    except RecipeDiscoveryError as e:
        logger.error(str(e))
        sys.exit(1)

    status = orchestrator.get_download_status()
    print(f"Database now holds {status['recipe_count']} recipes")


if __name__ == "__main__":
    main()
