#!/usr/bin/env python3
"""
Finds recipes for the pantry from the stored corpus, the web, or an AI model.
"""

import argparse
import json
import logging
import sys

from cooksmart_utils.config import Settings
from cooksmart_utils.discovery import DISCOVERY_MODES, DiscoveryOptions, build_orchestrator, build_pantry
from cooksmart_utils.errors import RecipeDiscoveryError

logger = logging.getLogger(__name__)


def print_recipe(rank, recipe):
    score = recipe.match_score if recipe.match_score is not None else recipe.confidence_score
    label = "match" if recipe.match_score is not None else "confidence"
    print(f"{rank:>2}. {recipe.title}  [{label} {score}%]  ({recipe.ready_in_minutes} min)")
    for item in recipe.ingredients:
        marker = "x" if item.in_pantry else " "
        amount = f"{item.amount:g} {item.unit}".strip() if item.amount else ""
        print(f"      [{marker}] {amount} {item.name}".rstrip())
    for number, step in enumerate(recipe.instructions, 1):
        print(f"      {number}. {step}")
    print()


def main():
    """Run one discovery mode and print the ranked recipes."""
    parser = argparse.ArgumentParser(description="Find recipes for your pantry")
    parser.add_argument(
        "--mode",
        choices=DISCOVERY_MODES,
        default="stored",
        help="Where to look for recipes",
    )
    parser.add_argument(
        "--ingredients",
        nargs="+",
        help="Ingredient names to use instead of the stored pantry",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Require most recipe ingredients to be in the pantry",
    )
    parser.add_argument("--max-results", type=int, help="Maximum web search results")
    parser.add_argument("--count", type=int, help="Number of AI recipes to generate")
    parser.add_argument("--db-path", type=str, help="Path to the database file")
    parser.add_argument("--json", action="store_true", help="Print recipes as JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    settings = Settings()
    if args.db_path:
        settings.db_path = args.db_path
    orchestrator = build_orchestrator(settings)

    pantry = args.ingredients or build_pantry(orchestrator).get_ingredients()
    options = DiscoveryOptions(
        strict=args.strict,
        max_results=args.max_results or settings.default_max_results,
        count=args.count or settings.default_recipe_count,
    )

    try:
        recipes = orchestrator.discover(pantry, args.mode, options)
    except RecipeDiscoveryError as e:
        logger.error(str(e))
        sys.exit(1)

    if args.json:
        print(json.dumps([recipe.to_dict() for recipe in recipes], indent=2))
        return

    if not recipes:
        print("No recipes found.")
        return
    for rank, recipe in enumerate(recipes, 1):
        print_recipe(rank, recipe)


if __name__ == "__main__":
    main()
