#!/usr/bin/env python3
"""
Adds, lists and removes pantry ingredients, including products looked up by barcode.
"""

import argparse
import logging
import sys

from cooksmart_utils.ai import RecipeCacheManager
from cooksmart_utils.config import Settings
from cooksmart_utils.database import PantryStore, SQLiteKeyValueStore
from cooksmart_utils.errors import NetworkError
from cooksmart_utils.ingredients import Ingredient, ingredient_from_product
from cooksmart_utils.recipes import get_product_by_barcode

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def main():
    """Apply one pantry command."""
    parser = argparse.ArgumentParser(description="Manage pantry ingredients")
    parser.add_argument("--db-path", type=str, help="Path to the database file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Add an ingredient by name")
    add.add_argument("name", help="Ingredient name")
    add.add_argument("--category", default="", help="Ingredient category")

    scan = subparsers.add_parser("scan", help="Add a product by barcode")
    scan.add_argument("barcode", help="EAN/UPC barcode")

    subparsers.add_parser("list", help="List pantry ingredients")

    remove = subparsers.add_parser("remove", help="Remove an ingredient by id")
    remove.add_argument("id", help="Ingredient id")

    subparsers.add_parser("clear", help="Remove every ingredient")
    args = parser.parse_args()

    db_path = args.db_path or Settings().db_path
    pantry = PantryStore(db_path, cache=RecipeCacheManager(SQLiteKeyValueStore(db_path)))

    if args.command == "add":
        stored = pantry.add_ingredient(Ingredient(name=args.name, category=args.category))
        print(f"{stored.name} x{stored.count}")
    elif args.command == "scan":
        try:
            product = get_product_by_barcode(args.barcode)
        except NetworkError as e:
            logger.error(str(e))
            sys.exit(1)
        if product is None:
            print(f"No product found for barcode {args.barcode}")
            sys.exit(1)
        stored = pantry.add_ingredient(ingredient_from_product(product))
        print(f"{stored.name} ({stored.category}) x{stored.count}")
    elif args.command == "list":
        for ingredient in pantry.get_ingredients():
            print(f"{ingredient.id}  {ingredient.name}  x{ingredient.count}")
    elif args.command == "remove":
        if not pantry.remove_ingredient(args.id):
            print(f"No ingredient with id {args.id}")
            sys.exit(1)
    elif args.command == "clear":
        pantry.clear_ingredients()


if __name__ == "__main__":
    main()
