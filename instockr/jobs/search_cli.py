"""CLI job that runs one store search and prints the result as JSON."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from instockr.core.config import get_settings
from instockr.core.geocoder import LocationNotFound
from instockr.pipeline.search import StoreSearch

logger = logging.getLogger(__name__)


def run_search_job(
    *,
    product_name: str,
    location: str,
    radius_m: Optional[int],
    ai_dedup: Optional[bool],
    include_online: bool,
) -> dict:
    if not product_name.strip():
        raise ValueError("Product name is empty")

    logger.info("Searching for %s near %s", product_name, location)
    outcome = StoreSearch(get_settings()).run(
        product_name,
        location,
        radius_m,
        ai_dedup=ai_dedup,
        include_online=include_online,
    )
    logger.info("Completed search: %d stores", len(outcome.stores))
    return outcome.to_dict()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Find stores near a location that may carry a product")
    parser.add_argument("--product", dest="product_name", required=True, help="Product to look for")
    parser.add_argument("--location", dest="location", required=True, help='Place name or "lat,lng"')
    parser.add_argument(
        "--radius",
        dest="radius_m",
        type=int,
        default=get_settings().search_radius_m,
        help="Search radius in meters",
    )
    parser.add_argument("--ai-dedup", dest="ai_dedup", action="store_true", default=None, help="Run LLM dedup")
    parser.add_argument(
        "--physical-only",
        dest="include_online",
        action="store_false",
        help="Drop online listings from the output",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        result = run_search_job(
            product_name=args.product_name,
            location=args.location,
            radius_m=args.radius_m,
            ai_dedup=args.ai_dedup,
            include_online=args.include_online,
        )
    except LocationNotFound as exc:
        logger.error("%s", exc)
        return 1

    json.dump(result, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
