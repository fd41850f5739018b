#!/usr/bin/env python3
"""Fetch aggregated insect observations and write them to CSV.

Database credentials are read from NORIMON_DB_USER / NORIMON_DB_PASSWORD
(and optionally NORIMON_DB_HOST, NORIMON_DB_PORT, NORIMON_DB_NAME).

Usage:
    # Beetle diversity per locality and year:
    uv run python scripts/fetch_observations.py --orders Coleoptera -o beetles.csv

    # Regional summaries for Malaise traps in 2021-2022:
    uv run python scripts/fetch_observations.py --agg-level region_habitat_year \
        --trap-type MF --years 2021 2022 -o regions.csv

    # Peek at the first 100 joined rows:
    uv run python scripts/fetch_observations.py --limit 100
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pydantic import ValidationError

from norimon.data import (
    AggLevel,
    DatabaseConfig,
    DatabaseConnectionError,
    Dataset,
    ObservationQuery,
    TrapType,
    database_session,
    obs_from_db,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("norimon")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Fetch insect observations from the monitoring database",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--dataset", default=Dataset.NASINS.value,
        choices=[d.value for d in Dataset],
        help="Monitoring project (default: NasIns)",
    )
    parser.add_argument(
        "--agg-level", default=AggLevel.YEAR_LOCALITY.value,
        choices=[a.value for a in AggLevel],
        help="Aggregation level (default: year_locality)",
    )
    parser.add_argument(
        "--trap-type", default=TrapType.ALL.value,
        choices=[t.value for t in TrapType],
        help="Trap type filter (default: All)",
    )
    parser.add_argument("--orders", nargs="+", help="Keep only these orders")
    parser.add_argument("--families", nargs="+", help="Keep only these families")
    parser.add_argument("--genus", nargs="+", help="Keep only these genera")
    parser.add_argument("--species", nargs="+", help="Keep only these species")
    parser.add_argument("--years", nargs="+", type=int, help="Keep only these years")
    parser.add_argument("--regions", nargs="+", help="Keep only these regions")
    parser.add_argument(
        "--limit", type=int, default=None,
        help="Return the first N joined rows without aggregating",
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=Path("observations.csv"),
        help="Output CSV path (default: observations.csv)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Run the query and write the CSV."""
    args = parse_args(argv)

    try:
        query = ObservationQuery(
            dataset=args.dataset,
            agg_level=args.agg_level,
            trap_type=args.trap_type,
            subset_orders=args.orders,
            subset_families=args.families,
            subset_genus=args.genus,
            subset_species=args.species,
            subset_year=args.years,
            subset_region=args.regions,
            limit=args.limit,
        )
        config = DatabaseConfig.from_env()
    except (ValidationError, ValueError) as exc:
        logger.error("Invalid options: %s", exc)
        return 2

    try:
        with database_session(config) as engine:
            frame = obs_from_db(engine, query)
    except DatabaseConnectionError as exc:
        logger.error("%s", exc)
        return 1

    args.output.parent.mkdir(parents=True, exist_ok=True)
    frame.to_csv(args.output, index=False)
    logger.info("Wrote %d rows to %s", len(frame), args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
