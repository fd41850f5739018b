"""Fetch insect observations and aggregate them into diversity summaries.

The database side only filters and joins; the diversity indices are
computed in pandas after the rows are fetched.

Usage:
    from norimon.data import obs_from_db

    beetles = obs_from_db(engine, subset_orders="Coleoptera", agg_level="region_habitat_year")
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd
from sqlalchemy import and_, column, or_, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.sql import Select

from norimon.data.connection import check_connection
from norimon.data.models import AggLevel, ObservationQuery
from norimon.stats.boot_stat import iter_groups
from norimon.stats.diversity import calc_shannon

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Source tables (only the columns we read)
# ---------------------------------------------------------------------------

observations = table(
    "observations",
    column("identification_id"),
    column("species_latin_fixed"),
    column("sequence_id"),
    column("id_order"),
    column("id_family"),
    column("id_genus"),
    schema="occurrences",
)
identifications = table(
    "identifications",
    column("id"),
    column("identification_name"),
    column("sampling_trap_id"),
    schema="events",
)
identification_techniques = table(
    "identification_techniques",
    column("identification_name"),
    column("identification_type"),
    schema="lookup",
)
sampling_trap = table(
    "sampling_trap",
    column("id"),
    column("locality_sampling_id"),
    column("trap_id"),
    column("sample_name"),
    column("start_date"),
    column("end_date"),
    schema="events",
)
locality_sampling = table(
    "locality_sampling",
    column("id"),
    column("year_locality_id"),
    column("sampling_name"),
    schema="events",
)
year_locality = table(
    "year_locality",
    column("id"),
    column("locality_id"),
    column("year"),
    column("project_short_name"),
    schema="events",
)
localities = table(
    "localities",
    column("id"),
    column("locality"),
    column("habitat_type"),
    column("region_name"),
    schema="locations",
)
traps = table(
    "traps",
    column("id"),
    column("year"),
    column("locality"),
    column("trap_short_name"),
    schema="locations",
)

# Subset option -> column it filters
_SUBSET_COLUMNS = {
    "subset_region": localities.c.region_name,
    "subset_orders": observations.c.id_order,
    "subset_families": observations.c.id_family,
    "subset_species": observations.c.species_latin_fixed,
    "subset_year": year_locality.c.year,
    "subset_genus": observations.c.id_genus,
}

METRIC_COLUMNS = ["no_species", "shannon_div", "mean_asv_per_species"]

# Aggregation level -> (grouping keys, output key columns, sort order)
_AGGREGATIONS: dict[AggLevel, tuple[list[str], list[str], list[str]]] = {
    AggLevel.YEAR_LOCALITY: (
        ["year_locality_id", "locality_id", "year", "locality", "habitat_type", "region_name"],
        ["year", "locality", "habitat_type", "region_name"],
        ["year", "region_name", "habitat_type", "locality"],
    ),
    AggLevel.LOCALITY_SAMPLING: (
        [
            "sampling_name",
            "year_locality_id",
            "locality_id",
            "year",
            "locality",
            "habitat_type",
            "region_name",
        ],
        ["year", "locality", "sampling_name", "habitat_type", "region_name", "no_trap_days"],
        ["year", "region_name", "habitat_type", "locality", "sampling_name"],
    ),
    AggLevel.REGION_HABITAT: (
        ["region_name", "habitat_type"],
        ["habitat_type", "region_name"],
        ["habitat_type", "region_name"],
    ),
    AggLevel.REGION_HABITAT_YEAR: (
        ["region_name", "habitat_type", "year"],
        ["year", "habitat_type", "region_name"],
        ["year", "habitat_type", "region_name"],
    ),
    AggLevel.TOTAL: ([], [], []),
}


# ---------------------------------------------------------------------------
# 1. Query building
# ---------------------------------------------------------------------------


def build_observation_query(query: ObservationQuery) -> Select:
    """Translate *query* into a SELECT over the joined observation tables.

    Rows from 2020 are kept only for traps with "1" or "3" in their short
    name; the other traps were emptied after four weeks instead of two.
    """
    joined = (
        observations.outerjoin(
            identifications, observations.c.identification_id == identifications.c.id
        )
        .outerjoin(
            identification_techniques,
            identifications.c.identification_name
            == identification_techniques.c.identification_name,
        )
        .outerjoin(sampling_trap, identifications.c.sampling_trap_id == sampling_trap.c.id)
        .outerjoin(
            locality_sampling,
            sampling_trap.c.locality_sampling_id == locality_sampling.c.id,
        )
        .outerjoin(year_locality, locality_sampling.c.year_locality_id == year_locality.c.id)
        .outerjoin(localities, year_locality.c.locality_id == localities.c.id)
        .outerjoin(
            traps,
            and_(
                sampling_trap.c.trap_id == traps.c.id,
                year_locality.c.year == traps.c.year,
                localities.c.locality == traps.c.locality,
            ),
        )
    )

    stmt = select(
        year_locality.c.year,
        year_locality.c.id.label("year_locality_id"),
        year_locality.c.locality_id,
        localities.c.locality,
        localities.c.habitat_type,
        localities.c.region_name,
        locality_sampling.c.sampling_name,
        sampling_trap.c.sample_name,
        sampling_trap.c.start_date,
        sampling_trap.c.end_date,
        traps.c.trap_short_name,
        observations.c.species_latin_fixed,
        observations.c.sequence_id,
        observations.c.id_order,
        observations.c.id_family,
        observations.c.id_genus,
        identification_techniques.c.identification_type,
        year_locality.c.project_short_name,
    ).select_from(joined)

    # Two-week samplings only
    stmt = stmt.where(
        or_(
            year_locality.c.year.is_(None),
            year_locality.c.year != 2020,
            traps.c.trap_short_name.like("%1%"),
            traps.c.trap_short_name.like("%3%"),
        )
    )
    stmt = stmt.where(identification_techniques.c.identification_type == query.id_type.value)

    for name, values in query.subsets.items():
        values = [getattr(v, "value", v) for v in values]
        stmt = stmt.where(_SUBSET_COLUMNS[name].in_(values))

    stmt = stmt.where(year_locality.c.project_short_name == query.dataset.value)

    if query.trap_type.value != "All":
        stmt = stmt.where(sampling_trap.c.sample_name.like(f"%{query.trap_type.value}%"))

    if query.limit is not None:
        stmt = stmt.limit(query.limit)

    return stmt


# ---------------------------------------------------------------------------
# 2. Aggregation
# ---------------------------------------------------------------------------


def _trap_days(group: pd.DataFrame) -> float:
    """Mean trap duration in days over the distinct traps of a sampling event."""
    # Traps of one sampling event share their dates, so this equals the per-record mean.
    periods = group[["sample_name", "start_date", "end_date"]].drop_duplicates()
    days = (pd.to_datetime(periods["end_date"]) - pd.to_datetime(periods["start_date"])).dt.days
    return float(days.mean())


def _diversity(group: pd.DataFrame) -> dict[str, float]:
    """Richness, Shannon diversity and mean ASVs per species of one group.

    The Shannon index is weighted by record frequency: each species counts
    once per observation row, not once per distinct species.
    """
    asv_per_species = group.groupby("species_latin_fixed")["sequence_id"].nunique()
    return {
        "no_species": int(group["species_latin_fixed"].nunique()),
        "shannon_div": calc_shannon(group["species_latin_fixed"]),
        "mean_asv_per_species": (
            float(asv_per_species.mean()) if len(asv_per_species) else float("nan")
        ),
    }


def aggregate_observations(
    frame: pd.DataFrame,
    agg_level: AggLevel | str = AggLevel.YEAR_LOCALITY,
) -> pd.DataFrame:
    """Summarise joined observation rows at *agg_level*.

    Args:
        frame: Rows as returned by :func:`build_observation_query`.
        agg_level: Granularity; ``"none"`` returns *frame* unchanged.

    Returns:
        One row per group with the key columns of the level followed by
        ``no_species``, ``shannon_div`` and ``mean_asv_per_species``.
    """
    agg_level = AggLevel(agg_level)
    if agg_level is AggLevel.NONE:
        return frame

    keys, key_columns, order = _AGGREGATIONS[agg_level]
    rows: list[dict[str, Any]] = []

    for key, group in iter_groups(frame, keys):
        row: dict[str, Any] = dict(zip(keys, key))
        if agg_level is AggLevel.LOCALITY_SAMPLING:
            row["no_trap_days"] = _trap_days(group)
        row.update(_diversity(group))
        rows.append(row)

    result = pd.DataFrame(rows, columns=[*key_columns, *METRIC_COLUMNS])
    if order:
        result = result.sort_values(order, na_position="last", kind="stable")
    result = result.reset_index(drop=True)

    if result.empty:
        logger.warning("No observations to aggregate at level '%s'.", agg_level.value)
    else:
        logger.info("Aggregated %d observations into %d rows (%s).", len(frame), len(result), agg_level.value)
    return result


# ---------------------------------------------------------------------------
# 3. Public entry point
# ---------------------------------------------------------------------------


def obs_from_db(
    engine: Engine,
    query: ObservationQuery | None = None,
    **options: Any,
) -> pd.DataFrame:
    """Get insect observation data from the database.

    Either pass a ready :class:`ObservationQuery` or its fields as keyword
    options, e.g. ``obs_from_db(engine, subset_orders="Coleoptera")``.

    With ``limit`` set, the first *limit* joined rows are returned as they
    are, without aggregation (useful for testing queries).

    Raises:
        DatabaseConnectionError: If the database cannot be reached.
        pydantic.ValidationError: If an option value is not recognised.
    """
    if query is None:
        query = ObservationQuery(**options)
    elif options:
        raise TypeError("Pass either an ObservationQuery or keyword options, not both.")

    check_connection(engine)
    stmt = build_observation_query(query)

    with engine.connect() as conn:
        joined = pd.read_sql(stmt, conn)
    logger.info(
        "Fetched %d observation rows (dataset=%s, agg_level=%s).",
        len(joined),
        query.dataset.value,
        query.agg_level.value,
    )

    if query.limit is not None:
        return joined
    return aggregate_observations(joined, query.agg_level)
