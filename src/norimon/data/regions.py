"""Map of terrestrial Norway with counties grouped into monitoring regions."""

from __future__ import annotations

import logging
from collections.abc import Iterable

import geopandas as gpd
import pandas as pd
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# County (fylke) -> region
REGION_DEFINITION = pd.DataFrame(
    {
        "region": [
            "Trøndelag",
            "Østlandet",
            "Østlandet",
            "Østlandet",
            "Østlandet",
            "Sørlandet",
            "Sørlandet",
            "Vestlandet",
            "Vestlandet",
            "Nord-Norge",
            "Nord-Norge",
        ],
        "fylke": [
            "Trøndelag",
            "Innlandet",
            "Oslo",
            "Vestfold og Telemark",
            "Viken",
            "Rogaland",
            "Agder",
            "Vestland",
            "Møre og Romsdal",
            "Troms og Finnmark",
            "Nordland",
        ],
    }
)


def attach_regions(
    counties: gpd.GeoDataFrame,
    region_subset: Iterable[str] | None = None,
) -> gpd.GeoDataFrame:
    """Left-join the region of each county and optionally keep some regions.

    Args:
        counties: Polygons with a ``fylke`` column.
        region_subset: Region names to keep; ``None`` keeps all counties,
            including those without a region.
    """
    joined = counties.merge(REGION_DEFINITION, on="fylke", how="left")
    if region_subset is not None:
        if isinstance(region_subset, str):
            region_subset = [region_subset]
        joined = joined[joined["region"].isin(list(region_subset))]
    return joined.reset_index(drop=True)


def get_map(
    engine: Engine,
    region_subset: Iterable[str] | None = None,
    schema: str = "backgrounds",
    table: str = "norway_terrestrial",
    geom_col: str = "geom",
) -> gpd.GeoDataFrame:
    """Get the terrestrial landmass of Norway, one polygon per county.

    Join the result to a region-level summary with
    ``norway.merge(summary, left_on="region", right_on="region_name")``.

    Returns:
        GeoDataFrame with ``fylke``, ``region`` and geometry columns.
    """
    sql = f'SELECT navn AS fylke, {geom_col} FROM "{schema}"."{table}"'
    counties = gpd.read_postgis(sql, con=engine, geom_col=geom_col)
    logger.info("Loaded %d county polygons from %s.%s", len(counties), schema, table)
    return attach_regions(counties, region_subset)
