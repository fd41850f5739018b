"""Shared test fixtures for norimon."""

from __future__ import annotations

from collections.abc import Iterator

import numpy as np
import pandas as pd
import pytest
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

SCHEMAS = ("occurrences", "events", "lookup", "locations")

_TABLES = {
    "locations.localities": "id INTEGER, locality TEXT, habitat_type TEXT, region_name TEXT",
    "locations.traps": "id INTEGER, year INTEGER, locality TEXT, trap_short_name TEXT",
    "events.year_locality": "id INTEGER, locality_id INTEGER, year INTEGER, project_short_name TEXT",
    "events.locality_sampling": "id INTEGER, year_locality_id INTEGER, sampling_name TEXT",
    "events.sampling_trap": (
        "id INTEGER, locality_sampling_id INTEGER, trap_id INTEGER, "
        "sample_name TEXT, start_date TEXT, end_date TEXT"
    ),
    "events.identifications": "id INTEGER, identification_name TEXT, sampling_trap_id INTEGER",
    "lookup.identification_techniques": "identification_name TEXT, identification_type TEXT",
    "occurrences.observations": (
        "identification_id INTEGER, species_latin_fixed TEXT, sequence_id TEXT, "
        "id_order TEXT, id_family TEXT, id_genus TEXT"
    ),
}

_ROWS: dict[str, list[tuple]] = {
    "locations.localities": [
        (1, "Loc1", "Forest", "Østlandet"),
        (2, "Loc2", "Semi-nat", "Trøndelag"),
    ],
    "locations.traps": [
        (100, 2021, "Loc1", "MF1"),
        (101, 2020, "Loc1", "MF1"),
        (102, 2020, "Loc1", "MF2"),
        (103, 2021, "Loc2", "MF1"),
        (104, 2022, "Loc2", "MF1"),
        (105, 2021, "Loc1", "VF1"),
    ],
    "events.year_locality": [
        (10, 1, 2021, "NasIns"),
        (11, 2, 2021, "NasIns"),
        (12, 1, 2020, "NasIns"),
        (13, 2, 2022, "OkoTrond"),
    ],
    "events.locality_sampling": [
        (20, 10, "S1"),
        (21, 11, "S1"),
        (22, 12, "S1"),
        (23, 13, "S1"),
    ],
    "events.sampling_trap": [
        (30, 20, 100, "MF1-Loc1-2021", "2021-06-01", "2021-06-15"),
        (31, 21, 103, "MF1-Loc2-2021", "2021-06-01", "2021-06-15"),
        (32, 22, 101, "MF1-Loc1-2020", "2020-06-01", "2020-06-15"),
        (33, 22, 102, "MF2-Loc1-2020", "2020-06-01", "2020-06-29"),
        (34, 23, 104, "MF1-Loc2-2022", "2022-06-01", "2022-06-15"),
        (35, 20, 105, "VF1-Loc1-2021", "2021-06-01", "2021-06-13"),
    ],
    "events.identifications": [
        (40, "metabar_v1", 30),
        (41, "metabar_v1", 31),
        (42, "metabar_v1", 32),
        (43, "metabar_v1", 33),
        (44, "metabar_v1", 34),
        (45, "morphology", 30),
        (46, "metabar_v1", 35),
    ],
    "lookup.identification_techniques": [
        ("metabar_v1", "metabarcoding"),
        ("morphology", "morphological"),
    ],
    "occurrences.observations": [
        (40, "Carabus a", "seq1", "Coleoptera", "Carabidae", "Carabus"),
        (40, "Carabus a", "seq2", "Coleoptera", "Carabidae", "Carabus"),
        (40, "Bombus b", "seq3", "Hymenoptera", "Apidae", "Bombus"),
        (41, "Bombus b", "seq3", "Hymenoptera", "Apidae", "Bombus"),
        (41, "Musca c", "seq4", "Diptera", "Muscidae", "Musca"),
        (42, "Carabus a", "seq1", "Coleoptera", "Carabidae", "Carabus"),
        (43, "Musca c", "seq4", "Diptera", "Muscidae", "Musca"),
        (44, "Bombus b", "seq3", "Hymenoptera", "Apidae", "Bombus"),
        (45, "Musca c", "seq9", "Diptera", "Muscidae", "Musca"),
        (46, "Musca c", "seq4", "Diptera", "Muscidae", "Musca"),
    ],
}


@pytest.fixture()
def monitoring_engine() -> Iterator[Engine]:
    """In-memory SQLite database laid out like the monitoring schemas."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _attach_schemas(dbapi_conn, _record) -> None:
        for schema in SCHEMAS:
            dbapi_conn.execute(f"ATTACH DATABASE ':memory:' AS {schema}")

    with engine.begin() as conn:
        for name, columns in _TABLES.items():
            conn.execute(text(f"CREATE TABLE {name} ({columns})"))
            rows = _ROWS[name]
            placeholders = ", ".join(f":c{i}" for i in range(len(rows[0])))
            conn.execute(
                text(f"INSERT INTO {name} VALUES ({placeholders})"),
                [{f"c{i}": value for i, value in enumerate(row)} for row in rows],
            )

    yield engine
    engine.dispose()


@pytest.fixture()
def region_draws() -> pd.DataFrame:
    """200 positive draws for each (region, year), groups contiguous."""
    rng = np.random.default_rng(42)
    frames = []
    for region, centre in (("Trøndelag", 2.0), ("Østlandet", 3.0)):
        for year in (2021, 2022):
            frames.append(
                pd.DataFrame(
                    {
                        "region_name": region,
                        "year": year,
                        "boot_values": rng.uniform(centre - 0.5, centre + 0.5, size=200),
                    }
                )
            )
    return pd.concat(frames, ignore_index=True)
