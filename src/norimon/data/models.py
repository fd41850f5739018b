"""Options accepted by the observation query."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class IdType(str, Enum):
    """How species were identified."""

    METABARCODING = "metabarcoding"


class Dataset(str, Enum):
    """Monitoring project the samples belong to."""

    NASINS = "NasIns"            # National insect monitoring
    OKOTROND = "OkoTrond"
    TIDVAR = "TidVar"
    NERLANDSOYA = "Nerlandsøya"


class AggLevel(str, Enum):
    """Granularity of the diversity summaries."""

    YEAR_LOCALITY = "year_locality"
    LOCALITY_SAMPLING = "locality_sampling"
    REGION_HABITAT = "region_habitat"
    REGION_HABITAT_YEAR = "region_habitat_year"
    TOTAL = "total"
    NONE = "none"                # Joined observations, no aggregation


class TrapType(str, Enum):
    ALL = "All"
    MF = "MF"                    # Malaise trap
    VF = "VF"                    # Window trap


class Region(str, Enum):
    """Regions currently sampled."""

    OSTLANDET = "Østlandet"
    TRONDELAG = "Trøndelag"


class ObservationQuery(BaseModel):
    """Filters and aggregation level for :func:`~norimon.data.observations.obs_from_db`.

    Subset fields accept a single value or a list; ``None`` means no filter.
    """

    id_type: IdType = IdType.METABARCODING
    dataset: Dataset = Dataset.NASINS
    agg_level: AggLevel = AggLevel.YEAR_LOCALITY
    trap_type: TrapType = TrapType.ALL
    subset_orders: list[str] | None = None
    subset_families: list[str] | None = None
    subset_genus: list[str] | None = None
    subset_species: list[str] | None = None
    subset_year: list[int] | None = None
    subset_region: list[Region] | None = None
    limit: int | None = Field(default=None, ge=1, description="Return at most this many raw rows")

    @field_validator(
        "subset_orders",
        "subset_families",
        "subset_genus",
        "subset_species",
        "subset_year",
        "subset_region",
        mode="before",
    )
    @classmethod
    def _listify(cls, value: Any) -> Any:
        if value is None or isinstance(value, (list, tuple, set)):
            return value
        return [value]

    @property
    def subsets(self) -> dict[str, list[Any]]:
        """Active subset filters keyed by field name."""
        return {
            name: getattr(self, name)
            for name in (
                "subset_region",
                "subset_orders",
                "subset_families",
                "subset_species",
                "subset_year",
                "subset_genus",
            )
            if getattr(self, name)
        }
