"""Tests for the observation query options."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from norimon.data import AggLevel, Dataset, ObservationQuery, Region, TrapType


class TestObservationQuery:
    def test_defaults(self):
        query = ObservationQuery()
        assert query.dataset is Dataset.NASINS
        assert query.agg_level is AggLevel.YEAR_LOCALITY
        assert query.trap_type is TrapType.ALL
        assert query.limit is None
        assert query.subsets == {}

    def test_scalar_subsets_become_lists(self):
        query = ObservationQuery(subset_orders="Coleoptera", subset_year="2021")
        assert query.subset_orders == ["Coleoptera"]
        assert query.subset_year == [2021]

    def test_subsets_only_lists_active_filters(self):
        query = ObservationQuery(subset_region=["Trøndelag"], subset_genus=["Bombus"])
        assert query.subsets == {
            "subset_region": [Region.TRONDELAG],
            "subset_genus": ["Bombus"],
        }

    def test_all_agg_levels_accepted(self):
        for level in (
            "year_locality",
            "locality_sampling",
            "region_habitat",
            "region_habitat_year",
            "total",
            "none",
        ):
            assert ObservationQuery(agg_level=level).agg_level.value == level

    def test_unicode_dataset(self):
        assert ObservationQuery(dataset="Nerlandsøya").dataset is Dataset.NERLANDSOYA

    @pytest.mark.parametrize(
        "options",
        [
            {"agg_level": "county"},
            {"dataset": "Unknown"},
            {"trap_type": "Pitfall"},
            {"id_type": "morphology"},
            {"subset_region": "Vestlandet"},
            {"limit": 0},
        ],
    )
    def test_unrecognised_options_rejected(self, options):
        with pytest.raises(ValidationError):
            ObservationQuery(**options)
