"""Tests for the county -> region map."""

from __future__ import annotations

import geopandas as gpd
import pytest
from shapely.geometry import box

from norimon.data import REGION_DEFINITION, attach_regions, get_map
from norimon.data import regions


@pytest.fixture()
def counties() -> gpd.GeoDataFrame:
    names = ["Oslo", "Trøndelag", "Agder", "Svalbard"]
    return gpd.GeoDataFrame(
        {"fylke": names},
        geometry=[box(i, 0, i + 1, 1) for i in range(len(names))],
        crs="EPSG:25833",
    )


class TestRegionDefinition:
    def test_eleven_counties_five_regions(self):
        assert len(REGION_DEFINITION) == 11
        assert REGION_DEFINITION["fylke"].is_unique
        assert set(REGION_DEFINITION["region"]) == {
            "Østlandet",
            "Sørlandet",
            "Vestlandet",
            "Nord-Norge",
            "Trøndelag",
        }

    def test_ostlandet_counties(self):
        ostlandet = REGION_DEFINITION.loc[REGION_DEFINITION["region"] == "Østlandet", "fylke"]
        assert set(ostlandet) == {"Oslo", "Innlandet", "Vestfold og Telemark", "Viken"}


class TestAttachRegions:
    def test_left_join_keeps_unmatched(self, counties):
        result = attach_regions(counties)
        assert isinstance(result, gpd.GeoDataFrame)
        assert dict(zip(result["fylke"], result["region"].fillna("-"))) == {
            "Oslo": "Østlandet",
            "Trøndelag": "Trøndelag",
            "Agder": "Sørlandet",
            "Svalbard": "-",
        }

    def test_region_subset(self, counties):
        result = attach_regions(counties, ["Østlandet", "Sørlandet"])
        assert sorted(result["fylke"]) == ["Agder", "Oslo"]

    def test_single_region_string(self, counties):
        result = attach_regions(counties, "Trøndelag")
        assert result["fylke"].tolist() == ["Trøndelag"]

    def test_geometry_preserved(self, counties):
        result = attach_regions(counties)
        assert result.crs == counties.crs
        assert result.geometry.area.tolist() == [1.0, 1.0, 1.0, 1.0]


class TestGetMap:
    def test_reads_counties_and_attaches_regions(self, counties, monkeypatch):
        calls = {}

        def fake_read_postgis(sql, con, geom_col):
            calls["sql"] = sql
            calls["geom_col"] = geom_col
            return counties

        monkeypatch.setattr(regions.gpd, "read_postgis", fake_read_postgis)
        result = get_map(engine=object(), region_subset=["Østlandet"])

        assert "navn AS fylke" in calls["sql"]
        assert '"backgrounds"."norway_terrestrial"' in calls["sql"]
        assert calls["geom_col"] == "geom"
        assert result["fylke"].tolist() == ["Oslo"]
