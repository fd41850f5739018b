"""Tests for the Shannon diversity index."""

from __future__ import annotations

import math

import pandas as pd
import pytest

from norimon.stats import calc_shannon


class TestCalcShannon:
    def test_two_equally_common_species(self):
        assert calc_shannon(pd.Series(["a", "a", "b", "b"])) == pytest.approx(math.log(2))

    def test_uneven_frequencies(self):
        h = calc_shannon(pd.Series(["a", "a", "b", "c"]))
        assert h == pytest.approx(1.5 * math.log(2))

    def test_single_species_is_zero(self):
        assert calc_shannon(pd.Series(["a", "a", "a"])) == 0.0

    def test_empty_is_zero(self):
        assert calc_shannon(pd.Series([], dtype=object)) == 0.0

    def test_missing_names_ignored(self):
        assert calc_shannon(pd.Series(["a", None, "b"])) == pytest.approx(math.log(2))

    def test_accepts_plain_list(self):
        assert calc_shannon(["a", "b", "c", "d"]) == pytest.approx(math.log(4))
