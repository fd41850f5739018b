"""Biodiversity indices used when aggregating observations."""

from __future__ import annotations

import numpy as np
import pandas as pd


def calc_shannon(species: pd.Series) -> float:
    """Shannon diversity H' = -sum(p_i * ln p_i) over species frequencies.

    Each element of *species* is one record of a species; p_i is the share
    of records belonging to species i. Missing names are ignored.

    Args:
        species: Species name per record.

    Returns:
        H' in nats. 0.0 for empty input or a single species.
    """
    counts = pd.Series(species).dropna().value_counts().to_numpy(dtype=float)
    if counts.size == 0:
        return 0.0
    p = counts / counts.sum()
    return float(-np.sum(p * np.log(p)) + 0.0)
