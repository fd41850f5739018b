"""Bootstrap statistic algebra and diversity indices.

Usage:
    from norimon.stats import BootStat, boot_contrast

    richness = BootStat(draws_df)
    print(richness - 10)
    print(boot_contrast(richness, {"region_name": "Trøndelag"}))
"""

from norimon.stats.boot_stat import (
    BOOT_VALUES,
    BootStat,
    boot_contrast,
    grouping_columns,
    iter_groups,
    summarize_boot_values,
    summarize_group,
)
from norimon.stats.diversity import calc_shannon
from norimon.stats.errors import (
    BootStatError,
    EmptyGroupError,
    InputShapeError,
    MalformedInputError,
    ScalarArityError,
    UnsupportedOperandError,
)

__all__ = [
    "BOOT_VALUES",
    "BootStat",
    "BootStatError",
    "EmptyGroupError",
    "InputShapeError",
    "MalformedInputError",
    "ScalarArityError",
    "UnsupportedOperandError",
    "boot_contrast",
    "calc_shannon",
    "grouping_columns",
    "iter_groups",
    "summarize_boot_values",
    "summarize_group",
]
