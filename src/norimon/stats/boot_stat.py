"""Bootstrap statistics as combinable values.

A :class:`BootStat` pairs the raw per-draw bootstrap values of a statistic
(one row per draw, any number of grouping columns plus ``boot_values``) with
a percentile summary derived from them:

  - ``boot_value`` (or ``boot_mean`` for contrasts): mean of the draws
  - ``boot_lower25``: the draw at rank floor(n * 0.025) in ascending order
  - ``boot_upper975``: the draw at rank ceil(n * 0.975) in ascending order

Combining two statistics (difference, log-scale ratio, contrast against a
reference level) transforms the raw draws and re-derives the summary, so the
summary is always a pure function of the draws.

Usage:
    from norimon.stats import BootStat

    shannon = BootStat(draws_df)               # region_name, year, boot_values
    change = shannon.contrast({"region_name": "Trøndelag"})
    ratio = shannon.divide(reference)          # exp(log(x) - log(y))
    print(change)                              # summary table only
"""

from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any, Union

import numpy as np
import pandas as pd

from norimon.stats.errors import (
    EmptyGroupError,
    InputShapeError,
    MalformedInputError,
    ScalarArityError,
    UnsupportedOperandError,
)

logger = logging.getLogger(__name__)

BOOT_VALUES = "boot_values"
LOWER_COLUMN = "boot_lower25"
UPPER_COLUMN = "boot_upper975"

# Percentile levels of the 95% interval
LOWER_QUANTILE = 0.025
UPPER_QUANTILE = 0.975

# Reference level: either a callable returning a row mask, or {column: value}
LevelSelector = Union[Callable[[pd.DataFrame], Any], Mapping[str, Any]]


# ---------------------------------------------------------------------------
# 1. Grouped value tables
# ---------------------------------------------------------------------------


def grouping_columns(table: pd.DataFrame) -> list[str]:
    """Return every column of *table* except ``boot_values``, in table order.

    Raises:
        MalformedInputError: If *table* has no ``boot_values`` column.
    """
    if BOOT_VALUES not in table.columns:
        raise MalformedInputError(
            f"Bootstrap table needs a '{BOOT_VALUES}' column, "
            f"got {list(table.columns)}."
        )
    return [col for col in table.columns if col != BOOT_VALUES]


def iter_groups(
    table: pd.DataFrame,
    columns: Sequence[str],
) -> Iterator[tuple[tuple[Any, ...], pd.DataFrame]]:
    """Yield ``(key, rows)`` for each distinct combination of *columns*.

    Groups come out sorted by key. Missing key values form their own group.
    A table without grouping columns is a single group with the empty key.
    """
    if not columns:
        yield (), table
        return

    for key, rows in table.groupby(list(columns), sort=True, dropna=False):
        if not isinstance(key, tuple):
            key = (key,)
        yield key, rows


# ---------------------------------------------------------------------------
# 2. Percentile summary
# ---------------------------------------------------------------------------


def _percentile_rank(n: int, quantile: float, rounding: Callable[[float], int]) -> int:
    """1-indexed rank of *quantile* among *n* sorted draws, clamped to [1, n]."""
    rank = int(rounding(n * quantile))
    return min(max(rank, 1), n)


def summarize_group(values: np.ndarray) -> tuple[float, float, float]:
    """Mean and percentile bounds of a single group's draws.

    Args:
        values: The group's draws in encounter order.

    Returns:
        (mean, lower, upper). Bounds are actual draws picked from a stable
        ascending sort, not interpolated.

    Raises:
        EmptyGroupError: If *values* is empty.
    """
    n = values.size
    if n == 0:
        raise EmptyGroupError("Cannot summarise a group with no bootstrap draws.")

    ordered = np.sort(values, kind="stable")
    lower = ordered[_percentile_rank(n, LOWER_QUANTILE, math.floor) - 1]
    upper = ordered[_percentile_rank(n, UPPER_QUANTILE, math.ceil) - 1]
    return (float(np.mean(values)), float(lower), float(upper))


def summarize_boot_values(
    table: pd.DataFrame,
    value_name: str = "boot_value",
) -> pd.DataFrame:
    """Summarise raw bootstrap draws into one row per grouping key.

    Args:
        table: Raw draws, grouping columns plus ``boot_values``.
        value_name: Name of the point-estimate (mean) column.

    Returns:
        DataFrame with the grouping columns followed by *value_name*,
        ``boot_lower25`` and ``boot_upper975``.
    """
    columns = grouping_columns(table)
    rows: list[dict[str, Any]] = []

    for key, group in iter_groups(table, columns):
        mean, lower, upper = summarize_group(group[BOOT_VALUES].to_numpy(dtype=float))
        row = dict(zip(columns, key))
        row[value_name] = mean
        row[LOWER_COLUMN] = lower
        row[UPPER_COLUMN] = upper
        rows.append(row)

    return pd.DataFrame(rows, columns=[*columns, value_name, LOWER_COLUMN, UPPER_COLUMN])


# ---------------------------------------------------------------------------
# 3. Operand handling
# ---------------------------------------------------------------------------


def _as_scalar(operand: Any, operation: str) -> float:
    """Coerce a number or one-element numeric sequence to float."""
    if isinstance(operand, (bool, np.bool_)):
        raise UnsupportedOperandError(
            f"Cannot {operation} a boolean; use a number or a BootStat."
        )
    if isinstance(operand, numbers.Real):
        return float(operand)
    if isinstance(operand, (str, bytes)) or not isinstance(
        operand, (Sequence, np.ndarray, pd.Series)
    ):
        raise UnsupportedOperandError(
            f"Cannot {operation} object of type {type(operand).__name__}; "
            f"must be a number or a BootStat."
        )

    arr = np.asarray(operand)
    if arr.dtype.kind not in "iuf":
        raise UnsupportedOperandError(
            f"Cannot {operation} a sequence of dtype {arr.dtype}; "
            f"must be a number or a BootStat."
        )
    if arr.size != 1:
        raise ScalarArityError(
            f"Can only {operation} a single value, got {arr.size} values."
        )
    return float(arr.reshape(-1)[0])


def _recycle(reference: np.ndarray, length: int) -> np.ndarray:
    """Repeat *reference* to *length*; the length must be an exact multiple."""
    if reference.size == 0:
        raise InputShapeError("Reference level selects no bootstrap draws.")
    if length % reference.size:
        raise InputShapeError(
            f"Cannot align {reference.size} reference draws with {length} draws; "
            f"the draw count must be a multiple of the reference count."
        )
    return np.tile(reference, length // reference.size)


def _as_mask(selected: pd.Series) -> np.ndarray:
    """Plain bool array from a possibly nullable mask; missing means not selected."""
    return selected.astype("boolean").fillna(False).to_numpy(dtype=bool)


def _select_level(values: pd.DataFrame, level: LevelSelector) -> pd.DataFrame:
    """Rows of *values* belonging to the reference *level*."""
    if isinstance(level, Mapping):
        missing = [col for col in level if col not in values.columns]
        if missing:
            raise InputShapeError(f"Reference level uses unknown columns {missing}.")
        mask = np.ones(len(values), dtype=bool)
        for column, wanted in level.items():
            mask &= _as_mask(values[column].eq(wanted))
    elif callable(level):
        selected = level(values)
        if isinstance(selected, pd.Series):
            mask = _as_mask(selected)
        else:
            mask = np.asarray(selected, dtype=bool)
    else:
        raise UnsupportedOperandError(
            f"Reference level must be a mapping or a predicate, "
            f"got {type(level).__name__}."
        )
    return values.loc[mask]


# ---------------------------------------------------------------------------
# 4. BootStat
# ---------------------------------------------------------------------------


class BootStat:
    """A bootstrapped statistic: raw draws plus their percentile summary.

    Both tables are owned by the instance and handed out as copies.
    Algebra operations never modify ``self``; they return a new BootStat.

    Attributes:
        bootstrap_values: Raw draws, grouping columns plus ``boot_values``.
        bootstrap_summary: One row per grouping key with mean and 95% bounds.
    """

    def __init__(
        self,
        bootstrap_values: pd.DataFrame,
        *,
        summary_value_name: str = "boot_value",
    ) -> None:
        values = bootstrap_values.reset_index(drop=True).copy()
        grouping_columns(values)
        values[BOOT_VALUES] = values[BOOT_VALUES].astype(float)

        self._values = values
        self._summary = summarize_boot_values(values, value_name=summary_value_name)

    @classmethod
    def from_frame(
        cls,
        frame: pd.DataFrame,
        value_column: str,
        group_columns: Sequence[str] | None = None,
    ) -> BootStat:
        """Build a BootStat from a tidy per-draw table.

        Args:
            frame: One row per bootstrap draw.
            value_column: Column holding the drawn statistic, e.g. ``shannon_div``.
            group_columns: Columns to keep as grouping keys. Defaults to every
                column other than *value_column*.
        """
        if value_column not in frame.columns:
            raise MalformedInputError(
                f"Column '{value_column}' not found in {list(frame.columns)}."
            )
        if group_columns is None:
            group_columns = [col for col in frame.columns if col != value_column]
        missing = [col for col in group_columns if col not in frame.columns]
        if missing:
            raise InputShapeError(f"Grouping columns {missing} not found.")

        draws = frame[[*group_columns, value_column]].rename(
            columns={value_column: BOOT_VALUES}
        )
        return cls(draws)

    @property
    def bootstrap_values(self) -> pd.DataFrame:
        return self._values.copy()

    @property
    def bootstrap_summary(self) -> pd.DataFrame:
        return self._summary.copy()

    @property
    def grouping_columns(self) -> list[str]:
        return grouping_columns(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __str__(self) -> str:
        return self._summary.to_string(index=False)

    def __repr__(self) -> str:
        return (
            f"BootStat({len(self._summary)} groups, {len(self._values)} draws)\n"
            f"{self}"
        )

    # -- algebra -------------------------------------------------------------

    def _with_values(
        self,
        boot_values: np.ndarray,
        summary_value_name: str = "boot_value",
    ) -> BootStat:
        values = self._values.copy()
        values[BOOT_VALUES] = boot_values
        return BootStat(values, summary_value_name=summary_value_name)

    def _paired_values(self, other: BootStat, operation: str) -> np.ndarray:
        """Draws of *other*, checked for positional pairing with ours."""
        ours, theirs = self.grouping_columns, other.grouping_columns
        if set(ours) != set(theirs):
            raise InputShapeError(
                f"Cannot {operation} BootStats with different grouping columns: "
                f"{ours} vs {theirs}."
            )
        other_values = other._values[BOOT_VALUES].to_numpy()
        if other_values.size != len(self._values):
            raise InputShapeError(
                f"Cannot {operation} BootStats with different draw counts: "
                f"{len(self._values)} vs {other_values.size}."
            )
        return other_values

    def subtract(self, other: float | BootStat) -> BootStat:
        """Difference of draws: ``self - other``.

        A BootStat operand must share our grouping columns and have its draws
        in the same row order; the pairing is positional.

        Raises:
            ScalarArityError: *other* is a sequence of more than one value.
            InputShapeError: Grouping columns or draw counts differ.
            UnsupportedOperandError: *other* is neither number nor BootStat.
        """
        ours = self._values[BOOT_VALUES].to_numpy()
        if isinstance(other, BootStat):
            theirs = self._paired_values(other, "subtract")
        else:
            theirs = _as_scalar(other, "subtract")

        logger.debug("Subtracting from %d bootstrap draws.", ours.size)
        return self._with_values(ours - theirs)

    def divide(self, other: float | BootStat) -> BootStat:
        """Ratio of draws, computed on the log scale: ``exp(log(self) - log(other))``.

        Draws are expected to be strictly positive. Zero or negative values
        give inf/NaN draws instead of an error.

        Raises:
            ScalarArityError: *other* is a sequence of more than one value.
            InputShapeError: Grouping columns or draw counts differ.
            UnsupportedOperandError: *other* is neither number nor BootStat.
        """
        ours = self._values[BOOT_VALUES].to_numpy()
        if isinstance(other, BootStat):
            theirs = self._paired_values(other, "divide")
        else:
            theirs = _as_scalar(other, "divide by")

        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = np.exp(np.log(ours) - np.log(theirs))
        n_bad = int(np.count_nonzero(~np.isfinite(ratio)))
        if n_bad:
            logger.warning("Log-ratio produced %d non-finite draws.", n_bad)
        return self._with_values(ratio)

    def contrast(self, level: LevelSelector) -> BootStat:
        """Difference of every group against a reference level.

        The reference draws are subtracted positionally from all draws, the
        reference sequence repeating once per group. This assumes groups are
        contiguous and of equal size, matching the reference.

        Args:
            level: ``{"region_name": "Trøndelag"}`` style equality filter, or
                a callable taking the raw draws and returning a boolean mask.

        Returns:
            New BootStat whose summary mean column is ``boot_mean``.

        Raises:
            InputShapeError: The reference is empty, names unknown columns, or
                its length does not divide the number of draws.
        """
        reference = _select_level(self._values, level)[BOOT_VALUES].to_numpy()
        ours = self._values[BOOT_VALUES].to_numpy()
        aligned = _recycle(reference, ours.size)

        logger.debug(
            "Contrasting %d draws against %d reference draws.", ours.size, reference.size
        )
        return self._with_values(ours - aligned, summary_value_name="boot_mean")

    def __sub__(self, other: float | BootStat) -> BootStat:
        return self.subtract(other)

    def __truediv__(self, other: float | BootStat) -> BootStat:
        return self.divide(other)


def boot_contrast(x: BootStat, level: LevelSelector) -> BootStat:
    """Functional form of :meth:`BootStat.contrast`."""
    if not isinstance(x, BootStat):
        raise UnsupportedOperandError(
            f"boot_contrast needs a BootStat, got {type(x).__name__}."
        )
    return x.contrast(level)
