"""
Single-round rarefaction of sample-by-taxon count matrices.

The same operation serves alpha diversity (one row per positionDate sample)
and gamma diversity (one row per monthYear, pooled over all stations); only
the grouping key and the retention floor differ between the two calls.

Steps
-----
a. drop rows whose total does not exceed the retention floor
b. depth m = smallest remaining row total
c. draw exactly m counts from each row without replacement
d. drop rows whose drawn total is not m or that contain undefined values
e. return the surviving rows in long format without zero counts
"""

import logging
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd

LOGGER = logging.getLogger(__name__)

# numpy's hypergeometric samplers require population sizes below this
HYPERGEOMETRIC_LIMIT = 10**9


class RarefactionResult(NamedTuple):
    table: pd.DataFrame
    depth: Optional[int]
    n_input: int
    n_retained: int


def to_count_matrix(long_df, sample_col, taxon_col="scientificName", count_col="abundance"):
    """Pivot long records to an integer sample x taxon matrix (missing = 0)."""
    if long_df.empty:
        return pd.DataFrame(dtype=np.int64)

    matrix = long_df.pivot_table(
        index=sample_col,
        columns=taxon_col,
        values=count_col,
        aggfunc="sum",
        fill_value=0,
    )
    matrix = np.rint(matrix.astype(float)).astype(np.int64)
    matrix.columns.name = taxon_col
    return matrix


def _hypergeometric(ngood, nbad, nsample, rng):
    """Number of good items among ``nsample`` drawn without replacement."""
    if nsample == 0 or ngood == 0:
        return 0
    if nbad == 0:
        return nsample
    if ngood + nbad < HYPERGEOMETRIC_LIMIT:
        return int(rng.hypergeometric(ngood, nbad, nsample))

    # above numpy's exact range: normal approximation with finite-population
    # correction, clipped to the feasible support
    total = ngood + nbad
    p = ngood / total
    var = nsample * p * (1.0 - p) * (total - nsample) / (total - 1)
    x = int(np.rint(rng.normal(nsample * p, np.sqrt(var))))
    return min(max(x, nsample - nbad, 0), nsample, ngood)


def draw_without_replacement(counts, depth, rng):
    """
    Draw ``depth`` items from a row of taxon counts without replacement.

    Rows below HYPERGEOMETRIC_LIMIT use numpy's exact multivariate sampler.
    Larger rows are drawn taxon by taxon from the conditional marginals, so
    the result still totals ``depth`` and never exceeds ``counts``.
    """
    counts = np.asarray(counts, dtype=np.int64)
    total = int(counts.sum())
    if total < HYPERGEOMETRIC_LIMIT:
        return rng.multivariate_hypergeometric(counts, depth)

    drawn = np.zeros_like(counts)
    remaining_total = total
    remaining = int(depth)
    for i, c in enumerate(counts):
        c = int(c)
        remaining_total -= c
        x = _hypergeometric(c, remaining_total, remaining, rng)
        drawn[i] = x
        remaining -= x
        if remaining == 0:
            break
    return drawn


def rarefy_matrix(matrix, min_depth, rng):
    """
    Rarefy every row of ``matrix`` to the smallest retained row total.

    Parameters
    ----------
    matrix : pd.DataFrame
        Non-negative integer counts, samples x taxa.
    min_depth : int
        Rows must have a total strictly greater than this to be kept.
    rng : np.random.Generator

    Returns
    -------
    (pd.DataFrame, int or None)
        Rarefied matrix (same columns, surviving rows) and the depth drawn.
        Depth is None when no row survives the floor.
    """
    if matrix.empty:
        return matrix, None

    totals = matrix.sum(axis=1)
    kept = matrix.loc[totals > min_depth]
    n_floor = len(matrix) - len(kept)
    if n_floor:
        LOGGER.info(
            "Dropped %d of %d rows at or below the retention floor (%d)",
            n_floor, len(matrix), min_depth,
        )
    if kept.empty:
        return kept, None

    depth = int(kept.sum(axis=1).min())
    counts = kept.to_numpy(dtype=np.int64)

    drawn = np.empty_like(counts)
    for i, row in enumerate(counts):
        drawn[i] = draw_without_replacement(row, depth, rng)

    rarefied = pd.DataFrame(drawn, index=kept.index, columns=kept.columns)

    valid = rarefied.notna().all(axis=1) & (rarefied.sum(axis=1) == depth)
    n_failed = int((~valid).sum())
    if n_failed:
        LOGGER.warning("Dropped %d rows whose rarefied total != %d", n_failed, depth)

    return rarefied.loc[valid], depth


def to_long(matrix, sample_col, taxon_col="scientificName", count_col="abundance"):
    """Melt a matrix back to long format, dropping zero counts."""
    if matrix.empty:
        return pd.DataFrame(columns=[sample_col, taxon_col, count_col])

    long_df = (
        matrix.rename_axis(index=sample_col, columns=None)
        .reset_index()
        .melt(id_vars=sample_col, var_name=taxon_col, value_name=count_col)
    )
    long_df = long_df.loc[long_df[count_col] > 0]
    return long_df.reset_index(drop=True)


def rarefy(
    long_df,
    sample_col,
    min_depth,
    rng,
    taxon_col="scientificName",
    count_col="abundance",
):
    """
    Group, pivot, rarefy and melt back in one call.

    Returns
    -------
    RarefactionResult
        ``table`` holds the rarefied long records; ``depth`` the common
        count depth (None when nothing survived).
    """
    matrix = to_count_matrix(long_df, sample_col, taxon_col, count_col)
    rarefied, depth = rarefy_matrix(matrix, min_depth, rng)
    table = to_long(rarefied, sample_col, taxon_col, count_col)

    LOGGER.info(
        "Rarefied by %s: %d of %d rows retained at depth %s",
        sample_col, len(rarefied), len(matrix), depth,
    )
    return RarefactionResult(table, depth, len(matrix), len(rarefied))
