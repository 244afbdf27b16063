# phytodiv/diversity.py
import numpy as np
import pandas as pd


def richness(counts):
    """Number of taxa with a non-zero count."""
    counts = np.asarray(counts, dtype=float)
    return int(np.count_nonzero(counts > 0))


def shannon_index(counts):
    """Shannon entropy H' = -sum(p_i * ln(p_i)) over non-zero counts."""
    counts = np.asarray(counts, dtype=float)
    counts = counts[counts > 0]
    if counts.size == 0:
        raise ValueError("Shannon index is undefined for an empty group.")
    p = counts / counts.sum()
    h = -np.sum(p * np.log(p))
    # a single taxon gives -1 * ln(1), which is -0.0
    return float(max(h, 0.0))


def diversity_table(long_df, sample_col, count_col="abundance"):
    """
    Richness and Shannon index per sample of a rarefied long table.

    Returns
    -------
    pd.DataFrame
        Columns ``sample_col, richness, shannon``.
    """
    if long_df.empty:
        return pd.DataFrame(
            {
                sample_col: pd.Series(dtype=object),
                "richness": pd.Series(dtype=np.int64),
                "shannon": pd.Series(dtype=float),
            }
        )

    out = long_df.groupby(sample_col, sort=True)[count_col].agg(
        richness=richness,
        shannon=shannon_index,
    )
    out["richness"] = out["richness"].astype(np.int64)
    return out.reset_index()
