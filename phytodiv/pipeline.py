"""
End-to-end diversity pipeline.

normalize -> cluster stations -> rarefy (alpha, gamma) -> diversity
-> station-month means -> dense grid -> NetCDF + summary tables.

Everything runs in memory over one dataset; the only stochastic step is
the rarefaction draw, which takes an explicit numpy Generator.
"""

import logging
import os
from typing import NamedTuple, Optional

import numpy as np
import pandas as pd

from .cf_writer import write_netcdf
from .clustering import LAT_COL, LON_COL, cluster_stations
from .diversity import diversity_table
from .grid import DiversityGrid, assemble_grid
from .metadata import build_metadata
from .normalize import normalize_occurrences
from .rarefaction import rarefy
from .summary import (
    GAMMA_COLUMNS,
    MONTHLY_COLUMNS,
    write_gamma_table,
    write_monthly_table,
    write_station_table,
)
from .time_utils import days_since_epoch

LOGGER = logging.getLogger(__name__)

ALPHA_COLUMNS = [
    "positionDate",
    "sample_id",
    "decimalLongitude",
    "decimalLatitude",
    "verbatimLocality",
    "month",
    "richness",
    "shannon",
    "depth",
]


class PipelineResult(NamedTuple):
    normalized: pd.DataFrame
    assignments: pd.DataFrame
    stations: pd.DataFrame
    alpha: pd.DataFrame
    gamma: pd.DataFrame
    monthly: pd.DataFrame
    grid: Optional[DiversityGrid]


def _empty(columns):
    return pd.DataFrame({c: pd.Series(dtype=object) for c in columns})


def alpha_diversity(normalized, config, rng):
    """Per-sample diversity after rarefaction keyed on positionDate."""
    res = rarefy(normalized, "positionDate", config.alpha_min_depth, rng)
    div = diversity_table(res.table, "positionDate")
    if div.empty:
        LOGGER.warning("No sample survived alpha rarefaction")
        return _empty(ALPHA_COLUMNS)

    samples = normalized[
        ["positionDate", "sample_id", LON_COL, LAT_COL, "verbatimLocality", "month"]
    ].drop_duplicates(subset=["positionDate"])

    alpha = div.merge(samples, on="positionDate", how="left")
    alpha["depth"] = res.depth
    return alpha[ALPHA_COLUMNS]


def gamma_diversity(normalized, config, rng):
    """Regional diversity per month, all stations pooled before rarefaction."""
    res = rarefy(normalized, "monthYear", config.gamma_min_depth, rng)
    div = diversity_table(res.table, "monthYear")
    if div.empty:
        LOGGER.warning("No month survived gamma rarefaction")
        return _empty(GAMMA_COLUMNS)

    months = normalized[["monthYear", "month"]].drop_duplicates(subset=["monthYear"])
    gamma = div.merge(months, on="monthYear", how="left")
    gamma["time"] = days_since_epoch(gamma["month"])
    gamma["depth"] = res.depth
    return gamma.sort_values("month").reset_index(drop=True)[GAMMA_COLUMNS]


def monthly_station_diversity(alpha, assignments, stations):
    """
    Mean richness and Shannon index per station and month.

    Returns
    -------
    pd.DataFrame
        ``MONTHLY_COLUMNS``; ``lon``/``lat`` are the station centroid and
        ``time`` is days since 1970-01-01 of the monthly bucket.
    """
    if alpha.empty:
        return _empty(MONTHLY_COLUMNS)

    joined = alpha.merge(assignments, on=[LON_COL, LAT_COL], how="left")
    if joined["station_id"].isna().any():
        raise RuntimeError("Samples without a station assignment")

    monthly = (
        joined.groupby(["station_id", "month"], as_index=False)
        .agg(
            n_samples=("positionDate", "nunique"),
            richness=("richness", "mean"),
            shannon=("shannon", "mean"),
        )
        .merge(stations[["station_id", "verbatimLocality", "lon", "lat"]], on="station_id")
    )
    monthly["time"] = days_since_epoch(monthly["month"])
    monthly = monthly.sort_values(["station_id", "month"]).reset_index(drop=True)

    LOGGER.info(
        "Aggregated %d samples into %d station-months", len(alpha), len(monthly)
    )
    return monthly[MONTHLY_COLUMNS]


def run_pipeline(raw, config, rng=None):
    """
    Run the whole transformation on a joined occurrence table.

    Parameters
    ----------
    raw : pd.DataFrame
        Joined occurrence / measurement / event records.
    config : PipelineConfig
    rng : np.random.Generator, optional
        Defaults to ``config.make_rng()``.

    Returns
    -------
    PipelineResult
        ``grid`` is None when no station-month diversity value exists.
    """
    rng = rng if rng is not None else config.make_rng()

    normalized = normalize_occurrences(raw, config)
    assignments, stations = cluster_stations(normalized, config.distance_threshold_m)

    alpha = alpha_diversity(normalized, config, rng)
    gamma = gamma_diversity(normalized, config, rng)
    monthly = monthly_station_diversity(alpha, assignments, stations)

    if monthly.empty:
        LOGGER.warning("No station-month diversity values; the grid is not built")
        grid = None
    else:
        grid = assemble_grid(monthly, config.fill_value)

    return PipelineResult(normalized, assignments, stations, alpha, gamma, monthly, grid)


def write_outputs(result, output_dir, config, basename="phytoplankton_diversity"):
    """
    Persist the station, gamma and monthly tables and the NetCDF grid.

    Returns
    -------
    dict
        Output kind -> path written.
    """
    os.makedirs(output_dir, exist_ok=True)
    paths = {
        "stations": write_station_table(
            result.stations, os.path.join(output_dir, f"{basename}_stations.tsv")
        ),
        "gamma": write_gamma_table(
            result.gamma, os.path.join(output_dir, f"{basename}_gamma_diversity.tsv")
        ),
        "monthly": write_monthly_table(
            result.monthly,
            os.path.join(output_dir, f"{basename}_monthly_station_diversity.tsv"),
        ),
    }

    if result.grid is None:
        LOGGER.warning("Skipping NetCDF output: no grid")
        return paths

    history = (
        f"phytodiv: years={_years_label(config.years)}, "
        f"distance_threshold_m={config.distance_threshold_m:g}, "
        f"alpha_min_depth={config.alpha_min_depth}, "
        f"gamma_min_depth={config.gamma_min_depth}"
    )
    dimensions, variables, global_attrs = build_metadata(
        result.grid, config.global_attrs, history=history
    )
    paths["grid"] = write_netcdf(
        os.path.join(output_dir, f"{basename}.nc"), dimensions, variables, global_attrs
    )
    return paths


def _years_label(years):
    if not years:
        return "all"
    years = np.asarray(years)
    if years.size == years.max() - years.min() + 1:
        return f"{years.min()}-{years.max()}"
    return ",".join(str(y) for y in years)
