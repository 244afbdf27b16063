"""
Tabular normalisation of joined occurrence / measurement / event records.

Responsibilities:
- validate the input schema (missing columns are fatal)
- keep surface abundance measurements inside the configured years
- drop rows with unusable dates or abundances (logged, never fatal)
- derive the positionDate sample key and the monthYear grouping key
- sum repeated reports of one taxon in one sample
"""

import logging

import numpy as np
import pandas as pd

from .constants import LOCALITY_COLUMNS, REQUIRED_COLUMNS
from .errors import SchemaError
from .time_utils import month_bucket

LOGGER = logging.getLogger(__name__)

OUTPUT_COLUMNS = [
    "sample_id",
    "scientificName",
    "eventDate",
    "decimalLatitude",
    "decimalLongitude",
    "verbatimLocality",
    "abundance",
    "positionDate",
    "monthYear",
    "month",
]


def check_columns(df, required, where="input table"):
    missing = set(required) - set(df.columns)
    if missing:
        raise SchemaError(missing, where=where)


def _locality_column(df):
    for name in LOCALITY_COLUMNS:
        if name in df.columns:
            return name
    raise SchemaError({LOCALITY_COLUMNS[0]})


def parse_event_dates(values):
    """
    Parse ISO 8601 event dates to naive day timestamps.

    The local calendar date is kept: time and UTC offset are discarded, not
    converted. Interval values ("start/end") keep their start date; anything
    else that cannot be parsed becomes NaT.
    """
    text = pd.Series(values, dtype="object").astype(str).str.split("/").str[0].str.strip()
    day = text.str.split(r"[T ]", n=1, regex=True).str[0]
    parsed = pd.to_datetime(day, format="ISO8601", errors="coerce")
    return parsed.dt.normalize()


def _drop(df, mask, reason):
    n = int(mask.sum())
    if n:
        LOGGER.warning("Dropped %d rows: %s", n, reason)
    return df.loc[~mask]


def normalize_occurrences(df, config):
    """
    Build the flat (positionDate, taxon) abundance table.

    Parameters
    ----------
    df : pd.DataFrame
        Joined occurrence + measurement + event records.
    config : PipelineConfig

    Returns
    -------
    pd.DataFrame
        Columns ``OUTPUT_COLUMNS``; one row per (positionDate, scientificName).
    """
    check_columns(df, REQUIRED_COLUMNS)
    loc_col = _locality_column(df)
    n_in = len(df)

    df = df.copy()
    df["measurementType"] = df["measurementType"].astype(str).str.strip()
    df = df.loc[df["measurementType"] == config.measurement_type]

    depth = pd.to_numeric(df["minimumDepthInMeters"], errors="coerce")
    df = df.loc[np.isclose(depth, config.surface_depth) & depth.notna()]

    df = df.assign(
        eventDate=parse_event_dates(df["eventDate"]),
        abundance=pd.to_numeric(df["measurementValue"], errors="coerce"),
        decimalLatitude=pd.to_numeric(df["decimalLatitude"], errors="coerce"),
        decimalLongitude=pd.to_numeric(df["decimalLongitude"], errors="coerce"),
    )

    df = _drop(df, df["eventDate"].isna(), "unparseable eventDate")
    df = _drop(df, df["abundance"].isna(), "non-numeric abundance")
    df = _drop(df, df["abundance"] < 0, "negative abundance")
    df = _drop(
        df,
        df["decimalLatitude"].isna() | df["decimalLongitude"].isna(),
        "missing coordinates",
    )
    df = _drop(df, df["scientificName"].isna(), "missing scientificName")

    if config.years is not None:
        df = df.loc[df["eventDate"].dt.year.isin(config.years)]

    df = df.assign(verbatimLocality=df[loc_col].fillna("").astype(str).str.strip())

    date_str = df["eventDate"].dt.strftime("%Y-%m-%d")
    df["positionDate"] = (
        df["decimalLatitude"].astype(str)
        + "_"
        + df["decimalLongitude"].astype(str)
        + "_"
        + date_str
    )
    df["monthYear"] = df["eventDate"].dt.strftime("%Y-%m")
    df["month"] = month_bucket(df["eventDate"]).to_numpy()
    df["sample_id"] = df["eventID"] if "eventID" in df.columns else df["positionDate"]

    out = (
        df.groupby(["positionDate", "scientificName"], as_index=False, sort=False)
        .agg(
            sample_id=("sample_id", "first"),
            eventDate=("eventDate", "first"),
            decimalLatitude=("decimalLatitude", "first"),
            decimalLongitude=("decimalLongitude", "first"),
            verbatimLocality=("verbatimLocality", "first"),
            abundance=("abundance", "sum"),
            monthYear=("monthYear", "first"),
            month=("month", "first"),
        )
    )[OUTPUT_COLUMNS]

    LOGGER.info(
        "Normalized %d input rows into %d (sample, taxon) rows across %d samples",
        n_in, len(out), out["positionDate"].nunique(),
    )
    return out.reset_index(drop=True)
