"""
Input readers.

Two input shapes are supported:

- a single, already merged occurrence table (CSV or tab separated);
- an extracted Darwin Core archive directory holding the event core with
  occurrence and extended-measurement-or-fact extensions.

Downloading and unpacking the archive is left to the caller.
"""

import csv
import logging
import os

import pandas as pd

from .errors import SchemaError

LOGGER = logging.getLogger(__name__)

DWCA_FILES = {
    "event": "event.txt",
    "occurrence": "occurrence.txt",
    "emof": "extendedmeasurementorfact.txt",
}


def read_table(path):
    """Read a delimited table with every column kept as string."""
    sep = "," if str(path).lower().endswith(".csv") else "\t"
    df = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=True)
    LOGGER.info("Read %d rows from %s", len(df), path)
    return df


def _rename_core_id(df, key):
    # extension rows reference the core record through "id"
    if key not in df.columns and "id" in df.columns:
        df = df.rename(columns={"id": key})
    return df


def join_records(event, occurrence, emof):
    """
    Join measurement rows to their occurrences, then to their events.

    In an event-core archive the extensions' ``id`` column holds the core
    eventID, so measurements must carry an explicit ``occurrenceID``.

    Returns
    -------
    pd.DataFrame
        One row per measurement, carrying occurrence and event columns.
    """
    occurrence = _rename_core_id(occurrence, "eventID")
    event = _rename_core_id(event, "eventID")

    for name, df, keys in (
        ("event table", event, {"eventID"}),
        ("occurrence table", occurrence, {"eventID", "occurrenceID"}),
        ("measurement table", emof, {"occurrenceID"}),
    ):
        missing = keys - set(df.columns)
        if missing:
            raise SchemaError(missing, where=name)

    # measurement rows tied to events only have no occurrence to join
    emof = emof.dropna(subset=["occurrenceID"])
    emof = emof.drop(columns=[c for c in ("eventID",) if c in emof.columns])

    occ_cols = [c for c in occurrence.columns if c not in emof.columns or c == "occurrenceID"]
    merged = emof.merge(occurrence[occ_cols], on="occurrenceID", how="inner")

    ev_cols = [c for c in event.columns if c not in merged.columns or c == "eventID"]
    merged = merged.merge(event[ev_cols], on="eventID", how="inner")

    LOGGER.info(
        "Joined %d measurements, %d occurrences, %d events into %d rows",
        len(emof), len(occurrence), len(event), len(merged),
    )
    return merged


def read_dwca(directory):
    """Read and join the three tables of an extracted Darwin Core archive."""
    tables = {}
    for name, filename in DWCA_FILES.items():
        path = os.path.join(directory, filename)
        if not os.path.exists(path):
            raise FileNotFoundError(f"Darwin Core archive file not found: {path}")
        tables[name] = pd.read_csv(path, sep="\t", dtype=str, quoting=csv.QUOTE_NONE)
        LOGGER.debug("Read %s: %d rows", filename, len(tables[name]))

    return join_records(tables["event"], tables["occurrence"], tables["emof"])
