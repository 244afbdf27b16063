#=====================================
# tab-separated summary tables
#=====================================

import logging
import os

LOGGER = logging.getLogger(__name__)

GAMMA_COLUMNS = ["monthYear", "month", "time", "richness", "shannon", "depth"]
MONTHLY_COLUMNS = [
    "station_id",
    "verbatimLocality",
    "month",
    "time",
    "lon",
    "lat",
    "n_samples",
    "richness",
    "shannon",
]


def _write_tsv(df, path, columns, what):
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    df.to_csv(path, sep="\t", index=False, columns=columns, encoding="utf-8")
    LOGGER.info("Wrote %s (%d rows): %s", what, len(df), path)
    return path


def write_station_table(stations, path):
    """station_id, all_station_names, verbatimLocality, lat, lon."""
    columns = ["station_id", "all_station_names", "verbatimLocality", "lat", "lon"]
    return _write_tsv(stations, path, columns, "station table")


def write_gamma_table(gamma, path):
    return _write_tsv(gamma, path, GAMMA_COLUMNS, "gamma diversity summary")


def write_monthly_table(monthly, path):
    return _write_tsv(monthly, path, MONTHLY_COLUMNS, "monthly station diversity")
