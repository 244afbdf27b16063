"""
Metadata definition for the gridded phytoplankton diversity product.

This file holds the dimension, variable and CF/ACDD attribute definitions
of the output NetCDF file. No numerical calculations or I/O operations
should appear in this file.
"""

from datetime import datetime, timezone

import numpy as np

from .constants import (
    CALENDAR,
    TIME_UNITS,
    WGS84_INVERSE_FLATTENING,
    WGS84_SEMI_MAJOR_AXIS,
)
from .time_utils import epoch_days_to_iso

DEFAULT_GLOBAL_ATTRS = {
    "Conventions": "CF-1.8",
    "title": "Phytoplankton alpha diversity (Shannon index and richness), monthly gridded",
    "summary": (
        "Monthly alpha diversity of surface phytoplankton communities. "
        "Sampling positions within a fixed great-circle distance were merged "
        "into stations by complete-linkage hierarchical clustering. Every "
        "sample was rarefied once to a common count depth; Shannon index "
        "(natural log) and richness were averaged per station and month and "
        "placed on the grid of station centroids."
    ),
    "keywords": "phytoplankton, biodiversity, Shannon index, species richness, alpha diversity",
    "license": "CC-BY-4.0",
    "citation": "",
    "source": "Phytoplankton occurrence and abundance records (Darwin Core)",
    "creator_name": "",
    "creator_email": "",
    "creator_url": "",
    "creator_institution": "",
    "publisher_name": "",
    "publisher_email": "",
    "publisher_url": "",
    "processing_level": "Rarefied, clustered and gridded",
    "comment": (
        "Cells without a sampled station-month carry the fill value -99999. "
        "Richness is the station-month mean rounded to the nearest integer."
    ),
}


def build_metadata(grid, global_attrs=None, history=None):
    """
    Build dimension, variable and global-attribute dictionaries for a grid.

    Parameters
    ----------
    grid : DiversityGrid
    global_attrs : dict, optional
        Overrides merged over ``DEFAULT_GLOBAL_ATTRS``.
    history : str, optional
        Provenance line prepended to the history attribute.
    """
    fill = grid.fill_value

    # ==========================================================
    # Dimensions
    # ==========================================================
    dimensions = {
        "lon": grid.lon.size,
        "lat": grid.lat.size,
        "time": grid.time.size,
    }

    # ==========================================================
    # Variables
    # ==========================================================
    variables = {
        "lon": {
            "dtype": "f8",
            "dims": ("lon",),
            "data": grid.lon,
            "attrs": {
                "standard_name": "longitude",
                "long_name": "station cluster centroid longitude",
                "units": "degrees_east",
                "axis": "X",
            },
        },
        "lat": {
            "dtype": "f8",
            "dims": ("lat",),
            "data": grid.lat,
            "attrs": {
                "standard_name": "latitude",
                "long_name": "station cluster centroid latitude",
                "units": "degrees_north",
                "axis": "Y",
            },
        },
        "time": {
            "dtype": "f8",
            "dims": ("time",),
            "data": grid.time,
            "attrs": {
                "standard_name": "time",
                "long_name": "time",
                "units": TIME_UNITS,
                "calendar": CALENDAR,
                "axis": "T",
                "comment": "Monthly buckets; every value is the 15th day of its month.",
            },
        },
        "crs": {
            "dtype": "i4",
            "dims": (),
            "data": None,
            "attrs": {
                "long_name": "coordinate reference system",
                "grid_mapping_name": "latitude_longitude",
                "semi_major_axis": WGS84_SEMI_MAJOR_AXIS,
                "inverse_flattening": WGS84_INVERSE_FLATTENING,
                "longitude_of_prime_meridian": 0.0,
                "epsg_code": "EPSG:4326",
                "crs_wkt": (
                    'GEOGCS["WGS 84",DATUM["WGS_1984",SPHEROID["WGS 84",'
                    f'{WGS84_SEMI_MAJOR_AXIS},{WGS84_INVERSE_FLATTENING}]],'
                    'PRIMEM["Greenwich",0],UNIT["degree",0.0174532925199433]]'
                ),
            },
        },
        "shannon": {
            "dtype": "f8",
            "dims": ("lon", "lat", "time"),
            "fill_value": float(fill),
            "data": grid.shannon,
            "attrs": {
                "long_name": "Shannon index of phytoplankton alpha diversity",
                "units": "1",
                "grid_mapping": "crs",
                "coordinates": "lon lat time",
                "comment": (
                    "H' = -sum(p_i ln p_i) over rarefied taxon proportions; "
                    "station-month mean."
                ),
            },
        },
        "richness": {
            "dtype": "i4",
            "dims": ("lon", "lat", "time"),
            "fill_value": np.int32(fill),
            "data": grid.richness,
            "attrs": {
                "long_name": "phytoplankton taxon richness",
                "units": "1",
                "grid_mapping": "crs",
                "coordinates": "lon lat time",
                "comment": "Number of taxa present after rarefaction; station-month mean, rounded.",
            },
        },
    }

    # ==========================================================
    # Global attributes (CF-1.8 / ACDD-1.3)
    # ==========================================================
    attrs = dict(DEFAULT_GLOBAL_ATTRS)
    attrs.update(global_attrs or {})

    now = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    attrs["date_created"] = now

    if grid.lon.size and grid.lat.size:
        attrs.update(
            {
                "geospatial_lon_min": float(grid.lon.min()),
                "geospatial_lon_max": float(grid.lon.max()),
                "geospatial_lat_min": float(grid.lat.min()),
                "geospatial_lat_max": float(grid.lat.max()),
                "geospatial_lon_units": "degrees_east",
                "geospatial_lat_units": "degrees_north",
            }
        )
    if grid.time.size:
        attrs["time_coverage_start"] = epoch_days_to_iso(grid.time.min())
        attrs["time_coverage_end"] = epoch_days_to_iso(grid.time.max())
        attrs["time_coverage_resolution"] = "P1M"

    line = f"{now}: {history or 'created by phytodiv'}"
    attrs["history"] = f"{line}\n{attrs['history']}" if attrs.get("history") else line

    return dimensions, variables, attrs
