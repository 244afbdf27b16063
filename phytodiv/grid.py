"""
Assembly of sparse station-month diversity values onto a dense
(lon, lat, time) grid.

Axes are the sorted unique centroid longitudes, latitudes and monthly time
stamps (days since 1970-01-01). Every cell without a station-month keeps the
fill value. Arrays are C-ordered over (lon, lat, time), so in the flattened
view time varies fastest, then lat, then lon, matching the dimension order
of the NetCDF variables.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
import xarray as xr

from .constants import CALENDAR, FILL_VALUE_INT, TIME_UNITS
from .errors import GridMismatchError

LOGGER = logging.getLogger(__name__)

KEY_COLUMNS = ["lon", "lat", "time"]


@dataclass(frozen=True)
class DiversityGrid:
    lon: np.ndarray
    lat: np.ndarray
    time: np.ndarray
    shannon: np.ndarray
    richness: np.ndarray
    fill_value: int = int(FILL_VALUE_INT)

    @property
    def shape(self):
        return (self.lon.size, self.lat.size, self.time.size)

    @property
    def flat_shannon(self):
        return self.shannon.reshape(-1)

    @property
    def flat_richness(self):
        return self.richness.reshape(-1)

    @property
    def n_populated(self):
        return int(np.count_nonzero(self.richness != self.fill_value))

    def to_xarray(self):
        """Labelled view of the grid; fill values become NaN."""
        shannon = np.where(self.shannon == self.fill_value, np.nan, self.shannon)
        richness = np.where(self.richness == self.fill_value, np.nan, self.richness)
        return xr.Dataset(
            {
                "shannon": (("lon", "lat", "time"), shannon),
                "richness": (("lon", "lat", "time"), richness),
            },
            coords={
                "lon": ("lon", self.lon, {"units": "degrees_east"}),
                "lat": ("lat", self.lat, {"units": "degrees_north"}),
                "time": ("time", self.time, {"units": TIME_UNITS, "calendar": CALENDAR}),
            },
        )


def _axis(values, given, name):
    if given is not None:
        axis = np.asarray(given, dtype=float)
        if axis.ndim != 1 or np.unique(axis).size != axis.size:
            raise GridMismatchError(f"Axis {name!r} must be 1-D with unique values")
        return np.sort(axis)
    return np.sort(pd.unique(np.asarray(values, dtype=float)))


def assemble_grid(monthly, fill_value=int(FILL_VALUE_INT), lon=None, lat=None, time=None):
    """
    Left-join station-month diversity onto the full lon x lat x time product.

    Parameters
    ----------
    monthly : pd.DataFrame
        Columns ``lon, lat, time, richness, shannon``; ``time`` in days
        since 1970-01-01.
    fill_value : int
        Value of grid cells with no station-month.
    lon, lat, time : array-like, optional
        Explicit axes. Defaults are the sorted unique values of ``monthly``.

    Raises
    ------
    GridMismatchError
        If a (lon, lat, time) triple occurs twice or lies off the axes.
    """
    lon_axis = _axis(monthly["lon"], lon, "lon")
    lat_axis = _axis(monthly["lat"], lat, "lat")
    time_axis = _axis(monthly["time"], time, "time")

    keys = monthly[KEY_COLUMNS].astype(float)
    dup = keys.duplicated(keep=False)
    if dup.any():
        raise GridMismatchError(
            f"{int(dup.sum())} diversity rows share a (lon, lat, time) cell:\n"
            f"{keys.loc[dup].head().to_string(index=False)}"
        )

    full = pd.MultiIndex.from_product([lon_axis, lat_axis, time_axis], names=KEY_COLUMNS)
    values = monthly.assign(**{c: keys[c] for c in KEY_COLUMNS}).set_index(KEY_COLUMNS)

    off_axis = ~values.index.isin(full)
    if off_axis.any():
        raise GridMismatchError(
            f"{int(off_axis.sum())} diversity rows fall outside the grid axes"
        )

    dense = values[["shannon", "richness"]].reindex(full)
    shape = (lon_axis.size, lat_axis.size, time_axis.size)

    shannon = dense["shannon"].to_numpy(dtype=float)
    shannon = np.where(np.isnan(shannon), float(fill_value), shannon)

    richness = dense["richness"].to_numpy(dtype=float)
    richness = np.where(np.isnan(richness), fill_value, np.rint(richness)).astype(np.int32)

    grid = DiversityGrid(
        lon=lon_axis,
        lat=lat_axis,
        time=time_axis,
        shannon=shannon.reshape(shape),
        richness=richness.reshape(shape),
        fill_value=int(fill_value),
    )
    LOGGER.info(
        "Assembled grid lon=%d x lat=%d x time=%d (%d of %d cells populated)",
        *shape, grid.n_populated, grid.flat_richness.size,
    )
    return grid
