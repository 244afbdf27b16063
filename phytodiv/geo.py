# phytodiv/geo.py
import numpy as np

from .constants import EARTH_RADIUS_M


def haversine_distance(lon1, lat1, lon2, lat2, radius=EARTH_RADIUS_M):
    """
    Great-circle distance in metres between points given in decimal degrees.

    Inputs broadcast against each other like numpy arrays.
    """
    lon1, lat1, lon2, lat2 = (
        np.deg2rad(np.asarray(v, dtype=float)) for v in (lon1, lat1, lon2, lat2)
    )
    dlon = lon2 - lon1
    dlat = lat2 - lat1
    a = np.sin(dlat / 2.0) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2.0) ** 2
    return 2.0 * radius * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def distance_matrix(lon, lat, radius=EARTH_RADIUS_M):
    """Symmetric N x N haversine distance matrix (metres)."""
    lon = np.asarray(lon, dtype=float)
    lat = np.asarray(lat, dtype=float)
    if lon.shape != lat.shape or lon.ndim != 1:
        raise ValueError("Expected 1-D lon and lat arrays of equal length.")

    d = haversine_distance(lon[:, None], lat[:, None], lon[None, :], lat[None, :], radius)
    d = (d + d.T) / 2.0
    np.fill_diagonal(d, 0.0)
    return d
