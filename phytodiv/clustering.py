# phytodiv/clustering.py
import logging

import numpy as np
import pandas as pd
from scipy.cluster.hierarchy import fcluster, linkage
from scipy.spatial.distance import squareform

from .geo import distance_matrix

LOGGER = logging.getLogger(__name__)

LON_COL = "decimalLongitude"
LAT_COL = "decimalLatitude"

STATION_COLUMNS = ["station_id", "all_station_names", "verbatimLocality", "lat", "lon"]


def renumber_by_first_appearance(labels):
    """Relabel clusters 1..k in the order their first member appears."""
    labels = np.asarray(labels)
    mapping = {}
    for label in labels:
        if label not in mapping:
            mapping[label] = len(mapping) + 1
    return np.array([mapping[label] for label in labels], dtype=int)


def cluster_points(distances, threshold):
    """
    Complete-linkage agglomerative clustering cut at a fixed height.

    Parameters
    ----------
    distances : np.ndarray
        Square, symmetric distance matrix.
    threshold : float
        Dendrogram cut height, in the units of ``distances``.

    Returns
    -------
    np.ndarray of int
        1-based cluster labels, numbered by first appearance.
    """
    distances = np.asarray(distances, dtype=float)
    n = distances.shape[0]
    if n == 0:
        return np.array([], dtype=int)
    if n == 1:
        return np.array([1], dtype=int)

    condensed = squareform(distances, checks=False)
    tree = linkage(condensed, method="complete")
    labels = fcluster(tree, t=threshold, criterion="distance")
    return renumber_by_first_appearance(labels)


def _representative_name(names):
    # most frequent name; ties resolved lexicographically
    counts = names.value_counts()
    best = counts[counts == counts.max()].index
    return sorted(best)[0]


def cluster_stations(df, threshold):
    """
    Cluster the distinct sampling coordinates of a normalized table.

    Returns
    -------
    assignments : pd.DataFrame
        ``decimalLongitude, decimalLatitude, station_id`` per distinct point.
    stations : pd.DataFrame
        ``STATION_COLUMNS``: id, all member names, representative name and
        centroid of each cluster.
    """
    points = df[[LON_COL, LAT_COL]].drop_duplicates().reset_index(drop=True)

    if points.empty:
        LOGGER.warning("No coordinates to cluster")
        return (
            points.assign(station_id=pd.Series(dtype=int)),
            pd.DataFrame(columns=STATION_COLUMNS),
        )

    d = distance_matrix(points[LON_COL].to_numpy(), points[LAT_COL].to_numpy())
    assignments = points.assign(station_id=cluster_points(d, threshold))

    centroids = (
        assignments.groupby("station_id")
        .agg(lon=(LON_COL, "mean"), lat=(LAT_COL, "mean"))
    )

    # one vote per sample, not per taxon row
    samples = (
        df[["positionDate", LON_COL, LAT_COL, "verbatimLocality"]]
        .drop_duplicates(subset=["positionDate"])
        .merge(assignments, on=[LON_COL, LAT_COL], how="left")
    )
    samples = samples.loc[samples["verbatimLocality"].fillna("") != ""]

    names = samples.groupby("station_id")["verbatimLocality"].agg(
        all_station_names=lambda s: ", ".join(sorted(s.unique())),
        verbatimLocality=_representative_name,
    )

    stations = (
        centroids.join(names, how="left")
        .fillna({"all_station_names": "", "verbatimLocality": ""})
        .reset_index()
    )[STATION_COLUMNS]

    LOGGER.info(
        "Clustered %d distinct coordinates into %d stations (threshold %.0f m)",
        len(points), len(stations), threshold,
    )
    return assignments, stations
