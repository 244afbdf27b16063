# phytodiv/time_utils.py
import numpy as np
import pandas as pd

from .constants import EPOCH, MONTH_BUCKET_DAY


def month_bucket(dates):
    """Map each date to the MONTH_BUCKET_DAY of its month."""
    dates = pd.to_datetime(pd.Series(dates))
    start = dates.dt.to_period("M").dt.to_timestamp()
    return start + pd.Timedelta(days=MONTH_BUCKET_DAY - 1)


def days_since_epoch(times):
    times = pd.to_datetime(pd.Series(times))
    delta = times - pd.Timestamp(EPOCH)
    return (delta / pd.Timedelta(days=1)).to_numpy(dtype=np.float64)


def epoch_days_to_iso(days):
    if days is None or not np.isfinite(days):
        return ""
    ts = pd.Timestamp(EPOCH) + pd.Timedelta(days=float(days))
    return ts.strftime("%Y-%m-%d")
