# phytodiv/cf_writer.py
import logging
import os
import tempfile

from netCDF4 import Dataset

LOGGER = logging.getLogger(__name__)


def write_netcdf(filepath, dimensions, variables, global_attrs):
    """
    Generic CF/ACDD NetCDF writer.

    The file is written to a temporary sibling and renamed into place once
    complete, so a failed write never leaves a partial ``filepath`` behind.

    Parameters
    ----------
    filepath : str
    dimensions : dict
        e.g. {"lon": 12, "lat": 9, "time": 48}
    variables : dict
        key = variable name
        value = {
            "dtype": "f8" / "i4" / ...
            "dims": ("lon", "lat", "time") or ()
            "fill_value": -99999
            "data": scalar, array or None
            "attrs": {attribute_name: attribute_value}
        }
    global_attrs : dict
        global NetCDF attributes
    """
    directory = os.path.dirname(os.path.abspath(filepath))
    os.makedirs(directory, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(suffix=".nc.tmp", dir=directory)
    os.close(fd)

    try:
        with Dataset(tmp_path, "w", format="NETCDF4") as nc:
            # -------------------------
            # Dimensions
            # -------------------------
            for dim, size in dimensions.items():
                nc.createDimension(dim, size)

            # -------------------------
            # Variables
            # -------------------------
            for varname, meta in variables.items():
                var = nc.createVariable(
                    varname,
                    meta["dtype"],
                    meta.get("dims", ()),
                    fill_value=meta.get("fill_value"),
                )
                for k, v in meta.get("attrs", {}).items():
                    var.setncattr(k, v)

                if meta.get("data") is not None:
                    var[...] = meta["data"]

            # -------------------------
            # Global attributes
            # -------------------------
            nc.setncatts(dict(global_attrs))

        os.replace(tmp_path, filepath)
    except Exception:
        LOGGER.error("Failed to write %s; removing partial output", filepath)
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

    LOGGER.info("Wrote %s", filepath)
    return filepath
