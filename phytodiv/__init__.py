"""
phytodiv: alpha- and gamma-diversity of phytoplankton monitoring data,
exported as a gridded CF-1.8 NetCDF time series.
"""

__version__ = "0.1.0"
