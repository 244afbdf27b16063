import numpy as np

FILL_VALUE_FLOAT = np.float64(-99999.0)
FILL_VALUE_INT = np.int32(-99999)

# ---------- clustering ----------
DISTANCE_THRESHOLD_M = 20000.0
EARTH_RADIUS_M = 6378137.0

# ---------- rarefaction ----------
ALPHA_MIN_DEPTH = 10000
GAMMA_MIN_DEPTH = 0

# ---------- filters ----------
MEASUREMENT_TYPE = "Abundance"
SURFACE_DEPTH_M = 0.0

# ---------- time ----------
MONTH_BUCKET_DAY = 15
EPOCH = "1970-01-01"
TIME_UNITS = "days since 1970-01-01 00:00:00"
CALENDAR = "gregorian"

# ---------- WGS84 ----------
WGS84_SEMI_MAJOR_AXIS = 6378137.0
WGS84_INVERSE_FLATTENING = 298.257223563

# ---------- input schema ----------
REQUIRED_COLUMNS = [
    "eventDate",
    "decimalLatitude",
    "decimalLongitude",
    "minimumDepthInMeters",
    "scientificName",
    "measurementType",
    "measurementValue",
]
LOCALITY_COLUMNS = ["verbatimLocality", "locality"]
