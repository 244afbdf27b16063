import numpy as np
import pandas as pd
import pytest

from phytodiv.config import PipelineConfig

RAW_COLUMNS = [
    "eventID",
    "occurrenceID",
    "eventDate",
    "decimalLatitude",
    "decimalLongitude",
    "verbatimLocality",
    "minimumDepthInMeters",
    "maximumDepthInMeters",
    "scientificName",
    "measurementType",
    "measurementValue",
    "measurementUnit",
]


def raw_row(event, date, lat, lon, locality, taxon, value,
            depth="0", mtype="Abundance"):
    return {
        "eventID": event,
        "occurrenceID": f"{event}:{taxon}",
        "eventDate": date,
        "decimalLatitude": str(lat),
        "decimalLongitude": str(lon),
        "verbatimLocality": locality,
        "minimumDepthInMeters": depth,
        "maximumDepthInMeters": depth,
        "scientificName": taxon,
        "measurementType": mtype,
        "measurementValue": str(value),
        "measurementUnit": "cells/L",
    }


@pytest.fixture
def make_raw():
    def _make(rows):
        return pd.DataFrame([raw_row(*r) if isinstance(r, tuple) else r for r in rows],
                            columns=RAW_COLUMNS)
    return _make


@pytest.fixture
def monitoring_raw(make_raw):
    """
    Four surface samples, every one with a total of 100 cells:

    - A (55, 10)      "Anholt"    2020-05-03  a=30+30 (duplicate report), b=40
    - B (55.01, 10.01) "Anholt E" 2020-05-20  a=50, b=50
    - C (60, 30)      "Gulf"      2020-05-10  a=100
    - C (60, 30)      "Gulf"      2020-06-10  a=30, b=30, c=40

    plus rows that must be filtered out.
    """
    return make_raw([
        ("A1", "2020-05-03", 55, 10, "Anholt", "Alpha alpha", 30),
        ("A1", "2020-05-03", 55, 10, "Anholt", "Alpha alpha", 30),
        ("A1", "2020-05-03", 55, 10, "Anholt", "Beta beta", 40),
        ("B1", "2020-05-20T10:30:00Z", 55.01, 10.01, "Anholt E", "Alpha alpha", 50),
        ("B1", "2020-05-20T10:30:00Z", 55.01, 10.01, "Anholt E", "Beta beta", 50),
        ("C1", "2020-05-10", 60, 30, "Gulf", "Alpha alpha", 100),
        ("C2", "2020-06-10", 60, 30, "Gulf", "Alpha alpha", 30),
        ("C2", "2020-06-10", 60, 30, "Gulf", "Beta beta", 30),
        ("C2", "2020-06-10", 60, 30, "Gulf", "Gamma gamma", 40),
        # not surface
        ("C3", "2020-06-10", 60, 30, "Gulf", "Alpha alpha", 500, "10"),
        # not abundance
        ("C2", "2020-06-10", 60, 30, "Gulf", "Alpha alpha", 7.5, "0", "Biomass"),
        # unusable value and date
        ("C2", "2020-06-10", 60, 30, "Gulf", "Delta delta", "n.d."),
        ("D1", "not a date", 60, 30, "Gulf", "Alpha alpha", 10),
        # outside the year selection
        ("E1", "2018-05-10", 60, 30, "Gulf", "Alpha alpha", 1000),
    ])


@pytest.fixture
def config():
    return PipelineConfig(years=(2019, 2020, 2021), alpha_min_depth=10, seed=42)


@pytest.fixture
def rng():
    return np.random.default_rng(12345)
