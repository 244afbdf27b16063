import numpy as np
import pandas as pd
import pytest

from phytodiv.errors import GridMismatchError
from phytodiv.grid import assemble_grid


def _monthly(rows):
    return pd.DataFrame(rows, columns=["lon", "lat", "time", "richness", "shannon"])


def test_sparse_value_on_explicit_axes():
    monthly = _monthly([(10.0, 55.0, 18000.0, 4, 1.2)])
    grid = assemble_grid(monthly, -99999, lon=[10, 11], lat=[55, 56], time=[18000, 18031])

    assert grid.shape == (2, 2, 2)
    assert grid.flat_shannon.size == 8
    assert grid.n_populated == 1
    assert grid.shannon[0, 0, 0] == pytest.approx(1.2)
    assert grid.richness[0, 0, 0] == 4
    assert (grid.flat_richness == -99999).sum() == 7
    assert (grid.flat_shannon == -99999).sum() == 7


def test_axes_default_to_sorted_unique_values():
    monthly = _monthly([
        (30.0, 60.0, 18031.0, 3, 1.0),
        (10.0, 55.0, 18000.0, 2, 0.5),
        (30.0, 60.0, 18000.0, 1, 0.0),
    ])
    grid = assemble_grid(monthly)

    np.testing.assert_array_equal(grid.lon, [10.0, 30.0])
    np.testing.assert_array_equal(grid.lat, [55.0, 60.0])
    np.testing.assert_array_equal(grid.time, [18000.0, 18031.0])
    assert grid.flat_richness.size == 8
    assert grid.n_populated == 3


def test_flattened_order_has_time_fastest():
    monthly = _monthly([
        (10.0, 55.0, 1.0, 1, 0.1),
        (10.0, 55.0, 2.0, 2, 0.2),
        (10.0, 56.0, 1.0, 3, 0.3),
        (11.0, 55.0, 1.0, 4, 0.4),
    ])
    grid = assemble_grid(monthly)
    # (lon, lat, time): 10/55/1, 10/55/2, 10/56/1, 10/56/2, 11/55/1, ...
    assert grid.flat_richness.tolist() == [1, 2, 3, -99999, 4, -99999, -99999, -99999]


def test_every_value_lands_in_exactly_one_cell():
    rng = np.random.default_rng(3)
    rows = {(float(rng.integers(0, 5)), float(rng.integers(50, 53)), float(rng.integers(0, 4)))
            for _ in range(30)}
    monthly = _monthly([(lon, lat, t, i + 1, 0.5) for i, (lon, lat, t) in enumerate(sorted(rows))])
    grid = assemble_grid(monthly)

    assert grid.flat_richness.size == grid.lon.size * grid.lat.size * grid.time.size
    assert grid.n_populated == len(monthly)
    assert sorted(grid.flat_richness[grid.flat_richness != -99999]) == list(range(1, len(monthly) + 1))


def test_richness_mean_is_rounded():
    grid = assemble_grid(_monthly([(10.0, 55.0, 1.0, 2.6, 0.5)]))
    assert grid.richness.dtype == np.int32
    assert grid.richness[0, 0, 0] == 3


def test_duplicate_cell_is_rejected():
    monthly = _monthly([(10.0, 55.0, 1.0, 1, 0.1), (10.0, 55.0, 1.0, 2, 0.2)])
    with pytest.raises(GridMismatchError):
        assemble_grid(monthly)


def test_value_off_axes_is_rejected():
    monthly = _monthly([(10.0, 55.0, 1.0, 1, 0.1)])
    with pytest.raises(GridMismatchError):
        assemble_grid(monthly, lon=[11.0], lat=[55.0], time=[1.0])


def test_to_xarray_masks_fill_values():
    monthly = _monthly([(10.0, 55.0, 18000.0, 4, 1.2)])
    ds = assemble_grid(monthly, lon=[10, 11], lat=[55], time=[18000]).to_xarray()

    assert ds["shannon"].dims == ("lon", "lat", "time")
    assert float(ds["shannon"].sel(lon=10, lat=55, time=18000)) == pytest.approx(1.2)
    assert np.isnan(float(ds["richness"].sel(lon=11, lat=55, time=18000)))
