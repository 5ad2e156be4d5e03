"""
tests/test_projections.py
=========================
Vectorised frame projections and distances must agree with the scalar
functions in geoar.core.transform row by row.
"""

import os
import sys

import numpy as np
import pandas as pd
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from geoar.core.projections import (
    Equirectangular,
    ProjectionFactory,
    TransverseMercator,
    distances_from,
    project_frame,
)
from geoar.core.transform import distance_meters, project
from geoar.domain.schemas import GeoFix, GeoOrigin
from geoar.errors import ErrorKind

ORIGIN = GeoOrigin(latitude=-33.4489, longitude=-70.6693, altitude=570.0)


@pytest.fixture(scope="module")
def points_df():
    """Five points within ~1.5 km of the origin."""
    return pd.DataFrame({
        "Point": ["P0", "P1", "P2", "P3", "P4"],
        "Lat":   [-33.4489, -33.4449, -33.4529, -33.4489, -33.4400],
        "Lon":   [-70.6693, -70.6693, -70.6650, -70.6750, -70.6600],
        "h":     [570.0, 575.5, 568.0, 570.0, 590.25],
    })


def _scalar_positions(df):
    rows = []
    for lat, lon, h in zip(df["Lat"], df["Lon"], df["h"]):
        pos = project(ORIGIN, GeoFix(latitude=lat, longitude=lon, altitude=h)).unwrap()
        rows.append((pos.x, pos.y, pos.z))
    return np.array(rows)


# ===========================================================================
# 1. EQUIRECTANGULAR
# ===========================================================================

class TestEquirectangular:

    def test_matches_scalar_projection(self, points_df):
        out = project_frame(points_df, ORIGIN).unwrap()
        np.testing.assert_allclose(
            out[["X", "Y", "Z"]].to_numpy(),
            _scalar_positions(points_df),
            rtol=1e-12,
            atol=1e-9,
            err_msg="vectorised projection diverged from scalar projection",
        )

    def test_origin_row_is_zero(self, points_df):
        out = Equirectangular().project(points_df, ORIGIN)
        assert out.loc[0, ["X", "Y", "Z"]].tolist() == [0.0, 0.0, 0.0]

    def test_input_frame_is_not_modified(self, points_df):
        before = points_df.copy()
        project_frame(points_df, ORIGIN)
        pd.testing.assert_frame_equal(points_df, before)
        assert "Point" in project_frame(points_df, ORIGIN).unwrap().columns


# ===========================================================================
# 2. TRANSVERSE MERCATOR (pyproj)
# ===========================================================================

class TestTransverseMercator:

    def test_origin_maps_to_zero(self, points_df):
        out = TransverseMercator().project(points_df, ORIGIN)
        np.testing.assert_allclose(out.loc[0, ["X", "Y", "Z"]].to_numpy(dtype=float), [0.0, 0.0, 0.0], atol=1e-6)

    def test_agrees_with_equirectangular_locally(self, points_df):
        tm = project_frame(points_df, ORIGIN, method="tm").unwrap()
        eq = project_frame(points_df, ORIGIN, method="equirectangular").unwrap()
        # Sphere vs. WGS84 ellipsoid differ by well under 1% at this scale.
        np.testing.assert_allclose(tm["X"], eq["X"], rtol=1e-2, atol=1e-3)
        np.testing.assert_allclose(tm["Z"], eq["Z"], rtol=1e-2, atol=1e-3)
        np.testing.assert_allclose(tm["Y"], eq["Y"])


class TestFactory:

    def test_known_methods(self):
        assert isinstance(ProjectionFactory.create("equirectangular"), Equirectangular)
        assert isinstance(ProjectionFactory.create("tm"), TransverseMercator)

    def test_unknown_method_raises(self):
        with pytest.raises(ValueError):
            ProjectionFactory.create("mercator")


# ===========================================================================
# 3. VALIDATION
# ===========================================================================

class TestFrameValidation:

    def test_out_of_range_row_fails_batch(self, points_df):
        bad = points_df.copy()
        bad.loc[2, "Lat"] = 91.0
        result = project_frame(bad, ORIGIN)
        assert result.error.kind is ErrorKind.INVALID_COORDINATE
        assert "[2]" in result.error.message

    def test_nan_row_fails_batch(self, points_df):
        bad = points_df.copy()
        bad.loc[1, "Lon"] = np.nan
        assert project_frame(bad, ORIGIN).error.kind is ErrorKind.INVALID_COORDINATE

    def test_missing_column_raises(self, points_df):
        with pytest.raises(ValueError):
            project_frame(points_df.drop(columns=["h"]), ORIGIN)


# ===========================================================================
# 4. DISTANCES
# ===========================================================================

class TestDistancesFrom:

    def test_matches_scalar_haversine(self, points_df):
        ref = GeoFix(latitude=ORIGIN.latitude, longitude=ORIGIN.longitude)
        got = distances_from(points_df, ref).unwrap()
        expected = [
            distance_meters(ref, GeoFix(latitude=lat, longitude=lon)).unwrap()
            for lat, lon in zip(points_df["Lat"], points_df["Lon"])
        ]
        np.testing.assert_allclose(got, expected, rtol=1e-12, atol=1e-9)
        assert got[0] == 0.0

    def test_invalid_reference(self, points_df):
        result = distances_from(points_df, GeoFix(latitude=0.0, longitude=181.0))
        assert result.error.kind is ErrorKind.INVALID_COORDINATE


class TestTransverseMercatorErrors:

    def test_crs_failure_is_mapped_to_runtime_error(self, points_df):
        # model_construct skips validation, standing in for an origin no
        # caller can build through the normal constructor.
        bad_origin = GeoOrigin.model_construct(latitude=95.0, longitude=0.0, altitude=0.0)
        with pytest.raises(RuntimeError, match="TM Projection failed"):
            TransverseMercator().project(points_df, bad_origin)
