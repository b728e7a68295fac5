import math

import numpy as np
import pytest

from depth_clustering.cloud_projection import (
    CloudProjection,
    RingProjection,
    SphericalProjection,
)
from depth_clustering.projection_params import ProjectionParams


@pytest.fixture
def params():
    return ProjectionParams.vlp_16()


def test_invalid_params_rejected():
    with pytest.raises(ValueError):
        SphericalProjection(ProjectionParams())


def test_abstract_base_cannot_be_built(params):
    with pytest.raises(TypeError):
        CloudProjection(params)


def test_initial_depth_image_is_empty(params):
    proj = SphericalProjection(params)
    assert proj.depth_image.shape == (params.rows(), params.cols())
    assert proj.depth_image.dtype == np.float32
    assert not proj.depth_image.any()
    assert proj.at(0, 0) == []


def test_spherical_point_lands_in_expected_bin(params):
    proj = SphericalProjection(params)
    proj.init_from_points([(10.0, 0.0, 0.0)])
    row = params.row_from_angle(0.0)
    col = params.col_from_angle(0.0)
    assert proj.depth_image[row, col] == pytest.approx(10.0)
    assert proj.at(row, col) == [0]
    assert np.count_nonzero(proj.depth_image) == 1


def test_spherical_keeps_larger_depth_in_shared_bin(params):
    proj = SphericalProjection(params)
    proj.init_from_points([(5.0, 0.0, 0.0), (8.0, 0.0, 0.0), (6.0, 0.0, 0.0)])
    row = params.row_from_angle(0.0)
    col = params.col_from_angle(0.0)
    assert proj.depth_image[row, col] == pytest.approx(8.0)
    assert proj.at(row, col) == [0, 1, 2]


def test_points_at_origin_are_skipped(params):
    proj = SphericalProjection(params)
    proj.init_from_points([(0.001, 0.0, 0.0)])
    assert not proj.depth_image.any()


def test_empty_cloud_rejected(params):
    with pytest.raises(ValueError):
        SphericalProjection(params).init_from_points([])


def test_unproject_then_project_round_trip(params):
    proj = SphericalProjection(params)
    image = np.zeros((params.rows(), params.cols()), dtype=np.float32)
    image[5, 100] = 7.0
    point = proj.unproject_point(image, 5, 100)
    assert math.sqrt(point.x**2 + point.y**2 + point.z**2) == pytest.approx(7.0, rel=1e-5)
    other = SphericalProjection(params)
    other.init_from_points([point])
    assert other.at(5, 100) == [0]
    assert other.depth_image[5, 100] == pytest.approx(7.0, rel=1e-5)


def test_ring_projection_uses_ring_as_row(params):
    proj = RingProjection(params)
    proj.init_from_points([(3.0, 4.0, 1.0, 3)])
    col = params.col_from_angle(math.atan2(4.0, 3.0))
    assert proj.at(3, col) == [0]
    assert proj.depth_image[3, col] == pytest.approx(5.0)


def test_ring_unproject_sets_ring(params):
    proj = RingProjection(params)
    image = np.full((params.rows(), params.cols()), 4.0, dtype=np.float32)
    point = proj.unproject_point(image, 7, 20)
    assert point.ring == 7
    base = SphericalProjection(params).unproject_point(image, 7, 20)
    assert (point.x, point.y, point.z) == (base.x, base.y, base.z)


def test_corrections_applied_during_spherical_init(params):
    proj = SphericalProjection(params)
    proj.set_corrections([0.5] * params.rows())
    proj.init_from_points([(10.0, 0.0, 0.0)])
    row = params.row_from_angle(0.0)
    col = params.col_from_angle(0.0)
    assert proj.depth_image[row, col] == pytest.approx(9.5)
    assert np.count_nonzero(proj.depth_image) == 1


def test_corrections_of_wrong_length_ignored(params):
    proj = SphericalProjection(params)
    proj.set_corrections([0.5, 0.5])
    proj.init_from_points([(10.0, 0.0, 0.0)])
    assert proj.depth_image.max() == pytest.approx(10.0)


def test_check_image_wrong_dtype(params):
    proj = SphericalProjection(params)
    with pytest.raises(TypeError):
        proj.check_image_and_storage(np.zeros((params.rows(), params.cols()), dtype=np.float64))


def test_check_image_wrong_shape(params):
    proj = SphericalProjection(params)
    with pytest.raises(ValueError):
        proj.check_image_and_storage(np.zeros((3, 3), dtype=np.float32))


def test_clone_is_independent(params):
    proj = SphericalProjection(params)
    proj.init_from_points([(10.0, 0.0, 0.0)])
    copy = proj.clone()
    assert isinstance(copy, SphericalProjection)
    copy.depth_image[:] = 0
    copy.at(0, 0).append(42)
    assert proj.depth_image.max() == pytest.approx(10.0)
    assert proj.at(0, 0) == []


def test_clone_depth_image_copies(params):
    proj = SphericalProjection(params)
    image = np.ones((params.rows(), params.cols()), dtype=np.float32)
    proj.clone_depth_image(image)
    image[0, 0] = 9.0
    assert proj.depth_image[0, 0] == 1.0