import math

import numpy as np
import pytest

from depth_clustering.diff_factory import DiffType, build_diff
from depth_clustering.image_labeler import (
    AbstractImageLabeler,
    LinearImageLabeler,
    labels_to_color,
)
from depth_clustering.pixel_coord import PixelCoord
from depth_clustering.projection_params import Direction, ProjectionParams, SpanParams


@pytest.fixture
def params():
    p = ProjectionParams()
    p.set_span(SpanParams(math.radians(-180), math.radians(180), 8), Direction.HORIZONTAL)
    p.set_span(SpanParams(math.radians(10), math.radians(-10), 4), Direction.VERTICAL)
    return p


def test_uniform_image_is_one_component(params):
    depth = np.full((4, 8), 5.0, dtype=np.float32)
    labeler = LinearImageLabeler(depth, params, 0.5)
    labeler.compute_labels(DiffType.SIMPLE)
    assert labeler.label_image().tolist() == [[1] * 8] * 4


def test_two_blocks_get_two_labels(params):
    depth = np.full((4, 8), 5.0, dtype=np.float32)
    depth[:, 4:] = 10.0
    labeler = LinearImageLabeler(depth, params, 0.5)
    labeler.compute_labels(DiffType.SIMPLE)
    assert labeler.label_image().tolist() == [[1, 1, 1, 1, 2, 2, 2, 2]] * 4


def test_zero_depth_stays_unlabelled(params):
    depth = np.zeros((4, 8), dtype=np.float32)
    depth[1, 2] = 3.0
    labeler = LinearImageLabeler(depth, params, 0.5)
    labeler.compute_labels(DiffType.SIMPLE)
    labels = labeler.label_image()
    assert labels[1, 2] == 1
    assert int(labels.sum()) == 1


def test_components_wrap_around_columns(params):
    depth = np.zeros((4, 8), dtype=np.float32)
    depth[0, 0] = 5.0
    depth[0, 7] = 5.0
    labeler = LinearImageLabeler(depth, params, 0.5)
    labeler.compute_labels(DiffType.SIMPLE)
    labels = labeler.label_image()
    assert labels[0, 0] == labels[0, 7] == 1
    assert int(np.count_nonzero(labels)) == 2


def test_angle_diff_uniform_depth_single_label(params):
    depth = np.full((4, 8), 5.0, dtype=np.float32)
    labeler = LinearImageLabeler(depth, params, math.radians(10))
    labeler.compute_labels(DiffType.ANGLES)
    assert labeler.label_image().tolist() == [[1] * 8] * 4


def test_label_one_component_from_start(params):
    depth = np.full((4, 8), 5.0, dtype=np.float32)
    depth[:, 4:] = 10.0
    labeler = LinearImageLabeler(depth, params, 0.5)
    helper = build_diff(DiffType.SIMPLE, depth)
    labeler.label_one_component(7, PixelCoord(2, 5), helper)
    assert labeler.label_image().tolist() == [[0, 0, 0, 0, 7, 7, 7, 7]] * 4


def test_wrap_cols(params):
    labeler = LinearImageLabeler(np.ones((4, 8), dtype=np.float32), params, 0.5)
    assert labeler.wrap_cols(-1) == 7
    assert labeler.wrap_cols(8) == 0
    assert labeler.wrap_cols(3) == 3


def test_set_label_and_depth_at(params):
    depth = np.arange(32, dtype=np.float32).reshape(4, 8)
    labeler = LinearImageLabeler(depth, params, 0.5)
    labeler.set_label(PixelCoord(2, 3), 42)
    assert labeler.label_at(PixelCoord(2, 3)) == 42
    assert labeler.depth_at(PixelCoord(2, 3)) == depth[2, 3]


def test_neighborhood_order(params):
    labeler = LinearImageLabeler(np.ones((4, 8), dtype=np.float32), params, 0.5)
    assert labeler.neighborhood == (
        PixelCoord(-1, 0),
        PixelCoord(1, 0),
        PixelCoord(0, -1),
        PixelCoord(0, 1),
    )


def test_set_depth_image_replaces_source(params):
    labeler = LinearImageLabeler(np.zeros((4, 8), dtype=np.float32), params, 0.5)
    labeler.set_depth_image(np.full((4, 8), 2.0, dtype=np.float32))
    labeler.compute_labels(DiffType.SIMPLE)
    assert labeler.label_image().tolist() == [[1] * 8] * 4


def test_none_diff_type_raises(params):
    labeler = LinearImageLabeler(np.ones((4, 8), dtype=np.float32), params, 0.5)
    with pytest.raises(ValueError):
        labeler.compute_labels(DiffType.NONE)


def test_abstract_labeler_cannot_be_instantiated(params):
    with pytest.raises(TypeError):
        AbstractImageLabeler(np.ones((4, 8), dtype=np.float32), params, 0.5)


def test_labels_to_color():
    labels = np.array([[0, 1], [200, 201]], dtype=np.uint16)
    colors = labels_to_color(labels)
    assert colors.shape == (2, 2, 3)
    assert colors.dtype == np.uint8
    assert tuple(colors[0, 0]) == (104, 109, 253)
    assert tuple(colors[0, 1]) == (125, 232, 153)
    assert np.array_equal(colors[1, 0], colors[0, 0])
    assert np.array_equal(colors[1, 1], colors[0, 1])


def test_last_palette_entry_used_for_label_199():
    colors = labels_to_color(np.array([[199, 399]], dtype=np.uint16))
    assert tuple(colors[0, 0]) == (100, 156, 216)
    assert tuple(colors[0, 1]) == (100, 156, 216)