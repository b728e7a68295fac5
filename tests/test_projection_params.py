import math

import numpy as np
import pytest

from depth_clustering.projection_params import Direction, ProjectionParams, SpanParams


def test_default_span_is_invalid():
    assert SpanParams().valid() is False


def test_span_from_beams_step_and_span():
    span = SpanParams(math.radians(15), math.radians(-15), 16)
    assert span.valid()
    assert span.step * 16 == pytest.approx(math.radians(-30))
    assert span.span == pytest.approx(math.radians(30))


def test_span_from_step_counts_beams():
    span = SpanParams.from_step(0.0, 1.0, 0.25)
    assert span.num_beams == 4
    assert span.step == 0.25


def test_vlp_16_dimensions():
    params = ProjectionParams.vlp_16()
    assert params.rows() == 16
    assert params.cols() == 870
    assert params.size() == 16 * 870
    assert params.angle_from_row(0) == pytest.approx(math.radians(15))
    assert params.h_span() == pytest.approx(math.radians(360))
    assert params.v_span() == pytest.approx(math.radians(30))


@pytest.mark.parametrize(
    "factory,rows",
    [
        (ProjectionParams.hdl_32, 32),
        (ProjectionParams.hdl_64, 64),
        (ProjectionParams.hdl_64_equal, 64),
    ],
)
def test_factories_rows(factory, rows):
    params = factory()
    assert params.rows() == rows
    assert params.cols() == 870
    assert params.validate() is True


def test_hdl_64_second_block_starts_at_its_angle():
    params = ProjectionParams.hdl_64()
    assert params.angle_from_row(0) == pytest.approx(math.radians(2.0))
    assert params.angle_from_row(32) == pytest.approx(math.radians(-8.87))


def test_full_sphere_is_valid():
    params = ProjectionParams.full_sphere()
    assert params.rows() > 0 and params.cols() > 0
    assert params.angle_from_row(0) == pytest.approx(math.radians(-90))


def test_row_round_trip():
    params = ProjectionParams.hdl_64()
    for row in range(params.rows()):
        assert params.row_from_angle(params.angle_from_row(row)) == row


def test_col_round_trip():
    params = ProjectionParams.vlp_16()
    for col in range(0, params.cols(), 37):
        assert params.col_from_angle(params.angle_from_col(col)) == col


def test_closest_clamps_to_edges():
    params = ProjectionParams.vlp_16()
    assert params.row_from_angle(math.radians(100)) == 0
    assert params.row_from_angle(math.radians(-100)) == params.rows() - 1
    assert params.col_from_angle(math.radians(-500)) == 0
    assert params.col_from_angle(math.radians(500)) == params.cols() - 1


def test_angle_from_col_wraps():
    params = ProjectionParams.vlp_16()
    assert params.angle_from_col(-1) == params.angle_from_col(params.cols() - 1)
    assert params.angle_from_col(params.cols()) == params.angle_from_col(0)


def test_angle_from_col_far_out_raises():
    params = ProjectionParams.vlp_16()
    with pytest.raises(IndexError):
        params.angle_from_col(2 * params.cols())


def test_angle_from_row_out_of_range_raises():
    params = ProjectionParams.vlp_16()
    with pytest.raises(IndexError):
        params.angle_from_row(params.rows())
    with pytest.raises(IndexError):
        params.angle_from_row(-1)


def test_sines_and_cosines_match_angles():
    params = ProjectionParams.hdl_32()
    rows = np.array([params.angle_from_row(r) for r in range(params.rows())])
    cols = np.array([params.angle_from_col(c) for c in range(params.cols())])
    np.testing.assert_allclose(params.row_angle_sines(), np.sin(rows))
    np.testing.assert_allclose(params.row_angle_cosines(), np.cos(rows))
    np.testing.assert_allclose(params.col_angle_sines(), np.sin(cols))
    np.testing.assert_allclose(params.col_angle_cosines(), np.cos(cols))


def test_set_span_combines_spans():
    params = ProjectionParams()
    first = SpanParams(0.0, 1.0, 2)
    second = SpanParams(1.0, 2.0, 3)
    params.set_span([first, second], Direction.VERTICAL)
    assert params.rows() == 5
    assert params.angle_from_row(2) == pytest.approx(1.0)
    assert params.v_span() == pytest.approx(2.0)


def test_validate_empty_raises():
    with pytest.raises(ValueError):
        ProjectionParams().validate()


def test_validate_missing_horizontal_raises():
    params = ProjectionParams()
    params.set_span(SpanParams(0.0, 1.0, 4), Direction.VERTICAL)
    with pytest.raises(ValueError):
        params.validate()


def test_from_config_file(tmp_path):
    config = tmp_path / "img.cfg"
    config.write_text("# a comment\n3;2;-10;10;5;-5\n", encoding="utf-8")
    params = ProjectionParams.from_config_file(config)
    assert params.rows() == 2
    assert params.cols() == 3
    assert params.angle_from_row(0) == pytest.approx(math.radians(5))
    assert params.angle_from_row(1) == pytest.approx(math.radians(-5))
    assert params.angle_from_col(0) == pytest.approx(math.radians(-10))


def test_from_config_file_short_line_raises(tmp_path):
    config = tmp_path / "img.cfg"
    config.write_text("3;2;-10\n", encoding="utf-8")
    with pytest.raises(ValueError):
        ProjectionParams.from_config_file(config)


def test_from_config_file_row_mismatch_raises(tmp_path):
    config = tmp_path / "img.cfg"
    config.write_text("3;4;-10;10;5;-5\n", encoding="utf-8")
    with pytest.raises(ValueError):
        ProjectionParams.from_config_file(config)


def test_from_config_file_missing_raises(tmp_path):
    with pytest.raises(OSError):
        ProjectionParams.from_config_file(tmp_path / "absent.cfg")