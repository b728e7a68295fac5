# depth_clustering

Segmentation building blocks for 3D laser scans that work in range-image space.
A scan is projected into a depth image. Its rows are laser beams and its columns
are horizontal angles. Ground is removed column by column. The remaining pixels
are then grouped into connected components by a breadth-first search that
compares neighbouring depth readings.

All angles are in radians. Depth images are 2D `numpy` arrays of `float32`.
Label images are `uint16` arrays in which 0 means "unlabelled".

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `depth_clustering.projection_params`

This module describes the sensor geometry.

- `Direction` is either `HORIZONTAL` or `VERTICAL`.
- `SpanParams(start_angle, end_angle, num_beams)` is a span split into equally
  spaced beams. `SpanParams.from_step(start, end, step)` derives the beam count
  from a fixed step. `valid()` is true when the span has beams and a non-zero
  extent.
- `ProjectionParams` holds the row and column angles:
  - `set_span(span_or_spans, direction)` sets one span, or several consecutive
    spans, for a direction.
  - `rows()`, `cols()`, `size()`, `h_span()` and `v_span()` report the layout.
  - `angle_from_row(row)` and `angle_from_col(col)` give beam angles. Columns
    wrap once around the image edges. An index out of range raises `IndexError`.
  - `row_from_angle(angle)` and `col_from_angle(angle)` give the closest row or
    column.
  - `row_angle_sines()`, `row_angle_cosines()`, `col_angle_sines()` and
    `col_angle_cosines()` return the precomputed values.
  - `validate()` raises `ValueError` unless the parameters are complete.
  - There are presets: `vlp_16()`, `hdl_32()`, `hdl_64()`, `hdl_64_equal()` and
    `full_sphere(discretization)`.
  - `from_config_file(path)` reads the geometry from a text file. Each line has
    the form `cols;rows;h_start;h_end;row_angle_1;...;row_angle_n`, with angles
    in degrees. Lines starting with `#` are skipped. A malformed line raises
    `ValueError`, and so does a row count that does not match the row angles.

### `depth_clustering.pixel_coord`

`PixelCoord(row, col)` is a frozen pair. Adding two of them adds their
components.

### `depth_clustering.cloud_projection`

These classes turn a sequence of points into a depth image.

- `SphericalProjection(params)` bins each point by its elevation and azimuth.
  It keeps the largest distance per pixel. After binning it applies the per-row
  corrections set with `set_corrections(...)`, if there is one correction for
  each row.
- `RingProjection(params)` takes the row from each point's laser ring and the
  column from its azimuth. It stores the horizontal distance.

Points may be objects with `x`, `y`, `z` attributes, or sequences `(x, y, z)`.
For `RingProjection` the ring comes from a `ring` attribute or from a fourth
item. Points closer than 0.01 to the sensor are ignored.

After `init_from_points(points)`, the following are available:

- `depth_image` holds the depth image.
- `at(row, col)` lists the indices of the points that fell into a pixel.
- `unproject_point(image, row, col)` recovers the 3D point of a pixel.
- `clone()` returns an independent copy.

### Difference measures

Each measure compares two neighbouring pixels.

- `simple_diff.SimpleDiff(image)` uses the absolute value difference. It is
  satisfied when the difference is below the threshold.
- `angle_diff.AngleDiff(image, params)` and `AngleDiffPrecomputed(image, params)`
  use the incline angle of the line through two beam endpoints. They are
  satisfied when the angle is above the threshold. The precomputed variant also
  offers `visualize()`, which returns a colour image, and `get_beta(...)`.
- `line_dist_diff.LineDistDiff(image, params)` and
  `LineDistDiffPrecomputed(image, params)` use the distance of the farther
  endpoint to that line. The precomputed variant offers `visualize()` and
  `get_line_dist(...)`.
- `diff_factory.build_diff(diff_type, image, params)` builds any of these from
  a `DiffType`. `DiffType.NONE` raises `ValueError`, and so does a kind that
  needs parameters when it is given none.

### `depth_clustering.hash_queue`

`HashQueue` is a FIFO queue of `PixelCoord`. Its `in` test covers every
coordinate ever pushed, including those already popped.

### `depth_clustering.image_labeler`

- `LinearImageLabeler(depth_image, params, angle_threshold)` labels connected
  components with a breadth-first search. Columns wrap around the image edges.
  - `compute_labels(diff_type)` labels the whole image, with labels from 1.
  - `label_one_component(label, start, diff_helper)` labels a single component.
  - `label_image()` returns the result.
- `labels_to_color(label_image)` maps each label to a fixed RGB colour.

### `depth_clustering.ground_removal`

`DepthGroundRemover(params, ground_remove_angle, window_size=5)` removes ground
from a depth image. `remove_ground(depth_image)` returns the image with ground
pixels set to zero. It does this in four steps:

1. It fills small gaps (`repair_depth`).
2. It computes the incline between rows (`create_angle_image`).
3. It smooths each column with a Savitsky-Golay filter
   (`apply_savitsky_golay_smoothing`; window sizes 5, 7, 9 or 11).
4. It grows the ground upwards from the bottom of each column
   (`zero_out_ground_bfs`).

The module also exposes `savitsky_golay_kernel(window_size)` and
`uniform_kernel(window_size)`.

Progress messages go to the standard `logging` module.

## Example

```python
import numpy as np

from depth_clustering.diff_factory import DiffType
from depth_clustering.ground_removal import DepthGroundRemover
from depth_clustering.image_labeler import LinearImageLabeler
from depth_clustering.projection_params import ProjectionParams

params = ProjectionParams.vlp_16()
depth = np.zeros((params.rows(), params.cols()), dtype=np.float32)
# ... fill `depth`, e.g. from RingProjection(params).depth_image ...

remover = DepthGroundRemover(params, np.radians(5.0), window_size=5)
no_ground = remover.remove_ground(depth)

labeler = LinearImageLabeler(no_ground, params, np.radians(10.0))
labeler.compute_labels(DiffType.ANGLES)
labels = labeler.label_image()
```

## What this package does not do

This is a library only. It has:

- no command-line program;
- no viewer or other graphical display;
- no readers for scan files on disk;
- no step that turns a label image into separate per-object point clouds or
  bounding boxes.

The only file it reads is a projection configuration, through
`ProjectionParams.from_config_file`. Loading scans, and deciding what to do with
the labels, is left to the caller.