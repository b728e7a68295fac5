"""Construction of difference helpers by kind."""

from __future__ import annotations

from enum import Enum

import numpy as np

from depth_clustering.abstract_diff import AbstractDiff
from depth_clustering.angle_diff import AngleDiff, AngleDiffPrecomputed
from depth_clustering.line_dist_diff import LineDistDiff, LineDistDiffPrecomputed
from depth_clustering.projection_params import ProjectionParams
from depth_clustering.simple_diff import SimpleDiff


class DiffType(Enum):
    """Kind of difference measure between neighbouring pixels."""

    SIMPLE = "simple"
    ANGLES = "angles"
    ANGLES_PRECOMPUTED = "angles_precomputed"
    LINE_DIST = "line_dist"
    LINE_DIST_PRECOMPUTED = "line_dist_precomputed"
    NONE = "none"


_WITH_PARAMS = {
    DiffType.ANGLES: AngleDiff,
    DiffType.ANGLES_PRECOMPUTED: AngleDiffPrecomputed,
    DiffType.LINE_DIST: LineDistDiff,
    DiffType.LINE_DIST_PRECOMPUTED: LineDistDiffPrecomputed,
}


def build_diff(
    diff_type: DiffType,
    source_image: np.ndarray,
    params: ProjectionParams | None = None,
) -> AbstractDiff:
    """Build the difference helper of the given kind over ``source_image``.

    Raises ValueError for ``DiffType.NONE`` and when a kind that needs
    projection parameters is built without them.
    """
    if diff_type is DiffType.SIMPLE:
        return SimpleDiff(source_image)
    if diff_type is DiffType.NONE:
        raise ValueError("DiffType is NONE. Please set it.")
    if params is None:
        raise ValueError(f"{diff_type.name} difference needs projection parameters")
    return _WITH_PARAMS[diff_type](source_image, params)