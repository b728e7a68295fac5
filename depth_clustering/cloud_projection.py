"""Projections of 3D point clouds onto range (depth) images."""

from __future__ import annotations

import copy
import logging
import math
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, NamedTuple, Sequence

import numpy as np

from depth_clustering.projection_params import ProjectionParams

logger = logging.getLogger(__name__)

_MIN_POINT_DIST = 0.01
_MIN_DEPTH = 0.001


class ProjectionType(Enum):
    """Kind of projection used to build a range image."""

    SPHERICAL = "spherical"
    CYLLINDRICAL = "cyllindrical"


class _Point(NamedTuple):
    x: float
    y: float
    z: float
    ring: int = 0


def _xyz(point: Any) -> tuple[float, float, float]:
    """Coordinates of a point given as an object with x, y, z or as a sequence."""
    if hasattr(point, "x"):
        return float(point.x), float(point.y), float(point.z)
    return float(point[0]), float(point[1]), float(point[2])


def _ring(point: Any) -> int:
    """Laser ring of a point given as an object with ``ring`` or as a sequence."""
    if hasattr(point, "ring"):
        return int(point.ring)
    if len(point) < 4:
        raise ValueError("point carries no ring information")
    return int(point[3])


class CloudProjection(ABC):
    """A range image together with the indices of points that fall into each pixel."""

    def __init__(self, params: ProjectionParams) -> None:
        params.validate()
        self._params = params
        self._data: list[list[list[int]]] = [
            [[] for _ in range(params.rows())] for _ in range(params.cols())
        ]
        self._depth_image = np.zeros((params.rows(), params.cols()), dtype=np.float32)
        self._corrections: list[float] = []

    @abstractmethod
    def init_from_points(self, points: Sequence[Any]) -> None:
        """Fill the projection from a sequence of 3D points."""

    def clone(self) -> "CloudProjection":
        """Return an independent copy of this projection."""
        return copy.deepcopy(self)

    @property
    def params(self) -> ProjectionParams:
        return self._params

    @property
    def depth_image(self) -> np.ndarray:
        return self._depth_image

    @depth_image.setter
    def depth_image(self, image: np.ndarray) -> None:
        self._depth_image = image

    @property
    def matrix(self) -> list[list[list[int]]]:
        """Point indices stored column-major: ``matrix[col][row]``."""
        return self._data

    def rows(self) -> int:
        return self._params.rows()

    def cols(self) -> int:
        return self._params.cols()

    def size(self) -> int:
        return self._params.size()

    def clone_depth_image(self, image: np.ndarray) -> None:
        """Store a copy of the given image as the depth image."""
        self._depth_image = np.array(image, copy=True)

    def at(self, row: int, col: int) -> list[int]:
        """Indices of the points projected into the given pixel."""
        return self._data[col][row]

    def check_image_and_storage(self, image: np.ndarray) -> None:
        """Raise unless the image fits this projection's storage."""
        if image.dtype != np.float32:
            raise TypeError("wrong image format")
        if not self._data:
            raise ValueError("_data size is < 1")
        if image.shape[:2] != (self.rows(), self.cols()):
            raise ValueError("_data dimensions do not correspond to image ones")

    def check_cloud_and_storage(self, points: Sequence[Any]) -> None:
        """Raise unless there is storage and at least one point."""
        if not self._data:
            raise ValueError("_data size is < 1")
        if len(points) == 0:
            raise ValueError("cannot fill from cloud: no points")

    def unproject_point(self, image: np.ndarray, row: int, col: int) -> _Point:
        """The 3D point seen at a pixel of a depth image."""
        depth = np.float32(image[row, col])
        angle_z = np.float32(self._params.angle_from_row(row))
        angle_xy = np.float32(self._params.angle_from_col(col))
        cos_z = np.cos(angle_z)
        return _Point(
            float(depth * cos_z * np.cos(angle_xy)),
            float(depth * cos_z * np.sin(angle_xy)),
            float(depth * np.sin(angle_z)),
        )

    def set_corrections(self, corrections: Sequence[float]) -> None:
        """Set per-beam depth corrections for a systematic sensor error."""
        self._corrections = list(corrections)

    def fix_depth_systematic_error_if_needed(self) -> None:
        """Subtract the per-row correction from every valid depth value."""
        rows = self._depth_image.shape[0]
        if rows < 1:
            logger.info("image of wrong size, not correcting depth")
            return
        if len(self._corrections) != rows:
            logger.info("Not correcting depth data.")
            return
        corrections = np.asarray(self._corrections, dtype=np.float32)[:, np.newaxis]
        valid = self._depth_image >= _MIN_DEPTH
        corrected = self._depth_image - corrections
        self._depth_image = np.where(valid, corrected, self._depth_image).astype(np.float32)

    def _write_depth(self, row: int, col: int, index: int, dist: float) -> None:
        self._data[col][row].append(index)
        depth = np.float32(dist)
        if self._depth_image[row, col] < depth:
            self._depth_image[row, col] = depth


class SphericalProjection(CloudProjection):
    """Projection that bins points by their elevation and azimuth angles."""

    def init_from_points(self, points: Sequence[Any]) -> None:
        self.check_cloud_and_storage(points)
        for index, point in enumerate(points):
            x, y, z = _xyz(point)
            dist = math.sqrt(x * x + y * y + z * z)
            if dist < _MIN_POINT_DIST:
                continue
            angle_rows = math.asin(z / dist)
            angle_cols = math.atan2(y, x)
            row = self._params.row_from_angle(angle_rows)
            col = self._params.col_from_angle(angle_cols)
            self._write_depth(row, col, index, dist)
        self.fix_depth_systematic_error_if_needed()


class RingProjection(CloudProjection):
    """Projection that takes the row from each point's laser ring."""

    def init_from_points(self, points: Sequence[Any]) -> None:
        logger.info("Projecting cloud with %d points", len(points))
        started = time.perf_counter()
        self.check_cloud_and_storage(points)
        for index, point in enumerate(points):
            x, y, _ = _xyz(point)
            dist = math.hypot(x, y)
            if dist < _MIN_POINT_DIST:
                continue
            col = self._params.col_from_angle(math.atan2(y, x))
            row = _ring(point)
            self._write_depth(row, col, index, dist)
        logger.info(
            "Cloud projected in %d us", int((time.perf_counter() - started) * 1e6)
        )

    def unproject_point(self, image: np.ndarray, row: int, col: int) -> _Point:
        return super().unproject_point(image, row, col)._replace(ring=row)