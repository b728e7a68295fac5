"""Removal of ground pixels from a depth image."""

from __future__ import annotations

import logging
import math
import time

import numpy as np

from depth_clustering.image_labeler import LinearImageLabeler
from depth_clustering.pixel_coord import PixelCoord
from depth_clustering.projection_params import ProjectionParams
from depth_clustering.simple_diff import SimpleDiff

logger = logging.getLogger(__name__)

_MIN_DEPTH = 0.001
_START_ANGLE = math.radians(30.0)

# Savitsky-Golay smoothing coefficients and their normalisers.
_SAVITSKY_GOLAY = {
    5: ((-3.0, 12.0, 17.0, 12.0, -3.0), 35.0),
    7: ((-2.0, 3.0, 6.0, 7.0, 6.0, 3.0, -2.0), 21.0),
    9: ((-21.0, 14.0, 39.0, 54.0, 59.0, 54.0, 39.0, 14.0, -21.0), 231.0),
    11: (
        (-36.0, 9.0, 44.0, 69.0, 84.0, 89.0, 84.0, 69.0, 44.0, 9.0, -36.0),
        429.0,
    ),
}


def savitsky_golay_kernel(window_size: int) -> np.ndarray:
    """Column kernel of a Savitsky-Golay filter; sizes 5, 7, 9 and 11 are supported."""
    if window_size % 2 == 0:
        raise ValueError("only odd window size allowed")
    try:
        coefficients, norm = _SAVITSKY_GOLAY[window_size]
    except KeyError:
        raise ValueError("bad window size") from None
    return (np.asarray(coefficients, dtype=np.float32) / np.float32(norm)).astype(
        np.float32
    )


def uniform_kernel(window_size: int) -> np.ndarray:
    """Column kernel averaging the two pixels at the ends of the window."""
    if window_size % 2 == 0:
        raise ValueError("only odd window size allowed")
    if window_size < 1:
        raise ValueError("window size must be positive")
    kernel = np.zeros(window_size, dtype=np.float32)
    kernel[0] = 0.5
    kernel[-1] = 0.5
    return kernel


def _correlate_rows(image: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Correlate every column with ``kernel`` centred on each pixel, reflecting at borders."""
    data = np.asarray(image, dtype=np.float32)
    rows = data.shape[0]
    if rows == 0:
        return data.copy()
    anchor = len(kernel) // 2
    padded = np.pad(data, ((anchor, anchor), (0, 0)), mode="reflect")
    result = np.zeros_like(data, dtype=np.float32)
    for offset, weight in enumerate(kernel):
        result += np.float32(weight) * padded[offset : offset + rows]
    return result.astype(np.float32)


def _dilate_rows(labels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    """Vertical grey dilation over the non-zero positions of a column kernel."""
    rows = labels.shape[0]
    anchor = len(kernel) // 2
    result = np.zeros_like(labels)
    for position in np.flatnonzero(kernel):
        offset = int(position) - anchor
        if abs(offset) >= rows:
            continue
        if offset >= 0:
            result[: rows - offset] = np.maximum(result[: rows - offset], labels[offset:])
        else:
            result[-offset:] = np.maximum(result[-offset:], labels[: rows + offset])
    return result


class DepthGroundRemover:
    """Removes ground from depth images using the incline between neighbouring rows.

    ``ground_remove_angle`` is in radians.
    """

    def __init__(
        self,
        params: ProjectionParams,
        ground_remove_angle: float = math.radians(5.0),
        window_size: int = 5,
    ) -> None:
        self.params = params
        self.ground_remove_angle = float(ground_remove_angle)
        self.window_size = window_size
        self._eps = 0.001
        self._counter = 0

    def remove_ground(self, depth_image: np.ndarray) -> np.ndarray:
        """Depth image with every ground pixel set to zero."""
        depth = self.repair_depth(depth_image, 5, 1.0)
        started = time.perf_counter()
        angle_image = self.create_angle_image(depth)
        smoothed = self.apply_savitsky_golay_smoothing(angle_image, self.window_size)
        no_ground = self.zero_out_ground_bfs(
            depth, smoothed, self.ground_remove_angle, self.window_size
        )
        logger.info(
            "Ground removed in %d us", int((time.perf_counter() - started) * 1e6)
        )
        self._counter += 1
        return no_ground

    def zero_out_ground(
        self, image: np.ndarray, angle_image: np.ndarray, threshold: float
    ) -> np.ndarray:
        """Keep only the pixels whose angle is above ``threshold``."""
        depth = np.asarray(image, dtype=np.float32)
        angles = np.asarray(angle_image, dtype=np.float32)
        return np.where(angles > threshold, depth, np.float32(0.0)).astype(np.float32)

    def zero_out_ground_bfs(
        self,
        image: np.ndarray,
        angle_image: np.ndarray,
        threshold: float,
        kernel_size: int,
    ) -> np.ndarray:
        """Grow ground from the bottom pixel of each column and zero it out."""
        depth = np.asarray(image, dtype=np.float32)
        angles = np.asarray(angle_image, dtype=np.float32)
        rows, cols = depth.shape[:2]
        labeler = LinearImageLabeler(depth, self.params, threshold)
        diff_helper = SimpleDiff(angles)
        for col in range(cols):
            row = rows - 1
            while row > 0 and depth[row, col] < _MIN_DEPTH:
                row -= 1
            start = PixelCoord(row, col)
            if labeler.label_at(start) > 0:
                continue
            if angles[row, col] > _START_ANGLE:
                continue
            labeler.label_one_component(1, start, diff_helper)
        kernel = uniform_kernel(max(kernel_size - 2, 3))
        dilated = _dilate_rows(labeler.label_image(), kernel)
        return np.where(dilated == 0, depth, np.float32(0.0)).astype(np.float32)

    def create_angle_image(self, depth_image: np.ndarray) -> np.ndarray:
        """Per pixel, the incline of the line to the pixel in the row above (radians)."""
        depth = np.asarray(depth_image, dtype=np.float32)
        rows = depth.shape[0]
        sines = np.asarray(self.params.row_angle_sines(), dtype=np.float32)
        cosines = np.asarray(self.params.row_angle_cosines(), dtype=np.float32)
        if len(sines) != rows:
            raise ValueError(
                f"depth image has {rows} rows, projection has {len(sines)}"
            )
        x = depth * cosines[:, np.newaxis]
        y = depth * sines[:, np.newaxis]
        angles = np.zeros_like(depth, dtype=np.float32)
        if rows > 1:
            dx = np.abs(x[1:] - x[:-1])
            dy = np.abs(y[1:] - y[:-1])
            angles[1:] = np.arctan2(dy, dx)
        return angles

    def apply_savitsky_golay_smoothing(
        self, image: np.ndarray, window_size: int
    ) -> np.ndarray:
        """Smooth every column of an image with a Savitsky-Golay filter."""
        return _correlate_rows(image, savitsky_golay_kernel(window_size))

    def get_line_angle(
        self, depth_image: np.ndarray, col: int, row_curr: int, row_neigh: int
    ) -> float:
        """Incline in radians of the line through two pixels of one column.

        Returns 0 when either depth is unreliable.
        """
        current_angle = self.params.angle_from_row(row_curr)
        neighbor_angle = self.params.angle_from_row(row_neigh)
        depth_current = float(depth_image[row_curr, col])
        depth_neighbor = float(depth_image[row_neigh, col])
        if depth_current < self._eps or depth_neighbor < self._eps:
            return 0.0
        dx = abs(
            depth_current * math.cos(current_angle)
            - depth_neighbor * math.cos(neighbor_angle)
        )
        dy = abs(
            depth_current * math.sin(current_angle)
            - depth_neighbor * math.sin(neighbor_angle)
        )
        return math.atan2(dy, dx)

    def repair_depth(
        self, depth_image: np.ndarray, step: int, depth_threshold: float
    ) -> np.ndarray:
        """Fill missing depths from pairs of similar depths above and below them.

        Pixels are filled top to bottom, so filled values feed later ones.
        """
        inpainted = np.array(depth_image, dtype=np.float32, copy=True)
        rows = inpainted.shape[0]
        for column in inpainted.T:
            values = column.tolist()
            for row, current in enumerate(values):
                if current >= _MIN_DEPTH:
                    continue
                total = 0.0
                count = 0
                for i in range(1, step):
                    if row - i < 0:
                        break
                    prev = values[row - i]
                    for j in range(1, step):
                        if row + j > rows - 1:
                            break
                        nxt = values[row + j]
                        if (
                            prev > _MIN_DEPTH
                            and nxt > _MIN_DEPTH
                            and abs(prev - nxt) < depth_threshold
                        ):
                            total += prev + nxt
                            count += 2
                if count > 0:
                    values[row] = float(np.float32(total / count))
            column[:] = values
        return inpainted

    def repair_depth_filtered(self, depth_image: np.ndarray) -> np.ndarray:
        """Fill missing depths with a vertical average, keeping valid depths as they are."""
        depth = np.asarray(depth_image, dtype=np.float32)
        inpainted = _correlate_rows(depth, uniform_kernel(5))
        mask = depth > 0
        inpainted[mask] = depth[mask]
        return inpainted