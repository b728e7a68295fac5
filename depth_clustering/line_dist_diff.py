"""Line-distance difference: distance from a beam endpoint to the line spanned by two beams."""

from __future__ import annotations

import math

import numpy as np

from depth_clustering.abstract_diff import AbstractDiff
from depth_clustering.angle_diff import _beta, _compute_alphas
from depth_clustering.pixel_coord import PixelCoord
from depth_clustering.projection_params import ProjectionParams

_MIN_DEPTH = 0.001
_MIN_VISIBLE_DEPTH = 0.01
_MAX_DIST = 20.0


def _line_dist(alpha, current_depth, neighbor_depth):
    """Distance ``d1 * sin(beta)`` of the farther endpoint to the line (element-wise)."""
    d1 = np.maximum(current_depth, neighbor_depth)
    beta = _beta(alpha, current_depth, neighbor_depth)
    return (d1 * np.sin(beta)).astype(np.float32)


class LineDistDiff(AbstractDiff):
    """Line-distance difference computed on demand for each pair of pixels."""

    def __init__(self, source_image: np.ndarray, params: ProjectionParams) -> None:
        super().__init__(source_image)
        self._params = params
        self._row_alphas, self._col_alphas = _compute_alphas(params, abs_last=False)

    def diff_at(self, src: PixelCoord, dst: PixelCoord) -> float:
        image = self._source_image
        current_depth = float(image[src.row, src.col])
        neighbor_depth = float(image[dst.row, dst.col])
        alpha = self._compute_alpha(src, dst)
        span = self._params.h_span()
        if alpha > span - 0.05:
            # the pair straddles the horizontal border
            alpha = alpha - span if alpha > span else span - alpha
        d1 = max(current_depth, neighbor_depth)
        d2 = min(current_depth, neighbor_depth)
        beta = abs(math.atan2(d2 * math.sin(alpha), d1 - d2 * math.cos(alpha)))
        return d1 * math.sin(beta)

    def satisfies_threshold(self, value: float, threshold: float) -> bool:
        """Satisfied when the value is strictly bigger than the threshold."""
        return value > threshold

    def _compute_alpha(self, current: PixelCoord, neighbor: PixelCoord) -> float:
        last_col = self._params.cols() - 1
        if (current.col == 0 and neighbor.col == last_col) or (
            neighbor.col == 0 and current.col == last_col
        ):
            return float(self._col_alphas[-1])
        if current.row < neighbor.row:
            return float(self._row_alphas[current.row])
        if current.row > neighbor.row:
            return float(self._row_alphas[neighbor.row])
        if current.col < neighbor.col:
            return float(self._col_alphas[current.col])
        if current.col > neighbor.col:
            return float(self._col_alphas[neighbor.col])
        return 0.0


class LineDistDiffPrecomputed(AbstractDiff):
    """Line-distance difference with all row-wise and column-wise values precomputed."""

    def __init__(self, source_image: np.ndarray, params: ProjectionParams) -> None:
        super().__init__(source_image)
        self._params = params
        shape = (params.rows(), params.cols())
        if self._source_image.shape[:2] != shape:
            raise ValueError(
                f"image shape {self._source_image.shape[:2]} does not match "
                f"projection shape {shape}"
            )
        self._row_alphas, self._col_alphas = _compute_alphas(params, abs_last=True)
        self._dists_row, self._dists_col = self._precompute_line_dists()

    @property
    def dists_row(self) -> np.ndarray:
        return self._dists_row

    @property
    def dists_col(self) -> np.ndarray:
        return self._dists_col

    def _precompute_line_dists(self) -> tuple[np.ndarray, np.ndarray]:
        image = self._source_image
        valid = ~(image < _MIN_DEPTH)
        dists_col = np.zeros(image.shape, dtype=np.float32)
        dists_row = np.zeros(image.shape, dtype=np.float32)
        next_col = np.roll(image, -1, axis=1)
        cols_all = _line_dist(self._col_alphas[np.newaxis, :], image, next_col)
        dists_col[valid] = cols_all[valid]
        if image.shape[0] > 1:
            rows_all = _line_dist(self._row_alphas[:-1, np.newaxis], image[:-1], image[1:])
            inner = valid[:-1]
            dists_row[:-1][inner] = rows_all[inner]
        return dists_row, dists_col

    def diff_at(self, src: PixelCoord, dst: PixelCoord) -> float:
        """Precomputed line distance between two neighbouring pixels.

        Raises ValueError when both coordinates are the same pixel.
        """
        last_row = self._params.rows() - 1
        if (src.row == last_row and dst.row == 0) or (src.row == 0 and dst.row == last_row):
            row = last_row
        else:
            row = min(src.row, dst.row)
        last_col = self._params.cols() - 1
        if (src.col == last_col and dst.col == 0) or (src.col == 0 and dst.col == last_col):
            col = last_col
        else:
            col = min(src.col, dst.col)
        if src.row != dst.row:
            return float(self._dists_row[row, col])
        if src.col != dst.col:
            return float(self._dists_col[row, col])
        raise ValueError("Asking for difference of same pixels.")

    def satisfies_threshold(self, value: float, threshold: float) -> bool:
        """Satisfied when the value is strictly bigger than the threshold."""
        return value > threshold

    def visualize(self) -> np.ndarray:
        """Colour image: channel 0 shows row-wise distances, channel 1 column-wise."""
        colors = np.zeros((*self._dists_row.shape, 3), dtype=np.uint8)
        visible = ~(self._source_image < _MIN_VISIBLE_DEPTH)
        row_color = np.clip(255.0 * self._dists_row / _MAX_DIST, 0, 255).astype(np.uint8)
        col_color = np.clip(255.0 * self._dists_col / _MAX_DIST, 0, 255).astype(np.uint8)
        colors[..., 0] = np.where(visible, 255 - row_color, 0)
        colors[..., 1] = np.where(visible, 255 - col_color, 0)
        return colors

    def get_line_dist(
        self, alpha: float, current_depth: float, neighbor_depth: float
    ) -> float:
        """Distance to the line spanned by two beams ``alpha`` apart."""
        return float(
            _line_dist(
                np.float32(alpha), np.float32(current_depth), np.float32(neighbor_depth)
            )
        )