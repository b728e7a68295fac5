"""Angle-based difference: the incline of the line spanned by two beam endpoints."""

from __future__ import annotations

import math

import numpy as np

from depth_clustering.abstract_diff import AbstractDiff
from depth_clustering.pixel_coord import PixelCoord
from depth_clustering.projection_params import ProjectionParams

_MIN_DEPTH = 0.001
_MIN_VISIBLE_DEPTH = 0.01
_MAX_ANGLE_DEG = 90.0


def _compute_alphas(
    params: ProjectionParams, abs_last: bool
) -> tuple[np.ndarray, np.ndarray]:
    """Angles between neighbouring rows and columns of a projection.

    The last row gets zero; the last column holds the wrap-around angle.
    """
    rows, cols = params.rows(), params.cols()
    row_alphas = [
        abs(params.angle_from_row(r + 1) - params.angle_from_row(r))
        for r in range(rows - 1)
    ]
    row_alphas.append(0.0)
    col_alphas = [
        abs(params.angle_from_col(c + 1) - params.angle_from_col(c))
        for c in range(cols - 1)
    ]
    last_alpha = abs(params.angle_from_col(0) - params.angle_from_col(cols - 1))
    last_alpha -= params.h_span()
    col_alphas.append(abs(last_alpha) if abs_last else last_alpha)
    return (
        np.asarray(row_alphas, dtype=np.float32),
        np.asarray(col_alphas, dtype=np.float32),
    )


def _beta(alpha, current_depth, neighbor_depth):
    """Incline angle of the line between two beam endpoints (element-wise)."""
    d1 = np.maximum(current_depth, neighbor_depth)
    d2 = np.minimum(current_depth, neighbor_depth)
    beta = np.arctan2(d2 * np.sin(alpha), d1 - d2 * np.cos(alpha))
    return np.abs(beta).astype(np.float32)


class AngleDiff(AbstractDiff):
    """Angle-based difference computed on demand for each pair of pixels."""

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
        return abs(math.atan2(d2 * math.sin(alpha), d1 - d2 * math.cos(alpha)))

    def satisfies_threshold(self, value: float, threshold: float) -> bool:
        """Satisfied when the angle is strictly bigger than the threshold."""
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


class AngleDiffPrecomputed(AbstractDiff):
    """Angle-based difference with all row-wise and column-wise angles precomputed."""

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
        self._beta_rows, self._beta_cols = self._precompute_beta_angles()

    @property
    def beta_rows(self) -> np.ndarray:
        return self._beta_rows

    @property
    def beta_cols(self) -> np.ndarray:
        return self._beta_cols

    def _precompute_beta_angles(self) -> tuple[np.ndarray, np.ndarray]:
        image = self._source_image
        valid = ~(image < _MIN_DEPTH)
        beta_cols = np.zeros(image.shape, dtype=np.float32)
        beta_rows = np.zeros(image.shape, dtype=np.float32)
        next_col = np.roll(image, -1, axis=1)
        cols_all = _beta(self._col_alphas[np.newaxis, :], image, next_col)
        beta_cols[valid] = cols_all[valid]
        if image.shape[0] > 1:
            rows_all = _beta(self._row_alphas[:-1, np.newaxis], image[:-1], image[1:])
            inner = valid[:-1]
            beta_rows[:-1][inner] = rows_all[inner]
        return beta_rows, beta_cols

    def diff_at(self, src: PixelCoord, dst: PixelCoord) -> float:
        """Precomputed angle between two neighbouring pixels.

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
            return float(self._beta_rows[row, col])
        if src.col != dst.col:
            return float(self._beta_cols[row, col])
        raise ValueError("Asking for difference of same pixels.")

    def satisfies_threshold(self, value: float, threshold: float) -> bool:
        """Satisfied when the angle is strictly bigger than the threshold."""
        return value > threshold

    def visualize(self) -> np.ndarray:
        """Colour image: channel 0 shows row-wise angles, channel 1 column-wise."""
        colors = np.zeros((*self._beta_rows.shape, 3), dtype=np.uint8)
        visible = ~(self._source_image < _MIN_VISIBLE_DEPTH)
        row_color = np.clip(
            255.0 * np.degrees(self._beta_rows) / _MAX_ANGLE_DEG, 0, 255
        ).astype(np.uint8)
        col_color = np.clip(
            255.0 * np.degrees(self._beta_cols) / _MAX_ANGLE_DEG, 0, 255
        ).astype(np.uint8)
        colors[..., 0] = np.where(visible, 255 - row_color, 0)
        colors[..., 1] = np.where(visible, 255 - col_color, 0)
        return colors

    def get_beta(self, alpha: float, current_depth: float, neighbor_depth: float) -> float:
        """Incline of the line spanned by two beams ``alpha`` apart."""
        return float(
            _beta(np.float32(alpha), np.float32(current_depth), np.float32(neighbor_depth))
        )