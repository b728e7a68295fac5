"""Plain absolute difference of two pixel values."""

from __future__ import annotations

from depth_clustering.abstract_diff import AbstractDiff
from depth_clustering.pixel_coord import PixelCoord


class SimpleDiff(AbstractDiff):
    """Absolute difference of pixel values; small differences join pixels."""

    def diff_at(self, src: PixelCoord, dst: PixelCoord) -> float:
        image = self._source_image
        return float(abs(image[src.row, src.col] - image[dst.row, dst.col]))

    def satisfies_threshold(self, value: float, threshold: float) -> bool:
        """Satisfied when the value is strictly below the threshold."""
        return value < threshold