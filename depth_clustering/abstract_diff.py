"""Common interface for measures of difference between neighbouring pixels."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np

from depth_clustering.pixel_coord import PixelCoord


class AbstractDiff(ABC):
    """Difference between two pixels of a float32 source image."""

    def __init__(self, source_image: np.ndarray) -> None:
        self._source_image = np.asarray(source_image, dtype=np.float32)

    @property
    def source_image(self) -> np.ndarray:
        return self._source_image

    @abstractmethod
    def diff_at(self, src: PixelCoord, dst: PixelCoord) -> float:
        """Difference between the pixels ``src`` and ``dst``."""

    @abstractmethod
    def satisfies_threshold(self, value: float, threshold: float) -> bool:
        """Whether a difference value satisfies the threshold."""

    def visualize(self) -> np.ndarray:
        """Colour image of the differences; empty when there is nothing to show."""
        return np.zeros((0, 0, 3), dtype=np.uint8)