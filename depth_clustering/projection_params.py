"""Angular layout of a range image: which beam angle belongs to which row and column."""

from __future__ import annotations

import bisect
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

logger = logging.getLogger(__name__)


class Direction(Enum):
    """Direction in which a span of beams is laid out."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


@dataclass(frozen=True)
class SpanParams:
    """An angular span split into a number of equally spaced beams.

    All angles are in radians. When ``step`` is not given it is derived
    from the span and the number of beams.
    """

    start_angle: float = 0.0
    end_angle: float = 0.0
    num_beams: int = 0
    step: float | None = None
    span: float = field(init=False)

    def __post_init__(self) -> None:
        if self.step is None:
            step = (
                (self.end_angle - self.start_angle) / self.num_beams
                if self.num_beams
                else 0.0
            )
            object.__setattr__(self, "step", step)
        object.__setattr__(self, "span", abs(self.end_angle - self.start_angle))

    @classmethod
    def from_step(cls, start_angle: float, end_angle: float, step: float) -> "SpanParams":
        """Build a span whose beam count follows from a fixed angular step."""
        num_beams = math.floor((end_angle - start_angle) / step)
        return cls(start_angle, end_angle, num_beams, step)

    def valid(self) -> bool:
        """A span is valid when it has beams and a non-zero extent."""
        return self.num_beams > 0 and self.span > 0.0


def _fill_angles(spans: Iterable[SpanParams]) -> list[float]:
    return [
        span.start_angle + i * span.step
        for span in spans
        for i in range(span.num_beams)
    ]


def _find_closest(values: Sequence[float], value: float) -> int:
    """Index of the entry of a monotonic sequence closest to ``value``."""
    if not values:
        raise ValueError("cannot search an empty angle list")
    size = len(values)
    if values[0] < values[-1]:
        found = bisect.bisect_right(values, value)
    else:
        found = size - bisect.bisect_right(values[::-1], value)
    if found == 0:
        return 0
    if found == size:
        return size - 1
    diff_next = abs(values[found] - value)
    diff_prev = abs(value - values[found - 1])
    return found if diff_next < diff_prev else found - 1


class ProjectionParams:
    """Row and column beam angles of a sensor projection."""

    def __init__(self) -> None:
        self._v_span_params = SpanParams()
        self._h_span_params = SpanParams()
        self._row_angles: list[float] = []
        self._col_angles: list[float] = []
        self._row_sines = np.zeros(0)
        self._row_cosines = np.zeros(0)
        self._col_sines = np.zeros(0)
        self._col_cosines = np.zeros(0)

    def set_span(self, span_params: SpanParams | Sequence[SpanParams], direction: Direction) -> None:
        """Set one or several consecutive spans for the given direction."""
        spans = [span_params] if isinstance(span_params, SpanParams) else list(span_params)
        if not spans:
            raise ValueError("at least one span is required")
        num_beams = sum(span.num_beams for span in spans)
        combined = SpanParams(spans[0].start_angle, spans[-1].end_angle, num_beams)
        if direction is Direction.HORIZONTAL:
            self._h_span_params = combined
            self._col_angles = _fill_angles(spans)
        else:
            self._v_span_params = combined
            self._row_angles = _fill_angles(spans)
        self._fill_cos_sin()

    def rows(self) -> int:
        return len(self._row_angles)

    def cols(self) -> int:
        return len(self._col_angles)

    def size(self) -> int:
        return self.rows() * self.cols()

    def h_span(self) -> float:
        """Horizontal angular extent in radians."""
        return self._h_span_params.span

    def v_span(self) -> float:
        """Vertical angular extent in radians."""
        return self._v_span_params.span

    def angle_from_row(self, row: int) -> float:
        """Beam angle of a row; raises IndexError for a row outside the image."""
        if 0 <= row < len(self._row_angles):
            return self._row_angles[row]
        raise IndexError(f"row {row} is wrong")

    def angle_from_col(self, col: int) -> float:
        """Beam angle of a column, wrapping once around the image edges."""
        count = len(self._col_angles)
        actual = col
        if col < 0:
            actual = col + count
        elif col >= count:
            actual = col - count
        if not 0 <= actual < count:
            raise IndexError(f"col {col} is wrong")
        return self._col_angles[actual]

    def row_from_angle(self, angle: float) -> int:
        return _find_closest(self._row_angles, angle)

    def col_from_angle(self, angle: float) -> int:
        return _find_closest(self._col_angles, angle)

    def row_angle_sines(self) -> np.ndarray:
        return self._row_sines

    def row_angle_cosines(self) -> np.ndarray:
        return self._row_cosines

    def col_angle_sines(self) -> np.ndarray:
        return self._col_sines

    def col_angle_cosines(self) -> np.ndarray:
        return self._col_cosines

    def validate(self) -> bool:
        """Raise ValueError unless the parameters are complete; return True otherwise."""
        if not (self._v_span_params.valid() and self._h_span_params.valid()):
            raise ValueError("Projection parameters invalid.")
        if not self._row_angles and not self._col_angles:
            raise ValueError("Projection parameters arrays not filled.")
        if not (
            self._row_sines.size
            or self._row_cosines.size
            or self._col_sines.size
            or self._col_cosines.size
        ):
            raise ValueError("Projection parameters sin and cos arrays not filled.")
        return True

    def _fill_cos_sin(self) -> None:
        rows = np.asarray(self._row_angles, dtype=float)
        cols = np.asarray(self._col_angles, dtype=float)
        self._row_sines = np.sin(rows)
        self._row_cosines = np.cos(rows)
        self._col_sines = np.sin(cols)
        self._col_cosines = np.cos(cols)

    @classmethod
    def _with_spans(
        cls, horizontal: SpanParams, vertical: SpanParams | Sequence[SpanParams]
    ) -> "ProjectionParams":
        params = cls()
        params.set_span(horizontal, Direction.HORIZONTAL)
        params.set_span(vertical, Direction.VERTICAL)
        params.validate()
        return params

    @classmethod
    def vlp_16(cls) -> "ProjectionParams":
        """Parameters of a 16 beam Velodyne."""
        return cls._with_spans(
            SpanParams(math.radians(-180), math.radians(180), 870),
            SpanParams(math.radians(15), math.radians(-15), 16),
        )

    @classmethod
    def hdl_32(cls) -> "ProjectionParams":
        """Parameters of a 32 beam Velodyne."""
        return cls._with_spans(
            SpanParams(math.radians(-180), math.radians(180), 870),
            SpanParams(math.radians(10.0), math.radians(-30.0), 32),
        )

    @classmethod
    def hdl_64(cls) -> "ProjectionParams":
        """Parameters of a 64 beam Velodyne with its two laser blocks."""
        top = SpanParams(math.radians(2.0), math.radians(-8.5), 32)
        bottom = SpanParams(math.radians(-8.87), math.radians(-24.87), 32)
        return cls._with_spans(
            SpanParams(math.radians(-180), math.radians(180), 870),
            [top, bottom],
        )

    @classmethod
    def hdl_64_equal(cls) -> "ProjectionParams":
        """Parameters of a 64 beam Velodyne assuming equally spaced lasers."""
        return cls._with_spans(
            SpanParams(math.radians(-180), math.radians(180), 870),
            SpanParams(math.radians(2.0), math.radians(-24.0), 64),
        )

    @classmethod
    def full_sphere(cls, discretization: float = math.radians(5)) -> "ProjectionParams":
        """Parameters covering the full sphere with the given angular step."""
        return cls._with_spans(
            SpanParams.from_step(math.radians(-180), math.radians(180), discretization),
            SpanParams.from_step(math.radians(-90), math.radians(90), discretization),
        )

    @classmethod
    def from_config_file(cls, path: str | Path) -> "ProjectionParams":
        """Read parameters from a ``cols;rows;h_start;h_end;row angles...`` file.

        Angles in the file are in degrees; lines starting with ``#`` are skipped.
        """
        logger.info("Reading config.")
        params = cls()
        with open(path, encoding="utf-8") as config:
            for raw_line in config:
                line = raw_line.rstrip("\n")
                if line.startswith("#"):
                    logger.info("Skipping commentary: %s", line)
                    continue
                fields = line.split(";")
                if len(fields) < 5:
                    raise ValueError("format of line is wrong")
                cols = int(fields[0])
                rows = int(fields[1])
                params._h_span_params = SpanParams(
                    math.radians(float(fields[2])), math.radians(float(fields[3])), cols
                )
                h_span = params._h_span_params
                logger.info(
                    "start:%f, stop:%f, span:%f, step:%f",
                    math.degrees(h_span.start_angle),
                    math.degrees(h_span.end_angle),
                    math.degrees(h_span.span),
                    math.degrees(h_span.step),
                )
                params._col_angles.extend(
                    h_span.start_angle + h_span.step * c for c in range(cols)
                )
                params._v_span_params = SpanParams(
                    math.radians(float(fields[4])), math.radians(float(fields[-1])), rows
                )
                params._row_angles.extend(math.radians(float(value)) for value in fields[4:])
                if len(params._row_angles) != rows:
                    raise ValueError("wrong config: row count does not match row angles")
        params._fill_cos_sin()
        params.validate()
        logger.info("Params read. Rows: %d, Cols: %d", params.rows(), params.cols())
        return params