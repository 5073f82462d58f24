#!/usr/bin/env python3
"""
Histogram - Detached one-dimensional histogram value type.

Histograms are copied out of their source container at load time and never
keep a handle back to it. Arrays are read-only; the numeric operations
(scaled, difference, added) return new histograms.
"""

import numpy as np
from typing import Dict, List, Tuple, Optional
from dataclasses import dataclass, field


def _frozen_array(values) -> np.ndarray:
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


@dataclass
class Histogram:
    """Binned distribution with under/overflow and drawing attributes."""
    name: str
    edges: np.ndarray
    contents: np.ndarray
    errors: Optional[np.ndarray] = None
    title: str = ""
    underflow: float = 0.0
    overflow: float = 0.0
    underflow_error: float = 0.0
    overflow_error: float = 0.0
    style: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        self.edges = _frozen_array(self.edges)
        self.contents = _frozen_array(self.contents)

        # Poisson-like errors when none are stored
        if self.errors is None:
            self.errors = np.sqrt(np.abs(self.contents))
        self.errors = _frozen_array(self.errors)

        if self.edges.ndim != 1 or self.contents.ndim != 1:
            raise ValueError(f"Histogram '{self.name}' must be one-dimensional")
        if len(self.contents) == 0:
            raise ValueError(f"Histogram '{self.name}' has no bins")
        if len(self.edges) != len(self.contents) + 1:
            raise ValueError(f"Histogram '{self.name}' has {len(self.edges)} edges "
                             f"for {len(self.contents)} bins")
        if len(self.errors) != len(self.contents):
            raise ValueError(f"Histogram '{self.name}' has {len(self.errors)} errors "
                             f"for {len(self.contents)} bins")
        if not np.all(np.diff(self.edges) > 0):
            raise ValueError(f"Histogram '{self.name}' edges are not strictly increasing")

        self.underflow = float(self.underflow)
        self.overflow = float(self.overflow)
        self.underflow_error = float(self.underflow_error)
        self.overflow_error = float(self.overflow_error)
        self.style = dict(self.style)

    @property
    def n_bins(self) -> int:
        return len(self.contents)

    @property
    def widths(self) -> np.ndarray:
        return np.diff(self.edges)

    @property
    def centers(self) -> np.ndarray:
        return 0.5 * (self.edges[:-1] + self.edges[1:])

    @property
    def bins(self) -> List[Tuple[float, float, float, float]]:
        """Regular bins as (low_edge, high_edge, content, error) tuples."""
        return [(float(low), float(high), float(content), float(error))
                for low, high, content, error
                in zip(self.edges[:-1], self.edges[1:], self.contents, self.errors)]

    def maximum(self) -> float:
        """Largest regular-bin content."""
        return float(np.max(self.contents))

    def integral(self, include_flow: bool = True, width: bool = False) -> float:
        """
        Integrate the histogram.

        Args:
            include_flow: Add underflow and overflow contents
            width: Weight regular bins by their width (density histograms).
                   Under/overflow are always added as plain content.

        Returns:
            Integral as a float
        """
        if width:
            total = float(np.sum(self.contents * self.widths))
        else:
            total = float(np.sum(self.contents))

        if include_flow:
            total += self.underflow + self.overflow

        return total

    def has_same_binning(self, other: 'Histogram') -> bool:
        return (len(self.edges) == len(other.edges)
                and np.allclose(self.edges, other.edges))

    def _check_binning(self, other: 'Histogram') -> None:
        if not self.has_same_binning(other):
            raise ValueError(f"Histograms '{self.name}' and '{other.name}' have different binning")

    def _copy(self, **changes) -> 'Histogram':
        values = {
            'name': self.name,
            'edges': self.edges,
            'contents': self.contents,
            'errors': self.errors,
            'title': self.title,
            'underflow': self.underflow,
            'overflow': self.overflow,
            'underflow_error': self.underflow_error,
            'overflow_error': self.overflow_error,
            'style': self.style
        }
        values.update(changes)
        return Histogram(**values)

    def scaled(self, factor: float) -> 'Histogram':
        """Copy with contents multiplied by factor and errors by |factor|."""
        error_factor = abs(factor)
        return self._copy(
            contents=self.contents * factor,
            errors=self.errors * error_factor,
            underflow=self.underflow * factor,
            overflow=self.overflow * factor,
            underflow_error=self.underflow_error * error_factor,
            overflow_error=self.overflow_error * error_factor
        )

    def added(self, other: 'Histogram') -> 'Histogram':
        """Bin-wise sum, errors combined in quadrature."""
        self._check_binning(other)
        return self._copy(
            contents=self.contents + other.contents,
            errors=np.hypot(self.errors, other.errors),
            underflow=self.underflow + other.underflow,
            overflow=self.overflow + other.overflow,
            underflow_error=float(np.hypot(self.underflow_error, other.underflow_error)),
            overflow_error=float(np.hypot(self.overflow_error, other.overflow_error))
        )

    def difference(self, other: 'Histogram') -> 'Histogram':
        """Bin-wise difference self - other, errors combined in quadrature."""
        return self.added(other.scaled(-1.0))

    def renamed(self, name: str, title: Optional[str] = None) -> 'Histogram':
        return self._copy(name=name, title=self.title if title is None else title)
