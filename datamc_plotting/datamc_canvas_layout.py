#!/usr/bin/env python3
"""
Canvas layout for data/MC figures.

Splits a canvas into a main pad and an optional residuals pad below it.
Pad margins are derived from one absolute margin so the label gutter has the
same size in both pads, and text/tick sizes set for the main pad are rescaled
for the residuals pad with pad_scale_factor().

All coordinates are canvas NDC (origin at the bottom left).
"""

from typing import Dict, Optional
from dataclasses import dataclass

from .exceptions import InvalidConfigurationError

DEFAULT_CANVAS_CONFIG = {
    'width': 1500,
    'base_height': 1000,
    'residual_fraction': 0.17,
    'margin': 0.1,
    'main_width': 0.85
}

# Cosmetic constants of the residuals y axis
RESIDUAL_AXIS_PRESETS = {
    'default': {'ndivisions': 404, 'title_offset': 0.33, 'grid_y': True},
    'compact': {'ndivisions': 504, 'title_offset': 0.4, 'grid_y': True}
}


def update_config(config: Dict, **kwargs) -> None:
    """Update a config dict in place, rejecting unknown keys."""
    unknown = set(kwargs) - set(config)
    if unknown:
        raise InvalidConfigurationError(f"Unknown configuration keys: {sorted(unknown)}")
    config.update(kwargs)


def pad_scale_factor(reference_height: float, target_height: float) -> float:
    """
    Factor that keeps a size defined relative to a pad visually constant when
    it is moved from the reference pad to the target pad.

    ROOT text sizes and tick lengths are fractions of the pad dimension, so a
    size of s in a pad of height h_ref looks like s * h_ref / h_target in a pad
    of height h_target.
    """
    if target_height <= 0:
        raise InvalidConfigurationError(f"Pad height must be positive, got {target_height}")
    return reference_height / target_height


def scale_to_pad(size: float, reference_height: float, target_height: float) -> float:
    """Rescale a pad-relative size from the reference pad to the target pad."""
    return size * pad_scale_factor(reference_height, target_height)


@dataclass
class PadGeometry:
    """Pad rectangle in canvas NDC and its pad-relative margins."""
    name: str
    x1: float
    y1: float
    x2: float
    y2: float
    left_margin: float
    right_margin: float
    bottom_margin: float
    top_margin: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def frame_height(self) -> float:
        """Height of the plotting frame in canvas NDC."""
        return self.height * (1. - self.bottom_margin - self.top_margin)


@dataclass
class LayoutResult:
    canvas_width: int
    canvas_height: int
    bottom_spacing: float
    margin: float
    main_pad: PadGeometry
    residual_pad: Optional[PadGeometry] = None

    @property
    def has_residuals(self) -> bool:
        return self.residual_pad is not None

    @property
    def main_region_height(self) -> float:
        return 1. - self.bottom_spacing

    @property
    def residual_region_height(self) -> float:
        """Share of the canvas reserved below the main pad (0 without residuals)."""
        return self.bottom_spacing

    @property
    def text_scale(self) -> float:
        """
        Text size factor from the main pad to the residuals pad.

        Uses the full pad heights (the residuals pad includes its bottom margin),
        not main_region_height and residual_region_height.
        """
        if self.residual_pad is None:
            return 1.
        return pad_scale_factor(self.main_pad.height, self.residual_pad.height)

    @property
    def tick_scale(self) -> float:
        """Tick length factor from the main frame to the residuals frame."""
        if self.residual_pad is None:
            return 1.
        return pad_scale_factor(1. - 2. * self.margin - self.bottom_spacing, self.bottom_spacing)

    def scale_text(self, size: float) -> float:
        return size * self.text_scale


def _check_fraction(name: str, value: float) -> None:
    if not 0. < value < 1.:
        raise InvalidConfigurationError(f"{name} must be in (0, 1), got {value}")


def compute_layout(canvas_base_height: int = 1000, want_residuals: bool = True,
                   residual_fraction: float = 0.17, margin: float = 0.1,
                   main_width_fraction: float = 0.85, canvas_width: int = 1500) -> LayoutResult:
    """
    Compute canvas size and pad geometry.

    Args:
        canvas_base_height: Canvas height in pixels without the residuals strip
        want_residuals: Reserve space for the residuals pad
        residual_fraction: Share of the canvas height reserved for residuals
        margin: Absolute margin for axis labels, in canvas NDC
        main_width_fraction: Width of the plotting area in canvas NDC
        canvas_width: Canvas width in pixels

    Returns:
        LayoutResult

    Raises:
        InvalidConfigurationError: For fractions outside (0, 1) or pads that do not fit
    """
    if canvas_width <= 0 or canvas_base_height <= 0:
        raise InvalidConfigurationError(
            f"Canvas size must be positive, got {canvas_width}x{canvas_base_height}")
    _check_fraction("main_width_fraction", main_width_fraction)
    if margin < 0:
        raise InvalidConfigurationError(f"margin must be non-negative, got {margin}")
    if main_width_fraction + margin > 1.:
        raise InvalidConfigurationError(
            f"main_width_fraction + margin = {main_width_fraction + margin} exceeds the canvas width")

    bottom_spacing = 0.
    if want_residuals:
        _check_fraction("residual_fraction", residual_fraction)
        bottom_spacing = residual_fraction
        if bottom_spacing + margin > 1.:
            raise InvalidConfigurationError(
                f"residual_fraction + margin = {bottom_spacing + margin} exceeds the canvas height")

    if 1. - 2. * margin - bottom_spacing <= 0.:
        raise InvalidConfigurationError("Margins leave no room for the main plotting frame")

    # Keep the main pad at its nominal pixel size when a residuals strip is added
    canvas_height = int(canvas_base_height / (1. - bottom_spacing))

    pad_width = main_width_fraction + margin
    main_height = 1. - bottom_spacing

    main_pad = PadGeometry(
        name="mainPad",
        x1=0., y1=bottom_spacing, x2=pad_width, y2=1.,
        left_margin=margin / pad_width,
        right_margin=margin / pad_width,
        bottom_margin=margin / main_height,
        top_margin=margin / main_height
    )

    residual_pad = None
    if want_residuals:
        residual_height = bottom_spacing + margin
        residual_pad = PadGeometry(
            name="residualsPad",
            x1=0., y1=0., x2=pad_width, y2=residual_height,
            left_margin=margin / pad_width,
            right_margin=margin / pad_width,
            bottom_margin=margin / residual_height,
            top_margin=0.
        )

    return LayoutResult(
        canvas_width=int(canvas_width),
        canvas_height=canvas_height,
        bottom_spacing=bottom_spacing,
        margin=margin,
        main_pad=main_pad,
        residual_pad=residual_pad
    )


def layout_from_config(config: Dict, want_residuals: bool) -> LayoutResult:
    """Compute the layout for a canvas config dict (see DEFAULT_CANVAS_CONFIG)."""
    return compute_layout(
        canvas_base_height=config['base_height'],
        want_residuals=want_residuals,
        residual_fraction=config['residual_fraction'],
        margin=config['margin'],
        main_width_fraction=config['main_width'],
        canvas_width=config['width']
    )
