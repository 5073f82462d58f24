#!/usr/bin/env python3
"""
Data/MC Plotting Package

This package builds data vs. simulation comparison figures from 1D histograms
stored in ROOT files: a stacked MC prediction, data points, and an optional
(data - MC) / MC residuals pad.

Components:
- Histogram: Detached histogram value type
- DataMCDataProcessor: Loading, normalization and residuals
- compute_layout: Canvas and pad geometry
- DataMCCanvasMaker: Drawing and export with ROOT (imported on demand)
- DataMCPlot: High-level interface combining all components

Usage:
    from datamc_plotting import DataMCPlot

    plot = DataMCPlot('histograms.root', 'muon_pt')
    plot.normalize_mc_to_data()
    plot.draw()
    plot.add_cms_label('Preliminary')
    plot.print_figure('muon_pt.pdf')
"""

from .histogram import Histogram
from .datamc_data_processor import (
    DataMCDataProcessor, PlotDataset, ResidualSeries,
    DEFAULT_RESIDUAL_RANGE, RESIDUAL_RANGE_SYMMETRIC
)
from .datamc_canvas_layout import (
    compute_layout, pad_scale_factor, scale_to_pad, LayoutResult, PadGeometry
)
from .datamc_plotter import DataMCPlot
from .exceptions import (
    DataMCPlotError, NotFoundError, SourceUnavailableError, LocationNotFoundError,
    MissingDataError, MissingSimulationError, DivideByZeroError, IllegalStateError,
    InvalidConfigurationError, IncompatibleBinningError
)

__all__ = [
    'Histogram',
    'DataMCDataProcessor',
    'PlotDataset',
    'ResidualSeries',
    'DEFAULT_RESIDUAL_RANGE',
    'RESIDUAL_RANGE_SYMMETRIC',
    'compute_layout',
    'pad_scale_factor',
    'scale_to_pad',
    'LayoutResult',
    'PadGeometry',
    'DataMCPlot',
    'DataMCPlotError',
    'NotFoundError',
    'SourceUnavailableError',
    'LocationNotFoundError',
    'MissingDataError',
    'MissingSimulationError',
    'DivideByZeroError',
    'IllegalStateError',
    'InvalidConfigurationError',
    'IncompatibleBinningError'
]

__version__ = '1.0.0'
