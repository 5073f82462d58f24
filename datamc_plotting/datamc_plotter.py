#!/usr/bin/env python3
"""
DataMCPlot - Main interface for creating data/MC comparison figures.

This class provides a high-level interface that combines:
- DataMCDataProcessor: Loading, normalization and residuals
- compute_layout: Canvas and pad geometry
- DataMCCanvasMaker: Drawing, labels and export (ROOT)

The figure moves through the states
    loaded -> [normalized] -> drawn -> [annotated]*
Normalization and residual settings must be chosen before draw(); labels
and export need a drawn figure. draw() may be called again, in which case
the figure is recomputed and replaced.

ROOT is only imported when the figure is drawn.
"""

from typing import Dict, Optional

from .histogram import Histogram
from .datamc_data_processor import (
    DataMCDataProcessor, ResidualSeries, DEFAULT_RESIDUAL_RANGE
)
from .datamc_canvas_layout import (
    DEFAULT_CANVAS_CONFIG, RESIDUAL_AXIS_PRESETS, LayoutResult, layout_from_config, update_config
)
from .exceptions import IllegalStateError, InvalidConfigurationError

STATE_LOADED = 'loaded'
STATE_NORMALIZED = 'normalized'
STATE_DRAWN = 'drawn'


class DataMCPlot:
    def __init__(self, source: str, location: str = "",
                 canvas_config: Optional[Dict] = None, verbose: bool = False):
        """
        Load the histograms for a data/MC figure.

        Args:
            source: Path to the ROOT file with the histograms
            location: Directory in the file that contains them ("" for the top)
            canvas_config: Overrides of DEFAULT_CANVAS_CONFIG
            verbose: Print progress messages

        Raises:
            SourceUnavailableError, LocationNotFoundError, MissingDataError,
            MissingSimulationError
        """
        self.verbose = verbose
        self.data_processor = DataMCDataProcessor(verbose=verbose)

        self.canvas_config = dict(DEFAULT_CANVAS_CONFIG)
        if canvas_config:
            update_config(self.canvas_config, **canvas_config)
        self.residual_axis_config = dict(RESIDUAL_AXIS_PRESETS['default'])

        self.plot_residuals = True
        self.residual_range = DEFAULT_RESIDUAL_RANGE

        self.dataset = self.data_processor.load(source, location)
        self.state = STATE_LOADED

        self.normalization_factor = None
        self.layout = None
        self.residuals = None
        self.figure = None
        self.canvas_maker = None
        self.draw_count = 0

        # Unique suffix for ROOT object names, so independent figures never clash
        self.name = f"{(location or 'top').replace('/', '_')}_{id(self):x}"

    def _require_drawn(self, action: str) -> None:
        if self.state != STATE_DRAWN:
            raise IllegalStateError(f"Cannot {action} before the figure is drawn.")

    def _require_not_drawn(self, action: str) -> None:
        if self.state == STATE_DRAWN:
            raise IllegalStateError(f"Cannot {action} after the figure is drawn.")

    def get_title(self) -> str:
        return self.dataset.title

    def get_hist(self, name: str) -> Optional[Histogram]:
        """Histogram with the given name ("data" or an MC name), None if absent."""
        return self.dataset.get_hist(name)

    def normalize_mc_to_data(self, is_density: bool = False) -> float:
        """
        Scale the MC histograms so that their total matches the data.

        Args:
            is_density: Histograms represent event density (integrate with bin widths)

        Returns:
            The normalization factor
        """
        self._require_not_drawn("normalize MC to data")

        self.normalization_factor = self.data_processor.normalize_to_data(self.dataset, is_density)
        self.state = STATE_NORMALIZED

        return self.normalization_factor

    def request_residuals(self, plot_residuals: bool, low: float = DEFAULT_RESIDUAL_RANGE[0],
                          high: float = DEFAULT_RESIDUAL_RANGE[1]) -> None:
        """Enable or disable the residuals pad and set its displayed y range."""
        self._require_not_drawn("change the residuals settings")
        if not low < high:
            raise InvalidConfigurationError(f"Residual display range ({low}, {high}) is empty")

        self.plot_residuals = plot_residuals
        self.residual_range = (low, high)

    def set_canvas_config(self, **kwargs) -> None:
        self._require_not_drawn("change the canvas configuration")
        update_config(self.canvas_config, **kwargs)

    def get_canvas_config(self) -> Dict:
        return dict(self.canvas_config)

    def set_residual_axis_config(self, **kwargs) -> None:
        self._require_not_drawn("change the residuals axis configuration")
        update_config(self.residual_axis_config, **kwargs)

    def compute_layout(self) -> LayoutResult:
        return layout_from_config(self.canvas_config, self.plot_residuals)

    def compute_residuals(self) -> Optional[ResidualSeries]:
        """Residuals for the current dataset, or None if they are not requested."""
        if not self.plot_residuals:
            return None
        return self.data_processor.compute_residuals(self.dataset, self.residual_range)

    def draw(self):
        """
        Draw the figure, replacing any previously drawn one.

        Returns:
            ROOT.TCanvas with the figure
        """
        # Layout and residuals are recomputed on every draw
        layout = self.compute_layout()
        residuals = self.compute_residuals()

        from .datamc_canvas_maker import DataMCCanvasMaker

        if self.canvas_maker is None:
            self.canvas_maker = DataMCCanvasMaker(verbose=self.verbose)
        self.canvas_maker.set_residual_axis_config(**self.residual_axis_config)

        # A fresh suffix per draw; ROOT replaces canvases that reuse a name
        self.draw_count += 1
        self.figure = self.canvas_maker.create_figure(self.dataset, layout, residuals,
                                                      f"{self.name}_{self.draw_count}")
        self.layout = layout
        self.residuals = residuals
        self.state = STATE_DRAWN

        return self.figure.canvas

    def add_label(self, kind: str, text: str = ""):
        """Add a fixed-position label ('cms' or 'energy') to the drawn figure."""
        self._require_drawn(f"add {kind} label")
        return self.canvas_maker.add_text_label(self.figure, kind, text)

    def add_cms_label(self, additional_text: str = ""):
        return self.add_label('cms', additional_text)

    def add_energy_label(self, text: str):
        return self.add_label('energy', text)

    def get_canvas(self):
        self._require_drawn("access the canvas")
        return self.figure.canvas

    def get_legend(self):
        self._require_drawn("access the legend")
        return self.figure.legend

    def get_main_pad(self):
        self._require_drawn("access the main pad")
        return self.figure.main_pad

    def print_figure(self, output_path: str) -> None:
        """
        Save the figure.

        For a ".root" path the canvas and the legend are written to the file;
        any other path is printed as an image by ROOT.
        """
        self._require_drawn("print the figure")
        self.canvas_maker.save_figure(self.figure, output_path)

    Print = print_figure
