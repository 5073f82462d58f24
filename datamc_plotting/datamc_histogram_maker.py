#!/usr/bin/env python3
"""
DataMCHistogramMaker - ROOT histogram creation and styling for data/MC plots.

This class handles:
- Converting detached Histogram values into ROOT TH1D objects
- Applying the stored (or default) styles to data, MC and residual histograms
- Turning residuals into a graph that leaves undefined bins blank
"""

import ROOT
import numpy as np
from typing import Dict, List, Optional

from .histogram import Histogram


class DataMCHistogramMaker:
    def __init__(self):
        """Initialize the histogram maker."""

        # Fallback fill colors for MC histograms stored without one
        self.mc_colors = [
            ROOT.kAzure + 1,
            ROOT.kOrange + 1,
            ROOT.kGreen - 3,
            ROOT.kRed - 4,
            ROOT.kViolet - 4,
            ROOT.kYellow - 7,
            ROOT.kCyan - 6,
            ROOT.kGray
        ]

        self.default_styles = {
            'data': {
                'line_color': ROOT.kBlack,
                'marker_color': ROOT.kBlack,
                'marker_style': 20,
                'marker_size': 1.0
            },
            'mc': {
                'line_color': ROOT.kBlack,
                'line_width': 1,
                'fill_style': 1001
            },
            'residuals': {
                'line_color': ROOT.kBlack,
                'marker_color': ROOT.kBlack,
                'marker_style': 20,
                'marker_size': 1.0
            }
        }

    def create_histogram(self, hist: Histogram, name: Optional[str] = None) -> ROOT.TH1D:
        """
        Create a ROOT histogram from a Histogram value.

        Args:
            hist: Histogram to convert (under/overflow included)
            name: ROOT object name (defaults to hist.name)

        Returns:
            ROOT.TH1D not attached to any directory
        """
        n_bins = hist.n_bins
        root_hist = ROOT.TH1D(name or hist.name, hist.title, n_bins,
                              np.array(hist.edges, dtype=float))
        root_hist.SetDirectory(ROOT.nullptr)
        root_hist.Sumw2()

        for i in range(n_bins):
            root_hist.SetBinContent(i + 1, float(hist.contents[i]))
            root_hist.SetBinError(i + 1, float(hist.errors[i]))

        root_hist.SetBinContent(0, hist.underflow)
        root_hist.SetBinError(0, hist.underflow_error)
        root_hist.SetBinContent(n_bins + 1, hist.overflow)
        root_hist.SetBinError(n_bins + 1, hist.overflow_error)

        # SetBinContent counts entries; keep the total meaningful for the stats box
        root_hist.SetEntries(hist.integral(include_flow=True))
        root_hist.SetStats(0)

        return root_hist

    def _apply_stored_style(self, root_hist: ROOT.TH1D, style: Dict[str, float]) -> None:
        """Restore drawing attributes read from the source file."""
        setters = {
            'fLineColor': root_hist.SetLineColor,
            'fLineStyle': root_hist.SetLineStyle,
            'fLineWidth': root_hist.SetLineWidth,
            'fFillColor': root_hist.SetFillColor,
            'fFillStyle': root_hist.SetFillStyle,
            'fMarkerColor': root_hist.SetMarkerColor,
            'fMarkerStyle': root_hist.SetMarkerStyle,
            'fMarkerSize': root_hist.SetMarkerSize
        }
        for key, value in style.items():
            if key == 'fMarkerSize':
                root_hist.SetMarkerSize(float(value))
            elif key in setters:
                setters[key](int(value))

    def _apply_style(self, root_hist, style_opts: Dict) -> None:
        if 'line_color' in style_opts:
            root_hist.SetLineColor(style_opts['line_color'])
        if 'line_width' in style_opts:
            root_hist.SetLineWidth(style_opts['line_width'])
        if 'fill_color' in style_opts:
            root_hist.SetFillColor(style_opts['fill_color'])
        if 'fill_style' in style_opts:
            root_hist.SetFillStyle(style_opts['fill_style'])
        if 'marker_color' in style_opts:
            root_hist.SetMarkerColor(style_opts['marker_color'])
        if 'marker_style' in style_opts:
            root_hist.SetMarkerStyle(style_opts['marker_style'])
        if 'marker_size' in style_opts:
            root_hist.SetMarkerSize(style_opts['marker_size'])

    def create_data_histogram(self, hist: Histogram, name: str) -> ROOT.TH1D:
        """Data histogram drawn as black points with error bars."""
        root_hist = self.create_histogram(hist, name)
        self._apply_stored_style(root_hist, hist.style)

        # Points are required even if the file stored a line style only
        if root_hist.GetMarkerStyle() <= 1:
            self._apply_style(root_hist, self.default_styles['data'])

        return root_hist

    def create_mc_histograms(self, hists: List[Histogram], name_suffix: str) -> List[ROOT.TH1D]:
        """
        Create filled MC histograms in load order.

        Stored fill colors are kept; histograms stored without a fill get one
        from the fallback palette.
        """
        root_hists = []
        for i, hist in enumerate(hists):
            root_hist = self.create_histogram(hist, f"{hist.name}_{name_suffix}")
            self._apply_stored_style(root_hist, hist.style)

            if hist.style.get('fFillColor', 0) == 0:
                style_opts = dict(self.default_styles['mc'])
                style_opts['fill_color'] = self.mc_colors[i % len(self.mc_colors)]
                self._apply_style(root_hist, style_opts)

            root_hists.append(root_hist)

        return root_hists

    def create_residual_histogram(self, hist: Histogram, undefined_bins: np.ndarray,
                                  name: str) -> ROOT.TH1D:
        """
        Residual histogram used as the frame of the residuals pad.

        Undefined bins are stored as zero with zero error; they are not drawn
        from this histogram (see create_residual_graph).
        """
        contents = np.where(undefined_bins, 0., hist.contents)
        errors = np.where(undefined_bins, 0., hist.errors)
        finite = Histogram(name=hist.name, title=hist.title, edges=hist.edges,
                           contents=contents, errors=errors)

        root_hist = self.create_histogram(finite, name)
        self._apply_style(root_hist, self.default_styles['residuals'])

        return root_hist

    def create_residual_graph(self, hist: Histogram, undefined_bins: np.ndarray) -> ROOT.TGraphErrors:
        """
        Convert residuals to a TGraphErrors with points for defined bins only.

        Returns:
            TGraphErrors (possibly empty) styled like the residuals histogram
        """
        defined = ~np.asarray(undefined_bins, dtype=bool)

        x_vals = np.array(hist.centers[defined], dtype=float)
        y_vals = np.array(hist.contents[defined], dtype=float)
        x_errors = np.zeros(len(x_vals), dtype=float)  # No x error bars
        y_errors = np.array(hist.errors[defined], dtype=float)

        if len(x_vals):
            graph = ROOT.TGraphErrors(len(x_vals), x_vals, y_vals, x_errors, y_errors)
        else:
            graph = ROOT.TGraphErrors()

        self._apply_style(graph, self.default_styles['residuals'])

        return graph
