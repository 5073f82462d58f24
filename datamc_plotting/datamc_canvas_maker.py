#!/usr/bin/env python3
"""
DataMCCanvasMaker - Canvas creation and plot finalization for data/MC plots.

This class handles:
- Creating the canvas and pads from a LayoutResult
- Drawing the MC stack, the data points and the legend
- Drawing the residuals pad with text and ticks matched to the main pad
- Adding the CMS and energy labels
- Saving figures as images or ROOT files

Designed to work with DataMCDataProcessor and DataMCHistogramMaker.
"""

import os
import ROOT
from typing import Dict, List, Optional
from dataclasses import dataclass, field

from .plotting import Plot
from .datamc_data_processor import PlotDataset, ResidualSeries
from .datamc_histogram_maker import DataMCHistogramMaker
from .datamc_canvas_layout import (
    LayoutResult, PadGeometry, RESIDUAL_AXIS_PRESETS, scale_to_pad, update_config
)
from .exceptions import InvalidConfigurationError

# Enable batch mode
ROOT.gROOT.SetBatch(True)


@dataclass
class DataMCFigure:
    """All ROOT objects of a drawn figure; holding them prevents garbage collection."""
    canvas: ROOT.TCanvas
    main_pad: ROOT.TPad
    stack: ROOT.THStack
    legend: ROOT.TLegend
    data_hist: ROOT.TH1D
    mc_hists: List[ROOT.TH1D]
    layout: LayoutResult
    residual_pad: Optional[ROOT.TPad] = None
    residual_hist: Optional[ROOT.TH1D] = None
    residual_graph: Optional[ROOT.TGraphErrors] = None
    labels: List[ROOT.TLatex] = field(default_factory=list)


class DataMCCanvasMaker:
    def __init__(self, verbose: bool = False):
        """
        Initialize the canvas maker.

        Args:
            verbose: Print progress messages
        """
        self.verbose = verbose
        self.histogram_maker = DataMCHistogramMaker()

        # Residuals y-axis configuration
        self.residual_axis_config = dict(RESIDUAL_AXIS_PRESETS['default'])

        # Legend configuration; the height grows with the number of entries
        self.legend_config = {
            'x1': 0.86,
            'x2': 0.99,
            'y_top': 0.9,
            'entry_height': 0.04,
            'text_size': 0.03,
            'text_font': 42
        }

        # Fixed-position labels, in canvas NDC
        self.label_config = {
            'cms': {'x': 0.16, 'y': 0.91, 'text_size': 0.04},
            'energy': {'x': 0.85, 'y': 0.91, 'text_size': 0.04}
        }

        # Headroom above the highest bin
        self.max_scale = 1.1

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message)

    def set_residual_axis_config(self, **kwargs) -> None:
        update_config(self.residual_axis_config, **kwargs)

    def get_residual_axis_config(self) -> Dict:
        return dict(self.residual_axis_config)

    def set_legend_config(self, **kwargs) -> None:
        update_config(self.legend_config, **kwargs)

    def get_legend_config(self) -> Dict:
        return dict(self.legend_config)

    def _create_pad(self, geometry: PadGeometry, suffix: str) -> ROOT.TPad:
        pad = ROOT.TPad(f"{geometry.name}_{suffix}", "", geometry.x1, geometry.y1,
                        geometry.x2, geometry.y2)

        # Adjust margins to host axis labels (otherwise they would be cropped)
        pad.SetLeftMargin(geometry.left_margin)
        pad.SetRightMargin(geometry.right_margin)
        pad.SetBottomMargin(geometry.bottom_margin)
        pad.SetTopMargin(geometry.top_margin)
        pad.SetTicks()

        return pad

    def create_legend(self, data_hist: ROOT.TH1D, mc_hists: List[ROOT.TH1D],
                      data_title: str, mc_titles: List[str]) -> ROOT.TLegend:
        """
        Create the legend: data first, then MC in load order.

        Args:
            data_hist: Data histogram (None to omit the data entry)
            mc_hists: MC histograms in load order
            data_title: Legend label of the data entry
            mc_titles: Legend labels of the MC entries

        Returns:
            ROOT.TLegend sized to its number of entries
        """
        config = self.legend_config
        n_entries = len(mc_hists) + (1 if data_hist is not None else 0)

        legend = ROOT.TLegend(config['x1'], config['y_top'] - config['entry_height'] * n_entries,
                              config['x2'], config['y_top'])
        legend.SetName("legend")
        legend.SetFillColor(ROOT.kWhite)
        legend.SetTextFont(config['text_font'])
        legend.SetTextSize(config['text_size'])
        legend.SetBorderSize(0)

        if data_hist is not None:
            legend.AddEntry(data_hist, data_title, "p")

        for mc_hist, title in zip(mc_hists, mc_titles):
            legend.AddEntry(mc_hist, title, "f")

        return legend

    def _draw_residuals(self, canvas: ROOT.TCanvas, stack: ROOT.THStack,
                        residuals: ResidualSeries, layout: LayoutResult, suffix: str):
        """Draw the residuals pad below the main pad."""
        geometry = layout.residual_pad
        residual_pad = self._create_pad(geometry, suffix)

        residual_pad.SetGrid(0, 1 if self.residual_axis_config['grid_y'] else 0)
        # Transparent, so the lower half of the zero label of the main pad stays visible
        residual_pad.SetFillStyle(0)

        canvas.cd()
        residual_pad.Draw()

        residual_hist = self.histogram_maker.create_residual_histogram(
            residuals.histogram, residuals.undefined_bins, f"residualsHist_{suffix}")
        residual_graph = self.histogram_maker.create_residual_graph(
            residuals.histogram, residuals.undefined_bins)

        low, high = residuals.display_range
        residual_hist.SetMinimum(low)
        residual_hist.SetMaximum(high)

        x_axis = residual_hist.GetXaxis()
        y_axis = residual_hist.GetYaxis()
        stack_x_axis = stack.GetXaxis()

        # Same apparent text size as in the main pad
        main_height = layout.main_pad.height
        residual_height = geometry.height
        title_size = scale_to_pad(stack_x_axis.GetTitleSize(), main_height, residual_height)
        label_size = scale_to_pad(stack_x_axis.GetLabelSize(), main_height, residual_height)

        x_axis.SetTitleSize(title_size)
        x_axis.SetLabelSize(label_size)
        y_axis.SetTitleSize(title_size)
        y_axis.SetLabelSize(label_size)

        y_axis.SetNdivisions(self.residual_axis_config['ndivisions'])
        y_axis.CenterTitle()
        y_axis.SetTitleOffset(self.residual_axis_config['title_offset'])
        y_axis.SetLabelOffset(stack.GetYaxis().GetLabelOffset())
        x_axis.SetTickLength(x_axis.GetTickLength() * layout.tick_scale)

        residual_pad.cd()
        residual_hist.Draw("axis")
        residual_graph.Draw("P")

        # The residuals pad carries the x labels
        stack_x_axis.SetLabelOffset(999.)

        return residual_pad, residual_hist, residual_graph

    def create_figure(self, dataset: PlotDataset, layout: LayoutResult,
                      residuals: Optional[ResidualSeries] = None,
                      name: str = "datamc") -> DataMCFigure:
        """
        Draw a data/MC figure.

        Args:
            dataset: Histograms to draw
            layout: Canvas and pad geometry
            residuals: Residuals to draw; requires a layout with a residuals pad
            name: Unique suffix for ROOT object names

        Returns:
            DataMCFigure holding the canvas and everything drawn in it
        """
        if residuals is not None and not layout.has_residuals:
            raise InvalidConfigurationError("Residuals given for a layout without a residuals pad")

        Plot.apply_global_style()

        canvas = ROOT.TCanvas(f"canvas_{name}", "", layout.canvas_width, layout.canvas_height)
        main_pad = self._create_pad(layout.main_pad, name)
        canvas.cd()
        main_pad.Draw()

        data_hist = self.histogram_maker.create_data_histogram(dataset.data_histogram,
                                                               f"data_{name}")
        mc_hists = self.histogram_maker.create_mc_histograms(dataset.mc_histograms, name)

        # Last loaded MC histogram at the bottom of the stack
        stack = ROOT.THStack(f"mcStack_{name}", dataset.title)
        for mc_hist in reversed(mc_hists):
            stack.Add(mc_hist, "hist")

        main_pad.cd()
        stack.Draw()
        data_hist.Draw("p0 e1 same")
        # Paint once so the stack axes exist
        main_pad.Update()

        legend = self.create_legend(data_hist, mc_hists, dataset.data_histogram.title,
                                    [hist.title for hist in dataset.mc_histograms])
        canvas.cd()
        legend.Draw()

        hist_max = self.max_scale * max(stack.GetMaximum(), data_hist.GetMaximum())
        stack.SetMaximum(hist_max)
        data_hist.SetMaximum(hist_max)

        figure = DataMCFigure(
            canvas=canvas,
            main_pad=main_pad,
            stack=stack,
            legend=legend,
            data_hist=data_hist,
            mc_hists=mc_hists,
            layout=layout
        )

        if residuals is not None:
            residual_pad, residual_hist, residual_graph = self._draw_residuals(
                canvas, stack, residuals, layout, name)
            figure.residual_pad = residual_pad
            figure.residual_hist = residual_hist
            figure.residual_graph = residual_graph

        canvas.Modified()
        canvas.Update()

        self._log(f"Drew figure '{name}' ({layout.canvas_width}x{layout.canvas_height}, "
                  f"{len(mc_hists)} MC histograms, residuals: {residuals is not None})")

        return figure

    def add_text_label(self, figure: DataMCFigure, kind: str, text: str = "") -> ROOT.TLatex:
        """
        Add a fixed-position label to the canvas.

        Args:
            figure: Drawn figure
            kind: 'cms' (text follows the CMS mark) or 'energy'
            text: Label text

        Returns:
            The drawn ROOT.TLatex
        """
        if kind not in self.label_config:
            raise InvalidConfigurationError(
                f"Unknown label kind '{kind}', expected one of {sorted(self.label_config)}")

        config = self.label_config[kind]

        figure.canvas.cd()
        if kind == 'cms':
            label = Plot.CMSmark(text, config['x'], config['y'], config['text_size'])
        else:
            label = Plot.energy_mark(text, config['x'], config['y'], config['text_size'])

        figure.labels.append(label)
        figure.canvas.Modified()

        return label

    def save_figure(self, figure: DataMCFigure, output_path: str) -> None:
        """
        Save a figure.

        ROOT files get the canvas and the legend written side by side; any
        other extension is passed to TCanvas::Print.
        """
        dir_name = os.path.dirname(output_path)
        if dir_name:
            os.makedirs(dir_name, exist_ok=True)

        # If the output is not a ROOT file, simply print the canvas
        if not output_path.endswith('.root'):
            figure.canvas.Print(output_path)
            self._log(f"Saved {output_path}")
            return

        root_file = ROOT.TFile(output_path, "RECREATE")
        root_file.cd()
        figure.canvas.Write()
        figure.legend.Write()
        root_file.Close()

        self._log(f"Saved {output_path}")
