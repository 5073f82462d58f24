#!/usr/bin/env python3
"""
Batch data/MC plotting

Draws one data/MC figure per directory of a ROOT file and saves it in the
requested formats. Each directory must hold a "data" histogram, one or more
MC histograms and optionally a "title" string.

Example:
    datamc-plot histograms.root --all-dirs --output-dir plots --formats pdf root \\
        --normalize --cms-label Preliminary --energy-label "41.5 fb^{-1} (13 TeV)"
"""

import argparse
import os
import sys
from typing import Dict, List, Optional, Tuple
from tqdm import tqdm

from .datamc_plotter import DataMCPlot
from .datamc_data_processor import DataMCDataProcessor, DEFAULT_RESIDUAL_RANGE
from .exceptions import DataMCPlotError


def output_name(location: str) -> str:
    """File name stem for the figure of a directory."""
    if not location:
        return "plot"
    return location.strip('/').replace('/', '_')


class DataMCBatchProcessor:
    """Draws and saves the figures of several directories of one file."""

    def __init__(self, output_dir: str, formats: List[str] = None, normalize: bool = False,
                 is_density: bool = False, plot_residuals: bool = True,
                 residual_range: Tuple[float, float] = DEFAULT_RESIDUAL_RANGE,
                 cms_label: Optional[str] = None, energy_label: Optional[str] = None,
                 verbose: bool = True):
        """
        Initialize the batch processor.

        Args:
            output_dir: Directory for the output files
            formats: Output formats, e.g. ['pdf', 'png', 'root'] (default: ['pdf'])
            normalize: Normalize MC to data
            is_density: Histograms represent event density
            plot_residuals: Draw the residuals pad
            residual_range: Displayed range of the residuals
            cms_label: Text after the CMS mark (None for no CMS label)
            energy_label: Energy/luminosity label (None for no label)
            verbose: Print progress messages
        """
        self.output_dir = output_dir
        self.formats = formats or ['pdf']
        self.normalize = normalize
        self.is_density = is_density
        self.plot_residuals = plot_residuals
        self.residual_range = residual_range
        self.cms_label = cms_label
        self.energy_label = energy_label
        self.verbose = verbose

        # Analysis summary
        self.analysis_summary = {
            'locations_processed': 0,
            'locations_failed': 0,
            'files_written': [],
            'errors': []
        }

    def process_location(self, source: str, location: str) -> List[str]:
        """
        Draw and save the figure of one directory.

        Returns:
            Paths of the written files
        """
        plot = DataMCPlot(source, location, verbose=self.verbose)

        if self.normalize:
            plot.normalize_mc_to_data(self.is_density)

        plot.request_residuals(self.plot_residuals, *self.residual_range)
        plot.draw()

        if self.cms_label is not None:
            plot.add_cms_label(self.cms_label)
        if self.energy_label is not None:
            plot.add_energy_label(self.energy_label)

        written = []
        stem = os.path.join(self.output_dir, output_name(location))
        for fmt in self.formats:
            output_path = f"{stem}.{fmt}"
            plot.print_figure(output_path)
            written.append(output_path)

        return written

    def run(self, source: str, locations: List[str]) -> Dict:
        """
        Process all directories, continuing past directories that fail.

        Returns:
            The analysis summary
        """
        os.makedirs(self.output_dir, exist_ok=True)

        for location in tqdm(locations, desc="Drawing figures", disable=not self.verbose):
            try:
                written = self.process_location(source, location)
            except DataMCPlotError as err:
                self.analysis_summary['locations_failed'] += 1
                self.analysis_summary['errors'].append(f"{location or '/'}: {err}")
                continue

            self.analysis_summary['locations_processed'] += 1
            self.analysis_summary['files_written'].extend(written)

        return self.analysis_summary

    def print_analysis_summary(self) -> None:
        summary = self.analysis_summary

        print("\n" + "="*80)
        print("DATA/MC PLOTTING SUMMARY")
        print("="*80)
        print(f"  • Directories drawn: {summary['locations_processed']}")
        print(f"  • Directories failed: {summary['locations_failed']}")
        print(f"  • Files written: {len(summary['files_written'])}")

        for error in summary['errors']:
            print(f"  ✗ {error}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Draw data/MC comparison figures from a ROOT file')

    # Input
    parser.add_argument('source', type=str,
                        help='ROOT file with the data and MC histograms')
    location_group = parser.add_mutually_exclusive_group()
    location_group.add_argument('--dir', dest='dirs', type=str, nargs='+', default=None,
                                help='Directories to draw (default: the top directory)')
    location_group.add_argument('--all-dirs', action='store_true',
                                help='Draw every directory of the file')

    # Normalization and residuals
    parser.add_argument('--normalize', action='store_true',
                        help='Normalize the MC stack to the data yield')
    parser.add_argument('--density', action='store_true',
                        help='Histograms represent event density (integrate with bin widths)')
    parser.add_argument('--no-residuals', action='store_true',
                        help='Do not draw the (data - MC) / MC pad')
    parser.add_argument('--residual-min', type=float, default=DEFAULT_RESIDUAL_RANGE[0],
                        help=f'Lower edge of the residuals axis (default: {DEFAULT_RESIDUAL_RANGE[0]})')
    parser.add_argument('--residual-max', type=float, default=DEFAULT_RESIDUAL_RANGE[1],
                        help=f'Upper edge of the residuals axis (default: {DEFAULT_RESIDUAL_RANGE[1]})')

    # Labels
    parser.add_argument('--cms-label', type=str, default=None,
                        help='Add the CMS label followed by this text (e.g. "Preliminary")')
    parser.add_argument('--energy-label', type=str, default=None,
                        help='Add an energy/luminosity label (e.g. "41.5 fb^{-1} (13 TeV)")')

    # Output
    parser.add_argument('--output-dir', type=str, default='datamc_plots',
                        help='Output directory (default: datamc_plots)')
    parser.add_argument('--formats', type=str, nargs='+', default=['pdf'],
                        help='Output formats, e.g. pdf png root (default: pdf)')
    parser.add_argument('--quiet', action='store_true',
                        help='Suppress progress output')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.residual_min >= args.residual_max:
        parser.error("--residual-min must be smaller than --residual-max")

    verbose = not args.quiet

    if args.all_dirs:
        try:
            locations = DataMCDataProcessor().list_locations(args.source)
        except DataMCPlotError as err:
            print(f"Error: {err}", file=sys.stderr)
            return 1
        if not locations:
            locations = [""]
    else:
        locations = args.dirs or [""]

    if verbose:
        print(f"Drawing {len(locations)} figure(s) from {args.source}")

    processor = DataMCBatchProcessor(
        output_dir=args.output_dir,
        formats=args.formats,
        normalize=args.normalize,
        is_density=args.density,
        plot_residuals=not args.no_residuals,
        residual_range=(args.residual_min, args.residual_max),
        cms_label=args.cms_label,
        energy_label=args.energy_label,
        verbose=verbose
    )
    summary = processor.run(args.source, locations)

    if verbose:
        processor.print_analysis_summary()

    return 1 if summary['locations_failed'] else 0


if __name__ == "__main__":
    sys.exit(main())
