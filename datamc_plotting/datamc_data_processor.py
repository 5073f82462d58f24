#!/usr/bin/env python3
"""
DataMCDataProcessor - Pure data processing logic for data/MC comparison plots.

This class handles all the computational aspects:
- Loading data and MC histograms from ROOT files
- Normalizing the MC stack to the data yield
- Building the total MC expectation and the (data - MC) / MC residuals

Nothing here depends on ROOT itself; files are read with uproot and
histograms are copied out into numpy-backed Histogram values.
"""

import uproot
import numpy as np
from typing import Dict, List, Tuple, Optional
from dataclasses import dataclass, field

from .histogram import Histogram
from .exceptions import (
    SourceUnavailableError, LocationNotFoundError, MissingDataError,
    MissingSimulationError, DivideByZeroError, InvalidConfigurationError,
    IncompatibleBinningError
)

# One-dimensional histogram classes accepted as data or MC
ONE_DIM_CLASSES = ('TH1D', 'TH1F', 'TH1I', 'TH1S', 'TH1C')

# Entries that are never treated as MC components
DATA_NAME = 'data'
SYST_NAMES = ('syst_up', 'syst_down')
TITLE_NAME = 'title'

DEFAULT_RESIDUAL_RANGE = (-0.25, 0.28)
RESIDUAL_RANGE_SYMMETRIC = (-0.25, 0.25)
RESIDUAL_Y_TITLE = "#frac{Data-MC}{MC}"

# Drawing attributes copied from the stored histograms
STYLE_MEMBERS = ('fLineColor', 'fLineStyle', 'fLineWidth', 'fFillColor', 'fFillStyle',
                 'fMarkerColor', 'fMarkerStyle', 'fMarkerSize')


def split_title(title: str) -> List[str]:
    """
    Split a ROOT-style title "<title>;<x-axis title>;<y-axis title>".

    Always returns three segments; missing ones are empty strings.
    """
    segments = title.split(';')
    segments += [''] * (3 - len(segments))
    return segments[:3]


@dataclass
class PlotDataset:
    """Container for the histograms of one data/MC figure."""
    data_histogram: Histogram
    mc_histograms: List[Histogram]
    title: str = ""
    source: str = ""
    location: str = ""

    @property
    def x_axis_title(self) -> str:
        return split_title(self.title)[1]

    @property
    def y_axis_title(self) -> str:
        return split_title(self.title)[2]

    @property
    def mc_names(self) -> List[str]:
        return [hist.name for hist in self.mc_histograms]

    def get_hist(self, name: str) -> Optional[Histogram]:
        """Return the histogram with the given name, or None if there is none."""
        if name == DATA_NAME:
            return self.data_histogram

        for hist in self.mc_histograms:
            if hist.name == name:
                return hist

        return None


@dataclass
class ResidualSeries:
    """Residuals (data - MC) / MC together with the total MC they were built from."""
    histogram: Histogram
    total_mc: Histogram
    display_range: Tuple[float, float] = DEFAULT_RESIDUAL_RANGE
    undefined_bins: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=bool))

    def __post_init__(self):
        low, high = self.display_range
        if not low < high:
            raise InvalidConfigurationError(f"Residual display range ({low}, {high}) is empty")
        self.display_range = (float(low), float(high))

        if len(self.undefined_bins) != self.histogram.n_bins:
            self.undefined_bins = ~np.isfinite(self.histogram.contents)

    @property
    def values(self) -> np.ndarray:
        return self.histogram.contents

    @property
    def errors(self) -> np.ndarray:
        return self.histogram.errors


class DataMCDataProcessor:
    def __init__(self, verbose: bool = False):
        """
        Initialize the data processor.

        Args:
            verbose: Print progress messages
        """
        self.verbose = verbose

        # Processing summary for debugging
        self.processing_summary = {
            'files_processed': [],
            'skipped_entries': [],
            'normalization_factors': [],
            'errors': []
        }

    def _log(self, message: str) -> None:
        if self.verbose:
            print(message)

    def _open(self, source: str):
        """Open a ROOT file with uproot, translating failures to SourceUnavailableError."""
        try:
            return uproot.open(source)
        except (OSError, ValueError) as err:
            self.processing_summary['errors'].append(f"{source}: {err}")
            raise SourceUnavailableError(source, str(err)) from err

    def _get_directory(self, root_file, source: str, location: str):
        """Resolve the requested directory ("" means the top of the file)."""
        if not location:
            return root_file

        try:
            directory = root_file[location]
        except uproot.KeyInFileError as err:
            self.processing_summary['errors'].append(f"{source}: no directory '{location}'")
            raise LocationNotFoundError(source, location) from err

        if not isinstance(directory, uproot.ReadOnlyDirectory):
            self.processing_summary['errors'].append(f"{source}: '{location}' is not a directory")
            raise LocationNotFoundError(source, location)

        return directory

    @staticmethod
    def _read_style(root_hist) -> Dict[str, float]:
        members = root_hist.all_members
        return {key: float(members[key]) for key in STYLE_MEMBERS if key in members}

    def _to_histogram(self, root_hist, name: str) -> Histogram:
        """Copy an uproot TH1 into a detached Histogram."""
        values = np.asarray(root_hist.values(flow=True), dtype=float)
        errors = np.asarray(root_hist.errors(flow=True), dtype=float)
        edges = np.asarray(root_hist.axis().edges(flow=False), dtype=float)

        return Histogram(
            name=name,
            title=str(root_hist.member('fTitle')),
            edges=edges,
            contents=values[1:-1],
            errors=errors[1:-1],
            underflow=values[0],
            overflow=values[-1],
            underflow_error=errors[0],
            overflow_error=errors[-1],
            style=self._read_style(root_hist)
        )

    def load(self, source: str, location: str = "") -> PlotDataset:
        """
        Load the data and MC histograms stored in a directory of a ROOT file.

        Args:
            source: Path to the ROOT file
            location: Directory inside the file ("" for the top directory)

        Returns:
            PlotDataset with copies of the histograms; the file is closed on return

        Raises:
            SourceUnavailableError, LocationNotFoundError, MissingDataError,
            MissingSimulationError
        """
        with self._open(source) as root_file:
            directory = self._get_directory(root_file, source, location)

            # Key order of the directory defines stack and legend order
            classnames = directory.classnames(recursive=False, cycle=False)

            title = ""
            if classnames.get(TITLE_NAME) == 'TObjString':
                title = str(directory[TITLE_NAME])

            if classnames.get(DATA_NAME) not in ONE_DIM_CLASSES:
                self.processing_summary['errors'].append(f"{source}:{location}: no data histogram")
                raise MissingDataError(source, location)

            data_hist = self._to_histogram(directory[DATA_NAME], DATA_NAME)

            mc_hists = []
            for key_name, class_name in classnames.items():
                if class_name not in ONE_DIM_CLASSES:
                    if key_name != TITLE_NAME:
                        self.processing_summary['skipped_entries'].append(
                            f"{location}/{key_name} ({class_name})")
                    continue

                # Skip the data histogram and histograms with systematics
                if key_name == DATA_NAME or key_name in SYST_NAMES:
                    if key_name != DATA_NAME:
                        self.processing_summary['skipped_entries'].append(f"{location}/{key_name}")
                    continue

                mc_hists.append(self._to_histogram(directory[key_name], key_name))

        if not mc_hists:
            self.processing_summary['errors'].append(f"{source}:{location}: no MC histograms")
            raise MissingSimulationError(source, location)

        self.processing_summary['files_processed'].append(f"{source}:{location}")
        self._log(f"Loaded data and {len(mc_hists)} MC histograms from {source}"
                  f"{':' + location if location else ''}")
        for hist in mc_hists:
            self._log(f"  {hist.name}: {hist.integral():.1f}")

        return PlotDataset(
            data_histogram=data_hist,
            mc_histograms=mc_hists,
            title=title,
            source=source,
            location=location
        )

    def list_locations(self, source: str, with_data_only: bool = True) -> List[str]:
        """
        List the directories of a ROOT file, depth first, in key order.

        Args:
            source: Path to the ROOT file
            with_data_only: Keep only directories holding a "data" entry; the top
                            directory is then included as "" if it holds one

        Returns:
            Directory paths relative to the top of the file
        """
        with self._open(source) as root_file:
            classnames = root_file.classnames(recursive=True, cycle=False)

        locations = [name for name, class_name in classnames.items()
                     if class_name.startswith('TDirectory')]

        if not with_data_only:
            return locations

        locations = [""] + locations
        return [location for location in locations
                if (f"{location}/{DATA_NAME}" if location else DATA_NAME) in classnames]

    def normalize_to_data(self, dataset: PlotDataset, is_density: bool = False) -> float:
        """
        Rescale all MC histograms by a common factor so that the total MC yield
        matches the data yield. Under- and overflow are included.

        Args:
            dataset: Dataset whose MC histograms are replaced by scaled copies
            is_density: Histograms represent event density; integrate with bin widths

        Returns:
            The normalization factor

        Raises:
            DivideByZeroError: If the total MC integral is zero
        """
        data_integral = dataset.data_histogram.integral(include_flow=True, width=is_density)
        mc_integral = sum(hist.integral(include_flow=True, width=is_density)
                          for hist in dataset.mc_histograms)

        if mc_integral == 0:
            self.processing_summary['errors'].append(
                f"{dataset.source}:{dataset.location}: zero MC integral")
            raise DivideByZeroError(f"Cannot normalize MC to data in \"{dataset.source}\", "
                                    f"directory \"{dataset.location}\": total MC integral is zero.")

        factor = data_integral / mc_integral
        dataset.mc_histograms[:] = [hist.scaled(factor) for hist in dataset.mc_histograms]

        self.processing_summary['normalization_factors'].append(factor)
        self._log(f"Normalization factor: {factor:.4g} (data {data_integral:.1f}, MC {mc_integral:.1f})")

        return factor

    def total_mc(self, dataset: PlotDataset) -> Histogram:
        """Bin-wise sum of all MC histograms (errors in quadrature)."""
        total = dataset.mc_histograms[0]
        for hist in dataset.mc_histograms[1:]:
            total = total.added(hist)

        return total.renamed('mcTotalHist', 'Total MC')

    def compute_residuals(self, dataset: PlotDataset,
                          residual_range: Tuple[float, float] = DEFAULT_RESIDUAL_RANGE) -> ResidualSeries:
        """
        Compute (data - MC) / MC for every regular bin.

        Bins with zero total MC get nan and are flagged in undefined_bins.
        Under- and overflow are left out of the residuals.

        Args:
            dataset: Dataset to compare (normalize first if needed)
            residual_range: Displayed y range of the residual plot

        Returns:
            ResidualSeries

        Raises:
            IncompatibleBinningError: If an MC histogram is binned differently from data
        """
        data = dataset.data_histogram
        for hist in dataset.mc_histograms:
            if not data.has_same_binning(hist):
                self.processing_summary['errors'].append(
                    f"{dataset.source}:{dataset.location}: binning of {hist.name} differs from data")
                raise IncompatibleBinningError(dataset.source, dataset.location, hist.name)

        total = self.total_mc(dataset)

        difference = data.contents - total.contents
        difference_errors = np.hypot(data.errors, total.errors)

        undefined = total.contents == 0
        safe_total = np.where(undefined, 1.0, total.contents)

        residuals = difference / safe_total
        residual_errors = np.sqrt(difference_errors ** 2 * safe_total ** 2
                                  + total.errors ** 2 * difference ** 2) / safe_total ** 2

        residuals = np.where(undefined, np.nan, residuals)
        residual_errors = np.where(undefined, np.nan, residual_errors)

        if np.any(undefined):
            self._log(f"Residuals undefined in {int(np.sum(undefined))} bin(s) with zero MC")

        residual_hist = Histogram(
            name='residualsHist',
            title=f";{dataset.x_axis_title};{RESIDUAL_Y_TITLE}",
            edges=data.edges,
            contents=residuals,
            errors=residual_errors,
            style=data.style
        )

        return ResidualSeries(
            histogram=residual_hist,
            total_mc=total,
            display_range=residual_range,
            undefined_bins=undefined
        )
