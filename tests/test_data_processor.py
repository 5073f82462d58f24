"""Tests for loading, normalization and residuals."""

import os

import numpy as np
import pytest

from datamc_plotting.histogram import Histogram
from datamc_plotting.datamc_data_processor import (
    DataMCDataProcessor, PlotDataset, ResidualSeries, split_title, RESIDUAL_Y_TITLE
)
from datamc_plotting.exceptions import (
    NotFoundError, SourceUnavailableError, LocationNotFoundError, MissingDataError,
    MissingSimulationError, DivideByZeroError, InvalidConfigurationError,
    IncompatibleBinningError, DataMCPlotError
)

from conftest import make_th1, make_th2


def unit_hist(name, contents, **kwargs):
    edges = kwargs.pop('edges', np.arange(len(contents) + 1, dtype=float))
    return Histogram(name=name, edges=edges, contents=contents, **kwargs)


def make_dataset(data, mc_list, title=";x [GeV];Events", **kwargs):
    return PlotDataset(
        data_histogram=unit_hist("data", data, **kwargs),
        mc_histograms=[unit_hist(f"mc{i}", contents, **kwargs) for i, contents in enumerate(mc_list)],
        title=title
    )


@pytest.fixture
def processor():
    return DataMCDataProcessor()


# === Loading ===

def test_load_top_directory(processor, standard_file):
    dataset = processor.load(standard_file)

    assert dataset.title == "Muon p_{T};p_{T} [GeV];Events"
    assert dataset.x_axis_title == "p_{T} [GeV]"
    assert dataset.y_axis_title == "Events"
    assert dataset.data_histogram.name == "data"
    assert dataset.data_histogram.title == "Data"
    assert np.allclose(dataset.data_histogram.contents, [12., 20., 8.])


def test_load_keeps_file_order_and_skips_systematics(processor, standard_file):
    dataset = processor.load(standard_file)

    # Key order, not alphabetical; syst_up/syst_down and the 2D histogram are left out
    assert dataset.mc_names == ["zz", "aa"]
    assert [hist.title for hist in dataset.mc_histograms] == ["ZZ", "AA"]
    assert any("syst_up" in entry for entry in processor.processing_summary['skipped_entries'])
    assert any("h2" in entry for entry in processor.processing_summary['skipped_entries'])


def test_load_sub_directory(processor, standard_file):
    dataset = processor.load(standard_file, "region")

    assert dataset.location == "region"
    assert dataset.title == "Region;m [GeV];Events"
    assert dataset.mc_names == ["ttbar"]
    assert np.allclose(dataset.mc_histograms[0].contents, [5., 10., 5.])


def test_load_reads_flow_bins_and_errors(processor, write_root_file):
    path = write_root_file({
        "data": make_th1([1., 2.], errors=[0.5, 0.25], underflow=3., overflow=4.),
        "mc": make_th1([1., 1.], edges=[0., 1., 3.]),
    })
    dataset = processor.load(path)
    data = dataset.data_histogram

    assert data.underflow == pytest.approx(3.)
    assert data.overflow == pytest.approx(4.)
    assert np.allclose(data.errors, [0.5, 0.25])
    assert np.allclose(dataset.mc_histograms[0].edges, [0., 1., 3.])


def test_loaded_histograms_do_not_depend_on_the_file(processor, standard_file):
    dataset = processor.load(standard_file)
    os.remove(standard_file)

    assert dataset.get_hist("zz").integral() == pytest.approx(12.)


def test_missing_title_gives_empty_string(processor, write_root_file):
    path = write_root_file({"data": make_th1([1.]), "mc": make_th1([1.])})
    dataset = processor.load(path)

    assert dataset.title == ""
    assert dataset.x_axis_title == ""


def test_missing_file_is_unavailable(processor, tmp_path):
    with pytest.raises(SourceUnavailableError):
        processor.load(str(tmp_path / "missing.root"))


def test_corrupt_file_is_unavailable(processor, tmp_path):
    path = tmp_path / "corrupt.root"
    path.write_text("this is not a ROOT file\n" * 100)

    with pytest.raises(NotFoundError):
        processor.load(str(path))
    assert processor.processing_summary['errors']


def test_missing_location(processor, standard_file):
    with pytest.raises(LocationNotFoundError) as excinfo:
        processor.load(standard_file, "nowhere")
    assert "nowhere" in str(excinfo.value)


def test_location_that_is_not_a_directory(processor, standard_file):
    with pytest.raises(LocationNotFoundError):
        processor.load(standard_file, "zz")


def test_missing_data(processor, write_root_file):
    path = write_root_file({"mc": make_th1([1.]), "other": make_th1([2.])})

    with pytest.raises(MissingDataError):
        processor.load(path)


def test_two_dimensional_data_is_not_data(processor, write_root_file):
    path = write_root_file({"data": make_th2(), "mc": make_th1([1.])})

    with pytest.raises(MissingDataError):
        processor.load(path)


def test_only_data_and_systematics_is_missing_simulation(processor, write_root_file):
    path = write_root_file({
        "data": make_th1([1., 2.]),
        "syst_up": make_th1([1., 2.]),
        "syst_down": make_th1([1., 2.]),
        "h2": make_th2(),
        "title": "t;x;y",
    })

    with pytest.raises(MissingSimulationError):
        processor.load(path)


def test_empty_directory_is_missing_data(processor, write_root_file):
    path = write_root_file({"data": make_th1([1.]), "mc": make_th1([1.])}, empty_dirs=["empty"])

    with pytest.raises(MissingDataError):
        processor.load(path, "empty")


def test_get_hist(standard_file, processor):
    dataset = processor.load(standard_file)

    assert dataset.get_hist("data") is dataset.data_histogram
    assert dataset.get_hist("aa").title == "AA"
    assert dataset.get_hist("syst_up") is None


def test_list_locations(processor, standard_file, write_root_file):
    assert processor.list_locations(standard_file) == ["", "region"]

    path = write_root_file({"a/data": make_th1([1.]), "a/mc": make_th1([1.])},
                           name="nested.root", empty_dirs=["b"])
    assert processor.list_locations(path) == ["a"]
    assert set(processor.list_locations(path, with_data_only=False)) == {"a", "b"}


@pytest.mark.parametrize("title, expected", [
    ("t;x;y", ["t", "x", "y"]),
    ("t;x", ["t", "x", ""]),
    ("t", ["t", "", ""]),
    ("", ["", "", ""]),
])
def test_split_title(title, expected):
    assert split_title(title) == expected


# === Normalization ===

def test_normalize_unweighted_example(processor):
    dataset = make_dataset([10., 20., 10.], [[5., 10., 5.]])

    factor = processor.normalize_to_data(dataset, is_density=False)

    assert factor == pytest.approx(2.)
    assert np.allclose(dataset.mc_histograms[0].contents, [10., 20., 10.])
    assert processor.processing_summary['normalization_factors'] == [factor]


def test_normalize_scales_errors_linearly(processor):
    dataset = make_dataset([10., 20., 10.], [[5., 10., 5.]])
    errors_before = dataset.mc_histograms[0].errors.copy()

    processor.normalize_to_data(dataset)

    assert np.allclose(dataset.mc_histograms[0].errors, 2. * errors_before)


@pytest.mark.parametrize("is_density", [False, True])
def test_normalized_mc_matches_data_integral(processor, is_density):
    edges = [0., 1., 3., 6.]
    dataset = PlotDataset(
        data_histogram=unit_hist("data", [4., 7., 1.], edges=edges, underflow=2., overflow=1.),
        mc_histograms=[
            unit_hist("a", [1., 2., 3.], edges=edges, overflow=0.5),
            unit_hist("b", [0.5, 0.1, 0.2], edges=edges, underflow=1.),
        ]
    )

    processor.normalize_to_data(dataset, is_density=is_density)

    data_integral = dataset.data_histogram.integral(width=is_density)
    mc_integral = sum(hist.integral(width=is_density) for hist in dataset.mc_histograms)
    assert mc_integral == pytest.approx(data_integral)
    assert dataset.mc_names == ["a", "b"]


def test_density_normalization_uses_bin_widths(processor):
    dataset = PlotDataset(
        data_histogram=unit_hist("data", [1., 1.], edges=[0., 1., 3.]),
        mc_histograms=[unit_hist("mc", [1., 0.], edges=[0., 1., 3.])]
    )

    # data: 1*1 + 1*2 = 3, MC: 1*1 = 1
    assert processor.normalize_to_data(dataset, is_density=True) == pytest.approx(3.)


def test_normalize_zero_mc_fails(processor):
    dataset = make_dataset([1., 2.], [[0., 0.], [0., 0.]])

    with pytest.raises(DivideByZeroError):
        processor.normalize_to_data(dataset)
    with pytest.raises(ZeroDivisionError):
        processor.normalize_to_data(dataset)


# === Residuals ===

def test_residuals_zero_after_normalization(processor):
    dataset = make_dataset([10., 20., 10.], [[5., 10., 5.]])
    processor.normalize_to_data(dataset)

    residuals = processor.compute_residuals(dataset)

    assert np.allclose(residuals.values, [0., 0., 0.])
    assert not residuals.undefined_bins.any()


def test_residuals_example(processor):
    dataset = make_dataset([12., 20., 8.], [[5., 10., 5.]])
    processor.normalize_to_data(dataset)

    residuals = processor.compute_residuals(dataset)

    assert np.allclose(residuals.values, [0.2, 0.0, -0.2])


def test_residuals_use_sum_of_all_mc(processor):
    data = [3., 5., 9.]
    mc_list = [[1., 2., 3.], [1., 1., 1.], [0., 2., 2.]]
    dataset = make_dataset(data, mc_list)

    residuals = processor.compute_residuals(dataset)

    total = np.sum(mc_list, axis=0)
    assert np.allclose(residuals.values, (np.array(data) - total) / total)
    assert np.allclose(residuals.total_mc.contents, total)
    assert residuals.total_mc.name == "mcTotalHist"


def test_residuals_zero_mc_bin_is_undefined(processor):
    dataset = make_dataset([1., 3., 4.], [[1., 0., 2.]])

    residuals = processor.compute_residuals(dataset)

    assert list(residuals.undefined_bins) == [False, True, False]
    assert np.isnan(residuals.values[1])
    assert np.isnan(residuals.errors[1])
    assert residuals.values[0] == pytest.approx(0.)
    assert residuals.values[2] == pytest.approx(1.)


def test_residual_errors(processor):
    dataset = PlotDataset(
        data_histogram=unit_hist("data", [12.], errors=[3.]),
        mc_histograms=[unit_hist("mc", [10.], errors=[4.])]
    )

    residuals = processor.compute_residuals(dataset)

    # Numerator error 5, then division by 10 with error 4
    expected = np.sqrt(25. * 100. + 16. * 4.) / 100.
    assert residuals.errors[0] == pytest.approx(expected)


def test_residuals_exclude_flow_bins(processor):
    dataset = make_dataset([1., 1.], [[1., 2.]], underflow=5., overflow=7.)

    residuals = processor.compute_residuals(dataset)

    assert residuals.histogram.underflow == 0.
    assert residuals.histogram.overflow == 0.
    assert residuals.histogram.n_bins == 2


def test_residual_histogram_title_and_range(processor):
    dataset = make_dataset([1., 1.], [[1., 1.]], title="Title;m_{jj} [GeV];Events")

    residuals = processor.compute_residuals(dataset, residual_range=(-0.5, 0.5))

    assert residuals.histogram.title == f";m_{{jj}} [GeV];{RESIDUAL_Y_TITLE}"
    assert residuals.histogram.name == "residualsHist"
    assert residuals.display_range == (-0.5, 0.5)


def test_residual_default_range(processor):
    residuals = processor.compute_residuals(make_dataset([1.], [[1.]]))
    assert residuals.display_range == (-0.25, 0.28)


def test_residual_series_rejects_empty_range():
    hist = unit_hist("r", [0.])
    with pytest.raises(InvalidConfigurationError):
        ResidualSeries(histogram=hist, total_mc=hist, display_range=(0.3, -0.3))


def test_residuals_need_matching_binning(processor):
    dataset = PlotDataset(
        data_histogram=unit_hist("data", [1., 1.]),
        mc_histograms=[unit_hist("mc", [1., 1.]), unit_hist("wide", [1., 1., 1.])],
        source="histograms.root",
        location="bad"
    )
    with pytest.raises(IncompatibleBinningError) as excinfo:
        processor.compute_residuals(dataset)

    assert excinfo.value.name == "wide"
    assert "bad" in str(excinfo.value)
    assert isinstance(excinfo.value, DataMCPlotError)
    assert isinstance(excinfo.value, ValueError)
