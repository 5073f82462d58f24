"""Shared fixtures: small ROOT files written with uproot."""

import numpy as np
import pytest
import uproot
from uproot.writing.identify import to_TAxis, to_TH1x


def make_th1(contents, edges=None, errors=None, underflow=0., overflow=0., title=""):
    """Build a TH1D model with flow bins and errors that uproot can write."""
    contents = np.asarray(contents, dtype=float)
    if edges is None:
        edges = np.arange(len(contents) + 1, dtype=float)
    edges = np.asarray(edges, dtype=float)
    if errors is None:
        errors = np.sqrt(np.abs(contents))
    errors = np.asarray(errors, dtype=float)

    centers = 0.5 * (edges[:-1] + edges[1:])
    data = np.concatenate([[underflow], contents, [overflow]])
    sumw2 = np.concatenate([[abs(underflow)], errors ** 2, [abs(overflow)]])

    x_axis = to_TAxis(
        fName="xaxis",
        fTitle="",
        fNbins=len(contents),
        fXmin=float(edges[0]),
        fXmax=float(edges[-1]),
        fXbins=edges
    )
    return to_TH1x(
        fName="h",
        fTitle=title,
        data=data,
        fEntries=float(np.sum(np.abs(data))),
        fTsumw=float(np.sum(contents)),
        fTsumw2=float(np.sum(errors ** 2)),
        fTsumwx=float(np.sum(contents * centers)),
        fTsumwx2=float(np.sum(contents * centers ** 2)),
        fSumw2=sumw2,
        fXaxis=x_axis
    )


def make_th2():
    counts = np.array([[1., 2.], [3., 4.]])
    edges = np.array([0., 1., 2.])
    return counts, edges, edges


@pytest.fixture
def write_root_file(tmp_path):
    """
    Factory writing a ROOT file from an ordered {path: object} dict.

    Objects are uproot-writable values: TH1 models from make_th1, strings
    (stored as TObjString) or numpy histogram tuples.
    """
    def _write(entries, name="histograms.root", empty_dirs=()):
        path = tmp_path / name
        with uproot.recreate(path) as root_file:
            for directory in empty_dirs:
                root_file.mkdir(directory)
            for key, obj in entries.items():
                root_file[key] = obj
        return str(path)

    return _write


@pytest.fixture
def standard_file(write_root_file):
    """File with a complete data/MC set at the top and in a sub-directory."""
    entries = {
        "title": "Muon p_{T};p_{T} [GeV];Events",
        "data": make_th1([12., 20., 8.], title="Data"),
        "zz": make_th1([3., 6., 3.], title="ZZ"),
        "syst_up": make_th1([6., 11., 6.]),
        "aa": make_th1([2., 4., 2.], title="AA"),
        "syst_down": make_th1([4., 9., 4.]),
        "h2": make_th2(),
        "region/data": make_th1([10., 20., 10.], title="Data"),
        "region/ttbar": make_th1([5., 10., 5.], title="t#bar{t}"),
        "region/title": "Region;m [GeV];Events",
    }
    return write_root_file(entries)
