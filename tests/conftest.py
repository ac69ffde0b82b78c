"""Pytest configuration and fixtures for hrv_pipeline tests."""

from pathlib import Path

import numpy as np
import pytest

from hrv_pipeline.signal import RRSeries, Waveform
from tests.helpers.synthetic_data import (
    PERIODIC_RR,
    REGRESSION_RR,
    beat_times_from_rr,
    generate_pulse_train,
)

FS = 250.0


def pytest_configure(config):
    """Register custom test markers."""
    config.addinivalue_line("markers", "unit: Unit tests for a single module")
    config.addinivalue_line(
        "markers", "integration: Integration tests combining multiple components"
    )


@pytest.fixture
def data_dir():
    """Return path to the test data directory."""
    return Path(__file__).parent / "data"


@pytest.fixture
def bids_sample_path(data_dir):
    """BIDS events table with onsets 0.0, 0.5 and 1.2 s."""
    return data_dir / "bids_sample.tsv"


@pytest.fixture
def periodic_beat_times():
    """True beat times (s) of the periodic recording."""
    return beat_times_from_rr(PERIODIC_RR, first_beat=0.5)


@pytest.fixture
def periodic_waveform(periodic_beat_times):
    """Nine Gaussian pulses at 250 Hz separated by PERIODIC_RR."""
    return Waveform(fs=FS, samples=generate_pulse_train(periodic_beat_times, fs=FS))


@pytest.fixture
def regression_rr():
    return RRSeries(np.array(REGRESSION_RR))
