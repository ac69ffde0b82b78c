"""
Integration tests for run_pipeline.
"""

import numpy as np
import pytest

from hrv_pipeline import run_pipeline
from hrv_pipeline.config import DetectorConfig
from hrv_pipeline.io_utils import load_bids_event_indices
from hrv_pipeline.signal import Events, Waveform
from tests.helpers.synthetic_data import PERIODIC_RR

pytestmark = pytest.mark.integration


def test_detects_beats_and_computes_hrv(periodic_waveform):
    result = run_pipeline(periodic_waveform, DetectorConfig(min_rr_s=0.3))

    assert result.fs == periodic_waveform.fs
    assert result.sample_count == periodic_waveform.n_samples
    assert len(result.events) == len(PERIODIC_RR) + 1
    assert len(result.rr) == len(result.events) - 1
    assert result.hrv_time.n == len(PERIODIC_RR)
    assert result.hrv_time.rmssd > 0


def test_bids_events_bypass_detection(bids_sample_path):
    fs = 250.0
    waveform = Waveform(fs=fs, samples=np.zeros(500))
    events = load_bids_event_indices(bids_sample_path, fs)

    result = run_pipeline(waveform, events=events)

    assert result.events.indices.tolist() == [0, 125, 300]
    np.testing.assert_allclose(result.rr.rr, [0.5, 0.7])
    assert result.hrv_time.avnn == pytest.approx(0.6, abs=1e-6)
    assert result.hrv_time.sdnn == pytest.approx(0.1414213562373095, abs=1e-6)
    assert result.hrv_time.rmssd == pytest.approx(0.2, abs=1e-6)
    assert result.hrv_time.pnn50 == pytest.approx(1.0, abs=1e-6)


def test_supplied_events_used_as_given(periodic_waveform):
    events = Events.from_indices([100, 300, 550])
    result = run_pipeline(periodic_waveform, events=events)
    assert result.events == events


def test_empty_waveform():
    result = run_pipeline(Waveform(fs=250.0, samples=[]))
    assert result.sample_count == 0
    assert len(result.events) == 0
    assert len(result.rr) == 0
    assert result.hrv_time.n == 0


def test_to_dict_shape(periodic_waveform):
    data = run_pipeline(periodic_waveform, DetectorConfig(min_rr_s=0.3)).to_dict()
    assert set(data) == {"fs", "sample_count", "events", "rr", "hrv_time"}
    assert data["events"]["indices"] == sorted(data["events"]["indices"])
    assert len(data["rr"]["rr"]) == data["hrv_time"]["n"]
