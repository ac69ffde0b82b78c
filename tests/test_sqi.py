"""
Tests for signal quality indices.
"""

import numpy as np
import pytest

from hrv_pipeline import sqi
from hrv_pipeline.sqi import (
    SQIResult,
    compute_kurtosis,
    compute_ppg_spike_ratio,
    compute_rr_cv,
    compute_snr,
    compute_spectral_entropy,
    evaluate_sqi,
)
from hrv_pipeline.signal import RRSeries, Waveform


def _wave(samples, fs=100.0):
    return Waveform(fs=fs, samples=samples)


class TestKurtosis:
    def test_constant_signal(self):
        assert compute_kurtosis(_wave(np.full(50, 2.0))) == 0.0

    def test_pulse_train_is_peaky(self, periodic_waveform):
        assert compute_kurtosis(periodic_waveform) > 3.0

    @pytest.mark.filterwarnings("ignore::RuntimeWarning")
    def test_near_constant_signal_is_finite(self):
        samples = 1000.0 + np.array([0.0, 1e-13, 0.0, 0.0, 2e-13, 0.0])
        kurt = compute_kurtosis(_wave(samples))
        assert np.isfinite(kurt)
        assert kurt >= 0.0

    def test_nan_from_scipy_maps_to_zero(self, monkeypatch):
        monkeypatch.setattr(sqi.stats, "kurtosis", lambda *args, **kwargs: np.nan)
        assert compute_kurtosis(_wave([1.0, -1.0] * 20)) == 0.0

    def test_two_level_signal(self):
        # symmetric +/-1: m4 / m2^2 == 1
        assert compute_kurtosis(_wave([1.0, -1.0] * 20)) == pytest.approx(1.0)


class TestSNR:
    def test_shorter_than_one_window(self):
        assert compute_snr(_wave([1.0, 2.0, 3.0, 4.0])) == 0.0

    def test_constant_signal_hits_noise_floor(self):
        assert compute_snr(_wave(np.full(20, 1.0))) == pytest.approx(1e9)

    def test_non_overlapping_windows(self):
        # windows [0,0,0,0,2] and [2,2,2,2,2]; trailing sample ignored
        data = [0.0, 0.0, 0.0, 0.0, 2.0, 2.0, 2.0, 2.0, 2.0, 2.0, 100.0]
        signal_power = np.mean(np.square(data))
        noise_power = np.mean([np.var([0, 0, 0, 0, 2]), 0.0])
        assert compute_snr(_wave(data)) == pytest.approx(signal_power / noise_power)


class TestRRCV:
    def test_known_value(self):
        assert compute_rr_cv(RRSeries([0.5, 1.5])) == pytest.approx(0.5)

    def test_constant_and_empty(self):
        assert compute_rr_cv(RRSeries([0.8, 0.8, 0.8])) == 0.0
        assert compute_rr_cv(RRSeries([])) == 0.0


class TestSpectralEntropy:
    def test_impulse_has_flat_spectrum(self):
        data = np.zeros(64)
        data[0] = 1.0
        assert compute_spectral_entropy(_wave(data)) == pytest.approx(np.log2(33))

    def test_pure_tone_is_concentrated(self):
        n = np.arange(64)
        tone = np.sin(2 * np.pi * 4 * n / 64)
        assert compute_spectral_entropy(_wave(tone)) == pytest.approx(0.0, abs=1e-6)

    def test_zero_signal(self):
        assert compute_spectral_entropy(_wave(np.zeros(16))) == 0.0


class TestSpikeRatio:
    def test_single_spike(self):
        data = np.zeros(100)
        data[50] = 1.0
        assert compute_ppg_spike_ratio(_wave(data)) == pytest.approx(2.0 / 99.0)

    def test_flat_and_short(self):
        assert compute_ppg_spike_ratio(_wave(np.ones(10))) == 0.0
        assert compute_ppg_spike_ratio(_wave([1.0])) == 0.0


class TestSQIResult:
    @pytest.mark.parametrize(
        "kurtosis, snr, rr_cv, expected",
        [
            (3.0, 2.0, 0.1, True),
            (0.0, 1.0, 0.2, True),
            (3.0, 0.5, 0.1, False),
            (3.0, 2.0, 0.3, False),
            (-0.1, 2.0, 0.1, False),
        ],
    )
    def test_is_acceptable(self, kurtosis, snr, rr_cv, expected):
        result = SQIResult(
            kurtosis=kurtosis, snr=snr, rr_cv=rr_cv, spectral_entropy=1.0, ppg_spike_ratio=0.0
        )
        assert result.is_acceptable() is expected

    def test_empty_inputs(self):
        result = evaluate_sqi(Waveform(fs=250.0, samples=[]), RRSeries([]))
        assert result.to_dict() == {
            "kurtosis": 0.0,
            "snr": 0.0,
            "rr_cv": 0.0,
            "spectral_entropy": 0.0,
            "ppg_spike_ratio": 0.0,
        }

    def test_range_bounds(self, periodic_waveform):
        rr = RRSeries(np.diff([0.5, 1.32, 2.1, 2.9]))
        result = evaluate_sqi(periodic_waveform, rr)
        assert result.kurtosis >= 0
        assert result.snr >= 0
        assert result.rr_cv >= 0
        assert result.spectral_entropy >= 0
        assert 0.0 <= result.ppg_spike_ratio <= 1.0
