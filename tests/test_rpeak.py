"""
Tests for beat detection.
"""

import numpy as np
import pytest

from hrv_pipeline import rpeak
from hrv_pipeline.config import DetectorConfig, default_detector_config
from hrv_pipeline.hrv import derive_rr, hrv_time
from hrv_pipeline.rpeak import (
    DetectorMethod,
    _detect_beats,
    _fallback_detection,
    _scan_envelope,
    detect,
    detect_with_config,
)
from hrv_pipeline.signal import Waveform
from tests.helpers.synthetic_data import PERIODIC_RR, generate_pulse_train

FS = 250.0


class TestPeriodicRecovery:
    def test_recovers_every_beat(self, periodic_waveform, periodic_beat_times):
        events = detect(periodic_waveform, 0.3)

        assert len(events) == len(PERIODIC_RR) + 1
        true_idx = np.round(periodic_beat_times * FS)
        assert np.all(np.abs(events.indices - true_idx) <= 10)

    def test_rr_matches_truth(self, periodic_waveform):
        rr = derive_rr(detect(periodic_waveform, 0.3), FS)
        np.testing.assert_allclose(rr.rr, PERIODIC_RR, atol=0.02)

        metrics = hrv_time(rr)
        assert metrics.n == len(PERIODIC_RR)
        assert metrics.rmssd > 0
        assert metrics.avnn == pytest.approx(np.mean(PERIODIC_RR), abs=0.01)

    def test_adaptive_path_is_used(self, periodic_waveform):
        result = _detect_beats(periodic_waveform, default_detector_config.with_min_rr(0.3))
        assert result.method_used is DetectorMethod.ADAPTIVE

    def test_dc_offset_does_not_move_beats(self, periodic_waveform, periodic_beat_times):
        shifted = Waveform(
            fs=FS,
            samples=generate_pulse_train(periodic_beat_times, fs=FS, baseline=0.75),
        )
        a = detect(periodic_waveform, 0.3)
        b = detect(shifted, 0.3)
        assert len(a) == len(b)
        assert np.all(np.abs(a.indices - b.indices) <= 1)


class TestInvariants:
    def test_deterministic(self, periodic_waveform):
        config = DetectorConfig(min_rr_s=0.3)
        assert detect_with_config(periodic_waveform, config) == detect_with_config(
            periodic_waveform, config
        )

    def test_sorted_in_range_and_refractory(self, periodic_waveform):
        min_rr_s = 0.3
        events = detect(periodic_waveform, min_rr_s)
        idx = events.indices

        assert np.all(idx >= 0)
        assert np.all(idx < periodic_waveform.n_samples)
        assert np.all(np.diff(idx) > 0)
        assert np.all(np.diff(idx) >= min_rr_s * FS)

    def test_empty_waveform(self):
        events = detect(Waveform(fs=FS, samples=[]), 0.25)
        assert len(events) == 0

    def test_detect_uses_given_refractory(self, periodic_waveform):
        events = detect(periodic_waveform, 0.3)
        expected = detect_with_config(periodic_waveform, default_detector_config.with_min_rr(0.3))
        assert events == expected


class TestFallback:
    def test_single_pulse_answered_by_fallback(self):
        samples = generate_pulse_train([0.5], fs=FS, duration=2.0)
        wave = Waveform(fs=FS, samples=samples)

        result = _detect_beats(wave, default_detector_config)

        assert result.method_used is DetectorMethod.FALLBACK
        assert result.events.indices.tolist() == [int(np.argmax(samples))]

    def test_constant_signal_yields_no_beats(self):
        wave = Waveform(fs=FS, samples=np.full(500, 1.0))
        result = _detect_beats(wave, default_detector_config)

        assert result.method_used is DetectorMethod.FALLBACK
        assert len(result.events) == 0

    def test_fallback_keeps_first_peak_inside_gap(self):
        samples = generate_pulse_train([0.5, 0.6, 1.5], fs=FS, duration=2.0)
        peaks = _fallback_detection(Waveform(fs=FS, samples=samples), min_rr_s=0.3)
        assert peaks.tolist() == [125, 375]

    def test_baseline_window_is_truncated(self, monkeypatch):
        # 0.150 s at 250 Hz is 37.5 samples -> 37
        widths = []
        real_moving_average = rpeak.moving_average

        def recording_moving_average(x, window):
            widths.append(window)
            return real_moving_average(x, window)

        monkeypatch.setattr(rpeak, "moving_average", recording_moving_average)
        _fallback_detection(Waveform(fs=FS, samples=np.zeros(10)), 0.25)

        assert widths == [37]

    def test_fallback_too_short(self):
        assert _fallback_detection(Waveform(fs=FS, samples=[1.0, 2.0]), 0.25).size == 0


class TestEnvelopeScan:
    @staticmethod
    def _spikes(positions, n=300):
        x = np.zeros(n)
        x[list(positions)] = 1.0
        return x

    def test_refined_peaks_closer_than_refractory_are_kept(self):
        # Crossings 63 samples apart refine back to maxima only 35 apart
        envelope = self._spikes([100, 163])
        bandpassed = self._spikes([95, 130])

        peaks = _scan_envelope(envelope, bandpassed, FS, default_detector_config)

        assert peaks.tolist() == [95, 130]

    def test_refractory_rounds_half_up(self):
        # 0.25 s at 250 Hz is 62.5 samples -> 63
        spikes = self._spikes([100, 162])
        assert _scan_envelope(spikes, spikes, FS, default_detector_config).tolist() == [100]

        spikes = self._spikes([100, 163])
        assert _scan_envelope(spikes, spikes, FS, default_detector_config).tolist() == [100, 163]

    def test_flat_envelope_never_fires(self):
        """A detection needs a strictly positive envelope value.

        An all-zero envelope leaves the threshold at exactly 0, so
        ``envelope >= threshold`` alone would fire on every refractory
        boundary.
        """
        flat = np.zeros(500)
        assert _scan_envelope(flat, flat, FS, default_detector_config).size == 0

    def test_empty_envelope(self):
        empty = np.array([])
        assert _scan_envelope(empty, empty, FS, default_detector_config).size == 0
