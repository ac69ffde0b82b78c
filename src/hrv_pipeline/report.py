"""
Diagnostic HTML report for one recording.

Layout (2x2):
- Top row: conditioned waveform with detected beats (full / zoomed)
- Bottom row: RR tachogram and Welch PSD with LF/HF shading
"""

from typing import Optional, Tuple

import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from .config import Config, DetectorConfig, default_config, default_detector_config
from .hrv import HRVTime, heart_rate_from_rr
from .hrv_frequency import HRVPsd
from .preprocess import bandpass
from .signal import Events, RRSeries, Waveform
from .sqi import SQIResult

COLOR_SIGNAL = "rgb(0, 100, 200)"
COLOR_BEATS = "rgb(255, 0, 0)"
COLOR_RR = "rgb(40, 160, 90)"


def _add_band(fig: go.Figure, band: Tuple[float, float], label: str, fill_rgba: str) -> None:
    fig.add_vrect(
        x0=float(band[0]),
        x1=float(band[1]),
        fillcolor=fill_rgba,
        opacity=0.18,
        line_width=0,
        layer="below",
        annotation_text=label,
        annotation_position="top left",
        row=2, col=2,
    )


def build_diagnosis_figure(
    waveform: Waveform,
    events: Events,
    rr: RRSeries,
    psd: HRVPsd,
    *,
    recording_name: str,
    hrv: Optional[HRVTime] = None,
    sqi: Optional[SQIResult] = None,
    detector_config: DetectorConfig = default_detector_config,
    config: Config = default_config,
) -> go.Figure:
    """Assemble the diagnostic figure; see ``create_diagnosis_report``."""
    fig = make_subplots(
        rows=2, cols=2,
        subplot_titles=(
            "Band-passed Signal + Beats (Full)",
            f"Band-passed Signal + Beats (Zoomed {config.WAVEFORM_ZOOM_SECONDS:g}s)",
            "RR Tachogram",
            "HRV Power Spectral Density (Welch)",
        ),
        vertical_spacing=0.12,
        horizontal_spacing=0.08,
    )

    fs = waveform.fs
    filtered = bandpass(waveform, detector_config)
    time = np.arange(filtered.size) / fs
    beat_idx = events.indices[events.indices < filtered.size]

    zoom_end = min(int(config.WAVEFORM_ZOOM_SECONDS * fs), filtered.size)
    zoom_beats = beat_idx[beat_idx < zoom_end]

    for col, end, beats in ((1, filtered.size, beat_idx), (2, zoom_end, zoom_beats)):
        fig.add_trace(
            go.Scatter(
                x=time[:end], y=filtered[:end],
                mode='lines', name='Signal',
                line=dict(color=COLOR_SIGNAL, width=1),
                legendgroup="signal",
                showlegend=col == 1,
            ),
            row=1, col=col
        )
        if beats.size > 0:
            fig.add_trace(
                go.Scatter(
                    x=time[beats], y=filtered[beats],
                    mode='markers', name='Beats',
                    marker=dict(color=COLOR_BEATS, size=6 if col == 1 else 8, symbol='x'),
                    legendgroup="beats",
                    showlegend=col == 1,
                ),
                row=1, col=col
            )

    # RR at the time of the beat that closes each interval
    if len(rr) > 0 and len(events) == len(rr) + 1:
        fig.add_trace(
            go.Scatter(
                x=events.times(fs)[1:], y=rr.rr * 1000.0,
                mode='lines+markers', name='RR',
                line=dict(color=COLOR_RR, width=1),
                marker=dict(size=4),
            ),
            row=2, col=1
        )

    if psd.points:
        fig.add_trace(
            go.Scatter(
                x=psd.frequencies, y=psd.power,
                mode='lines', name='PSD',
                line=dict(color=COLOR_SIGNAL, width=1.5),
                showlegend=False,
            ),
            row=2, col=2
        )
        _add_band(fig, config.LF_BAND, "LF", "#1f77b4")
        _add_band(fig, config.HF_BAND, "HF", "#d62728")

    n_beats = len(events)
    duration = waveform.duration_seconds
    mean_hr = heart_rate_from_rr(rr)

    summary_lines = [
        f"<b>Recording:</b> {recording_name}",
        f"<b>Duration:</b> {duration:.1f}s | <b>Samples:</b> {waveform.n_samples:,} | <b>Fs:</b> {fs:g}Hz",
        f"<b>Beats detected:</b> {n_beats} | <b>Mean HR:</b> "
        + (f"{mean_hr:.1f} bpm" if mean_hr is not None else "n/a"),
        f"<b>LF:</b> {psd.lf:.2f} | <b>HF:</b> {psd.hf:.2f} | <b>LF/HF:</b> {psd.lf_hf:.2f}",
    ]
    if hrv is not None:
        summary_lines.append(
            f"<b>SDNN:</b> {hrv.sdnn * 1000:.1f} ms | <b>RMSSD:</b> {hrv.rmssd * 1000:.1f} ms"
            f" | <b>pNN50:</b> {hrv.pnn50 * 100:.1f}%"
        )
    if sqi is not None:
        verdict = "acceptable" if sqi.is_acceptable(config) else "REJECTED"
        summary_lines.append(
            f"<b>SQI:</b> {verdict} (kurtosis={sqi.kurtosis:.2f}, SNR={sqi.snr:.2f},"
            f" RR CV={sqi.rr_cv:.3f})"
        )

    fig.update_layout(
        title=dict(
            text="<br>".join(summary_lines),
            x=0.5,
            xanchor='center',
            font=dict(size=12),
        ),
        height=800,
        showlegend=True,
        legend=dict(
            orientation="h",
            yanchor="bottom",
            y=1.02,
            xanchor="right",
            x=1
        ),
        template="plotly_white",
    )

    fig.update_xaxes(title_text="Time (s)", row=1, col=1)
    fig.update_xaxes(title_text="Time (s)", row=1, col=2)
    fig.update_xaxes(title_text="Time (s)", row=2, col=1)
    fig.update_xaxes(title_text="Frequency (Hz)", range=[0, config.PSD_FREQ_MAX], row=2, col=2)

    fig.update_yaxes(title_text="Amplitude", row=1, col=1)
    fig.update_yaxes(title_text="Amplitude", row=1, col=2)
    fig.update_yaxes(title_text="RR (ms)", row=2, col=1)
    fig.update_yaxes(title_text="Power (bpm²/Hz)", row=2, col=2)

    return fig


def create_diagnosis_report(
    waveform: Waveform,
    events: Events,
    rr: RRSeries,
    psd: HRVPsd,
    *,
    recording_name: str,
    hrv: Optional[HRVTime] = None,
    sqi: Optional[SQIResult] = None,
    detector_config: DetectorConfig = default_detector_config,
    config: Config = default_config,
) -> str:
    """
    Create interactive HTML diagnostic report using Plotly.

    Parameters
    ----------
    waveform : Waveform
        Raw recording.
    events : Events
        Detected (or supplied) beats.
    rr : RRSeries
        RR intervals derived from ``events``.
    psd : HRVPsd
        Frequency-domain result for ``rr``.
    recording_name : str
        Label shown in the title.
    hrv : HRVTime, optional
        Time-domain metrics for the summary header.
    sqi : SQIResult, optional
        Signal quality for the summary header.
    detector_config : DetectorConfig
        Band-pass corners used to draw the conditioned signal.
    config : Config
        Pipeline configuration (zoom window, bands, PSD axis range).

    Returns
    -------
    str
        Self-contained HTML document.
    """
    fig = build_diagnosis_figure(
        waveform, events, rr, psd,
        recording_name=recording_name,
        hrv=hrv,
        sqi=sqi,
        detector_config=detector_config,
        config=config,
    )

    return fig.to_html(
        full_html=True,
        include_plotlyjs=True,
        config={
            'displayModeBar': True,
            'scrollZoom': True,
        }
    )
