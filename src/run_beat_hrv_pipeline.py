#!/usr/bin/env python3
"""
Beat Detection & HRV Pipeline

This script runs one recording through the full pipeline:
1. Load the waveform (newline-delimited text, or one CSV column)
2. Detect beats (or take them from an annotation, BIDS events or saved result file)
3. Derive RR intervals
4. Compute time-domain, frequency-domain (Welch) and nonlinear HRV metrics
5. Score signal quality (SQI)
6. Optionally write an interactive HTML diagnostic report

The JSON result is written to stdout (or to --output); progress messages go
to stderr so stdout stays machine readable.

Usage:
    python src/run_beat_hrv_pipeline.py --input recording.txt --fs 250
    python src/run_beat_hrv_pipeline.py --input session.csv --column ECG --fs 500 --report diag.html
    python src/run_beat_hrv_pipeline.py --input recording.txt --fs 250 --bids-events events.tsv
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

# Ensure this script works when executed from any CWD.
sys.path.insert(0, str(Path(__file__).resolve().parent))

from hrv_pipeline.config import Config, DetectorConfig, default_detector_config
from hrv_pipeline.hrv_frequency import HRVPsd, hrv_psd
from hrv_pipeline.hrv_nonlinear import hrv_nonlinear
from hrv_pipeline.io_utils import (
    load_bids_event_indices,
    load_events_json,
    load_waveform_csv,
    read_event_indices,
    read_float_series,
    save_result_json,
)
from hrv_pipeline.pipeline import PipelineResult, run_pipeline
from hrv_pipeline.report import create_diagnosis_report
from hrv_pipeline.signal import Events, Waveform
from hrv_pipeline.sqi import SQIResult, evaluate_sqi


def _status(message: str, verbose: bool) -> None:
    if verbose:
        print(message, file=sys.stderr)


def load_waveform(input_path: Path, fs: float, column: Optional[str]) -> Waveform:
    """Read a text recording, or a CSV column when ``column`` is given."""
    if column is not None:
        return load_waveform_csv(input_path, column, fs)
    if input_path.suffix.lower() == ".csv":
        raise ValueError(f"{input_path.name} is a CSV file; pass --column to select the signal")
    return Waveform(fs=fs, samples=read_float_series(input_path))


def analyze_recording(
    waveform: Waveform,
    detector_config: DetectorConfig,
    config: Config,
    events: Optional[Events] = None,
    interp_fs: Optional[float] = None,
    verbose: bool = True,
) -> Tuple[Dict[str, Any], PipelineResult, HRVPsd, SQIResult]:
    """
    Run detection, HRV and SQI on one waveform.

    Returns
    -------
    Tuple[Dict[str, Any], PipelineResult, HRVPsd, SQIResult]
        JSON-ready document plus the typed results used by the report.
    """
    _status("  [1/4] Detecting beats...", verbose)
    result = run_pipeline(waveform, detector_config, events=events)

    if events is None:
        marker = "✓" if len(result.events) >= 2 else "⚠"
        _status(f"        {marker} Beats detected: {len(result.events)}", verbose)
    else:
        _status(f"        ✓ Using {len(events)} supplied events", verbose)

    _status("  [2/4] Time-domain HRV...", verbose)
    td = result.hrv_time
    _status(
        f"        ✓ n={td.n}, AVNN={td.avnn * 1000:.1f} ms, SDNN={td.sdnn * 1000:.1f} ms, "
        f"RMSSD={td.rmssd * 1000:.1f} ms, pNN50={td.pnn50 * 100:.1f}%",
        verbose,
    )

    _status("  [3/4] Frequency-domain and nonlinear HRV...", verbose)
    psd = hrv_psd(result.rr, interp_fs if interp_fs is not None else config.HRV_INTERP_FS, config)
    nonlinear = hrv_nonlinear(result.rr, config)
    _status(f"        ✓ LF={psd.lf:.2f}, HF={psd.hf:.2f}, LF/HF={psd.lf_hf:.2f}", verbose)
    _status(
        f"        ✓ SD1={nonlinear.sd1:.4f}, SD2={nonlinear.sd2:.4f}, "
        f"SampEn={nonlinear.samp_entropy:.3f}, DFA α1={nonlinear.dfa_alpha1:.3f}",
        verbose,
    )

    _status("  [4/4] Signal quality...", verbose)
    sqi = evaluate_sqi(waveform, result.rr, config)
    acceptable = sqi.is_acceptable(config)
    marker = "✓" if acceptable else "⚠"
    _status(
        f"        {marker} kurtosis={sqi.kurtosis:.2f}, SNR={sqi.snr:.2f}, RR CV={sqi.rr_cv:.3f}"
        f" ({'acceptable' if acceptable else 'rejected'})",
        verbose,
    )

    document = result.to_dict()
    document["hrv_psd"] = psd.to_dict()
    document["hrv_nonlinear"] = nonlinear.to_dict()
    document["sqi"] = sqi.to_dict()
    document["sqi_acceptable"] = acceptable
    return document, result, psd, sqi


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Beat detection and HRV analysis for a single recording",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Plain text recording, one sample per line
    python src/run_beat_hrv_pipeline.py --input recording.txt --fs 250

    # CSV column with a diagnostic report
    python src/run_beat_hrv_pipeline.py --input session.csv --column ECG --fs 500 --report diag.html

    # Skip detection and use annotated beats
    python src/run_beat_hrv_pipeline.py --input recording.txt --fs 250 --annotations beats.txt
        """
    )

    parser.add_argument(
        "--input", "-i",
        type=Path,
        required=True,
        help="Recording: one sample per line, or a CSV file (with --column)"
    )

    parser.add_argument(
        "--column", "-c",
        type=str,
        default=None,
        help="CSV column holding the signal"
    )

    parser.add_argument(
        "--fs",
        type=float,
        default=Config.SAMPLING_RATE,
        help=f"Sampling rate in Hz (default: {Config.SAMPLING_RATE:g})"
    )

    parser.add_argument(
        "--min-rr-s",
        type=float,
        default=default_detector_config.min_rr_s,
        help=f"Refractory period in seconds (default: {default_detector_config.min_rr_s})"
    )

    parser.add_argument(
        "--threshold-scale",
        type=float,
        default=default_detector_config.threshold_scale,
        help=f"Detection threshold scale (default: {default_detector_config.threshold_scale})"
    )

    parser.add_argument(
        "--lowcut",
        type=float,
        default=default_detector_config.lowcut_hz,
        help=f"High-pass corner in Hz (default: {default_detector_config.lowcut_hz})"
    )

    parser.add_argument(
        "--highcut",
        type=float,
        default=default_detector_config.highcut_hz,
        help=f"Low-pass corner in Hz (default: {default_detector_config.highcut_hz})"
    )

    events_group = parser.add_mutually_exclusive_group()
    events_group.add_argument(
        "--annotations",
        type=Path,
        default=None,
        help="Beat sample indices, one per line (skips detection)"
    )
    events_group.add_argument(
        "--bids-events",
        type=Path,
        default=None,
        help="BIDS events.tsv whose onsets are used as beats (skips detection)"
    )
    events_group.add_argument(
        "--events-json",
        type=Path,
        default=None,
        help="Beats from a saved result JSON (e.g. an earlier --output; skips detection)"
    )

    parser.add_argument(
        "--interp-fs",
        type=float,
        default=Config.HRV_INTERP_FS,
        help=f"Resampling rate for the HRV spectrum in Hz (default: {Config.HRV_INTERP_FS:g})"
    )

    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Write the JSON result here instead of stdout"
    )

    parser.add_argument(
        "--report", "-r",
        type=Path,
        default=None,
        help="Write an interactive HTML diagnostic report here"
    )

    parser.add_argument(
        "--results-dir",
        type=Path,
        default=None,
        help=f"Also save events_<name>.json and diagnosis_<name>.html under DIR/{Config.RESULTS_DIR}"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress progress messages"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging from the pipeline"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = Config()
    verbose = not args.quiet

    if args.fs <= 0:
        print(f"✗ ERROR: sampling rate must be positive (got {args.fs:g})", file=sys.stderr)
        return 1

    detector_config = DetectorConfig(
        lowcut_hz=args.lowcut,
        highcut_hz=args.highcut,
        integration_window_s=default_detector_config.integration_window_s,
        min_rr_s=args.min_rr_s,
        threshold_scale=args.threshold_scale,
        search_back_s=default_detector_config.search_back_s,
    )

    _status("=" * 60, verbose)
    _status("Beat Detection & HRV Pipeline", verbose)
    _status("=" * 60, verbose)
    _status(f"Input: {args.input}", verbose)
    _status(
        f"Config: Fs={args.fs:g}Hz, Filter={args.lowcut:g}-{args.highcut:g}Hz, "
        f"min RR={args.min_rr_s:g}s",
        verbose,
    )

    try:
        waveform = load_waveform(args.input, args.fs, args.column)

        events = None
        if args.annotations is not None:
            events = read_event_indices(args.annotations)
        elif args.bids_events is not None:
            events = load_bids_event_indices(args.bids_events, args.fs)
        elif args.events_json is not None:
            events = load_events_json(args.events_json)
    except (OSError, ValueError) as e:
        print(f"✗ ERROR reading input: {e}", file=sys.stderr)
        return 1

    _status(
        f"        ✓ Loaded {waveform.n_samples:,} samples ({waveform.duration_seconds:.1f}s)",
        verbose,
    )

    document, result, psd, sqi = analyze_recording(
        waveform,
        detector_config,
        config,
        events=events,
        interp_fs=args.interp_fs,
        verbose=verbose,
    )

    recording_name = args.input.stem
    report_paths = []
    json_paths = []
    if args.report is not None:
        report_paths.append(args.report)
    if args.output is not None:
        json_paths.append(args.output)
    if args.results_dir is not None:
        report_paths.append(config.get_diagnosis_path(args.results_dir, recording_name))
        json_paths.append(config.get_events_path(args.results_dir, recording_name))

    if report_paths:
        html_content = create_diagnosis_report(
            waveform, result.events, result.rr, psd,
            recording_name=recording_name,
            hrv=result.hrv_time,
            sqi=sqi,
            detector_config=detector_config,
            config=config,
        )
        for report_path in report_paths:
            report_path.parent.mkdir(parents=True, exist_ok=True)
            with open(report_path, 'w', encoding='utf-8') as f:
                f.write(html_content)
            _status(f"        ✓ Saved: {report_path}", verbose)

    for json_path in json_paths:
        save_result_json(document, json_path)
        _status(f"        ✓ Saved: {json_path}", verbose)

    if args.output is None:
        print(json.dumps(document, indent=2, ensure_ascii=False))

    return 0


if __name__ == "__main__":
    sys.exit(main())
