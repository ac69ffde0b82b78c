#!/usr/bin/env python3
"""
HRV Analysis from RR Interval Files

This script computes HRV metrics from RR intervals (seconds, one per line):
1. Load RR intervals
2. Compute time-domain HRV metrics (AVNN, SDNN, RMSSD, pNN50)
3. Compute frequency-domain HRV metrics (VLF, LF, HF, LF/HF; Welch)
4. Compute nonlinear HRV metrics (SD1, SD2, sample entropy, DFA alpha1)
5. Print JSON (single file) or export a summary table (CSV/TSV)

Usage:
    python src/run_hrv_metrics.py rr.txt
    python src/run_hrv_metrics.py rr_a.txt rr_b.txt --summary Results/hrv_summary.csv

Output:
    JSON on stdout, or the --summary table with one row per RR file
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

# Ensure this script works when executed from any CWD.
sys.path.insert(0, str(Path(__file__).resolve().parent))

from hrv_pipeline.config import Config
from hrv_pipeline.hrv import hrv_time
from hrv_pipeline.hrv_frequency import hrv_psd
from hrv_pipeline.hrv_nonlinear import hrv_nonlinear
from hrv_pipeline.io_utils import read_float_series, result_summary_row
from hrv_pipeline.signal import RRSeries


def process_rr_file(
    rr_path: Path,
    config: Config,
    interp_fs: float,
    verbose: bool = True,
) -> Dict[str, Any]:
    """
    Compute all HRV metrics for one RR file.

    Parameters
    ----------
    rr_path : Path
        Newline-delimited RR intervals in seconds.
    config : Config
        Pipeline configuration.
    interp_fs : float
        Resampling rate for the spectrum (Hz).
    verbose : bool
        Print progress messages.

    Returns
    -------
    Dict[str, Any]
        ``{"hrv_time": ..., "hrv_psd": ..., "hrv_nonlinear": ...}``
    """
    rr = RRSeries(read_float_series(rr_path))

    td = hrv_time(rr, config)
    fd = hrv_psd(rr, interp_fs, config)
    nl = hrv_nonlinear(rr, config)

    if verbose:
        print(f"\n  Recording: {rr_path.stem}", file=sys.stderr)
        print(f"    RR intervals: {td.n}", file=sys.stderr)
        if td.n < 2:
            print("    ⚠ Fewer than 2 intervals; variability metrics are 0", file=sys.stderr)
        print(f"    SDNN: {td.sdnn * 1000:.1f} ms", file=sys.stderr)
        print(f"    RMSSD: {td.rmssd * 1000:.1f} ms", file=sys.stderr)
        print(f"    pNN50: {td.pnn50 * 100:.1f}%", file=sys.stderr)
        print(f"    LF/HF: {fd.lf_hf:.2f}", file=sys.stderr)
        print(f"    DFA α1: {nl.dfa_alpha1:.3f}", file=sys.stderr)

    return {
        "hrv_time": td.to_dict(),
        "hrv_psd": fd.to_dict(),
        "hrv_nonlinear": nl.to_dict(),
    }


def flatten_metrics(metrics: Dict[str, Any]) -> Dict[str, float]:
    """One flat row: time_*, freq_* and nonlinear_* columns (PSD points dropped)."""
    row: Dict[str, float] = {}
    for key, value in metrics["hrv_time"].items():
        row[f"time_{key}"] = value
    for key, value in metrics["hrv_psd"].items():
        if key != "points":
            row[f"freq_{key}"] = value
    for key, value in metrics["hrv_nonlinear"].items():
        row[f"nonlinear_{key}"] = value
    return row


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="HRV metrics from RR interval files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # One file, JSON on stdout
    python src/run_hrv_metrics.py rr.txt

    # Several files into one summary table
    python src/run_hrv_metrics.py rr_*.txt --summary Results/hrv_summary.csv
        """
    )

    parser.add_argument(
        "rr_files",
        type=Path,
        nargs="+",
        help="RR interval files (seconds, one per line)"
    )

    parser.add_argument(
        "--interp-fs",
        type=float,
        default=Config.HRV_INTERP_FS,
        help=f"Resampling rate for the HRV spectrum in Hz (default: {Config.HRV_INTERP_FS:g})"
    )

    parser.add_argument(
        "--summary", "-s",
        type=Path,
        default=None,
        help="Write a summary table (.csv, or .tsv for tab separated)"
    )

    parser.add_argument(
        "--results-dir",
        type=Path,
        default=None,
        help=f"Write the summary to DIR/{Config.RESULTS_DIR}/{Config.HRV_SUMMARY_FILE} (when --summary is not given)"
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

    if verbose:
        print("=" * 60, file=sys.stderr)
        print("HRV Metrics", file=sys.stderr)
        print("=" * 60, file=sys.stderr)
        print(f"Files to analyze: {len(args.rr_files)}", file=sys.stderr)

    results: Dict[str, Dict[str, Any]] = {}
    failed: List[str] = []

    for rr_path in args.rr_files:
        try:
            results[rr_path.stem] = process_rr_file(rr_path, config, args.interp_fs, verbose)
        except (OSError, ValueError) as e:
            print(f"  ✗ ERROR processing {rr_path.name}: {e}", file=sys.stderr)
            failed.append(rr_path.name)

    if not results:
        print("✗ ERROR: no RR files were successfully processed.", file=sys.stderr)
        return 1

    summary_path = args.summary
    if summary_path is None and args.results_dir is not None:
        summary_path = config.get_results_dir(args.results_dir) / config.HRV_SUMMARY_FILE

    if summary_path is None:
        if len(args.rr_files) == 1:
            document = next(iter(results.values()))
        else:
            document = results
        print(json.dumps(document, indent=2, ensure_ascii=False))
        return 0 if not failed else 1

    rows = [result_summary_row(name, flatten_metrics(m)) for name, m in results.items()]
    df = pd.DataFrame(rows)

    sep = "\t" if summary_path.suffix.lower() == ".tsv" else ","
    summary_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(summary_path, sep=sep, index=False)

    if verbose:
        print("\n" + "=" * 60, file=sys.stderr)
        print("SUMMARY", file=sys.stderr)
        print("=" * 60, file=sys.stderr)
        print(f"Recordings analyzed: {len(results)}", file=sys.stderr)
        if failed:
            print(f"Failed: {', '.join(failed)}", file=sys.stderr)
        print(f"\nOutput saved to: {summary_path}", file=sys.stderr)

        print("\n" + "-" * 60, file=sys.stderr)
        print("HRV Summary (Time Domain)", file=sys.stderr)
        print("-" * 60, file=sys.stderr)
        time_cols = ["recording", "time_n", "time_avnn", "time_sdnn", "time_rmssd", "time_pnn50"]
        print(df[time_cols].to_string(index=False), file=sys.stderr)

        print("\n" + "-" * 60, file=sys.stderr)
        print("HRV Summary (Frequency Domain)", file=sys.stderr)
        print("-" * 60, file=sys.stderr)
        freq_cols = ["recording", "freq_lf", "freq_hf", "freq_lf_hf"]
        print(df[freq_cols].to_string(index=False), file=sys.stderr)

    return 0 if not failed else 1


if __name__ == "__main__":
    sys.exit(main())
