"""
Test helper utilities for hrv_pipeline testing.

This module provides reusable utilities for:
- Generating synthetic ECG-like waveforms with known beat positions
- Writing recordings and RR files to disk for CLI tests
"""
