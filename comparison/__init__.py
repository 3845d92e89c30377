"""
Detector Comparison Module

This module compares AprilTag-style fiducial marker detectors against
ground-truth annotations. Matching is by identity (tag id + tag family);
corner positions are kept for display only.

Main Components:
- types: Immutable data model (detections, keys, timings, summaries)
- io: Load detection files and manifests, save metrics
- matching: Per-image set-based matching
- metrics: Dataset-level results, P/R/F1, per-family errors, timing
- serialize: JSON-ready views for report renderers
- plots: Visualization functions
- config: YAML run configuration

Usage:
    from comparison.io import discover_detectors, load_manifests
    from comparison.metrics import load_all_data

    detectors = discover_detectors("results")
    data = load_all_data("ground-truth", "results", detectors,
                         manifests=load_manifests("results", detectors))

    for name, summary in data.summaries.items():
        print(name, summary.f1_score)
"""

__version__ = "1.0.0"
