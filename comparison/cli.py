"""
Compare Detectors - Score detector outputs against ground truth
================================================================
Loads ground-truth and per-detector detection files, matches them by tag
identity and writes metrics, a summary CSV, report data and plots.

Expected layout:
    ground-truth/<image>.json
    results/<detector>/<image>.json
    results/<detector>/manifest.json      (optional)

Usage:
    compare-detectors \\
        --ground-truth ground-truth \\
        --results results \\
        --detectors apriltag-3.4.5 kornia-apriltag-0.1.10 \\
        --output-dir comparison-output

    # Settings from a YAML file, with CLI overrides
    compare-detectors --config compare.yaml --workers 8 --no-plots
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .config import CompareConfig, apply_overrides, load_config
from .errors import ConfigError, EmptyDatasetError
from .io import discover_detectors, load_manifests, save_metrics, save_summary_csv
from .log import error, log, set_log_file
from .metrics import ComparisonData, format_summary_lines, load_all_data
from .serialize import build_report_data, to_serializable_summary


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Compare AprilTag detector results against ground truth"
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML config file (CLI options override its values)"
    )
    parser.add_argument(
        "--ground-truth",
        dest="ground_truth_dir",
        type=str,
        default=None,
        help="Directory of ground truth JSON files (default: ground-truth)"
    )
    parser.add_argument(
        "--results",
        dest="results_dir",
        type=str,
        default=None,
        help="Directory with one sub-directory per detector (default: results)"
    )
    parser.add_argument(
        "--detectors",
        nargs="+",
        default=None,
        help="Detector names to compare (default: all directories under --results)"
    )
    parser.add_argument(
        "--output-dir",
        dest="output_dir",
        type=str,
        default=None,
        help="Output directory for metrics and plots (default: comparison-output)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Threads used to load detection files (default: 1)"
    )
    parser.add_argument(
        "--no-plots",
        dest="plots",
        action="store_const",
        const=False,
        default=None,
        help="Skip plot generation"
    )
    parser.add_argument(
        "--log-file",
        dest="log_file",
        type=str,
        default=None,
        help="Also append log lines to this file"
    )

    return parser.parse_args(argv)


def resolve_config(args) -> CompareConfig:
    config = load_config(args.config) if args.config else CompareConfig()
    return apply_overrides(
        config,
        ground_truth_dir=args.ground_truth_dir,
        results_dir=args.results_dir,
        detectors=args.detectors,
        output_dir=args.output_dir,
        workers=args.workers,
        plots=args.plots,
        log_file=args.log_file,
    )


def write_outputs(config: CompareConfig, data: ComparisonData, detector_names: List[str]) -> Dict[str, Path]:
    """Write metrics.json, report_data.json, summary.csv and (optionally) plots."""
    output_dir = Path(config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    metrics = {
        'ground_truth_dir': str(config.ground_truth_dir),
        'results_dir': str(config.results_dir),
        'image_count': len(data.results),
        'detectors': list(detector_names),
        'summaries': {
            name: to_serializable_summary(data.summaries[name]) for name in detector_names
        },
    }

    paths = {
        'metrics': output_dir / "metrics.json",
        'report_data': output_dir / "report_data.json",
        'summary_csv': output_dir / "summary.csv",
    }
    save_metrics(metrics, paths['metrics'])
    save_metrics(build_report_data(data, detector_names), paths['report_data'])
    save_summary_csv(data.summaries, paths['summary_csv'])

    if config.plots:
        from .plots import plot_all_metrics

        print("\nGenerating plots...")
        plot_all_metrics(data.summaries, str(output_dir / "plots"), run_name="Detector comparison")
        paths['plots'] = output_dir / "plots"

    return paths


def run(config: CompareConfig) -> ComparisonData:
    """
    Run a comparison and write its outputs.

    Raises:
        EmptyDatasetError: If no ground truth could be loaded
    """
    set_log_file(config.log_file)

    detector_names = list(config.detectors) or discover_detectors(config.results_dir)

    print("=" * 70)
    print("COMPARE DETECTORS")
    print("=" * 70)
    print(f"Ground Truth:  {config.ground_truth_dir}")
    print(f"Results:       {config.results_dir}")
    print(f"Detectors:     {', '.join(detector_names) or '(none)'}")
    print(f"Output Dir:    {config.output_dir}")
    print("=" * 70)

    if not detector_names:
        log(f"No detector directories found under {config.results_dir}")

    manifests = load_manifests(config.results_dir, detector_names)
    log(f"Loaded {len(manifests)} detector manifests")

    data = load_all_data(
        config.ground_truth_dir,
        config.results_dir,
        detector_names,
        manifests=manifests,
        workers=config.workers,
    )
    log(f"Loaded {len(data.results)} images")

    print("\n" + "=" * 70)
    print("SUMMARY")
    print("=" * 70)
    for name in detector_names:
        print()
        for line in format_summary_lines(name, data.summaries[name]):
            print(line)

    print("\n" + "=" * 70)
    print("SAVING RESULTS")
    print("=" * 70)
    write_outputs(config, data, detector_names)

    print(f"\n✓ Results saved to: {config.output_dir}/")
    return data


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = resolve_config(args)
    except ConfigError as e:
        error(str(e))
        return 2

    try:
        run(config)
    except EmptyDatasetError as e:
        error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
