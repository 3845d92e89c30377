"""
Dataset-level comparison of detectors against ground truth.

Implements the two main stages:
1. collect_results: per-image matching of every detector against ground truth
2. compute_summary: per-detector accuracy (P/R/F1, per-family errors) and
   timing statistics across the whole dataset
"""

from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from tqdm import tqdm

from .errors import EmptyDatasetError
from .io import list_ground_truth_files, load_detection_file
from .log import error, warn
from .matching import match_detections, to_detection_keys
from .types import (
    NO_TIMINGS,
    Detection,
    FamilyTimingSummary,
    ImageResult,
    Manifest,
    Summary,
    TimingReport,
    Timings,
    TimingSummary,
)


@dataclass(frozen=True)
class RawDetections:
    """Full detections (with corners) for one image, for drawing in reports."""
    ground_truth: Tuple[Detection, ...] = ()
    detectors: Dict[str, Tuple[Detection, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class ComparisonData:
    results: Dict[str, ImageResult]
    summaries: Dict[str, Summary]
    raw_detections: Dict[str, RawDetections]


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 when the denominator is zero."""
    return numerator / denominator if denominator > 0 else 0.0


def _compare_image(
    gt_path: Path,
    results_dir: Path,
    detector_names: List[str],
) -> Optional[Tuple[ImageResult, RawDetections]]:
    """
    Load one ground-truth file and every detector's file of the same name.

    Returns None when the ground-truth file cannot be loaded. A detector file
    that is missing or malformed counts as zero detections without timings.
    """
    gt_load = load_detection_file(gt_path)
    if not gt_load.found:
        return None
    gt_file = gt_load.detection_file

    ground_truth = tuple(sorted(set(gt_file.keys)))

    detector_results = {}
    missed = {}
    false_positives = {}
    timings: Dict[str, TimingReport] = {}
    raw_detectors = {}

    for name in detector_names:
        det_load = load_detection_file(results_dir / name / gt_path.name)
        if det_load.found:
            detections = det_load.detection_file.detections
            timing = det_load.detection_file.timings
        else:
            detections = ()
            timing = NO_TIMINGS

        detected = to_detection_keys(detections)
        match = match_detections(ground_truth, detected)

        detector_results[name] = detected
        missed[name] = match.missed
        false_positives[name] = match.false_positives
        timings[name] = timing
        raw_detectors[name] = detections

    result = ImageResult(
        image_name=gt_file.image,
        ground_truth=ground_truth,
        detector_results=detector_results,
        missed=missed,
        false_positives=false_positives,
        timings=timings,
    )
    raw = RawDetections(ground_truth=gt_file.detections, detectors=raw_detectors)
    return result, raw


def _collect(
    ground_truth_dir: Union[str, Path],
    results_dir: Union[str, Path],
    detector_names: List[str],
    workers: int = 1,
    show_progress: bool = True,
) -> Tuple[Dict[str, ImageResult], Dict[str, RawDetections]]:
    ground_truth_dir = Path(ground_truth_dir)
    results_dir = Path(results_dir)

    if not ground_truth_dir.is_dir():
        error(f"Ground truth directory not found: {ground_truth_dir}")
        return {}, {}

    gt_files = list_ground_truth_files(ground_truth_dir)
    outcomes = {}

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(_compare_image, gt_path, results_dir, detector_names): gt_path
                for gt_path in gt_files
            }
            for future in tqdm(as_completed(futures), total=len(futures),
                               desc="Comparing images", disable=not show_progress):
                outcomes[futures[future]] = future.result()
    else:
        for gt_path in tqdm(gt_files, desc="Comparing images", disable=not show_progress):
            outcomes[gt_path] = _compare_image(gt_path, results_dir, detector_names)

    # Insert in file order so the output does not depend on completion order
    results = {}
    raw_detections = {}
    for gt_path in gt_files:
        outcome = outcomes[gt_path]
        if outcome is None:
            continue
        result, raw = outcome
        if result.image_name in results:
            warn(f"Duplicate image '{result.image_name}' in {gt_path}, replacing earlier entry")
        results[result.image_name] = result
        raw_detections[result.image_name] = raw

    return results, raw_detections


def collect_results(
    ground_truth_dir: Union[str, Path],
    results_dir: Union[str, Path],
    detector_names: List[str],
    workers: int = 1,
    show_progress: bool = True,
) -> Dict[str, ImageResult]:
    """
    Match every detector against ground truth for every image.

    Ground-truth files are the *.json files directly under ground_truth_dir.
    Each detector's output for an image is read from
    <results_dir>/<detector>/<same file name>.

    Args:
        ground_truth_dir: Directory of ground-truth detection files
        results_dir: Directory holding one sub-directory per detector
        detector_names: Detectors to compare
        workers: Number of threads used to load files (1 = sequential)
        show_progress: Show a tqdm progress bar

    Returns:
        Dict mapping image name to ImageResult. Empty if the ground-truth
        directory does not exist or holds no loadable file.
    """
    results, _ = _collect(ground_truth_dir, results_dir, detector_names,
                          workers=workers, show_progress=show_progress)
    return results


def summarize_timings(timing_reports: List[TimingReport]) -> TimingSummary:
    """
    Aggregate per-image timings of one detector.

    Images without timings are skipped; averages are 0.0 when no image
    reported timings.
    """
    total_image_load_ms = 0.0
    total_detection_ms = 0.0
    image_count = 0

    family_init = defaultdict(float)
    family_detect = defaultdict(float)
    family_count = defaultdict(int)

    for timing in timing_reports:
        if not isinstance(timing, Timings):
            continue
        total_image_load_ms += timing.image_load_ms
        total_detection_ms += timing.total_detection_ms
        image_count += 1

        for ft in timing.family_timings:
            family_init[ft.family] += ft.initialization_ms
            family_detect[ft.family] += ft.detection_ms
            family_count[ft.family] += 1

    family_timings = {
        family: FamilyTimingSummary(
            family=family,
            avg_init_ms=safe_divide(family_init[family], family_count[family]),
            avg_detect_ms=safe_divide(family_detect[family], family_count[family]),
            count=family_count[family],
        )
        for family in sorted(family_count)
    }

    return TimingSummary(
        avg_image_load_ms=safe_divide(total_image_load_ms, image_count),
        avg_total_detection_ms=safe_divide(total_detection_ms, image_count),
        total_image_load_ms=total_image_load_ms,
        total_detection_ms=total_detection_ms,
        image_count=image_count,
        family_timings=family_timings,
    )


def compute_summary(
    results: Mapping[str, ImageResult],
    detector_names: List[str],
    manifests: Optional[Mapping[str, Manifest]] = None,
) -> Dict[str, Summary]:
    """
    Summarize each detector's accuracy and timing over all images.

    Metrics:
    - TP: ground-truth keys the detector reported
    - precision = TP / detected, recall = TP / ground truth, F1 their
      harmonic mean; each is 0.0 when its denominator is zero

    Args:
        results: Image name -> ImageResult, from collect_results()
        detector_names: Detectors to summarize
        manifests: Detector name -> Manifest declaring supported families
                   (optional, from load_manifests())

    Returns:
        Dict mapping detector name to Summary, in detector_names order

    Example:
        >>> summaries = compute_summary(results, ["apriltag-3.4.5"])
        >>> print(f"F1={summaries['apriltag-3.4.5'].f1_score:.3f}")
    """
    manifests = manifests or {}
    summaries = {}

    for name in detector_names:
        total_gt = 0
        total_detected = 0
        total_missed = 0
        total_fp = 0

        missed_by_family = defaultdict(int)
        fp_by_family = defaultdict(int)
        timing_reports = []

        for result in results.values():
            missed = result.missed.get(name, frozenset())
            fps = result.false_positives.get(name, frozenset())

            total_gt += len(result.ground_truth)
            total_detected += len(result.detector_results.get(name, ()))
            total_missed += len(missed)
            total_fp += len(fps)

            for key in missed:
                missed_by_family[key.tag_family] += 1
            for key in fps:
                fp_by_family[key.tag_family] += 1

            timing_reports.append(result.timings.get(name, NO_TIMINGS))

        true_positives = total_gt - total_missed
        precision = safe_divide(true_positives, total_detected)
        recall = safe_divide(true_positives, total_gt)
        f1 = safe_divide(2 * precision * recall, precision + recall)

        manifest = manifests.get(name)

        summaries[name] = Summary(
            total_ground_truth=total_gt,
            total_detected=total_detected,
            true_positives=true_positives,
            missed=total_missed,
            false_positives=total_fp,
            precision=precision,
            recall=recall,
            f1_score=f1,
            missed_by_family=dict(sorted(missed_by_family.items())),
            fp_by_family=dict(sorted(fp_by_family.items())),
            supported_families=manifest.supported_families if manifest else (),
            timing=summarize_timings(timing_reports),
        )

    return summaries


def load_all_data(
    ground_truth_dir: Union[str, Path],
    results_dir: Union[str, Path],
    detector_names: List[str],
    manifests: Optional[Mapping[str, Manifest]] = None,
    workers: int = 1,
    show_progress: bool = True,
) -> ComparisonData:
    """
    Run the full comparison: per-image results, summaries and raw detections.

    Raises:
        EmptyDatasetError: If no ground-truth file could be loaded
    """
    results, raw_detections = _collect(
        ground_truth_dir, results_dir, detector_names,
        workers=workers, show_progress=show_progress
    )
    if not results:
        raise EmptyDatasetError(ground_truth_dir)

    summaries = compute_summary(results, detector_names, manifests)
    return ComparisonData(results=results, summaries=summaries, raw_detections=raw_detections)


def format_summary_lines(name: str, summary: Summary) -> List[str]:
    """Console lines for one detector's summary."""
    return [
        f"{name}:",
        f"  F1 Score:         {summary.f1_score * 100:.1f}%",
        f"  Precision:        {summary.precision * 100:.1f}%",
        f"  Recall:           {summary.recall * 100:.1f}%",
        f"  True Positives:   {summary.true_positives}",
        f"  Missed:           {summary.missed}",
        f"  False Positives:  {summary.false_positives}",
    ]
