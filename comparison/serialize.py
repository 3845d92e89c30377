"""
JSON-ready views of comparison results for report renderers.

Key sets become sorted lists of "family:id" strings so a renderer never
needs to re-run the comparison and output is identical between runs.
"""

from typing import Any, Dict, Iterable, List, Optional

from .metrics import ComparisonData, RawDetections
from .types import DetectionKey, ImageResult, Summary, format_arch, parse_detector_name


def keys_to_strings(keys: Iterable[DetectionKey]) -> List[str]:
    return [str(k) for k in sorted(keys)]


def to_serializable_result(
    result: ImageResult,
    raw: Optional[RawDetections] = None,
) -> Dict[str, Any]:
    """
    Serialize one ImageResult.

    Args:
        result: ImageResult from collect_results()
        raw: Full detections for the same image; when omitted, detections
             are rebuilt from keys without corners

    Returns:
        {
            "image_name": str,
            "image_path": "data/<image_name>",
            "ground_truth": [{"tag_id", "tag_family", "corners"}, ...],
            "detector_results": {detector: [detection, ...]},
            "missed": {detector: ["tag36h11:2", ...]},
            "false_positives": {detector: ["tag36h11:3", ...]},
            "stats": {detector: {"detected", "missed", "false_positives"}},
            "timings": {detector: {...} or None}
        }
    """
    if raw is not None:
        ground_truth = [d.to_dict() for d in raw.ground_truth]
        detector_results = {
            name: [d.to_dict() for d in dets] for name, dets in raw.detectors.items()
        }
    else:
        ground_truth = [_key_to_dict(k) for k in result.ground_truth]
        detector_results = {
            name: [_key_to_dict(k) for k in keys]
            for name, keys in result.detector_results.items()
        }

    stats = {}
    for name, detected in result.detector_results.items():
        stats[name] = {
            'detected': len(detected),
            'missed': len(result.missed.get(name, ())),
            'false_positives': len(result.false_positives.get(name, ())),
        }

    return {
        'image_name': result.image_name,
        'image_path': f"data/{result.image_name}",
        'ground_truth': ground_truth,
        'detector_results': detector_results,
        'missed': {name: keys_to_strings(keys) for name, keys in result.missed.items()},
        'false_positives': {
            name: keys_to_strings(keys) for name, keys in result.false_positives.items()
        },
        'stats': stats,
        'timings': {name: timing.to_dict() for name, timing in result.timings.items()},
    }


def _key_to_dict(key: DetectionKey) -> Dict[str, Any]:
    return {'tag_id': key.tag_id, 'tag_family': key.tag_family, 'corners': []}


def to_serializable_summary(summary: Summary) -> Dict[str, Any]:
    """Serialize one detector Summary; family timings become a list sorted by family."""
    timing = summary.timing
    return {
        'total_ground_truth': summary.total_ground_truth,
        'total_detected': summary.total_detected,
        'true_positives': summary.true_positives,
        'missed': summary.missed,
        'false_positives': summary.false_positives,
        'precision': summary.precision,
        'recall': summary.recall,
        'f1_score': summary.f1_score,
        'missed_by_family': dict(sorted(summary.missed_by_family.items())),
        'fp_by_family': dict(sorted(summary.fp_by_family.items())),
        'supported_families': list(summary.supported_families),
        'timing': {
            'avg_image_load_ms': timing.avg_image_load_ms,
            'avg_total_detection_ms': timing.avg_total_detection_ms,
            'total_image_load_ms': timing.total_image_load_ms,
            'total_detection_ms': timing.total_detection_ms,
            'image_count': timing.image_count,
            'family_timings': [
                {
                    'family': ft.family,
                    'avg_init': ft.avg_init_ms,
                    'avg_detect': ft.avg_detect_ms,
                    'count': ft.count,
                }
                for _, ft in sorted(timing.family_timings.items())
            ],
        },
    }


def build_report_data(data: ComparisonData, detector_names: List[str]) -> Dict[str, Any]:
    """
    Bundle everything an external report renderer needs.

    Images are ordered by name; detectors keep the given order.
    """
    detectors = []
    for name in detector_names:
        info = parse_detector_name(name)
        detectors.append({
            'full_name': info.full_name,
            'base_name': info.base_name,
            'arch': info.arch,
            'arch_label': format_arch(info.arch) if info.arch else None,
        })

    return {
        'detectors': detectors,
        'summaries': {
            name: to_serializable_summary(data.summaries[name]) for name in detector_names
        },
        'images': [
            to_serializable_result(data.results[image_name], data.raw_detections.get(image_name))
            for image_name in sorted(data.results)
        ],
    }
