"""
Identity-based matching of detector output against ground truth.

A detection matches ground truth when both tag id and tag family are equal.
Corner positions play no part. Keys are compared as sets, so a detector
reporting the same tag twice in one image gets no extra credit or penalty.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Tuple

from .types import Detection, DetectionKey


@dataclass(frozen=True)
class MatchResult:
    true_positives: int
    missed: FrozenSet[DetectionKey]
    false_positives: FrozenSet[DetectionKey]


def to_detection_keys(detections: Iterable[Detection]) -> Tuple[DetectionKey, ...]:
    """Map detections to their identity keys, keeping order and duplicates."""
    return tuple(d.key for d in detections)


def match_detections(
    ground_truth: Iterable[DetectionKey],
    detected: Iterable[DetectionKey],
) -> MatchResult:
    """
    Compare one detector's keys with ground truth for a single image.

    Args:
        ground_truth: Ground-truth keys (duplicates allowed)
        detected: Keys reported by the detector (duplicates allowed)

    Returns:
        MatchResult where
        - missed = ground-truth keys not detected
        - false_positives = detected keys not in ground truth
        - true_positives = |unique ground truth| - |missed|

    Example:
        >>> gt = [DetectionKey(1, "tag36h11"), DetectionKey(2, "tag36h11")]
        >>> det = [DetectionKey(1, "tag36h11"), DetectionKey(3, "tag36h11")]
        >>> match_detections(gt, det).true_positives
        1
    """
    gt_set = frozenset(ground_truth)
    detected_set = frozenset(detected)

    missed = gt_set - detected_set
    false_positives = detected_set - gt_set

    return MatchResult(
        true_positives=len(gt_set) - len(missed),
        missed=missed,
        false_positives=false_positives,
    )
