"""
Data model for detector comparison.

All records are immutable and built fresh for every comparison run.
Detection identity is the pair (tag_id, tag_family); corners are carried
only so a report can draw the detections.
"""

from dataclasses import dataclass, field
from functools import total_ordering
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class Corner:
    """Sub-pixel image point."""
    x: float
    y: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@total_ordering
@dataclass(frozen=True)
class DetectionKey:
    """
    Identity of a detection for matching.

    Equality and hashing use both fields. Ordering is by family name, then
    numerically by tag id, which gives reports a stable order.
    """
    tag_id: int
    tag_family: str

    def __lt__(self, other: "DetectionKey") -> bool:
        if not isinstance(other, DetectionKey):
            return NotImplemented
        return (self.tag_family, self.tag_id) < (other.tag_family, other.tag_id)

    def __str__(self) -> str:
        return f"{self.tag_family}:{self.tag_id}"


@dataclass(frozen=True)
class Detection:
    tag_id: int
    tag_family: str
    corners: Tuple[Corner, ...] = ()

    @property
    def key(self) -> DetectionKey:
        return DetectionKey(self.tag_id, self.tag_family)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag_id": self.tag_id,
            "tag_family": self.tag_family,
            "corners": [c.to_dict() for c in self.corners],
        }


@dataclass(frozen=True)
class FamilyTiming:
    family: str
    initialization_ms: float
    detection_ms: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "family": self.family,
            "initialization_ms": self.initialization_ms,
            "detection_ms": self.detection_ms,
        }


@dataclass(frozen=True)
class Timings:
    """Timing block reported by a detector for one image."""
    image_load_ms: float
    total_detection_ms: float
    family_timings: Tuple[FamilyTiming, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image_load_ms": self.image_load_ms,
            "total_detection_ms": self.total_detection_ms,
            "family_timings": [ft.to_dict() for ft in self.family_timings],
        }


@dataclass(frozen=True)
class NoTimings:
    """The detector did not report timings for this image."""

    def to_dict(self) -> None:
        return None


NO_TIMINGS = NoTimings()

TimingReport = Union[Timings, NoTimings]


@dataclass(frozen=True)
class DetectionFile:
    """One image's detections, from ground truth or from a single detector."""
    image: str
    detections: Tuple[Detection, ...] = ()
    timings: TimingReport = NO_TIMINGS

    @property
    def keys(self) -> Tuple[DetectionKey, ...]:
        return tuple(d.key for d in self.detections)


@dataclass(frozen=True)
class Manifest:
    supported_families: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ImageResult:
    """
    Comparison of every detector against ground truth for one image.

    Attributes:
        image_name: Image identifier (from the ground-truth file)
        ground_truth: Deduplicated ground-truth keys, sorted
        detector_results: Detector name -> detected keys as reported
                          (duplicates kept)
        missed: Detector name -> ground-truth keys the detector did not report
        false_positives: Detector name -> reported keys absent from ground truth
        timings: Detector name -> Timings or NO_TIMINGS
    """
    image_name: str
    ground_truth: Tuple[DetectionKey, ...]
    detector_results: Dict[str, Tuple[DetectionKey, ...]] = field(default_factory=dict)
    missed: Dict[str, frozenset] = field(default_factory=dict)
    false_positives: Dict[str, frozenset] = field(default_factory=dict)
    timings: Dict[str, TimingReport] = field(default_factory=dict)


@dataclass(frozen=True)
class FamilyTimingSummary:
    family: str
    avg_init_ms: float
    avg_detect_ms: float
    count: int


@dataclass(frozen=True)
class TimingSummary:
    avg_image_load_ms: float = 0.0
    avg_total_detection_ms: float = 0.0
    total_image_load_ms: float = 0.0
    total_detection_ms: float = 0.0
    image_count: int = 0
    family_timings: Dict[str, FamilyTimingSummary] = field(default_factory=dict)


@dataclass(frozen=True)
class Summary:
    """Accuracy and timing of one detector over the whole dataset."""
    total_ground_truth: int
    total_detected: int
    true_positives: int
    missed: int
    false_positives: int
    precision: float
    recall: float
    f1_score: float
    missed_by_family: Dict[str, int] = field(default_factory=dict)
    fp_by_family: Dict[str, int] = field(default_factory=dict)
    supported_families: Tuple[str, ...] = ()
    timing: TimingSummary = field(default_factory=TimingSummary)


@dataclass(frozen=True)
class DetectorInfo:
    """Detector directory name split into base name and optional @arch suffix."""
    full_name: str
    base_name: str
    arch: Optional[str] = None


ARCH_LABELS = {
    "x86_64-linux": "x86 Linux",
    "aarch64-darwin": "ARM64 macOS",
    "aarch64-linux": "ARM64 Linux",
    "x86_64-darwin": "x86 macOS",
}


def parse_detector_name(name: str) -> DetectorInfo:
    """
    Split a detector name such as "kornia-rs-apriltag@aarch64-darwin".

    Example:
        >>> parse_detector_name("apriltag-3.4.5@x86_64-linux").arch
        'x86_64-linux'
    """
    base, sep, arch = name.partition("@")
    if not sep:
        return DetectorInfo(full_name=name, base_name=name, arch=None)
    return DetectorInfo(full_name=name, base_name=base, arch=arch)


def format_arch(arch: str) -> str:
    return ARCH_LABELS.get(arch, arch)
