"""
I/O utilities for loading detection files and manifests, and saving results.

Detection files never raise on load: a missing file and a malformed file are
both valid outcomes, reported through LoadResult.status so that one bad file
cannot abort a comparison run.
"""

import csv
import json
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .log import warn
from .types import (
    NO_TIMINGS,
    Corner,
    Detection,
    DetectionFile,
    FamilyTiming,
    Manifest,
    Summary,
    TimingReport,
    Timings,
)

MANIFEST_FILENAME = "manifest.json"


class LoadStatus(Enum):
    FOUND = "found"
    MISSING = "missing"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class LoadResult:
    """
    Outcome of loading one detection file.

    detection_file is set only when status is FOUND; error holds the parse
    failure message when status is MALFORMED.
    """
    path: Path
    status: LoadStatus
    detection_file: Optional[DetectionFile] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status is LoadStatus.FOUND


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{field_name}' must be an integer, got {value!r}")
    return value


def _as_float(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{field_name}' must be a number, got {value!r}")
    return float(value)


def _as_finite_float(value: Any, field_name: str) -> float:
    value = _as_float(value, field_name)
    if not math.isfinite(value):
        raise ValueError(f"'{field_name}' must be finite, got {value!r}")
    return value


def _as_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"'{field_name}' must be a string, got {value!r}")
    return value


def _as_list(value: Any, field_name: str) -> list:
    if not isinstance(value, list):
        raise ValueError(f"'{field_name}' must be a list, got {type(value).__name__}")
    return value


def parse_detection(data: Dict) -> Detection:
    """
    Parse one detection record.

    Corners are optional: detections with fewer than four (or no) corners
    are kept as they are.

    Raises:
        KeyError: If tag_id or tag_family is missing
        ValueError: If a field has the wrong type
    """
    if not isinstance(data, dict):
        raise ValueError(f"detection must be an object, got {type(data).__name__}")

    corners = tuple(
        Corner(x=_as_float(c['x'], 'x'), y=_as_float(c['y'], 'y'))
        for c in _as_list(data.get('corners') or [], 'corners')
    )

    return Detection(
        tag_id=_as_int(data['tag_id'], 'tag_id'),
        tag_family=_as_str(data['tag_family'], 'tag_family'),
        corners=corners,
    )


def parse_timings(data: Any) -> TimingReport:
    """Parse an optional timings block; None means the detector reported none."""
    if data is None:
        return NO_TIMINGS
    if not isinstance(data, dict):
        raise ValueError(f"timings must be an object, got {type(data).__name__}")

    family_timings = []
    for ft in _as_list(data.get('family_timings') or [], 'family_timings'):
        family_timings.append(FamilyTiming(
            family=_as_str(ft['family'], 'family'),
            initialization_ms=_as_finite_float(ft['initialization_ms'], 'initialization_ms'),
            detection_ms=_as_finite_float(ft['detection_ms'], 'detection_ms'),
        ))

    return Timings(
        image_load_ms=_as_finite_float(data['image_load_ms'], 'image_load_ms'),
        total_detection_ms=_as_finite_float(data['total_detection_ms'], 'total_detection_ms'),
        family_timings=tuple(family_timings),
    )


def parse_detection_file(data: Any, default_image: str) -> DetectionFile:
    """
    Build a DetectionFile from decoded JSON.

    Args:
        data: Decoded JSON content
        default_image: Image name used when the record has no "image" field

    Raises:
        KeyError, ValueError, TypeError: If the record is malformed
    """
    if not isinstance(data, dict):
        raise ValueError(f"detection file must be an object, got {type(data).__name__}")

    image = data.get('image') or default_image
    detections = tuple(
        parse_detection(d)
        for d in _as_list(data.get('detections') or [], 'detections')
    )

    return DetectionFile(
        image=_as_str(image, 'image'),
        detections=detections,
        timings=parse_timings(data.get('timings')),
    )


def load_detection_file(path: Union[str, Path]) -> LoadResult:
    """
    Load a detection file (ground truth or detector output).

    Format:
        {
            "image": str,
            "detections": [
                {"tag_id": int, "tag_family": str,
                 "corners": [{"x": float, "y": float}, ...]},
                ...
            ],
            "timings": {                       # optional
                "image_load_ms": float,
                "total_detection_ms": float,
                "family_timings": [
                    {"family": str, "initialization_ms": float, "detection_ms": float}
                ]
            }
        }

    Args:
        path: Path to the JSON file

    Returns:
        LoadResult with status FOUND, MISSING or MALFORMED. Never raises for
        a missing or malformed file.
    """
    path = Path(path)
    if not path.is_file():
        return LoadResult(path=path, status=LoadStatus.MISSING)

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        detection_file = parse_detection_file(data, default_image=path.stem)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError,
            KeyError, ValueError, TypeError, RecursionError) as e:
        message = f"{type(e).__name__}: {e}"
        warn(f"Malformed detection file {path}: {message}")
        return LoadResult(path=path, status=LoadStatus.MALFORMED, error=message)

    return LoadResult(path=path, status=LoadStatus.FOUND, detection_file=detection_file)


def load_manifest(manifest_path: Union[str, Path]) -> Optional[Manifest]:
    """
    Load a detector manifest ({"supported_families": [str, ...]}).

    Returns:
        Manifest, or None if the file is missing or malformed
    """
    manifest_path = Path(manifest_path)
    if not manifest_path.is_file():
        return None

    try:
        with open(manifest_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        families = _as_list(data.get('supported_families') or [], 'supported_families')
        return Manifest(
            supported_families=tuple(_as_str(fam, 'supported_families') for fam in families)
        )
    except (OSError, UnicodeDecodeError, json.JSONDecodeError,
            AttributeError, ValueError, RecursionError) as e:
        warn(f"Ignoring malformed manifest {manifest_path}: {e}")
        return None


def load_manifests(results_dir: Union[str, Path], detector_names: List[str]) -> Dict[str, Manifest]:
    """
    Load <results_dir>/<detector>/manifest.json for every detector.

    Detectors without a readable manifest are left out of the mapping.
    """
    results_dir = Path(results_dir)
    manifests = {}
    for name in detector_names:
        manifest = load_manifest(results_dir / name / MANIFEST_FILENAME)
        if manifest is not None:
            manifests[name] = manifest
    return manifests


def discover_detectors(results_dir: Union[str, Path]) -> List[str]:
    """
    List detector output directories under results_dir.

    Hidden directories are skipped. Returns an empty list when results_dir
    does not exist.
    """
    results_dir = Path(results_dir)
    if not results_dir.is_dir():
        return []
    return sorted(
        p.name for p in results_dir.iterdir()
        if p.is_dir() and not p.name.startswith('.')
    )


def list_ground_truth_files(ground_truth_dir: Union[str, Path]) -> List[Path]:
    """List *.json files directly under ground_truth_dir, sorted by name."""
    ground_truth_dir = Path(ground_truth_dir)
    if not ground_truth_dir.is_dir():
        return []
    return sorted(p for p in ground_truth_dir.glob('*.json') if p.is_file())


def save_metrics(results: Dict, output_path: Union[str, Path]):
    """
    Save comparison results to JSON file.

    Args:
        results: JSON-serializable dictionary
        output_path: Path to save JSON file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(results, f, indent=2)

    print(f"✓ Saved metrics to: {output_path}")


def save_summary_csv(summaries: Dict[str, Summary], output_path: Union[str, Path]):
    """
    Save a one-row-per-detector summary CSV for easy copy-paste into reports.

    Args:
        summaries: Detector name -> Summary, from compute_summary()
        output_path: Path to save CSV file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow([
            'detector', 'precision', 'recall', 'f1', 'ground_truth', 'detected',
            'tp', 'missed', 'fp', 'avg_detection_ms'
        ])

        for name, summary in summaries.items():
            writer.writerow([
                name,
                f"{summary.precision:.4f}",
                f"{summary.recall:.4f}",
                f"{summary.f1_score:.4f}",
                summary.total_ground_truth,
                summary.total_detected,
                summary.true_positives,
                summary.missed,
                summary.false_positives,
                f"{summary.timing.avg_total_detection_ms:.4f}",
            ])

    print(f"✓ Saved summary CSV to: {output_path}")
