"""
Shared pytest fixtures for comparison tests
"""
import json

import pytest

from comparison.log import set_log_file
from comparison.types import DetectionKey


SQUARE = [
    {"x": 10.0, "y": 20.0},
    {"x": 20.0, "y": 20.0},
    {"x": 20.0, "y": 10.0},
    {"x": 10.0, "y": 10.0},
]


def detection(tag_id, family="tag36h11", corners=None):
    return {
        "tag_id": tag_id,
        "tag_family": family,
        "corners": SQUARE if corners is None else corners,
    }


def timings(load_ms, detect_ms, families=()):
    return {
        "image_load_ms": load_ms,
        "total_detection_ms": detect_ms,
        "family_timings": [
            {"family": f, "initialization_ms": init, "detection_ms": det}
            for f, init, det in families
        ],
    }


def write_json(path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload))
    return path


@pytest.fixture(autouse=True)
def reset_log_file():
    """Keep a log file set by one test from leaking into the next"""
    yield
    set_log_file(None)


@pytest.fixture
def key():
    """Factory for DetectionKey with a default family"""
    def _key(tag_id, family="tag36h11"):
        return DetectionKey(tag_id, family)
    return _key


@pytest.fixture
def dataset(tmp_path):
    """
    Two-image dataset with two detectors.

    img1: GT {1, 2}; good reports {1, 2}, noisy reports {1, 3}
    img2: GT {5, 7:tag25h9}; good reports {5, 7:tag25h9}, noisy has no file
    """
    gt_dir = tmp_path / "ground-truth"
    results_dir = tmp_path / "results"

    write_json(gt_dir / "img1.json", {
        "image": "img1.jpg",
        "detections": [detection(1), detection(2)],
    })
    write_json(gt_dir / "img2.json", {
        "image": "img2.jpg",
        "detections": [detection(5), detection(7, "tag25h9")],
    })

    write_json(results_dir / "good" / "img1.json", {
        "image": "img1.jpg",
        "detections": [detection(1), detection(2)],
        "timings": timings(5.0, 100.0, [("tag36h11", 1.0, 40.0)]),
    })
    write_json(results_dir / "good" / "img2.json", {
        "image": "img2.jpg",
        "detections": [detection(5), detection(7, "tag25h9")],
        "timings": timings(7.0, 200.0, [("tag36h11", 3.0, 60.0), ("tag25h9", 2.0, 20.0)]),
    })
    write_json(results_dir / "good" / "manifest.json", {
        "supported_families": ["tag36h11", "tag25h9"],
    })

    write_json(results_dir / "noisy" / "img1.json", {
        "image": "img1.jpg",
        "detections": [detection(1), detection(3)],
    })

    return {
        "ground_truth_dir": gt_dir,
        "results_dir": results_dir,
        "detectors": ["good", "noisy"],
    }
