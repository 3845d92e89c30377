"""
Tests for loading detection files and manifests, and saving results
"""
import csv
import json

from comparison.io import (
    LoadStatus,
    discover_detectors,
    list_ground_truth_files,
    load_detection_file,
    load_manifest,
    load_manifests,
    save_metrics,
    save_summary_csv,
)
from comparison.metrics import compute_summary, collect_results
from comparison.types import NO_TIMINGS, Corner, Timings

from conftest import detection, timings, write_json


class TestLoadDetectionFile:
    """Tests for load_detection_file"""

    def test_load_full_file(self, tmp_path):
        """Test detections, corners and timings are parsed"""
        path = write_json(tmp_path / "a.json", {
            "image": "a.jpg",
            "detections": [detection(4)],
            "timings": timings(1.5, 30.0, [("tag36h11", 0.5, 29.0)]),
        })

        result = load_detection_file(path)

        assert result.status is LoadStatus.FOUND
        assert result.found
        det_file = result.detection_file
        assert det_file.image == "a.jpg"
        assert det_file.detections[0].tag_id == 4
        assert det_file.detections[0].corners[0] == Corner(10.0, 20.0)
        assert isinstance(det_file.timings, Timings)
        assert det_file.timings.total_detection_ms == 30.0
        assert det_file.timings.family_timings[0].family == "tag36h11"

    def test_missing_file(self, tmp_path):
        """Test missing file is reported, not raised"""
        result = load_detection_file(tmp_path / "nope.json")

        assert result.status is LoadStatus.MISSING
        assert result.detection_file is None

    def test_invalid_json_is_malformed(self, tmp_path):
        """Test broken JSON is reported as malformed"""
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        result = load_detection_file(path)

        assert result.status is LoadStatus.MALFORMED
        assert result.detection_file is None
        assert result.error

    def test_detection_without_tag_id_is_malformed(self, tmp_path):
        path = write_json(tmp_path / "bad.json", {
            "image": "bad.jpg",
            "detections": [{"tag_family": "tag36h11"}],
        })

        assert load_detection_file(path).status is LoadStatus.MALFORMED

    def test_wrong_type_is_malformed(self, tmp_path):
        path = write_json(tmp_path / "bad.json", {
            "image": "bad.jpg",
            "detections": [{"tag_id": "one", "tag_family": "tag36h11"}],
        })

        assert load_detection_file(path).status is LoadStatus.MALFORMED

    def test_non_object_is_malformed(self, tmp_path):
        path = write_json(tmp_path / "bad.json", [1, 2, 3])

        assert load_detection_file(path).status is LoadStatus.MALFORMED

    def test_short_corner_list_is_accepted(self, tmp_path):
        """Test detections with fewer than four corners are kept"""
        path = write_json(tmp_path / "a.json", {
            "image": "a.jpg",
            "detections": [
                detection(1, corners=[{"x": 1.0, "y": 2.0}]),
                {"tag_id": 2, "tag_family": "tag36h11"},
            ],
        })

        result = load_detection_file(path)

        assert result.found
        assert len(result.detection_file.detections[0].corners) == 1
        assert result.detection_file.detections[1].corners == ()

    def test_absent_timings(self, tmp_path):
        path = write_json(tmp_path / "a.json", {"image": "a.jpg", "detections": []})

        assert load_detection_file(path).detection_file.timings is NO_TIMINGS

    def test_image_defaults_to_file_stem(self, tmp_path):
        path = write_json(tmp_path / "frame_001.json", {"detections": [detection(1)]})

        assert load_detection_file(path).detection_file.image == "frame_001"

    def test_deeply_nested_json_is_malformed(self, tmp_path):
        """Test JSON nested past the recursion limit is reported, not raised"""
        path = tmp_path / "deep.json"
        path.write_text("[" * 200000 + "]" * 200000)

        result = load_detection_file(path)

        assert result.status is LoadStatus.MALFORMED
        assert "RecursionError" in result.error

    def test_non_finite_timings_are_malformed(self, tmp_path):
        """Test NaN and Infinity timings reject the file"""
        nan_path = tmp_path / "nan.json"
        nan_path.write_text(
            '{"image": "a.jpg", "detections": [], '
            '"timings": {"image_load_ms": NaN, "total_detection_ms": 1.0}}'
        )
        inf_path = tmp_path / "inf.json"
        inf_path.write_text(
            '{"image": "a.jpg", "detections": [], '
            '"timings": {"image_load_ms": 1.0, "total_detection_ms": 2.0, '
            '"family_timings": [{"family": "tag36h11", "initialization_ms": Infinity, '
            '"detection_ms": 1.0}]}}'
        )

        assert load_detection_file(nan_path).status is LoadStatus.MALFORMED
        assert load_detection_file(inf_path).status is LoadStatus.MALFORMED

    def test_malformed_file_logs_warning(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text("")

        load_detection_file(path)

        assert "WARNING" in capsys.readouterr().out


class TestManifest:
    """Tests for manifest loading"""

    def test_load_manifest(self, tmp_path):
        path = write_json(tmp_path / "manifest.json", {"supported_families": ["tag36h11", "tag16h5"]})

        manifest = load_manifest(path)

        assert manifest.supported_families == ("tag36h11", "tag16h5")

    def test_missing_manifest(self, tmp_path):
        assert load_manifest(tmp_path / "manifest.json") is None

    def test_malformed_manifest(self, tmp_path):
        path = tmp_path / "manifest.json"
        path.write_text("[]")

        assert load_manifest(path) is None

    def test_load_manifests_skips_missing(self, dataset):
        manifests = load_manifests(dataset["results_dir"], dataset["detectors"])

        assert set(manifests) == {"good"}


class TestDiscovery:
    """Tests for detector and ground-truth discovery"""

    def test_discover_detectors_sorted_and_skips_hidden(self, tmp_path):
        for name in ["zeta", "alpha", ".cache"]:
            (tmp_path / name).mkdir()
        (tmp_path / "notes.txt").write_text("x")

        assert discover_detectors(tmp_path) == ["alpha", "zeta"]

    def test_discover_detectors_missing_dir(self, tmp_path):
        assert discover_detectors(tmp_path / "missing") == []

    def test_list_ground_truth_files(self, dataset):
        files = list_ground_truth_files(dataset["ground_truth_dir"])

        assert [f.name for f in files] == ["img1.json", "img2.json"]


class TestSave:
    """Tests for saving outputs"""

    def test_save_metrics_creates_parent(self, tmp_path):
        path = tmp_path / "out" / "nested" / "metrics.json"

        save_metrics({"a": 1}, path)

        assert json.loads(path.read_text()) == {"a": 1}

    def test_save_summary_csv(self, dataset, tmp_path):
        results = collect_results(
            dataset["ground_truth_dir"], dataset["results_dir"], dataset["detectors"],
            show_progress=False
        )
        summaries = compute_summary(results, dataset["detectors"])
        path = tmp_path / "summary.csv"

        save_summary_csv(summaries, path)

        with open(path, newline='') as f:
            rows = list(csv.DictReader(f))
        assert [r["detector"] for r in rows] == ["good", "noisy"]
        assert rows[0]["f1"] == "1.0000"
        assert rows[0]["avg_detection_ms"] == "150.0000"
        assert rows[1]["tp"] == "1"
