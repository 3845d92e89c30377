"""
Tests for comparison plots
"""
from comparison.metrics import compute_summary, load_all_data
from comparison.plots import plot_all_metrics, plot_family_errors


class TestPlots:
    """Tests that plots are written"""

    def test_plot_all_metrics(self, dataset, tmp_path):
        data = load_all_data(
            dataset["ground_truth_dir"], dataset["results_dir"], dataset["detectors"],
            show_progress=False
        )

        written = plot_all_metrics(data.summaries, str(tmp_path / "plots"), run_name="test")

        names = {p.name for p in written}
        assert "detector_scores.png" in names
        assert "timing.png" in names
        assert "family_errors_noisy.png" in names
        # "good" made no errors, so it has no family plot
        assert "family_errors_good.png" not in names
        assert all(p.exists() for p in written)

    def test_plot_all_metrics_ignores_existing_files(self, dataset, tmp_path):
        """Test only the files written by this run are returned"""
        plots_dir = tmp_path / "plots"
        plots_dir.mkdir()
        (plots_dir / "family_errors_old-detector.png").write_bytes(b"")
        data = load_all_data(
            dataset["ground_truth_dir"], dataset["results_dir"], dataset["detectors"],
            show_progress=False
        )

        written = plot_all_metrics(data.summaries, str(plots_dir), run_name="test")

        assert [p.name for p in written] == [
            "detector_scores.png", "timing.png", "family_errors_noisy.png",
        ]

    def test_family_errors_skips_perfect_detector(self, tmp_path):
        summary = compute_summary({}, ["A"])["A"]
        path = tmp_path / "family.png"

        assert plot_family_errors(summary, str(path)) is None
        assert not path.exists()
