"""
Exceptions raised by the comparison package.

Per-file problems (missing or malformed detection files) are never raised;
the loader turns them into default values. Only run-level failures are.
"""


class ComparisonError(Exception):
    """Base class for comparison failures."""


class EmptyDatasetError(ComparisonError):
    """No ground-truth file could be loaded, so no summary can be produced."""

    def __init__(self, ground_truth_dir):
        self.ground_truth_dir = str(ground_truth_dir)
        super().__init__(f"No ground truth files found in {self.ground_truth_dir}")


class ConfigError(ComparisonError):
    """The run configuration file is missing or invalid."""
