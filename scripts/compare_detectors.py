"""
Compare detector results against ground truth from a source checkout.

Usage:
    python scripts/compare_detectors.py --ground-truth ground-truth --results results

See comparison/cli.py for all options.
"""

import sys
from pathlib import Path

# Add parent directory to path to import comparison module
sys.path.insert(0, str(Path(__file__).parent.parent))

from comparison.cli import main  # noqa: E402


if __name__ == "__main__":
    sys.exit(main())
