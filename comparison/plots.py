"""
Visualization functions for detector comparison results.
"""

from pathlib import Path
from typing import Dict, List, Optional
import matplotlib.pyplot as plt
import matplotlib
import numpy as np

from .types import Summary

# Use non-interactive backend for server environments
matplotlib.use('Agg')


def _save(fig, output_path) -> Path:
    fig.tight_layout()
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return output_path


def plot_detector_scores(
    summaries: Dict[str, Summary],
    output_path: str,
    title: str = "Precision / Recall / F1 by Detector"
) -> Path:
    """
    Plot grouped Precision/Recall/F1 bars, one group per detector.

    Args:
        summaries: Dict from compute_summary()
        output_path: Path to save figure
        title: Plot title

    Example:
        >>> summaries = compute_summary(results, detectors)
        >>> plot_detector_scores(summaries, "figures/detector_scores.png")
    """
    names = list(summaries.keys())
    precisions = [summaries[n].precision for n in names]
    recalls = [summaries[n].recall for n in names]
    f1s = [summaries[n].f1_score for n in names]

    x = np.arange(len(names))
    width = 0.25

    fig, ax = plt.subplots(figsize=(max(8, len(names) * 2.5), 6))
    ax.bar(x - width, precisions, width, label='Precision', edgecolor='black', linewidth=0.5)
    ax.bar(x, recalls, width, label='Recall', edgecolor='black', linewidth=0.5)
    bars = ax.bar(x + width, f1s, width, label='F1 Score', edgecolor='black', linewidth=0.5)

    # F1 value above each detector's F1 bar
    for bar, f1 in zip(bars, f1s):
        ax.text(bar.get_x() + bar.get_width() / 2, f1 + 0.02, f'{f1:.3f}',
                ha='center', va='bottom', fontsize=9)

    ax.set_xticks(x)
    ax.set_xticklabels(names, rotation=20, ha='right', fontsize=10)
    ax.set_ylabel('Score', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.set_ylim([0, 1.1])
    ax.legend(fontsize=11)
    ax.grid(axis='y', alpha=0.3)

    output_path = _save(fig, output_path)
    print(f"✓ Saved detector scores plot: {output_path}")
    return output_path


def plot_family_errors(
    summary: Summary,
    output_path: str,
    title: str = "Errors by Tag Family"
) -> Optional[Path]:
    """
    Plot missed detections and false positives per tag family for one detector.

    Families with no errors are left out. Nothing is written, and None is
    returned, when the detector made no errors at all.
    """
    families = sorted(set(summary.missed_by_family) | set(summary.fp_by_family))
    if not families:
        print(f"  (no errors to plot for {title})")
        return None

    missed = [summary.missed_by_family.get(f, 0) for f in families]
    fps = [summary.fp_by_family.get(f, 0) for f in families]

    y = np.arange(len(families))
    height = 0.4

    fig, ax = plt.subplots(figsize=(10, max(4, len(families) * 0.6)))
    ax.barh(y - height / 2, missed, height, label='Missed', color='#e74c3c', edgecolor='black', linewidth=0.5)
    ax.barh(y + height / 2, fps, height, label='False Positives', color='#f39c12', edgecolor='black', linewidth=0.5)

    ax.set_yticks(y)
    ax.set_yticklabels(families, fontsize=10)
    ax.set_xlabel('Count', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.legend(fontsize=10)
    ax.grid(axis='x', alpha=0.3)

    output_path = _save(fig, output_path)
    print(f"✓ Saved family errors plot: {output_path}")
    return output_path


def plot_timing(
    summaries: Dict[str, Summary],
    output_path: str,
    title: str = "Average Time per Image"
) -> Path:
    """
    Plot average image-load and detection time per detector.

    Detectors that reported no timings are shown with zero bars and an
    "n/a" label.
    """
    names = list(summaries.keys())
    load_ms = [summaries[n].timing.avg_image_load_ms for n in names]
    detect_ms = [summaries[n].timing.avg_total_detection_ms for n in names]
    counts = [summaries[n].timing.image_count for n in names]

    x = np.arange(len(names))
    width = 0.35

    fig, ax = plt.subplots(figsize=(max(8, len(names) * 2.5), 6))
    ax.bar(x - width / 2, load_ms, width, label='Image load', color='#3498db', edgecolor='black', linewidth=0.5)
    bars = ax.bar(x + width / 2, detect_ms, width, label='Detection', color='#2ecc71', edgecolor='black', linewidth=0.5)

    for bar, ms, count in zip(bars, detect_ms, counts):
        label = f'{ms:.1f} ms' if count > 0 else 'n/a'
        ax.text(bar.get_x() + bar.get_width() / 2, bar.get_height(), label,
                ha='center', va='bottom', fontsize=9)

    ax.set_xticks(x)
    ax.set_xticklabels(names, rotation=20, ha='right', fontsize=10)
    ax.set_ylabel('Milliseconds', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.legend(fontsize=11)
    ax.grid(axis='y', alpha=0.3)

    output_path = _save(fig, output_path)
    print(f"✓ Saved timing plot: {output_path}")
    return output_path


def plot_all_metrics(
    summaries: Dict[str, Summary],
    output_dir: str,
    run_name: str = "comparison"
) -> List[Path]:
    """
    Generate all comparison plots in one call.

    Args:
        summaries: Results from compute_summary()
        output_dir: Directory to save all plots
        run_name: Name to include in titles

    Returns:
        Paths of the files written
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []

    # 1. Accuracy per detector
    written.append(plot_detector_scores(
        summaries,
        output_dir / "detector_scores.png",
        title=f"{run_name}: P/R/F1 by Detector"
    ))

    # 2. Timing per detector
    written.append(plot_timing(
        summaries,
        output_dir / "timing.png",
        title=f"{run_name}: Average Time per Image"
    ))

    # 3. Family breakdown per detector
    for name, summary in summaries.items():
        family_path = plot_family_errors(
            summary,
            output_dir / f"family_errors_{name}.png",
            title=f"{name}: Errors by Tag Family"
        )
        if family_path is not None:
            written.append(family_path)

    print(f"\n✓ All plots saved to: {output_dir}/")
    return written
