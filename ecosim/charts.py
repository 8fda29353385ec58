import logging
import os
from typing import Dict, List, Sequence

import numpy as np

logger = logging.getLogger(__name__)


def _series(rows: Sequence[Dict[str, object]], key: str) -> np.ndarray:
    return np.array([row[key] for row in rows], dtype=float)


def _log_summary(rows: Sequence[Dict[str, object]]):
    last = rows[-1]
    logger.info("=== SIMULATION SUMMARY ===")
    logger.info(f"Days completed: {last['day']}")
    logger.info(f"Final population: {last['animals']}")
    logger.info(f"Final grass: {last['grass']}")
    logger.info(f"Total births: {int(_series(rows, 'births').sum())}")
    logger.info(f"Total deaths: {int(_series(rows, 'deaths').sum())}")
    logger.info(f"Average final energy: {last['avg_energy']:.1f}")
    logger.info(f"Dominant genome: {last['dominant_genome'] or '-'}")


def final_charts(rows: Sequence[Dict[str, object]], output_dir: str = "simulation_results") -> List[str]:
    """Save end-of-run charts for a list of daily stats rows; returns the written paths."""
    if not rows:
        logger.info("No simulation data to plot")
        return []

    _log_summary(rows)
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError:
        logger.warning("Matplotlib not available for final charts. Install with: pip install matplotlib")
        return []

    os.makedirs(output_dir, exist_ok=True)
    days = _series(rows, "day")
    written = []

    # 1. Animals vs grass
    plt.figure(figsize=(10, 6), dpi=150)
    plt.plot(days, _series(rows, "animals"), lw=3, color="#1f77b4", label="Animals")
    plt.plot(days, _series(rows, "grass"), lw=3, color="#2ca02c", label="Grass")
    plt.title(f"Animals vs Grass - {len(rows)} Days", fontsize=16, fontweight="bold")
    plt.xlabel("Day", fontsize=12)
    plt.ylabel("Count", fontsize=12)
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    path = f"{output_dir}/animals_vs_grass.png"
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close()
    written.append(path)

    # 2. Average energy vs average lifespan
    plt.figure(figsize=(10, 6), dpi=150)
    plt.plot(days, _series(rows, "avg_energy"), lw=3, color="#ff7f0e", label="Avg Animal Energy")
    plt.plot(days, _series(rows, "avg_lifespan"), lw=3, color="#9467bd", label="Avg Animal Lifespan")
    plt.title(f"Avg Energy vs Avg Lifespan - {len(rows)} Days", fontsize=16, fontweight="bold")
    plt.xlabel("Day", fontsize=12)
    plt.ylabel("Energy / Days", fontsize=12)
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    path = f"{output_dir}/energy_vs_lifespan.png"
    plt.savefig(path, dpi=150, bbox_inches="tight")
    plt.close()
    written.append(path)

    # 3. Summary
    fig, ((ax1, ax2), (ax3, ax4)) = plt.subplots(2, 2, figsize=(12, 8), dpi=150)
    panels = (
        (ax1, "births", "Daily Births", "#1f77b4"),
        (ax2, "deaths", "Daily Deaths", "#d62728"),
        (ax3, "avg_age", "Mean Age", "#2ca02c"),
        (ax4, "avg_children", "Mean Children", "#8c564b"),
    )
    for ax, key, title, color in panels:
        ax.plot(days, _series(rows, key), lw=2, color=color)
        ax.set_title(title, fontweight="bold")
        ax.set_xlabel("Day")
        ax.grid(True, alpha=0.3)
    fig.tight_layout()
    path = f"{output_dir}/summary_statistics.png"
    fig.savefig(path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    written.append(path)

    logger.info(f"Charts saved to '{output_dir}/': " + ", ".join(os.path.basename(p) for p in written))
    return written
