"""Weekly trend line charts for review latency metrics."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402

from .models import AggregatedSeries  # noqa: E402
from .stats import METRIC_LABELS  # noqa: E402

logger = logging.getLogger(__name__)


def plot_weekly_trends(series: AggregatedSeries, output_dir: str) -> List[Path]:
    """Render one PNG per metric with weekly Average and Median lines.

    Weeks missing for a metric are plotted as ``0``. Nothing is written when
    the week axis is empty.

    Returns:
        Paths of the written images.
    """
    if not series.weeks:
        logger.info("No weekly data to chart; skipping chart rendering")
        return []

    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    written: List[Path] = []
    positions = list(range(len(series.weeks)))

    for metric, lines in series.chart_series().items():
        fig, ax = plt.subplots(figsize=(11, 5))
        for label, values in lines.items():
            ax.plot(positions, values, marker="o", linewidth=2, label=f"{label} (hours)")

        title = METRIC_LABELS.get(metric, metric)
        ax.set_title(f"Weekly {title} Time")
        ax.set_xlabel("Week of review request")
        ax.set_ylabel("Business hours")
        ax.set_xticks(positions)
        ax.set_xticklabels(series.weeks, rotation=45, ha="right")
        ax.grid(True, alpha=0.3)
        ax.legend(loc="upper left")

        fig.tight_layout()
        out = out_dir / f"{metric.replace('_hours', '')}_time.png"
        fig.savefig(out, dpi=150, bbox_inches="tight")
        plt.close(fig)

        logger.info("Saved weekly chart", extra={"metric": metric, "path": str(out)})
        written.append(out)

    return written
