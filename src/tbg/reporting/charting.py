from __future__ import annotations

from pathlib import Path
from typing import Sequence

from matplotlib.figure import Figure

from tbg.roster import Group


def render_group_ratings(groups: Sequence[Group], output_path: Path, title: str | None = None) -> Path:
    """Write a bar chart of each group's rating to ``output_path``."""
    if not groups:
        raise ValueError("at least one group is required for a rating chart")

    names = [g.name for g in groups]
    ratings = [g.group_rating() for g in groups]

    fig = Figure(figsize=(4.5, 2.4), dpi=100)
    ax = fig.add_subplot(111)
    bars = ax.bar(names, ratings, color="#4c72b0")
    ax.bar_label(bars)
    ax.set_title(title or f"{groups[0].activity.name} group ratings")
    ax.set_ylabel("rating")
    ax.grid(axis="y", alpha=0.3)
    fig.tight_layout()

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path)
    return output_path
