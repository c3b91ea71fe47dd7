from __future__ import annotations

import html
from typing import Sequence

from .metrics import RESULTS, Commit

WIDTH = 800
HEIGHT = 400
MARGIN_X = 40
MARGIN_TOP = 40
MARGIN_BOTTOM = 40
MAX_X_LABELS = 12
FONT = 'font-family="var(--font-mono)" font-size="10"'


def dataset_label(result: str) -> str:
    return result[0].upper() + result[1:]


def stacked_series(commits: Sequence[Commit]) -> list[tuple[str, list[float], list[float]]]:
    """Lower and upper bounds, in percent, of each result band per commit."""
    floor = [0.0] * len(commits)
    series = []
    for result in RESULTS:
        upper = [base + commit.metrics.percent(result) for base, commit in zip(floor, commits)]
        series.append((result, floor, upper))
        floor = upper
    return series


def render_chart(commits: Sequence[Commit], svg_class: str = "") -> str:
    """Render a stacked percentage area chart of test results as inline SVG."""
    plot_width = WIDTH - 2 * MARGIN_X
    plot_height = HEIGHT - MARGIN_TOP - MARGIN_BOTTOM
    count = len(commits)

    def x_at(index: int) -> float:
        if count <= 1:
            return MARGIN_X
        return MARGIN_X + plot_width * index / (count - 1)

    def y_at(value: float) -> float:
        return MARGIN_TOP + plot_height * (1 - min(value, 100.0) / 100)

    parts = []
    for tick in range(0, 101, 20):
        y = y_at(tick)
        parts.append(
            f'<line x1="{MARGIN_X}" y1="{y:.1f}" x2="{WIDTH - MARGIN_X}" y2="{y:.1f}" '
            'style="stroke: var(--neutral-400)" />'
        )
        parts.append(
            f'<text x="{MARGIN_X - 6}" y="{y + 3:.1f}" text-anchor="end" {FONT} '
            f'style="fill: var(--neutral-800)">{tick}</text>'
        )
        parts.append(
            f'<text x="{WIDTH - MARGIN_X + 6}" y="{y + 3:.1f}" text-anchor="start" {FONT} '
            f'style="fill: var(--neutral-800)">{tick}</text>'
        )

    for result, lower, upper in stacked_series(commits):
        top = [f"{x_at(i):.1f},{y_at(value):.1f}" for i, value in enumerate(upper)]
        bottom = [f"{x_at(i):.1f},{y_at(value):.1f}" for i, value in reversed(list(enumerate(lower)))]
        parts.append(
            f'<polygon data-result="{result}" points="{" ".join(top + bottom)}" '
            f'style="fill: var(--chart-{result}); stroke: var(--chart-{result})" />'
        )

    step = max(1, -(-count // MAX_X_LABELS))
    for index in range(0, count, step):
        label = html.escape(commits[index].sha[:7])
        parts.append(
            f'<text x="{x_at(index):.1f}" y="{HEIGHT - MARGIN_BOTTOM + 16}" text-anchor="middle" {FONT} '
            f'style="fill: var(--neutral-800)">{label}</text>'
        )

    legend_x = MARGIN_X
    for result in RESULTS:
        parts.append(
            f'<rect x="{legend_x}" y="12" width="10" height="10" style="fill: var(--chart-{result})" />'
            f'<text x="{legend_x + 14}" y="21" {FONT} style="fill: var(--neutral-800)">'
            f"{dataset_label(result)}</text>"
        )
        legend_x += 100

    class_attr = f' class="{svg_class}"' if svg_class else ""
    return (
        f'<svg xmlns="http://www.w3.org/2000/svg"{class_attr} viewBox="0 0 {WIDTH} {HEIGHT}" '
        f'role="img" aria-label="Test262 results per commit">{"".join(parts)}</svg>'
    )
