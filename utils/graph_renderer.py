"""Matplotlib chart renderers for /bingographs and /profile.

Each function takes plain lists/values and returns a BytesIO PNG (150 DPI).
Uses the Agg backend (headless).
"""

from __future__ import annotations

import io
from typing import Dict, List, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.ticker import MaxNLocator

# Discord dark theme colors
BG = "#2C2F33"
FG = "#FFFFFF"
GRID = "#40444B"
WIN = "#2ECC71"
LOSS = "#E74C3C"
DRAW = "#95A5A6"
GOLD = "#D4A84A"


def _apply_dark_style(ax, fig):
    """Apply Discord-themed dark styling to a figure and axes."""
    fig.patch.set_facecolor(BG)
    ax.set_facecolor(BG)
    ax.tick_params(colors=FG, which="both")
    ax.xaxis.label.set_color(FG)
    ax.yaxis.label.set_color(FG)
    ax.title.set_color(FG)
    for spine in ax.spines.values():
        spine.set_color(GRID)
    ax.grid(True, color=GRID, alpha=0.5, linestyle="--", linewidth=0.5)


def _save(fig) -> io.BytesIO:
    """Save figure to BytesIO PNG and close."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=150, bbox_inches="tight", facecolor=fig.get_facecolor())
    buf.seek(0)
    plt.close(fig)
    return buf


def _sparse_ticks(ax, labels: Sequence[str], max_ticks: int = 12) -> None:
    n = len(labels)
    step = max(1, (n + max_ticks - 1) // max_ticks)
    idx = list(range(0, n, step))
    if n and idx[-1] != n - 1:
        idx.append(n - 1)
    ax.set_xticks(idx)
    ax.set_xticklabels([labels[i] for i in idx], rotation=45, ha="right", fontsize=9, color=FG)


# ---------------------------------------------------------------------------
# League charts
# ---------------------------------------------------------------------------

def render_cumulative_wins(
    labels: List[str],
    series: Dict[str, List[int]],
    colors: Dict[str, str],
) -> io.BytesIO:
    """One line per player: running win total by play date."""
    fig, ax = plt.subplots(figsize=(11, 5))
    _apply_dark_style(ax, fig)

    x = list(range(len(labels)))
    for name, values in series.items():
        ax.plot(
            x,
            values,
            color=colors.get(name, GOLD),
            marker="o",
            linewidth=2,
            markersize=4,
            label=name,
        )

    _sparse_ticks(ax, labels)
    ax.set_ylabel("Wins", fontsize=11)
    ax.yaxis.set_major_locator(MaxNLocator(integer=True))
    ax.set_ylim(bottom=0)

    if series:
        ax.legend(loc="upper left", facecolor=BG, edgecolor=GRID, labelcolor=FG)
    ax.set_title("Cumulative Wins", fontsize=13, color=FG, pad=12)

    return _save(fig)


def render_monthly_matches(labels: List[str], counts: List[int]) -> io.BytesIO:
    """Bar chart: matches played per month."""
    fig, ax = plt.subplots(figsize=(10, 5))
    _apply_dark_style(ax, fig)

    x = range(len(labels))
    bars = ax.bar(x, counts, 0.6, color=GOLD)
    for bar, v in zip(bars, counts):
        ax.text(
            bar.get_x() + bar.get_width() / 2,
            bar.get_height(),
            str(v),
            ha="center",
            va="bottom",
            fontsize=9,
            color=FG,
        )

    ax.set_xticks(list(x))
    ax.set_xticklabels(labels, rotation=45, ha="right", fontsize=9, color=FG)
    ax.set_ylabel("Matches", fontsize=11)
    ax.yaxis.set_major_locator(MaxNLocator(integer=True))
    ax.set_title("Matches per Month", fontsize=13, color=FG, pad=12)

    return _save(fig)


def render_leaderboard(
    names: List[str],
    wins: List[int],
    colors: List[str],
) -> io.BytesIO:
    """Horizontal bar chart of wins, leader on top."""
    height = max(3.0, 0.5 * len(names) + 1.5)
    fig, ax = plt.subplots(figsize=(10, height))
    _apply_dark_style(ax, fig)

    y = range(len(names))
    ax.barh(list(y), wins[::-1], color=colors[::-1], height=0.6)
    ax.set_yticks(list(y))
    ax.set_yticklabels(names[::-1], fontsize=10, color=FG)
    ax.set_xlabel("Wins", fontsize=11)
    ax.xaxis.set_major_locator(MaxNLocator(integer=True))
    ax.set_title("Leaderboard", fontsize=13, color=FG, pad=12)

    return _save(fig)


# ---------------------------------------------------------------------------
# Player charts
# ---------------------------------------------------------------------------

def render_player_record(
    wins: int,
    losses: int,
    player_name: str,
) -> io.BytesIO:
    """Donut chart of wins vs non-wins with total matches in the center."""
    fig, ax = plt.subplots(figsize=(6, 6))
    fig.patch.set_facecolor(BG)
    ax.set_facecolor(BG)

    sizes = []
    colors = []
    labels = []

    if wins > 0:
        sizes.append(wins)
        colors.append(WIN)
        labels.append(f"Wins ({wins})")
    if losses > 0:
        sizes.append(losses)
        colors.append(LOSS)
        labels.append(f"Losses ({losses})")

    if not sizes:
        sizes = [1]
        colors = [GRID]
        labels = ["No matches"]

    total = wins + losses

    wedges, texts, autotexts = ax.pie(
        sizes,
        labels=labels,
        colors=colors,
        autopct="%1.0f%%",
        startangle=90,
        wedgeprops=dict(width=0.4, edgecolor=BG, linewidth=2),
        textprops=dict(color=FG, fontsize=11),
        pctdistance=0.78,
    )
    for t in autotexts:
        t.set_color(FG)
        t.set_fontsize(10)

    ax.text(0, 0, f"{total}\nmatches", ha="center", va="center", fontsize=18, fontweight="bold", color=FG)
    ax.set_title(f"{player_name}: Record", fontsize=13, color=FG, pad=12)

    return _save(fig)
