# SPDX-License-Identifier: Apache-2.0
"""
Forest plot of D / f4 / f3 / f4-ratio results from a result TSV.

- one row per tested combination, labelled by its populations
- point estimate with +/- k * stderr bars (default k = 3)
- rows with |Z| >= k highlighted
- dashed line at 0 for D, f4 and f3
"""

from __future__ import annotations
import os

import numpy as np
import pandas as pd
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt


# statistic column -> population columns forming the row label
LAYOUTS = {
    "D": (["W", "X", "Y", "Z"], "D({}, {}; {}, {})"),
    "f4": (["W", "X", "Y", "Z"], "f4({}, {}; {}, {})"),
    "f3": (["A", "B", "C"], "f3({2}; {0}, {1})"),
    "alpha": (["A", "B", "X", "C", "O"], "{2}: {0}/{1}  ({4}, {3})"),
}


def detect_stat(df: pd.DataFrame) -> str:
    for stat in LAYOUTS:
        if stat in df.columns:
            return stat
    raise ValueError(f"No statistic column found; expected one of {', '.join(LAYOUTS)}")


def plot_stat(
    df: pd.DataFrame,
    out_pdf: str,
    stat: str | None = None,
    zmult: float = 3.0,
    width: float = 8.0,
    height: float | None = None,
):
    """
    Draw one forest plot to `out_pdf`.
    Expects columns: the statistic, 'stderr', 'Zscore' and the population columns.
    """
    stat = stat or detect_stat(df)
    pop_cols, fmt = LAYOUTS[stat]
    missing = [c for c in pop_cols + [stat, "stderr", "Zscore"] if c not in df.columns]
    if missing:
        raise ValueError(f"Result table lacks column(s): {', '.join(missing)}")
    if df.empty:
        raise ValueError("Result table is empty")

    d = df.reset_index(drop=True)
    labels = [fmt.format(*row) for row in d[pop_cols].astype(str).itertuples(index=False)]
    y = np.arange(len(d))[::-1]
    est = d[stat].to_numpy(dtype=float)
    err = zmult * d["stderr"].to_numpy(dtype=float)
    signif = np.abs(d["Zscore"].to_numpy(dtype=float)) >= zmult

    if height is None:
        height = max(2.5, 0.35 * len(d) + 1.0)
    plt.figure(figsize=(width, height))
    ax = plt.gca()

    for mask, color in ((~signif, "0.35"), (signif, "firebrick")):
        if mask.any():
            ax.errorbar(est[mask], y[mask], xerr=err[mask], fmt="o", color=color,
                        ecolor=color, elinewidth=1.0, capsize=3, markersize=5, zorder=2)

    if stat != "alpha":
        ax.axvline(0.0, color="black", linestyle="--", linewidth=0.8, zorder=1)

    ax.set_yticks(y)
    ax.set_yticklabels(labels)
    ax.set_xlabel(f"{stat} (+/- {zmult:g} SE)")

    # Minimal theme
    for spine in ("top", "right"):
        ax.spines[spine].set_visible(False)

    os.makedirs(os.path.dirname(os.path.abspath(out_pdf)) or ".", exist_ok=True)
    plt.tight_layout()
    plt.savefig(out_pdf)
    plt.close()
    print(f"[OK] Saved: {out_pdf}")


def run(table: str, out_pdf: str, stat: str | None = None, zmult: float = 3.0,
        width: float = 8.0, height: float | None = None):
    """
    Entry for CLI.
    - table: TSV written by the d/f4/f3/f4ratio commands
    - out_pdf: output figure (format from the extension)
    """
    df = pd.read_csv(table, sep="\t")
    plot_stat(df, out_pdf, stat=stat, zmult=zmult, width=width, height=height)
