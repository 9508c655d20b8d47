"""
Effect ratio histogram module.
"""

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from typing import Optional
from .style import COLORS


def plot_ratio_histograms(
    results: pd.DataFrame,
    alpha: float = 0.05,
    bins: int = 20,
    title: str = "During-dam / Post-removal Peak Flow Ratio",
    output_path: Optional[str] = None
):
    """
    Histograms of the effect ratio for all, significant and
    non-significant dams.

    Dams without a computed ratio (Error0-Error3) are left out.
    """
    tested = results.dropna(subset=['effect_ratio', 'p_value'])
    tested = tested[np.isfinite(tested['effect_ratio'].astype(float))]
    significant = tested[tested['p_value'] < alpha]
    not_significant = tested[tested['p_value'] >= alpha]

    panels = [
        ('All dams', tested, COLORS['neutral']),
        (f'p < {alpha}', significant, COLORS['significant']),
        (f'p ≥ {alpha}', not_significant, COLORS['not_significant']),
    ]

    fig, axes = plt.subplots(1, 3, figsize=(12, 4), sharey=True)

    for ax, (label, subset, color) in zip(axes, panels):
        if not subset.empty:
            ax.hist(subset['effect_ratio'].astype(float), bins=bins, color=color,
                    edgecolor=COLORS['black'], alpha=0.8)
        ax.axvline(1.0, color=COLORS['black'], linestyle='--', linewidth=1)
        ax.set_title(f"{label} (n={len(subset)})")
        ax.set_xlabel("Ratio")

    axes[0].set_ylabel("Number of dams")
    fig.suptitle(title)
    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, bbox_inches='tight')
        plt.close()
    else:
        return fig, axes
