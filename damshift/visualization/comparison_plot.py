"""
Per-dam comparison series plotting module.
"""

import matplotlib.pyplot as plt
import pandas as pd
from typing import Optional
from .style import COLORS


def plot_comparison_series(
    records: pd.DataFrame,
    year_removed: Optional[int] = None,
    year_built: Optional[int] = None,
    title: str = "Normalized Peak Flow Difference",
    ylabel: str = "Dam − reference peak flow (m³/s per km²)",
    output_path: Optional[str] = None
):
    """
    Plot the yearly drainage-area-normalized difference for one dam.

    Bars are colored by period; years outside both periods are gray.
    """
    fig, ax = plt.subplots(figsize=(6, 4))

    periods = records['period'] if 'period' in records.columns else pd.Series(None, index=records.index)
    during = records[periods == 'during']
    post = records[periods == 'post']
    other = records[~periods.isin(['during', 'post'])]

    if not other.empty:
        ax.bar(other['year'], other['comparison'], color=COLORS['neutral'],
               alpha=0.7, label='Excluded', width=0.8)
    if not during.empty:
        ax.bar(during['year'], during['comparison'], color=COLORS['during_dam'],
               alpha=0.7, label='During dam', width=0.8)
    if not post.empty:
        ax.bar(post['year'], post['comparison'], color=COLORS['post_removal'],
               alpha=0.7, label='Post removal', width=0.8)

    # Period medians
    for subset, key in ((during, 'during_dam'), (post, 'post_removal')):
        if len(subset) > 1:
            ax.hlines(subset['comparison'].median(), subset['year'].min() - 0.4,
                      subset['year'].max() + 0.4, color=COLORS[key], linestyle='--')

    if year_removed is not None:
        ax.axvline(x=year_removed, color=COLORS['removal_event'],
                   linestyle='--', linewidth=1.5, label='Removal')
    if year_built is not None and not records.empty and year_built >= records['year'].min():
        ax.axvline(x=year_built, color=COLORS['black'],
                   linestyle=':', linewidth=1.5, label='Construction')

    ax.axhline(0, color=COLORS['black'], linewidth=0.8)
    ax.set_title(title)
    ax.set_ylabel(ylabel)
    ax.set_xlabel("Year")
    ax.legend()

    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, bbox_inches='tight')
        plt.close()
    else:
        return fig, ax
