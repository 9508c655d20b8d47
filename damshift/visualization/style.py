"""
Plot styling shared by the DamShift figures.
"""

import matplotlib.pyplot as plt
import seaborn as sns

# Period and significance colors
COLORS = {
    'during_dam': '#2166AC',    # Blue
    'post_removal': '#B2182B',  # Red
    'removal_event': '#D95F02', # Orange
    'significant': '#1B9E77',   # Teal
    'not_significant': '#7570B3',  # Purple
    'neutral': '#BDBDBD',       # Gray
    'black': '#1A1A1A',
    'grid': '#DDDDDD',
}


def set_damshift_style(font_scale: float = 1.1):
    """Apply the seaborn theme and matplotlib defaults used for all figures."""
    sns.set_theme(
        style="whitegrid",
        context="paper",
        font_scale=font_scale,
        palette=[COLORS['during_dam'], COLORS['post_removal'], COLORS['removal_event']],
    )

    plt.rcParams.update({
        'figure.figsize': (7, 4),
        'figure.dpi': 120,
        'savefig.dpi': 300,
        'savefig.bbox': 'tight',
        'font.family': 'sans-serif',
        'font.sans-serif': ['DejaVu Sans', 'Arial', 'Helvetica'],
        'axes.titleweight': 'bold',
        'axes.spines.top': False,
        'axes.spines.right': False,
        'grid.color': COLORS['grid'],
        'grid.linewidth': 0.6,
        'legend.frameon': False,
        'hist.bins': 20,
    })
