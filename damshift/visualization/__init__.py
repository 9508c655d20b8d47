"""Visualization modules for DamShift."""

from .style import set_damshift_style, COLORS
from .ratio_hist import plot_ratio_histograms
from .comparison_plot import plot_comparison_series

__all__ = [
    "set_damshift_style",
    "COLORS",
    "plot_ratio_histograms",
    "plot_comparison_series",
]
