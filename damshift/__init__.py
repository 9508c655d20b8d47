"""
DamShift: Dam Removal Peak-Flow Change Detection Framework

Pairs removed dams with their nearest unregulated reference gage and tests
whether drainage-area-normalized annual peak flows differ between the
years the dam stood and the years after its removal.
"""

__version__ = "1.0.0"

from .config import DamShiftConfig

__all__ = ["DamShiftConfig", "__version__"]
