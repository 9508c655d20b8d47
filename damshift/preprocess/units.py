"""
Unit conversion module for streamflow and drainage-area data.

NWIS reports discharge in ft³/s and drainage area in mi²; the comparison
engine works in m³/s and km².
"""

import numpy as np
import pandas as pd
from typing import Optional, Union

# Conversion constants
CFS_TO_M3S = 0.028316847  # 1 ft³/s = 0.028316847 m³/s
M3S_TO_CFS = 1 / CFS_TO_M3S
SQMI_TO_KM2 = 2.589988110336  # 1 mi² = 2.589988 km²

Numeric = Union[float, np.ndarray, pd.Series]


def cfs_to_m3s(Q_cfs: Numeric) -> Numeric:
    """
    Convert cubic feet per second to cubic meters per second.

    Parameters
    ----------
    Q_cfs : float, array, or Series
        Discharge in ft³/s (cfs)

    Returns
    -------
    same type as input
        Discharge in m³/s
    """
    return Q_cfs * CFS_TO_M3S


def m3s_to_cfs(Q_m3s: Numeric) -> Numeric:
    """Convert cubic meters per second to cubic feet per second."""
    return Q_m3s * M3S_TO_CFS


def sqmi_to_km2(area_sqmi: Optional[float]) -> Optional[float]:
    """
    Convert square miles to square kilometers.

    Missing areas stay missing so callers can carry them through.
    """
    if area_sqmi is None or pd.isna(area_sqmi):
        return None
    return float(area_sqmi) * SQMI_TO_KM2


def specific_discharge(Q: Numeric, area_km2: Optional[float]) -> Numeric:
    """
    Discharge per unit drainage area.

    Parameters
    ----------
    Q : float, array, or Series
        Discharge (any flow unit)
    area_km2 : float or None
        Drainage area in km²

    Returns
    -------
    same type as input
        ``Q / area_km2``. A missing, zero or negative area gives NaN rather
        than raising, so a single badly described gage cannot stop a batch.
    """
    if area_km2 is None or pd.isna(area_km2) or area_km2 <= 0:
        if isinstance(Q, pd.Series):
            return pd.Series(np.nan, index=Q.index, dtype=float)
        if isinstance(Q, np.ndarray):
            return np.full(Q.shape, np.nan)
        return np.nan
    return Q / area_km2
