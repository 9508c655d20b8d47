"""
Streamflow data loading module.

Loads recorded daily discharge CSV files, either exported from NWIS or
prepared by hand, so comparisons can run without network access.
"""

import pandas as pd
from pathlib import Path
from typing import Optional

from ..preprocess.identifiers import normalize_site_id
from ..preprocess.units import cfs_to_m3s


def _empty_flow() -> pd.DataFrame:
    return pd.DataFrame({'discharge': pd.Series(dtype=float)}, index=pd.DatetimeIndex([], name='date'))


def load_streamflow(
    filepath: str,
    date_column: Optional[str] = None,
    discharge_column: Optional[str] = None,
    units: str = "cfs",
) -> pd.DataFrame:
    """
    Load daily streamflow data from a CSV file.

    Parameters
    ----------
    filepath : str
        Path to CSV file
    date_column : str, optional
        Name of date column (auto-detected if not specified)
    discharge_column : str, optional
        Name of discharge column (auto-detected if not specified)
    units : str
        Units of the discharge column, 'cfs' or 'm3s'; output is m³/s

    Returns
    -------
    pandas.DataFrame
        DataFrame with a ``date`` DatetimeIndex and a ``discharge`` column

    Raises
    ------
    FileNotFoundError
        If file does not exist
    ValueError
        If required columns are missing
    """
    path = Path(filepath)

    if not path.exists():
        raise FileNotFoundError(f"Streamflow file not found: {filepath}")

    df = pd.read_csv(path)
    if df.empty:
        return _empty_flow()

    if date_column is None:
        possible_dt_cols = ['date', 'Date', 'datetime', 'DATETIME', 'timestamp']
        date_column = next((c for c in possible_dt_cols if c in df.columns), None)
        if date_column is None:
            raise ValueError(f"Could not auto-detect date column. Please specify. Available: {list(df.columns)}")

    if discharge_column is None:
        possible_q_cols = ['discharge', 'X_00060_00003', '00060_Mean', 'flow', 'Flow', 'Discharge']
        discharge_column = next((c for c in possible_q_cols if c in df.columns), None)
        if discharge_column is None:
            raise ValueError(f"Could not auto-detect discharge column. Please specify. Available: {list(df.columns)}")

    df = pd.DataFrame({
        'date': pd.to_datetime(df[date_column], errors='coerce'),
        'discharge': pd.to_numeric(df[discharge_column], errors='coerce'),
    }).dropna(subset=['date'])

    df = df.set_index('date').sort_index()

    if units == 'cfs':
        df['discharge'] = cfs_to_m3s(df['discharge'])
    elif units != 'm3s':
        raise ValueError(f"Unsupported discharge units: {units}")

    return df[['discharge']]


class LocalFlowSource:
    """
    Daily flow lookup backed by a directory of ``<site_id>.csv`` files.

    A site without a file has no data and yields an empty frame.
    """

    def __init__(self, directory: str, units: str = "cfs"):
        self.directory = Path(directory)
        if not self.directory.is_dir():
            raise FileNotFoundError(f"Flow directory not found: {directory}")
        self.units = units

    def path_for(self, site_id: str) -> Path:
        return self.directory / f"{normalize_site_id(site_id)}.csv"

    def __call__(self, site_id: str) -> pd.DataFrame:
        path = self.path_for(site_id)
        if not path.exists():
            return _empty_flow()
        return load_streamflow(str(path), units=self.units)
