"""
Annual maximum extraction module.

Reduces a daily discharge record to one-day annual peak flows, keeping
only calendar years with near-complete coverage.
"""

import pandas as pd

# A year needs more than 359 observed days. 365 would reject leap-year
# quirks and isolated missing days.
MIN_DAYS_PER_YEAR = 360

ANNUAL_MAX_COLUMNS = ['year', 'max_discharge', 'n_days']


def extract_annual_maxima(
    df: pd.DataFrame,
    discharge_col: str = "discharge",
    min_days: int = MIN_DAYS_PER_YEAR
) -> pd.DataFrame:
    """
    Extract the annual one-day maximum discharge series.

    Parameters
    ----------
    df : pandas.DataFrame
        Daily streamflow with a DatetimeIndex
    discharge_col : str
        Name of discharge column
    min_days : int
        Minimum number of observed (non-missing) days for a calendar year
        to be kept

    Returns
    -------
    pandas.DataFrame
        Columns: year, max_discharge, n_days; one row per qualifying year,
        sorted by year. Empty (with these columns) when no year qualifies.
    """
    if df is None or df.empty:
        return pd.DataFrame(columns=ANNUAL_MAX_COLUMNS)

    observed = df[discharge_col].dropna()
    if observed.empty:
        return pd.DataFrame(columns=ANNUAL_MAX_COLUMNS)

    # Duplicate timestamps would inflate the day count
    observed = observed[~observed.index.duplicated(keep='first')]

    grouped = observed.groupby(observed.index.year)
    annual = pd.DataFrame({
        'max_discharge': grouped.max(),
        'n_days': grouped.count(),
    })
    annual.index.name = 'year'
    annual = annual[annual['n_days'] >= min_days].reset_index()
    annual['year'] = annual['year'].astype(int)

    return annual[ANNUAL_MAX_COLUMNS].sort_values('year').reset_index(drop=True)
