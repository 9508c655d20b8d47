"""
Shared fixtures for DamShift tests.
"""
import pandas as pd
import pytest

from damshift.analysis import DamGagePair


def _daily_flow(start_year, end_year, peak=None, base=1.0):
    """Complete daily record with one peak day (June 15) per year."""
    dates = pd.date_range(f"{start_year}-01-01", f"{end_year}-12-31", freq="D")
    q = pd.Series(base, index=dates, dtype=float)
    if peak is not None:
        for year in range(start_year, end_year + 1):
            q.loc[pd.Timestamp(f"{year}-06-15")] = peak(year)
    df = pd.DataFrame({'discharge': q})
    df.index.name = 'date'
    return df


@pytest.fixture
def daily_flow():
    """Factory for synthetic daily flow records."""
    return _daily_flow


@pytest.fixture
def make_pair():
    """Factory for DamGagePair records with sensible defaults."""
    def _make(**kwargs):
        defaults = dict(
            dam_name="Test Dam",
            dam_gage="01234567",
            ref_gage="07654321",
            distance_m=1500.0,
            ref_drainage_km2=50.0,
            dam_drainage_km2=100.0,
            year_built=1950,
            year_removed=2000,
        )
        defaults.update(kwargs)
        return DamGagePair(**defaults)
    return _make


@pytest.fixture
def removal_flows(daily_flow):
    """Reference and dam records for 1990-2010 with higher dam peaks before 2000."""
    ref = daily_flow(1990, 2010, peak=lambda y: 50 + (y % 4))
    dam = daily_flow(1990, 2010, peak=lambda y: 300 + 10 * (y % 3) + (200 if y < 2000 else 0))
    return ref, dam
