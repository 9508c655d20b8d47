"""
Tests for annual maxima extraction and the two-sample statistics.
"""
import numpy as np
import pandas as pd
import pytest
from damshift.analysis import (
    extract_annual_maxima,
    central_value,
    effect_ratio,
    two_sample_ttest,
)


def _days(year, n, value=1.0):
    dates = pd.date_range(f"{year}-01-01", periods=n, freq="D")
    return pd.DataFrame({'discharge': value}, index=dates)


def test_extract_annual_maxima(daily_flow):
    """Test extraction of annual maxima."""
    df = daily_flow(2000, 2002, peak=lambda y: y - 1900)
    maxima = extract_annual_maxima(df)
    assert list(maxima['year']) == [2000, 2001, 2002]
    assert list(maxima['max_discharge']) == [100, 101, 102]
    assert list(maxima['n_days']) == [366, 365, 365]


def test_completeness_threshold_boundary():
    """A year with 360 observed days is kept; 359 is dropped."""
    df = pd.concat([_days(2001, 360, 5.0), _days(2002, 359, 7.0)])
    maxima = extract_annual_maxima(df)
    assert list(maxima['year']) == [2001]
    assert maxima['max_discharge'].iloc[0] == 5.0


def test_missing_values_do_not_count(daily_flow):
    df = daily_flow(2001, 2001, peak=lambda y: 50.0)
    df.iloc[:6, 0] = np.nan  # 359 observed days remain
    assert extract_annual_maxima(df).empty


def test_empty_series():
    empty = pd.DataFrame({'discharge': pd.Series(dtype=float)}, index=pd.DatetimeIndex([]))
    maxima = extract_annual_maxima(empty)
    assert maxima.empty
    assert list(maxima.columns) == ['year', 'max_discharge', 'n_days']


def test_central_value_and_ratio():
    assert central_value([1, 2, 100]) == 2
    assert central_value([1, 2, 3], "mean") == 2
    assert np.isnan(central_value([]))
    assert effect_ratio([4, 6, 8], [1, 2, 3]) == pytest.approx(3.0)
    assert effect_ratio([4, 6, 8], [1, 2, 3], "mean") == pytest.approx(3.0)
    assert np.isnan(effect_ratio([1, 2], [0, 0]))
    with pytest.raises(ValueError):
        central_value([1, 2], "mode")


def test_two_sample_ttest():
    during = [5.1, 4.9, 5.3, 5.0, 5.2]
    post = [1.0, 1.2, 0.9, 1.1, 1.05]
    welch = two_sample_ttest(during, post)
    student = two_sample_ttest(during, post, equal_var=True)
    assert 0 <= welch['pvalue'] < 0.001
    assert welch['significant']
    assert welch['pvalue'] != pytest.approx(student['pvalue'], rel=1e-12)


def test_two_sample_ttest_requires_two_per_group():
    with pytest.raises(ValueError):
        two_sample_ttest([1.0], [1.0, 2.0])
