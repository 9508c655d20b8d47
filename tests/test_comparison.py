"""
Tests for the per-pair flow comparison and its error classification.
"""
import numpy as np
import pandas as pd
import pytest
from collections import Counter
from damshift.analysis import (
    compare_pair,
    label_periods,
    normalized_difference,
    ComparisonResult,
    ComparisonSettings,
    ErrorCode,
)


def test_label_periods_excludes_removal_year():
    years = pd.Series(range(1996, 2005))
    labels = label_periods(years, 1950, 2000)
    assert list(labels[years < 2000]) == ['during'] * 4
    assert labels[years == 2000].iloc[0] is None
    assert list(labels[years > 2000]) == ['post'] * 4


def test_label_periods_excludes_construction_year():
    years = pd.Series(range(1993, 2000))
    labels = label_periods(years, 1995, 2005)
    assert labels[years == 1994].iloc[0] is None
    assert labels[years == 1995].iloc[0] is None
    assert labels[years == 1996].iloc[0] == 'during'


def test_label_periods_without_removal_year():
    labels = label_periods(pd.Series([1990, 2000, 2010]), 1950, None)
    assert labels.isna().all()


def test_normalized_difference_is_linear_in_dam_flow():
    aligned = pd.DataFrame({'year': [2000, 2001], 'ref_max': [10.0, 20.0], 'dam_max': [30.0, 50.0]})
    doubled = aligned.assign(dam_max=aligned['dam_max'] * 2)
    ref_term = aligned['ref_max'] / 5.0

    base = normalized_difference(aligned, 5.0, 10.0)
    scaled = normalized_difference(doubled, 5.0, 10.0)
    np.testing.assert_allclose(scaled + ref_term, 2 * (base + ref_term))
    np.testing.assert_allclose(base, [30 / 10 - 10 / 5, 50 / 10 - 20 / 5])


def test_normalized_difference_missing_area():
    aligned = pd.DataFrame({'year': [2000], 'ref_max': [10.0], 'dam_max': [30.0]})
    assert normalized_difference(aligned, None, 10.0).isna().all()
    assert normalized_difference(aligned, 5.0, 0.0).isna().all()


def test_successful_comparison(make_pair, removal_flows):
    """Built 1950, removed 2000, records 1990-2010: 10 years on each side."""
    ref, dam = removal_flows
    comparison = compare_pair(make_pair(), ref, dam)
    result = comparison.result

    assert result.error is ErrorCode.NONE
    assert result.n_during == 10
    assert result.n_post == 10
    assert 0.0 <= result.p_value <= 1.0
    assert result.p_value < 0.05
    assert result.effect_ratio > 1.0
    assert result.significant
    assert result.t_statistic > 0  # larger normalized peaks while the dam stood

    records = comparison.records
    assert list(records.columns) == ['year', 'ref_max', 'dam_max', 'comparison', 'period']
    assert len(records) == 21
    assert records.loc[records['year'] == 2000, 'period'].iloc[0] is None


def test_mean_statistic_and_student_test(make_pair, removal_flows):
    ref, dam = removal_flows
    median = compare_pair(make_pair(), ref, dam)
    mean = compare_pair(
        make_pair(), ref, dam,
        settings=ComparisonSettings(central_tendency="mean", equal_var=True),
    )
    records = median.records
    during = records.loc[records['period'] == 'during', 'comparison']
    post = records.loc[records['period'] == 'post', 'comparison']

    assert mean.result.error is ErrorCode.NONE
    assert median.result.effect_ratio == pytest.approx(during.median() / post.median())
    assert mean.result.effect_ratio == pytest.approx(during.mean() / post.mean())


def test_identical_gage_is_error0(make_pair, removal_flows):
    ref, dam = removal_flows
    pair = make_pair(dam_gage="02041000", ref_gage="02041000")
    result = compare_pair(pair, ref, dam).result
    assert result.error is ErrorCode.IDENTICAL_GAGE
    assert result.effect_ratio is None and result.p_value is None


@pytest.mark.parametrize("side", ["ref", "dam"])
def test_missing_flow_is_error1(make_pair, removal_flows, side):
    ref, dam = removal_flows
    empty = ref.iloc[0:0]
    args = (empty, dam) if side == "ref" else (ref, None)
    result = compare_pair(make_pair(), *args).result
    assert result.error is ErrorCode.NO_DATA
    assert str(result.error) == "Error1"


def test_no_common_year_is_error2(make_pair, daily_flow):
    ref = daily_flow(1990, 1995, peak=lambda y: 10.0)
    dam = daily_flow(2000, 2005, peak=lambda y: 20.0)
    result = compare_pair(make_pair(), ref, dam).result
    assert result.error is ErrorCode.NO_OVERLAP


def test_incomplete_years_do_not_overlap(make_pair, daily_flow):
    ref = daily_flow(1990, 1995, peak=lambda y: 10.0)
    dam = daily_flow(1990, 1995, peak=lambda y: 20.0)
    dam = dam[dam.index.day != 1]  # 12 missing days every year
    result = compare_pair(make_pair(), ref, dam).result
    assert result.error is ErrorCode.NO_OVERLAP


def test_short_post_period_is_error3(make_pair, daily_flow):
    ref = daily_flow(1990, 2001, peak=lambda y: 10.0 + y % 3)
    dam = daily_flow(1990, 2001, peak=lambda y: 20.0 + y % 2)
    comparison = compare_pair(make_pair(year_removed=2000), ref, dam)
    assert comparison.result.error is ErrorCode.INSUFFICIENT_PERIOD
    assert comparison.result.p_value is None
    assert len(comparison.records) == 12


def test_missing_drainage_area_is_error3(make_pair, removal_flows):
    ref, dam = removal_flows
    result = compare_pair(make_pair(ref_drainage_km2=None), ref, dam).result
    assert result.error is ErrorCode.INSUFFICIENT_PERIOD


def test_failed_drainage_request_is_error1(make_pair, removal_flows):
    ref, dam = removal_flows
    pair = make_pair(dam_drainage_km2=None, retrieval_failed=True)
    result = compare_pair(pair, ref, dam).result
    assert result.error is ErrorCode.NO_DATA
    assert result.p_value is None


def test_missing_removal_year_is_error3(make_pair, removal_flows):
    ref, dam = removal_flows
    result = compare_pair(make_pair(year_removed=None), ref, dam).result
    assert result.error is ErrorCode.INSUFFICIENT_PERIOD


def test_shared_gage_is_error4_with_statistics(make_pair, removal_flows):
    ref, dam = removal_flows
    counts = Counter({"01234567": 2})
    result = compare_pair(make_pair(), ref, dam, gage_counts=counts).result
    assert result.error is ErrorCode.DUPLICATE_GAGE
    assert result.effect_ratio is not None
    assert 0.0 <= result.p_value <= 1.0


def test_result_invariant():
    with pytest.raises(ValueError):
        ComparisonResult(dam_name="A", effect_ratio=1.0, p_value=0.5, error=ErrorCode.NO_DATA)
    with pytest.raises(ValueError):
        ComparisonResult(dam_name="A")
    assert ComparisonResult(dam_name="A", error=ErrorCode.NO_OVERLAP).to_dict()['error'] == "Error2"
