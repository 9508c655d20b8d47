"""
Statistical analysis module.

Provides the two-sample comparison of during-dam and post-removal
normalized peak-flow differences.
"""

import numpy as np
from scipy import stats
from typing import Dict

CENTRAL_FUNCS = {
    'median': np.median,
    'mean': np.mean,
}


def central_value(values, statistic: str = "median") -> float:
    """
    Central tendency of ``values`` ignoring NaNs.

    Parameters
    ----------
    values : array
        Sample values
    statistic : str
        'median' or 'mean'

    Returns
    -------
    float
        NaN for an empty sample
    """
    if statistic not in CENTRAL_FUNCS:
        raise ValueError(f"Unknown central tendency statistic: {statistic!r}")
    x = np.asarray(values, dtype=float)
    x = x[~np.isnan(x)]
    if len(x) == 0:
        return np.nan
    return float(CENTRAL_FUNCS[statistic](x))


def effect_ratio(during, post, statistic: str = "median") -> float:
    """
    Ratio of during-dam to post-removal central tendency.

    A zero post-removal center gives NaN instead of an infinite ratio.
    """
    num = central_value(during, statistic)
    den = central_value(post, statistic)
    if np.isnan(num) or np.isnan(den) or den == 0:
        return np.nan
    return num / den


def two_sample_ttest(
    during,
    post,
    equal_var: bool = False,
    alpha: float = 0.05
) -> Dict:
    """
    Two-sample t-test between the during-dam and post-removal samples.

    Parameters
    ----------
    during : array
        During-dam comparison values
    post : array
        Post-removal comparison values
    equal_var : bool
        False (default) runs Welch's t-test, True the pooled-variance
        Student's t-test
    alpha : float
        Significance level

    Returns
    -------
    dict
        statistic, pvalue, significant, n_during, n_post. The
        p-value is NaN when the test is undefined (e.g. both samples
        constant).
    """
    during = np.asarray(during, dtype=float)
    post = np.asarray(post, dtype=float)
    during = during[~np.isnan(during)]
    post = post[~np.isnan(post)]

    if len(during) < 2 or len(post) < 2:
        raise ValueError("Need at least 2 observations in each period")

    stat, p = stats.ttest_ind(during, post, equal_var=equal_var)
    stat = float(stat)
    p = float(p)

    return {
        'statistic': stat,
        'pvalue': p,
        'significant': bool(p < alpha) if not np.isnan(p) else False,
        'n_during': len(during),
        'n_post': len(post),
    }
