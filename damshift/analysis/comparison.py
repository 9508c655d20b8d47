"""
Normalized flow comparison module.

For one dam-gage pair, aligns the annual one-day maxima of the dam gage and
its reference gage, scales both by drainage area, splits the years into
during-dam and post-removal periods and tests whether the two periods
differ.

Every pair ends in exactly one ComparisonResult. Data problems are
classified with an ErrorCode instead of being raised:

- Error0: dam gage and reference gage are the same site
- Error1: no daily data for at least one of the gages, or a request for
  its data or drainage area failed
- Error2: data for both gages, but no common year with enough coverage
- Error3: fewer than ``min_years`` years in either period
- Error4: the dam gage is listed for more than one dam; the result is
  still computed but may reflect cumulative removals
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional

import pandas as pd

from .annual_max import extract_annual_maxima, MIN_DAYS_PER_YEAR
from .pairing import DamGagePair
from .statistics import effect_ratio, two_sample_ttest
from ..preprocess.units import specific_discharge

RECORD_COLUMNS = ['year', 'ref_max', 'dam_max', 'comparison', 'period']


class ErrorCode(str, Enum):
    """Outcome classification of a dam-gage comparison."""
    IDENTICAL_GAGE = "Error0"
    NO_DATA = "Error1"
    NO_OVERLAP = "Error2"
    INSUFFICIENT_PERIOD = "Error3"
    DUPLICATE_GAGE = "Error4"
    NONE = "none"

    @property
    def is_fatal(self) -> bool:
        """True when no statistic is computed for this outcome."""
        return self not in (ErrorCode.NONE, ErrorCode.DUPLICATE_GAGE)

    def __str__(self) -> str:
        return self.value


@dataclass
class ComparisonSettings:
    """Parameters of the per-pair comparison."""
    min_days_per_year: int = MIN_DAYS_PER_YEAR
    min_years_per_period: int = 2
    equal_var: bool = False
    central_tendency: str = "median"
    alpha: float = 0.05

    @classmethod
    def from_config(cls, cfg) -> "ComparisonSettings":
        return cls(
            min_days_per_year=cfg.min_days_per_year,
            min_years_per_period=cfg.min_years_per_period,
            equal_var=cfg.equal_var,
            central_tendency=cfg.central_tendency,
            alpha=cfg.alpha,
        )


@dataclass
class ComparisonResult:
    """Final per-dam outcome."""
    dam_name: str
    effect_ratio: Optional[float] = None
    p_value: Optional[float] = None
    error: ErrorCode = ErrorCode.NONE
    t_statistic: Optional[float] = None
    significant: bool = False
    n_during: int = 0
    n_post: int = 0

    def __post_init__(self):
        has_stats = self.effect_ratio is not None and self.p_value is not None
        no_stats = self.effect_ratio is None and self.p_value is None
        if self.error.is_fatal and not no_stats:
            raise ValueError(f"{self.error} result cannot carry statistics")
        if not self.error.is_fatal and not has_stats:
            raise ValueError(f"{self.error} result requires effect ratio and p-value")

    def to_dict(self) -> dict:
        return {
            'dam_name': self.dam_name,
            'effect_ratio': self.effect_ratio,
            'p_value': self.p_value,
            'error': self.error.value,
            't_statistic': self.t_statistic,
            'significant': self.significant,
            'n_during': self.n_during,
            'n_post': self.n_post,
        }


@dataclass
class FlowComparison:
    """A ComparisonResult together with the yearly records behind it."""
    result: ComparisonResult
    records: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=RECORD_COLUMNS))


def _is_empty(flow: Optional[pd.DataFrame], discharge_col: str) -> bool:
    return flow is None or flow.empty or flow[discharge_col].dropna().empty


def align_annual_maxima(ref_annual: pd.DataFrame, dam_annual: pd.DataFrame) -> pd.DataFrame:
    """Inner-join two annual maximum series on year."""
    merged = pd.merge(
        ref_annual[['year', 'max_discharge']].rename(columns={'max_discharge': 'ref_max'}),
        dam_annual[['year', 'max_discharge']].rename(columns={'max_discharge': 'dam_max'}),
        on='year',
        how='inner',
    )
    return merged.sort_values('year').reset_index(drop=True)


def normalized_difference(
    aligned: pd.DataFrame,
    ref_drainage_km2: Optional[float],
    dam_drainage_km2: Optional[float]
) -> pd.Series:
    """
    Drainage-area-scaled peak flow difference per year.

    ``dam_max / dam_area - ref_max / ref_area``; NaN where either area is
    missing or zero.
    """
    dam_term = specific_discharge(aligned['dam_max'].astype(float), dam_drainage_km2)
    ref_term = specific_discharge(aligned['ref_max'].astype(float), ref_drainage_km2)
    return dam_term - ref_term


def label_periods(
    years: pd.Series,
    year_built: Optional[int],
    year_removed: Optional[int]
) -> pd.Series:
    """
    Label each year 'during', 'post' or None.

    During-dam years are strictly before removal and, when the construction
    year is known, strictly after construction. Post-removal years are
    strictly after removal. The removal year itself belongs to neither.
    A construction year before the record has no effect, since every
    observed year is then after it.
    """
    labels = pd.Series([None] * len(years), index=years.index, dtype=object)
    if year_removed is None or pd.isna(year_removed):
        return labels

    during = years < year_removed
    if year_built is not None and not pd.isna(year_built):
        during &= years > year_built
    post = years > year_removed

    labels[during] = 'during'
    labels[post] = 'post'
    return labels


def compare_pair(
    pair: DamGagePair,
    ref_flow: Optional[pd.DataFrame],
    dam_flow: Optional[pd.DataFrame],
    gage_counts: Optional[Mapping[str, int]] = None,
    settings: Optional[ComparisonSettings] = None,
    discharge_col: str = "discharge"
) -> FlowComparison:
    """
    Compare during-dam and post-removal peak flows for one pair.

    Parameters
    ----------
    pair : DamGagePair
        The dam and its matched reference gage
    ref_flow, dam_flow : pandas.DataFrame or None
        Daily flow with a DatetimeIndex; None or empty means no data
    gage_counts : mapping, optional
        Number of dams listing each dam gage across the whole batch
    settings : ComparisonSettings, optional
        Comparison parameters
    discharge_col : str
        Name of discharge column

    Returns
    -------
    FlowComparison
    """
    settings = settings or ComparisonSettings()
    gage_counts = gage_counts if gage_counts is not None else Counter()

    def fail(code: ErrorCode, records: Optional[pd.DataFrame] = None) -> FlowComparison:
        result = ComparisonResult(dam_name=pair.dam_name, error=code)
        if records is None:
            return FlowComparison(result=result)
        return FlowComparison(result=result, records=records)

    if pair.same_gage:
        return fail(ErrorCode.IDENTICAL_GAGE)

    if pair.retrieval_failed:
        return fail(ErrorCode.NO_DATA)

    if _is_empty(ref_flow, discharge_col) or _is_empty(dam_flow, discharge_col):
        return fail(ErrorCode.NO_DATA)

    ref_annual = extract_annual_maxima(ref_flow, discharge_col, settings.min_days_per_year)
    dam_annual = extract_annual_maxima(dam_flow, discharge_col, settings.min_days_per_year)

    records = align_annual_maxima(ref_annual, dam_annual)
    if records.empty:
        return fail(ErrorCode.NO_OVERLAP)

    records['comparison'] = normalized_difference(
        records, pair.ref_drainage_km2, pair.dam_drainage_km2
    )
    records['period'] = label_periods(records['year'], pair.year_built, pair.year_removed)

    valid = records.dropna(subset=['comparison'])
    during = valid.loc[valid['period'] == 'during', 'comparison'].to_numpy()
    post = valid.loc[valid['period'] == 'post', 'comparison'].to_numpy()

    if len(during) < settings.min_years_per_period or len(post) < settings.min_years_per_period:
        return fail(ErrorCode.INSUFFICIENT_PERIOD, records)

    test = two_sample_ttest(during, post, equal_var=settings.equal_var, alpha=settings.alpha)
    ratio = effect_ratio(during, post, settings.central_tendency)

    code = ErrorCode.DUPLICATE_GAGE if gage_counts.get(pair.dam_gage, 0) > 1 else ErrorCode.NONE

    result = ComparisonResult(
        dam_name=pair.dam_name,
        effect_ratio=float(ratio),
        p_value=test['pvalue'],
        t_statistic=test['statistic'],
        significant=test['significant'],
        error=code,
        n_during=test['n_during'],
        n_post=test['n_post'],
    )
    return FlowComparison(result=result, records=records)
