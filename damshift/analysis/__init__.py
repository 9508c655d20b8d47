"""Analysis modules for DamShift."""

from .annual_max import extract_annual_maxima, MIN_DAYS_PER_YEAR
from .matching import EARTH_RADIUS_M, haversine_distance, nearest_reference, ReferenceIndex, match_dams
from .pairing import DamGagePair, build_pairs, pairs_to_frame, check_unique_dam_names
from .statistics import central_value, effect_ratio, two_sample_ttest
from .comparison import (
    ErrorCode,
    ComparisonSettings,
    ComparisonResult,
    FlowComparison,
    align_annual_maxima,
    normalized_difference,
    label_periods,
    compare_pair,
)
from .batch import OUTPUT_COLUMNS, DETAIL_COLUMNS, count_gages, evaluate_pair, run_comparisons, assemble_results

__all__ = [
    "extract_annual_maxima",
    "MIN_DAYS_PER_YEAR",
    "EARTH_RADIUS_M",
    "haversine_distance",
    "nearest_reference",
    "ReferenceIndex",
    "match_dams",
    "DamGagePair",
    "build_pairs",
    "pairs_to_frame",
    "check_unique_dam_names",
    "central_value",
    "effect_ratio",
    "two_sample_ttest",
    "ErrorCode",
    "ComparisonSettings",
    "ComparisonResult",
    "FlowComparison",
    "align_annual_maxima",
    "normalized_difference",
    "label_periods",
    "compare_pair",
    "OUTPUT_COLUMNS",
    "DETAIL_COLUMNS",
    "count_gages",
    "evaluate_pair",
    "run_comparisons",
    "assemble_results",
]
