"""
Batch comparison and result aggregation module.

Runs compare_pair() over every dam-gage pair and joins the outcomes back to
the pair metadata. A failure in one pair is recorded on that pair's row and
never stops the batch.
"""

import logging
import time
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

import pandas as pd

from .comparison import (
    ComparisonResult,
    ComparisonSettings,
    ErrorCode,
    FlowComparison,
    compare_pair,
)
from .pairing import DamGagePair, check_unique_dam_names
from ..exceptions import RetrievalError

logger = logging.getLogger(__name__)

FlowSource = Callable[[str], pd.DataFrame]

OUTPUT_COLUMNS = [
    'dam_name', 'effect_ratio', 'p_value', 'error',
    'ref_gage', 'distance_m', 'ref_drainage_km2', 'dam_drainage_km2',
    'year_built', 'year_removed', 'dam_gage',
    'reservoir_volume_m3', 'height_m', 'operation',
]

# Test details appended after the export columns
DETAIL_COLUMNS = ['t_statistic', 'significant', 'n_during', 'n_post']

RESULT_COLUMNS = ['dam_name', 'effect_ratio', 'p_value', 'error'] + DETAIL_COLUMNS


def count_gages(pairs: List[DamGagePair]) -> Counter:
    """Number of dams listing each dam gage."""
    return Counter(p.dam_gage for p in pairs)


def _check_deadline(site_id: str, started: float, pair_timeout: Optional[float]) -> None:
    if pair_timeout is not None and time.monotonic() - started > pair_timeout:
        raise RetrievalError(
            f"Retrieval exceeded the {pair_timeout}s limit for this pair", site_id=site_id
        )


def evaluate_pair(
    pair: DamGagePair,
    flow_source: FlowSource,
    gage_counts: Counter,
    settings: ComparisonSettings,
    pair_timeout: Optional[float] = None
) -> FlowComparison:
    """
    Retrieve both daily series for ``pair`` and compare them.

    Identical gages and pairs whose drainage area request failed are
    classified before any retrieval. A RetrievalError for either site, or
    retrieval running past ``pair_timeout`` seconds from the start of this
    pair, is treated as missing data.
    """
    if pair.same_gage or pair.retrieval_failed:
        return compare_pair(pair, None, None, gage_counts, settings)

    started = time.monotonic()
    try:
        ref_flow = flow_source(pair.ref_gage)
        _check_deadline(pair.ref_gage, started, pair_timeout)
        dam_flow = flow_source(pair.dam_gage)
        _check_deadline(pair.dam_gage, started, pair_timeout)
    except RetrievalError as e:
        logger.warning("No flow data for %s (%s): %s", pair.dam_name, e.site_id, e)
        ref_flow, dam_flow = None, None

    return compare_pair(pair, ref_flow, dam_flow, gage_counts, settings)


def _no_data(pair: DamGagePair) -> FlowComparison:
    return FlowComparison(result=ComparisonResult(dam_name=pair.dam_name, error=ErrorCode.NO_DATA))


def run_comparisons(
    pairs: List[DamGagePair],
    flow_source: FlowSource,
    settings: Optional[ComparisonSettings] = None,
    workers: int = 1,
    pair_timeout: Optional[float] = None
) -> List[FlowComparison]:
    """
    Compare every pair.

    Parameters
    ----------
    pairs : list of DamGagePair
        Pair table from build_pairs(); dam names must be unique
    flow_source : callable
        ``site_id -> daily flow DataFrame``; may raise RetrievalError. Each
        call must bound its own duration (NWISClient does so with its
        request timeout and retry budget).
    settings : ComparisonSettings, optional
        Comparison parameters
    workers : int
        Number of worker threads; 1 runs sequentially
    pair_timeout : float, optional
        Seconds a pair may spend retrieving its two series, counted from
        when that pair starts. A pair over the limit is recorded as Error1
        and does not delay the pairs after it.

    Returns
    -------
    list of FlowComparison
        One entry per pair, in pair order

    Raises
    ------
    ValueError
        If dam names repeat. Checked before any retrieval.
    """
    check_unique_dam_names(pairs)
    settings = settings or ComparisonSettings()
    gage_counts = count_gages(pairs)

    def evaluate(pair: DamGagePair) -> FlowComparison:
        try:
            return evaluate_pair(pair, flow_source, gage_counts, settings, pair_timeout)
        except Exception:
            logger.exception("Comparison failed for %s", pair.dam_name)
            return _no_data(pair)

    if workers <= 1:
        return [evaluate(pair) for pair in pairs]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(evaluate, pairs))


def assemble_results(
    results: List[ComparisonResult],
    pairs: List[DamGagePair]
) -> pd.DataFrame:
    """
    Join comparison results with pair metadata on dam name.

    Parameters
    ----------
    results : list of ComparisonResult
        One per dam
    pairs : list of DamGagePair
        The pair table the results were computed from

    Returns
    -------
    pandas.DataFrame
        The export table, one row per dam: OUTPUT_COLUMNS followed by
        DETAIL_COLUMNS

    Raises
    ------
    ValueError
        If dam names are not unique (the join would fan out)
    """
    check_unique_dam_names(pairs)
    result_df = pd.DataFrame([r.to_dict() for r in results], columns=RESULT_COLUMNS)
    dupes = result_df['dam_name'][result_df['dam_name'].duplicated()].unique()
    if len(dupes):
        raise ValueError(f"Dam names must be unique; duplicated results: {list(dupes)}")

    if not pairs:
        return pd.DataFrame(columns=OUTPUT_COLUMNS + DETAIL_COLUMNS)

    pair_df = pd.DataFrame([p.to_dict() for p in pairs])
    merged = result_df.merge(pair_df, on='dam_name', how='inner', validate='one_to_one')
    return merged[OUTPUT_COLUMNS + DETAIL_COLUMNS]
