"""
Result export module.

Writes the final per-dam table, the yearly comparison records and a short
JSON run summary.
"""

import json
from pathlib import Path
from typing import Dict, List

import numpy as np
import pandas as pd

from ..analysis.comparison import ErrorCode, FlowComparison


class NpEncoder(json.JSONEncoder):
    """JSON encoder for numpy scalar and array types."""

    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return None if np.isnan(obj) else float(obj)
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        return super(NpEncoder, self).default(obj)


def write_results(results: pd.DataFrame, path: Path) -> Path:
    """Write the per-dam results table to CSV."""
    path = Path(path)
    results.to_csv(path, index=False)
    return path


def collect_records(comparisons: List[FlowComparison]) -> pd.DataFrame:
    """Stack the yearly comparison records of every pair, tagged by dam."""
    frames = []
    for comp in comparisons:
        if comp.records.empty:
            continue
        frame = comp.records.copy()
        frame.insert(0, 'dam_name', comp.result.dam_name)
        frames.append(frame)
    if not frames:
        return pd.DataFrame(columns=['dam_name', 'year', 'ref_max', 'dam_max', 'comparison', 'period'])
    return pd.concat(frames, ignore_index=True)


def summarize_results(results: pd.DataFrame, alpha: float = 0.05) -> Dict:
    """
    Count outcomes by error code and significance.

    Parameters
    ----------
    results : pandas.DataFrame
        Table from assemble_results()
    alpha : float
        Significance level the comparisons were run at, reported as is

    Returns
    -------
    dict
    """
    counts = results['error'].value_counts().to_dict() if not results.empty else {}
    tested = results.dropna(subset=['p_value']) if not results.empty else results
    significant = tested[tested['significant'].astype(bool)] if not tested.empty else tested

    median_ratio = tested['effect_ratio'].median() if not tested.empty else np.nan

    return {
        'n_dams': len(results),
        'error_counts': {code.value: int(counts.get(code.value, 0)) for code in ErrorCode},
        'n_tested': len(tested),
        'n_significant': len(significant),
        'alpha': alpha,
        'median_effect_ratio': None if pd.isna(median_ratio) else float(median_ratio),
    }


def write_summary(results: pd.DataFrame, path: Path, alpha: float = 0.05) -> Path:
    """Write summarize_results() to a JSON file."""
    path = Path(path)
    with open(path, 'w') as f:
        json.dump(summarize_results(results, alpha=alpha), f, indent=4, cls=NpEncoder)
    return path
