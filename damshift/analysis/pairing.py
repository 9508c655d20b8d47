"""
Dam-gage pair assembly module.

Joins the nearest-reference matches with gage drainage areas and the dam
attributes needed downstream, producing one immutable record per dam.
"""

import logging
from collections import Counter
from dataclasses import dataclass, asdict
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from ..exceptions import RetrievalError
from ..sites import Dam

logger = logging.getLogger(__name__)

DrainageLookup = Callable[[str], Optional[float]]

PAIR_COLUMNS = [
    'dam_name', 'ref_gage', 'distance_m', 'ref_drainage_km2', 'dam_drainage_km2',
    'year_built', 'year_removed', 'dam_gage', 'reservoir_volume_m3', 'height_m',
    'operation', 'retrieval_failed',
]


@dataclass(frozen=True)
class DamGagePair:
    """A dam bound to its nearest reference gage."""
    dam_name: str
    dam_gage: str
    ref_gage: str
    distance_m: float
    ref_drainage_km2: Optional[float] = None
    dam_drainage_km2: Optional[float] = None
    year_built: Optional[int] = None
    year_removed: Optional[int] = None
    reservoir_volume_m3: Optional[float] = None
    height_m: Optional[float] = None
    operation: Optional[str] = None
    retrieval_failed: bool = False  # A drainage area request failed outright

    @property
    def same_gage(self) -> bool:
        """True when the dam gage is itself the matched reference gage."""
        return self.dam_gage == self.ref_gage

    def to_dict(self) -> dict:
        return asdict(self)


def _safe_lookup(
    lookup: DrainageLookup,
    site_id: str,
    cache: Dict[str, Tuple[Optional[float], bool]]
) -> Tuple[Optional[float], bool]:
    """
    Drainage area for ``site_id`` and whether the lookup failed.

    An area the source does not publish is ``(None, False)``; a request that
    could not be completed is ``(None, True)``.
    """
    if site_id in cache:
        return cache[site_id]
    failed = False
    try:
        area = lookup(site_id)
    except RetrievalError as e:
        logger.warning("Drainage area request failed for %s: %s", site_id, e)
        area, failed = None, True
    except Exception:
        logger.exception("Drainage area lookup raised for %s", site_id)
        area, failed = None, True
    if area is not None and pd.isna(area):
        area = None
    cache[site_id] = (area, failed)
    return cache[site_id]


def check_unique_dam_names(pairs: List[DamGagePair]) -> None:
    """
    Raise ValueError if two pairs share a dam name.

    Results are joined back to pairs on the name, so duplicates would fan
    the join out.
    """
    counts = Counter(p.dam_name for p in pairs)
    dupes = sorted(name for name, n in counts.items() if n > 1)
    if dupes:
        raise ValueError(f"Dam names must be unique; duplicated: {dupes}")


def build_pairs(
    dams: List[Dam],
    matches: pd.DataFrame,
    drainage_lookup: DrainageLookup
) -> List[DamGagePair]:
    """
    Build the dam-gage pair table.

    Parameters
    ----------
    dams : list of Dam
        Dams in the same order as ``matches``
    matches : pandas.DataFrame
        Output of match_dams() (columns ref_gage, distance_m)
    drainage_lookup : callable
        ``site_id -> drainage area in km² or None``. A missing area is
        carried through as None. A lookup that raises also gives None and
        sets ``retrieval_failed`` on the pair.

    Returns
    -------
    list of DamGagePair
    """
    if len(dams) != len(matches):
        raise ValueError(
            f"Got {len(dams)} dams but {len(matches)} reference matches"
        )

    cache: Dict[str, Tuple[Optional[float], bool]] = {}
    pairs = []
    for dam, (_, match) in zip(dams, matches.iterrows()):
        ref_area, ref_failed = _safe_lookup(drainage_lookup, match['ref_gage'], cache)
        dam_area, dam_failed = _safe_lookup(drainage_lookup, dam.gage_id, cache)
        pairs.append(DamGagePair(
            dam_name=dam.name,
            dam_gage=dam.gage_id,
            ref_gage=match['ref_gage'],
            distance_m=float(match['distance_m']),
            ref_drainage_km2=ref_area,
            dam_drainage_km2=dam_area,
            year_built=dam.year_built,
            year_removed=dam.year_removed,
            reservoir_volume_m3=dam.reservoir_volume_m3,
            height_m=dam.height_m,
            operation=dam.operation,
            retrieval_failed=ref_failed or dam_failed,
        ))

    return pairs


def pairs_to_frame(pairs: List[DamGagePair]) -> pd.DataFrame:
    """Convert pairs to a DataFrame with a fixed column order."""
    return pd.DataFrame([p.to_dict() for p in pairs], columns=PAIR_COLUMNS)
