"""
Local gage attribute table.

A CSV of per-site attributes used instead of (or before) the NWIS site
service. Expected columns:

- site_no: USGS site number
- drainage_area_sqmi or drain_area_va: drainage area in mi², or
  drainage_area_km2 in km²
"""

import pandas as pd
from pathlib import Path
from typing import Callable, Optional

from ..preprocess.identifiers import normalize_site_id
from ..preprocess.units import sqmi_to_km2

DrainageLookup = Callable[[str], Optional[float]]


class SiteAttributes:
    """Drainage areas keyed by normalized site id."""

    def __init__(self, data: pd.DataFrame):
        self._areas_km2 = self._to_km2(data)

    @staticmethod
    def _to_km2(data: pd.DataFrame) -> pd.Series:
        if 'site_no' not in data.columns:
            raise ValueError("Site attribute table needs a 'site_no' column")

        ids = data['site_no'].map(normalize_site_id)
        if 'drainage_area_km2' in data.columns:
            areas = pd.to_numeric(data['drainage_area_km2'], errors='coerce')
        else:
            sqmi_col = next((c for c in ('drainage_area_sqmi', 'drain_area_va') if c in data.columns), None)
            if sqmi_col is None:
                raise ValueError(
                    "Site attribute table needs one of drainage_area_km2, "
                    "drainage_area_sqmi or drain_area_va"
                )
            areas = pd.to_numeric(data[sqmi_col], errors='coerce').map(sqmi_to_km2)

        series = pd.Series(areas.to_numpy(dtype=float), index=ids)
        return series[~series.index.duplicated(keep='first')]

    @classmethod
    def from_csv(cls, filepath: str) -> "SiteAttributes":
        """Load the attribute table from CSV."""
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Site attribute file not found: {filepath}")
        return cls(pd.read_csv(path, dtype={'site_no': str}))

    def __len__(self) -> int:
        return len(self._areas_km2)

    def __contains__(self, site_id) -> bool:
        return normalize_site_id(site_id) in self._areas_km2.index

    def get_drainage_area(self, site_id: str) -> Optional[float]:
        """Drainage area in km², or None if unknown."""
        site_id = normalize_site_id(site_id)
        if site_id not in self._areas_km2.index:
            return None
        value = self._areas_km2[site_id]
        return None if pd.isna(value) else float(value)


def chain_lookups(*lookups: DrainageLookup) -> DrainageLookup:
    """
    Combine drainage-area lookups; the first non-missing answer wins.
    """
    def lookup(site_id: str) -> Optional[float]:
        for fn in lookups:
            value = fn(site_id)
            if value is not None and not pd.isna(value):
                return value
        return None
    return lookup
