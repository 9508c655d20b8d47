"""
Site and dam records shared by the loaders and the analysis modules.
"""

from dataclasses import dataclass, asdict
from typing import Optional


@dataclass
class Site:
    """A streamflow monitoring site."""
    site_id: str
    latitude: float
    longitude: float
    crs: str = "EPSG:4326"
    is_reference: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class Dam:
    """A removed dam with its associated (downstream) USGS gage."""
    dam_id: str
    name: str
    gage_id: str
    latitude: float
    longitude: float
    river: Optional[str] = None
    state: Optional[str] = None
    datum: Optional[str] = None
    year_built: Optional[int] = None  # May predate the flow record
    year_removed: Optional[int] = None  # Anchor for period segmentation
    reservoir_volume_m3: Optional[float] = None
    height_m: Optional[float] = None
    operation: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)
