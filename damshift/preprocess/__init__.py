"""Preprocessing modules for DamShift."""

from .identifiers import normalize_site_id, normalize_site_ids, is_single_token
from .units import cfs_to_m3s, m3s_to_cfs, sqmi_to_km2, specific_discharge

__all__ = [
    "normalize_site_id",
    "normalize_site_ids",
    "is_single_token",
    "cfs_to_m3s",
    "m3s_to_cfs",
    "sqmi_to_km2",
    "specific_discharge",
]
