"""Input/Output modules for DamShift."""

from .load_dams import load_dam_inventory, dams_to_frame
from .load_gages import load_gage_catalog, load_reference_gages, to_sites
from .load_streamflow import load_streamflow, LocalFlowSource
from .nwis import NWISClient, parse_rdb
from .site_attributes import SiteAttributes, chain_lookups

__all__ = [
    "load_dam_inventory",
    "dams_to_frame",
    "load_gage_catalog",
    "load_reference_gages",
    "to_sites",
    "load_streamflow",
    "LocalFlowSource",
    "NWISClient",
    "parse_rdb",
    "SiteAttributes",
    "chain_lookups",
]
