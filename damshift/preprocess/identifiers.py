"""
Site identifier normalization module.

USGS station numbers are at least eight digits. Spreadsheets and CSV readers
routinely strip the leading zeros (``2041000`` instead of ``02041000``),
which makes NWIS lookups fail, so identifiers are restored to the canonical
width before any matching or retrieval.
"""

import pandas as pd
from typing import Optional

USGS_SITE_ID_WIDTH = 8


def normalize_site_id(value, width: int = USGS_SITE_ID_WIDTH) -> Optional[str]:
    """
    Normalize a station identifier to a fixed-width string.

    Parameters
    ----------
    value : str, int, float or None
        Raw identifier as read from an inventory or catalog
    width : int
        Canonical digit width; shorter ids are left-padded with zeros

    Returns
    -------
    str or None
        Normalized identifier, or None for blank/missing input. Ids that are
        already at least ``width`` characters long are returned unchanged.
    """
    if value is None:
        return None
    if isinstance(value, float):
        if pd.isna(value):
            return None
        if value.is_integer():
            value = int(value)

    site_id = str(value).strip()
    if not site_id or site_id.lower() == "nan":
        return None

    # "2041000.0" from a float-typed column
    if site_id.endswith(".0") and site_id[:-2].isdigit():
        site_id = site_id[:-2]

    return site_id.zfill(width)


def is_single_token(value) -> bool:
    """True for a non-blank identifier with no internal whitespace."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return False
    text = str(value).strip()
    return bool(text) and len(text.split()) == 1


def normalize_site_ids(
    df: pd.DataFrame,
    column: str,
    width: int = USGS_SITE_ID_WIDTH
) -> pd.DataFrame:
    """
    Return a copy of ``df`` with ``column`` normalized by normalize_site_id().
    """
    df = df.copy()
    df[column] = df[column].map(lambda v: normalize_site_id(v, width=width))
    return df
