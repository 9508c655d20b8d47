"""
Dam removal inventory loading module.

Reads the USGS dam removal science database export (one row per removed
dam) and keeps the dams that can be paired with a USGS gage.
"""

import geopandas as gpd
import pandas as pd
from pathlib import Path
from typing import List, Optional
import warnings

from ..preprocess.identifiers import is_single_token, normalize_site_id, USGS_SITE_ID_WIDTH
from ..sites import Dam

GAGE_COLUMN = "DamAssociatedUSGSStreamGaugingStation"

REQUIRED_COLUMNS = [
    "DamAccessionNumber", "DamName", "DamCountry", GAGE_COLUMN,
    "DamLatitude", "DamLongitude", "DamYearRemovalFinished",
]

# Horizontal datums seen in the inventory and their geographic CRS
DATUM_CRS = {
    "WGS84": "EPSG:4326",
    "WGS 84": "EPSG:4326",
    "NAD83": "EPSG:4269",
    "NAD 83": "EPSG:4269",
    "NAD27": "EPSG:4267",
    "NAD 27": "EPSG:4267",
}
TARGET_CRS = "EPSG:4326"


def _optional_int(value) -> Optional[int]:
    if value is None or pd.isna(value):
        return None
    return int(float(value))


def _optional_float(value) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    return float(value)


def _optional_str(value) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    return str(value).strip()


def reproject_to_common_crs(df: pd.DataFrame, target_crs: str = TARGET_CRS) -> pd.DataFrame:
    """
    Reproject dam coordinates to ``target_crs`` according to DamMapDatum.

    Rows with a missing or unknown datum are assumed to already be WGS84.
    """
    df = df.copy()
    datum = df.get("DamMapDatum", pd.Series(None, index=df.index))
    crs_by_row = datum.map(lambda d: DATUM_CRS.get(str(d).strip().upper(), target_crs) if pd.notna(d) else target_crs)

    unknown = datum.notna() & ~datum.astype(str).str.strip().str.upper().isin(DATUM_CRS.keys())
    if unknown.any():
        warnings.warn(
            f"{unknown.sum()} dams have an unrecognised map datum; assuming {target_crs}"
        )

    for crs, rows in df.groupby(crs_by_row).groups.items():
        if crs == target_crs:
            continue
        gdf = gpd.GeoDataFrame(
            geometry=gpd.points_from_xy(df.loc[rows, "DamLongitude"], df.loc[rows, "DamLatitude"]),
            index=rows,
            crs=crs,
        ).to_crs(target_crs)
        df.loc[rows, "DamLongitude"] = gdf.geometry.x
        df.loc[rows, "DamLatitude"] = gdf.geometry.y

    return df


def load_dam_inventory(
    filepath: str,
    country: str = "USA",
    width: int = USGS_SITE_ID_WIDTH
) -> List[Dam]:
    """
    Load eligible dams from the inventory CSV.

    A dam is eligible when it is in ``country``, has coordinates, and lists
    exactly one associated USGS gage (a non-blank value without spaces).
    Gage ids are zero-padded to ``width`` digits.

    Parameters
    ----------
    filepath : str
        Path to the inventory CSV
    country : str
        Value of DamCountry to keep
    width : int
        Canonical gage id width

    Returns
    -------
    list of Dam
        Eligible dams in file order

    Raises
    ------
    FileNotFoundError
        If file does not exist
    ValueError
        If required columns are missing
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Dam inventory not found: {filepath}")

    df = pd.read_csv(path, na_values=["", " ", "NA"], dtype={GAGE_COLUMN: str})

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Dam inventory is missing columns: {missing}")

    df = df[df["DamCountry"] == country]
    df = df[df[GAGE_COLUMN].map(is_single_token)]
    df = df.dropna(subset=["DamLatitude", "DamLongitude"])
    df = reproject_to_common_crs(df)

    dams = []
    for _, row in df.iterrows():
        dams.append(Dam(
            dam_id=str(row["DamAccessionNumber"]),
            name=str(row["DamName"]).strip(),
            gage_id=normalize_site_id(row[GAGE_COLUMN], width=width),
            latitude=float(row["DamLatitude"]),
            longitude=float(row["DamLongitude"]),
            river=_optional_str(row.get("DamRiverName")),
            state=_optional_str(row.get("DamState_Province")),
            datum=_optional_str(row.get("DamMapDatum")),
            year_built=_optional_int(row.get("DamYearBuiltRemovedStructure")),
            year_removed=_optional_int(row.get("DamYearRemovalFinished")),
            reservoir_volume_m3=_optional_float(row.get("DamReservoirVolume_m3")),
            height_m=_optional_float(row.get("DamHeight_m")),
            operation=_optional_str(row.get("DamOperation")),
        ))

    return dams


def dams_to_frame(dams: List[Dam]) -> pd.DataFrame:
    """Convert dams to a DataFrame."""
    return pd.DataFrame([d.to_dict() for d in dams])
