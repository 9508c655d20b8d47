"""
Reference gage catalog loading module.

Loads the GAGES-II point dataset (or any point layer with a station id and
a classification attribute) and keeps the unregulated reference gages.
"""

import geopandas as gpd
from pathlib import Path
from typing import List
import warnings

from ..preprocess.identifiers import normalize_site_id, USGS_SITE_ID_WIDTH
from ..sites import Site

TARGET_CRS = "EPSG:4326"


def load_gage_catalog(filepath: str) -> gpd.GeoDataFrame:
    """
    Load a gage point layer and reproject it to WGS84.

    Parameters
    ----------
    filepath : str
        Path to shapefile (.shp), GeoPackage or GeoJSON

    Returns
    -------
    geopandas.GeoDataFrame
        Gage points in EPSG:4326

    Raises
    ------
    FileNotFoundError
        If file does not exist
    ValueError
        If the layer is empty or not made of points
    """
    path = Path(filepath)

    if not path.exists():
        shp_path = path.with_suffix('.shp')
        if path.suffix != '.shp' and shp_path.exists():
            path = shp_path
        else:
            raise FileNotFoundError(f"Gage catalog not found: {filepath}")

    gdf = gpd.read_file(path)

    if gdf.empty:
        raise ValueError("Gage catalog contains no features")

    if not (gdf.geometry.geom_type == "Point").all():
        raise ValueError("Gage catalog must contain point geometries")

    if gdf.crs is None:
        warnings.warn("No CRS defined for gage catalog. Assuming WGS84 (EPSG:4326)")
        gdf = gdf.set_crs(TARGET_CRS)
    elif gdf.crs.to_epsg() != 4326:
        gdf = gdf.to_crs(TARGET_CRS)

    return gdf


def load_reference_gages(
    filepath: str,
    class_column: str = "CLASS",
    reference_value: str = "Ref",
    id_column: str = "STAID",
    width: int = USGS_SITE_ID_WIDTH
) -> gpd.GeoDataFrame:
    """
    Load reference (unregulated) gages from a catalog.

    Parameters
    ----------
    filepath : str
        Path to the catalog
    class_column : str
        Attribute holding the gage classification
    reference_value : str
        Classification value marking reference gages
    id_column : str
        Attribute holding the station id
    width : int
        Canonical station id width

    Returns
    -------
    geopandas.GeoDataFrame
        Reference gages in catalog order with a normalized ``site_id``
        column and ``latitude``/``longitude`` in EPSG:4326
    """
    gdf = load_gage_catalog(filepath)

    for col in (class_column, id_column):
        if col not in gdf.columns:
            raise ValueError(f"Gage catalog has no '{col}' attribute. Available: {list(gdf.columns)}")

    refs = gdf[gdf[class_column] == reference_value].copy()
    if refs.empty:
        raise ValueError(f"No gages with {class_column} == {reference_value!r} in {filepath}")

    refs['site_id'] = refs[id_column].map(lambda v: normalize_site_id(v, width=width))
    refs['latitude'] = refs.geometry.y
    refs['longitude'] = refs.geometry.x
    return refs.reset_index(drop=True)


def to_sites(refs: gpd.GeoDataFrame) -> List[Site]:
    """Convert a reference gage GeoDataFrame to Site records."""
    crs = refs.crs.to_string() if refs.crs is not None else TARGET_CRS
    return [
        Site(
            site_id=row['site_id'],
            latitude=float(row['latitude']),
            longitude=float(row['longitude']),
            crs=crs,
            is_reference=True,
        )
        for _, row in refs.iterrows()
    ]
