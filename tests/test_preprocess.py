"""
Tests for preprocessing functions.
"""
import numpy as np
import pandas as pd
import pytest
from damshift.preprocess import (
    normalize_site_id,
    normalize_site_ids,
    is_single_token,
    cfs_to_m3s,
    sqmi_to_km2,
    specific_discharge,
)


@pytest.mark.parametrize("raw, expected", [
    ("2041000", "02041000"),
    (2041000, "02041000"),
    (2041000.0, "02041000"),
    ("2041000.0", "02041000"),
    (" 02041000 ", "02041000"),
    ("12345678", "12345678"),
    ("394220106431500", "394220106431500"),
])
def test_normalize_site_id(raw, expected):
    assert normalize_site_id(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", np.nan])
def test_normalize_site_id_blank(raw):
    assert normalize_site_id(raw) is None


def test_normalize_site_ids_frame():
    df = pd.DataFrame({'gage': ["1013500", "12345678", None]})
    out = normalize_site_ids(df, 'gage')
    assert list(out["gage"][:2]) == ["01013500", "12345678"]
    assert pd.isna(out["gage"].iloc[2])
    assert df['gage'].iloc[0] == "1013500"  # input untouched


def test_is_single_token():
    assert is_single_token("01234567")
    assert not is_single_token("01234567 01234568")
    assert not is_single_token("")
    assert not is_single_token(np.nan)


def test_unit_conversions():
    assert cfs_to_m3s(1) == pytest.approx(0.028316847)
    assert sqmi_to_km2(1) == pytest.approx(2.589988, rel=1e-6)
    assert sqmi_to_km2(None) is None
    assert sqmi_to_km2(np.nan) is None


def test_specific_discharge_guards_bad_area():
    q = pd.Series([10.0, 20.0])
    assert list(specific_discharge(q, 10.0)) == [1.0, 2.0]
    for area in (None, 0, np.nan, -5):
        assert specific_discharge(q, area).isna().all()
    assert np.isnan(specific_discharge(3.0, 0))
