"""
End-to-end tests of the command-line interface on local files.
"""
import geopandas as gpd
import pandas as pd
import pytest
from click.testing import CliRunner
from shapely.geometry import Point
from damshift.cli import cli


@pytest.fixture
def inputs(tmp_path, removal_flows):
    """Inventory, catalog, flow directory and attribute table for two dams."""
    dams = tmp_path / "dam_r.csv"
    dams.write_text(
        "DamAccessionNumber,DamName,DamCountry,DamAssociatedUSGSStreamGaugingStation,"
        "DamLatitude,DamLongitude,DamYearRemovalFinished,DamYearBuiltRemovedStructure\n"
        "1,Harvell Dam,USA,1234567,37.20,-77.40,2000,1950\n"
        "2,Gage Site Dam,USA,7654321,37.31,-77.49,2005,1920\n"
    )

    gages = tmp_path / "gages.shp"
    gpd.GeoDataFrame(
        {'STAID': ["7654321", "9999999"], 'CLASS': ["Ref", "Ref"]},
        geometry=[Point(-77.5, 37.3), Point(-120.0, 45.0)],
        crs="EPSG:4326",
    ).to_file(gages)

    flow_dir = tmp_path / "flows"
    flow_dir.mkdir()
    ref, dam = removal_flows
    ref.to_csv(flow_dir / "07654321.csv")
    dam.to_csv(flow_dir / "01234567.csv")

    attributes = tmp_path / "site_attributes.csv"
    attributes.write_text("site_no,drainage_area_km2\n01234567,100\n07654321,50\n")

    return {
        'dams': dams, 'gages': gages, 'flow_dir': flow_dir,
        'attributes': attributes, 'out': tmp_path / "out",
    }


def _args(inputs):
    return [
        '--dams', str(inputs['dams']),
        '--gages', str(inputs['gages']),
        '--flow-dir', str(inputs['flow_dir']),
        '--site-attributes', str(inputs['attributes']),
        '--output-dir', str(inputs['out']),
    ]


def test_run_offline(inputs):
    runner = CliRunner()
    result = runner.invoke(cli, ['run'] + _args(inputs) + ['--units', 'm3s', '--no-figures'])
    assert result.exit_code == 0, result.output
    assert "Analysis complete" in result.output

    run_dir = next(inputs['out'].glob("run_*"))
    table = pd.read_csv(run_dir / "tables" / "max1dayresults.csv", dtype={'ref_gage': str, 'dam_gage': str})
    errors = dict(zip(table['dam_name'], table['error']))
    assert errors == {"Harvell Dam": "none", "Gage Site Dam": "Error0"}
    assert set(table['ref_gage']) == {"07654321"}

    assert (run_dir / "tables" / "gage_pairs.csv").exists()
    assert (run_dir / "tables" / "comparison_records.csv").exists()
    assert (run_dir / "tables" / "summary.json").exists()
    assert (run_dir / "config.yaml").exists()


def test_match_only(inputs):
    runner = CliRunner()
    result = runner.invoke(cli, ['match'] + _args(inputs) + ['--no-index'])
    assert result.exit_code == 0, result.output

    run_dir = next(inputs['out'].glob("run_*"))
    pairs = pd.read_csv(run_dir / "tables" / "gage_pairs.csv", dtype={'ref_gage': str})
    assert list(pairs['ref_gage']) == ["07654321", "07654321"]
    assert pairs['ref_drainage_km2'].iloc[0] == 50


def test_missing_inputs_is_usage_error(tmp_path):
    result = CliRunner().invoke(cli, ['run', '--output-dir', str(tmp_path)])
    assert result.exit_code != 0
    assert "dam_file" in result.output


def test_duplicate_dam_names_is_usage_error(inputs):
    inputs['dams'].write_text(
        "DamAccessionNumber,DamName,DamCountry,DamAssociatedUSGSStreamGaugingStation,"
        "DamLatitude,DamLongitude,DamYearRemovalFinished,DamYearBuiltRemovedStructure\n"
        "1,Mill Dam,USA,1234567,37.20,-77.40,2000,1950\n"
        "2,Mill Dam,USA,1111111,37.25,-77.45,2004,1930\n"
    )
    result = CliRunner().invoke(cli, ['run'] + _args(inputs) + ['--no-figures'])
    assert result.exit_code != 0
    assert "unique" in result.output
    assert "Mill Dam" in result.output
    assert not list(inputs['out'].glob("run_*/tables/max1dayresults.csv"))
