"""
Command-line interface for DamShift.
"""

import logging
from functools import partial

import click
import matplotlib.pyplot as plt

from .config import load_config, DamShiftConfig
from .io import (
    load_dam_inventory, load_reference_gages, to_sites,
    LocalFlowSource, NWISClient, SiteAttributes, chain_lookups,
)
from .analysis import (
    match_dams, build_pairs, pairs_to_frame, check_unique_dam_names,
    ComparisonSettings, ErrorCode, run_comparisons, assemble_results,
)
from .report import write_results, write_summary, collect_records
from .visualization import set_damshift_style, plot_ratio_histograms, plot_comparison_series


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(levelname)s - %(name)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def _pair_table(cfg: DamShiftConfig, client: NWISClient):
    """Load inputs, match dams to reference gages and attach drainage areas."""
    click.echo("📥 Loading data...")
    dams = load_dam_inventory(cfg.dam_file, country=cfg.country, width=cfg.site_id_width)
    click.echo(f"   Eligible dams: {len(dams)}")

    refs = load_reference_gages(
        cfg.gage_catalog_file,
        class_column=cfg.reference_class_column,
        reference_value=cfg.reference_class,
        id_column=cfg.reference_id_column,
        width=cfg.site_id_width,
    )
    click.echo(f"   Reference gages: {len(refs)}")

    click.echo("📍 Matching dams to nearest reference gages...")
    matches = match_dams(dams, to_sites(refs), use_index=cfg.use_spatial_index)

    lookups = []
    if cfg.site_attributes_file:
        lookups.append(SiteAttributes.from_csv(cfg.site_attributes_file).get_drainage_area)
    if cfg.flow_dir is None:
        lookups.append(client.get_drainage_area)
    if not lookups:
        click.echo("⚠️ No drainage area source: offline run without --site-attributes. "
                   "All comparisons will be undefined.")
        lookups.append(lambda site_id: None)

    click.echo("🔗 Joining drainage areas and dam attributes...")
    pairs = build_pairs(dams, matches, chain_lookups(*lookups))
    try:
        check_unique_dam_names(pairs)
    except ValueError as e:
        raise click.UsageError(str(e))
    return pairs


def _load(config, **overrides) -> DamShiftConfig:
    try:
        return load_config(config, **overrides)
    except ValueError as e:
        raise click.UsageError(str(e))


def _make_client(cfg: DamShiftConfig) -> NWISClient:
    return NWISClient(
        max_retries=cfg.max_retries,
        backoff_s=cfg.retry_backoff_s,
        timeout_s=cfg.request_timeout_s,
    )


@click.group()
@click.version_option()
def cli():
    """DamShift: Dam Removal Peak-Flow Change Analysis."""
    pass


_common_options = [
    click.option('--dams', 'dam_file', type=click.Path(exists=True), help='Path to dam removal inventory CSV'),
    click.option('--gages', 'gage_catalog_file', type=click.Path(exists=True), help='Path to gage catalog (e.g. GAGES-II shapefile)'),
    click.option('--site-attributes', 'site_attributes_file', type=click.Path(exists=True), help='CSV of gage drainage areas checked before NWIS'),
    click.option('--flow-dir', type=click.Path(exists=True, file_okay=False), help='Directory of <site_id>.csv daily flow files (offline run)'),
    click.option('--config', type=click.Path(exists=True), help='Path to config YAML'),
    click.option('--output-dir', help='Output directory'),
    click.option('--no-index', is_flag=True, help='Use a linear scan instead of a spatial index for matching'),
    click.option('-v', '--verbose', is_flag=True, help='Log retrieval details'),
]


def common_options(func):
    for option in reversed(_common_options):
        func = option(func)
    return func


@cli.command()
@common_options
def match(dam_file, gage_catalog_file, site_attributes_file, flow_dir, config, output_dir, no_index, verbose):
    """Build the dam / reference gage pair table only."""
    _configure_logging(verbose)
    cfg = _load(
        config,
        dam_file=dam_file,
        gage_catalog_file=gage_catalog_file,
        site_attributes_file=site_attributes_file,
        flow_dir=flow_dir,
        output_dir=output_dir,
        use_spatial_index=False if no_index else None,
    )
    cfg.create_output_dirs()

    pairs = _pair_table(cfg, _make_client(cfg))
    path = cfg.tables_dir / "gage_pairs.csv"
    pairs_to_frame(pairs).to_csv(path, index=False)
    click.echo(f"✅ Wrote {len(pairs)} pairs to {path}")


@cli.command()
@common_options
@click.option('--workers', type=int, help='Parallel pair comparisons')
@click.option('--pair-timeout', 'pair_timeout_s', type=float, help='Seconds before a pair is recorded as missing data')
@click.option('--statistic', 'central_tendency', type=click.Choice(['median', 'mean']), help='Central tendency for the effect ratio')
@click.option('--equal-var/--welch', default=None, help="Student's (pooled) or Welch's t-test")
@click.option('--units', 'discharge_units', type=click.Choice(['cfs', 'm3s']), help='Units of local flow files')
@click.option('--no-figures', is_flag=True, help='Skip figure generation')
def run(dam_file, gage_catalog_file, site_attributes_file, flow_dir, config, output_dir, no_index, verbose,
        workers, pair_timeout_s, central_tendency, equal_var, discharge_units, no_figures):
    """Run full analysis pipeline."""
    _configure_logging(verbose)

    # 1. Setup Configuration
    cfg = _load(
        config,
        dam_file=dam_file,
        gage_catalog_file=gage_catalog_file,
        site_attributes_file=site_attributes_file,
        flow_dir=flow_dir,
        output_dir=output_dir,
        use_spatial_index=False if no_index else None,
        workers=workers,
        pair_timeout_s=pair_timeout_s,
        central_tendency=central_tendency,
        equal_var=equal_var,
        discharge_units=discharge_units,
        make_figures=False if no_figures else None,
    )
    cfg.create_output_dirs()
    click.echo("🚀 Starting DamShift analysis")
    click.echo(f"📂 Output directory: {cfg.output_run_dir}")

    # 2. Pair table
    client = _make_client(cfg)
    pairs = _pair_table(cfg, client)
    pairs_to_frame(pairs).to_csv(cfg.tables_dir / "gage_pairs.csv", index=False)

    # 3. Comparisons
    if cfg.flow_dir:
        click.echo(f"💾 Reading daily flow from {cfg.flow_dir}")
        flow_source = LocalFlowSource(cfg.flow_dir, units=cfg.discharge_units)
    else:
        click.echo("🌐 Retrieving daily flow from NWIS (this may take a while)...")
        flow_source = partial(client.get_daily_flow, parameter_cd=cfg.parameter_code)

    click.echo(f"📊 Comparing {len(pairs)} dams...")
    comparisons = run_comparisons(
        pairs,
        flow_source,
        settings=ComparisonSettings.from_config(cfg),
        workers=cfg.workers,
        pair_timeout=cfg.pair_timeout_s,
    )

    # 4. Output
    results = assemble_results([c.result for c in comparisons], pairs)
    results_path = write_results(results, cfg.tables_dir / cfg.results_filename)
    collect_records(comparisons).to_csv(cfg.tables_dir / "comparison_records.csv", index=False)
    write_summary(results, cfg.tables_dir / "summary.json", alpha=cfg.alpha)
    click.echo(f"      -> Saved '{results_path.name}'")

    for code in ErrorCode:
        n = int((results['error'] == code.value).sum())
        if n:
            click.echo(f"   {code.value}: {n}")

    # 5. Visualization
    if cfg.make_figures:
        click.echo("🎨 Generating figures...")
        set_damshift_style()
        plt.rcParams['savefig.dpi'] = cfg.figure_dpi

        plot_ratio_histograms(
            results,
            alpha=cfg.alpha,
            output_path=cfg.figures_dir / f"ratio_histograms.{cfg.figure_format}"
        )
        by_name = {p.dam_name: p for p in pairs}
        for comp in comparisons:
            if comp.result.error.is_fatal:
                continue
            pair = by_name[comp.result.dam_name]
            safe_name = "".join(ch if ch.isalnum() else "_" for ch in pair.dam_name)
            plot_comparison_series(
                comp.records,
                year_removed=pair.year_removed,
                year_built=pair.year_built,
                title=pair.dam_name,
                output_path=cfg.figures_dir / f"comparison_{safe_name}.{cfg.figure_format}"
            )

    cfg.save()
    click.echo("✅ Analysis complete!")


if __name__ == '__main__':
    cli()
