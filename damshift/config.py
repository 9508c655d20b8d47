"""
Configuration module for DamShift.

Defines the DamShiftConfig dataclass with all analysis parameters.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional
import yaml
from datetime import datetime


CENTRAL_TENDENCIES = ("median", "mean")


@dataclass
class DamShiftConfig:
    """Configuration for a DamShift analysis."""
    # Core inputs
    dam_file: str
    gage_catalog_file: str
    flow_dir: Optional[str] = None  # Recorded <site_id>.csv files instead of NWIS
    site_attributes_file: Optional[str] = None  # Local drainage areas, checked before NWIS
    output_dir: str = "output"

    # Inventory and catalog filtering
    country: str = "USA"
    site_id_width: int = 8
    reference_class: str = "Ref"
    reference_class_column: str = "CLASS"
    reference_id_column: str = "STAID"

    # Flow retrieval
    parameter_code: str = "00060"  # Discharge, cfs
    discharge_units: str = "cfs"  # 'cfs' or 'm3s'
    max_retries: int = 3
    retry_backoff_s: float = 1.0
    request_timeout_s: float = 30
    workers: int = 1
    pair_timeout_s: Optional[float] = None

    # Matching
    use_spatial_index: bool = True

    # Comparison
    min_days_per_year: int = 360
    min_years_per_period: int = 2
    equal_var: bool = False  # False -> Welch's t-test
    central_tendency: str = "median"
    alpha: float = 0.05

    # Output settings
    results_filename: str = "max1dayresults.csv"
    figure_format: str = "png"
    figure_dpi: int = 300
    make_figures: bool = True

    run_timestamp: Optional[str] = None

    def __post_init__(self):
        """Validate choices and set derived attributes."""
        if self.central_tendency not in CENTRAL_TENDENCIES:
            raise ValueError(
                f"central_tendency must be one of {CENTRAL_TENDENCIES}, "
                f"got {self.central_tendency!r}"
            )
        if self.discharge_units not in ("cfs", "m3s"):
            raise ValueError(f"Unsupported discharge_units: {self.discharge_units!r}")
        if self.run_timestamp is None:
            self.run_timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    @property
    def output_run_dir(self) -> Path:
        """Get the timestamped output directory for this run."""
        return Path(self.output_dir) / f"run_{self.run_timestamp}"

    @property
    def figures_dir(self) -> Path:
        """Get the figures subdirectory."""
        return self.output_run_dir / "figures"

    @property
    def tables_dir(self) -> Path:
        """Get the tables subdirectory."""
        return self.output_run_dir / "tables"

    def create_output_dirs(self) -> None:
        """Create all output directories."""
        for d in [self.output_run_dir, self.figures_dir, self.tables_dir]:
            d.mkdir(parents=True, exist_ok=True)

    def save(self, path: Optional[Path] = None) -> None:
        """Save configuration to YAML file."""
        if path is None:
            path = self.output_run_dir / "config.yaml"

        config_dict = {
            k: v for k, v in self.__dict__.items()
            if v is not None and not k.startswith('_')
        }

        with open(path, 'w') as f:
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_yaml(cls, path: str) -> "DamShiftConfig":
        """Load configuration from YAML file."""
        with open(path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}

        processed = _flatten(config_dict)
        valid_keys = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in processed.items() if k in valid_keys})


# Short names accepted in configuration files
FIELD_ALIASES = {
    'dams': 'dam_file',
    'gages': 'gage_catalog_file',
    'directory': 'output_dir',
    'statistic': 'central_tendency',
    'retries': 'max_retries',
    'timeout': 'request_timeout_s',
}


def _flatten(config_dict: dict) -> dict:
    """Flatten sections (inputs:, retrieval:, ...) and resolve aliased keys."""
    flat_dict = {}
    for key, value in config_dict.items():
        if isinstance(value, dict):
            flat_dict.update(value)
        else:
            flat_dict[key] = value

    return {FIELD_ALIASES.get(key, key): value for key, value in flat_dict.items()}


def load_config(config_path: Optional[str] = None, **overrides) -> DamShiftConfig:
    """
    Load configuration from file and/or keyword arguments.

    Parameters
    ----------
    config_path : str, optional
        Path to YAML configuration file, flat (as written by
        ``DamShiftConfig.save``) or sectioned
    **overrides : dict
        Keyword arguments to override config values. ``None`` values are
        ignored so unset CLI options do not clobber the file.

    Returns
    -------
    DamShiftConfig
        Configuration object
    """
    config_data = {}
    if config_path:
        with open(config_path, 'r') as f:
            config_data = _flatten(yaml.safe_load(f) or {})

    config_data.update({k: v for k, v in overrides.items() if v is not None})

    if 'dam_file' not in config_data:
        raise ValueError("Missing required argument: dam_file")
    if 'gage_catalog_file' not in config_data:
        raise ValueError("Missing required argument: gage_catalog_file")

    valid_keys = {f.name for f in fields(DamShiftConfig)}
    filtered_data = {k: v for k, v in config_data.items() if k in valid_keys}

    return DamShiftConfig(**filtered_data)
