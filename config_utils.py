"""
Configuration Utilities for the rollover simulation
Default parameters, standing table registry and logging setup.
"""

import logging
from typing import Any, Dict

from interpolation import (
    PiecewiseLinearFunction,
    VANGUARD_GLIDE_PATH,
    HISTORICAL_MEAN_RETURNS,
    HISTORICAL_MEAN_RETURNS_OLD,
    HISTORICAL_SD_RETURNS,
    HISTORICAL_SD_RETURNS_RJ,
)

LOG_FORMAT = "%(levelname)s: %(message)s"

# Named standing tables, addressable from parameter files
STANDING_TABLES: Dict[str, PiecewiseLinearFunction] = {
    'vanguard_glide_path': VANGUARD_GLIDE_PATH,
    'historical_mean_returns': HISTORICAL_MEAN_RETURNS,
    'historical_mean_returns_old': HISTORICAL_MEAN_RETURNS_OLD,
    'historical_sd_returns': HISTORICAL_SD_RETURNS,
    'historical_sd_returns_rj': HISTORICAL_SD_RETURNS_RJ,
}


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a single stream handler to the root logger"""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
    return root


def get_default_simulation_params() -> Dict[str, Any]:
    """Get default simulation parameters configuration"""
    return {
        # Account
        'principal': 250_000,
        'first_year': 46,
        'last_year': 65,

        # Simulation parameters
        'num_trials': 10_000,
        'random_seed': None,
        'num_workers': None,

        # Fund
        'expense_ratio': 0.0008,

        # Return model, by standing table name
        'return_model': {
            'glide_path': 'vanguard_glide_path',
            'mean_returns': 'historical_mean_returns',
            'sd_returns': 'historical_sd_returns',
        },
    }


def resolve_table(ref: Any) -> PiecewiseLinearFunction:
    """
    Resolve a table reference from a parameter file.

    Args:
        ref: A standing table name, a {x: y} mapping, or a list of [x, y] pairs

    Returns:
        PiecewiseLinearFunction
    """
    if isinstance(ref, PiecewiseLinearFunction):
        return ref
    if isinstance(ref, str):
        if ref not in STANDING_TABLES:
            raise ValueError(f"Unknown table '{ref}', expected one of {sorted(STANDING_TABLES)}")
        return STANDING_TABLES[ref]
    if isinstance(ref, dict):
        # JSON object keys arrive as strings
        return PiecewiseLinearFunction([(float(x), y) for x, y in ref.items()])
    return PiecewiseLinearFunction([tuple(pair) for pair in ref])


def table_name(table: PiecewiseLinearFunction):
    """Name of a standing table, or None for a custom one"""
    for name, standing in STANDING_TABLES.items():
        if standing is table:
            return name
    return None
