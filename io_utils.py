"""
IO utilities for saving/loading simulation parameters.
Handles JSON serialization of parameters, including custom return tables.
"""
import json
import logging
from dataclasses import fields
from typing import Any, Dict

from config_utils import resolve_table, table_name
from simulation import ReturnModel, SimulationParams

logger = logging.getLogger(__name__)

RETURN_MODEL_FIELDS = ('glide_path', 'mean_returns', 'sd_returns')


def _table_to_json(table) -> Any:
    name = table_name(table)
    if name is not None:
        return name
    # Drop the synthetic boundary points; they are re-injected on load.
    low, high = table.domain
    return [[x, y] for x, y in table.points.items() if low <= x <= high]


def params_to_dict(params: SimulationParams) -> Dict[str, Any]:
    """
    Convert SimulationParams to dictionary for JSON serialization.

    Args:
        params: SimulationParams object

    Returns:
        Dictionary representation
    """
    param_dict = {f.name: getattr(params, f.name) for f in fields(params) if f.name != 'return_model'}
    param_dict['return_model'] = {
        name: _table_to_json(getattr(params.return_model, name)) for name in RETURN_MODEL_FIELDS
    }
    return param_dict


def dict_to_params(param_dict: Dict[str, Any]) -> SimulationParams:
    """
    Convert dictionary to SimulationParams object.

    Args:
        param_dict: Dictionary with parameter values

    Returns:
        SimulationParams object
    """
    # Create a copy to avoid modifying the original
    filtered_dict = param_dict.copy()

    known = {f.name for f in fields(SimulationParams)}
    for key in list(filtered_dict):
        if key not in known:
            logger.debug(f"Ignoring unknown parameter '{key}'")
            filtered_dict.pop(key)

    model_refs = filtered_dict.pop('return_model', None)
    if model_refs is not None:
        filtered_dict['return_model'] = ReturnModel(
            **{name: resolve_table(ref) for name, ref in model_refs.items()})

    return SimulationParams(**filtered_dict)


def save_parameters_json(params: SimulationParams, filepath: str) -> None:
    """
    Save simulation parameters to JSON file.

    Args:
        params: SimulationParams object to save
        filepath: Path to save JSON file
    """
    with open(filepath, 'w') as f:
        json.dump(params_to_dict(params), f, indent=2)
    logger.debug(f"Saved simulation parameters to {filepath}")


def load_parameters_json(filepath: str) -> SimulationParams:
    """
    Load simulation parameters from JSON file.

    Args:
        filepath: Path to JSON file

    Returns:
        SimulationParams object
    """
    with open(filepath, 'r') as f:
        param_dict = json.load(f)
    logger.debug(f"Loaded {len(param_dict)} parameters from {filepath}")
    return dict_to_params(param_dict)
