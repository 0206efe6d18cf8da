"""
Summary tables for a finished rollover simulation.
Builds the percentile / mean / shortfall comparison against a pension benefit.
"""
from typing import Optional, Sequence

import pandas as pd

import stats_utils
from simulation import SimulationResults, format_rate, round_half_up

DEFAULT_PERCENTILES = (0.01, 0.05, 0.25, 0.50)
DEFAULT_CONFIDENCE = 0.99


def ordinal(n: int) -> str:
    """1 -> '1st', 2 -> '2nd', 11 -> '11th', 23 -> '23rd'"""
    if n % 10 == 1 and n % 100 != 11:
        suffix = 'st'
    elif n % 10 == 2 and n % 100 != 12:
        suffix = 'nd'
    elif n % 10 == 3 and n % 100 != 13:
        suffix = 'rd'
    else:
        suffix = 'th'
    return f"{n}{suffix}"


def percentile_label(p: float) -> str:
    return f"{ordinal(round_half_up(p * 100))} percentile"


def create_summary_table(results: SimulationResults,
                         benefit: Optional[float] = None,
                         percentiles: Sequence[float] = DEFAULT_PERCENTILES,
                         confidence: float = DEFAULT_CONFIDENCE) -> pd.DataFrame:
    """
    Create a summary table of withdrawal outcomes, one column per withdrawal rate.

    Args:
        results: Completed simulation results
        benefit: Deterministic annual pension benefit to compare against, if known
        percentiles: Fractions in [0, 1] to report
        confidence: Confidence level for the margin of error on the mean

    Returns:
        DataFrame indexed by statistic. Percentile, mean and margin of error
        rows are whole dollars; the benefit comparison row is a fraction.
    """
    columns = {}
    for rate, sample in results.by_rate().items():
        column = {}
        for p in percentiles:
            column[percentile_label(p)] = round_half_up(stats_utils.percentile(sample, p))
        column['mean'] = round_half_up(stats_utils.mean(sample))
        if len(sample) >= 2:
            column['margin of error'] = round_half_up(stats_utils.margin_of_error(sample, confidence))
        if benefit is not None:
            column['P(earning < benefit)'] = stats_utils.percent_below(sample, benefit)
        columns[format_rate(rate)] = column

    table = pd.DataFrame(columns)
    table.index.name = 'withdrawal rate'
    return table


def format_summary_text(results: SimulationResults,
                        benefit: Optional[float] = None,
                        percentiles: Sequence[float] = DEFAULT_PERCENTILES,
                        confidence: float = DEFAULT_CONFIDENCE,
                        width: int = 22) -> str:
    """Render the summary table as fixed-width text for the console"""
    table = create_summary_table(results, benefit, percentiles, confidence)
    confidence_pct = f"{confidence * 100:g}"

    lines = [f"{'withdrawal rate':>{width}}" + "".join(f"{col:>{width}}" for col in table.columns)]

    for p in percentiles:
        label = percentile_label(p)
        cells = "".join(f"{int(table.at[label, col]):>{width},}" for col in table.columns)
        lines.append(f"{label:>{width}}" + cells)

    if 'margin of error' in table.index:
        mean_label = f"mean (w/ {confidence_pct}% C.I.)"
        cells = "".join(
            f"{int(table.at['mean', col]):,} +/- {int(table.at['margin of error', col]):,}".rjust(width)
            for col in table.columns)
    else:
        mean_label = "mean"
        cells = "".join(f"{int(table.at['mean', col]):>{width},}" for col in table.columns)
    lines.append(f"{mean_label:>{width}}" + cells)

    if benefit is not None:
        label = 'P(earning < benefit)'
        cells = "".join(f"{100 * table.at[label, col]:>{width - 1}.1f}%" for col in table.columns)
        lines.append(f"{label:>{width}}" + cells)

    header = (f"Monte Carlo simulation of a target-date fund rollover with "
              f"{results.num_trials:,} trials.\n\n")
    return header + "\n".join(lines)
