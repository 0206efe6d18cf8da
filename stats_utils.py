"""
Descriptive statistics for Monte Carlo samples.
Pure functions over integer samples; inputs are never reordered or modified.
"""
import math
from typing import Sequence, Union

import numpy as np
from scipy import stats

Sample = Union[Sequence[int], np.ndarray]


class DomainError(ValueError):
    """Raised when a probability or confidence level is out of range"""


class InsufficientSampleError(ValueError):
    """Raised when a sample is too small for the requested statistic"""


def _as_array(sample: Sample, min_size: int = 1) -> np.ndarray:
    values = np.asarray(sample, dtype=float)
    if values.ndim != 1:
        raise ValueError(f"Sample must be one-dimensional, got shape {values.shape}")
    if len(values) < min_size:
        raise InsufficientSampleError(
            f"Sample needs at least {min_size} value(s), got {len(values)}")
    return values


def mean(sample: Sample) -> float:
    """Arithmetic mean of a non-empty sample"""
    return float(np.mean(_as_array(sample)))


def percentile(sample: Sample, p: float) -> float:
    """
    Percentile of a sample, p in [0, 1].

    The fractional rank r = p * (n - 1) is resolved by averaging the sorted
    entries at floor(r) and ceil(r), weighted by the fractional part of r.
    This is the exact entry when r is integral and the plain midpoint when
    r falls halfway, e.g. the median of an even-length sample.

    Args:
        sample: Non-empty sample
        p: Fraction in [0, 1]

    Returns:
        The 100*p-th percentile
    """
    if not 0 <= p <= 1:
        raise DomainError(f"Percentile must be between 0 and 1 inclusive, got {p}")
    ordered = np.sort(_as_array(sample))
    rank = p * (len(ordered) - 1)
    lower = math.floor(rank)
    upper = math.ceil(rank)
    if lower == upper:
        return float(ordered[lower])
    weight = rank - lower
    return float(ordered[lower] * (1 - weight) + ordered[upper] * weight)


def median(sample: Sample) -> float:
    return percentile(sample, 0.5)


def variance(sample: Sample) -> float:
    """Unbiased sample variance (n - 1 denominator)"""
    values = _as_array(sample, min_size=2)
    return float(np.var(values, ddof=1))


def standard_deviation(sample: Sample) -> float:
    return math.sqrt(variance(sample))


def percent_below(sample: Sample, threshold: float) -> float:
    """Fraction of the sample strictly less than threshold"""
    ordered = np.sort(_as_array(sample))
    count = np.searchsorted(ordered, threshold, side='left')
    return float(count / len(ordered))


def z_score(confidence_level: float) -> float:
    """
    Two-sided standard normal quantile for a confidence level in [0, 1).

    Returns:
        z such that P(-z < Z < z) = confidence_level
    """
    if not 0 <= confidence_level < 1:
        raise DomainError(
            f"Confidence level must be in [0, 1), got {confidence_level}")
    left_tail = (1 - confidence_level) / 2
    return float(stats.norm.ppf(1 - left_tail))


def margin_of_error(sample: Sample, confidence_level: float) -> float:
    """Half-width of the confidence interval around the sample mean"""
    z = z_score(confidence_level)
    values = _as_array(sample, min_size=2)
    return z * standard_deviation(values) / math.sqrt(len(values))
