"""
Piecewise-linear interpolation over ordered control points.
Used to map investor age to stock allocation (glide path) and stock allocation
to historical return mean and volatility.
"""
import math
import sys
from bisect import bisect_left
from typing import Dict, Iterable, Mapping, Tuple, Union


class InvalidDomainError(ValueError):
    """Raised when a set of control points cannot define a function"""


# Synthetic boundary keys; the curve is flat beyond the original domain.
LOWEST_KEY = -sys.float_info.max
HIGHEST_KEY = sys.float_info.max

Points = Union[Mapping[float, float], Iterable[Tuple[float, float]]]


class PiecewiseLinearFunction:
    """
    Piecewise-linear function through a set of (x, y) control points.

    Outside the original domain the function is constant: two boundary points
    are injected at the smallest and largest representable floats carrying the
    first and last y-values, so every finite x has a neighbour on each side.
    Instances are immutable and safe to evaluate from many threads.
    """

    def __init__(self, points: Points):
        pairs = list(points.items()) if isinstance(points, Mapping) else list(points)
        if len(pairs) < 2:
            raise InvalidDomainError(
                f"At least 2 control points are required, got {len(pairs)}")

        normalized: Dict[float, float] = {}
        for x, y in pairs:
            x, y = float(x), float(y)
            if not (math.isfinite(x) and math.isfinite(y)):
                raise InvalidDomainError(f"Control point ({x}, {y}) is not finite")
            if x in normalized:
                raise InvalidDomainError(f"Duplicate control point key: {x}")
            normalized[x] = y

        keys = sorted(normalized)
        normalized[LOWEST_KEY] = normalized[keys[0]]
        normalized[HIGHEST_KEY] = normalized[keys[-1]]

        self._xs: Tuple[float, ...] = tuple(sorted(normalized))
        self._ys: Tuple[float, ...] = tuple(normalized[x] for x in self._xs)

    @property
    def points(self) -> Dict[float, float]:
        """Control points, boundary entries included"""
        return dict(zip(self._xs, self._ys))

    @property
    def domain(self) -> Tuple[float, float]:
        """Smallest and largest original (non-boundary) keys"""
        return self._xs[1], self._xs[-2]

    def evaluate(self, x: float) -> float:
        """
        Evaluate the function at x.

        Args:
            x: Input value

        Returns:
            The stored value if x is a control point, otherwise the linear
            interpolation between the nearest control points below and above x
        """
        x = float(x)
        if math.isnan(x):
            raise ValueError("Cannot evaluate a piecewise linear function at NaN")
        if x <= LOWEST_KEY:
            return self._ys[0]
        if x >= HIGHEST_KEY:
            return self._ys[-1]

        i = bisect_left(self._xs, x)
        if self._xs[i] == x:
            return self._ys[i]

        x1, y1 = self._xs[i - 1], self._ys[i - 1]
        x2, y2 = self._xs[i], self._ys[i]
        slope = (y2 - y1) / (x2 - x1)
        return y1 + slope * (x - x1)

    __call__ = evaluate

    def __repr__(self) -> str:
        inner = ", ".join(f"{x:g}: {y:g}" for x, y in zip(self._xs[1:-1], self._ys[1:-1]))
        return f"PiecewiseLinearFunction({{{inner}}})"


# Vanguard target-date fund glide path: age -> % allocation to stocks
VANGUARD_GLIDE_PATH = PiecewiseLinearFunction({
    20: 90,
    40: 90,
    60: 60,
    65: 50,
    72: 30,
})

# % allocation to stocks -> average annual return (Vanguard, 1926-2021)
HISTORICAL_MEAN_RETURNS = PiecewiseLinearFunction({
    0: 0.063,
    20: 0.075,
    30: 0.081,
    40: 0.087,
    50: 0.093,
    60: 0.099,
    70: 0.105,
    80: 0.111,
    100: 0.123,
})

# % allocation to stocks -> standard deviation of annual returns (1976-2012)
HISTORICAL_SD_RETURNS = PiecewiseLinearFunction({
    0: 0.0629,
    10: 0.0626,
    20: 0.0663,
    30: 0.0737,
    40: 0.0840,
    50: 0.0965,
    60: 0.1107,
    70: 0.1264,
    80: 0.1433,
    90: 0.1614,
    100: 0.1807,
})

# Deprecated: earlier Vanguard mean-return data, kept for reference only
HISTORICAL_MEAN_RETURNS_OLD = PiecewiseLinearFunction({
    0: 0.054,
    20: 0.067,
    30: 0.072,
    40: 0.078,
    50: 0.083,
    60: 0.087,
    70: 0.091,
    80: 0.095,
    100: 0.101,
})

# Deprecated: earlier Raymond James volatility data, kept for reference only
HISTORICAL_SD_RETURNS_RJ = PiecewiseLinearFunction({
    0: 0.117,
    20: 0.107,
    28: 0.102,
    30: 0.105,
    40: 0.110,
    50: 0.112,
    60: 0.121,
    70: 0.134,
    80: 0.147,
    100: 0.178,
})
