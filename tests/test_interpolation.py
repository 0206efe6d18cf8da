"""
Unit tests for piecewise linear interpolation and the standing tables.
"""
import sys
import threading

import pytest

from interpolation import (
    PiecewiseLinearFunction, InvalidDomainError,
    VANGUARD_GLIDE_PATH, HISTORICAL_MEAN_RETURNS, HISTORICAL_SD_RETURNS,
    HISTORICAL_MEAN_RETURNS_OLD, HISTORICAL_SD_RETURNS_RJ,
)


class TestConstruction:
    """Test control point validation"""

    def test_single_point_rejected(self):
        """Test that one control point cannot define a function"""
        with pytest.raises(InvalidDomainError, match="At least 2 control points"):
            PiecewiseLinearFunction({0: 1})

    def test_empty_rejected(self):
        with pytest.raises(InvalidDomainError):
            PiecewiseLinearFunction({})

    def test_duplicate_keys_rejected(self):
        """Test that duplicate keys (after float normalization) are rejected"""
        with pytest.raises(InvalidDomainError, match="Duplicate"):
            PiecewiseLinearFunction([(1, 0.5), (1.0, 0.7)])

    def test_non_finite_rejected(self):
        with pytest.raises(InvalidDomainError):
            PiecewiseLinearFunction({0: 1, float('inf'): 2})

    def test_invalid_domain_is_value_error(self):
        """Test that callers catching ValueError still see construction errors"""
        with pytest.raises(ValueError):
            PiecewiseLinearFunction([(5, 5)])

    def test_boundary_points_injected(self):
        """Test that boundary points carry the edge values"""
        f = PiecewiseLinearFunction({10: 1, 20: 3})
        points = f.points
        assert points[-sys.float_info.max] == 1.0
        assert points[sys.float_info.max] == 3.0
        assert len(points) == 4
        assert f.domain == (10.0, 20.0)

    def test_accepts_unsorted_pairs(self):
        f = PiecewiseLinearFunction([(100, 0.15), (0, 0.05)])
        assert abs(f.evaluate(50) - 0.10) < 1e-12

    def test_points_copy_is_detached(self):
        """Test that mutating the returned points does not change the function"""
        f = PiecewiseLinearFunction({0: 0, 10: 10})
        f.points[5] = 100
        assert f.evaluate(5) == 5.0


class TestEvaluate:
    """Test interpolation and flat extrapolation"""

    def test_concrete_case(self):
        """Test the two-point table from the model documentation"""
        f = PiecewiseLinearFunction({0: 0.05, 100: 0.15})
        assert abs(f.evaluate(50) - 0.10) < 1e-12
        assert f.evaluate(-10) == 0.05
        assert f.evaluate(150) == 0.15

    def test_exact_at_control_points(self):
        """Test that stored values are returned exactly"""
        table = {0: 0.063, 20: 0.075, 30: 0.081, 100: 0.123}
        f = PiecewiseLinearFunction(table)
        for x, y in table.items():
            assert f.evaluate(x) == y

    def test_flat_extrapolation(self):
        f = PiecewiseLinearFunction({20: 90, 40: 90, 72: 30})
        for x in (-1e300, -5, 0, 19.999):
            assert f.evaluate(x) == 90.0
        for x in (72.0001, 100, 1e300):
            assert f.evaluate(x) == 30.0

    def test_extreme_inputs(self):
        """Test evaluation at the representable extremes"""
        f = PiecewiseLinearFunction({0: 1, 1: 2})
        assert f.evaluate(-sys.float_info.max) == 1.0
        assert f.evaluate(sys.float_info.max) == 2.0
        assert f.evaluate(float('-inf')) == 1.0
        assert f.evaluate(float('inf')) == 2.0

    def test_nan_rejected(self):
        f = PiecewiseLinearFunction({0: 1, 1: 2})
        with pytest.raises(ValueError):
            f.evaluate(float('nan'))

    def test_callable(self):
        f = PiecewiseLinearFunction({0: 0, 2: 4})
        assert f(1) == f.evaluate(1) == 2.0

    def test_decreasing_segment(self):
        f = PiecewiseLinearFunction({60: 60, 65: 50})
        assert abs(f.evaluate(62) - 56) < 1e-12

    def test_concurrent_evaluation(self):
        """Test that many threads evaluating at once see consistent values"""
        f = PiecewiseLinearFunction({0: 0, 100: 200})
        errors = []

        def worker():
            for i in range(1000):
                if abs(f.evaluate(i / 10) - i / 5) > 1e-9:
                    errors.append(i)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert errors == []


class TestStandingTables:
    """Test the glide path and historical return tables"""

    def test_glide_path(self):
        """Test Vanguard glide path anchors and interpolation"""
        assert VANGUARD_GLIDE_PATH.evaluate(25) == 90
        assert VANGUARD_GLIDE_PATH.evaluate(40) == 90
        assert abs(VANGUARD_GLIDE_PATH.evaluate(50) - 75) < 1e-12
        assert VANGUARD_GLIDE_PATH.evaluate(65) == 50
        assert VANGUARD_GLIDE_PATH.evaluate(80) == 30
        assert VANGUARD_GLIDE_PATH.evaluate(18) == 90

    def test_historical_mean_returns(self):
        assert HISTORICAL_MEAN_RETURNS.evaluate(0) == 0.063
        assert HISTORICAL_MEAN_RETURNS.evaluate(100) == 0.123
        assert abs(HISTORICAL_MEAN_RETURNS.evaluate(90) - 0.117) < 1e-12

    def test_historical_sd_returns(self):
        assert HISTORICAL_SD_RETURNS.evaluate(50) == 0.0965
        assert abs(HISTORICAL_SD_RETURNS.evaluate(75) - (0.1264 + 0.1433) / 2) < 1e-12

    def test_deprecated_tables_available(self):
        """Test that the reference-only tables are still constructed"""
        assert HISTORICAL_MEAN_RETURNS_OLD.evaluate(50) == 0.083
        assert HISTORICAL_SD_RETURNS_RJ.evaluate(28) == 0.102

    def test_tables_monotone_where_expected(self):
        """Test that expected return rises with stock allocation"""
        values = [HISTORICAL_MEAN_RETURNS.evaluate(a) for a in range(0, 101, 5)]
        assert values == sorted(values)
