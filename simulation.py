"""
Monte Carlo rollover simulation along a target-date glide path.
Pure functions for simulation logic, decoupled from reporting.
"""
import logging
import math
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

import stats_utils
from interpolation import (
    PiecewiseLinearFunction,
    VANGUARD_GLIDE_PATH,
    HISTORICAL_MEAN_RETURNS,
    HISTORICAL_SD_RETURNS,
)

logger = logging.getLogger(__name__)

# Vanguard target-date funds all carried a 0.08% expense ratio as of 3/17/23
EXPENSE_RATIO = 0.0008

# First-year withdrawal rates applied to the balance at retirement
WITHDRAWAL_RATES = (0.033, 0.04, 0.05)


@dataclass(frozen=True)
class ReturnModel:
    """Glide path and historical return tables used to resolve each year's return distribution"""
    glide_path: PiecewiseLinearFunction = VANGUARD_GLIDE_PATH
    mean_returns: PiecewiseLinearFunction = HISTORICAL_MEAN_RETURNS
    sd_returns: PiecewiseLinearFunction = HISTORICAL_SD_RETURNS

    def stock_allocation(self, age: int) -> float:
        return self.glide_path.evaluate(age)

    def resolve(self, age: int) -> Tuple[float, float]:
        """Return (mean, sd) of the annual return at the given age"""
        allocation = self.stock_allocation(age)
        return self.mean_returns.evaluate(allocation), self.sd_returns.evaluate(allocation)


DEFAULT_RETURN_MODEL = ReturnModel()


@dataclass
class SimulationParams:
    """Parameters for Monte Carlo simulation"""
    principal: float = 250_000
    first_year: int = 46
    last_year: int = 65
    num_trials: int = 10_000
    random_seed: Optional[int] = None
    num_workers: Optional[int] = None  # None -> os.cpu_count()

    expense_ratio: float = EXPENSE_RATIO
    return_model: ReturnModel = None

    def __post_init__(self):
        if self.return_model is None:
            self.return_model = DEFAULT_RETURN_MODEL


@dataclass
class SimulationResults:
    """Results from Monte Carlo simulation, one entry per trial in every array"""
    withdrawals_3_3: np.ndarray
    withdrawals_4: np.ndarray
    withdrawals_5: np.ndarray
    terminal_balances: np.ndarray
    ruined: np.ndarray
    ruin_rate: float

    @property
    def num_trials(self) -> int:
        return len(self.terminal_balances)

    def by_rate(self) -> Dict[float, np.ndarray]:
        """Withdrawal collections keyed by withdrawal rate"""
        return dict(zip(WITHDRAWAL_RATES,
                        (self.withdrawals_3_3, self.withdrawals_4, self.withdrawals_5)))


def format_rate(rate: float) -> str:
    """Label a withdrawal rate, e.g. 0.033 -> '3.3%' and 0.04 -> '4%'"""
    return f"{rate * 100:g}%"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding toward positive infinity"""
    return int(math.floor(value + 0.5))


def compute_age_window(current_age: int, years_until_start: int,
                       retirement_age: int) -> Tuple[int, int]:
    """
    Derive the compounding window for a rollover.

    The first return registers one year after the rollover. The last year is
    never earlier than the rollover age, so a late rollover yields an empty
    window instead of a negative one.

    Returns:
        (first_year, last_year) as ages, inclusive
    """
    first_year = current_age + years_until_start + 1
    last_year = max(retirement_age, current_age + years_until_start)
    return first_year, last_year


def draw_annual_return(mean: float, sd: float, rng: np.random.Generator) -> float:
    """Draw one normally distributed annual return"""
    return float(rng.normal(mean, sd))


def run_trial(principal: float, first_year: int, last_year: int,
              rng: np.random.Generator,
              return_model: ReturnModel = DEFAULT_RETURN_MODEL,
              expense_ratio: float = EXPENSE_RATIO) -> Tuple[float, bool]:
    """
    Compound a starting balance year by year along the glide path.

    A balance that reaches zero or below is clamped to 0 and the trial stops;
    the remaining years are skipped.

    Returns:
        (terminal_balance, ruined)
    """
    balance = principal
    for age in range(first_year, last_year + 1):
        mean, sd = return_model.resolve(age)
        annual_return = draw_annual_return(mean, sd, rng)
        balance *= (1 + annual_return - expense_ratio)
        if balance <= 0:
            return 0.0, True
    return balance, False


def withdrawal_amounts(terminal_balance: float) -> Tuple[int, ...]:
    """First-year withdrawals at each rate, from the rounded terminal balance"""
    balance_at_retirement = round_half_up(terminal_balance)
    return tuple(round_half_up(rate * balance_at_retirement) for rate in WITHDRAWAL_RATES)


class RetirementSimulator:
    """Monte Carlo simulation of a rollover invested in a target-date fund"""

    def __init__(self, params: SimulationParams):
        self.params = params
        self._validate_params()

    def _validate_params(self):
        """Validate simulation parameters"""
        if self.params.num_trials < 1:
            raise ValueError(f"Number of trials must be positive, got {self.params.num_trials}")
        if self.params.principal < 0:
            raise ValueError(f"Principal must be non-negative, got {self.params.principal}")
        if self.params.num_workers is not None and self.params.num_workers < 1:
            raise ValueError(f"Number of workers must be positive, got {self.params.num_workers}")

    def _get_num_workers(self) -> int:
        if self.params.num_workers is not None:
            return self.params.num_workers
        return os.cpu_count() or 1

    def _spawn_generators(self):
        """One independent generator per trial; trial i always receives child i"""
        seed_seq = np.random.SeedSequence(self.params.random_seed)
        return [np.random.default_rng(child) for child in seed_seq.spawn(self.params.num_trials)]

    def run_simulation(self) -> SimulationResults:
        """Run Monte Carlo simulation"""
        p = self.params
        num_workers = self._get_num_workers()
        logger.info(f"Running {p.num_trials:,} trials over ages {p.first_year}-{p.last_year} "
                    f"on {num_workers} worker(s)")

        # Each trial writes only its own slot, so no locking is needed.
        terminal_balances = np.zeros(p.num_trials)
        ruined = np.zeros(p.num_trials, dtype=bool)
        withdrawals = np.zeros((len(WITHDRAWAL_RATES), p.num_trials), dtype=np.int64)

        generators = self._spawn_generators()

        def trial(index: int) -> int:
            balance, was_ruined = run_trial(
                p.principal, p.first_year, p.last_year, generators[index],
                return_model=p.return_model, expense_ratio=p.expense_ratio)
            terminal_balances[index] = balance
            ruined[index] = was_ruined
            withdrawals[:, index] = withdrawal_amounts(balance)
            return index

        with ThreadPoolExecutor(max_workers=num_workers) as executor:
            futures = [executor.submit(trial, i) for i in range(p.num_trials)]
            for future in as_completed(futures):
                future.result()

        for array in (terminal_balances, ruined, withdrawals):
            array.flags.writeable = False

        ruin_rate = float(np.mean(ruined))
        logger.info(f"Simulation complete: {int(ruined.sum()):,} of {p.num_trials:,} trials ruined "
                    f"({ruin_rate:.1%})")

        return SimulationResults(
            withdrawals_3_3=withdrawals[0],
            withdrawals_4=withdrawals[1],
            withdrawals_5=withdrawals[2],
            terminal_balances=terminal_balances,
            ruined=ruined,
            ruin_rate=ruin_rate,
        )


def run_simulation(trial_count: int, principal: float, first_year: int, last_year: int,
                   **kwargs) -> SimulationResults:
    """
    Run a rollover simulation.

    Args:
        trial_count: Number of independent trials (positive)
        principal: Starting balance (non-negative)
        first_year: Age at which the first annual return registers
        last_year: Age at which the last annual return registers
        **kwargs: Any other SimulationParams field (random_seed, num_workers, ...)

    Returns:
        SimulationResults with trial_count withdrawals per rate
    """
    params = SimulationParams(principal=principal, first_year=first_year, last_year=last_year,
                              num_trials=trial_count, **kwargs)
    return RetirementSimulator(params).run_simulation()


def calculate_summary_stats(results: SimulationResults, benefit: Optional[float] = None,
                            confidence_level: float = 0.99) -> Dict[str, Dict[str, float]]:
    """Calculate summary statistics for each withdrawal rate"""
    summary = {}
    for rate, sample in results.by_rate().items():
        rate_stats = {
            'mean': stats_utils.mean(sample),
            'p01': stats_utils.percentile(sample, 0.01),
            'p05': stats_utils.percentile(sample, 0.05),
            'p25': stats_utils.percentile(sample, 0.25),
            'p50': stats_utils.median(sample),
        }
        if len(sample) >= 2:
            rate_stats['margin_of_error'] = stats_utils.margin_of_error(sample, confidence_level)
        if benefit is not None:
            rate_stats['prob_below_benefit'] = stats_utils.percent_below(sample, benefit)
        summary[format_rate(rate)] = rate_stats
    return summary
