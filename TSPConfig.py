"""
TSPConfig.py - Solver Configuration
===================================
Defaults shared by the cost model, the heuristics and the branch-and-bound engine.
"""

from dataclasses import dataclass
from typing import Optional


class Config:
    """Solver-wide constants."""

    # Wall-clock budget for a branch-and-bound run
    DEFAULT_TIME_BUDGET_MS = 30000

    # Elevations are sampled in [0, MAX_ELEVATION); climbs are scaled against it
    MAX_ELEVATION = 1.0

    # 15 slots is four complete heap levels
    QUEUE_INITIAL_CAPACITY = 15

    # Restarts allowed to the random tour builder before giving up
    RANDOM_TOUR_RETRIES = 1000


@dataclass
class RunConfig:
    """Settings for a single solver run."""
    time_budget_ms: int = Config.DEFAULT_TIME_BUDGET_MS
    problem_size: Optional[int] = None  # expected city count, None accepts any
    difficulty: str = 'Normal'          # cost model mode for scenarios built from bare cities
    debug: bool = False                 # re-raise inconsistent states instead of skipping them
    seed: Optional[int] = None          # seed for the heuristic tour builders

    def __post_init__(self):
        if self.time_budget_ms < 0:
            raise ValueError('time_budget_ms must be non-negative, got {}'.format(self.time_budget_ms))
        if self.problem_size is not None and self.problem_size < 1:
            raise ValueError('problem_size must be positive, got {}'.format(self.problem_size))

    @property
    def time_allowance(self) -> float:
        """Budget in seconds, the unit the solver entry points take."""
        return self.time_budget_ms / 1000.0
