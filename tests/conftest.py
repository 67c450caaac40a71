import itertools
import math

import numpy as np
import pytest

from TSPClasses import MatrixScenario

INF = math.inf


@pytest.fixture
def three_city_costs():
    # Optimal tour 0 -> 1 -> 2 -> 0 costs 25, the reverse costs 33.
    return np.array([
        [INF, 10.0, 15.0],
        [5.0, INF, 9.0],
        [6.0, 13.0, INF],
    ])


@pytest.fixture
def three_city_scenario(three_city_costs):
    return MatrixScenario(three_city_costs)


@pytest.fixture
def four_city_scenario():
    # Asymmetric costs for cities A, B, C, D.
    return MatrixScenario([
        [INF, 7, 3, 12],
        [3, INF, 6, 14],
        [5, 8, INF, 6],
        [9, 3, 5, INF],
    ])


def brute_force_cost(costs):
    """Cheapest closed tour by enumerating every ordering that starts at city 0."""
    costs = np.asarray(costs, dtype=float)
    n = costs.shape[0]
    best = INF
    for perm in itertools.permutations(range(1, n)):
        tour = (0,) + perm
        cost = sum(costs[tour[i], tour[(i + 1) % n]] for i in range(n))
        best = min(best, cost)
    return best


def random_costs(n, seed, low=1, high=50):
    rng = np.random.default_rng(seed)
    costs = rng.integers(low, high, size=(n, n)).astype(float)
    np.fill_diagonal(costs, INF)
    return costs
