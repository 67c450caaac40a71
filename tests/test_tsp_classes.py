import math

import numpy as np
import pytest

from TSPClasses import City, MatrixScenario, Modes, Scenario, TSPSolution


def test_easy_cost_is_euclidean_distance():
    a, b = City(0.0, 0.0, 0.9), City(3.0, 4.0, 0.1)
    Scenario([a, b], Modes.EASY)

    assert a.costTo(b) == pytest.approx(5.0)
    assert b.costTo(a) == pytest.approx(5.0)


def test_climbing_costs_more_and_descending_does_not_discount():
    low, high = City(0.0, 0.0, 0.0), City(3.0, 4.0, 0.5)
    Scenario([low, high], Modes.NORMAL)

    assert low.costTo(high) == pytest.approx(5.0 * 1.5)
    assert high.costTo(low) == pytest.approx(5.0)


def test_same_city_and_removed_edges_are_unreachable():
    cities = [City(0.0, 0.0), City(1.0, 0.0), City(0.0, 1.0)]
    edge_exists = np.ones((3, 3), dtype=bool)
    edge_exists[0, 2] = False
    scenario = Scenario(cities, 'Hard', edge_exists)

    assert scenario.costBetween(cities[1], cities[1]) == math.inf
    assert cities[0].costTo(cities[2]) == math.inf
    assert cities[2].costTo(cities[0]) == pytest.approx(1.0)


def test_cost_to_requires_a_city():
    a, b = City(0.0, 0.0), City(1.0, 0.0)
    Scenario([a, b], Modes.EASY)

    with pytest.raises(TypeError):
        a.costTo(1)


def test_create_cost_matrix():
    cities = [City(0.0, 0.0), City(1.0, 0.0), City(1.0, 1.0)]
    costs = Scenario(cities, Modes.EASY).createCostMatrix()

    assert costs.shape == (3, 3)
    assert np.all(np.isinf(np.diag(costs)))
    assert costs[0, 2] == pytest.approx(math.sqrt(2))


def test_edge_mask_shape_is_checked():
    with pytest.raises(ValueError):
        Scenario([City(0, 0), City(1, 1)], Modes.EASY, np.ones((3, 3), dtype=bool))


def test_matrix_scenario(three_city_costs):
    scenario = MatrixScenario(three_city_costs)
    cities = scenario.getCities()

    assert [city._index for city in cities] == [0, 1, 2]
    assert cities[1].costTo(cities[2]) == 9.0
    assert cities[2].costTo(cities[1]) == 13.0

    costs = scenario.createCostMatrix()
    costs[0, 1] = 0.0
    assert cities[0].costTo(cities[1]) == 10.0


def test_matrix_scenario_rejects_bad_matrices():
    with pytest.raises(ValueError):
        MatrixScenario(np.zeros((2, 3)))
    with pytest.raises(ValueError):
        MatrixScenario([[math.inf, -1.0], [1.0, math.inf]])


def test_solution_cost_includes_closing_edge(three_city_scenario):
    cities = three_city_scenario.getCities()
    solution = TSPSolution([cities[0], cities[1], cities[2]])

    assert solution.cost == 25.0
    assert solution.cityIndices() == [0, 1, 2]
    assert [cost for _, _, cost in solution.enumerateEdges()] == [10.0, 9.0, 6.0]


def test_solution_through_missing_edge_is_infinite():
    scenario = MatrixScenario([
        [math.inf, 1.0, math.inf],
        [1.0, math.inf, 1.0],
        [1.0, 1.0, math.inf],
    ])
    cities = scenario.getCities()

    assert TSPSolution([cities[0], cities[2], cities[1]]).cost == math.inf
    assert TSPSolution([cities[0], cities[1], cities[2]]).cost == 3.0
