import math
from enum import Enum
from typing import List

import numpy as np

from TSPConfig import Config


class Modes(Enum):
    EASY = 'Easy'
    NORMAL = 'Normal'
    HARD = 'Hard'


class City:
    def __init__(self, x, y, elevation=0.0):
        self._x = x
        self._y = y
        self._elevation = elevation
        self._scenario = None
        self._index = -1

    def setScenario(self, scenario, index):
        self._scenario = scenario
        self._index = index

    def costTo(self, other_city):
        if not isinstance(other_city, City):
            raise TypeError('costTo() expects a City, got {}'.format(type(other_city).__name__))
        return self._scenario.costBetween(self, other_city)

    def __repr__(self):
        return 'City({}, x={:.3f}, y={:.3f})'.format(self._index, self._x, self._y)


# Space Complexity: O(n^2)
#   - Holds the n cities and an n x n edge_exists mask
class Scenario:
    """
    A fixed problem instance: the ordered cities plus the cost model between them.
    Which edges are removed and how elevations are drawn belongs to the generator;
    the scenario only reads the result.
    """

    def __init__(self, cities: List[City], difficulty=Modes.NORMAL, edge_exists=None):
        self._cities = list(cities)
        self._difficulty = Modes(difficulty)
        ncities = len(self._cities)

        if edge_exists is None:
            edge_exists = np.ones((ncities, ncities), dtype=bool)
        self._edge_exists = np.array(edge_exists, dtype=bool)
        if self._edge_exists.shape != (ncities, ncities):
            raise ValueError('edge_exists must be {0}x{0}, got {1}'.format(ncities, self._edge_exists.shape))
        np.fill_diagonal(self._edge_exists, False)

        for index, city in enumerate(self._cities):
            city.setScenario(self, index)

    def getCities(self):
        return self._cities

    @property
    def difficulty(self):
        return self._difficulty

    # Time Complexity: O(1)
    def costBetween(self, src: City, dest: City):
        if src._index == dest._index or not self._edge_exists[src._index, dest._index]:
            return math.inf

        cost = math.sqrt((dest._x - src._x) ** 2 + (dest._y - src._y) ** 2)
        if self._difficulty is not Modes.EASY:
            # Only climbing costs extra; going downhill is never cheaper than flat.
            climb = max(0.0, dest._elevation - src._elevation)
            cost *= 1.0 + climb / Config.MAX_ELEVATION
        return cost

    # Time Complexity: O(n^2)
    #		- 2 nested for loops (each O(n)) to populate cost matrix
    #
    # Space Complexity: O(n^2)
    #		- Creates an n x n cost matrix
    def createCostMatrix(self):
        cities = self.getCities()
        costs = np.empty((len(cities), len(cities)))

        for src in cities:
            for dest in cities:
                costs[src._index, dest._index] = self.costBetween(src, dest)

        return costs


class MatrixScenario(Scenario):
    """Scenario whose (possibly asymmetric) costs are given directly as a matrix."""

    def __init__(self, costs):
        costs = np.array(costs, dtype=float)
        if costs.ndim != 2 or costs.shape[0] != costs.shape[1]:
            raise ValueError('cost matrix must be square, got shape {}'.format(costs.shape))
        if np.any(costs < 0):
            raise ValueError('cost matrix must be non-negative')
        np.fill_diagonal(costs, math.inf)
        self._costs = costs

        cities = [City(float(i), 0.0) for i in range(costs.shape[0])]
        super().__init__(cities, Modes.EASY, edge_exists=np.isfinite(costs))

    def costBetween(self, src: City, dest: City):
        return float(self._costs[src._index, dest._index])

    def createCostMatrix(self):
        return self._costs.copy()


class TSPSolution:
    def __init__(self, listOfCities: List[City]):
        self.route = list(listOfCities)
        self.cost = self._costOfRoute()

    # The route is taken as closed: the last city returns to the first.
    def _costOfRoute(self):
        if len(self.route) < 2:
            return math.inf
        cost = 0
        last = self.route[0]
        for city in self.route[1:]:
            cost += last.costTo(city)
            last = city
        cost += self.route[-1].costTo(self.route[0])
        return cost

    def enumerateEdges(self):
        elist = []
        c1 = self.route[0]
        for c2 in self.route[1:]:
            elist.append((c1, c2, c1.costTo(c2)))
            c1 = c2
        elist.append((self.route[-1], self.route[0], self.route[-1].costTo(self.route[0])))
        return elist

    def cityIndices(self):
        return [city._index for city in self.route]
