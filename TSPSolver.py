#!/usr/bin/python3

import logging
import math
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, List, Optional, Tuple

import numpy as np

from PriorityQueue import BoundedPriorityQueue
from State import SearchContext, State
from TSPClasses import City, Scenario, TSPSolution
from TSPConfig import Config, RunConfig
from TSPErrors import InconsistentStateError, NoFeasibleTourError

logger = logging.getLogger(__name__)


class SearchPhase(Enum):
    SEEDING = 'seeding'
    RUNNING = 'running'
    TIMED_OUT = 'timed_out'
    EXHAUSTED = 'exhausted'


@dataclass
class RunStats:
    """Counters reported with the final tour of a branch-and-bound run."""
    created: int = 0
    pruned: int = 0
    maxStored: int = 0
    improvements: int = 0
    expanded: int = 0
    elapsedMs: float = 0.0
    phase: SearchPhase = SearchPhase.SEEDING

    def asDict(self):
        stats = asdict(self)
        stats['phase'] = self.phase.value
        return stats


class GreedyTourBuilder:
    """Nearest-neighbour tours from random start cities, each start tried at most once."""

    def __init__(self, scenario: Scenario, rng=None, maxRetries: Optional[int] = None):
        self._scenario = scenario
        self._rng = rng if rng is not None else np.random.default_rng()
        self.maxRetries = len(scenario.getCities()) if maxRetries is None else maxRetries
        self.attempts = 0

    # Time Complexity: O(n^3)
    # 	- Up to n start cities
    #		- Each builds a route in O(n^2)
    #
    # Space Complexity: O(n)
    #		- Stores a route and a visited set of up to n cities
    def build(self, time_allowance=math.inf) -> TSPSolution:
        cities: List[City] = self._scenario.getCities()
        startTime = time.time()
        self.attempts = 0

        for startIndex in self._rng.permutation(len(cities))[:self.maxRetries]:
            if time.time() - startTime >= time_allowance:
                break
            self.attempts += 1

            route = self._nearestNeighborRoute(cities, int(startIndex))
            if route is None:
                continue
            solution = TSPSolution(route)
            if solution.cost < math.inf:
                return solution

        raise NoFeasibleTourError('greedy', self.attempts)

    def _nearestNeighborRoute(self, cities: List[City], startIndex: int):
        src = cities[startIndex]
        route = [src]
        visited = {startIndex}

        for _ in range(len(cities) - 1):
            nearest = None
            minCost = math.inf
            for dest in cities:
                if dest._index in visited:
                    continue
                cost = src.costTo(dest)
                if cost < minCost:
                    minCost = cost
                    nearest = dest

            if nearest is None:
                # Every unvisited city is unreachable from here.
                return None
            visited.add(nearest._index)
            route.append(nearest)
            src = nearest

        return route


class RandomTourBuilder:
    """Tours in uniformly random order, restarting when the walk gets stuck."""

    def __init__(self, scenario: Scenario, rng=None, maxRetries: int = Config.RANDOM_TOUR_RETRIES):
        self._scenario = scenario
        self._rng = rng if rng is not None else np.random.default_rng()
        self.maxRetries = maxRetries
        self.attempts = 0

    def build(self, time_allowance=math.inf) -> TSPSolution:
        cities: List[City] = self._scenario.getCities()
        startTime = time.time()
        self.attempts = 0

        while self.attempts < self.maxRetries and time.time() - startTime < time_allowance:
            self.attempts += 1
            route = self._randomRoute(cities)
            if route is None:
                continue
            solution = TSPSolution(route)
            if solution.cost < math.inf:
                return solution

        raise NoFeasibleTourError('random', self.attempts)

    def _randomRoute(self, cities: List[City]):
        ncities = len(cities)
        first = int(self._rng.integers(ncities))
        route = [cities[first]]
        visited = {first}
        unreachable = 0

        while len(route) < ncities:
            candidate = int(self._rng.integers(ncities))
            if candidate in visited:
                continue
            if route[-1].costTo(cities[candidate]) < math.inf:
                route.append(cities[candidate])
                visited.add(candidate)
            else:
                unreachable += 1
                if unreachable > ncities:
                    return None

        return route


class BranchAndBoundEngine:
    """
    Best-first include/exclude branch and bound over reduced cost matrices.

    The engine is seeded with a greedy tour (a random tour when every greedy
    start fails) so there is always a finite bound
    to prune against, then pops states in priority order until the queue runs
    dry or the time allowance is used up. The best solution so far lives on
    the SearchContext shared with every state, and is only ever replaced by a
    complete tour, so stopping at any point leaves a valid answer.
    """

    def __init__(self, scenario: Scenario, time_allowance=Config.DEFAULT_TIME_BUDGET_MS / 1000.0,
                 debug=False, rng=None):
        self._scenario = scenario
        self._cities = scenario.getCities()
        if len(self._cities) < 2:
            raise ValueError('branch and bound needs at least 2 cities, got {}'.format(len(self._cities)))

        self.time_allowance = time_allowance
        self.debug = debug
        self._rng = rng if rng is not None else np.random.default_rng()

        self.context = SearchContext(len(self._cities))
        self.queue = BoundedPriorityQueue()
        self.stats = RunStats()
        self.seedTour: Optional[TSPSolution] = None

    @property
    def phase(self) -> SearchPhase:
        return self.stats.phase

    @property
    def bssf(self) -> Optional[TSPSolution]:
        return self.context.bssf

    # Time Complexity: O(n^3)
    #		- Greedy seed is O(n^3)
    #		- Building and reducing the root matrix is O(n^2)
    def seed(self):
        self.stats.phase = SearchPhase.SEEDING

        try:
            self.seedTour = GreedyTourBuilder(self._scenario, self._rng).build()
        except NoFeasibleTourError as e:
            # Nearest neighbour is deterministic per start, so missing edges can defeat every start.
            logger.warning(f"{e}, falling back to random tours")
            self.seedTour = RandomTourBuilder(self._scenario, self._rng).build()
        self.context.bssf = self.seedTour

        root = State.root(self._scenario.createCostMatrix(), self.context)
        self.queue.insert(root, root.priority)
        self.stats.created = 1
        self.stats.maxStored = 1

    # Time Complexity: O(n^4) per expansion, see State.expandSuccessors()
    def step(self, state: State):
        """Consume one dequeued state: prune it, record it as a solution, or expand it."""
        if state.lowerBound > self.context.bssfCost:
            self.stats.pruned += 1
            return

        if state.isValidSolution():
            self._offerSolution(state)
            return

        successors = state.expandSuccessors()
        self.stats.expanded += 1
        if successors is None:
            logger.debug(f"Dead end with {state.committedCities} committed edges, bound {state.lowerBound:.3f}")
            return

        for child in successors:
            self.stats.created += 1
            if child.lowerBound > self.context.bssfCost:
                self.stats.pruned += 1
            else:
                self.queue.insert(child, child.priority)
                self.stats.maxStored = max(self.stats.maxStored, self.queue.size())

    def _offerSolution(self, state: State):
        try:
            solution = state.toSolution(self._cities)
        except InconsistentStateError:
            if self.debug:
                raise
            logger.error(f"Skipping inconsistent state with edges {sorted(state.includedEdges)}", exc_info=True)
            return

        if solution.cost < self.context.bssfCost:
            logger.debug(f"BSSF improved: {self.context.bssfCost:.3f} -> {solution.cost:.3f}")
            self.context.bssf = solution
            self.stats.improvements += 1

    # Time Complexity: Worst case O(2^(n^2) * n^4)
    #		- Every include/exclude decision over the n^2 edges may be explored
    #		- Each expansion is O(n^4)
    #
    # Space Complexity: O(q * n^2)
    # 	- q states stored in the priority queue, each with an n x n matrix
    def solve(self) -> Tuple[TSPSolution, RunStats]:
        self.seed()
        logger.info(f"Branch and bound on {len(self._cities)} cities, "
                    f"seed tour {self.seedTour.cost:.3f}, allowance {self.time_allowance}s")

        startTime = time.time()
        self.stats.phase = SearchPhase.RUNNING
        while self.queue.size() > 0:
            if time.time() - startTime >= self.time_allowance:
                self.stats.phase = SearchPhase.TIMED_OUT
                break
            self.step(self.queue.extractMin())
        else:
            self.stats.phase = SearchPhase.EXHAUSTED

        self.stats.elapsedMs = (time.time() - startTime) * 1000.0
        logger.info(f"Branch and bound {self.stats.phase.value}: cost {self.context.bssfCost:.3f}, "
                    f"created {self.stats.created}, pruned {self.stats.pruned}, "
                    f"stored {self.stats.maxStored}, improvements {self.stats.improvements}")
        return self.context.bssf, self.stats


class TSPSolver:
    def __init__(self, config: Optional[RunConfig] = None):
        self._scenario = None
        self._config = config if config is not None else RunConfig()
        self._rng = np.random.default_rng(self._config.seed)

    def setupWithScenario(self, scenario: Scenario):
        ncities = len(scenario.getCities())
        if self._config.problem_size is not None and ncities != self._config.problem_size:
            raise ValueError('scenario has {} cities, configured problem size is {}'.format(
                ncities, self._config.problem_size))
        self._scenario = scenario

    def setupWithCities(self, cities: List[City], edge_exists=None):
        self.setupWithScenario(Scenario(cities, self._config.difficulty, edge_exists))

    ''' <summary>
		This is the entry point for the default solver
		which just finds a valid random tour.  Note this could be used to find your
		initial BSSF.
		</summary>
		<returns>results dictionary that contains three ints: cost of solution,
		time spent to find solution, number of attempts made, the
		solution found, and three null values for fields not used for this
		algorithm</returns>
	'''

    def defaultRandomTour(self, time_allowance=60.0):
        return self._runHeuristic(RandomTourBuilder(self._scenario, self._rng), time_allowance)

    ''' <summary>
		This is the entry point for the greedy solver, which is also what seeds
		the BSSF for branch and bound.
		</summary>
		<returns>results dictionary that contains three ints: cost of best solution,
		time spent to find it, number of start cities tried, the solution found,
		and three null values for fields not used for this algorithm</returns>
	'''

    def greedy(self, time_allowance=60.0):
        return self._runHeuristic(GreedyTourBuilder(self._scenario, self._rng), time_allowance)

    def _runHeuristic(self, builder, time_allowance):
        bssf = None
        start_time = time.time()
        try:
            bssf = builder.build(time_allowance)
        except NoFeasibleTourError as e:
            logger.warning(str(e))
        end_time = time.time()

        results = {}
        results['cost'] = bssf.cost if bssf is not None else math.inf
        results['time'] = end_time - start_time
        results['count'] = builder.attempts
        results['soln'] = bssf
        results['max'] = None
        results['total'] = None
        results['pruned'] = None
        return results

    ''' <summary>
		This is the entry point for the branch-and-bound algorithm.
		</summary>
		<returns>results dictionary that contains three ints: cost of best solution,
		time spent searching, number of BSSF improvements found during search (does
		not include the initial BSSF), the best solution found, and three more ints:
		max queue size, total number of states created, and number of pruned states.
		The full RunStats is under 'stats'.</returns>
	'''

    def branchAndBound(self, time_allowance=None, reporter: Optional[Callable[[dict], None]] = None):
        if time_allowance is None:
            time_allowance = self._config.time_allowance

        engine = BranchAndBoundEngine(self._scenario, time_allowance, debug=self._config.debug, rng=self._rng)
        bssf, stats = engine.solve()

        results = {}
        results['cost'] = bssf.cost
        results['time'] = stats.elapsedMs / 1000.0
        results['count'] = stats.improvements
        results['soln'] = bssf
        results['max'] = stats.maxStored
        results['total'] = stats.created
        results['pruned'] = stats.pruned
        results['stats'] = stats

        if reporter is not None:
            reporter(results)
        return results
