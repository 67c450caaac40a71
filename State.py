import math
from typing import FrozenSet, Iterable, List, Optional, Tuple

import numpy as np

from TSPClasses import City, TSPSolution
from TSPErrors import InconsistentStateError

Edge = Tuple[int, int]


class SearchContext:
  """Values shared by every state of one search: the city count and the best solution so far."""

  def __init__(self, totalCities: int, bssf: Optional[TSPSolution] = None):
    self.totalCities = totalCities
    self.bssf = bssf

  @property
  def bssfCost(self):
    return self.bssf.cost if self.bssf is not None else math.inf


# Time Complexity: O(n^2)
#		- One pass over every row, then one over every column
#
# Space Complexity: O(n)
#		- Reduces in place; only a row/column finite mask is allocated
def reduceCostMatrix(costs: np.ndarray) -> float:
  """
  Subtract each row's minimum, then each column's minimum, from its finite
  entries. Rows and columns whose minimum is 0 or inf are left alone.
  Returns the total subtracted, which is what the reduction adds to a bound.
  """
  total = 0.0

  for row in range(costs.shape[0]):
    rowMin = costs[row, :].min()
    if rowMin == 0 or rowMin == math.inf:
      continue
    finite = np.isfinite(costs[row, :])
    costs[row, finite] -= rowMin
    total += rowMin

  for col in range(costs.shape[1]):
    colMin = costs[:, col].min()
    if colMin == 0 or colMin == math.inf:
      continue
    finite = np.isfinite(costs[:, col])
    costs[finite, col] -= colMin
    total += colMin

  return float(total)


# Time Complexity: O(n)
#		- Walks the chain through the new edge once in each direction
def forbidPrematureCycles(costs: np.ndarray, includedEdges: Iterable[Edge], edge: Edge, totalCities: int):
  """
  Block every cell that would close the chain containing `edge` (already
  part of includedEdges) into a cycle before all cities are on it: the
  chain's tail may not enter any city of the chain, its head included.
  Once the chain spans all but one edge, closing it is the last move of a
  full tour and nothing is blocked.
  """
  successor = {}
  predecessor = {}
  for src, dest in includedEdges:
    successor[src] = dest
    predecessor[dest] = src

  if len(successor) >= totalCities - 1:
    return

  head = edge[0]
  steps = 0
  while head in predecessor:
    head = predecessor[head]
    steps += 1
    if steps > len(successor):
      raise InconsistentStateError('committed edges already close a cycle through {}'.format(edge),
                                   frozenset(includedEdges))

  tail = edge[1]
  while tail in successor:
    tail = successor[tail]

  city = head
  while city != tail:
    costs[tail, city] = math.inf
    city = successor[city]


# Space Complexity: O(n^2)
#   - Contains an n x n reduced cost matrix - O(n^2)
#   - Contains the committed edges, up to n of them - O(n)
#   - Contains a bound (number) - O(1)
class State:
  def __init__(self, costs: np.ndarray, bound: float, includedEdges: Iterable[Edge], context: SearchContext):
    # The state owns costs from here on and reduces it exactly once.
    self.costs = costs
    self.includedEdges: FrozenSet[Edge] = frozenset(includedEdges)
    self.context = context
    self.lowerBound = bound + reduceCostMatrix(self.costs)

  @classmethod
  def root(cls, costs: np.ndarray, context: SearchContext):
    return cls(np.array(costs, dtype=float), 0.0, (), context)

  @property
  def committedCities(self) -> int:
    return len(self.includedEdges)

  @property
  def priority(self) -> float:
    # Greedy depth bias for the scheduler, not a bound: states nearer a full tour sort first.
    remaining = self.context.totalCities - self.committedCities
    if remaining < 1:
      return self.lowerBound
    return self.lowerBound + remaining

  def isValidSolution(self) -> bool:
    return len(self.includedEdges) == self.context.totalCities

  # Time Complexity: O(n^2)
  #		- O(n^2) matrix copy and reduction
  #		- O(n) to guard the chain
  def include(self, row: int, col: int) -> 'State':
    costs = self.costs.copy()
    costs[row, :] = math.inf
    costs[:, col] = math.inf
    edges = self.includedEdges | {(row, col)}
    forbidPrematureCycles(costs, edges, (row, col), self.context.totalCities)
    return State(costs, self.lowerBound, edges, self.context)

  # Time Complexity: O(n^2)
  def exclude(self, row: int, col: int) -> 'State':
    costs = self.costs.copy()
    costs[row, col] = math.inf
    return State(costs, self.lowerBound, self.includedEdges, self.context)

  # Time Complexity: O(n^4)
  # 	- Up to n^2 zero cells (O(n) in practice once reduced)
  #		- Each builds two children at O(n^2)
  #
  # Space Complexity: O(n^2)
  #		- Keeps only the best pair of children
  def expandSuccessors(self) -> Optional[Tuple['State', 'State']]:
    """
    Branch on the zero-cost edge whose include and exclude children differ
    the most in bound. Returns (include, exclude), or None for a dead end.
    """
    best = None
    maxDifference = -1.0

    rows, cols = np.nonzero(self.costs == 0)
    for row, col in zip(rows.tolist(), cols.tolist()):
      includeState = self.include(row, col)
      excludeState = self.exclude(row, col)

      difference = abs(excludeState.lowerBound - includeState.lowerBound)
      if difference > maxDifference:
        maxDifference = difference
        best = (includeState, excludeState)

    return best

  # Time Complexity: O(n)
  def getRoute(self, cities: List[City]) -> List[City]:
    successor = dict(self.includedEdges)
    if len(successor) != len(self.includedEdges) or len(successor) != len(cities):
      raise InconsistentStateError(
        'expected {} edges with distinct origins, got {}'.format(len(cities), len(self.includedEdges)),
        self.includedEdges)

    start = min(successor)
    route = []
    current = start
    while True:
      route.append(cities[current])
      if current not in successor:
        raise InconsistentStateError('city {} has no outgoing edge'.format(current), self.includedEdges)
      current = successor[current]
      if current == start:
        break
      if len(route) >= len(cities):
        raise InconsistentStateError('edges do not close back to city {}'.format(start),
                                     self.includedEdges)

    if len(route) != len(cities):
      raise InconsistentStateError(
        'cycle through city {} covers {} of {} cities'.format(start, len(route), len(cities)),
        self.includedEdges)
    return route

  def toSolution(self, cities: List[City]) -> Optional[TSPSolution]:
    if not self.isValidSolution():
      return None
    return TSPSolution(self.getRoute(cities))
