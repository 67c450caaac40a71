class TSPError(Exception):
    """Base class for every error raised by the solver."""


# Extracting from an empty queue is a programming error, so it also reads as an IndexError.
class EmptyQueueError(TSPError, IndexError):
    pass


class NoFeasibleTourError(TSPError, RuntimeError):
    def __init__(self, builder, attempts):
        super().__init__('{} found no feasible tour after {} attempts'.format(builder, attempts))
        self.builder = builder
        self.attempts = attempts


class InconsistentStateError(TSPError, RuntimeError):
    """Committed edges do not form a single cycle (or chain) over the cities."""

    def __init__(self, message, includedEdges=None):
        super().__init__(message)
        self.includedEdges = includedEdges
