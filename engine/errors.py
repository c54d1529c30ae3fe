"""Exceptions raised by the scheduling engine and its persistence collaborators."""


class UtilizationInvariantError(AssertionError):
    """Merged occupancy fell outside [0, days in month]; indicates a merge defect."""


class PersistenceError(RuntimeError):
    """The local state store rejected a write."""


class LedgerError(RuntimeError):
    """The external category ledger is unreachable or rejected a write."""


class InvalidTransitionError(RuntimeError):
    """A batch edit session was used after it reached a terminal state."""
