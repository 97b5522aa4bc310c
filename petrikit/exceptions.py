from __future__ import annotations


class PetriKitError(RuntimeError):
    """Base class for all petrikit-specific errors."""


class MalformedNet(PetriKitError):
    """Raised when a net, a transition or an initial state references
    undeclared species or is otherwise structurally invalid."""


class MissingDistribution(PetriKitError):
    """Raised when a transition has no firing-time distribution."""


class InvariantViolation(PetriKitError):
    """Raised when match/clock reconciliation breaks an internal invariant.

    A correct run never raises this; it signals a bug, so the run is aborted.
    """
