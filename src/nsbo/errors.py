"""Errors raised by the optimization loop and its components.

All of them derive from `NSBOError` so callers can catch anything coming out of
`NSBO.optimize` at once. Where it makes sense they also derive from the builtin
exception one would expect (e.g. `ValueError` for wrong dimensions).
"""

from typing import Any


class NSBOError(Exception):
    """Base of all errors in this package.

    `iteration` and `last_observation` are filled in by the driver when the
    error escapes an optimization run, for diagnosis.
    """

    iteration: int | None = None
    last_observation: Any = None


class DimensionMismatch(NSBOError, ValueError):
    """A decision or observation vector has the wrong number of elements."""


class CandidateOutOfBounds(NSBOError, ValueError):
    """A candidate lies outside of the decision space."""


class EmptyStore(NSBOError, IndexError):
    """Asked for an observation while none exist."""


class EmptySelection(NSBOError, IndexError):
    """Asked to select from an empty set of candidates."""


class SurrogateTrainingFailure(NSBOError, RuntimeError):
    """Fitting a surrogate model failed (e.g. numerical issues)."""


class EvaluationFailure(NSBOError, RuntimeError):
    """The (expensive) evaluation function failed."""
