"""Predicates that decide whether the optimization should continue.

They are called with the `DriverState` after each iteration (and before the
first) and return `True` to continue.
"""

from typing import Protocol

import torch

from nsbo import pareto


class ContinuationPredicate(Protocol):
    def __call__(self, state) -> bool: ...


class MaxIterations:
    """Continue until `n` iterations have been done."""

    def __init__(self, n: int):
        assert n >= 0
        self.n = n

    def __call__(self, state) -> bool:
        return state.iteration < self.n


class ParetoFrontStalled:
    """Stop once the front of the observed objectives did not change for `patience` iterations.

    Keeps track of the front between calls, so use a new instance per run.
    """

    def __init__(self, patience: int, maximize: bool = False):
        assert patience > 0
        self.patience = patience
        self.maximize = maximize

        self._front: torch.Tensor | None = None
        self._unchanged = 0

    def __call__(self, state) -> bool:
        front = pareto.pareto_front(state.observations, self.maximize)
        if not front:
            return True

        y = torch.stack([o.y for o in front])
        y = y[torch.argsort(y[:, 0], stable=True)]

        if self._front is not None and torch.equal(self._front, y):
            self._unchanged += 1
        else:
            self._unchanged = 0

        self._front = y
        return self._unchanged < self.patience


class AllOf:
    """Continue only while all `predicates` say so."""

    def __init__(self, *predicates: ContinuationPredicate):
        assert predicates
        self.predicates = predicates

    def __call__(self, state) -> bool:
        return all([p(state) for p in self.predicates])
