"""Pareto dominance and filtering.

Everything here is agnostic to the number of scored dimensions: it works on
any sequence of items for which `score` returns a 1-dimensional tensor of the
same size. Lower is better, unless `maximize` is set.
"""

from operator import attrgetter
from typing import Any, Callable, NamedTuple, Sequence, TypeAlias, TypeVar

import torch
from botorch.utils.multi_objective.pareto import is_non_dominated

from nsbo.errors import DimensionMismatch
from nsbo.observations import Observation


class ParetoPoint(NamedTuple):
    """A candidate `x` with the predicted mean `mu` and deviation `sigma` of each objective."""

    x: torch.Tensor
    mu: torch.Tensor
    sigma: torch.Tensor


T = TypeVar("T")

Score: TypeAlias = Callable[[Any], torch.Tensor]

by_sigma: Score = attrgetter("sigma")
by_objectives: Score = attrgetter("y")


def dominates(a: torch.Tensor, b: torch.Tensor, maximize: bool = False) -> bool:
    """Returns whether score `a` dominates score `b`

    That is, `a` is at least as good in every dimension and strictly better in one.
    """
    if a.shape != b.shape:
        raise DimensionMismatch(f"Cannot compare scores of shape {a.shape} and {b.shape}")

    if maximize:
        a, b = -a, -b

    return bool((a <= b).all() and (a < b).any())


def stack_scores(items: Sequence[T], score: Score) -> torch.Tensor:
    """Returns the scores of `items` as a `n x k` tensor."""
    scores = [torch.as_tensor(score(i)).reshape(-1) for i in items]

    k = len(scores[0])
    if any(len(s) != k for s in scores):
        raise DimensionMismatch(
            f"All scores must have the same size, got {sorted({len(s) for s in scores})}"
        )

    return torch.stack(scores)


def pareto_set(
    items: Sequence[T], score: Score = by_sigma, maximize: bool = False
) -> list[T]:
    """Returns the items of which the score is not dominated by any other.

    Items with identical scores do not dominate each other, so all are kept.
    Order of `items` is preserved.

    :items: the candidates to filter
    :score: returns the score vector of an item (default `sigma` of a `ParetoPoint`)
    :maximize: whether higher scores are better
    """
    if not items:
        return []

    mask = is_non_dominated(
        stack_scores(items, score), maximize=maximize, deduplicate=False
    )

    return [i for i, keep in zip(items, mask) if keep]


def pareto_front(
    observations: Sequence[Observation], maximize: bool = False
) -> list[Observation]:
    """Returns the non-dominated observations (on their objective values)."""
    return pareto_set(observations, by_objectives, maximize)
