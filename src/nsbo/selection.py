"""Picking the next point to evaluate from the non-dominated candidates."""

from typing import Sequence, TypeVar

import torch

from nsbo.errors import EmptySelection

T = TypeVar("T")


def select(non_dominated: Sequence[T], generator: torch.Generator | None = None) -> T:
    """Returns an element of `non_dominated`, drawn uniformly at random."""
    if not non_dominated:
        raise EmptySelection("Cannot select from an empty set of candidates")

    i = int(torch.randint(len(non_dominated), (1,), generator=generator))
    return non_dominated[i]
