"""Strategies for the initial batch of evaluations.

Each returns the `n x d` decision vectors to evaluate before the models are
first trained, given the bounds and a source of randomness.
"""

from typing import Protocol, Sequence

import torch

from nsbo import candidates


class Initialization(Protocol):
    def __call__(
        self, bounds: torch.Tensor, generator: torch.Generator | None
    ) -> torch.Tensor: ...


class NoInit:
    """No initial evaluations: the first iteration picks a random point instead."""

    def __call__(self, bounds, generator=None):
        del generator
        return torch.empty(0, candidates.to_bounds(bounds).shape[1], dtype=torch.double)


class RandomSampling:
    def __init__(self, n: int):
        assert n >= 0
        self.n = n

    def __call__(self, bounds, generator=None):
        return candidates.random_queries(bounds, self.n, generator)


class SobolSampling:
    def __init__(self, n: int):
        assert n > 0
        self.n = n

    def __call__(self, bounds, generator=None):
        return candidates.SobolCandidates(self.n)(bounds, generator)


class GridSampling:
    """All points of a regular grid (`points_per_dim ** d` of them)."""

    def __init__(self, points_per_dim: int):
        self.points_per_dim = points_per_dim

    def __call__(self, bounds, generator=None):
        del generator
        return candidates.grid(bounds, self.points_per_dim)


class FixedPoints:
    """Evaluates exactly the given points."""

    def __init__(self, points: torch.Tensor | Sequence[Sequence[float]]):
        self.points = torch.as_tensor(points, dtype=torch.double)
        assert self.points.dim() == 2

    def __call__(self, bounds, generator=None):
        del generator
        candidates.check_candidates(self.points, bounds)
        return self.points.clone()


def pick_initialization(name: str, n: int) -> Initialization:
    """Instantiate the initialization strategy `name` of (about) `n` points."""
    if n == 0 or name == "none":
        return NoInit()
    if name == "random":
        return RandomSampling(n)
    if name == "sobol":
        return SobolSampling(n)
    if name == "grid":
        return GridSampling(n)

    raise ValueError(f"{name} is not an accepted initialization strategy")
