"""Generating and scoring candidate decision vectors.

A sampler proposes (`n x d`) candidates within the bounds, after which
`generate_candidates` scores them with the predictive deviation of each
objective model. The Pareto front over these deviations is what drives the
search towards regions that none of the models know well.
"""

import itertools
from typing import Protocol, Sequence

import torch
from botorch.utils.sampling import draw_sobol_samples

from nsbo.errors import CandidateOutOfBounds, DimensionMismatch
from nsbo.pareto import ParetoPoint
from nsbo.surrogates import SurrogateModel


def to_bounds(bounds: list[tuple[float, float]] | torch.Tensor) -> torch.Tensor:
    """Returns `bounds` as a `2 x d` (double) tensor, the way BoTorch likes it"""
    if not torch.is_tensor(bounds):
        bounds = torch.tensor(bounds, dtype=torch.double).T

    bounds = bounds.to(torch.double)
    assert bounds.dim() == 2 and bounds.shape[0] == 2, f"bad bounds {bounds}"
    assert (bounds[0] <= bounds[1]).all(), f"lower bounds exceed upper in {bounds}"

    return bounds


def random_queries(
    bounds: list[tuple[float, float]] | torch.Tensor,
    n: int = 1,
    generator: torch.Generator | None = None,
) -> torch.Tensor:
    """Create `n` random tensor with values within `bounds`"""
    assert isinstance(n, int)

    lower, upper = to_bounds(bounds)
    u = torch.rand(size=[n, len(lower)], generator=generator, dtype=torch.double)
    return u * (upper - lower) + lower


def seed_from(generator: torch.Generator | None) -> int:
    """Draws a seed from `generator` for libraries that want an int"""
    return int(torch.randint(2**31 - 1, (1,), generator=generator))


class CandidateSampler(Protocol):
    def __call__(
        self, bounds: torch.Tensor, generator: torch.Generator | None
    ) -> torch.Tensor: ...


class RandomCandidates:
    """`n` uniformly random candidates."""

    def __init__(self, n: int):
        assert n > 0
        self.n = n

    def __call__(self, bounds, generator=None):
        return random_queries(bounds, self.n, generator)


class SobolCandidates:
    """`n` candidates from a (scrambled) Sobol sequence."""

    def __init__(self, n: int):
        assert n > 0
        self.n = n

    def __call__(self, bounds, generator=None):
        return draw_sobol_samples(
            to_bounds(bounds), n=self.n, q=1, seed=seed_from(generator)
        ).squeeze(1)


def grid(bounds: torch.Tensor, points_per_dim: int) -> torch.Tensor:
    """Regular grid of `points_per_dim ** d` points, including the bounds"""
    lower, upper = to_bounds(bounds)
    axes = [
        torch.linspace(float(lo), float(up), points_per_dim, dtype=torch.double)
        for lo, up in zip(lower, upper)
    ]
    points = itertools.product(*[a.tolist() for a in axes])
    return torch.tensor(list(points), dtype=torch.double)


class GridCandidates:
    """Candidates on a regular grid.

    With `jitter` each point is moved uniformly within its grid cell, so that
    repeated calls do not keep proposing the same points.
    """

    def __init__(self, points_per_dim: int, jitter: bool = False):
        assert points_per_dim > 1
        self.points_per_dim = points_per_dim
        self.jitter = jitter

    def __call__(self, bounds, generator=None):
        bounds = to_bounds(bounds)
        x = grid(bounds, self.points_per_dim)

        if self.jitter:
            cell = (bounds[1] - bounds[0]) / (self.points_per_dim - 1)
            noise = torch.rand(x.shape, generator=generator, dtype=torch.double) - 0.5
            x = torch.minimum(torch.maximum(x + noise * cell, bounds[0]), bounds[1])

        return x


class PoolCandidates:
    """A fixed, externally given, set of candidates."""

    def __init__(self, pool: torch.Tensor | Sequence[Sequence[float]]):
        self.pool = torch.as_tensor(pool, dtype=torch.double)
        assert self.pool.dim() == 2 and len(self.pool) > 0

    def __call__(self, bounds, generator=None):
        del bounds, generator
        return self.pool.clone()


def check_candidates(x: torch.Tensor, bounds: torch.Tensor) -> None:
    """Raises if `x` is not a `n x d` tensor within `bounds`"""
    bounds = to_bounds(bounds)
    d = bounds.shape[1]

    if x.dim() != 2 or x.shape[1] != d:
        raise DimensionMismatch(
            f"Expected candidates of shape n x {d}, got {tuple(x.shape)}"
        )

    outside = ((x < bounds[0]) | (x > bounds[1])).any(dim=-1)
    if outside.any():
        raise CandidateOutOfBounds(
            f"{int(outside.sum())} candidate(s) outside of bounds, "
            f"e.g. {x[outside][0].tolist()}"
        )


def generate_candidates(
    models: Sequence[SurrogateModel],
    sampler: CandidateSampler,
    bounds: torch.Tensor,
    generator: torch.Generator | None = None,
) -> list[ParetoPoint]:
    """Samples candidates and scores them with the models' predictions.

    :models: one (trained) model per objective
    :sampler: proposes the candidates
    :bounds: `2 x d` bounds of the decision space
    :generator: source of randomness for `sampler`
    """
    x = torch.as_tensor(sampler(bounds, generator), dtype=torch.double)
    check_candidates(x, bounds)

    mu = torch.stack([m.mu(x).reshape(-1) for m in models], dim=-1)
    sigma = torch.stack([m.sigma(x).reshape(-1) for m in models], dim=-1)

    return [ParetoPoint(*p) for p in zip(x, mu, sigma)]
