"""The ordered, append-only, collection of everything evaluated so far."""

from typing import NamedTuple

import torch

from nsbo.errors import DimensionMismatch, EmptyStore


class Observation(NamedTuple):
    """Decision vector `x` and the result `y` of evaluating it."""

    x: torch.Tensor
    y: torch.Tensor


def as_vector(v) -> torch.Tensor:
    """Returns `v` as a (new) 1-dimensional double tensor."""
    return torch.as_tensor(v, dtype=torch.double).detach().clone().reshape(-1)


class ObservationStore:
    """Observations in order of evaluation.

    The dimensions of `x` and `y` are fixed, either upfront through
    `x_dim`/`y_dim` or by the first call to `append`.
    """

    def __init__(self, x_dim: int | None = None, y_dim: int | None = None):
        self.x_dim = x_dim
        self.y_dim = y_dim
        self._observations: list[Observation] = []

    def append(self, x, y) -> Observation:
        """Adds `x -> y` to the store, raises `DimensionMismatch` on wrong sizes."""
        x, y = as_vector(x), as_vector(y)

        if self.x_dim is not None and len(x) != self.x_dim:
            raise DimensionMismatch(
                f"Decision vector of size {len(x)}, expected {self.x_dim}"
            )
        if self.y_dim is not None and len(y) != self.y_dim:
            raise DimensionMismatch(
                f"Observation vector of size {len(y)}, expected {self.y_dim}"
            )

        self.x_dim, self.y_dim = len(x), len(y)

        observation = Observation(x, y)
        self._observations.append(observation)

        return observation

    def size(self) -> int:
        return len(self._observations)

    def __len__(self) -> int:
        return self.size()

    def all(self) -> tuple[Observation, ...]:
        """Returns all observations, in order of evaluation."""
        return tuple(self._observations)

    def last(self) -> Observation:
        if not self._observations:
            raise EmptyStore("There are no observations yet")
        return self._observations[-1]

    def x(self) -> torch.Tensor:
        """All decision vectors as a `n x x_dim` tensor."""
        if not self._observations:
            return torch.empty(0, self.x_dim or 0, dtype=torch.double)
        return torch.stack([o.x for o in self._observations])

    def y(self) -> torch.Tensor:
        """All observation vectors as a `n x y_dim` tensor."""
        if not self._observations:
            return torch.empty(0, self.y_dim or 0, dtype=torch.double)
        return torch.stack([o.y for o in self._observations])

    def clear(self) -> None:
        """Forgets all observations (but keeps the dimensions)."""
        self._observations = []
