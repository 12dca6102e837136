"""Surrogate models of the (expensive) objectives.

The optimization loop only needs something that follows `SurrogateModel`, one
per objective. `GPSurrogate` is the default: a BoTorch GP.
"""

from typing import Callable, Protocol, TypeAlias

import torch
from botorch.exceptions.errors import InputDataError, ModelFittingError
from botorch.fit import fit_gpytorch_mll
from botorch.models import SingleTaskGP
from botorch.models.transforms import input as input_transform
from botorch.models.transforms import outcome as outcome_transform
from gpytorch import kernels
from gpytorch.mlls import ExactMarginalLogLikelihood
from linear_operator.utils.errors import NotPSDError

from nsbo.errors import SurrogateTrainingFailure


class SurrogateModel(Protocol):
    """Model of a single objective.

    All methods work on batches: `x` is a `n x d` tensor of decision vectors.
    """

    def train(self, x: torch.Tensor, y: torch.Tensor) -> None:
        """(Re-)trains the model from scratch on `x -> y` (`y` has size `n`)"""
        ...

    def mu(self, x: torch.Tensor) -> torch.Tensor:
        """Predicted mean at `x` (size `n`)"""
        ...

    def sigma(self, x: torch.Tensor) -> torch.Tensor:
        """Predicted standard deviation at `x` (size `n`, non-negative)"""
        ...


ModelFactory: TypeAlias = Callable[[], SurrogateModel]


def pick_kernel(ker: str, dim: int) -> kernels.ScaleKernel | None:
    """Instantiate the given kernel.

    :ker: string representation of the kernel
    :dim: number of dimensions of the kernel
    """

    # ScaleKernel adds the amplitude hyper-parameter.
    kernel_mapping: dict = {
        "RBF": lambda: kernels.ScaleKernel(kernels.RBFKernel(ard_num_dims=dim)),
        "Matern": lambda: kernels.ScaleKernel(kernels.MaternKernel(ard_num_dims=dim)),
        "Default": lambda: None,
    }

    try:
        return kernel_mapping[ker]()
    except KeyError as error:
        raise KeyError(
            f"{ker} is not an accepted kernel (not in {kernel_mapping.keys()})"
        ) from error


def fit_gp(x, y, kernel, input_bounds: torch.Tensor | None = None) -> SingleTaskGP:
    """My go-to function for fitting GPs.

    Will normalize input (`x`) and standardize output (`y`).
    """
    assert y.dim() == 1 and x.dim() == 2

    dim = x.shape[-1]

    gp = SingleTaskGP(
        x,
        y.unsqueeze(-1),
        covar_module=kernel,
        input_transform=input_transform.Normalize(d=dim, bounds=input_bounds),
        outcome_transform=outcome_transform.Standardize(m=1),
    )
    fit_gpytorch_mll(ExactMarginalLogLikelihood(gp.likelihood, gp))

    return gp


class GPSurrogate:
    """`SurrogateModel` backed by a `SingleTaskGP`."""

    def __init__(self, bounds: torch.Tensor, kernel: str = "Default"):
        self.bounds = torch.as_tensor(bounds, dtype=torch.double)
        self.kernel = kernel
        self.dim = self.bounds.shape[1]

        self.gp: SingleTaskGP | None = None
        self.n_train = 0

    def train(self, x: torch.Tensor, y: torch.Tensor) -> None:
        x = torch.as_tensor(x, dtype=torch.double)
        y = torch.as_tensor(y, dtype=torch.double)

        try:
            self.gp = fit_gp(x, y, pick_kernel(self.kernel, self.dim), self.bounds)
        except (
            InputDataError,
            ModelFittingError,
            NotPSDError,
            torch.linalg.LinAlgError,
        ) as error:
            raise SurrogateTrainingFailure(
                f"Failed to fit GP on {len(y)} observations"
            ) from error

        self.n_train = len(y)

    def _posterior(self, x: torch.Tensor):
        if self.gp is None:
            raise ValueError("GPSurrogate must be trained before it is queried")

        with torch.no_grad():
            return self.gp.posterior(torch.as_tensor(x, dtype=torch.double))

    def mu(self, x: torch.Tensor) -> torch.Tensor:
        return self._posterior(x).mean.squeeze(-1)

    def sigma(self, x: torch.Tensor) -> torch.Tensor:
        return self._posterior(x).variance.clamp_min(0).sqrt().squeeze(-1)


def gp_factory(bounds: torch.Tensor, kernel: str = "Default") -> ModelFactory:
    """Returns a function that creates new (untrained) `GPSurrogate`s"""
    return lambda: GPSurrogate(bounds, kernel)
