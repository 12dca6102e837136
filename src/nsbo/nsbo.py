"""The optimization loop: multi-objective BO on the Pareto front of model uncertainty.

Each iteration
    1. (re-)trains a surrogate model per objective on all observations,
    2. scores candidates by the predicted deviation of each model,
    3. keeps the candidates of which the deviations are not dominated,
    4. draws one of those uniformly and evaluates it.

In other words, it queries where the models are, jointly, most uncertain.
All components (models, candidates, stopping, statistics) are given to `NSBO`
at construction.
"""

import enum
import warnings
from dataclasses import dataclass
from typing import Any, Callable, Sequence, TypeAlias

import torch

from nsbo import candidates, initialization, pareto, selection
from nsbo.errors import EmptySelection, EvaluationFailure, NSBOError
from nsbo.observations import Observation, ObservationStore
from nsbo.stopping import ContinuationPredicate
from nsbo.surrogates import ModelFactory, SurrogateModel

EvaluationFunction: TypeAlias = Callable[[torch.Tensor], Any]


@dataclass(frozen=True)
class DriverState:
    """Snapshot of the optimization, as given to stopping criteria and statistics.

    :iteration: number of completed iterations (not counting the initial batch)
    :observations: everything evaluated so far, in order
    :models: the models as used in the last iteration (one per objective)
    :bounds: `2 x d` bounds of the decision space
    :non_dominated: candidates on the Pareto front of the last iteration
    :selected: the candidate evaluated last iteration (None if picked randomly)
    """

    iteration: int
    observations: tuple[Observation, ...]
    models: tuple[SurrogateModel, ...]
    bounds: torch.Tensor
    non_dominated: tuple[pareto.ParetoPoint, ...] = ()
    selected: pareto.ParetoPoint | None = None

    @property
    def last(self) -> Observation | None:
        return self.observations[-1] if self.observations else None

    def x(self) -> torch.Tensor:
        return torch.stack([o.x for o in self.observations])

    def y(self) -> torch.Tensor:
        return torch.stack([o.y for o in self.observations])


class Status(enum.Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    ITERATING = "iterating"
    STOPPED = "stopped"


StatisticsSink: TypeAlias = Callable[[DriverState], None]


class NSBO:
    """Multi-objective Bayesian optimization on the Pareto front of model deviations."""

    def __init__(
        self,
        bounds: list[tuple[float, float]] | torch.Tensor,
        model_factory: ModelFactory,
        sampler: candidates.CandidateSampler,
        should_continue: ContinuationPredicate,
        init: initialization.Initialization | None = None,
        stats: Sequence[StatisticsSink] = (),
        generator: torch.Generator | None = None,
        seed: int | None = None,
    ):
        """Creates the optimizer, call `optimize` to run it.

        :bounds: bounds of the decision space (`[(min, max), ...]` or `2 x d`)
        :model_factory: creates a new, untrained, model for a single objective
        :sampler: proposes the candidates each iteration
        :should_continue: called with the `DriverState`, returns whether to continue
        :init: picks the initial batch, no initial batch if `None`
        :stats: called with the `DriverState` after each iteration
        :generator: source of all randomness, created from `seed` if not given
        :seed: seed for `generator` (ignored if `generator` is given)
        """
        self.bounds = candidates.to_bounds(bounds)
        self.dim = self.bounds.shape[1]

        self.model_factory = model_factory
        self.sampler = sampler
        self.should_continue = should_continue
        self.init = init if init is not None else initialization.NoInit()
        self.stats = list(stats)

        if generator is None:
            generator = torch.Generator()
            if seed is not None:
                generator.manual_seed(seed)
            else:
                generator.seed()
        self.generator = generator

        self.observations = ObservationStore(x_dim=self.dim)
        self.models: tuple[SurrogateModel, ...] = ()
        self.iteration = 0
        self.status = Status.UNINITIALIZED

        self._non_dominated: tuple[pareto.ParetoPoint, ...] = ()
        self._selected: pareto.ParetoPoint | None = None

    @property
    def state(self) -> DriverState:
        return DriverState(
            self.iteration,
            self.observations.all(),
            self.models,
            self.bounds,
            self._non_dominated,
            self._selected,
        )

    def optimize(self, evaluate: EvaluationFunction, reset: bool = True) -> DriverState:
        """Runs the optimization until `should_continue` says otherwise.

        Any error aborts the run and is raised with the iteration and last
        observation attached (`NSBOError.iteration` / `NSBOError.last_observation`).

        :evaluate: the (expensive) function, maps a decision vector to its objectives
        :reset: start over, otherwise continue from the current observations
        """
        try:
            self._initialize(evaluate, reset)

            self.status = Status.ITERATING
            while self.observations.size() == 0 or self.should_continue(self.state):
                self.step(evaluate)

        except NSBOError as error:
            self._annotate(error)
            raise

        self.status = Status.STOPPED
        return self.state

    def step(self, evaluate: EvaluationFunction) -> Observation:
        """Performs a single iteration and returns the new observation."""

        if self.observations.size() == 0:
            print("WARN: NSBO::step is picking randomly because there are no observations.")
            x = torch.as_tensor(self.sampler(self.bounds, self.generator), dtype=torch.double)
            candidates.check_candidates(x, self.bounds)

            self._non_dominated, self._selected = (), None
            query = selection.select(list(x), self.generator)
        else:
            self.models = self._train_models()

            points = candidates.generate_candidates(
                self.models, self.sampler, self.bounds, self.generator
            )
            if not points:
                raise EmptySelection("Sampler did not propose any candidates")

            # Higher deviation is better: query where the models know least.
            self._non_dominated = tuple(pareto.pareto_set(points, maximize=True))
            self._selected = selection.select(self._non_dominated, self.generator)
            query = self._selected.x

        observation = self._evaluate(evaluate, query)
        self.iteration += 1

        self._update_stats()

        return observation

    def _initialize(self, evaluate: EvaluationFunction, reset: bool) -> None:
        if reset:
            # New run, possibly with a different number of objectives.
            self.observations = ObservationStore(x_dim=self.dim)
            self.models = ()
            self.iteration = 0
            self._non_dominated, self._selected = (), None

        if reset or self.observations.size() == 0:
            self.status = Status.INITIALIZING
            for x in self.init(self.bounds, self.generator):
                self._evaluate(evaluate, x)

    def _train_models(self) -> tuple[SurrogateModel, ...]:
        """Returns newly trained models, one per objective, on all observations."""
        x, y = self.observations.x(), self.observations.y()

        models = []
        for i in range(y.shape[1]):
            model = self.model_factory()
            model.train(x, y[:, i])
            models.append(model)

        return tuple(models)

    def _evaluate(self, evaluate: EvaluationFunction, x: torch.Tensor) -> Observation:
        try:
            y = evaluate(x)
        except NSBOError:
            raise
        except Exception as error:
            raise EvaluationFailure(f"Evaluation failed at {x.tolist()}") from error

        return self.observations.append(x, y)

    def _update_stats(self) -> None:
        state = self.state
        for report in self.stats:
            try:
                report(state)
            except Exception as error:
                warnings.warn(f"Statistics {report} failed: {error!r}", RuntimeWarning)

    def _annotate(self, error: NSBOError) -> None:
        error.iteration = self.iteration
        error.last_observation = (
            self.observations.last() if self.observations.size() else None
        )

        last = error.last_observation
        error.add_note(
            f"NSBO run aborted at iteration {self.iteration}, last observation: "
            + (f"{last.x.tolist()} -> {last.y.tolist()}" if last else "none")
        )
