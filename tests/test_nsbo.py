"""Tests functionality of `nsbo.nsbo`"""

import pytest
import torch

from nsbo import candidates, errors, initialization, stopping, surrogates
from nsbo.nsbo import NSBO, DriverState, Status


def trade_off(x: torch.Tensor) -> torch.Tensor:
    return torch.stack([x[0], 1 - x[0]])


class NearestDataModel:
    """Fake model: `sigma` is the distance to the closest training point

    Checks on every query that it was trained on all observations of `optimizer`.
    """

    def __init__(self, get_optimizer):
        self.get_optimizer = get_optimizer
        self.x: torch.Tensor | None = None

    def train(self, x, y):
        assert len(x) == len(y)
        self.x = x

    def _check_fresh(self):
        assert self.x is not None, "Model queried before training."
        assert (
            len(self.x) == self.get_optimizer().observations.size()
        ), "Model queried while not trained on all observations."

    def mu(self, x):
        self._check_fresh()
        return torch.zeros(len(x), dtype=torch.double)

    def sigma(self, x):
        self._check_fresh()
        return torch.cdist(x, self.x).min(dim=-1).values


def create_optimizer(budget: int = 3, **kwargs) -> NSBO:
    """Utility function to create an `NSBO` with fake models on [0, 1]"""
    optimizer: NSBO | None = None

    kwargs.setdefault("init", initialization.FixedPoints([[0.5]]))
    kwargs.setdefault("seed", 0)

    optimizer = NSBO(
        [(0.0, 1.0)],
        lambda: NearestDataModel(lambda: optimizer),
        candidates.RandomCandidates(32),
        stopping.MaxIterations(budget),
        **kwargs,
    )
    return optimizer


def test_end_to_end():
    """Tests the 2-objective scenario: initial point at x=.5, then 3 iterations"""
    optimizer = NSBO(
        [(0.0, 1.0)],
        surrogates.gp_factory(torch.tensor([[0.0], [1.0]])),
        candidates.RandomCandidates(64),
        stopping.MaxIterations(3),
        init=initialization.FixedPoints([[0.5]]),
        seed=0,
    )
    state = optimizer.optimize(trade_off)

    assert optimizer.status == Status.STOPPED
    assert state.iteration == optimizer.iteration == 3
    assert len(state.observations) == optimizer.observations.size() == 4

    assert state.observations[0].x.tolist() == [0.5]
    for o in state.observations:
        assert 0 <= o.x[0] <= 1
        assert torch.allclose(o.y, trade_off(o.x))

    assert len(state.models) == 2
    assert state.selected is not None
    assert any(state.selected is p for p in state.non_dominated)


@pytest.mark.parametrize("budget", [0, 1, 5])
def test_monotonic_growth(budget: int):
    """Tests that each iteration appends exactly one observation, in order"""
    evaluated = []

    def f(x):
        evaluated.append(x.clone())
        return trade_off(x)

    optimizer = create_optimizer(budget, init=initialization.RandomSampling(2))
    state = optimizer.optimize(f)

    assert state.iteration == budget
    assert len(state.observations) == 2 + budget
    for o, x in zip(state.observations, evaluated, strict=True):
        assert torch.equal(o.x, x)


def test_models_are_fresh():
    """Tests that models are always trained on all observations when queried"""
    optimizer = create_optimizer(6)
    optimizer.optimize(trade_off)

    assert all(len(m.x) == 6 for m in optimizer.models)


def test_queries_are_non_dominated():
    """Tests that each query is on the Pareto front of the deviations"""
    fronts = []

    def record(state: DriverState):
        fronts.append(state)

    create_optimizer(5, stats=[record]).optimize(trade_off)

    assert [s.iteration for s in fronts] == [1, 2, 3, 4, 5]
    for s in fronts:
        assert s.selected is not None and s.non_dominated
        assert torch.equal(s.selected.x, s.last.x)
        assert any(s.selected is p for p in s.non_dominated)


def test_seeded_runs_are_reproducible():
    """Tests that the seed determines the whole run"""
    x1 = create_optimizer(4, seed=7).optimize(trade_off).x()
    x2 = create_optimizer(4, seed=7).optimize(trade_off).x()
    x3 = create_optimizer(4, seed=8).optimize(trade_off).x()

    assert torch.equal(x1, x2)
    assert not torch.equal(x1, x3)


def test_no_init_starts_randomly():
    """Tests that, without observations, the first iteration picks randomly"""
    optimizer = create_optimizer(3, init=None)
    state = optimizer.optimize(trade_off)

    assert state.iteration == 3
    assert len(state.observations) == 3


def test_first_iteration_without_observations_ignores_predicate():
    """Tests that a run always evaluates at least once"""
    state = create_optimizer(0, init=None).optimize(trade_off)

    assert state.iteration == 1
    assert len(state.observations) == 1


def test_continue_without_reset():
    """Tests `reset=False` continues from current observations"""
    optimizer = create_optimizer(2)
    optimizer.optimize(trade_off)

    optimizer.should_continue = stopping.MaxIterations(4)
    state = optimizer.optimize(trade_off, reset=False)

    assert state.iteration == 4
    assert len(state.observations) == 5, "No new initial batch when not resetting."

    state = optimizer.optimize(trade_off, reset=True)
    assert state.iteration == 4
    assert len(state.observations) == 5


def test_evaluation_failure():
    """Tests that a failing evaluation aborts the run with diagnostics"""

    def crash_on_third(x):
        if len(calls) == 2:
            raise OSError("simulator crashed")
        calls.append(x)
        return trade_off(x)

    calls: list = []
    optimizer = create_optimizer(5)

    with pytest.raises(errors.EvaluationFailure) as info:
        optimizer.optimize(crash_on_third)

    assert isinstance(info.value.__cause__, OSError)
    assert info.value.iteration == 1
    assert torch.equal(info.value.last_observation.x, calls[-1])
    assert optimizer.observations.size() == 2
    assert any("iteration 1" in note for note in info.value.__notes__)


def test_wrong_observation_size():
    """Tests that an evaluation with a different number of objectives aborts the run"""
    calls: list = []

    def f(x):
        calls.append(x)
        return torch.zeros(2 if len(calls) < 3 else 3)

    with pytest.raises(errors.DimensionMismatch) as info:
        create_optimizer(5).optimize(f)

    assert info.value.iteration == 1


def test_malformed_candidates():
    """Tests that candidates of the wrong size abort the run"""
    optimizer = create_optimizer(3)
    optimizer.sampler = candidates.PoolCandidates([[0.1, 0.2]])

    with pytest.raises(errors.DimensionMismatch):
        optimizer.optimize(trade_off)

    assert optimizer.iteration == 0


def test_training_failure():
    """Tests that training errors abort the run"""

    class Broken:
        def train(self, x, y):
            raise errors.SurrogateTrainingFailure("singular")

    optimizer = NSBO(
        [(0.0, 1.0)],
        Broken,
        candidates.RandomCandidates(4),
        stopping.MaxIterations(3),
        init=initialization.RandomSampling(2),
    )

    with pytest.raises(errors.SurrogateTrainingFailure) as info:
        optimizer.optimize(trade_off)

    assert info.value.iteration == 0
    assert optimizer.observations.size() == 2


def test_failing_statistics_do_not_stop_optimization():
    """Tests that statistics are fire-and-forget"""
    seen = []

    def broken(state):
        raise IOError("disk full")

    with pytest.warns(RuntimeWarning):
        state = create_optimizer(
            3, stats=[broken, lambda s: seen.append(s.iteration)]
        ).optimize(trade_off)

    assert state.iteration == 3
    assert seen == [1, 2, 3]


def test_pareto_front_stalled_stops_run():
    """Tests a plateau criterion on the (conflict-free) objective"""
    optimizer = create_optimizer(
        50,
        init=initialization.FixedPoints([[0.0]]),
    )
    optimizer.should_continue = stopping.AllOf(
        stopping.MaxIterations(50), stopping.ParetoFrontStalled(3)
    )

    # x = 0 is optimal for both objectives, so the front never changes.
    state = optimizer.optimize(lambda x: torch.stack([x[0], 2 * x[0]]))

    assert state.iteration == 3


def test_queries_where_models_are_most_uncertain():
    """Tests that candidates close to the data (low deviation) are never queried"""
    optimizer = create_optimizer(1)
    optimizer.sampler = candidates.PoolCandidates([[0.0], [0.45], [0.55], [1.0]])

    state = optimizer.optimize(trade_off)

    assert {p.x.item() for p in state.non_dominated} == {0.0, 1.0}
    assert state.last.x.item() in (0.0, 1.0)


def test_reset_allows_different_number_of_objectives():
    """Tests that `reset=True` starts over, including the objective dimension"""
    optimizer = create_optimizer(2)
    optimizer.optimize(trade_off)

    state = optimizer.optimize(
        lambda x: torch.stack([x[0], 1 - x[0], x[0] ** 2]), reset=True
    )

    assert state.iteration == 2
    assert len(state.observations) == 3
    assert all(len(o.y) == 3 for o in state.observations)
    assert len(state.models) == 3


def test_nan_observation_aborts_with_diagnostics():
    """Tests that a NaN objective makes GP training fail with the run's diagnostics"""
    calls: list = []

    def nan_on_second(x):
        calls.append(x)
        if len(calls) == 2:
            return torch.tensor([float("nan"), 0.5])
        return trade_off(x)

    optimizer = NSBO(
        [(0.0, 1.0)],
        surrogates.gp_factory(torch.tensor([[0.0], [1.0]])),
        candidates.RandomCandidates(16),
        stopping.MaxIterations(3),
        init=initialization.FixedPoints([[0.5]]),
        seed=0,
    )

    with pytest.raises(errors.SurrogateTrainingFailure) as info:
        optimizer.optimize(nan_on_second)

    assert info.value.iteration == 1
    assert torch.isnan(info.value.last_observation.y[0])
    assert any("iteration 1" in note for note in info.value.__notes__)
