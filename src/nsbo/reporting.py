"""Stuff for reporting results and progress

Every function here is (or creates) a statistics sink: something that is
called with the `DriverState` after each iteration.
"""

from typing import Any

import yaml

import wandb
from nsbo import conf, utils
from nsbo.nsbo import DriverState, StatisticsSink

StepData = dict[str, Any]


def print_dot(state: DriverState) -> None:
    """Prints a dot to the terminal, can be used to track progress."""
    del state
    print(".", end="", flush=True)


def print_iteration(state: DriverState) -> None:
    """Prints the query, its observation and what the models expected of it"""
    last = state.last
    if last is None:
        return

    line = f"{state.iteration} | {last.x.tolist()} -> {last.y.tolist()}"
    if state.selected is not None:
        line += (
            f" (expected: {state.selected.mu.tolist()})"
            f" sigma: {state.selected.sigma.tolist()}"
        )

    print(line)


def step_data(state: DriverState) -> StepData:
    """Returns the (loggable) numbers of the last iteration of `state`"""
    data: StepData = {"iteration": state.iteration, "n_pareto": len(state.non_dominated)}

    last = state.last
    if last is not None:
        data["query"] = {f"x{i}": x for i, x in enumerate(last.x.tolist())}
        data["objectives"] = {f"obj {i}": y for i, y in enumerate(last.y.tolist())}

    if state.selected is not None:
        data["mu"] = {f"obj {i}": m for i, m in enumerate(state.selected.mu.tolist())}
        data["sigma"] = {
            f"obj {i}": s for i, s in enumerate(state.selected.sigma.tolist())
        }

    return data


def initiate_and_create_wandb_logger(
    path_to_conf_file: str,
    exp_params: dict[str, Any],
    exp_conf: dict[str, dict[str, Any]] | None = None,
) -> StatisticsSink:
    """Wakes up wandb and returns a function that will log the `step_data` of each state."""
    assert path_to_conf_file

    if exp_conf is None:
        exp_conf = conf.CONFIG

    with open(path_to_conf_file) as f:
        wandb_conf = yaml.safe_load(f)

    dir_wandb = "./wandb/" + "_".join(
        conf.get_values_with_tag(exp_params, "experiment-parameter", exp_conf)
    )
    utils.create_directory_if_does_not_exist(dir_wandb)

    wandb_conf["dir"] = dir_wandb

    wandb.init(config=exp_params, **wandb_conf)
    return lambda state: wandb.log(step_data(state), step=state.iteration)
