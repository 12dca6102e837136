"""Entry-point for multi-objective optimization on the Pareto front of model uncertainty."""

import argparse

import torch

from nsbo import candidates, conf, initialization, reporting, stopping, surrogates, utils
from nsbo import pareto, test_functions
from nsbo.nsbo import NSBO


def pick_sampler(sampler: str, n: int) -> candidates.CandidateSampler:
    """Instantiate the candidate sampler described by `sampler`"""
    if sampler == "random":
        return candidates.RandomCandidates(n)
    if sampler == "sobol":
        return candidates.SobolCandidates(n)
    if sampler == "grid":
        return candidates.GridCandidates(n)
    if sampler == "jittered-grid":
        return candidates.GridCandidates(n, jitter=True)

    raise ValueError(f"{sampler} is not an accepted candidate sampler")


def main():
    """Main entry NSBO experiments."""
    torch.set_default_dtype(torch.double)

    exp_conf = conf.CONFIG

    parser = argparse.ArgumentParser(description="Command description.")
    for arg, values in exp_conf.items():
        parser.add_argument(
            "-" + values["shorthand"],
            "--" + arg,
            help=values["help"],
            type=values["type"],
            **values["parser-arguments"],
        )

    parser.add_argument(
        "-f", "--save_dir", help="Name of saving directory.", type=str, required=True
    )
    parser.add_argument("--wandb", help="Wandb configuration file.", type=str)
    parser.add_argument(
        "-v", "--verbose", help="Print every iteration.", action="store_true"
    )
    exp_params = vars(parser.parse_args())

    experiment_name = "_".join(
        conf.get_values_with_tag(exp_params, "experiment-parameter", exp_conf)
        + [str(exp_params["seed"])]
    )

    path = exp_params["save_dir"] + "/" + experiment_name + ".pt"

    utils.exit_if_exists(path)
    utils.create_directory_if_does_not_exist(exp_params["save_dir"])

    torch.manual_seed(exp_params["seed"])

    moo_function = test_functions.pick_moo_test_function(
        exp_params["problem"], exp_params["problem_noise"]
    )

    report_step = (
        reporting.initiate_and_create_wandb_logger(
            exp_params["wandb"], exp_params, exp_conf
        )
        if exp_params["wandb"]
        else reporting.print_dot
    )
    stats = [report_step]
    if exp_params["verbose"]:
        stats.append(reporting.print_iteration)

    optimizer = NSBO(
        moo_function.bounds,
        surrogates.gp_factory(moo_function.bounds, exp_params["kernel"]),
        pick_sampler(exp_params["sampler"], exp_params["n_candidates"]),
        stopping.MaxIterations(exp_params["budget"]),
        init=initialization.pick_initialization(
            exp_params["init"], exp_params["n_init"]
        ),
        stats=stats,
        seed=exp_params["seed"],
    )

    print(f"Running experiment for {path}")
    state = optimizer.optimize(moo_function)

    res = {
        "x": state.x(),
        "y": state.y(),
        # BoTorch test problems are minimized.
        "pareto_front": [o.y for o in pareto.pareto_front(state.observations)],
        "conf": exp_params,
    }

    torch.save(res, path)
    print(f"Done experiments, saved results in {path}")


if __name__ == "__main__":
    main()
