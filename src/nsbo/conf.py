"""Contains data and functions for handling experiment configurations"""

from typing import Any

CONFIG: dict[str, dict[str, Any]] = {
    "seed": {
        "type": int,
        "shorthand": "s",
        "help": "Random seed to run the experiment.",
        "tags": {},
        "parser-arguments": {"default": 0},
    },
    "budget": {
        "type": int,
        "shorthand": "b",
        "help": "Number of iterations (queries after the initial batch).",
        "tags": {"experiment-hyper-parameter"},
        "parser-arguments": {"default": 10},
    },
    "n_init": {
        "type": int,
        "shorthand": "ni",
        "help": "Number of initial data points (per dimension for 'grid').",
        "tags": {"experiment-hyper-parameter"},
        "parser-arguments": {"default": 1},
    },
    "init": {
        "type": str,
        "shorthand": "i",
        "help": "How to pick the initial data points.",
        "tags": {"experiment-parameter"},
        "parser-arguments": {
            "default": "random",
            "choices": {"none", "random", "sobol", "grid"},
        },
    },
    "kernel": {
        "type": str,
        "shorthand": "k",
        "help": "Kernel of the GP.",
        "tags": {"experiment-parameter"},
        "parser-arguments": {
            "default": "Default",
            "choices": {"RBF", "Matern", "Default"},
        },
    },
    "sampler": {
        "type": str,
        "shorthand": "c",
        "help": "How candidates are generated each iteration.",
        "tags": {"experiment-parameter"},
        "parser-arguments": {
            "default": "random",
            "choices": {"random", "sobol", "grid", "jittered-grid"},
        },
    },
    "n_candidates": {
        "type": int,
        "shorthand": "nc",
        "help": "Number of candidates (per dimension for the grids).",
        "tags": {"experiment-hyper-parameter"},
        "parser-arguments": {"default": 256},
    },
    "problem": {
        "type": str,
        "shorthand": "p",
        "help": "Multi-objective test function to optimize.",
        "tags": {"experiment-parameter"},
        "parser-arguments": {
            "required": True,
            "choices": {
                "TradeOff": {"dims": 1, "num_objectives": 2},
                "BraninCurrin": {"dims": 2, "num_objectives": 2},
                "ZDT1": {"dims": 4, "num_objectives": 2},
                "DTLZ2": {"dims": 3, "num_objectives": 2},
            },
        },
    },
    "problem_noise": {
        "type": float,
        "shorthand": "e",
        "help": "The Gaussian noise (deviation) with which each objective is observed.",
        "tags": {"experiment-hyper-parameter"},
        "parser-arguments": {"default": None, "nargs": "+"},
    },
}


def get_values_with_tag(
    exp_params: dict[str, Any],
    tag: str,
    exp_conf: dict[str, dict[str, Any]] | None = None,
) -> list[str]:
    """Returns values in `exp_params` of entries with keys that have `tag` in `exp_conf"""
    if exp_conf is None:
        exp_conf = CONFIG
    return [
        str(v)
        for k, v in exp_params.items()
        if k in exp_conf and tag in exp_conf[k]["tags"]
    ]
