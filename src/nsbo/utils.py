"""Odd functions one may need but is otherwise not really core."""

import os


def exit_if_exists(path: str, negate=False):
    """Exits with an error if `path` exists.

    Set `negate` to true if you want to fail *if `path` does not exist*
    """
    if os.path.exists(path) is not negate:
        msg = "does not exist" if negate else "already exists"
        raise ValueError(f"File {path} {msg}, aborting run!")


def create_directory_if_does_not_exist(path: str):
    if not os.path.exists(path):
        print(f"Creating {path}")
        os.makedirs(path)
