from setuptools import setup

setup(
    name="nsbo",
    version="0.1.0",
    package_dir={"": "src"},
    packages=["nsbo"],
    python_requires=">=3.11",
    install_requires=[
        "torch",
        "botorch>=0.9,<0.14",
        "gpytorch",
        "linear_operator",
        "pyyaml",
        "wandb",
    ],
    extras_require={"test": ["pytest"]},
    scripts=[
        "scripts/run_nsbo.py",
    ],
)
