from __future__ import annotations

from setuptools import find_packages, setup


setup(
    name="structrefine",
    version="0.1.0",
    description="Reachability-based refinement of structured decompiler output",
    packages=find_packages(include=["structrefine", "structrefine.*"]),
    python_requires=">=3.10",
    install_requires=[
        "z3-solver",
        "colorama",
    ],
    extras_require={
        "testing": [
            "pytest",
        ],
    },
)
