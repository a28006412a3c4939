#!/usr/bin/env python

from setuptools import setup

setup(
    name="xcodespec",
    version="0.1.0",
    packages=[
        "xcodespec",
        "xcodespec.details",
        "xcodespec.details.tools",
        "xcodespec.generators",
        "xcodespec.generators.xcode",
    ],
    python_requires=">=3.9",
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={"console_scripts": ["xcodespec = xcodespec.__main__:main"]},
)
