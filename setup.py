# setup.py
from setuptools import setup, find_packages

setup(
    name="tag-schema",                # the *distribution* name on PyPI
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pandas",                     # DataFrame / Series inputs
        "numpy",                      # ndarray inputs and numpy scalars
        "structlog>=22.1",            # structured logging over stdlib logging
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["tag-schema=tag_schema.cli:main"],
    },
    description="Constraint-tag parser and recursive validator for dataclass records",
    author="Your Name",
    license="Creative Commons Attribution-NonCommercial-ShareAlike 4.0 International License",
)
