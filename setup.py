#!/usr/bin/env python3
"""
Setup script for sparqlmeta - SPARQL query metadata extraction.
"""

from pathlib import Path
from setuptools import setup, find_packages

# Read README for long description
this_directory = Path(__file__).parent
readme_path = this_directory / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text()

setup(
    name="sparqlmeta",
    version="0.1.0",
    description="Detect outputs, VALUES parameters and placeholders in SPARQL queries",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="Apache-2.0",

    packages=find_packages(exclude=["tests*", "examples*", "docs*"]),
    include_package_data=True,

    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Database",
    ],

    python_requires=">=3.8",

    install_requires=[
        "pyparsing>=3.1.0",
        "rich>=12.0.0",
        "typer>=0.7.0",
        "orjson>=3.9.0",
    ],

    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },

    # Entry points for command-line scripts
    entry_points={
        "console_scripts": [
            "sparqlmeta = sparqlmeta.cli:main",
        ],
    },
)
