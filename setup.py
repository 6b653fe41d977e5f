""".

Setup configuration for the mapfit package.

Version 0.1.0 - Exhaustive rotation/translation search of live elevation
maps in reference maps with NCC, SSD, SAD and mutual information scoring.
"""

from setuptools import find_packages, setup

setup(
    name="mapfitter",
    version="0.1.0",
    packages=find_packages(include=["mapfit", "mapfit.*"]),
    py_modules=["mapfit_cli"],
    install_requires=[
        "numpy>=1.20.0",
        "scipy>=1.6.0",
        "matplotlib>=3.3.0",
        "typer>=0.9.0",
        "rich>=10.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mapfit=mapfit.cli.main:main",
        ],
    },
    description="Exhaustive pose search of live elevation maps in reference elevation maps",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering",
    ],
    python_requires=">=3.8",
)
