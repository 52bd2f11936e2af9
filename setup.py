#!/usr/bin/env python3
from setuptools import setup, find_packages

setup(
    name="partmesh",
    version="0.1.0",
    description="Conversion of partitioned mesh descriptions into high-order unstructured meshes",
    author="partmesh developers",
    packages=find_packages("src"),
    package_dir={"": "src"},
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20.0",
    ],
    extras_require={
        "meshio": ["meshio>=5.0.0"],
        "yaml": ["PyYAML>=5.4"],
        "test": ["pytest>=7.0", "meshio>=5.0.0", "PyYAML>=5.4"],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering",
    ],
)
