#!/usr/bin/env python

from setuptools import setup, find_packages

setup(name="clarkevans",
      version="0.1.0",
      description="Clark-Evans nearest neighbor analysis of spatial point patterns",
      packages=find_packages(include=["clarkevans"]),
      python_requires=">=3.10",
      install_requires=[
            "numpy",
            "numba",
            "pandas",
            "pyarrow",
            "pyyaml",
            "scikit-learn",
            "joblib",
            "shapely>=2.0",
            "pyproj",
      ],
      extras_require={
            "test": [
                  "pytest",
            ]
      }
      )
