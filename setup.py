"""
Setup script for boltzflow package.
"""

from setuptools import setup, find_packages

setup(
    name="boltzflow",
    version="0.1.0",
    description="Interactive 2D Lattice Boltzmann flow with a threaded BGK collision pool",
    author="Andrey",
    packages=find_packages(include=["boltzflow", "boltzflow.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.20",
        "numba>=0.56",
        "matplotlib>=3.5",
    ],
    extras_require={
        "dev": ["pytest>=7.0", "black", "flake8"],
    },
)
