"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

from setuptools import find_packages, setup


# Read version from __init__.py
def get_version():
    with open("src/local_diffusion/__init__.py", "r") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip("\"'")
    return "0.0.1"


setup(
    name="local_diffusion",
    version=get_version(),
    packages=find_packages("src"),
    package_dir={"": "src"},
    install_requires=[
        # Core dependencies
        "numpy>=1.21.0",
        "scipy>=1.12.0",
        "PyYAML>=6.0",
        # Visualization and scripts (optional but commonly used)
        "matplotlib>=3.6.0",
        "tqdm",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov",
            "black",
            "flake8",
        ],
    },
    include_package_data=True,
    zip_safe=False,
    description="Local anisotropic diffusion kernels (G'DG) for 2D and 3D sampled fields",
    long_description="""
    Local Diffusion provides finite-difference kernels that accumulate
    y += G'DGx, where G is a gradient operator and D is a field of
    symmetric positive-semidefinite tensors, one per image sample.

    This package provides tools for:
    - 2D and 3D diffusion kernels with D21, D22, D24, D33, D71 and D91 stencils
    - Race-free multi-threaded application of 3D kernels, plane by plane
    - Array-backed and callable tensor fields
    - Implicit local smoothing filters (I+G'DG)y = x solved by conjugate gradients
    - Visualization utilities
    """,
    long_description_content_type="text/plain",
    author="Cem Bilaloglu",
    author_email="cem.bilaloglu@idiap.ch",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Image Processing",
        "Topic :: Scientific/Engineering :: Mathematics",
        "Topic :: Scientific/Engineering :: Physics",
    ],
    python_requires=">=3.9",
    keywords="diffusion, anisotropic, tensor, finite-difference, stencil, smoothing",
)
