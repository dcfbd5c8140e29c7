"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
Local Diffusion - Anisotropic G'DG diffusion kernels for sampled 2D and 3D fields.

This package computes y += c*G'DG*x, where G is a finite-difference gradient
operator, G' its adjoint and D a field of symmetric positive-semidefinite
tensors, one per sample. 3D arrays are processed plane by plane, optionally
with worker threads.

The package is organized into focused submodules:
- core: Configuration (paths, kernel profiles, thread count)
- tensors: Tensor fields read by the kernels
- diffusion: Stencils, kernels, dispatchers and the smoothing filter
- visualization: Matplotlib helpers (imported on demand)
"""

import logging

# Version information
__version__ = "0.1.0"
__author__ = "Cem Bilaloglu"
__email__ = "cem.bilaloglu@idiap.ch"
__license__ = "MIT"

logging.getLogger(__name__).addHandler(logging.NullHandler())

from .core import Config
from .diffusion import (
    Footprint,
    LocalDiffusionKernel,
    LocalSmoothingFilter,
    Stencil,
    footprint_3d,
    loop_parallel,
    loop_serial,
)
from .tensors import (
    ArrayTensors2,
    ArrayTensors3,
    FunctionTensors2,
    FunctionTensors3,
    IdentityTensors2,
    IdentityTensors3,
)

__all__ = [
    "Config",
    "Stencil", "Footprint", "footprint_3d",
    "loop_serial", "loop_parallel",
    "LocalDiffusionKernel", "LocalSmoothingFilter",
    "IdentityTensors2", "IdentityTensors3",
    "ArrayTensors2", "ArrayTensors3",
    "FunctionTensors2", "FunctionTensors3",
]

# Provide easy access to submodules
from . import core
from . import diffusion
from . import tensors
