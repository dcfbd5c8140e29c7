"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
Local diffusion kernels and filters.

This submodule contains:
- Stencils and their 3D plane footprints
- Vectorized 2D kernels and per-plane 3D kernels for y += c*G'DG*x
- Serial and multi-threaded plane dispatchers
- LocalDiffusionKernel, the public facade
- LocalSmoothingFilter, which solves (I+G'DG)y = x, and the 3x3 smoothing filter S

Dependencies: local_diffusion.core, local_diffusion.tensors, numpy, scipy
"""

from .local_diffusion_kernel import LocalDiffusionKernel
from .local_smoothing import LocalSmoothingFilter, jacobi_diagonal, smooth_s
from .parallel import AtomicCounter, loop_parallel, loop_serial
from .stencils import FOOTPRINTS_3D, Footprint, Stencil, footprint_3d

__all__ = [
    'Stencil', 'Footprint', 'FOOTPRINTS_3D', 'footprint_3d',
    'AtomicCounter', 'loop_serial', 'loop_parallel',
    'LocalDiffusionKernel',
    'LocalSmoothingFilter', 'jacobi_diagonal', 'smooth_s',
]
