"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
Tensor fields that control the local diffusion kernels.

This module contains:
- Identity tensor fields (the default when no tensors are given)
- Array-backed tensor fields, optionally built from eigenvectors
- Wrappers for closed-form tensor functions
- Helpers that gather tensor entries for whole grids or planes

Dependencies: numpy
"""

from .tensor_fields import (
    IDENTITY_TENSORS2,
    IDENTITY_TENSORS3,
    ArrayTensors2,
    ArrayTensors3,
    FunctionTensors2,
    FunctionTensors3,
    IdentityTensors2,
    IdentityTensors3,
    as_tensors2,
    as_tensors3,
    tensor_arrays2,
    tensor_plane3,
)

__all__ = [
    'IDENTITY_TENSORS2', 'IDENTITY_TENSORS3',
    'IdentityTensors2', 'IdentityTensors3',
    'ArrayTensors2', 'ArrayTensors3',
    'FunctionTensors2', 'FunctionTensors3',
    'as_tensors2', 'as_tensors3',
    'tensor_arrays2', 'tensor_plane3',
]
