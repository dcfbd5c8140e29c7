"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

import logging

import numpy as np

from ..core import Config
from ..tensors import as_tensors2, as_tensors3
from .kernel2d import apply_2d
from .kernel3d import apply_plane
from .parallel import loop_parallel, loop_serial
from .stencils import Stencil, footprint_3d

logger = logging.getLogger(__name__)


class LocalDiffusionKernel:
    """
    A local diffusion kernel for use in anisotropic diffusion filtering.

    This kernel computes y += G'DGx where G is a gradient operator, G' is its
    adjoint, and D is a local diffusion tensor field that determines for each
    sample the filter coefficients.

    A local diffusion kernel is typically used in combination with others.
    The filter implied by (I+G'DG)y = G'DGx acts as a notch filter: it
    attenuates features for which G'DG is zero while preserving others. The
    filter implied by (I+G'DG)y = x smooths features in the directions implied
    by the tensors D. Both require solving a sparse symmetric positive-definite
    system; see LocalSmoothingFilter.

    Given y = 0, this kernel computes y = G'DGx. Given y = x, it computes
    y = (I+G'DG)x.
    """

    def __init__(self, stencil=Stencil.D22, parallel=True, num_threads=None, npass=1):
        """
        Parameters:
        - stencil (Stencil or str): Stencil used to approximate derivatives (default: D22).
        - parallel (bool): Use worker threads for 3D arrays (default: True).
        - num_threads (int): Worker threads per pass (default: Config.get_num_threads()).
        - npass (int): Number of kernel passes per apply (default: 1).
        """
        self._stencil = Stencil.from_name(stencil)
        self._parallel = bool(parallel)
        self._num_threads = None
        self._npass = 1
        self.set_num_threads(num_threads)
        self.set_number_of_passes(npass)

    def __repr__(self):
        return (
            f"<LocalDiffusionKernel: stencil={self._stencil.value}, "
            f"parallel={self._parallel}, npass={self._npass}>"
        )

    @classmethod
    def from_config(cls, profile="default"):
        """Constructs a kernel from a profile in config/kernels.yaml."""
        params = Config.load_kernel_config(profile)
        return cls(
            stencil=params.get("stencil", "D22"),
            parallel=params.get("parallel", True),
            num_threads=params.get("num_threads"),
            npass=params.get("npass", 1),
        )

    @property
    def stencil(self):
        return self._stencil

    @property
    def parallel(self):
        return self._parallel

    @property
    def num_threads(self):
        if self._num_threads is None:
            return Config.get_num_threads()
        return self._num_threads

    @property
    def npass(self):
        return self._npass

    def set_parallel(self, parallel):
        """Enables or disables worker threads for 3D arrays."""
        self._parallel = bool(parallel)

    def set_num_threads(self, num_threads):
        """Sets the number of worker threads; None for the configured default."""
        if num_threads is not None and int(num_threads) < 1:
            raise ValueError(f"num_threads must be positive, got {num_threads}")
        self._num_threads = None if num_threads is None else int(num_threads)

    def set_number_of_passes(self, npass):
        """
        Sets the number of kernel passes in each apply of this filter.

        For example, if npass = 2, the output is computed in two passes:
        (1) y += G'DGx, (2) y += G'DGy.
        """
        if int(npass) < 1:
            raise ValueError(f"npass must be positive, got {npass}")
        self._npass = int(npass)

    def apply(self, tensors, x, y, c=1.0, s=None):
        """
        Accumulates y += c*G'DG*x, with tensors scaled by s where given.

        Parameters:
        - tensors: Tensor field with get(i1, i2[, i3]), a callable with the
          same signature, or None for identity tensors.
        - x (np.ndarray): Input array of shape (n2, n1) or (n3, n2, n1).
        - y (np.ndarray): Output array with the shape of x; updated in place.
        - c (float): Constant scale factor for tensor coefficients (default: 1).
        - s (np.ndarray): Optional per-sample scale factors with the shape of x.

        Raises:
        - ValueError: If the arrays are inconsistent or x and y share memory.
        - TypeError: If tensors is not a tensor field or y is not a float array.
        - NotImplementedError: If the stencil is not available for 3D arrays.
        """
        x = np.asarray(x)
        s = None if s is None else np.asarray(s)
        self._check_arrays(tensors, x, y, s)
        if x.ndim == 2:
            self._apply_2d(as_tensors2(tensors), c, s, x, y)
        else:
            self._apply_3d(as_tensors3(tensors), c, s, x, y)

    def _check_arrays(self, tensors, x, y, s):
        if x.ndim not in (2, 3):
            raise ValueError(f"Arrays must be 2D or 3D, got ndim={x.ndim}")
        if not isinstance(y, np.ndarray):
            raise TypeError("Output y must be a numpy array")
        if not np.issubdtype(y.dtype, np.floating):
            raise TypeError(f"Output y must be a floating-point array, got {y.dtype}")
        if y.shape != x.shape:
            raise ValueError(f"Shapes of x {x.shape} and y {y.shape} differ")
        if s is not None and s.shape != x.shape:
            raise ValueError(f"Shapes of x {x.shape} and s {s.shape} differ")
        if np.shares_memory(x, y):
            raise ValueError("Input x and output y must not share memory")
        if s is not None and np.shares_memory(s, y):
            raise ValueError("Scale factors s and output y must not share memory")
        shape = getattr(tensors, "shape", None)
        if shape is not None and tuple(shape) != x.shape:
            raise ValueError(f"Tensor field shape {tuple(shape)} differs from {x.shape}")
        if x.ndim == 3:
            footprint_3d(self._stencil)

    def _apply_2d(self, d, c, s, x, y):
        for ipass in range(self._npass):
            if ipass > 0:
                x = y.copy()
            apply_2d(self._stencil, d, c, s, x, y)

    def _apply_3d(self, d, c, s, x, y):
        footprint = footprint_3d(self._stencil)
        start = footprint.start
        step = footprint.step
        stop = footprint.stop(x.shape[0])
        stencil = self._stencil
        for ipass in range(self._npass):
            if ipass > 0:
                x = y.copy()

            def body(i3, x=x):
                apply_plane(stencil, i3, d, c, s, x, y)

            if self._parallel:
                loop_parallel(start, step, stop, body, self.num_threads)
            else:
                loop_serial(start, stop, body, step)
