"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

import logging

import numpy as np
from scipy.linalg import solveh_banded
from scipy.sparse.linalg import LinearOperator, cg

from ..core import Config
from ..tensors import as_tensors2, as_tensors3
from .kernel2d import clamped, diffusion_coefficients
from .kernel3d import plane_coefficients
from .local_diffusion_kernel import LocalDiffusionKernel
from .stencils import D22_SCALE_2D, D22_SCALE_3D, Stencil

logger = logging.getLogger(__name__)

_UPPER = (slice(1, None), slice(1, None))


class LocalSmoothingFilter:
    """
    Local smoothing of images with tensor filter coefficients.

    Smoothing is performed by solving the sparse symmetric positive-definite
    system (I+G'DG)y = x, where G is a gradient operator, D is a tensor field,
    x is an input image and y is the output image. The system is solved by
    conjugate gradients beginning with y = x. Iterations stop when the norm
    of the residual falls below small times the norm of x, or after niter
    iterations.

    For low wavenumbers the output approximates the solution of an
    anisotropic inhomogeneous diffusion equation, where x is the initial
    condition at time t = 0 and y the solution at some later time t.
    """

    def __init__(self, small=0.01, niter=100, kernel=None, preconditioner=False):
        """
        Parameters:
        - small (float): Stop when the residual norm is less than small*|x| (default: 0.01).
        - niter (int): Maximum number of iterations (default: 100).
        - kernel (LocalDiffusionKernel): Computes y += G'DGx (default: D22 stencil).
        - preconditioner (bool): Use a Jacobi preconditioner (default: False).
        """
        if small <= 0.0:
            raise ValueError(f"small must be positive, got {small}")
        if niter < 1:
            raise ValueError(f"niter must be positive, got {niter}")
        self.small = float(small)
        self.niter = int(niter)
        self.kernel = kernel if kernel is not None else LocalDiffusionKernel(Stencil.D22)
        self.preconditioner = bool(preconditioner)
        self.last_iterations = 0

    def __repr__(self):
        return (
            f"<LocalSmoothingFilter: small={self.small}, niter={self.niter}, "
            f"stencil={self.kernel.stencil.value}, preconditioner={self.preconditioner}>"
        )

    @classmethod
    def from_config(cls, profile="default"):
        """Constructs a smoothing filter from a profile in config/kernels.yaml."""
        params = Config.load_kernel_config(profile)
        kernel = LocalDiffusionKernel(
            stencil=params.get("stencil", "D22"),
            parallel=params.get("parallel", True),
            num_threads=params.get("num_threads"),
        )
        return cls(
            small=params.get("small", 0.01),
            niter=params.get("niter", 100),
            kernel=kernel,
            preconditioner=params.get("preconditioner", False),
        )

    def set_preconditioner(self, pc):
        """
        Sets the use of a preconditioner in this local smoothing filter.

        A preconditioner requires extra memory and more computing time per
        iteration, but may result in fewer iterations.
        """
        self.preconditioner = bool(pc)

    def apply(self, tensors, x, c=1.0, s=None):
        """
        Solves (I+c*G'DG)y = x for y.

        Parameters:
        - tensors: 2D or 3D tensor field, callable, or None for identity tensors.
        - x (np.ndarray): Input image of shape (n2, n1) or (n3, n2, n1).
        - c (float): Constant scale factor for tensor coefficients (default: 1).
        - s (np.ndarray): Optional per-sample scale factors with the shape of x.

        Returns:
        - np.ndarray: The smoothed image y.
        """
        b = np.array(x, dtype=float)
        return self._solve(tensors, b, b.copy(), c, s)

    def apply_notch(self, tensors, x, c=1.0, s=None):
        """
        Solves (I+c*G'DG)y = c*G'DGx for y.

        This filter attenuates features for which G'DG is zero while
        preserving other features.
        """
        x = np.array(x, dtype=float)
        b = np.zeros_like(x)
        self.kernel.apply(tensors, x, b, c=c, s=s)
        return self._solve(tensors, b, np.zeros_like(x), c, s)

    def apply_1d(self, x, c=1.0, s=None):
        """
        Solves (I+c*G'DG)y = x for a 1D array x.

        Local smoothing of 1D arrays requires no tensors; the system is
        tridiagonal and solved directly.

        Parameters:
        - x (np.ndarray): Input array of length n1.
        - c (float): Constant scale factor (default: 1).
        - s (np.ndarray): Optional scale factors of length n1.

        Returns:
        - np.ndarray: The smoothed array y.
        """
        x = np.asarray(x, dtype=float)
        if x.ndim != 1:
            raise ValueError(f"apply_1d requires a 1D array, got ndim={x.ndim}")
        n1 = x.shape[0]
        if n1 == 0:
            return x.copy()

        # Sub-diagonal e of I+G'DG, with e[0] = e[n1] = 0.
        e = np.zeros(n1 + 1)
        if s is None:
            e[1:n1] = -c
        else:
            s = np.asarray(s, dtype=float)
            if s.shape != x.shape:
                raise ValueError(f"Shapes of x {x.shape} and s {s.shape} differ")
            e[1:n1] = -0.5 * c * (s[1:] + s[:-1])

        ab = np.zeros((2, n1))
        ab[0, 1:] = e[1:n1]
        ab[1, :] = 1.0 - e[:-1] - e[1:]
        return solveh_banded(ab, x)

    def apply_smooth_s(self, x, y=None):
        """
        Applies the 3x3 (or 3x3x3) weighted-average smoothing filter S.

        Returns y, which may be x itself. See smooth_s.
        """
        return smooth_s(x, y)

    def _solve(self, tensors, b, y0, c, s):
        if b.ndim not in (2, 3):
            raise ValueError(f"Arrays must be 2D or 3D, got ndim={b.ndim}")
        shape = b.shape
        n = b.size
        a = LinearOperator((n, n), matvec=self._operator(tensors, c, s, shape), dtype=float)
        m = None
        if self.preconditioner:
            p = jacobi_diagonal(tensors, c, s, shape).ravel()
            m = LinearOperator((n, n), matvec=lambda r: p * np.ravel(r), dtype=float)

        iterations = [0]

        def count(xk):
            iterations[0] += 1

        bnorm = np.linalg.norm(b)
        logger.debug("solve: shape=%s bnorm=%g", shape, bnorm)
        y, info = cg(a, b.ravel(), x0=y0.ravel(), rtol=self.small,
                     maxiter=self.niter, M=m, callback=count)
        self.last_iterations = iterations[0]
        if info > 0:
            logger.warning(
                "conjugate gradients did not converge in %d iterations", self.niter
            )
        elif info < 0:
            raise ValueError(f"conjugate gradients failed with info={info}")
        rnorm = np.linalg.norm(b.ravel() - a.matvec(y))
        logger.info(
            "solve: %d iterations, residual ratio %.3g",
            self.last_iterations, rnorm / bnorm if bnorm > 0.0 else 0.0,
        )
        return y.reshape(shape)

    def _operator(self, tensors, c, s, shape):
        def matvec(v):
            v = np.asarray(v, dtype=float).reshape(shape)
            q = v.copy()
            self.kernel.apply(tensors, v, q, c=c, s=s)
            return q.ravel()

        return matvec


def jacobi_diagonal(tensors, c, s, shape):
    """
    Returns the inverse diagonal of I+c*G'DG for the D22 stencil.

    Parameters:
    - tensors: 2D or 3D tensor field, callable, or None for identity tensors.
    - c (float): Constant scale factor.
    - s (np.ndarray): Optional per-sample scale factors.
    - shape (tuple): (n2, n1) or (n3, n2, n1).
    """
    p = np.ones(shape)
    if len(shape) == 2:
        n2, n1 = shape
        d = as_tensors2(tensors)
        d11, d12, d22 = diffusion_coefficients(d, c * D22_SCALE_2D, s, n1, n2, _UPPER)
        pa = (d11 + d12) + (d12 + d22)
        pb = (d11 - d12) + (-d12 + d22)
        p[1:, 1:] += pa
        p[:-1, :-1] += pa
        p[1:, :-1] += pb
        p[:-1, 1:] += pb
    else:
        n3, n2, n1 = shape
        d = as_tensors3(tensors)
        for i3 in range(1, n3):
            d11, d12, d13, d22, d23, d33 = plane_coefficients(
                d, c * D22_SCALE_3D, s, i3, n1, n2, _UPPER
            )
            pa = (d11 + d12 + d13) + (d12 + d22 + d23) + (d13 + d23 + d33)
            pb = (d11 - d12 + d13) + (-d12 + d22 - d23) + (d13 - d23 + d33)
            pc = (d11 + d12 - d13) + (d12 + d22 - d23) + (-d13 - d23 + d33)
            pd = (d11 - d12 - d13) + (-d12 + d22 + d23) + (-d13 + d23 + d33)
            p0, pm = p[i3], p[i3 - 1]
            p0[1:, 1:] += pa
            pm[:-1, :-1] += pa
            p0[:-1, 1:] += pb
            pm[1:, :-1] += pb
            pm[1:, 1:] += pc
            p0[:-1, :-1] += pc
            pm[:-1, 1:] += pd
            p0[1:, :-1] += pd
    return 1.0 / p


def smooth_s(x, y=None):
    """
    Applies a simple 3x3 or 3x3x3 weighted-average smoothing filter S.

    The weights are the outer product of (1/4, 1/2, 1/4) along every axis, so
    in 2D the center weighs 1/4, edge neighbours 1/8 and corner neighbours
    1/16. Samples beyond the array bounds are replaced by the nearest edge
    sample, so constant arrays are unchanged.

    Parameters:
    - x (np.ndarray): Input array of shape (n2, n1) or (n3, n2, n1).
    - y (np.ndarray): Optional output array with the shape of x; may be x.

    Returns:
    - np.ndarray: The smoothed array, y if given.
    """
    t = np.array(x, dtype=float)
    if t.ndim not in (2, 3):
        raise ValueError(f"Arrays must be 2D or 3D, got ndim={t.ndim}")
    for axis, n in enumerate(t.shape):
        t = 0.5 * t + 0.25 * (
            np.take(t, clamped(n, -1), axis=axis) + np.take(t, clamped(n, 1), axis=axis)
        )
    if y is None:
        return t
    if not isinstance(y, np.ndarray) or y.shape != t.shape:
        raise ValueError(f"Output y must be an array of shape {t.shape}")
    y[...] = t
    return y
