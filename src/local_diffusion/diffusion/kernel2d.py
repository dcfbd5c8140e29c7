"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
2D local diffusion kernels, one function per stencil.

Each kernel accumulates y += c*G'DG*x for arrays of shape (n2, n1). The
gradient G is applied to x to obtain local differences (x1, x2), the
tensors D map those to fluxes (y1, y2), and the fluxes are scattered back
into y with the signs of the gather, so that G' is the exact transpose of G.
Kernels never read y.
"""

import numpy as np

from ..tensors import tensor_arrays2
from .stencils import C71, C91, D22_SCALE_2D, Stencil, d24_coefficients, d33_coefficients_2d

_ALL = (slice(None), slice(None))
_UPPER = (slice(1, None), slice(1, None))
_INNER = (slice(1, -1), slice(1, -1))


def clamped(n, k):
    """Returns indices i+k for i = 0, ..., n-1, clamped to [0, n-1]."""
    return np.clip(np.arange(n) + k, 0, n - 1)


def diffusion_coefficients(d, c, s, n1, n2, index=_ALL):
    """Returns (d11, d12, d22) = c*s*(a11, a12, a22) for the samples in index."""
    a11, a12, a22 = tensor_arrays2(d, n1, n2)
    csi = c if s is None else c * s[index]
    return a11[index] * csi, a12[index] * csi, a22[index] * csi


def apply21(d, c, s, x, y):
    """D21 for isotropic diffusion only; the tensors d are ignored."""
    n2, n1 = x.shape
    m1 = clamped(n1, -1)
    m2 = clamped(n2, -1)
    if s is None:
        cs1 = cs2 = c
    else:
        cs1 = c * (0.5 * (s + s[:, m1]))
        cs2 = c * (0.5 * (s + s[m2, :]))
    x1 = x - x[:, m1]
    x2 = x - x[m2, :]
    y1 = cs1 * x1
    y2 = cs2 * x2
    y += y1 + y2
    # Differences at i1 = 0 and i2 = 0 are zero.
    y[:, :-1] -= y1[:, 1:]
    y[:-1, :] -= y2[1:, :]


def apply22(d, c, s, x, y):
    n2, n1 = x.shape
    d11, d12, d22 = diffusion_coefficients(d, c * D22_SCALE_2D, s, n1, n2, _UPPER)
    x00 = x[1:, 1:]
    x0m = x[1:, :-1]
    xm0 = x[:-1, 1:]
    xmm = x[:-1, :-1]
    xa = x00 - xmm
    xb = x0m - xm0
    x1 = xa - xb
    x2 = xa + xb
    y1 = d11 * x1 + d12 * x2
    y2 = d12 * x1 + d22 * x2
    ya = y1 + y2
    yb = y1 - y2
    y[1:, 1:] += ya
    y[1:, :-1] -= yb
    y[:-1, 1:] += yb
    y[:-1, :-1] -= ya


def apply24(d, c, s, x, y):
    n2, n1 = x.shape
    if n1 < 2 or n2 < 2:
        return
    b, scale = d24_coefficients()
    d11, d12, d22 = diffusion_coefficients(d, c * scale, s, n1, n2, _UPPER)

    # Indices i2 (rows) and i1 (columns) for i = 1, ..., n-1, with the
    # wing taps i-2 and i+1 clamped to the array.
    def offsets(n):
        p0 = np.arange(1, n)
        return {"m2": np.maximum(p0 - 2, 0), "m1": p0 - 1,
                "p0": p0, "p1": np.minimum(p0 + 1, n - 1)}

    rows, cols = offsets(n2), offsets(n1)

    def xs(r, k):
        return x[np.ix_(rows[r], cols[k])]

    def acc(r, k, v):
        np.add.at(y, np.ix_(rows[r], cols[k]), v)

    xa = xs("p0", "p0") - xs("m1", "m1")
    xb = xs("m1", "p0") - xs("p0", "m1")
    x1 = xa + xb + b * (xs("p1", "p0") + xs("m2", "p0") - xs("p1", "m1") - xs("m2", "m1"))
    x2 = xa - xb + b * (xs("p0", "p1") + xs("p0", "m2") - xs("m1", "p1") - xs("m1", "m2"))
    y1 = d11 * x1 + d12 * x2
    y2 = d12 * x1 + d22 * x2
    ya = y1 + y2
    yb = y1 - y2
    yc = b * y1
    yd = b * y2
    acc("p0", "p0", ya)
    acc("m1", "m1", -ya)
    acc("m1", "p0", yb)
    acc("p0", "m1", -yb)
    acc("p1", "p0", yc)
    acc("m2", "m1", -yc)
    acc("m2", "p0", yc)
    acc("p1", "m1", -yc)
    acc("p0", "p1", yd)
    acc("m1", "m2", -yd)
    acc("p0", "m2", yd)
    acc("m1", "p1", -yd)


def apply33(d, c, s, x, y):
    n2, n1 = x.shape
    if n1 < 3 or n2 < 3:
        return
    b, scale = d33_coefficients_2d()
    d11, d12, d22 = diffusion_coefficients(d, c * scale, s, n1, n2, _INNER)
    m, o, p = slice(None, -2), slice(1, -1), slice(2, None)
    xa = b * (x[p, p] - x[m, m])
    xb = b * (x[m, p] - x[p, m])
    x1 = x[o, p] - x[o, m] + xa + xb
    x2 = x[p, o] - x[m, o] + xa - xb
    y1 = d11 * x1 + d12 * x2
    y2 = d12 * x1 + d22 * x2
    ya = b * (y1 + y2)
    yb = b * (y1 - y2)
    y[o, p] += y1
    y[o, m] -= y1
    y[p, p] += ya
    y[m, m] -= ya
    y[m, p] += yb
    y[p, m] -= yb
    y[p, o] += y2
    y[m, o] -= y2


def apply_m1(coefficients, d, c, s, x, y):
    """
    Kernel for the m-by-1 stencils D71 and D91.

    Derivatives are centred at every sample, sum_k c[k]*(x[i+k]-x[i-k]),
    with indices i+k and i-k clamped to the array bounds.
    """
    n2, n1 = x.shape
    d11, d12, d22 = diffusion_coefficients(d, c, s, n1, n2)
    taps = [(ck, clamped(n1, k), clamped(n1, -k), clamped(n2, k), clamped(n2, -k))
            for k, ck in enumerate(coefficients, start=1)]
    x1 = 0.0
    x2 = 0.0
    for ck, p1, m1, p2, m2 in taps:
        x1 = x1 + ck * (x[:, p1] - x[:, m1])
        x2 = x2 + ck * (x[p2, :] - x[m2, :])
    y1 = d11 * x1 + d12 * x2
    y2 = d12 * x1 + d22 * x2
    for ck, p1, m1, p2, m2 in taps:
        cy1 = ck * y1
        np.add.at(y, (slice(None), p1), cy1)
        np.add.at(y, (slice(None), m1), -cy1)
        cy2 = ck * y2
        np.add.at(y, p2, cy2)
        np.add.at(y, m2, -cy2)


def apply71(d, c, s, x, y):
    apply_m1(C71, d, c, s, x, y)


def apply91(d, c, s, x, y):
    apply_m1(C91, d, c, s, x, y)


APPLY_2D = {
    Stencil.D21: apply21,
    Stencil.D22: apply22,
    Stencil.D24: apply24,
    Stencil.D33: apply33,
    Stencil.D71: apply71,
    Stencil.D91: apply91,
}


def apply_2d(stencil, d, c, s, x, y):
    """Accumulates y += c*G'DG*x for the given stencil."""
    APPLY_2D[stencil](d, c, s, x, y)
