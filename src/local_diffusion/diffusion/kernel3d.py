"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
3D local diffusion kernels, applied one plane i3 at a time.

Each function accumulates the part of y += c*G'DG*x whose tensors lie in
plane i3 of arrays with shape (n3, n2, n1). It reads x in neighbouring
planes and writes y in the planes given by the stencil footprint (see
stencils.FOOTPRINTS_3D), so that planes far enough apart can be processed
concurrently.
"""

import numpy as np

from ..tensors import tensor_plane3
from .kernel2d import clamped
from .stencils import C71, C91, D22_SCALE_3D, Stencil, d33_coefficients_3d

_ALL = (slice(None), slice(None))
_UPPER = (slice(1, None), slice(1, None))
_INNER = (slice(1, -1), slice(1, -1))


def plane_coefficients(d, c, s, i3, n1, n2, index=_ALL):
    """Returns (d11, d12, d13, d22, d23, d33) = c*s*(a11, ..., a33) in plane i3."""
    entries = tensor_plane3(d, i3, n1, n2)
    csi = c if s is None else c * s[i3][index]
    return tuple(a[index] * csi for a in entries)


def apply21(i3, d, c, s, x, y):
    """D21 for isotropic diffusion only; the tensors d are ignored."""
    n3, n2, n1 = x.shape
    m1 = clamped(n1, -1)
    m2 = clamped(n2, -1)
    m3 = max(i3 - 1, 0)
    x0 = x[i3]
    if s is None:
        cs1 = cs2 = cs3 = c
    else:
        s0 = s[i3]
        cs1 = c * (0.5 * (s0 + s0[:, m1]))
        cs2 = c * (0.5 * (s0 + s0[m2, :]))
        cs3 = c * (0.5 * (s0 + s[m3]))
    y1 = cs1 * (x0 - x0[:, m1])
    y2 = cs2 * (x0 - x0[m2, :])
    y3 = cs3 * (x0 - x[m3])
    y0 = y[i3]
    y0 += y1 + y2 + y3
    y0[:, :-1] -= y1[:, 1:]
    y0[:-1, :] -= y2[1:, :]
    y[m3] -= y3


def apply22(i3, d, c, s, x, y):
    n3, n2, n1 = x.shape
    d11, d12, d13, d22, d23, d33 = plane_coefficients(
        d, c * D22_SCALE_3D, s, i3, n1, n2, _UPPER
    )
    x0, xm = x[i3], x[i3 - 1]
    y0, ym = y[i3], y[i3 - 1]
    p, m = slice(1, None), slice(None, -1)
    xa = x0[p, p] - xm[m, m]
    xb = x0[p, m] - xm[m, p]
    xc = x0[m, p] - xm[p, m]
    xd = xm[p, p] - x0[m, m]
    x1 = xa - xb + xc + xd
    x2 = xa + xb - xc + xd
    x3 = xa + xb + xc - xd
    y1 = d11 * x1 + d12 * x2 + d13 * x3
    y2 = d12 * x1 + d22 * x2 + d23 * x3
    y3 = d13 * x1 + d23 * x2 + d33 * x3
    ya = y1 + y2 + y3
    y0[p, p] += ya
    ym[m, m] -= ya
    yb = y1 - y2 + y3
    y0[m, p] += yb
    ym[p, m] -= yb
    yc = y1 + y2 - y3
    ym[p, p] += yc
    y0[m, m] -= yc
    yd = y1 - y2 - y3
    ym[m, p] += yd
    y0[p, m] -= yd


def apply33(i3, d, c, s, x, y):
    n3, n2, n1 = x.shape
    if n1 < 3 or n2 < 3:
        return
    aa, ab, bb = d33_coefficients_3d()
    d11, d12, d13, d22, d23, d33 = plane_coefficients(d, c, s, i3, n1, n2, _INNER)

    # Offsets -1, 0, +1 along i2 and i1, for the inner samples of a plane.
    window = {-1: slice(None, -2), 0: slice(1, -1), 1: slice(2, None)}

    def xs(k3, k2, k1):
        return x[i3 + k3][window[k2], window[k1]]

    def acc(k3, k2, k1, v):
        y[i3 + k3][window[k2], window[k1]] += v

    x00p00m = xs(0, 0, 1) - xs(0, 0, -1)  # aa differences, used once
    x0p00m0 = xs(0, 1, 0) - xs(0, -1, 0)
    xp00m00 = xs(1, 0, 0) - xs(-1, 0, 0)
    xmp0mm0 = xs(-1, 1, 0) - xs(-1, -1, 0)  # ab differences, used twice
    xpp0pm0 = xs(1, 1, 0) - xs(1, -1, 0)
    xpm0mm0 = xs(1, -1, 0) - xs(-1, -1, 0)
    xpp0mp0 = xs(1, 1, 0) - xs(-1, 1, 0)
    xm0pm0m = xs(-1, 0, 1) - xs(-1, 0, -1)
    xp0pp0m = xs(1, 0, 1) - xs(1, 0, -1)
    xp0mm0m = xs(1, 0, -1) - xs(-1, 0, -1)
    xp0pm0p = xs(1, 0, 1) - xs(-1, 0, 1)
    x0mp0mm = xs(0, -1, 1) - xs(0, -1, -1)
    x0pp0pm = xs(0, 1, 1) - xs(0, 1, -1)
    x0pm0mm = xs(0, 1, -1) - xs(0, -1, -1)
    x0pp0mp = xs(0, 1, 1) - xs(0, -1, 1)
    xpppmmm = xs(1, 1, 1) - xs(-1, -1, -1)  # bb differences, used thrice
    xppmmmp = xs(1, 1, -1) - xs(-1, -1, 1)
    xpmpmpm = xs(1, -1, 1) - xs(-1, 1, -1)
    xmpppmm = xs(-1, 1, 1) - xs(1, -1, -1)
    x1 = (aa * x00p00m
          + ab * (x0pp0pm + x0mp0mm + xp0pp0m + xm0pm0m)
          + bb * (xpppmmm - xppmmmp + xpmpmpm + xmpppmm))
    x2 = (aa * x0p00m0
          + ab * (x0pp0mp + x0pm0mm + xpp0pm0 + xmp0mm0)
          + bb * (xpppmmm + xppmmmp - xpmpmpm + xmpppmm))
    x3 = (aa * xp00m00
          + ab * (xp0pm0p + xp0mm0m + xpp0mp0 + xpm0mm0)
          + bb * (xpppmmm + xppmmmp + xpmpmpm - xmpppmm))
    y1 = d11 * x1 + d12 * x2 + d13 * x3
    y2 = d12 * x1 + d22 * x2 + d23 * x3
    y3 = d13 * x1 + d23 * x2 + d33 * x3

    # (weight, k3, k2, k1): v is added at (k3, k2, k1) and subtracted at the
    # mirrored sample (-k3, -k2, -k1).
    scatter = [
        (aa * y1, 0, 0, 1),
        (aa * y2, 0, 1, 0),
        (aa * y3, 1, 0, 0),
        (ab * (y1 + y2), 0, 1, 1),
        (ab * (y1 - y2), 0, -1, 1),
        (ab * (y1 + y3), 1, 0, 1),
        (ab * (y1 - y3), -1, 0, 1),
        (ab * (y2 + y3), 1, 1, 0),
        (ab * (y2 - y3), -1, 1, 0),
        (bb * (y1 + y2 + y3), 1, 1, 1),
        (bb * (y1 - y2 - y3), -1, -1, 1),
        (bb * (y1 - y2 + y3), 1, -1, 1),
        (bb * (y1 + y2 - y3), -1, 1, 1),
    ]
    for v, k3, k2, k1 in scatter:
        acc(k3, k2, k1, v)
        acc(-k3, -k2, -k1, -v)


def apply_m1(coefficients, i3, d, c, s, x, y):
    """
    Plane kernel for the m-by-1 stencils D71 and D91.

    Derivatives are centred at every sample of plane i3; neighbour indices
    along all three axes are clamped to the array bounds.
    """
    n3, n2, n1 = x.shape
    d11, d12, d13, d22, d23, d33 = plane_coefficients(d, c, s, i3, n1, n2)
    x0 = x[i3]
    taps = []
    for k, ck in enumerate(coefficients, start=1):
        taps.append((ck, clamped(n1, k), clamped(n1, -k),
                     clamped(n2, k), clamped(n2, -k),
                     min(i3 + k, n3 - 1), max(i3 - k, 0)))
    x1 = 0.0
    x2 = 0.0
    x3 = 0.0
    for ck, p1, m1, p2, m2, p3, m3 in taps:
        x1 = x1 + ck * (x0[:, p1] - x0[:, m1])
        x2 = x2 + ck * (x0[p2, :] - x0[m2, :])
        x3 = x3 + ck * (x[p3] - x[m3])
    y1 = d11 * x1 + d12 * x2 + d13 * x3
    y2 = d12 * x1 + d22 * x2 + d23 * x3
    y3 = d13 * x1 + d23 * x2 + d33 * x3
    y0 = y[i3]
    for ck, p1, m1, p2, m2, p3, m3 in taps:
        cy1 = ck * y1
        np.add.at(y0, (slice(None), p1), cy1)
        np.add.at(y0, (slice(None), m1), -cy1)
        cy2 = ck * y2
        np.add.at(y0, p2, cy2)
        np.add.at(y0, m2, -cy2)
        cy3 = ck * y3
        y[p3] += cy3
        y[m3] -= cy3


def apply71(i3, d, c, s, x, y):
    apply_m1(C71, i3, d, c, s, x, y)


def apply91(i3, d, c, s, x, y):
    apply_m1(C91, i3, d, c, s, x, y)


APPLY_PLANE = {
    Stencil.D21: apply21,
    Stencil.D22: apply22,
    Stencil.D33: apply33,
    Stencil.D71: apply71,
    Stencil.D91: apply91,
}


def apply_plane(stencil, i3, d, c, s, x, y):
    """
    Applies the kernel of a stencil for the tensors in plane i3.

    Raises:
        NotImplementedError: If the stencil has no 3D implementation
    """
    if stencil not in APPLY_PLANE:
        raise NotImplementedError(f"Stencil.{stencil.value} not supported for 3D arrays")
    APPLY_PLANE[stencil](i3, d, c, s, x, y)
