"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
Unit tests for the 3D local diffusion kernels, applied serially and with
worker threads.
"""

import numpy as np
import pytest

from local_diffusion import LocalDiffusionKernel, Stencil, footprint_3d
from local_diffusion.tensors import ArrayTensors3

STENCILS_3D = [Stencil.D21, Stencil.D22, Stencil.D33, Stencil.D71, Stencil.D91]
SHAPE = (12, 6, 7)


def apply(stencil, tensors, x, c=1.0, s=None, parallel=False, num_threads=3):
    y = np.zeros_like(x)
    kernel = LocalDiffusionKernel(stencil, parallel=parallel, num_threads=num_threads)
    kernel.apply(tensors, x, y, c=c, s=s)
    return y


@pytest.mark.parametrize("parallel", [False, True])
@pytest.mark.parametrize("stencil", STENCILS_3D)
def test_self_adjoint(stencil, parallel, rng, random_tensors3):
    d = random_tensors3(SHAPE)
    s = rng.uniform(0.5, 2.0, SHAPE)
    x = rng.standard_normal(SHAPE)
    z = rng.standard_normal(SHAPE)
    zax = np.sum(z * apply(stencil, d, x, c=0.8, s=s, parallel=parallel))
    xaz = np.sum(x * apply(stencil, d, z, c=0.8, s=s, parallel=parallel))
    assert zax == pytest.approx(xaz, rel=1e-10)


@pytest.mark.parametrize("stencil", STENCILS_3D)
def test_constant_volume_is_annihilated(stencil, random_tensors3):
    y = apply(stencil, random_tensors3(SHAPE), np.full(SHAPE, -2.0), parallel=True)
    np.testing.assert_allclose(y, 0.0, atol=1e-12)


@pytest.mark.parametrize("stencil", [s for s in STENCILS_3D if s is not Stencil.D21])
def test_zero_tensors_leave_y_unchanged(stencil, rng):
    zeros = np.zeros(SHAPE)
    x = rng.standard_normal(SHAPE)
    y = rng.standard_normal(SHAPE)
    y0 = y.copy()
    kernel = LocalDiffusionKernel(stencil, num_threads=4)
    kernel.apply(ArrayTensors3(*[zeros] * 6), x, y)
    np.testing.assert_array_equal(y, y0)


@pytest.mark.parametrize("stencil", [Stencil.D21, Stencil.D22])
def test_serial_parallel_bit_exact_for_dyadic_data(stencil, rng):
    # Small integers and power-of-two weights: every sum is exact, so the
    # order in which planes are accumulated cannot matter.
    x = rng.integers(-8, 9, SHAPE).astype(float)
    serial = apply(stencil, None, x, parallel=False)
    for num_threads in [1, 2, 5]:
        parallel = apply(stencil, None, x, parallel=True, num_threads=num_threads)
        np.testing.assert_array_equal(parallel, serial)


@pytest.mark.parametrize("stencil", STENCILS_3D)
def test_serial_parallel_bit_exact(stencil, rng, random_tensors3):
    # Serial planes follow the parallel passes, so every output plane sums
    # its contributions in the same order.
    d = random_tensors3(SHAPE)
    s = rng.uniform(0.5, 2.0, SHAPE)
    x = rng.standard_normal(SHAPE)
    serial = apply(stencil, d, x, c=0.7, s=s, parallel=False)
    for num_threads in [1, 2, 4, 7]:
        parallel = apply(stencil, d, x, c=0.7, s=s, parallel=True, num_threads=num_threads)
        np.testing.assert_array_equal(parallel, serial)


@pytest.mark.parametrize("stencil", STENCILS_3D)
def test_point_source_locality(stencil):
    fp = footprint_3d(stencil)
    reach = fp.back + fp.ahead
    n3 = 24
    k = 11
    x = np.zeros((n3, 5, 5))
    x[k, 2, 2] = 1.0
    y = apply(stencil, None, x, parallel=True)
    touched = np.flatnonzero(np.any(y != 0.0, axis=(1, 2)))
    assert touched.size > 0
    assert touched.min() >= k - reach
    assert touched.max() <= k + reach


@pytest.mark.parametrize("stencil", [Stencil.D21, Stencil.D71, Stencil.D91])
def test_single_plane_matches_2d(stencil, rng):
    x2 = rng.standard_normal((6, 7))
    y2 = np.zeros_like(x2)
    LocalDiffusionKernel(stencil).apply(None, x2, y2)
    y3 = apply(stencil, None, x2[np.newaxis], parallel=True)
    np.testing.assert_allclose(y3[0], y2, rtol=1e-12, atol=1e-14)


def test_d22_point_source_3d():
    x = np.zeros((3, 3, 3))
    x[1, 1, 1] = 1.0
    y = apply(Stencil.D22, None, x)
    # Each of the 8 cells around the source contributes 3*0.0625 at the
    # centre and -3*0.0625 at its opposite corner.
    assert y[1, 1, 1] == pytest.approx(8 * 3 * 0.0625)
    for i3 in (0, 2):
        for i2 in (0, 2):
            for i1 in (0, 2):
                assert y[i3, i2, i1] == pytest.approx(-3 * 0.0625)
    assert y[1, 1, 0] == pytest.approx(0.25)
    assert y[0, 1, 1] == pytest.approx(0.25)
    assert y[1, 0, 0] == pytest.approx(-0.125)
    assert np.sum(y) == pytest.approx(0.0, abs=1e-15)


@pytest.mark.parametrize("stencil", [Stencil.D22, Stencil.D33])
def test_thin_volumes(stencil):
    for shape in [(1, 4, 4), (2, 4, 4), (3, 1, 4)]:
        x = np.arange(np.prod(shape), dtype=float).reshape(shape)
        y = apply(stencil, None, x, parallel=True)
        assert np.all(np.isfinite(y))


def test_multiple_passes_3d(rng, random_tensors3):
    d = random_tensors3(SHAPE)
    x = rng.standard_normal(SHAPE)
    y1 = apply(Stencil.D33, d, x)
    expected = y1.copy()
    LocalDiffusionKernel(Stencil.D33, parallel=False).apply(d, y1, expected)

    y = np.zeros(SHAPE)
    LocalDiffusionKernel(Stencil.D33, parallel=True, num_threads=3, npass=2).apply(d, x, y)
    np.testing.assert_allclose(y, expected, rtol=1e-10, atol=1e-12)
