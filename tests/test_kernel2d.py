"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
Unit tests for the 2D local diffusion kernels.

G'DG is symmetric for every stencil, annihilates constant images and is
positive semidefinite; these properties are checked for random tensors.
"""

import numpy as np
import pytest

from local_diffusion import LocalDiffusionKernel, Stencil
from local_diffusion.tensors import ArrayTensors2

STENCILS_2D = [Stencil.D21, Stencil.D22, Stencil.D24, Stencil.D33, Stencil.D71, Stencil.D91]
SHAPE = (9, 11)


def apply(stencil, tensors, x, c=1.0, s=None):
    y = np.zeros_like(x)
    LocalDiffusionKernel(stencil).apply(tensors, x, y, c=c, s=s)
    return y


@pytest.mark.parametrize("stencil", STENCILS_2D)
def test_self_adjoint(stencil, rng, random_tensors2):
    d = random_tensors2(SHAPE)
    s = rng.uniform(0.5, 2.0, SHAPE)
    x = rng.standard_normal(SHAPE)
    z = rng.standard_normal(SHAPE)
    zax = np.sum(z * apply(stencil, d, x, c=1.7, s=s))
    xaz = np.sum(x * apply(stencil, d, z, c=1.7, s=s))
    assert zax == pytest.approx(xaz, rel=1e-10)


@pytest.mark.parametrize("stencil", STENCILS_2D)
def test_positive_semidefinite(stencil, rng, random_tensors2):
    d = random_tensors2(SHAPE)
    x = rng.standard_normal(SHAPE)
    assert np.sum(x * apply(stencil, d, x)) >= -1e-12


@pytest.mark.parametrize("stencil", STENCILS_2D)
def test_constant_image_is_annihilated(stencil, random_tensors2):
    x = np.full(SHAPE, 3.0)
    y = apply(stencil, random_tensors2(SHAPE), x)
    np.testing.assert_allclose(y, 0.0, atol=1e-12)


@pytest.mark.parametrize("stencil", [s for s in STENCILS_2D if s is not Stencil.D21])
def test_zero_tensors_leave_y_unchanged(stencil, rng):
    zeros = np.zeros(SHAPE)
    x = rng.standard_normal(SHAPE)
    y = rng.standard_normal(SHAPE)
    y0 = y.copy()
    LocalDiffusionKernel(stencil).apply(ArrayTensors2(zeros, zeros, zeros), x, y)
    np.testing.assert_array_equal(y, y0)


def test_d21_ignores_tensors(rng, random_tensors2):
    x = rng.standard_normal(SHAPE)
    np.testing.assert_array_equal(
        apply(Stencil.D21, random_tensors2(SHAPE), x), apply(Stencil.D21, None, x)
    )


def test_d22_point_source():
    x = np.zeros((5, 5))
    x[2, 2] = 1.0
    y = apply(Stencil.D22, None, x)
    expected = np.zeros((5, 5))
    expected[2, 2] = 2.0
    for i2, i1 in [(1, 1), (1, 3), (3, 1), (3, 3)]:
        expected[i2, i1] = -0.5
    np.testing.assert_allclose(y, expected, atol=1e-15)


def test_d21_point_source():
    x = np.zeros((5, 5))
    x[2, 2] = 1.0
    y = apply(Stencil.D21, None, x, c=2.0)
    expected = np.zeros((5, 5))
    expected[2, 2] = 8.0
    for i2, i1 in [(1, 2), (3, 2), (2, 1), (2, 3)]:
        expected[i2, i1] = -2.0
    np.testing.assert_array_equal(y, expected)


def test_accumulates_into_y(rng, random_tensors2):
    d = random_tensors2(SHAPE)
    x = rng.standard_normal(SHAPE)
    y = rng.standard_normal(SHAPE)
    expected = y + apply(Stencil.D33, d, x)
    LocalDiffusionKernel(Stencil.D33).apply(d, x, y)
    np.testing.assert_allclose(y, expected, rtol=1e-12, atol=1e-12)


def test_scale_factors(rng, random_tensors2):
    d = random_tensors2(SHAPE)
    x = rng.standard_normal(SHAPE)
    s = np.full(SHAPE, 0.5)
    np.testing.assert_allclose(
        apply(Stencil.D22, d, x, c=4.0, s=s), apply(Stencil.D22, d, x, c=2.0), rtol=1e-12
    )


@pytest.mark.parametrize("stencil", STENCILS_2D)
def test_callable_tensors_match_arrays(stencil, rng, random_tensors2):
    d = random_tensors2(SHAPE)
    x = rng.standard_normal(SHAPE)
    np.testing.assert_allclose(apply(stencil, d.get, x), apply(stencil, d, x), rtol=1e-12)


@pytest.mark.parametrize("stencil", [Stencil.D24, Stencil.D33])
def test_small_arrays(stencil):
    for shape in [(1, 1), (1, 5), (2, 2)]:
        x = np.arange(np.prod(shape), dtype=float).reshape(shape)
        y = apply(stencil, None, x)
        assert y.shape == shape
        assert np.all(np.isfinite(y))


def test_multiple_passes(rng, random_tensors2):
    d = random_tensors2(SHAPE)
    x = rng.standard_normal(SHAPE)
    y1 = apply(Stencil.D22, d, x)
    expected = y1.copy()
    LocalDiffusionKernel(Stencil.D22).apply(d, y1, expected)

    y = np.zeros(SHAPE)
    LocalDiffusionKernel(Stencil.D22, npass=2).apply(d, x, y)
    np.testing.assert_allclose(y, expected, rtol=1e-12, atol=1e-14)
