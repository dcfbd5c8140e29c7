"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""Shared fixtures for the local_diffusion tests."""

import numpy as np
import pytest

from local_diffusion.tensors import ArrayTensors2, ArrayTensors3


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def random_tensors2(rng):
    """Factory for random symmetric positive-definite 2D tensor fields."""

    def make(shape):
        theta = rng.uniform(0.0, np.pi, shape)
        au = rng.uniform(0.05, 1.0, shape)
        av = rng.uniform(0.05, 1.0, shape)
        return ArrayTensors2.from_eigen(np.cos(theta), np.sin(theta), au, av)

    return make


@pytest.fixture
def random_tensors3(rng):
    """Factory for random symmetric positive-definite 3D tensor fields."""

    def make(shape):
        b = rng.standard_normal((3, 3) + tuple(shape))
        a = np.einsum("ik...,jk...->ij...", b, b)
        for i in range(3):
            a[i, i] += 0.1
        return ArrayTensors3(a[0, 0], a[0, 1], a[0, 2], a[1, 1], a[1, 2], a[2, 2])

    return make


@pytest.fixture
def repo_config(monkeypatch):
    """Points Config at the kernel profiles shipped in the repository."""
    from pathlib import Path

    from local_diffusion.core import Config

    monkeypatch.setattr(Config, "_project_root", Path(__file__).resolve().parents[1])
    return Config
