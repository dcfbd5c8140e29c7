"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
Tensor fields read by the local diffusion kernels.

A tensor field is any object with a method

    get(i1, i2) -> (a11, a12, a22)                          # 2D
    get(i1, i2, i3) -> (a11, a12, a13, a22, a23, a33)       # 3D

that returns the independent entries of a symmetric positive-semidefinite
matrix for one sample. Arrays are indexed [i2, i1] in 2D and [i3, i2, i1]
in 3D, so that dimension 1 is the fastest varying one.

Kernels gather whole grids (2D) or whole planes (3D) of entries at once.
Array-backed fields provide those directly; any other field is sampled one
index at a time. Kernels call fields concurrently from several threads, so
get must not modify shared state.
"""

from collections.abc import Mapping

import numpy as np


class IdentityTensors2:
    """Constant identity tensors for 2D grids."""

    def get(self, i1, i2):
        return (1.0, 0.0, 1.0)

    def get_arrays(self, n1, n2):
        one = np.ones((n2, n1))
        zero = np.zeros((n2, n1))
        return one, zero, one


class IdentityTensors3:
    """Constant identity tensors for 3D grids."""

    def get(self, i1, i2, i3):
        return (1.0, 0.0, 0.0, 1.0, 0.0, 1.0)

    def get_plane(self, i3, n1, n2):
        one = np.ones((n2, n1))
        zero = np.zeros((n2, n1))
        return one, zero, zero, one, zero, one


IDENTITY_TENSORS2 = IdentityTensors2()
IDENTITY_TENSORS3 = IdentityTensors3()


class ArrayTensors2:
    def __init__(self, a11, a12, a22):
        """
        Tensor field stored as three arrays of shape (n2, n1).

        Parameters:
        - a11, a12, a22 (array_like): Independent tensor entries per sample.
        """
        self.a11 = np.asarray(a11, dtype=float)
        self.a12 = np.asarray(a12, dtype=float)
        self.a22 = np.asarray(a22, dtype=float)
        if self.a11.ndim != 2:
            raise ValueError(f"2D tensor arrays required, got ndim={self.a11.ndim}")
        if not (self.a11.shape == self.a12.shape == self.a22.shape):
            raise ValueError("Tensor entry arrays must have identical shapes")
        self.shape = self.a11.shape

    def __repr__(self):
        return f"<ArrayTensors2: n1={self.shape[1]}, n2={self.shape[0]}>"

    @classmethod
    def from_eigen(cls, u1, u2, au, av):
        """
        Builds tensors D = au*uu' + av*vv' from unit eigenvectors u = (u1, u2).

        The second eigenvector v = (-u2, u1) is orthogonal to u.

        Parameters:
        - u1, u2 (array_like): Components of u along dimensions 1 and 2.
        - au, av (array_like or float): Eigenvalues for u and v.

        Returns:
        - ArrayTensors2: The tensor field.
        """
        u1 = np.asarray(u1, dtype=float)
        u2 = np.asarray(u2, dtype=float)
        au = np.broadcast_to(np.asarray(au, dtype=float), u1.shape)
        av = np.broadcast_to(np.asarray(av, dtype=float), u1.shape)
        a11 = au * u1 * u1 + av * u2 * u2
        a12 = (au - av) * u1 * u2
        a22 = au * u2 * u2 + av * u1 * u1
        return cls(a11, a12, a22)

    def get(self, i1, i2):
        return (
            float(self.a11[i2, i1]),
            float(self.a12[i2, i1]),
            float(self.a22[i2, i1]),
        )

    def get_arrays(self, n1, n2):
        if self.shape != (n2, n1):
            raise ValueError(
                f"Tensor field shape {self.shape} does not match grid shape {(n2, n1)}"
            )
        return self.a11, self.a12, self.a22


class ArrayTensors3:
    def __init__(self, a11, a12, a13, a22, a23, a33):
        """
        Tensor field stored as six arrays of shape (n3, n2, n1).

        Parameters:
        - a11, a12, a13, a22, a23, a33 (array_like): Independent tensor entries.
        """
        entries = [np.asarray(a, dtype=float) for a in (a11, a12, a13, a22, a23, a33)]
        if entries[0].ndim != 3:
            raise ValueError(f"3D tensor arrays required, got ndim={entries[0].ndim}")
        if any(a.shape != entries[0].shape for a in entries):
            raise ValueError("Tensor entry arrays must have identical shapes")
        self.a11, self.a12, self.a13, self.a22, self.a23, self.a33 = entries
        self.shape = self.a11.shape

    def __repr__(self):
        n3, n2, n1 = self.shape
        return f"<ArrayTensors3: n1={n1}, n2={n2}, n3={n3}>"

    @classmethod
    def from_eigen(cls, u, w, au, av, aw):
        """
        Builds tensors D = au*uu' + av*vv' + aw*ww' from unit eigenvectors.

        Parameters:
        - u (array_like): Shape (3, n3, n2, n1), components (u1, u2, u3) of u.
        - w (array_like): Shape (3, n3, n2, n1), unit vectors orthogonal to u.
        - au, av, aw (array_like or float): Eigenvalues for u, v and w.

        The third eigenvector is v = w x u.

        Returns:
        - ArrayTensors3: The tensor field.
        """
        u = np.asarray(u, dtype=float)
        w = np.asarray(w, dtype=float)
        v = np.cross(w, u, axis=0)
        shape = u.shape[1:]
        au = np.broadcast_to(np.asarray(au, dtype=float), shape)
        av = np.broadcast_to(np.asarray(av, dtype=float), shape)
        aw = np.broadcast_to(np.asarray(aw, dtype=float), shape)

        def entry(i, j):
            return au * u[i] * u[j] + av * v[i] * v[j] + aw * w[i] * w[j]

        return cls(entry(0, 0), entry(0, 1), entry(0, 2),
                   entry(1, 1), entry(1, 2), entry(2, 2))

    def get(self, i1, i2, i3):
        return (
            float(self.a11[i3, i2, i1]),
            float(self.a12[i3, i2, i1]),
            float(self.a13[i3, i2, i1]),
            float(self.a22[i3, i2, i1]),
            float(self.a23[i3, i2, i1]),
            float(self.a33[i3, i2, i1]),
        )

    def get_plane(self, i3, n1, n2):
        if self.shape[1:] != (n2, n1):
            raise ValueError(
                f"Tensor field shape {self.shape} does not match plane shape {(n2, n1)}"
            )
        return (self.a11[i3], self.a12[i3], self.a13[i3],
                self.a22[i3], self.a23[i3], self.a33[i3])


class FunctionTensors2:
    """Wraps a callable f(i1, i2) -> (a11, a12, a22) as a 2D tensor field."""

    def __init__(self, function):
        self.function = function

    def get(self, i1, i2):
        return self.function(i1, i2)


class FunctionTensors3:
    """Wraps a callable f(i1, i2, i3) -> (a11, ..., a33) as a 3D tensor field."""

    def __init__(self, function):
        self.function = function

    def get(self, i1, i2, i3):
        return self.function(i1, i2, i3)


def _is_field(d, gather):
    # Mappings have a get method but are not tensor fields.
    if isinstance(d, Mapping):
        return False
    return hasattr(d, gather) or callable(getattr(d, "get", None))


def as_tensors2(d):
    """
    Returns a 2D tensor field for d, which may be None, a field or a callable.

    Raises:
        TypeError: If d is a mapping or has neither get nor get_arrays
    """
    if d is None:
        return IDENTITY_TENSORS2
    if _is_field(d, "get_arrays"):
        return d
    if callable(d) and not isinstance(d, Mapping):
        return FunctionTensors2(d)
    raise TypeError(f"Not a 2D tensor field: {type(d).__name__}")


def as_tensors3(d):
    """
    Returns a 3D tensor field for d, which may be None, a field or a callable.

    Raises:
        TypeError: If d is a mapping or has neither get nor get_plane
    """
    if d is None:
        return IDENTITY_TENSORS3
    if _is_field(d, "get_plane"):
        return d
    if callable(d) and not isinstance(d, Mapping):
        return FunctionTensors3(d)
    raise TypeError(f"Not a 3D tensor field: {type(d).__name__}")


def tensor_arrays2(d, n1, n2):
    """
    Gathers the entries of a 2D tensor field for every sample of a grid.

    Returns:
    - tuple: Arrays (a11, a12, a22), each of shape (n2, n1).
    """
    if hasattr(d, "get_arrays"):
        return d.get_arrays(n1, n2)
    a = np.empty((3, n2, n1))
    for i2 in range(n2):
        for i1 in range(n1):
            a[:, i2, i1] = d.get(i1, i2)
    return a[0], a[1], a[2]


def tensor_plane3(d, i3, n1, n2):
    """
    Gathers the entries of a 3D tensor field for every sample of plane i3.

    Returns:
    - tuple: Arrays (a11, a12, a13, a22, a23, a33), each of shape (n2, n1).
    """
    if hasattr(d, "get_plane"):
        return d.get_plane(i3, n1, n2)
    a = np.empty((6, n2, n1))
    for i2 in range(n2):
        for i1 in range(n1):
            a[:, i2, i1] = d.get(i1, i2, i3)
    return tuple(a)
