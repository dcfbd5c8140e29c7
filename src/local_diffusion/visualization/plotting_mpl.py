"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

import numpy as np
from matplotlib.collections import EllipseCollection

from ..tensors import as_tensors2, tensor_arrays2


def plot_field(ax, f, title=None, cmap="gray"):
    """
    Shows a 2D field f[i2, i1] with i1 along the horizontal axis.

    Parameters:
    - ax (matplotlib.axes.Axes): Target axes.
    - f (np.ndarray): Field of shape (n2, n1).
    - title (str): Optional axes title.
    - cmap (str): Colormap name (default: "gray").

    Returns:
    - matplotlib.image.AxesImage: The image artist.
    """
    f = np.asarray(f)
    if f.ndim != 2:
        raise ValueError(f"plot_field requires a 2D array, got ndim={f.ndim}")
    image = ax.imshow(f, cmap=cmap, origin="lower", interpolation="nearest")
    if title is not None:
        ax.set_title(title)
    ax.set_xlabel("i1")
    ax.set_ylabel("i2")
    return image


def plot_tensor_ellipses(ax, tensors, n1, n2, stride=8, scale=None):
    """
    Draws one ellipse per stride-th sample of a 2D tensor field.

    Ellipse axes are aligned with the tensor eigenvectors and have lengths
    proportional to the square roots of the eigenvalues.

    Parameters:
    - ax (matplotlib.axes.Axes): Target axes.
    - tensors: 2D tensor field, callable, or None for identity tensors.
    - n1, n2 (int): Grid dimensions.
    - stride (int): Sampling interval in both dimensions (default: 8).
    - scale (float): Length of the largest axis; defaults to 0.9*stride.

    Returns:
    - matplotlib.collections.EllipseCollection: The ellipses.
    """
    if stride < 1:
        raise ValueError(f"stride must be positive, got {stride}")
    if scale is None:
        scale = 0.9 * stride
    a11, a12, a22 = tensor_arrays2(as_tensors2(tensors), n1, n2)
    i2, i1 = np.mgrid[stride // 2:n2:stride, stride // 2:n1:stride]
    a = np.empty(i1.shape + (2, 2))
    a[..., 0, 0] = a11[i2, i1]
    a[..., 0, 1] = a[..., 1, 0] = a12[i2, i1]
    a[..., 1, 1] = a22[i2, i1]

    # Ascending eigenvalues; the last eigenvector is the major axis.
    w, v = np.linalg.eigh(a)
    w = np.sqrt(np.clip(w, 0.0, None))
    wmax = w.max() if w.size else 0.0
    if wmax > 0.0:
        w = w * (scale / wmax)
    angles = np.degrees(np.arctan2(v[..., 1, 1], v[..., 0, 1]))

    ellipses = EllipseCollection(
        widths=w[..., 1].ravel(),
        heights=w[..., 0].ravel(),
        angles=angles.ravel(),
        units="xy",
        offsets=np.column_stack([i1.ravel(), i2.ravel()]),
        offset_transform=ax.transData,
        facecolors="none",
        edgecolors="tab:red",
    )
    ax.add_collection(ellipses)
    ax.set_xlim(-0.5, n1 - 0.5)
    ax.set_ylim(-0.5, n2 - 0.5)
    return ellipses
