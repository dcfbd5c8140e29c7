"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
Visualization utilities for local diffusion.

This submodule contains matplotlib helpers for 2D fields and tensor ellipses.

Dependencies: local_diffusion.tensors, matplotlib
"""

from .plotting_mpl import plot_field, plot_tensor_ellipses

__all__ = ['plot_field', 'plot_tensor_ellipses']
