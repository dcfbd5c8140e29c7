"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
Finite-difference stencils used to approximate the gradient G in G'DG.

In each stencil name, the first digit equals the number of samples used in
the direction of the derivative, and the second digit equals the number of
samples in the orthogonal direction. Names correspond to 2D stencils, but
each has a natural 3D extension. The stencil implied by G'DG is larger than
that used for G; a 2x2 derivative approximation implies a 3x3 stencil for
G'DG.
"""

from dataclasses import dataclass
from enum import Enum


class Stencil(Enum):
    D21 = "D21"
    """2x1 stencil for isotropic diffusion only; tensors are ignored."""
    D22 = "D22"
    """2x2 stencil, the default. 4 (2D) or 8 (3D) non-zero coefficients."""
    D24 = "D24"
    """2x4 stencil with 8 non-zero coefficients. 2D only."""
    D33 = "D33"
    """3x3 Scharr stencil. 6 (2D) or 18 (3D) non-zero coefficients."""
    D71 = "D71"
    """7x1 stencil with 6 non-zero coefficients."""
    D91 = "D91"
    """9x1 stencil with 8 non-zero coefficients."""

    @classmethod
    def from_name(cls, name):
        """Returns the stencil for a name such as "D33" or "d33"."""
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).upper())
        except ValueError:
            valid = [s.value for s in cls]
            raise ValueError(
                f"Unknown stencil '{name}'. Valid stencils are: {valid}"
            ) from None


# D22: weights of the 2x2 (2D) and 2x2x2 (3D) averaged differences.
D22_SCALE_2D = 0.25
D22_SCALE_3D = 0.0625

# D24: blend between direct and wing taps; best for high anisotropy.
D24_P = 0.18

# D33: Scharr weights; best for high anisotropy.
D33_P_2D = 0.182962
D33_P_3D = 0.174654

# Antisymmetric coefficients c[k] for differences x[i+k]-x[i-k], k = 1, 2, ...
C71 = (0.830893, -0.227266, 0.042877)
C91 = (0.8947167, -0.3153471, 0.1096895, -0.0259358)


def d24_coefficients():
    """Returns (b, scale) for the D24 stencil."""
    a = 0.5 * (1.0 + D24_P)
    b = 0.5 * (-D24_P)
    b /= a
    return b, a * a


def d33_coefficients_2d():
    """Returns (b, scale) for the 2D D33 stencil."""
    a = 0.5 - D33_P_2D  # ~ 10/32
    b = 0.5 * D33_P_2D  # ~  3/32
    b /= a
    return b, a * a


def d33_coefficients_3d():
    """Returns the weights (aa, ab, bb) for the 3D D33 stencil."""
    a = 1.0 - 2.0 * D33_P_3D
    b = D33_P_3D
    return 0.5 * a * a, 0.5 * a * b, 0.5 * b * b


@dataclass(frozen=True)
class Footprint:
    """
    Planes visited and written when a stencil is applied to a 3D array.

    The kernel for plane i3 writes planes i3-back through i3+ahead. Planes
    start, start+step, ... below n3-stop_trim can be processed concurrently
    because step exceeds the number of planes written.
    """

    start: int
    step: int
    stop_trim: int
    back: int
    ahead: int

    def stop(self, n3):
        return n3 - self.stop_trim

    def planes_written(self, i3, n3):
        """Returns the sorted distinct planes written for plane i3."""
        lo = max(0, i3 - self.back)
        hi = min(n3 - 1, i3 + self.ahead)
        return list(range(lo, hi + 1))


FOOTPRINTS_3D = {
    Stencil.D21: Footprint(start=0, step=2, stop_trim=0, back=1, ahead=0),
    Stencil.D22: Footprint(start=1, step=2, stop_trim=0, back=1, ahead=0),
    Stencil.D33: Footprint(start=1, step=3, stop_trim=1, back=1, ahead=1),
    Stencil.D71: Footprint(start=0, step=7, stop_trim=0, back=3, ahead=3),
    Stencil.D91: Footprint(start=0, step=9, stop_trim=0, back=4, ahead=4),
}


def footprint_3d(stencil):
    """
    Returns the 3D footprint of a stencil.

    Raises:
        NotImplementedError: If the stencil has no 3D implementation
    """
    stencil = Stencil.from_name(stencil)
    if stencil not in FOOTPRINTS_3D:
        raise NotImplementedError(f"Stencil.{stencil.value} not supported for 3D arrays")
    return FOOTPRINTS_3D[stencil]
