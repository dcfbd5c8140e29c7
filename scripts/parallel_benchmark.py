"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
Times serial and parallel 3D kernel applications for each 3D stencil and
checks that both give the same result.
"""

import time

import numpy as np
from tqdm import tqdm

from local_diffusion import Config, LocalDiffusionKernel, Stencil

# Parameters
# ==========================================
n1, n2, n3 = 128, 128, 96
nrepeat = 5
stencils = [Stencil.D21, Stencil.D22, Stencil.D33, Stencil.D71, Stencil.D91]

rng = np.random.default_rng(0)
x = rng.standard_normal((n3, n2, n1))
num_threads = Config.get_num_threads()

results = {}
for stencil in tqdm(stencils, desc="stencils"):
    timings = {}
    outputs = {}
    for parallel in (False, True):
        kernel = LocalDiffusionKernel(stencil, parallel=parallel, num_threads=num_threads)
        y = np.zeros_like(x)
        start = time.perf_counter()
        for _ in range(nrepeat):
            y[:] = 0.0
            kernel.apply(None, x, y)
        timings[parallel] = (time.perf_counter() - start) / nrepeat
        outputs[parallel] = y
    error = np.max(np.abs(outputs[True] - outputs[False]))
    results[stencil] = (timings[False], timings[True], error)

print(f"Array {n3}x{n2}x{n1}, {num_threads} threads")
print(f"{'stencil':>8} {'serial (s)':>12} {'parallel (s)':>13} {'speedup':>8} {'max diff':>10}")
for stencil, (serial, parallel, error) in results.items():
    print(
        f"{stencil.value:>8} {serial:12.4f} {parallel:13.4f} "
        f"{serial / parallel:8.2f} {error:10.2e}"
    )
