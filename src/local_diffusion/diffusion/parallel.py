"""
Copyright (c) 2024 Idiap Research Institute, http://www.idiap.ch/
Written by Cem Bilaloglu <cem.bilaloglu@idiap.ch>

This file is part of local_diffusion.
Licensed under the MIT License. See LICENSE file in the project root.
"""

"""
Serial and multi-threaded loops over the planes of a 3D array.

A plane kernel for index i3 writes several neighbouring output planes, so
two planes may be processed at the same time only if they are far enough
apart. loop_parallel therefore visits planes start, start+step, ... in step
passes; within one pass, concurrently processed planes differ by at least
step, and each pass ends (all workers joined) before the next begins.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

from ..core import Config

logger = logging.getLogger(__name__)


class AtomicCounter:
    """An integer counter whose get-and-add is atomic across threads."""

    def __init__(self, value=0):
        self._value = value
        self._lock = threading.Lock()

    def get_and_add(self, delta):
        with self._lock:
            value = self._value
            self._value += delta
            return value

    def get(self):
        with self._lock:
            return self._value


def loop_serial(start, stop, body, step=1):
    """
    Calls body(i3) for every i3 in [start, stop) on this thread.

    With step = 1 planes are visited in increasing order. With step > 1
    planes are visited in the passes of loop_parallel: start, start+step,
    ..., then start+1, start+1+step, ... Because planes within a pass write
    disjoint output planes, every output plane then accumulates in the same
    order as with loop_parallel, and both loops give bit-identical results.
    """
    if step < 1:
        raise ValueError(f"step must be positive, got {step}")
    for ipass in range(min(step, max(stop - start, 0))):
        for i3 in range(start + ipass, stop, step):
            body(i3)


def loop_parallel(start, step, stop, body, num_threads=None):
    """
    Calls body(i3) for every i3 in [start, stop) using worker threads.

    Parameters:
    - start (int): First plane index.
    - step (int): Minimum distance between planes processed concurrently.
      Must be at least the number of planes written by one call of body.
    - stop (int): Planes i3 >= stop are not visited.
    - body (callable): Function of one plane index.
    - num_threads (int): Number of workers per pass (default: Config.get_num_threads()).

    Raises:
    - Any exception raised by body; no later pass is started.
    """
    if step < 1:
        raise ValueError(f"step must be positive, got {step}")
    if num_threads is None:
        num_threads = Config.get_num_threads()
    if num_threads < 1:
        raise ValueError(f"num_threads must be positive, got {num_threads}")

    failed = threading.Event()

    def work(counter):
        i3 = counter.get_and_add(step)
        while i3 < stop and not failed.is_set():
            try:
                body(i3)
            except BaseException:
                failed.set()
                raise
            i3 = counter.get_and_add(step)

    with ThreadPoolExecutor(max_workers=num_threads) as executor:
        for ipass in range(step):
            first = start + ipass
            if first >= stop:
                break
            logger.debug(
                "pass %d: planes %d:%d:%d with %d threads",
                ipass, first, stop, step, num_threads,
            )
            counter = AtomicCounter(first)
            futures = [executor.submit(work, counter) for _ in range(num_threads)]
            # Barrier: every plane of this pass completes before the next pass.
            for future in futures:
                future.result()
