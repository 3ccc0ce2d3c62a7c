"""
Per-run random stream and electron identifier source.
"""

from __future__ import annotations

import itertools
import math
import threading
from typing import List, Optional

import numpy as np


class _IdentSource:
    """Thread-safe, monotonically increasing electron identifiers."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)


class SimulationContext:
    """Random number stream plus electron identifier source for one worker.

    Parameters
    ----------
    seed : int or np.random.SeedSequence, optional
        Seed for the random stream. None draws fresh OS entropy.
    """

    def __init__(self, seed=None, _ident_source: Optional[_IdentSource] = None):
        if isinstance(seed, np.random.SeedSequence):
            self.seed_sequence = seed
        else:
            self.seed_sequence = np.random.SeedSequence(seed)
        self.rng = np.random.default_rng(self.seed_sequence)
        self._idents = _ident_source if _ident_source is not None else _IdentSource()

    def next_electron_id(self) -> int:
        return self._idents.next()

    def random(self) -> float:
        """Uniform deviate in [0, 1)."""
        return float(self.rng.random())

    def exp_rand(self) -> float:
        """Exponentially distributed deviate with unit mean."""
        return -math.log(max(1e-300, 1.0 - self.rng.random()))

    def spawn(self, n: int) -> List["SimulationContext"]:
        """Independent child contexts for parallel workers.

        Children draw from statistically independent streams but share this
        context's identifier source, so electron ids stay unique.
        """
        return [SimulationContext(child, self._idents) for child in self.seed_sequence.spawn(n)]
