"""
Listeners that accumulate statistics from engine events.

Accumulators are guarded by a lock so a single listener can be shared by
the workers of ``MonteCarloEngine.run_parallel_trajectories``.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from .. import config
from .events import EventKind, EventListener

if TYPE_CHECKING:
    from .engine import MonteCarloEngine


class Histogram:
    """Fixed-width histogram over [low, high) with under/overflow counters."""

    def __init__(self, low: float, high: float, n_bins: int):
        if not high > low:
            raise ValueError(f"Histogram range must be increasing, got [{low}, {high})")
        self.edges = np.linspace(low, high, n_bins + 1)
        self.counts = np.zeros(n_bins, dtype=np.int64)
        self.underflow = 0
        self.overflow = 0

    def add(self, value: float) -> None:
        index = int(np.searchsorted(self.edges, value, side='right')) - 1
        if index < 0:
            self.underflow += 1
        elif index >= len(self.counts):
            # The top edge belongs to the last bin
            if value == self.edges[-1]:
                self.counts[-1] += 1
            else:
                self.overflow += 1
        else:
            self.counts[index] += 1

    @property
    def total(self) -> int:
        return int(self.counts.sum()) + self.underflow + self.overflow


@dataclass
class BackscatterRecord:
    """An electron leaving the chamber."""

    electron_id: int
    parent_id: int
    step_count: int
    energy_ev: float
    position: np.ndarray
    theta: float
    phi: float


@dataclass
class TrajectoryPoint:
    """One vertex of a recorded trajectory."""

    trajectory: int
    electron_id: int
    parent_id: int
    generation: int
    event: str
    position: np.ndarray
    energy_ev: float
    region: str


class BackscatterStats(EventListener):
    """Angular and energy distributions of electrons leaving the chamber.

    The elevation is measured from the +z axis (0 = along the beam,
    pi = straight back towards the gun); electrons with elevation below
    pi/2 count as forward scattered.

    Parameters
    ----------
    engine : MonteCarloEngine
        Engine whose beam energy sets the energy histogram range.
    energy_bins : int
        Number of energy bins between 0 and the beam energy.
    log_detected : bool
        Keep a ``BackscatterRecord`` for every escaping electron.
    """

    def __init__(self, engine: "MonteCarloEngine", energy_bins: int = config.ENERGY_BINS,
                 log_detected: bool = False):
        self._lock = threading.Lock()
        self.energy_bins = energy_bins
        self.log_detected = log_detected
        self._initialize(engine.beam_energy)

    def _initialize(self, beam_energy: float) -> None:
        with self._lock:
            self.beam_energy = beam_energy
            self.elevation = Histogram(0.0, math.pi, config.ELEVATION_BINS)
            self.azimuth = Histogram(0.0, 2.0 * math.pi, config.AZIMUTH_BINS)
            self.forward_energy = Histogram(0.0, beam_energy, self.energy_bins)
            self.back_energy = Histogram(0.0, beam_energy, self.energy_bins)
            self.records: List[BackscatterRecord] = []
            self.trajectory_count = 0

    def on_event(self, event, engine):
        if event == EventKind.FIRST_TRAJECTORY:
            with self._lock:
                self.trajectory_count = 0
        elif event == EventKind.BACKSCATTER:
            electron = engine.electron
            x, y, z = electron.position
            elevation = 0.5 * math.pi - math.atan2(z, math.hypot(x, y))
            azimuth = math.atan2(y, x)
            if azimuth < 0.0:
                azimuth += 2.0 * math.pi
            with self._lock:
                self.elevation.add(elevation)
                self.azimuth.add(azimuth)
                if elevation < 0.5 * math.pi:
                    self.forward_energy.add(electron.energy)
                else:
                    self.back_energy.add(electron.energy)
                if self.log_detected:
                    self.records.append(BackscatterRecord(
                        electron.ident, electron.parent_id, electron.step_count, electron.energy,
                        electron.position.copy(), electron.theta, electron.phi,
                    ))
        elif event == EventKind.TRAJECTORY_END:
            with self._lock:
                self.trajectory_count += 1
        elif event == EventKind.BEAM_ENERGY_CHANGED:
            self._initialize(engine.beam_energy)

    @property
    def backscatter_count(self) -> int:
        return self.back_energy.total

    @property
    def forward_scatter_count(self) -> int:
        return self.forward_energy.total

    @property
    def backscatter_fraction(self) -> float:
        """Electrons leaving back towards the gun per trajectory."""
        if self.trajectory_count == 0:
            return 0.0
        return self.backscatter_count / self.trajectory_count

    def to_dataframe(self) -> pd.DataFrame:
        """Energy histograms as a table with one row per bin."""
        edges = self.back_energy.edges
        return pd.DataFrame({
            'energy_low_eV': edges[:-1],
            'energy_high_eV': edges[1:],
            'backscattered': self.back_energy.counts,
            'forward_scattered': self.forward_energy.counts,
        })


class ScatterStats(EventListener):
    """Step counts and path lengths of primary trajectories.

    A trajectory stops being followed once the electron drops below
    ``min_energy`` (eV) after a scattering event, or when it escapes.
    """

    def __init__(self, min_energy: float = 0.0):
        self._lock = threading.Lock()
        self.min_energy = float(min_energy)
        self.step_counts: List[int] = []
        self.path_lengths: List[float] = []
        self.backscatter_count = 0
        self._alive: Dict[int, bool] = {}
        self._path: Dict[int, float] = {}

    def _finish(self, key: int, electron) -> None:
        self.step_counts.append(electron.step_count - 1)
        self.path_lengths.append(self._path.pop(key, 0.0))
        self._alive[key] = False

    def on_event(self, event, engine):
        # Keyed by worker engine so parallel trajectories do not mix
        key = id(engine)
        with self._lock:
            if event == EventKind.FIRST_TRAJECTORY:
                self.step_counts = []
                self.path_lengths = []
                self.backscatter_count = 0
            elif event == EventKind.TRAJECTORY_START:
                self._alive[key] = True
                self._path[key] = 0.0
            elif event == EventKind.TRAJECTORY_END:
                if self._alive.get(key):
                    self._finish(key, engine.electron)
            elif event == EventKind.BACKSCATTER:
                if engine.electron_generation == 0:
                    self._alive[key] = False
                    self.backscatter_count += 1
            elif event == EventKind.SCATTER:
                electron = engine.electron
                if self._alive.get(key) and engine.electron_generation == 0:
                    self._path[key] += electron.step_length
                    if electron.energy < self.min_energy:
                        self._finish(key, electron)

    def summary(self) -> Dict[str, float]:
        steps = np.asarray(self.step_counts, dtype=float)
        paths = np.asarray(self.path_lengths, dtype=float)
        if steps.size == 0:
            return {'trajectories': 0}
        return {
            'trajectories': int(steps.size),
            'min_steps': float(steps.min()),
            'max_steps': float(steps.max()),
            'mean_steps': float(steps.mean()),
            'std_steps': float(steps.std()),
            'mean_path_m': float(paths.mean()),
            'backscattered': self.backscatter_count,
        }


class TrajectoryRecorder(EventListener):
    """Records the vertices of the first ``max_trajectories`` trajectories."""

    _RECORDED = {
        EventKind.TRAJECTORY_START: "start",
        EventKind.SCATTER: "scatter",
        EventKind.NON_SCATTER: "boundary",
        EventKind.BACKSCATTER: "exit_chamber",
        EventKind.START_SECONDARY: "secondary_start",
        EventKind.END_SECONDARY: "secondary_end",
        EventKind.TRAJECTORY_END: "end",
    }

    def __init__(self, max_trajectories: Optional[int] = None):
        self._lock = threading.Lock()
        self.max_trajectories = max_trajectories
        self.points: List[TrajectoryPoint] = []
        self._started = 0
        self._current: Dict[int, int] = {}

    def on_event(self, event, engine):
        key = id(engine)
        with self._lock:
            if event == EventKind.FIRST_TRAJECTORY:
                self.points = []
                self._started = 0
                self._current.clear()
                return
            if event == EventKind.TRAJECTORY_START:
                if self.max_trajectories is not None and self._started >= self.max_trajectories:
                    self._current[key] = -1
                    return
                self._current[key] = self._started
                self._started += 1
            trajectory = self._current.get(key, -1)
            label = self._RECORDED.get(event)
            if label is None or trajectory < 0:
                return
            electron = engine.electron
            region = electron.current_region
            self.points.append(TrajectoryPoint(
                trajectory, electron.ident, electron.parent_id, engine.electron_generation, label,
                electron.position.copy(), electron.energy, region.name if region is not None else "",
            ))

    def trajectory(self, index: int) -> List[TrajectoryPoint]:
        return [p for p in self.points if p.trajectory == index]


class EventLog(EventListener):
    """Sequence of (event, electron id) pairs, mainly for diagnostics."""

    def __init__(self):
        self._lock = threading.Lock()
        self.entries: List[Tuple[EventKind, Optional[int]]] = []

    def on_event(self, event, engine):
        electron = engine.electron
        with self._lock:
            self.entries.append((event, electron.ident if electron is not None else None))

    @property
    def events(self) -> List[EventKind]:
        return [event for event, _ in self.entries]

    def count(self, event: EventKind) -> int:
        return sum(1 for e, _ in self.entries if e == event)

    def clear(self) -> None:
        with self._lock:
            self.entries.clear()
