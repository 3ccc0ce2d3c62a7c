"""
Monte Carlo trajectory engine.

The engine owns the region tree, the electron gun and the stack of
suspended electrons. A trajectory is run step by step: the current region's
scattering model proposes a free path, the region tree clips it at the
first boundary, and the step ends in one of three ways.

- Scatter: the full free path fits inside the region.
- Boundary crossing: the step hits a region boundary inside the chamber.
- Chamber exit: the step leaves the chamber and the electron is dropped.

Secondary electrons suspend their parent until they are finished (LIFO).
Listeners are notified synchronously at each transition.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from .. import config
from .constants import DEBUG, SMALL_DISP, count_geometry_event
from .context import SimulationContext
from .electron import Electron
from .events import EventKind
from .guns import ElectronGun, GaussianBeam
from .region import Region, RegionTree
from .scatter_models import MaterialScatterModel, NullScatterModel
from .shapes import GeometryError, Shape, Sphere, as_point
from .transforms import normalize

Listener = Callable[[EventKind, "MonteCarloEngine"], None]


class MonteCarloEngine:
    """Runs electron trajectories through a region tree.

    Parameters
    ----------
    gun : ElectronGun, optional
        Electron source. Defaults to a Gaussian beam just inside the chamber.
    context : SimulationContext, optional
        Random stream and identifier source. Defaults to a fresh context
        seeded with ``config.DEFAULT_SEED``.
    chamber_radius : float
        Radius of the spherical chamber centred at the origin (m).
    chamber_model : MaterialScatterModel, optional
        Model for the chamber volume. Defaults to vacuum.
    max_cascade_depth : int
        Largest number of suspended electrons; further secondaries are dropped.
    regions : RegionTree, optional
        Existing scene to share; overrides ``chamber_radius`` and ``chamber_model``.
    """

    def __init__(
        self,
        gun: Optional[ElectronGun] = None,
        context: Optional[SimulationContext] = None,
        chamber_radius: float = config.CHAMBER_RADIUS,
        chamber_model: Optional[MaterialScatterModel] = None,
        max_cascade_depth: int = config.MAX_CASCADE_DEPTH,
        regions: Optional[RegionTree] = None,
    ):
        if regions is None:
            chamber_shape = Sphere([0.0, 0.0, 0.0], chamber_radius)
            regions = RegionTree(chamber_shape, chamber_model or NullScatterModel())
        self.regions = regions
        self.context = context if context is not None else SimulationContext(config.DEFAULT_SEED)
        if gun is None:
            gun = GaussianBeam(config.DEFAULT_BEAM_WIDTH_M)
            chamber_shape = self.regions.chamber.shape
            if isinstance(chamber_shape, Sphere):
                gun.center = chamber_shape.initial_point()
        self._gun = gun
        self.max_cascade_depth = int(max_cascade_depth)
        self.electron: Optional[Electron] = None
        self._stack: List[Electron] = []
        self._listeners: List[Listener] = []
        self._events_disabled = False
        self.dropped_secondaries = 0

    # ------------------------------------------------------------------
    # Scene
    # ------------------------------------------------------------------

    @property
    def chamber(self) -> Region:
        return self.regions.chamber

    def add_sub_region(self, parent: Region, scatter_model: MaterialScatterModel,
                       shape: Shape, name: str = "") -> Region:
        return self.regions.add_sub_region(parent, scatter_model, shape, name)

    def find_region_containing(self, pos) -> Optional[Region]:
        return self.regions.find_region_containing(pos)

    def update_material(self, old_model: MaterialScatterModel, new_model: MaterialScatterModel) -> int:
        """Swap a scattering model throughout the scene. Not safe during a run."""
        return self.regions.update_material(old_model, new_model)

    # ------------------------------------------------------------------
    # Gun
    # ------------------------------------------------------------------

    @property
    def gun(self) -> ElectronGun:
        return self._gun

    def set_electron_gun(self, gun: ElectronGun) -> None:
        """Replace the gun, carrying over the current beam energy."""
        gun.beam_energy = self._gun.beam_energy
        self._gun = gun

    @property
    def beam_energy(self) -> float:
        return self._gun.beam_energy

    @beam_energy.setter
    def beam_energy(self, energy: float) -> None:
        self.set_beam_energy(energy)

    def set_beam_energy(self, energy: float) -> None:
        self._gun.beam_energy = energy
        self.fire_event(EventKind.BEAM_ENERGY_CHANGED)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        """Register a listener; the most recently added is notified first."""
        self._listeners.insert(0, listener)

    def remove_listener(self, listener: Listener) -> None:
        self._listeners.remove(listener)

    @property
    def listeners(self) -> Tuple[Listener, ...]:
        return tuple(self._listeners)

    def fire_event(self, event: EventKind) -> None:
        if self._events_disabled:
            return
        for listener in tuple(self._listeners):
            listener(event, self)

    @contextmanager
    def events_disabled(self):
        """Suppress listener notification inside the ``with`` block."""
        previous = self._events_disabled
        self._events_disabled = True
        try:
            yield self
        finally:
            self._events_disabled = previous

    # ------------------------------------------------------------------
    # Stepping
    # ------------------------------------------------------------------

    @property
    def electron_generation(self) -> int:
        """Number of suspended electrons below the current one."""
        return len(self._stack)

    def initialize_trajectory(self) -> None:
        """Create a new primary electron and locate its region."""
        self._stack.clear()
        electron = self._gun.create_electron(self.context)
        region = self.regions.find_region_containing(electron.position)
        if region is None:
            raise GeometryError(
                f"Gun position {electron.position.tolist()} is outside the chamber "
                f"{self.chamber.shape!r}"
            )
        electron.current_region = region
        self.electron = electron

    def _resolve_region(self, electron: Electron) -> Optional[Region]:
        region = self.regions.find_region_containing(electron.position)
        electron.current_region = region
        count_geometry_event('region_reresolved')
        if DEBUG:
            print(f"[debug] Electron {electron.ident} re-resolved to {region!r} "
                  f"at {electron.position.tolist()}")
        return region

    def take_step(self) -> None:
        """Advance the current electron by one step."""
        electron = self.electron
        pos0 = electron.position
        region = electron.current_region
        if region is None or not region.shape.contains(pos0):
            region = self._resolve_region(electron)
            if region is None:
                count_geometry_event('lost_electrons')
                print(f"[warning] Electron {electron.ident} at {pos0.tolist()} is in no region; "
                      f"ending its trajectory.")
                electron.trajectory_complete = True
                return

        model = region.scatter_model
        pos1 = electron.candidate_point(model.random_mean_path_length(electron, self.context))
        next_region, pos1 = self.regions.find_end_of_step(region, pos0, pos1)
        electron.move(pos1, model.calculate_energy_loss(float(np.linalg.norm(pos1 - pos0)), electron))
        complete = electron.energy < model.min_tracking_energy or electron.trajectory_complete
        electron.trajectory_complete = complete
        if complete:
            return

        if next_region is region:
            self.fire_event(EventKind.SCATTER)
            secondary = model.scatter(electron, self.context)
            self.fire_event(EventKind.POST_SCATTER)
            # Scattering may lower the energy or a listener may end the trajectory
            electron.trajectory_complete = (electron.energy < model.min_tracking_energy
                                            or electron.trajectory_complete)
            if secondary is not None:
                self.track_secondary_electron(secondary)
        elif next_region is not None:
            self.fire_event(EventKind.NON_SCATTER)
            secondary = model.barrier_scatter(electron, next_region, self.context)
            electron.position = electron.candidate_point(SMALL_DISP)
            current = electron.current_region
            if current is None or not current.shape.contains(electron.position):
                self._resolve_region(electron)
            if electron.current_region is not region:
                self.fire_event(EventKind.EXIT_MATERIAL)
            if secondary is not None:
                secondary.position = secondary.candidate_point(SMALL_DISP)
                self.track_secondary_electron(secondary)
        else:
            self.fire_event(EventKind.BACKSCATTER)
            electron.current_region = None
            electron.trajectory_complete = True

    def track_secondary_electron(self, secondary: Electron) -> bool:
        """Suspend the current electron and make ``secondary`` current.

        Secondaries at or below their region's minimum tracking energy are
        ignored. Returns True if the secondary is now being tracked.
        """
        region = secondary.current_region
        if region is None:
            region = self.regions.find_region_containing(secondary.position)
            secondary.current_region = region
        if region is None or secondary.energy <= region.scatter_model.min_tracking_energy:
            return False
        if len(self._stack) >= self.max_cascade_depth:
            if self.dropped_secondaries == 0:
                print(f"[warning] Secondary cascade reached {self.max_cascade_depth} suspended "
                      f"electrons; further secondaries are dropped.")
            self.dropped_secondaries += 1
            count_geometry_event('dropped_secondaries')
            return False
        self._stack.append(self.electron)
        self.electron = secondary
        self.fire_event(EventKind.START_SECONDARY)
        return True

    def all_electrons_complete(self) -> bool:
        """Resume suspended electrons as their secondaries finish.

        Returns True once the current electron is complete and nothing is
        left on the stack.
        """
        complete = self.electron.trajectory_complete
        while complete and self._stack:
            self.fire_event(EventKind.END_SECONDARY)
            self.electron = self._stack.pop()
            complete = self.electron.trajectory_complete
        return complete

    # ------------------------------------------------------------------
    # Trajectory loops
    # ------------------------------------------------------------------

    def run_trajectory(self) -> None:
        """Run one primary electron and all its secondaries to completion."""
        self.initialize_trajectory()
        self.fire_event(EventKind.TRAJECTORY_START)
        while not self.all_electrons_complete():
            self.take_step()
        self.fire_event(EventKind.TRAJECTORY_END)

    def _run_batch(self, n: int, progress: Optional[tqdm] = None) -> None:
        for _ in range(n):
            self.run_trajectory()
            if progress is not None:
                progress.update(1)

    def run_multiple_trajectories(self, n: int, show_progress: bool = False) -> None:
        """Run ``n`` independent trajectories between FIRST and LAST events."""
        self.fire_event(EventKind.FIRST_TRAJECTORY)
        if show_progress:
            with tqdm(total=n, desc="Simulating Electrons") as progress:
                self._run_batch(n, progress)
        else:
            self._run_batch(n)
        self.fire_event(EventKind.LAST_TRAJECTORY)

    def spawn(self, context: Optional[SimulationContext] = None) -> "MonteCarloEngine":
        """Engine sharing this scene, gun and listeners but with its own electron stack."""
        if context is None:
            context = self.context.spawn(1)[0]
        engine = MonteCarloEngine(gun=self._gun, context=context, regions=self.regions,
                                  max_cascade_depth=self.max_cascade_depth)
        engine._listeners = list(self._listeners)
        return engine

    def run_parallel_trajectories(self, n: int, n_workers: Optional[int] = None,
                                  show_progress: bool = False) -> None:
        """Run ``n`` trajectories on a thread pool.

        Each worker owns a spawned engine with an independent random stream.
        Listeners are shared and must guard their own state. Event order is
        preserved within a trajectory but not across trajectories.
        """
        if n_workers is None:
            n_workers = os.cpu_count() or 1
        n_workers = max(1, min(n_workers, n)) if n > 0 else 1
        workers = [self.spawn(ctx) for ctx in self.context.spawn(n_workers)]
        counts = [n // n_workers + (1 if i < n % n_workers else 0) for i in range(n_workers)]

        self.fire_event(EventKind.FIRST_TRAJECTORY)
        progress = tqdm(total=n, desc="Simulating Electrons") if show_progress else None
        try:
            with ThreadPoolExecutor(max_workers=n_workers) as executor:
                futures = [executor.submit(worker._run_batch, count, progress)
                           for worker, count in zip(workers, counts)]
                for future in as_completed(futures):
                    future.result()
        finally:
            if progress is not None:
                progress.close()
        self.dropped_secondaries += sum(w.dropped_secondaries for w in workers)
        self.fire_event(EventKind.LAST_TRAJECTORY)

    # ------------------------------------------------------------------
    # Scene queries
    # ------------------------------------------------------------------

    def material_map(self, start, end) -> Dict[MaterialScatterModel, float]:
        """Path length (m) through each scattering model along a straight line."""
        start, end = as_point(start), as_point(end)
        lengths: Dict[MaterialScatterModel, float] = {}
        if np.linalg.norm(end - start) == 0.0:
            return lengths
        direction = normalize(end - start)
        region = self.regions.find_region_containing(start)
        while region is not None and np.linalg.norm(end - start) > config.MATERIAL_MAP_EPSILON:
            next_region, step_end = self.regions.find_end_of_step(region, start, end)
            dist = float(np.linalg.norm(step_end - start))
            if dist > 0.0:
                lengths[region.scatter_model] = lengths.get(region.scatter_model, 0.0) + dist
            start = step_end + SMALL_DISP * direction
            region = next_region
        return lengths

    def estimate_trajectory_volume(self, n: int = config.TRAJECTORY_VOLUME_SAMPLES) -> Tuple[np.ndarray, np.ndarray]:
        """Bounding box of step end points that fall inside the sample.

        Runs ``n`` trajectories with events disabled. Points in the chamber
        volume itself are ignored. If no point qualifies, corner0 is filled
        with +max and corner1 with -max.
        """
        big = np.finfo(float).max
        corner0 = np.full(3, big)
        corner1 = np.full(3, -big)
        with self.events_disabled():
            for _ in range(n):
                self.initialize_trajectory()
                while not self.all_electrons_complete():
                    self.take_step()
                    end_pt = self.electron.position
                    end_region = self.regions.find_region_containing(end_pt)
                    if end_region is not None and end_region is not self.chamber:
                        np.minimum(corner0, end_pt, out=corner0)
                        np.maximum(corner1, end_pt, out=corner1)
        return corner0, corner1
