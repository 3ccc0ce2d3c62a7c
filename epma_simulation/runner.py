"""
EPMA Simulation Runner Module

This module provides the main simulation runner function that can be called
from scripts or imported directly.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import numpy as np

from . import config
from .core.constants import print_geometry_stats, reset_geometry_stats
from .core.context import SimulationContext
from .core.engine import MonteCarloEngine
from .core.io_utils import (
    export_backscatter_histogram_to_csv,
    export_backscatter_records_to_csv,
    export_trajectory_records_to_csv,
)
from .core.listeners import BackscatterStats, ScatterStats, TrajectoryRecorder
from .core.region import Region
from .core.scatter_models import BasicScatterModel
from .core.shapes import SimpleBlock
from .core.solids import MultiPlaneShape


def build_sample_scene(engine: MonteCarloEngine) -> Dict[str, Region]:
    """Add a coated substrate below the beam.

    The substrate is a cube whose top face sits at z = 0; the coating is a
    film of ``config.COATING_THICKNESS_M`` on top of it (towards the gun).

    Returns
    -------
    Dict[str, Region]
        The created regions keyed by name.
    """
    size = config.SUBSTRATE_SIZE_M
    thickness = config.COATING_THICKNESS_M

    substrate_model = BasicScatterModel(
        "substrate",
        mean_free_path=config.SUBSTRATE_MEAN_FREE_PATH_M,
        stopping_power=config.SUBSTRATE_STOPPING_POWER_EV_PER_M,
        screening=config.SUBSTRATE_SCREENING_ANGLE,
        secondary_yield=config.SECONDARY_YIELD,
    )
    coating_model = BasicScatterModel(
        "coating",
        mean_free_path=config.COATING_MEAN_FREE_PATH_M,
        stopping_power=config.COATING_STOPPING_POWER_EV_PER_M,
        screening=config.COATING_SCREENING_ANGLE,
    )

    substrate_shape = SimpleBlock([-0.5 * size, -0.5 * size, 0.0], [0.5 * size, 0.5 * size, size])
    coating_shape = MultiPlaneShape.create_block([size, size, thickness], [0.0, 0.0, -0.5 * thickness])

    substrate = engine.add_sub_region(engine.chamber, substrate_model, substrate_shape, "substrate")
    coating = engine.add_sub_region(engine.chamber, coating_model, coating_shape, "coating")
    return {"substrate": substrate, "coating": coating}


def print_statistics(backscatter: BackscatterStats, scatter: ScatterStats, n_trajectories: int):
    """Print a short summary of a run."""
    summary = scatter.summary()
    print("\n" + "=" * 70)
    print("SIMULATION SUMMARY")
    print("=" * 70)
    print(f"Trajectories:              {n_trajectories:,}")
    print(f"Beam energy:               {backscatter.beam_energy / 1e3:.2f} keV")
    print(f"Backscattered electrons:   {backscatter.backscatter_count:,} "
          f"(η = {backscatter.backscatter_fraction:.4f})")
    print(f"Forward-escaping electrons: {backscatter.forward_scatter_count:,}")
    if summary.get('trajectories'):
        print(f"Steps per trajectory:      {summary['mean_steps']:.1f} ± {summary['std_steps']:.1f} "
              f"(min {summary['min_steps']:.0f}, max {summary['max_steps']:.0f})")
        print(f"Mean primary path length:  {summary['mean_path_m'] * 1e6:.3f} µm")
    print("=" * 70 + "\n")


def run_full_simulation(
    output_dir: Optional[Path] = None,
    n_trajectories: Optional[int] = None,
    beam_energy_ev: Optional[float] = None,
    seed: Optional[int] = None,
    n_workers: int = 1,
    save_results: bool = True,
    show_progress: bool = True,
) -> BackscatterStats:
    """Run the demonstration simulation on a coated substrate.

    This is the main entry point for running simulations. It handles:
    1. Building the scene (chamber, substrate, coating)
    2. Registering statistics listeners
    3. Running the Monte Carlo trajectories
    4. Printing statistics and exporting results

    Parameters
    ----------
    output_dir : Path, optional
        Directory for output files (Data/). If None, uses current working directory.
    n_trajectories : int, optional
        Number of primary electrons. If None, uses config default.
    beam_energy_ev : float, optional
        Beam energy in eV. If None, uses config default.
    seed : int, optional
        Seed for the random stream. If None, uses config default.
    n_workers : int
        Number of worker threads; 1 runs sequentially.
    save_results : bool
        Whether to save results to CSV files.
    show_progress : bool
        Whether to show a progress bar.

    Returns
    -------
    BackscatterStats
        Backscatter statistics of the run.
    """
    if output_dir is None:
        output_dir = Path.cwd()
    else:
        output_dir = Path(output_dir)

    if n_trajectories is None:
        n_trajectories = config.DEFAULT_N_TRAJECTORIES
    if seed is None:
        seed = config.DEFAULT_SEED

    reset_geometry_stats()
    engine = MonteCarloEngine(context=SimulationContext(seed))
    build_sample_scene(engine)
    if beam_energy_ev is not None:
        engine.set_beam_energy(beam_energy_ev)

    backscatter = BackscatterStats(engine, log_detected=save_results)
    scatter = ScatterStats()
    recorder = TrajectoryRecorder(max_trajectories=20)
    for listener in (backscatter, scatter, recorder):
        engine.add_listener(listener)

    print("\n" + "=" * 70)
    print("SCENE CONFIGURATION")
    print("=" * 70)
    print(f"Chamber radius: {config.CHAMBER_RADIUS:.3f} m")
    print(f"Gun: {type(engine.gun).__name__} at {np.round(engine.gun.center, 6).tolist()} m")
    print(f"Beam energy: {engine.beam_energy / 1e3:.2f} keV")
    print(f"Substrate: {config.SUBSTRATE_SIZE_M * 1e6:.1f} µm cube")
    print(f"Coating thickness: {config.COATING_THICKNESS_M * 1e9:.1f} nm")
    print("=" * 70 + "\n")

    print(f"[info] Starting simulation with {n_trajectories} trajectories...")
    if n_workers > 1:
        engine.run_parallel_trajectories(n_trajectories, n_workers, show_progress=show_progress)
    else:
        engine.run_multiple_trajectories(n_trajectories, show_progress=show_progress)

    print_statistics(backscatter, scatter, n_trajectories)
    print_geometry_stats()

    if save_results:
        data_dir = output_dir / config.DATA_OUTPUT_DIR
        export_trajectory_records_to_csv(recorder.points, filename=str(data_dir / config.TRAJECTORY_DATA_CSV))
        export_backscatter_records_to_csv(backscatter.records, filename=str(data_dir / config.BACKSCATTER_DATA_CSV))
        export_backscatter_histogram_to_csv(backscatter, filename=str(data_dir / config.BACKSCATTER_HISTOGRAM_CSV))

    return backscatter


def main():
    """Command-line entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Run EPMA electron-transport simulation")
    parser.add_argument("-n", "--trajectories", type=int, default=None,
                        help="Number of primary electrons to simulate")
    parser.add_argument("-e", "--energy", type=float, default=None,
                        help="Beam energy in keV")
    parser.add_argument("--seed", type=int, default=None,
                        help="Seed for the random stream")
    parser.add_argument("-j", "--workers", type=int, default=1,
                        help="Number of worker threads")
    parser.add_argument("--no-save", action="store_true",
                        help="Don't save results to CSV")
    parser.add_argument("--no-progress", action="store_true",
                        help="Don't show a progress bar")
    parser.add_argument("--output-dir", type=Path, default=None,
                        help="Output directory for results")

    args = parser.parse_args()

    run_full_simulation(
        output_dir=args.output_dir,
        n_trajectories=args.trajectories,
        beam_energy_ev=None if args.energy is None else args.energy * 1e3,
        seed=args.seed,
        n_workers=args.workers,
        save_results=not args.no_save,
        show_progress=not args.no_progress,
    )


if __name__ == "__main__":
    main()
