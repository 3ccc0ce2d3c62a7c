"""
Export of recorded trajectories and backscatter statistics.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import List

from .listeners import BackscatterRecord, BackscatterStats, TrajectoryPoint


def export_trajectory_records_to_csv(points: List[TrajectoryPoint], filename: str = "trajectory_records.csv"):
    """Export recorded trajectory vertices to a CSV file.

    Parameters
    ----------
    points : List[TrajectoryPoint]
        Vertices collected by a ``TrajectoryRecorder``.
    filename : str
        Output CSV filename.
    """
    if not points:
        print("[warning] No trajectory records to export.")
        return

    output_path = Path(filename)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    headers = [
        'trajectory',
        'electron_id',
        'parent_id',
        'generation',
        'event',
        'x_m',
        'y_m',
        'z_m',
        'energy_eV',
        'region',
    ]

    with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(headers)
        for point in points:
            writer.writerow([
                point.trajectory,
                point.electron_id,
                point.parent_id,
                point.generation,
                point.event,
                f"{point.position[0]:.6e}",
                f"{point.position[1]:.6e}",
                f"{point.position[2]:.6e}",
                f"{point.energy_ev:.3f}",
                point.region,
            ])

    print(f"[info] Exported {len(points)} trajectory points to {output_path}")


def export_backscatter_records_to_csv(records: List[BackscatterRecord], filename: str = "backscatter_records.csv"):
    """Export per-electron backscatter records to a CSV file."""
    if not records:
        print("[warning] No backscatter records to export.")
        return

    output_path = Path(filename)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(['electron_id', 'parent_id', 'step_count', 'energy_eV',
                         'x_m', 'y_m', 'z_m', 'theta_rad', 'phi_rad'])
        for rec in records:
            writer.writerow([
                rec.electron_id,
                rec.parent_id,
                rec.step_count,
                f"{rec.energy_ev:.3f}",
                f"{rec.position[0]:.6e}",
                f"{rec.position[1]:.6e}",
                f"{rec.position[2]:.6e}",
                f"{rec.theta:.6f}",
                f"{rec.phi:.6f}",
            ])

    print(f"[info] Exported {len(records)} backscatter records to {output_path}")


def export_backscatter_histogram_to_csv(stats: BackscatterStats, filename: str = "backscatter_energy_histogram.csv"):
    """Export the forward/back energy histograms of a ``BackscatterStats``."""
    output_path = Path(filename)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    stats.to_dataframe().to_csv(output_path, index=False)
    print(f"[info] Exported backscatter energy histogram to {output_path}")
