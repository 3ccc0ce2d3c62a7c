"""
Geometric constants, debug flag and geometry diagnostics.
"""

import sys
import threading

# Sentinel returned by Shape.first_intersection when there is no forward hit
NO_INTERSECTION = sys.float_info.max

# Distance used to push a point just past a boundary (m)
SMALL_DISP = 1.0e-15

# Parameter offset used to test which side of a crossing a point lies on
CROSSING_TEST_OFFSET = 1.0e-12

# Denominator guard for near-parallel segments
PARALLEL_EPSILON = 1.0e-40

# Upper bound on nudge-and-retry passes inside a single CSG query
MAX_CSG_ITERATIONS = 1000

# Debug flag
DEBUG = False

# Global statistics for boundary handling (update through count_geometry_event)
GEOMETRY_STATS = {
    'csg_retries': 0,
    'region_reresolved': 0,
    'lost_electrons': 0,
    'dropped_secondaries': 0,
}


_STATS_LOCK = threading.Lock()


def count_geometry_event(key, n=1):
    """Increment a geometry counter; safe to call from worker threads."""
    with _STATS_LOCK:
        GEOMETRY_STATS[key] = GEOMETRY_STATS.get(key, 0) + n


def reset_geometry_stats():
    """Reset geometry statistics counters."""
    global GEOMETRY_STATS
    with _STATS_LOCK:
        GEOMETRY_STATS.clear()
        GEOMETRY_STATS.update({
            'csg_retries': 0,
            'region_reresolved': 0,
            'lost_electrons': 0,
            'dropped_secondaries': 0,
        })


def print_geometry_stats():
    """Print statistics about boundary handling.

    Frequent re-resolution or lost electrons point at shapes whose
    ``contains`` and ``first_intersection`` disagree, or at child regions
    that are not fully enclosed by their parent.
    """
    stats = GEOMETRY_STATS
    print("\n" + "=" * 60)
    print("GEOMETRY STATISTICS")
    print("=" * 60)
    print(f"CSG nudge-and-retry passes:      {stats['csg_retries']:,}")
    print(f"Region re-resolved after nudge:  {stats['region_reresolved']:,}")
    print(f"Electrons found in no region:    {stats['lost_electrons']:,}")
    print(f"Secondaries dropped (depth cap): {stats['dropped_secondaries']:,}")
    print("=" * 60)

    if stats['lost_electrons'] > 0:
        print("[warning] Some electrons were found outside every region.")
        print("   - Check that child regions are enclosed by their parents")
        print("   - Check for shapes with inconsistent boundaries")
    print()
