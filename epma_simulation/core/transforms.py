"""
Euler-angle rotations and translations of points and vectors.

Rotations use the z-y-z convention: ``phi`` about z, then ``theta`` about
the new y, then ``psi`` about the new z.
"""

from __future__ import annotations

import math

import numpy as np


def rotation_matrix(phi: float, theta: float, psi: float) -> np.ndarray:
    """Return the 3x3 rotation matrix for Euler angles (phi, theta, psi)."""
    c_th, s_th = math.cos(theta), math.sin(theta)
    c_phi, s_phi = math.cos(phi), math.sin(phi)
    c_psi, s_psi = math.cos(psi), math.sin(psi)
    return np.array([
        [c_phi * c_th * c_psi - s_phi * s_psi, -s_phi * c_th * c_psi - c_phi * s_psi, s_th * c_psi],
        [s_phi * c_psi + c_phi * c_th * s_psi, -s_phi * c_th * s_psi + c_phi * c_psi, s_th * s_psi],
        [-c_phi * s_th, s_th * s_phi, c_th],
    ])


def rotate_vector(vector, phi: float, theta: float, psi: float) -> np.ndarray:
    """Rotate a direction vector about the origin."""
    return rotation_matrix(phi, theta, psi) @ np.asarray(vector, dtype=float)


def rotate_point(point, pivot, phi: float, theta: float, psi: float) -> np.ndarray:
    """Rotate a point about ``pivot``."""
    pivot = np.asarray(pivot, dtype=float)
    return rotate_vector(np.asarray(point, dtype=float) - pivot, phi, theta, psi) + pivot


def normalize(vector) -> np.ndarray:
    """Return a unit vector parallel to ``vector``."""
    vector = np.asarray(vector, dtype=float)
    norm = np.linalg.norm(vector)
    if norm == 0.0:
        raise ValueError("Cannot normalize a zero-length vector.")
    return vector / norm


def point_between(pos0: np.ndarray, pos1: np.ndarray, t: float) -> np.ndarray:
    """Point at parameter ``t`` along the segment pos0 -> pos1."""
    return pos0 + t * (pos1 - pos0)


def parameter_offset(pos0: np.ndarray, pos1: np.ndarray, minimum: float, ulps: float = 128.0) -> float:
    """Segment parameter for nudging a point along pos0 -> pos1.

    Returns ``minimum``, raised where needed so the nudge moves the point by
    at least ``ulps`` float spacings of the largest coordinate involved.
    Short segments far from the origin otherwise round the nudge away.
    """
    length = float(np.linalg.norm(pos1 - pos0))
    if length == 0.0:
        return minimum
    scale = max(float(np.max(np.abs(pos0))), float(np.max(np.abs(pos1))))
    return max(minimum, ulps * float(np.finfo(float).eps) * scale / length)
