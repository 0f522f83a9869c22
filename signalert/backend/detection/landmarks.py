"""
Landmark normalization and frame-to-frame similarity.

Both functions accept nested sequences or numpy arrays of ``[x, y, z]``
points, so stored JSON frames and live detector output can be compared
directly.
"""
from typing import Optional

import numpy as np

from signalert.backend.core.config import (
    MAX_DISTANCE,
    SCALE_EPSILON,
    WRIST_INDEX,
    Z_WEIGHT,
)


def _to_array(points):
    """
    Convert a point sequence to an (N, 3) float array.

    Points with fewer than two coordinates stay at (0, 0, 0) and are flagged
    invalid. A missing or non-finite z becomes 0.

    Returns:
        tuple (array, valid_mask)
    """
    array = np.zeros((len(points), 3), dtype=np.float64)
    valid = np.zeros(len(points), dtype=bool)

    for i, point in enumerate(points):
        if point is None or len(point) < 2:
            continue
        array[i, 0] = float(point[0])
        array[i, 1] = float(point[1])
        if len(point) > 2 and point[2] is not None:
            z = float(point[2])
            array[i, 2] = z if np.isfinite(z) else 0.0
        valid[i] = True

    return array, valid


def normalize(points, epsilon: float = SCALE_EPSILON) -> Optional[np.ndarray]:
    """
    Normalize hand landmarks relative to the wrist and the hand's bounding box.

    x and y are centered on the wrist (landmark 0) and divided by the larger
    side of the bounding box (at least ``epsilon``). z is kept as is.

    Args:
        points: sequence of [x, y, z] points (21 for one hand, 42 for two)
        epsilon: lower bound for the scale

    Returns:
        normalized: np.array of shape (N, 3), or None if the input can't be used
    """
    if points is None or len(points) == 0:
        return None

    try:
        wrist = points[WRIST_INDEX]
        if wrist is None or len(wrist) < 2:
            return None
        array, valid = _to_array(points)
    except (TypeError, ValueError):
        return None

    xy = array[valid, :2]
    finite_xy = xy[np.isfinite(xy).all(axis=1)]
    if len(finite_xy):
        width, height = finite_xy.max(axis=0) - finite_xy.min(axis=0)
    else:
        width = height = 0.0
    scale = max(width, height, epsilon)

    normalized = np.zeros_like(array)
    normalized[valid, :2] = (array[valid, :2] - array[WRIST_INDEX, :2]) / scale
    normalized[valid, 2] = array[valid, 2]
    return normalized


def similarity(current, stored, z_weight: float = Z_WEIGHT, max_distance: float = MAX_DISTANCE) -> float:
    """
    Compare two landmark frames.

    The per-point distance is ``sqrt(dx² + dy² + z_weight·dz²)``; points with
    a non-finite distance are skipped. The average distance maps linearly to
    a score, 1.0 for identical frames down to 0.0 at ``max_distance``.

    Args:
        current: live landmarks
        stored: reference landmarks, same length as ``current``

    Returns:
        float in [0, 1]; 0 when the frames can't be compared
    """
    if current is None or stored is None or len(current) != len(stored):
        return 0.0

    norm_current = normalize(current)
    norm_stored = normalize(stored)
    if norm_current is None or norm_stored is None:
        return 0.0

    with np.errstate(invalid="ignore", over="ignore"):
        diff = norm_current - norm_stored
        distances = np.sqrt(diff[:, 0] ** 2 + diff[:, 1] ** 2 + z_weight * diff[:, 2] ** 2)

    distances = distances[np.isfinite(distances)]
    if len(distances) == 0:
        return 0.0

    average_distance = float(distances.mean())
    return float(np.clip(1.0 - average_distance / max_distance, 0.0, 1.0))
