"""
2D point/vector helpers.

Points and vectors are float64 arrays of shape (2,). All functions are pure
and return new arrays.
"""

import math
import numpy as np

EPSILON = 1e-12


def as_point(x, y=None) -> np.ndarray:
    """Build a point from (x, y) scalars or from any length-2 sequence."""
    if y is None:
        p = np.asarray(x, dtype=np.float64).reshape(-1)
        if p.shape != (2,):
            raise ValueError(f"Expected 2 components, got {p.shape[0]}")
        return p.copy()
    return np.array([x, y], dtype=np.float64)


def add(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return a + b


def subtract(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return a - b


def scale(v: np.ndarray, s: float) -> np.ndarray:
    return v * s


def dot(a: np.ndarray, b: np.ndarray) -> float:
    return float(a[0] * b[0] + a[1] * b[1])


def length(v: np.ndarray) -> float:
    return math.hypot(v[0], v[1])


def distance(a: np.ndarray, b: np.ndarray) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def line_angle(a: np.ndarray, b: np.ndarray) -> float:
    """Angle of the line a -> b against the x axis, in radians."""
    return math.atan2(b[1] - a[1], b[0] - a[0])


def unit(v: np.ndarray) -> np.ndarray:
    """Unit vector along v; the zero vector when v has no length."""
    L = length(v)
    if L < EPSILON:
        return np.zeros(2)
    return v / L


def perpendicular(v: np.ndarray) -> np.ndarray:
    """v rotated by +90 degrees."""
    return np.array([-v[1], v[0]], dtype=np.float64)


def midpoint(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return (a + b) * 0.5


def projection_length(p: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    """
    Signed distance from a to the foot of p on the line a -> b.

    lengthFromA = ((p - a) . (b - a)) / |b - a|, 0 for a degenerate line.
    """
    ab = b - a
    L = length(ab)
    if L < EPSILON:
        return 0.0
    return dot(p - a, ab) / L


def project_onto_line(p: np.ndarray, a: np.ndarray, b: np.ndarray,
                      clamp_to_segment: bool = False) -> np.ndarray:
    """
    Closest point to p on the line through a and b.

    With clamp_to_segment the result stays between a and b. A degenerate
    line (a == b) projects everything onto a.
    """
    ab = b - a
    L = length(ab)
    if L < EPSILON:
        return a.copy()
    along = dot(p - a, ab) / L
    if clamp_to_segment:
        along = min(max(along, 0.0), L)
    return a + along * (ab / L)
