"""
Shared constants and vector primitives for the eighth-sphere triangulations.

All primitives are vectorised: they accept a single 3-vector or an array of
shape (..., 3) and operate on the last axis.
"""

import math
import numpy as np

TAU = 2 * math.pi

# Sphere-axis intercepts
EX = np.array([1.0, 0.0, 0.0])
EY = np.array([0.0, 1.0, 0.0])
EZ = np.array([0.0, 0.0, 1.0])

# Volume of one eighth of the unit ball
OCTANT_VOLUME = TAU / 12

# Tunables (used as keyword defaults throughout)
SINE_RATIO_TOL = 1e-10
SINE_RATIO_MAX_ITER = 30
RELAX_TOL = 1e-8
RELAX_MAX_ITER = 100
BEND_TIE_TOL = 1e-7
ADJACENCY_MODES = ("sphere", "cylinder")
MAX_STEPS = 40


class InvalidArgument(ValueError):
    """Raised for subdivision orders, refinements or modes outside the contract."""


class ConvergenceWarning(RuntimeWarning):
    """An iterative procedure ran out of iterations and returned its last estimate."""


def check_order(n):
    """Validate a subdivision order and return it as a plain int."""
    if isinstance(n, (bool, np.bool_)) or not isinstance(n, (int, np.integer)):
        raise InvalidArgument(f"subdivision order must be an integer, got {n!r}")
    if n < 0:
        raise InvalidArgument(f"subdivision order must be >= 0, got {n}")
    return int(n)


def check_refinement(refinement):
    if isinstance(refinement, (bool, np.bool_)) or not isinstance(refinement, (int, np.integer)):
        raise InvalidArgument(f"refinement must be an integer, got {refinement!r}")
    if refinement < 1:
        raise InvalidArgument(f"refinement must be >= 1, got {refinement}")
    return int(refinement)


def check_adjacency(adjacency):
    if adjacency not in ADJACENCY_MODES:
        raise InvalidArgument(
            f"adjacency must be one of {', '.join(ADJACENCY_MODES)}, got {adjacency!r}")
    return adjacency


# =============================================================================
# Vector primitives
# =============================================================================

def norm(v):
    return np.linalg.norm(v, axis=-1)


def normalize(v):
    """Scale vectors to unit length. Zero vectors stay zero."""
    v = np.asarray(v, dtype=float)
    length = np.linalg.norm(v, axis=-1, keepdims=True)
    return np.divide(v, length, out=np.zeros_like(v), where=length > 0)


def lerp(a, b, t):
    """Linear interpolation a + t (b - a), broadcasting t over the last axis."""
    t = np.asarray(t, dtype=float)[..., np.newaxis]
    return (1.0 - t) * a + t * b


def slerp(a, b, t):
    """
    Spherical linear interpolation between unit vectors a and b.

    Moves along the great-circle arc from a (t=0) to b (t=1) at constant
    angular speed. Where a and b coincide the result is a.
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    t = np.asarray(t, dtype=float)[..., np.newaxis]
    cos_omega = np.clip(np.sum(a * b, axis=-1, keepdims=True), -1.0, 1.0)
    omega = np.arccos(cos_omega)
    sin_omega = np.sin(omega)
    degenerate = sin_omega < 1e-12
    safe_sin = np.where(degenerate, 1.0, sin_omega)
    wa = np.where(degenerate, 1.0 - t, np.sin((1.0 - t) * omega) / safe_sin)
    wb = np.where(degenerate, t, np.sin(t * omega) / safe_sin)
    return wa * a + wb * b


def bary_norm(p):
    """Sum of the coordinates (the 'barycentric norm' on the octahedron face)."""
    return np.sum(p, axis=-1)


def bary_normalize(p):
    """Scale p so that its coordinates sum to 1."""
    p = np.asarray(p, dtype=float)
    return p / bary_norm(p)[..., np.newaxis]


def sine_warp(p):
    """Apply sin(tau/4 * coordinate) to every coordinate."""
    return np.sin(TAU / 4 * np.asarray(p, dtype=float))


def rad_to_deg(angle):
    return angle * 360 / TAU


if __name__ == "__main__":
    print(f"TAU = {TAU:.6f}")
    print(f"octant volume = {OCTANT_VOLUME:.6f}")
    print(f"slerp(ex, ey, 0.5) = {slerp(EX, EY, 0.5)}")
    print(f"sine_warp((1/3, 1/3, 1/3)) normalised = {normalize(sine_warp(np.full(3, 1/3)))}")
