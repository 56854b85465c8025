"""
Triangulation generators for the eighth sphere bounded by the x, y and z axes.

Every generator maps (n, refinement) to a Triangulation by evaluating a
parametric function f(t, u) on the grid:

    u = i / n                      (row parameter, towards ey)
    t = j / ((n - i) * refinement) (position within the row, ex -> ez)

so row i holds (n - i) * refinement + 1 points and the last row is the apex
ey. With refinement 1 the grid is the regular triangular grid of order n.

The formulas are written for readability and comparability, not speed; each
one is vectorised over all grid points at once.
"""

import functools
import numpy as np
from typing import Callable, Dict

from trigrid import Triangulation
from relaxation import relax
from sine_ratio import find_sine_ratios
from utils import (EX, EY, EZ, InvalidArgument, check_order, check_refinement,
                   lerp, normalize, sine_warp, slerp)


def grid_parameters(n: int, refinement: int = 1):
    """Parameter arrays (t, u) for every grid point in row-major order."""
    n = check_order(n)
    refinement = check_refinement(refinement)
    ts, us = [], []
    for i in range(n + 1):
        steps = (n - i) * refinement
        u = i / n if n else 0.0
        t = np.linspace(0.0, 1.0, steps + 1) if steps else np.zeros(1)
        ts.append(t)
        us.append(np.full(len(t), u))
    return np.concatenate(ts), np.concatenate(us)


def triangulate(f: Callable[[np.ndarray, np.ndarray], np.ndarray]):
    """Turn a vectorised parametric function f(t, u) into a generator."""
    @functools.wraps(f)
    def generate(n: int, refinement: int = 1) -> Triangulation:
        t, u = grid_parameters(n, refinement)
        points = np.broadcast_to(f(t, u), (len(t), 3))
        return Triangulation(points, n, refinement)
    return generate


# =============================================================================
# Direct parametrisations
# =============================================================================

@triangulate
def flat(t, u):
    """Planar triangle spanned by ex, ez and ey (not on the sphere)."""
    return lerp(lerp(EX, EZ, t), EY, u)


@triangulate
def collapsed(t, u):
    """Every point at the origin. A degenerate fixture."""
    return np.zeros((len(t), 3))


@triangulate
def geodesics(t, u):
    """The flat triangle projected centrally onto the sphere."""
    return normalize(lerp(lerp(EX, EZ, t), EY, u))


@triangulate
def parallels(t, u):
    """Nested slerp: rows are parallels (circles of latitude around ey)."""
    return slerp(slerp(EX, EZ, t), EY, u)


@triangulate
def even_geodesics(t, u):
    """Nested slerp the other way round: even angular spacing along both axes."""
    return slerp(slerp(EX, EY, u), slerp(EZ, EY, u), t)


# =============================================================================
# Sine-based variants
# =============================================================================

def sines(n: int, refinement: int = 1) -> Triangulation:
    """
    The flat grid warped by sin(tau/4 * coordinate).

    Not a sphere triangulation: edge points land on the sphere, but face
    points lie inside it.
    """
    return flat(n, refinement).map(sine_warp)


def sine_based(n: int, refinement: int = 1) -> Triangulation:
    return sines(n, refinement).map(normalize)


def project_parallel(p: np.ndarray) -> np.ndarray:
    """
    Parallel projection in the (1, 1, 1) direction onto the unit sphere.

    Solves |p + lambda (1, 1, 1)| = 1 for the root with the larger lambda.
    """
    p = np.asarray(p, dtype=float)
    x, y, z = p[..., 0], p[..., 1], p[..., 2]
    disc = 2 * (x*y + x*z + y*z - x*x - y*y - z*z) + 3
    lam = (np.sqrt(np.maximum(disc, 0.0)) - (x + y + z)) / 3
    return p + lam[..., np.newaxis]


def sine_based2(n: int, refinement: int = 1) -> Triangulation:
    """A variant of sine_based using parallel instead of central projection."""
    return sines(n, refinement).map(project_parallel)


def asin_based(n: int, refinement: int = 1) -> Triangulation:
    """Points whose arcsine ratios equal the flat grid's barycentric coordinates."""
    return flat(n, refinement).map(find_sine_ratios)


def balanced(n: int, refinement: int = 1) -> Triangulation:
    """sine_based relaxed to near-uniform edge lengths (see relaxation.relax)."""
    if check_refinement(refinement) != 1:
        raise InvalidArgument("balanced triangulations need refinement 1")
    # The seed hardly matters for the result, only for the number of passes
    t, _ = relax(sine_based(n))
    return t


# =============================================================================
# Registry
# =============================================================================

TRIANGULATION_FNS: Dict[str, Callable[..., Triangulation]] = {
    "flat": flat,
    "sines": sines,
    "collapsed": collapsed,
    "geodesics": geodesics,
    "evenGeodesics": even_geodesics,
    "parallels": parallels,
    "sineBased": sine_based,
    "sineBased2": sine_based2,
    "asinBased": asin_based,
    "balanced": balanced,
}

# Methods worth offering to a display; "collapsed" only exists for testing
DISPLAY_METHODS = [name for name in TRIANGULATION_FNS if name != "collapsed"]

# Generators whose points all lie on the unit sphere
SPHERICAL_METHODS = ["geodesics", "evenGeodesics", "parallels",
                     "sineBased", "sineBased2", "asinBased", "balanced"]


def rays(t: Triangulation) -> np.ndarray:
    """Segments from the origin to every point, shape (N, 2, 3)."""
    origins = np.zeros_like(t.points)
    return np.stack([origins, t.points], axis=1)


if __name__ == "__main__":
    n = 4
    for name, fn in TRIANGULATION_FNS.items():
        t = fn(n)
        radii = np.linalg.norm(t.points, axis=1)
        print(f"{name:14s} rows={[len(row) for row in t]} "
              f"|p| in [{radii.min():.6f}, {radii.max():.6f}]")
