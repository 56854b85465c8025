"""
Relaxation balancer: iteratively uniformise a triangulation of the octant.

Each pass replaces every vertex by the normalised mean of its neighbours,
read from the previous snapshot:
  - corners stay fixed,
  - edge (non-corner) vertices use their two collinear edge neighbours,
    so they slide along the bounding great circle,
  - interior vertices use all six neighbours.
The normalised mean is not a canonical spherical mean, but it keeps every
point on the unit sphere, which is all the balancer needs.

The pass is a single sparse product (TriangularGrid.neighbor_operator)
followed by renormalisation, so every snapshot is a fresh Triangulation.
"""

import warnings
import numpy as np
from typing import Dict, Tuple

from trigrid import Triangulation
from utils import ConvergenceWarning, RELAX_MAX_ITER, RELAX_TOL, normalize


def balance_step(t: Triangulation, operator=None) -> Triangulation:
    """One relaxation pass; returns a new triangulation."""
    if operator is None:
        operator = t.grid.neighbor_operator()
    return t.with_points(normalize(operator @ t.points))


def rms_displacement(a: Triangulation, b: Triangulation) -> float:
    """Root-mean-square distance between corresponding points."""
    d2 = np.sum((a.points - b.points) ** 2, axis=1)
    return float(np.sqrt(d2.sum() / len(d2)))


def relax(
    seed: Triangulation,
    max_iter: int = RELAX_MAX_ITER,
    tol: float = RELAX_TOL,
    verbose: bool = False
) -> Tuple[Triangulation, Dict]:
    """
    Relax a seed triangulation until its points stop moving.

    Args:
        seed: Starting triangulation (refinement 1). Not modified.
        max_iter: Maximum number of passes.
        tol: Stop once the RMS displacement of a pass falls below this.
        verbose: Print the displacement of every pass.

    Returns:
        t: The last snapshot.
        info: {'iterations', 'converged', 'rms_history'}
    """
    operator = seed.grid.neighbor_operator()
    t = seed
    history = []
    converged = False

    for r in range(max_iter):
        refined = balance_step(t, operator)
        rms = rms_displacement(t, refined)
        history.append(rms)
        if verbose:
            print(f"  pass {r + 1:3d}: rms displacement = {rms:.3e}")
        t = refined
        if rms < tol:
            converged = True
            break

    if not converged:
        last = history[-1] if history else float('nan')
        warnings.warn(
            f"relax: rms displacement still {last:.3e} (tol {tol:g}) "
            f"after {max_iter} passes at order {seed.n}",
            ConvergenceWarning, stacklevel=2)

    info = {
        'iterations': len(history),
        'converged': converged,
        'rms_history': history,
    }
    return t, info


if __name__ == "__main__":
    from generators import sine_based

    for n in (4, 8, 16):
        t, info = relax(sine_based(n))
        status = "converged" if info['converged'] else "budget exhausted"
        print(f"n = {n:2d}: {info['iterations']:3d} passes ({status}), "
              f"final rms = {info['rms_history'][-1]:.3e}")
