"""
Sine-ratio solver.

For a point p on the octahedron face x + y + z = 1, find a unit vector
g = (x, y, z) whose arcsines have the same barycentric ratio as p:

    asin(x) : asin(y) : asin(z) = p.x : p.y : p.z

The iteration is a plain fixed-point scheme. It starts from the
"sineBased" estimate normalize(sin(tau/4 * p)), which is already exact along
the edges of the face, and corrects g by the barycentric offset of its
angles from p until that offset is below the tolerance.
"""

import warnings
import numpy as np

from utils import (ConvergenceWarning, SINE_RATIO_MAX_ITER, SINE_RATIO_TOL,
                   bary_normalize, normalize, sine_warp)


def asin_ratio(g: np.ndarray) -> np.ndarray:
    """Barycentric-normalised arcsines of the coordinates of g."""
    return bary_normalize(np.arcsin(np.clip(g, -1.0, 1.0)))


def _solve(p, max_iter, tol):
    """Run the iteration; returns (estimate, iterations used, converged)."""
    guess = normalize(sine_warp(p))
    for it in range(max_iter):
        offset = asin_ratio(guess) - p
        if np.linalg.norm(offset) < tol:
            return guess, it, True
        guess = normalize(bary_normalize(guess) - offset)
    return guess, max_iter, False


def find_sine_ratio(
    p: np.ndarray,
    max_iter: int = SINE_RATIO_MAX_ITER,
    tol: float = SINE_RATIO_TOL
) -> np.ndarray:
    """
    Solve for the unit vector whose arcsine ratio equals p.

    Args:
        p: Point on the octahedron face (coordinates summing to 1).
        max_iter: Iteration budget.
        tol: Required norm of the barycentric angle offset.

    Returns:
        The solution, or the last estimate (with a ConvergenceWarning) if the
        budget runs out.
    """
    p = np.asarray(p, dtype=float)
    guess, _, converged = _solve(p, max_iter, tol)
    if not converged:
        warnings.warn(f"find_sine_ratio: no convergence for p={p} after {max_iter} iterations",
                      ConvergenceWarning, stacklevel=2)
    return guess


def find_sine_ratios(
    points: np.ndarray,
    max_iter: int = SINE_RATIO_MAX_ITER,
    tol: float = SINE_RATIO_TOL,
    verbose: bool = False
) -> np.ndarray:
    """
    Apply the solver to every row of an (N, 3) array.

    Emits at most one ConvergenceWarning naming how many points failed.
    """
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    result = np.empty_like(points)
    iterations = []
    failed = 0
    for idx, p in enumerate(points):
        result[idx], its, converged = _solve(p, max_iter, tol)
        iterations.append(its)
        if not converged:
            failed += 1

    if verbose and iterations:
        print(f"Sine-ratio solver: {len(points)} points, "
              f"iterations min/mean/max = {min(iterations)}/{np.mean(iterations):.2f}/{max(iterations)}")
    if failed:
        warnings.warn(f"find_sine_ratios: {failed} of {len(points)} points did not converge "
                      f"within {max_iter} iterations", ConvergenceWarning, stacklevel=2)
    return result


if __name__ == "__main__":
    for p in ([1, 0, 0], [0.5, 0.5, 0], [1/3, 1/3, 1/3], [0.6, 0.3, 0.1]):
        g = find_sine_ratio(np.array(p, dtype=float))
        print(f"p = {np.round(p, 4)} -> g = {np.round(g, 8)}, "
              f"|g| = {np.linalg.norm(g):.12f}, asin ratio = {np.round(asin_ratio(g), 10)}")
