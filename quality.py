"""
Quality metrics of a triangulated octant.

Measures:
- Edge length statistics over every grid edge (count, mean, population
  standard deviation, min, max)
- Dihedral "bend" of every edge: the supplementary angle to the dihedral
  angle between the two triangles sharing the edge. Boundary edges use the
  outer vertex of the adjacent strip (mesh_buffers.outer_vertex) as the
  missing wing.
- Enclosed volume: signed tetrahedra spanned by the origin and each triangle,
  compared with the exact eighth-ball volume tau/12.
"""

import math
import numpy as np
from typing import Dict, List, Optional

from mesh_buffers import outer_vertex, triangle_vertices
from trigrid import Triangulation
from utils import BEND_TIE_TOL, OCTANT_VOLUME, check_adjacency, normalize, rad_to_deg


def edge_statistics(t: Triangulation) -> Dict[str, float]:
    """Length statistics over all grid edges."""
    grid = t.grid
    pairs = [(grid.index(*a), grid.index(*b)) for a, b in grid.forward_edges()]
    nan = float('nan')
    if not pairs:
        return {'count': 0, 'mean': nan, 'std_dev': nan, 'std_dev_percent': nan,
                'min': nan, 'max': nan, 'max_min_ratio': nan}

    pairs = np.array(pairs)
    d = np.linalg.norm(t.points[pairs[:, 1]] - t.points[pairs[:, 0]], axis=1)

    count = len(d)
    sum1, sum2 = float(d.sum()), float((d * d).sum())
    mean = sum1 / count
    std_dev = math.sqrt(max(0.0, sum2 / count - mean ** 2))
    d_min, d_max = float(d.min()), float(d.max())
    return {
        'count': count,
        'mean': mean,
        'std_dev': std_dev,
        'std_dev_percent': std_dev / mean * 100 if mean > 0 else nan,
        'min': d_min,
        'max': d_max,
        'max_min_ratio': d_max / d_min if d_min > 0 else nan,
    }


def dihedral_bend(p0, p1, p2, p3):
    """
    Dihedral bend between triangles p0 p1 p2 and p0 p2 p3 (shared edge p0 p2),
    that is, the supplementary angle to the dihedral angle. 0 for a planar
    joint. Vectorised over leading axes.
    """
    u01 = np.asarray(p1) - p0
    u02 = np.asarray(p2) - p0
    u03 = np.asarray(p3) - p0
    n012 = normalize(np.cross(u01, u02))
    n023 = normalize(np.cross(u02, u03))
    return np.arccos(np.clip(np.sum(n012 * n023, axis=-1), -1.0, 1.0))


def edge_wings(t: Triangulation, i: int, j: int, i2: int, j2: int, adjacency: str = "sphere"):
    """
    The two vertices opposite the edge (i, j) -- (i2, j2), one per adjacent
    triangle, plus the boundary edge name if one of them is an outer vertex.

    For the offset (di, dj) = (i2 - i, j2 - j) the opposite grid positions
    are a = (i + di + dj, j - di) and b = (i - dj, j + di + dj). Exactly one
    of them leaves the grid on a boundary edge:
        ib < 0       -> edge in the plane y = 0 (i = 0)
        ja < 0       -> edge in the plane z = 0 (j = 0)
        ib + jb > n  -> edge in the plane x = 0 (k = 0)
    """
    n = t.n
    di, dj = i2 - i, j2 - j
    ia, ja = i + di + dj, j - di
    ib, jb = i - dj, j + di + dj
    if ib < 0:
        return t[1, j], outer_vertex(t, "y", j, adjacency), "y"
    if ja < 0:
        return outer_vertex(t, "z", i, adjacency), t[i, 1], "z"
    if ib + jb > n:
        # Wings swapped relative to (a, b); the bend is symmetric in them
        return outer_vertex(t, "x", i, adjacency), t[i, j - 1], "x"
    return t[ia, ja], t[ib, jb], None


def edge_bends(t: Triangulation, adjacency: str = "sphere") -> List[Dict]:
    """Bend of every grid edge, sorted by bend descending."""
    check_adjacency(adjacency)
    grid = t.grid
    records, quads = [], []
    for (i, j), (i2, j2) in grid.forward_edges():
        va, vb, boundary = edge_wings(t, i, j, i2, j2, adjacency)
        quads.append((t[i, j], va, t[i2, j2], vb))
        records.append({'i': i, 'j': j, 'i2': i2, 'j2': j2, 'boundary': boundary})
    if not records:
        return []

    quads = np.array(quads)
    bends = dihedral_bend(quads[:, 0], quads[:, 1], quads[:, 2], quads[:, 3])
    for record, bend in zip(records, bends):
        record['bend'] = float(bend)
    records.sort(key=lambda r: r['bend'], reverse=True)
    return records


def signed_volume(triangles: np.ndarray) -> float:
    """
    Volume enclosed between the origin and triangles of shape (T, 3, 3).

    Triangles are wound clockwise seen from outside, hence a . (c x b).
    """
    if len(triangles) == 0:
        return 0.0
    a, b, c = triangles[:, 0], triangles[:, 1], triangles[:, 2]
    return float(np.einsum('ij,ij->i', a, np.cross(c, b)).sum() / 6)


def volume(t: Triangulation) -> float:
    tris = t.grid.triangle_array()
    return signed_volume(t.points[tris])


def mesh_volume(mesh: Dict) -> float:
    """Volume enclosed by a buffer dict from mesh_buffers (patch or octasphere)."""
    return signed_volume(triangle_vertices(mesh))


def compute_metrics(
    t: Triangulation,
    adjacency: str = "sphere",
    tie_tol: float = BEND_TIE_TOL
) -> Dict:
    """
    All quality metrics of a triangulation.

    Returns a dict with edge statistics (edge_count, mean_edge_length,
    std_dev_edge_length, std_dev_percent, min_edge_length, max_edge_length,
    max_min_ratio), bends (max_bend in radians, bent_edges = every edge
    within tie_tol of it, bends = full ranking) and volume / volume_fraction.
    """
    stats = edge_statistics(t)
    bends = edge_bends(t, adjacency)
    max_bend = bends[0]['bend'] if bends else float('nan')
    bent_edges = [b for b in bends if max_bend - b['bend'] < tie_tol]
    vol = volume(t)
    return {
        'n': t.n,
        'adjacency': adjacency,
        'edge_count': stats['count'],
        'mean_edge_length': stats['mean'],
        'std_dev_edge_length': stats['std_dev'],
        'std_dev_percent': stats['std_dev_percent'],
        'min_edge_length': stats['min'],
        'max_edge_length': stats['max'],
        'max_min_ratio': stats['max_min_ratio'],
        'max_bend': max_bend,
        'bent_edges': bent_edges,
        'bends': bends,
        'volume': vol,
        'volume_fraction': vol / OCTANT_VOLUME,
    }


# =============================================================================
# Display strings
# =============================================================================

def format_metrics(metrics: Dict) -> Dict[str, str]:
    """The metric strings a display shows next to the patch."""
    fraction = metrics['volume_fraction']
    return {
        'edges': f"{metrics['edge_count']:d}",
        'mean_edge': (f"{metrics['mean_edge_length']:.5f} ± {metrics['std_dev_edge_length']:.5f} "
                      f"(±{metrics['std_dev_percent']:.3f}%)"),
        'min_max': (f"{metrics['min_edge_length']:.5f} : {metrics['max_edge_length']:.5f} "
                    f"(1 : {metrics['max_min_ratio']:.5f})"),
        'max_bend': f"{rad_to_deg(metrics['max_bend']):.4f}°",
        'volume': f"{fraction * 100:.5f}% (gap: {(1 - fraction) * 100:.5f}%)",
    }


def format_bend_ranking(
    bends: List[Dict],
    n: int,
    tie_tol: float = BEND_TIE_TOL,
    limit: Optional[int] = None
) -> List[str]:
    """
    One line per edge, most bent first. A leading '*' marks the first edge
    of every new bend level.
    """
    lines = []
    for rank, b in enumerate(bends[:limit]):
        new_level = rank == 0 or b['bend'] < bends[rank - 1]['bend'] - tie_tol
        lines.append(
            ("* " if new_level else "  ") +
            f"{rad_to_deg(b['bend']):.4f}° @ "
            f"{b['i']}:{b['j']}:{n - b['i'] - b['j']} - "
            f"{b['i2']}:{b['j2']}:{n - b['i2'] - b['j2']}"
        )
    return lines


if __name__ == "__main__":
    from generators import TRIANGULATION_FNS

    n = 8
    for name in ("flat", "geodesics", "sineBased", "balanced"):
        metrics = compute_metrics(TRIANGULATION_FNS[name](n))
        shown = format_metrics(metrics)
        print(f"{name:10s} edges={shown['edges']}  mean={shown['mean_edge']}  "
              f"bend={shown['max_bend']}  volume={shown['volume']}")
