"""
Flat vertex/index buffers for handing a triangulated octant to a renderer.

Buffers follow the usual GPU layout: positions, normals and UVs are flat
float32 arrays (3, 3 and 2 values per vertex), indices a flat uint32 array
(3 per triangle).

Besides the patch itself, three "adjacent" strips continue the patch
across its boundary edges, either as the mirrored neighbouring patch of
the sphere ("sphere") or straight out onto the bounding cylinder
("cylinder"). They are separate sub-meshes, never merged into the patch
buffers, and the bend metrics in quality.py use the same outer vertices.
"""

import itertools
import numpy as np
from typing import Dict, List

from trigrid import Triangulation
from utils import check_adjacency

# Boundary edges, named by the coordinate plane they lie in:
#   "y": i = 0 (y = 0),  "z": j = 0 (z = 0),  "x": k = 0 (x = 0)
BOUNDARY_EDGES = ("y", "z", "x")

_AXIS = {"x": 0, "y": 1, "z": 2}


def boundary_point(t: Triangulation, edge: str, m: int) -> np.ndarray:
    """Point m (0..n) along a boundary edge."""
    n = t.n
    if edge == "y":
        return t[0, m]
    if edge == "z":
        return t[m, 0]
    if edge == "x":
        return t[m, n - m]
    raise ValueError(f"unknown boundary edge {edge!r}")


def outer_vertex(t: Triangulation, edge: str, m: int, adjacency: str) -> np.ndarray:
    """
    Outer vertex of slot m (0..n-1), the one facing boundary segment
    m -- m+1 from outside the patch.

    sphere:   the interior vertex next to the segment, mirrored across the
              boundary plane.
    cylinder: a segment end point with the missing coordinate set to -1.
    """
    n = t.n
    axis = _AXIS[edge]
    if adjacency == "sphere":
        inner = {"y": lambda: t[1, m], "z": lambda: t[m, 1], "x": lambda: t[m, n - m - 1]}[edge]()
        outer = inner.copy()
        outer[axis] = -outer[axis]
    else:
        # Any point of the segment gives the same wing plane; z uses the far end
        source = boundary_point(t, edge, m + 1 if edge == "z" else m)
        outer = source.copy()
        outer[axis] = -1.0
    return outer


def adjacent_strip(t: Triangulation, edge: str, adjacency: str = "sphere") -> Dict[str, np.ndarray]:
    """
    Strip of 2n + 1 vertices along one boundary edge: even slots hold the
    boundary vertices, odd slots the outer vertices; n triangles.
    """
    check_adjacency(adjacency)
    n = t.n
    positions = np.zeros((2 * n + 1, 3))
    indices = np.zeros((n, 3), dtype=np.uint32)
    for m in range(n + 1):
        positions[2 * m] = boundary_point(t, edge, m)
        if m > 0:
            positions[2 * m - 1] = outer_vertex(t, edge, m - 1, adjacency)
            indices[m - 1] = (2 * (m - 1), 2 * m, 2 * m - 1)
    flat_positions = positions.astype(np.float32).ravel()
    return {
        'edge': edge,
        'positions': flat_positions,
        'normals': flat_positions.copy(),
        'indices': indices.ravel(),
    }


def build_mesh(t: Triangulation, smooth: bool = False, adjacency: str = "sphere") -> Dict:
    """
    Build the renderer buffers of a triangulated patch.

    Args:
        t: Triangulation with refinement 1.
        smooth: Emit per-vertex normals (smooth shading). Without normals the
            renderer shades every triangle flat.
        adjacency: "sphere" or "cylinder" continuation for the adjacent strips.

    Returns:
        dict with 'positions', 'normals' (None unless smooth), 'uvs',
        'indices', 'vertex_count', 'triangle_count' and 'adjacent' (three
        strip dicts, see adjacent_strip).
    """
    check_adjacency(adjacency)
    grid = t.grid
    n = grid.n

    positions = t.points.astype(np.float32).ravel()
    # Normal == position, valid because the spherical generators produce unit vectors
    normals = positions.copy() if smooth else None

    i, j = grid.coordinates()
    if n:
        uvs = np.column_stack([(j + i / 2) / n, i / n])
    else:
        uvs = np.zeros((1, 2))

    indices = grid.triangle_array().astype(np.uint32).ravel()

    return {
        'positions': positions,
        'normals': normals,
        'uvs': uvs.astype(np.float32).ravel(),
        'indices': indices,
        'vertex_count': grid.vertex_count(),
        'triangle_count': grid.triangle_count(),
        'adjacent': [adjacent_strip(t, edge, adjacency) for edge in BOUNDARY_EDGES],
    }


def octant_signs() -> List[np.ndarray]:
    """Sign patterns of the eight octants, the positive one first."""
    return [np.array(s, dtype=float) for s in itertools.product((1, -1), repeat=3)]


def build_octasphere(t: Triangulation, smooth: bool = False) -> Dict:
    """
    Mirror the patch into all eight octants: 8 n² triangles.

    Each octant gets its own copy of the vertices; the winding is reversed
    in octants with an odd number of mirrored axes so that all triangles
    keep facing outwards.
    """
    grid = t.grid
    base_triangles = grid.triangle_array()
    count = grid.vertex_count()

    positions, indices = [], []
    for octant, signs in enumerate(octant_signs()):
        positions.append(t.points * signs)
        tris = base_triangles + octant * count
        if np.prod(signs) < 0:
            tris = tris[:, [0, 2, 1]]
        indices.append(tris)

    flat_positions = np.concatenate(positions).astype(np.float32).ravel()
    return {
        'positions': flat_positions,
        'normals': flat_positions.copy() if smooth else None,
        'indices': np.concatenate(indices).astype(np.uint32).ravel(),
        'vertex_count': 8 * count,
        'triangle_count': 8 * grid.triangle_count(),
    }


def triangle_vertices(mesh: Dict) -> np.ndarray:
    """Positions of the triangles of a buffer dict, shape (T, 3, 3)."""
    positions = np.asarray(mesh['positions'], dtype=float).reshape(-1, 3)
    indices = np.asarray(mesh['indices'], dtype=np.int64).reshape(-1, 3)
    return positions[indices]


if __name__ == "__main__":
    from generators import geodesics

    for n in (0, 1, 2, 6):
        mesh = build_mesh(geodesics(n), smooth=True, adjacency="sphere")
        sphere = build_octasphere(geodesics(n))
        print(f"n = {n}: {mesh['vertex_count']} vertices, {mesh['triangle_count']} triangles, "
              f"strips {[len(s['indices']) // 3 for s in mesh['adjacent']]}, "
              f"octasphere {sphere['triangle_count']} triangles")
