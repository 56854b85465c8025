"""
Triangular grid indexing for an eighth-sphere patch of subdivision order n.

A grid position is a barycentric triple (i, j, k) of non-negative integers
with i + j + k = n; k is implied. Rows are indexed by i, and row i holds the
n - i + 1 positions j = 0 .. n - i. Vertices are numbered row-major:

    index(i, j) = row_start(i) + j,   row_start(i) = i (2n + 3 - i) / 2

Row start is what the offset would be if every row had n + 1 vertices
(i * (n + 1)), minus i (i - 1) / 2 for the shrinking row lengths.

Every component (generators, balancer, mesh builder, metrics) goes through
TriangularGrid for vertex addressing, and stores points in a Triangulation,
one contiguous (N, 3) array ("arena") whose rows are views.
"""

import numpy as np
import scipy.sparse as sp
from typing import Iterator, List, Tuple

from utils import InvalidArgument, check_order, check_refinement

# Forward neighbour offsets (di, dj); each undirected edge is visited once.
FORWARD_OFFSETS = ((1, -1), (1, 0), (0, 1))

# All six neighbours of an interior position
NEIGHBOR_OFFSETS = ((1, -1), (1, 0), (0, -1), (0, 1), (-1, 0), (-1, 1))


class TriangularGrid:
    """
    Index arithmetic for the triangular grid of order n.

    The grid is stateless apart from n; all methods are pure.
    """

    def __init__(self, n: int):
        self.n = check_order(n)

    def __repr__(self):
        return f"TriangularGrid(n={self.n})"

    # ── counts ──

    def vertex_count(self) -> int:
        return (self.n + 1) * (self.n + 2) // 2

    def triangle_count(self) -> int:
        # Row i (i >= 1) contributes 2i - 1 triangles; summed over i = 1..n
        return self.n ** 2

    def edge_count(self) -> int:
        return 3 * self.n * (self.n + 1) // 2

    # ── addressing ──

    def row_start(self, i: int) -> int:
        return i * (2 * self.n + 3 - i) // 2

    def row_length(self, i: int) -> int:
        return self.n - i + 1

    def contains(self, i: int, j: int) -> bool:
        return i >= 0 and j >= 0 and self.n - i - j >= 0

    def index(self, i: int, j: int) -> int:
        """Linear vertex index of grid position (i, j)."""
        if not self.contains(i, j):
            raise IndexError(f"({i}, {j}) is outside the grid of order {self.n}")
        return self.row_start(i) + j

    def position(self, idx: int) -> Tuple[int, int]:
        """Inverse of index()."""
        if not 0 <= idx < self.vertex_count():
            raise IndexError(f"vertex index {idx} out of range for order {self.n}")
        i = 0
        while self.row_start(i + 1) <= idx:
            i += 1
        return i, idx - self.row_start(i)

    def positions(self) -> Iterator[Tuple[int, int]]:
        """All valid (i, j) pairs in row-major order."""
        for i in range(self.n + 1):
            for j in range(self.n - i + 1):
                yield i, j

    def coordinates(self) -> Tuple[np.ndarray, np.ndarray]:
        """Arrays (i, j) for every vertex, in index order."""
        ij = np.array(list(self.positions()), dtype=int).reshape(-1, 2)
        return ij[:, 0], ij[:, 1]

    def is_corner(self, i: int, j: int) -> bool:
        k = self.n - i - j
        return (i == self.n) or (j == self.n) or (k == self.n)

    def is_boundary(self, i: int, j: int) -> bool:
        return i == 0 or j == 0 or self.n - i - j == 0

    # ── connectivity ──

    def triangles(self) -> Iterator[Tuple[int, int, int]]:
        """
        Vertex-index triples of all n² triangles.

        For each position with i > 0 an "upward" triangle
        (i-1, j), (i-1, j+1), (i, j) and, if also j > 0, a "downward"
        triangle (i, j), (i, j-1), (i-1, j). The winding is clockwise seen
        from outside the sphere (the left-handed display convention).
        """
        for i, j in self.positions():
            if i > 0:
                yield self.index(i - 1, j), self.index(i - 1, j + 1), self.index(i, j)
                if j > 0:
                    yield self.index(i, j), self.index(i, j - 1), self.index(i - 1, j)

    def triangle_array(self) -> np.ndarray:
        return np.array(list(self.triangles()), dtype=np.int64).reshape(-1, 3)

    def forward_edges(self) -> Iterator[Tuple[Tuple[int, int], Tuple[int, int]]]:
        """Every grid edge once, as ((i, j), (i2, j2)) using FORWARD_OFFSETS."""
        for i, j in self.positions():
            for di, dj in FORWARD_OFFSETS:
                i2, j2 = i + di, j + dj
                if self.contains(i2, j2):
                    yield (i, j), (i2, j2)

    def relaxation_neighbors(self, i: int, j: int) -> List[Tuple[int, int]]:
        """
        Positions whose sum the relaxation averages for vertex (i, j):
        the vertex itself at a corner, the two collinear neighbours on an
        edge, all six neighbours inside.
        """
        n = self.n
        k = n - i - j
        if self.is_corner(i, j):
            return [(i, j)]
        if i == 0:
            return [(0, j - 1), (0, j + 1)]
        if j == 0:
            return [(i - 1, 0), (i + 1, 0)]
        if k == 0:
            return [(i - 1, j + 1), (i + 1, j - 1)]
        return [(i + di, j + dj) for di, dj in NEIGHBOR_OFFSETS]

    def neighbor_operator(self) -> sp.csr_matrix:
        """
        Sparse (N, N) matrix A with A[r, c] = 1 when vertex c takes part in
        the relaxation sum of vertex r, so A @ points gives the unnormalised
        neighbour sums for every vertex at once.
        """
        rows, cols = [], []
        for i, j in self.positions():
            r = self.index(i, j)
            for (i2, j2) in self.relaxation_neighbors(i, j):
                rows.append(r)
                cols.append(self.index(i2, j2))
        size = self.vertex_count()
        return sp.coo_matrix(
            (np.ones(len(rows)), (rows, cols)), shape=(size, size), dtype=float
        ).tocsr()


class Triangulation:
    """
    Points of a triangular grid, stored in one read-only (N, 3) arena.

    Row i has (n - i) * refinement + 1 points. Indexing follows the nested
    row layout: t[i] is row i, t[i, j] the point (i, j), len(t) == n + 1.
    Instances are never mutated; operations return new triangulations.
    """

    def __init__(self, points, n: int, refinement: int = 1):
        self.n = check_order(n)
        self.refinement = check_refinement(refinement)
        self.row_lengths = [(self.n - i) * self.refinement + 1 for i in range(self.n + 1)]
        self._offsets = np.concatenate([[0], np.cumsum(self.row_lengths)])

        arena = np.array(points, dtype=float).reshape(-1, 3)
        if len(arena) != self._offsets[-1]:
            raise InvalidArgument(
                f"expected {self._offsets[-1]} points for order {self.n} "
                f"(refinement {self.refinement}), got {len(arena)}")
        arena.flags.writeable = False
        self.points = arena

    @classmethod
    def from_rows(cls, rows, refinement: int = 1):
        """Build from a nested list of rows (the last row being the apex)."""
        n = len(rows) - 1
        flat = [p for row in rows for p in row]
        return cls(np.array(flat, dtype=float).reshape(-1, 3), n, refinement)

    def __repr__(self):
        extra = f", refinement={self.refinement}" if self.refinement != 1 else ""
        return f"Triangulation(n={self.n}{extra}, points={len(self.points)})"

    def __len__(self):
        return self.n + 1

    def __iter__(self):
        for i in range(self.n + 1):
            yield self.row(i)

    def __getitem__(self, key):
        if isinstance(key, tuple):
            i, j = key
            row = self.row(i)
            if not 0 <= j < len(row):
                raise IndexError(f"column {j} out of range for row {i}")
            return row[j]
        return self.row(key)

    def row(self, i: int) -> np.ndarray:
        if i < 0:
            i += self.n + 1
        if not 0 <= i <= self.n:
            raise IndexError(f"row {i} out of range for order {self.n}")
        return self.points[self._offsets[i]:self._offsets[i + 1]]

    @property
    def grid(self) -> TriangularGrid:
        """The index arithmetic; only defined for the regular (refinement 1) shape."""
        if self.refinement != 1:
            raise InvalidArgument("grid indexing needs a triangulation with refinement 1")
        return TriangularGrid(self.n)

    def copy(self) -> "Triangulation":
        return Triangulation(self.points, self.n, self.refinement)

    def map(self, fn) -> "Triangulation":
        """New triangulation of the same shape from a vectorised point map."""
        return Triangulation(fn(self.points), self.n, self.refinement)

    def with_points(self, points) -> "Triangulation":
        return Triangulation(points, self.n, self.refinement)

    def same_shape(self, other: "Triangulation") -> bool:
        return self.row_lengths == other.row_lengths

    def allclose(self, other: "Triangulation", atol: float = 1e-12) -> bool:
        return self.same_shape(other) and np.allclose(self.points, other.points, rtol=0.0, atol=atol)


if __name__ == "__main__":
    grid = TriangularGrid(3)
    print(f"{grid}: {grid.vertex_count()} vertices, {grid.triangle_count()} triangles, "
          f"{grid.edge_count()} edges")
    for i in range(grid.n + 1):
        print("  " * i + "  ".join(f"{grid.index(i, j):2d}" for j in range(grid.row_length(i))))
    print("Triangles:", list(grid.triangles()))
