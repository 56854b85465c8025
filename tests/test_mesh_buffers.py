import numpy as np
import pytest

from generators import flat, geodesics
from mesh_buffers import (BOUNDARY_EDGES, adjacent_strip, boundary_point, build_mesh,
                          build_octasphere, octant_signs, outer_vertex, triangle_vertices)
from utils import InvalidArgument


@pytest.mark.parametrize("n", [0, 1, 2, 6, 15])
def test_patch_buffers(n):
    mesh = build_mesh(geodesics(n))
    count = (n + 1) * (n + 2) // 2
    assert mesh['vertex_count'] == count
    assert mesh['triangle_count'] == n * n
    assert mesh['positions'].dtype == np.float32
    assert mesh['positions'].shape == (3 * count,)
    assert mesh['uvs'].shape == (2 * count,)
    assert mesh['indices'].dtype == np.uint32
    assert mesh['indices'].shape == (3 * n * n,)
    if n:
        assert mesh['indices'].max() < count
    assert mesh['normals'] is None


def test_smooth_normals_equal_positions():
    mesh = build_mesh(geodesics(3), smooth=True)
    np.testing.assert_array_equal(mesh['normals'], mesh['positions'])
    assert mesh['normals'] is not mesh['positions']


def test_single_triangle():
    mesh = build_mesh(geodesics(1))
    np.testing.assert_array_equal(mesh['indices'], [0, 1, 2])
    np.testing.assert_allclose(triangle_vertices(mesh)[0], [[1, 0, 0], [0, 0, 1], [0, 1, 0]], atol=1e-7)


def test_uvs():
    uvs = build_mesh(geodesics(2))['uvs'].reshape(-1, 2)
    np.testing.assert_allclose(uvs[0], [0.0, 0.0])
    np.testing.assert_allclose(uvs[2], [1.0, 0.0])
    np.testing.assert_allclose(uvs[5], [0.5, 1.0])


def test_triangles_face_outwards():
    tris = triangle_vertices(build_mesh(geodesics(5)))
    a, b, c = tris[:, 0], tris[:, 1], tris[:, 2]
    assert np.all(np.einsum('ij,ij->i', a, np.cross(c, b)) > 0)


def test_octasphere_of_order_one_is_the_octahedron():
    sphere = build_octasphere(geodesics(1))
    assert sphere['triangle_count'] == 8
    assert len(sphere['indices']) == 24
    corners = np.round(triangle_vertices(sphere).reshape(-1, 3), 6) + 0.0
    assert len(np.unique(corners, axis=0)) == 6


@pytest.mark.parametrize("n", [1, 4])
def test_octasphere_faces_outwards(n):
    sphere = build_octasphere(geodesics(n), smooth=True)
    assert sphere['triangle_count'] == 8 * n * n
    assert sphere['vertex_count'] == 8 * (n + 1) * (n + 2) // 2
    tris = triangle_vertices(sphere)
    a, b, c = tris[:, 0], tris[:, 1], tris[:, 2]
    assert np.all(np.einsum('ij,ij->i', a, np.cross(c, b)) > 0)
    assert sphere['normals'] is not None


def test_octant_signs():
    signs = octant_signs()
    assert len(signs) == 8
    np.testing.assert_array_equal(signs[0], [1, 1, 1])
    assert len({tuple(s) for s in signs}) == 8


@pytest.mark.parametrize("adjacency", ["sphere", "cylinder"])
@pytest.mark.parametrize("n", [0, 1, 5])
def test_adjacent_strip_layout(adjacency, n):
    t = geodesics(n)
    mesh = build_mesh(t, adjacency=adjacency)
    assert [s['edge'] for s in mesh['adjacent']] == list(BOUNDARY_EDGES)
    for strip in mesh['adjacent']:
        positions = strip['positions'].reshape(-1, 3)
        assert len(positions) == 2 * n + 1
        assert strip['indices'].shape == (3 * n,)
        for m in range(n + 1):
            np.testing.assert_allclose(positions[2 * m], boundary_point(t, strip['edge'], m), atol=1e-7)
        np.testing.assert_array_equal(strip['normals'], strip['positions'])


def test_strip_triangles():
    strip = adjacent_strip(geodesics(3), "y")
    np.testing.assert_array_equal(strip['indices'].reshape(-1, 3),
                                  [[0, 2, 1], [2, 4, 3], [4, 6, 5]])


@pytest.mark.parametrize("edge, axis", [("x", 0), ("y", 1), ("z", 2)])
def test_sphere_outer_vertices_mirror_the_interior(edge, axis):
    t = geodesics(4)
    for m in range(4):
        v = outer_vertex(t, edge, m, "sphere")
        assert v[axis] < 0
        np.testing.assert_allclose(np.linalg.norm(v), 1.0, atol=1e-12)


@pytest.mark.parametrize("edge, axis", [("x", 0), ("y", 1), ("z", 2)])
def test_cylinder_outer_vertices(edge, axis):
    t = geodesics(4)
    for m in range(4):
        v = outer_vertex(t, edge, m, "cylinder")
        assert v[axis] == -1.0
        others = [k for k in range(3) if k != axis]
        a, b = boundary_point(t, edge, m), boundary_point(t, edge, m + 1)
        assert (np.allclose(v[others], a[others]) or np.allclose(v[others], b[others]))


def test_outer_vertex_does_not_touch_the_patch():
    t = geodesics(3)
    before = t.points.copy()
    outer_vertex(t, "y", 1, "sphere")
    outer_vertex(t, "z", 1, "cylinder")
    np.testing.assert_array_equal(t.points, before)


def test_boundary_points():
    t = flat(4)
    np.testing.assert_allclose(boundary_point(t, "y", 4), [0, 0, 1], atol=1e-12)
    np.testing.assert_allclose(boundary_point(t, "z", 4), [0, 1, 0], atol=1e-12)
    np.testing.assert_allclose(boundary_point(t, "x", 0), [0, 0, 1], atol=1e-12)
    with pytest.raises(ValueError):
        boundary_point(t, "w", 0)


def test_invalid_adjacency():
    with pytest.raises(InvalidArgument):
        build_mesh(geodesics(2), adjacency="torus")


def test_refined_triangulation_has_no_mesh():
    with pytest.raises(InvalidArgument):
        build_mesh(geodesics(2, refinement=3))
