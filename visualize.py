"""
Static 3D figure of a triangulated octant.

Draws the patch triangles, the adjacent strips as a translucent wireframe,
optional rays from the origin, and highlights the most bent edges.
"""

import numpy as np
import matplotlib.pyplot as plt
from mpl_toolkits.mplot3d.art3d import Poly3DCollection, Line3DCollection

from generators import rays
from mesh_buffers import build_mesh, triangle_vertices
from quality import compute_metrics, format_metrics


def _setup(ax, title, elev, azim):
    ax.set_xlim(0, 1.05); ax.set_ylim(0, 1.05); ax.set_zlim(0, 1.05)
    ax.view_init(elev=elev, azim=azim)
    ax.set_title(title, fontsize=10, fontweight='bold', pad=2)
    ax.set_xlabel('x', fontsize=7); ax.set_ylabel('y', fontsize=7)
    ax.set_zlabel('z', fontsize=7); ax.tick_params(labelsize=6)
    for pane in [ax.xaxis.pane, ax.yaxis.pane, ax.zaxis.pane]:
        pane.fill = False; pane.set_edgecolor('lightgray')


def plot_patch(t, mesh=None, metrics=None, ax=None, adjacency="sphere",
               show_rays=False, show_adjacent=True, title="", elev=20, azim=45):
    """
    Plot a triangulation and return the figure.

    mesh and metrics are computed from t when not given.
    """
    if mesh is None:
        mesh = build_mesh(t, adjacency=adjacency)
    if metrics is None:
        metrics = compute_metrics(t, adjacency=adjacency)

    if ax is None:
        fig = plt.figure(figsize=(8, 8))
        ax = fig.add_subplot(1, 1, 1, projection='3d')
    else:
        fig = ax.figure

    tris = triangle_vertices(mesh)
    if len(tris):
        ax.add_collection3d(Poly3DCollection(
            tris, alpha=0.85, facecolor='#A8DADC', edgecolor='#1D3557', linewidths=0.6))
    ax.scatter(*t.points.T, c='#1D3557', s=6, depthshade=False)

    if show_adjacent:
        for strip in mesh['adjacent']:
            strip_tris = triangle_vertices(strip)
            if len(strip_tris):
                ax.add_collection3d(Poly3DCollection(
                    strip_tris, facecolor=(0.5, 0.5, 0.5, 0.15),
                    edgecolor='gray', linewidths=0.4))

    if show_rays:
        ax.add_collection3d(Line3DCollection(
            rays(t), colors='#F4A261', linewidths=0.4, alpha=0.5))

    bent = [[t[e['i'], e['j']], t[e['i2'], e['j2']]] for e in metrics['bent_edges']]
    if bent:
        ax.add_collection3d(Line3DCollection(bent, colors='#E9C46A', linewidths=3.0))

    shown = format_metrics(metrics)
    _setup(ax, f"{title}\nn = {t.n}, max bend {shown['max_bend']} "
               f"({len(bent)} edges), volume {shown['volume']}", elev, azim)
    return fig


if __name__ == "__main__":
    import matplotlib
    matplotlib.use('Agg')
    from generators import TRIANGULATION_FNS

    fig = plt.figure(figsize=(16, 8))
    for k, name in enumerate(("geodesics", "balanced")):
        ax = fig.add_subplot(1, 2, k + 1, projection='3d')
        plot_patch(TRIANGULATION_FNS[name](8), ax=ax, title=name)
    fig.savefig('octant_compare.png', dpi=150, bbox_inches='tight')
    print("Saved octant_compare.png")
