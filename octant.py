"""
Eighth-sphere triangulation runner.

Generates a triangulation with one of the registered methods, builds its
renderer buffers and prints the quality report.

Usage:
    python octant.py --steps 12 --method balanced --adjacent cylinder
    python octant.py --list
"""

import argparse
import sys

from generators import DISPLAY_METHODS, TRIANGULATION_FNS
from mesh_buffers import build_mesh
from quality import compute_metrics, format_bend_ranking, format_metrics
from utils import ADJACENCY_MODES, MAX_STEPS, InvalidArgument, check_adjacency, check_order


def run_octant_triangulation(method="geodesics", n=12, adjacency="sphere",
                             smooth=False, top=10, verbose=True):
    """
    Generate, mesh and measure one octant triangulation.

    Parameters
    ----------
    method : str
        Key of TRIANGULATION_FNS.
    n : int
        Subdivision order.
    adjacency : str
        "sphere" or "cylinder" continuation across the boundary edges.
    smooth : bool
        Emit vertex normals in the mesh buffers.
    top : int
        Number of bend ranking lines in the verbose report.
    verbose : bool

    Returns
    -------
    triangulation, mesh, metrics
    """
    n = check_order(n)
    check_adjacency(adjacency)
    try:
        generate = TRIANGULATION_FNS[method]
    except KeyError:
        raise InvalidArgument(
            f"unknown method {method!r}; known: {', '.join(TRIANGULATION_FNS)}") from None

    triangulation = generate(n)
    mesh = build_mesh(triangulation, smooth=smooth, adjacency=adjacency)
    metrics = compute_metrics(triangulation, adjacency=adjacency)

    if verbose:
        shown = format_metrics(metrics)
        print("=" * 65)
        print("  Eighth-sphere triangulation")
        print("=" * 65)
        print(f"  Method:    {method}")
        print(f"  Steps n:   {n}")
        print(f"  Adjacent:  {adjacency}")
        print(f"  Vertices:  {mesh['vertex_count']}")
        print(f"  Triangles: {mesh['triangle_count']}")
        print()
        print("─── Quality ───")
        print(f"  # edges:        {shown['edges']}")
        print(f"  edge length:    {shown['mean_edge']}")
        print(f"  min : max:      {shown['min_max']}")
        print(f"  max bend:       {shown['max_bend']}  ({len(metrics['bent_edges'])} edges)")
        print(f"  volume:         {shown['volume']}")
        if top and metrics['bends']:
            print()
            print(f"─── Most bent edges (top {min(top, len(metrics['bends']))}) ───")
            for line in format_bend_ranking(metrics['bends'], n, limit=top):
                print(f"  {line}")
        print()

    return triangulation, mesh, metrics


def _steps(value):
    n = int(value)
    if not 0 <= n <= MAX_STEPS:
        raise argparse.ArgumentTypeError(f"steps must be between 0 and {MAX_STEPS}")
    return n


def _top(value):
    top = int(value)
    if top < 0:
        raise argparse.ArgumentTypeError("top must be a non-negative integer")
    return top


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Triangulate one eighth of the unit sphere and report mesh quality.")
    parser.add_argument("--steps", "-n", type=_steps, default=12,
                        help=f"subdivision order (0..{MAX_STEPS}, default 12)")
    parser.add_argument("--method", "-m", choices=list(TRIANGULATION_FNS), default="geodesics",
                        help="triangulation method (default geodesics)")
    parser.add_argument("--adjacent", "-a", choices=ADJACENCY_MODES, default="sphere",
                        help="continuation across the boundary edges (default sphere)")
    parser.add_argument("--smooth", action="store_true", help="emit vertex normals")
    parser.add_argument("--top", type=_top, default=10, help="bend ranking lines to print")
    parser.add_argument("--plot", metavar="FILE", help="save a figure of the patch to FILE")
    parser.add_argument("--list", action="store_true", help="list the display methods and exit")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    if args.list:
        for name in DISPLAY_METHODS:
            print(name)
        return 0

    triangulation, mesh, metrics = run_octant_triangulation(
        args.method, args.steps, args.adjacent, smooth=args.smooth, top=args.top)

    if args.plot:
        import matplotlib
        matplotlib.use('Agg')
        import matplotlib.pyplot as plt
        from visualize import plot_patch

        fig = plot_patch(triangulation, mesh, metrics, title=args.method)
        fig.savefig(args.plot, dpi=150, bbox_inches='tight')
        plt.close(fig)
        print(f"Saved {args.plot}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
