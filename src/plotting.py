"""Export and preview of a computed family forest layout."""

import logging
from pathlib import Path

import pydot

from models import EdgeKind, ForestLayout, LayoutConfig

logger = logging.getLogger("famforest.plotting")

FILL_COLORS = {
    "male": "lightblue",
    "female": "lightpink",
    "other": "lightgray",
}


def node_label(node) -> str:
    """Name plus birth year, with a cross for the deceased."""
    label = node.name
    if node.birth_year:
        label += f"\nb. {node.birth_year}"
    if not node.alive:
        label += " †"
    return label


def to_pydot(layout: ForestLayout) -> pydot.Dot:
    """
    Convert a layout into a pydot graph with every node pinned in place.

    Positions are given in points (inputscale=72) and y is flipped, since
    Graphviz grows y upward. Render with neato to keep the coordinates.
    """
    P = pydot.Dot("family_forest", graph_type="digraph")
    P.set("layout", "neato")
    P.set("inputscale", "72")
    P.set("splines", "line")

    for node in layout.nodes:
        flipped_y = 0.0 - node.position.y
        P.add_node(
            pydot.Node(
                str(node.id),
                label=node_label(node),
                shape="box",
                style="rounded,filled,dashed" if node.is_duplicate_reference else "rounded,filled",
                fillcolor=FILL_COLORS.get(node.gender, "lightgray"),
                fontsize="10",
                pos=f"{node.position.x:.1f},{flipped_y:.1f}!",
            )
        )

    for edge in layout.edges:
        if edge.kind == EdgeKind.SPOUSE:
            # Spouse edges: no arrow, dashed
            P.add_edge(
                pydot.Edge(
                    str(edge.source),
                    str(edge.target),
                    dir="none",
                    style="dashed",
                    color="hotpink",
                )
            )
        else:
            P.add_edge(pydot.Edge(str(edge.source), str(edge.target), color="darkgray"))

    return P


def write_layout(layout: ForestLayout, output_path: Path):
    """Write DOT source (.dot/.gv) or a neato rendering (png, svg, pdf) of the layout."""
    output_path = Path(output_path)
    P = to_pydot(layout)

    # Determine format from extension
    ext = output_path.suffix.lower().lstrip(".")
    if ext in ("dot", "gv"):
        output_path.write_text(P.to_string(), encoding="utf-8")
    else:
        if ext not in ("png", "svg", "pdf"):
            ext = "png"
        P.write(str(output_path), prog="neato", format=ext)
    logger.info("Graph saved to %s", output_path)


def plot_layout(
    layout: ForestLayout, output_path: Path | None = None, config: LayoutConfig | None = None
):
    """Draw the layout with matplotlib. Saves when output_path is given, shows otherwise."""
    import matplotlib.pyplot as plt
    from matplotlib.patches import FancyBboxPatch

    config = config or LayoutConfig()
    if not layout.nodes:
        logger.warning("Nothing to plot: layout has no nodes")
        return

    w, h = config.node_width, config.node_height
    centers = {n.id: (n.position.x + w / 2, n.position.y + h / 2) for n in layout.nodes}

    left = min(n.position.x for n in layout.nodes)
    right = max(n.position.x for n in layout.nodes) + w
    bottom = max(n.position.y for n in layout.nodes) + h
    fig, ax = plt.subplots(figsize=(max(6, (right - left) / 100), max(4, bottom / 100)))

    for edge in layout.edges:
        (x1, y1), (x2, y2) = centers[edge.source], centers[edge.target]
        if edge.kind == EdgeKind.SPOUSE:
            ax.plot([x1, x2], [y1, y2], color="hotpink", linestyle="--", linewidth=1, zorder=1)
        else:
            # Elbow from the bottom of the parent to the top of the child
            mid_y = (y1 + y2) / 2
            ax.plot(
                [x1, x1, x2, x2],
                [y1 + h / 2, mid_y, mid_y, y2 - h / 2],
                color="gray",
                linewidth=1,
                zorder=1,
            )

    for node in layout.nodes:
        ax.add_patch(
            FancyBboxPatch(
                (node.position.x, node.position.y),
                w,
                h,
                boxstyle="round,pad=2",
                facecolor=FILL_COLORS.get(node.gender, "lightgray"),
                edgecolor="black",
                linestyle="--" if node.is_duplicate_reference else "-",
                alpha=1.0 if node.alive else 0.6,
                zorder=2,
            )
        )
        cx, cy = centers[node.id]
        ax.text(cx, cy, node_label(node), ha="center", va="center", fontsize=7, zorder=3)

    ax.set_xlim(left - 20, right + 20)
    ax.set_ylim(bottom + 20, -20)  # ancestors at top
    ax.set_aspect("equal")
    ax.axis("off")
    ax.set_title(f"Family Forest ({len(layout.nodes)} nodes, {len(layout.edges)} edges)")
    fig.tight_layout()

    if output_path:
        fig.savefig(output_path, dpi=150, bbox_inches="tight")
        logger.info("Graph saved to %s", output_path)
    else:
        plt.show()
    plt.close(fig)
