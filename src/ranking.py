"""Rank normalization: re-order each generation row by birth year."""

import logging

import networkx as nx

from models import EdgeKind, ForestLayout, LayoutConfig, NodeId, Position

logger = logging.getLogger("famforest.ranking")

RANK_ENGINES = ("builtin", "dot")


def forest_ranks(layout: ForestLayout, config: LayoutConfig) -> dict[NodeId, int]:
    """Rank of each node taken from its row in the forest (quantized y)."""
    return {n.id: round(n.position.y / config.level_height) for n in layout.nodes}


def dot_ranks(layout: ForestLayout) -> dict[NodeId, int]:
    """Rank of each node as computed by Graphviz dot over the parent->child edges."""
    H = nx.DiGraph()
    H.add_nodes_from(n.id for n in layout.nodes)
    for e in layout.edges:
        # Spouse edges are drawn but must not push partners onto different ranks
        if e.kind == EdgeKind.PARENT_CHILD and e.source != e.target:
            H.add_edge(e.source, e.target)

    pos = nx.nx_pydot.pydot_layout(H, prog="dot")

    # dot puts ancestors at the top, with y growing upward
    rows = sorted({round(y, 1) for _, y in pos.values()}, reverse=True)
    rank_of_row = {y: i for i, y in enumerate(rows)}
    return {n.id: rank_of_row[round(pos[n.id][1], 1)] for n in layout.nodes}


def normalize_ranks(layout: ForestLayout, config: LayoutConfig | None = None) -> dict[NodeId, Position]:
    """
    Compute chronological positions for every node.

    Nodes are grouped into ranks, each rank is sorted by birth year (undated
    last, forest x breaking ties) and respaced evenly, centered on the
    forest's horizontal midpoint. The layout itself is not modified.

    Returns:
        A mapping node id -> new position
    """
    config = config or LayoutConfig()
    if not layout.nodes:
        return {}

    if config.rank_engine == "dot":
        ranks = dot_ranks(layout)
    elif config.rank_engine == "builtin":
        ranks = forest_ranks(layout, config)
    else:
        raise ValueError(f"Unknown rank engine: {config.rank_engine}")

    rows: dict[int, list] = {}
    for n in layout.nodes:
        rows.setdefault(ranks[n.id], []).append(n)

    left = min(n.position.x for n in layout.nodes)
    right = max(n.position.x for n in layout.nodes) + config.node_width
    center = (left + right) / 2
    step = config.node_width + config.sibling_gap

    positions: dict[NodeId, Position] = {}
    for rank, row in sorted(rows.items()):
        row.sort(key=lambda n: (n.birth_year is None, n.birth_year or 0, n.position.x))
        row_width = len(row) * config.node_width + (len(row) - 1) * config.sibling_gap
        start = center - row_width / 2
        for i, n in enumerate(row):
            positions[n.id] = Position(start + i * step, rank * config.level_height)

    return positions


def apply_rank_normalization(layout: ForestLayout, config: LayoutConfig | None = None) -> bool:
    """
    Replace the forest coordinates with chronologically normalized ones.

    If the rank engine fails on this layout, the forest coordinates are kept
    and False is returned.
    """
    config = config or LayoutConfig()
    if config.rank_engine not in RANK_ENGINES:
        raise ValueError(f"Unknown rank engine: {config.rank_engine}")

    try:
        positions = normalize_ranks(layout, config)
    except Exception as exc:
        logger.warning("Rank normalization failed, keeping forest coordinates: %s", exc)
        return False

    for n in layout.nodes:
        n.position = positions[n.id]
    return True
