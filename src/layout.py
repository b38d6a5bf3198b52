"""Family forest construction: subtree widths and recursive placement."""

from collections.abc import Iterable
from dataclasses import dataclass, field
import logging

from graph import (
    build_children_map,
    build_partner_map,
    compute_generations,
    index_people,
    is_valid_ref,
    known_parents,
)
from models import (
    EdgeKind,
    ForestLayout,
    GraphEdge,
    GraphNode,
    LayoutConfig,
    NodeId,
    Person,
    PersonId,
    Position,
    edge_key,
)
from parsing import birth_sort_key, normalize_records, parse_birth_date
from ranking import apply_rank_normalization

logger = logging.getLogger("famforest.layout")


@dataclass
class PlacementContext:
    """
    Everything one forest computation reads and writes.

    A fresh context is created per build_forest call and passed down every
    placement, so the builder keeps no state between calls.
    """

    people: dict[PersonId, Person]
    children: dict[PersonId, list[PersonId]]
    config: LayoutConfig
    generations: dict[PersonId, int] = field(default_factory=dict)
    placed: set[PersonId] = field(default_factory=set)  # canonically placed
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    node_ids: set[NodeId] = field(default_factory=set)
    edge_keys: set[str] = field(default_factory=set)
    duplicate_counts: dict[PersonId, int] = field(default_factory=dict)
    birth_keys: dict[PersonId, tuple] = field(default_factory=dict)
    partners: dict[PersonId, PersonId] = field(default_factory=dict)

    @classmethod
    def create(cls, people: Iterable[Person], config: LayoutConfig) -> "PlacementContext":
        index = index_people(people)
        return cls(
            people=index,
            children=build_children_map(index),
            config=config,
            generations=compute_generations(index.values(), config.iteration_factor),
            birth_keys={pid: birth_sort_key(p) for pid, p in index.items()},
            partners=build_partner_map(index),
        )

    def spouse_of(self, person_id: PersonId, path: set[PersonId]) -> PersonId | None:
        """The person's spouse, unless absent, dangling or already on the path."""
        spouse = self.partners.get(person_id)
        if spouse is None or spouse in path:
            return None
        return spouse

    def children_of(
        self, person_id: PersonId, spouse_id: PersonId | None, path: set[PersonId]
    ) -> list[PersonId]:
        """Children of the person (and spouse) not on the path, oldest first."""
        kids: list[PersonId] = []
        for parent in (person_id, spouse_id):
            if parent is None:
                continue
            for kid in self.children.get(parent, []):
                if kid not in path and kid not in kids:
                    kids.append(kid)
        # sorted() is stable, input order breaks ties
        return sorted(kids, key=lambda k: self.birth_keys[k])

    def _duplicate_id(self, person_id: PersonId) -> NodeId:
        n = self.duplicate_counts.get(person_id, 0)
        while True:
            n += 1
            candidate = NodeId(f"{person_id}__dup{n}")
            if candidate not in self.node_ids and candidate not in self.people:
                break
        self.duplicate_counts[person_id] = n
        return candidate

    def add_node(
        self, person_id: PersonId, level: int, x: float, y: float, duplicate: bool
    ) -> GraphNode:
        person = self.people[person_id]
        if duplicate:
            node_id = self._duplicate_id(person_id)
            name = f"{person.name}{self.config.duplicate_marker}"
            logger.debug("Placing %s again as duplicate %s", person_id, node_id)
        else:
            node_id = NodeId(person_id)
            name = person.name
            self.placed.add(person_id)

        born = parse_birth_date(person.birth_date)
        node = GraphNode(
            id=node_id,
            original_id=person_id,
            name=name,
            gender=person.gender,
            birth_year=born.year if born else None,
            alive=person.alive,
            generation_level=level,
            is_duplicate_reference=duplicate,
            global_generation=self.generations.get(person_id),
            image_url=person.image_url,
            position=Position(x, y),
        )
        self.nodes.append(node)
        self.node_ids.add(node_id)
        return node

    def add_edge(self, kind: EdgeKind, source: NodeId, target: NodeId):
        key = edge_key(kind, source, target)
        if key in self.edge_keys:
            return
        self.edge_keys.add(key)
        self.edges.append(GraphEdge(kind, source, target))


def subtree_width(
    ctx: PlacementContext,
    person_id: PersonId,
    visited_path: Iterable[PersonId] = frozenset(),
    max_depth: int | None = None,
) -> float:
    """
    Estimate the horizontal space a person's descendant subtree needs.

    One node width for the person, one more for a spouse not yet on the path
    (partners sit edge to edge). With children, the result is the larger of
    the couple's width and the children's estimated widths laid side by side
    with the sibling gap between them. Does not modify ctx.
    """
    cfg = ctx.config
    if max_depth is None:
        max_depth = cfg.max_depth

    if not is_valid_ref(person_id) or person_id not in ctx.people or person_id in visited_path:
        return 0.0
    if len(visited_path) >= max_depth:
        return cfg.node_width

    path = set(visited_path)
    path.add(person_id)

    pair_width = cfg.node_width
    spouse = ctx.spouse_of(person_id, path)
    if spouse:
        pair_width += cfg.node_width
        path.add(spouse)

    kids = ctx.children_of(person_id, spouse, path)
    if not kids:
        return pair_width

    row_width = sum(subtree_width(ctx, kid, path, max_depth) for kid in kids)
    row_width += cfg.sibling_gap * (len(kids) - 1)
    return max(pair_width, row_width)


def place_subtree(
    ctx: PlacementContext,
    person_id: PersonId,
    level: int,
    x: float,
    y: float,
    visited_path: Iterable[PersonId] = frozenset(),
    allocated_width: float | None = None,
    is_duplicate: bool = False,
) -> tuple[float, NodeId | None]:
    """
    Place a person, their spouse and their descendants inside [x, x + width].

    Args:
        ctx: The placement state of this forest
        person_id: Person to place
        level: Tree-local generation (tree root = 0)
        x: Left edge of the slice given to this subtree
        y: Top of this generation's row
        visited_path: People on the path from the tree root to here
        allocated_width: Slice width chosen by the parent; estimated when None
        is_duplicate: Place an already placed person again, without expanding

    Returns:
        The width used and the id of the node created (None when a guard
        stopped the placement)
    """
    cfg = ctx.config

    if not is_valid_ref(person_id) or person_id not in ctx.people:
        return cfg.node_width, None
    if person_id in visited_path:
        logger.debug("Cycle through %s, not placing it again on this path", person_id)
        return cfg.node_width, None
    if len(visited_path) >= cfg.max_depth:
        logger.debug("Depth limit reached at %s", person_id)
        return cfg.node_width, None
    if person_id in ctx.placed and not is_duplicate:
        return cfg.node_width, None

    if is_duplicate:
        width = allocated_width if allocated_width is not None else cfg.node_width
        node = ctx.add_node(person_id, level, x + (width - cfg.node_width) / 2, y, duplicate=True)
        return width, node.id

    if allocated_width is None:
        allocated_width = subtree_width(ctx, person_id, visited_path, cfg.max_depth)

    path = set(visited_path)
    path.add(person_id)

    spouse = ctx.spouse_of(person_id, path)
    pair_width = cfg.node_width * (2 if spouse else 1)
    width = max(allocated_width, pair_width)

    left = x + (width - pair_width) / 2
    node = ctx.add_node(person_id, level, left, y, duplicate=False)

    spouse_expands = False
    if spouse:
        spouse_is_duplicate = spouse in ctx.placed
        spouse_node = ctx.add_node(spouse, level, left + cfg.node_width, y, spouse_is_duplicate)
        ctx.add_edge(EdgeKind.SPOUSE, node.id, spouse_node.id)
        # A duplicate spouse's children hang under their canonical placement
        spouse_expands = not spouse_is_duplicate
        path.add(spouse)

    kids = ctx.children_of(person_id, spouse if spouse_expands else None, path)
    if not kids:
        return width, node.id

    slices = [
        cfg.node_width if kid in ctx.placed else subtree_width(ctx, kid, path, cfg.max_depth)
        for kid in kids
    ]
    row_width = sum(slices) + cfg.sibling_gap * (len(slices) - 1)

    # Center the children row under the couple
    cursor = left + pair_width / 2 - row_width / 2
    child_y = y + cfg.level_height
    for kid, slice_width in zip(kids, slices):
        # Re-checked per child, an earlier sibling's subtree may have placed it
        _, kid_node = place_subtree(
            ctx, kid, level + 1, cursor, child_y, path, slice_width, kid in ctx.placed
        )
        if kid_node is not None:
            ctx.add_edge(EdgeKind.PARENT_CHILD, node.id, kid_node)
        cursor += slice_width + cfg.sibling_gap

    return max(width, row_width), node.id


def build_forest(people: Iterable, config: LayoutConfig | None = None) -> ForestLayout:
    """
    Lay out people as a forest of positioned nodes and typed edges.

    Trees are rooted, oldest first, at the earliest-born person not yet
    placed (undated people last, people without known parents before
    others born on the same day). Each tree sits to the right of the
    previous one. Anyone still unplaced afterwards gets an isolated node.
    """
    config = config or LayoutConfig()
    ctx = PlacementContext.create(normalize_records(people), config)

    order = sorted(
        ctx.people.values(),
        key=lambda p: (ctx.birth_keys[p.id], 1 if known_parents(p, ctx.people) else 0),
    )

    cursor = 0.0
    for person in order:
        if person.id in ctx.placed:
            continue
        logger.debug("Starting tree at %s (x=%.1f)", person.id, cursor)
        width, _ = place_subtree(ctx, person.id, 0, cursor, 0.0)
        cursor += width + config.tree_gap

    for person_id in ctx.people:
        if person_id not in ctx.placed:
            logger.debug("Adding unreached person %s as an isolated node", person_id)
            ctx.add_node(person_id, 0, cursor, 0.0, duplicate=False)
            cursor += config.node_width + config.sibling_gap

    logger.debug(
        "Built forest: %d people, %d nodes, %d edges",
        len(ctx.people),
        len(ctx.nodes),
        len(ctx.edges),
    )
    return ForestLayout(nodes=ctx.nodes, edges=ctx.edges, generations=ctx.generations)


def layout_family(people: Iterable, config: LayoutConfig | None = None) -> ForestLayout:
    """Build the forest, then order each generation chronologically if enabled."""
    config = config or LayoutConfig()
    layout = build_forest(people, config)
    if config.normalize:
        apply_rank_normalization(layout, config)
    return layout
