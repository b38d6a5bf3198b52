"""Relationship graph building, generation levels and flat edge synthesis."""

from collections import deque
from collections.abc import Iterable
import logging

import networkx as nx

from models import EdgeKind, GraphEdge, NodeId, Person, PersonId, edge_key
from parsing import parse_birth_date

logger = logging.getLogger("famforest.graph")


def is_valid_ref(value) -> bool:
    """True iff a relationship reference is a non-blank string."""
    return isinstance(value, str) and len(value.strip()) > 0


def index_people(people: Iterable[Person]) -> dict[PersonId, Person]:
    """Map person id -> person, keeping the first of any repeated id."""
    index: dict[PersonId, Person] = {}
    for p in people:
        if not is_valid_ref(p.id):
            continue
        if p.id in index:
            logger.warning("Ignoring repeated person id %r", p.id)
            continue
        index[p.id] = p
    return index


def known_parents(person: Person, index: dict[PersonId, Person]) -> list[PersonId]:
    """Father then mother, limited to references that resolve to a person."""
    parents: list[PersonId] = []
    for ref in (person.father_id, person.mother_id):
        if is_valid_ref(ref) and ref in index and ref not in parents:
            parents.append(ref)
    return parents


def known_spouse(person: Person, index: dict[PersonId, Person]) -> PersonId | None:
    ref = person.spouse_id
    if is_valid_ref(ref) and ref in index and ref != person.id:
        return ref
    return None


def build_partner_map(index: dict[PersonId, Person]) -> dict[PersonId, PersonId]:
    """
    Map person id -> partner id.

    A person's own spouse reference wins. Someone with none is paired with
    the first person whose record points at them.
    """
    partners: dict[PersonId, PersonId] = {}
    for p in index.values():
        spouse = known_spouse(p, index)
        if spouse:
            partners[p.id] = spouse
    for p in index.values():
        spouse = known_spouse(p, index)
        if spouse and spouse not in partners:
            partners[spouse] = p.id
    return partners


def build_children_map(index: dict[PersonId, Person]) -> dict[PersonId, list[PersonId]]:
    """Map parent id -> child ids, in input order."""
    children: dict[PersonId, list[PersonId]] = {}
    for p in index.values():
        for parent in known_parents(p, index):
            children.setdefault(parent, []).append(p.id)
    return children


def build_person_graph(people: Iterable[Person]) -> nx.DiGraph:
    """
    Build a NetworkX directed graph from person records.

    PARENT_OF edges run parent -> child. SPOUSE_OF edges run from the person
    whose record carries the reference. Dangling references add no edge.
    """
    index = index_people(people)
    G = nx.DiGraph()

    # Note: use 'person_name' instead of 'name' to avoid conflict with pydot
    for p in index.values():
        G.add_node(
            p.id,
            person_name=p.name,
            sex=p.gender,
            birth_date=p.birth_date,
        )

    for p in index.values():
        for parent in known_parents(p, index):
            G.add_edge(parent, p.id, relationship_type="PARENT_OF")

    for p in index.values():
        spouse = known_spouse(p, index)
        # A parent link between the same two people takes precedence
        if spouse and not G.has_edge(p.id, spouse):
            G.add_edge(p.id, spouse, relationship_type="SPOUSE_OF")

    return G


# ============================================================================
# Generation levels
# ============================================================================


def _seed_people(people: list[Person]) -> list[PersonId]:
    # A parent reference counts even when it names nobody in the list
    roots = [p.id for p in people if not is_valid_ref(p.father_id) and not is_valid_ref(p.mother_id)]
    if roots and len(roots) < len(people):
        return roots

    # Degenerate input: everyone or no one is a root
    earliest = None
    for p in people:
        born = parse_birth_date(p.birth_date)
        if born and (earliest is None or born < earliest[0]):
            earliest = (born, p.id)
    if earliest:
        return [earliest[1]]
    return [people[0].id]


def compute_generations(people: Iterable[Person], iteration_factor: int = 10) -> dict[PersonId, int]:
    """
    Assign every person a relative generation level.

    Runs a multi-source breadth-first search from all root candidates at level
    0: children of a visited person sit one level below it, known parents one
    level above. Each person is visited once, so cycles cannot loop. The walk
    stops silently after `iteration_factor * len(people)` steps. People never
    reached borrow a level from an already-leveled child, parent or spouse,
    else 0.

    Args:
        people: Person records; repeated ids keep the first record
        iteration_factor: Step budget per person

    Returns:
        A mapping person id -> generation level (negative for ancestors)
    """
    index = index_people(people)
    ordered = list(index.values())
    if not ordered:
        return {}

    children = build_children_map(index)
    levels: dict[PersonId, int] = {}
    queue: deque[PersonId] = deque()

    for seed in _seed_people(ordered):
        levels[seed] = 0
        queue.append(seed)

    budget = iteration_factor * len(ordered)
    steps = 0
    while queue:
        if steps >= budget:
            logger.debug("Generation search stopped after %d steps", steps)
            break
        steps += 1

        current = queue.popleft()
        level = levels[current]

        for child in children.get(current, []):
            if child not in levels:
                levels[child] = level + 1
                queue.append(child)

        for parent in known_parents(index[current], index):
            if parent not in levels:
                levels[parent] = level - 1
                queue.append(parent)

    for p in ordered:
        if p.id in levels:
            continue
        levels[p.id] = _infer_level(p, index, children, levels)

    return levels


def _infer_level(person, index, children, levels) -> int:
    for child in children.get(person.id, []):
        if child in levels:
            return levels[child] - 1
    for parent in known_parents(person, index):
        if parent in levels:
            return levels[parent] + 1
    spouse = known_spouse(person, index)
    if spouse in levels:
        return levels[spouse]
    return 0


# ============================================================================
# Flat edges
# ============================================================================


def synthesize_edges(people: Iterable[Person]) -> list[GraphEdge]:
    """
    Derive father->child, mother->child and spouse edges straight from the records.

    Node ids equal person ids here. Each edge is emitted once per key, so a
    reciprocated spouse pair yields a single edge. Dangling and self
    references are skipped.
    """
    index = index_people(people)
    edges: list[GraphEdge] = []
    seen: set[str] = set()

    def add(kind: EdgeKind, source: PersonId, target: PersonId):
        key = edge_key(kind, source, target)
        if key not in seen:
            seen.add(key)
            edges.append(GraphEdge(kind, NodeId(source), NodeId(target)))

    for p in index.values():
        for parent in known_parents(p, index):
            if parent != p.id:
                add(EdgeKind.PARENT_CHILD, parent, p.id)

        spouse = known_spouse(p, index)
        if spouse:
            add(EdgeKind.SPOUSE, p.id, spouse)

    return edges


# ============================================================================
# Focused view
# ============================================================================


def focus_people(people: Iterable[Person], center_id: str, radius: int = 3) -> list[Person]:
    """
    Select the people within a given number of relationship hops of a person.

    Args:
        people: Person records
        center_id: The person to center the view on
        radius: Maximum hops over parent, child and spouse links (default 3,
            grandparents to grandchildren)

    Returns:
        The selected people, in input order
    """
    index = index_people(people)
    G = build_person_graph(index.values())
    if center_id not in G:
        raise ValueError(f"Person ID {center_id} not found in graph")

    # Use undirected view so parents, children and spouses all count
    ego = nx.ego_graph(G.to_undirected(), center_id, radius=radius)
    return [p for p in index.values() if p.id in ego]
