"""Data-quality checks for person records."""

from collections.abc import Iterable

import networkx as nx

from graph import build_person_graph, is_valid_ref
from models import Person
from parsing import parse_birth_date


def validate_people(people: Iterable[Person]) -> list[str]:
    """
    Validate person records for:
    - Repeated ids
    - Dangling and self references
    - Cycles in parent-child relationships
    - Impossible ages (child born before parent, parent younger than 12)
    - Spouse links that are not reciprocated

    Returns a list of warning messages. Layout never depends on these.
    """
    people = list(people)
    warnings: list[str] = []

    index: dict[str, Person] = {}
    for p in people:
        if p.id in index:
            warnings.append(f"Repeated id: {p.id} ({p.name})")
            continue
        index[p.id] = p

    for p in index.values():
        for field_name, ref in (
            ("father", p.father_id),
            ("mother", p.mother_id),
            ("spouse", p.spouse_id),
        ):
            if not is_valid_ref(ref):
                continue
            if ref == p.id:
                warnings.append(f"Self reference: {p.name} is their own {field_name}")
            elif ref not in index:
                warnings.append(f"Dangling reference: {p.name} has unknown {field_name} {ref}")

    # Create a subgraph with only PARENT_OF edges for cycle detection
    G = build_person_graph(index.values())
    parent_edges = [
        (u, v) for u, v, d in G.edges(data=True) if d.get("relationship_type") == "PARENT_OF"
    ]
    parent_graph = nx.DiGraph(parent_edges)

    try:
        cycle = nx.find_cycle(parent_graph, orientation="original")
        cycle_nodes = [edge[0] for edge in cycle]
        warnings.append(f"Cycle detected in parent-child relationships: {cycle_nodes}")
    except nx.NetworkXNoCycle:
        pass

    for parent, child in parent_edges:
        if parent == child:
            continue
        parent_birth = parse_birth_date(index[parent].birth_date)
        child_birth = parse_birth_date(index[child].birth_date)
        if not (parent_birth and child_birth):
            continue

        if child_birth < parent_birth:
            warnings.append(
                f"Impossible: {index[child].name} born before parent {index[parent].name}"
            )
        elif child_birth.year - parent_birth.year < 12:
            warnings.append(
                f"Suspicious: {index[parent].name} was less than 12 years old "
                f"when {index[child].name} was born"
            )

    for p in index.values():
        spouse = index.get(p.spouse_id) if is_valid_ref(p.spouse_id) else None
        if spouse is None or spouse.id == p.id:
            continue
        if is_valid_ref(spouse.spouse_id) and spouse.spouse_id != p.id:
            warnings.append(
                f"Spouse mismatch: {p.name} lists {spouse.name}, "
                f"who lists {spouse.spouse_id}"
            )

    return warnings
