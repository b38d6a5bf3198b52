"""Data classes for family forest entities."""

from dataclasses import dataclass, field
from enum import Enum
from typing import NewType

# A person's stable domain key vs. the key of one box on the render surface.
# One person maps to one canonical node and any number of duplicate nodes.
PersonId = NewType("PersonId", str)
NodeId = NewType("NodeId", str)

GENDERS = ("male", "female", "other")
SPOUSE_KEY_SEPARATOR = "-spouse-"


class EdgeKind(str, Enum):
    PARENT_CHILD = "parentChild"
    SPOUSE = "spouse"


@dataclass(frozen=True)
class Person:
    id: PersonId
    name: str = "Unknown"
    gender: str = "other"  # male, female or other
    birth_date: str | None = None  # raw value, parsed on demand
    alive: bool = True
    father_id: PersonId | None = None
    mother_id: PersonId | None = None
    spouse_id: PersonId | None = None
    image_url: str | None = None


@dataclass
class Position:
    x: float = 0.0
    y: float = 0.0


@dataclass
class GraphNode:
    id: NodeId
    original_id: PersonId
    name: str
    gender: str
    birth_year: int | None
    alive: bool
    generation_level: int  # tree-local, tree root = 0
    is_duplicate_reference: bool = False
    global_generation: int | None = None
    image_url: str | None = None
    position: Position = field(default_factory=Position)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "originalId": self.original_id,
            "name": self.name,
            "gender": self.gender,
            "birthYear": self.birth_year,
            "alive": self.alive,
            "imageUrl": self.image_url,
            "generationLevel": self.generation_level,
            "globalGeneration": self.global_generation,
            "isDuplicateReference": self.is_duplicate_reference,
            "position": {"x": self.position.x, "y": self.position.y},
        }


def edge_key(kind: EdgeKind, source: str, target: str) -> str:
    """
    De-duplication key of an edge.

    Parent->child edges are directed. Spouse edges are keyed by the sorted pair
    so the same couple yields one key whichever record referenced the other.
    """
    if kind == EdgeKind.SPOUSE:
        return SPOUSE_KEY_SEPARATOR.join(sorted([source, target]))
    return f"{source}->{target}"


@dataclass(frozen=True)
class GraphEdge:
    kind: EdgeKind
    source: NodeId
    target: NodeId

    @property
    def key(self) -> str:
        return edge_key(self.kind, self.source, self.target)

    def to_dict(self) -> dict:
        return {
            "id": self.key,
            "kind": self.kind.value,
            "source": self.source,
            "target": self.target,
        }


@dataclass
class ForestLayout:
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    generations: dict[PersonId, int] = field(default_factory=dict)

    def node(self, node_id: str) -> GraphNode | None:
        for n in self.nodes:
            if n.id == node_id:
                return n
        return None

    def canonical_node(self, person_id: str) -> GraphNode | None:
        """Return the first (non-duplicate) placement of a person."""
        for n in self.nodes:
            if n.original_id == person_id and not n.is_duplicate_reference:
                return n
        return None

    def to_dict(self) -> dict:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
            "generations": dict(self.generations),
        }


@dataclass(frozen=True)
class LayoutConfig:
    """Tunables of one layout computation. Lengths are in layout units."""

    node_width: float = 150
    node_height: float = 90
    sibling_gap: float = 40
    level_gap: float = 60
    tree_gap: float = 100
    max_depth: int = 64
    iteration_factor: int = 10
    rank_engine: str = "builtin"  # builtin or dot
    normalize: bool = True
    duplicate_marker: str = " (duplicate)"

    @property
    def level_height(self) -> float:
        return self.node_height + self.level_gap
