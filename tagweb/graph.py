"""
Graph data model for TagWeb.

Nodes, links and the accumulated graph state shared by the merger, the
interaction controller and the rendering callbacks.

Node kinds follow the GraphQL `__typename` of the entity they came from:
  - "Article": a record, labelled by its title, opens its url on click
  - "User":    the record's author, drawn as an avatar image
  - "Tag":     a tag name, expands into more articles on click

Identifiers are assumed globally unique across kinds (an article id, a
username and a tag name never collide as strings).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import networkx as nx

ARTICLE = "Article"
USER = "User"
TAG = "Tag"

# Kinds drawn as a text label on a background rectangle
LABEL_KINDS = (TAG, ARTICLE)

KNOWN_KINDS = (ARTICLE, USER, TAG)


@dataclass
class GraphNode:
    """
    A single graph node.

    x/y are seed coordinates: set once at creation, then owned by the physics
    engine. None means unseeded. background_dimensions is recorded by the
    paint pass and takes no part in equality.
    """
    id: str
    kind: str
    display_fields: Dict[str, Any] = field(default_factory=dict)
    x: Optional[float] = None
    y: Optional[float] = None
    background_dimensions: Optional[Tuple[float, float]] = field(default=None, compare=False, repr=False)

    @property
    def title(self) -> Optional[str]:
        return self.display_fields.get("title")

    @property
    def url(self) -> Optional[str]:
        return self.display_fields.get("url")

    @property
    def avatar(self) -> Optional[str]:
        return self.display_fields.get("avatar")


@dataclass(frozen=True)
class GraphLink:
    source: str
    target: str


@dataclass(frozen=True)
class Subgraph:
    """Nodes and links normalized from one batch, before merging."""
    nodes: Tuple[GraphNode, ...] = ()
    links: Tuple[GraphLink, ...] = ()


@dataclass(frozen=True)
class GraphState:
    """
    The accumulated graph for a session.

    A new value is produced for every transition; the tuples are never
    modified in place.
    """
    nodes: Tuple[GraphNode, ...] = ()
    links: Tuple[GraphLink, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.links

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def node_by_id(self, node_id: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


def uniq_by_id(nodes: Iterable[GraphNode]) -> Tuple[GraphNode, ...]:
    """Drop nodes whose id was already seen. The first occurrence wins."""
    seen = set()
    unique = []
    for node in nodes:
        if node.id in seen:
            continue
        seen.add(node.id)
        unique.append(node)
    return tuple(unique)


def dangling_links(state: GraphState) -> List[GraphLink]:
    """Return links whose source or target is not a node of the state."""
    ids = set(state.node_ids())
    return [l for l in state.links if l.source not in ids or l.target not in ids]


def to_networkx(state: GraphState) -> nx.MultiDiGraph:
    """
    Build a NetworkX MultiDiGraph from the state.

    A multigraph keeps repeated links, which are part of the model.
    Links to unknown ids are skipped.
    """
    G = nx.MultiDiGraph()
    for node in state.nodes:
        G.add_node(node.id, kind=node.kind, **node.display_fields)
    for link in state.links:
        if link.source in G.nodes and link.target in G.nodes:
            G.add_edge(link.source, link.target)
    return G


def summarize(state: GraphState) -> Dict[str, Any]:
    """Node counts per kind plus link and connected-component counts."""
    G = to_networkx(state)
    per_kind: Dict[str, int] = {}
    for _, attrs in G.nodes(data=True):
        per_kind[attrs["kind"]] = per_kind.get(attrs["kind"], 0) + 1
    return {
        "nodes": G.number_of_nodes(),
        "links": G.number_of_edges(),
        "kinds": per_kind,
        "components": nx.number_weakly_connected_components(G) if G.number_of_nodes() else 0,
    }
