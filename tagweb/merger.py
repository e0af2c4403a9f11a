"""
Graph merger for TagWeb.

Converts a fetched batch of articles into a normalized node/link subgraph and
merges successive subgraphs into the running graph state.

Batch format (GraphQL `data` payload):
{
  "articles": [
    {
      "__typename": "Article",
      "id": "a1",
      "title": "Some title",
      "url": "https://...",
      "x": 10, "y": 20,                # optional seed position
      "user": {"__typename": "User", "username": "u1", "avatar": "https://..."},
      "tags": [{"__typename": "Tag", "name": "tag1"}]
    }
  ]
}

Deduplication is first-wins by node id, both within one batch and when merging
into the graph state. Links are never deduplicated unless asked for.
"""

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from tagweb.graph import (
    ARTICLE,
    TAG,
    USER,
    GraphLink,
    GraphNode,
    GraphState,
    Subgraph,
    uniq_by_id,
)

logger = logging.getLogger(__name__)

# Seed offset of the author node relative to its article
USER_OFFSET = 5
# Seed offset of a tag node. Only the x field receives it, computed from the
# article's y; the tag's y stays unseeded.
TAG_OFFSET = -5


class MalformedRecordError(ValueError):
    """A record cannot be turned into nodes, so the whole batch is rejected."""
    def __init__(self, record_id: Any, reason: str):
        self.record_id = record_id
        self.reason = reason
        super().__init__(f"Record {record_id!r} {reason}")


class MissingActorError(MalformedRecordError):
    """A record has no author, so the author -> article link cannot be built."""
    def __init__(self, record_id: Any):
        super().__init__(record_id, "has no user")


def _seed(value: Any) -> Optional[float]:
    # Non-numeric coordinates are treated as unseeded
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value if math.isfinite(value) else None


def _offset(value: Optional[float], delta: float) -> Optional[float]:
    if value is None:
        return None
    return value + delta


def _name(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _records(batch: Any) -> List[Mapping[str, Any]]:
    if not batch:
        return []
    if isinstance(batch, Mapping):
        batch = batch.get("articles") or []
    if not isinstance(batch, (list, tuple)):
        raise MalformedRecordError(None, f"batch is not a list of records: {type(batch).__name__}")
    return list(batch)


def _tags(record: Mapping[str, Any]) -> List[Mapping[str, Any]]:
    tags = record.get("tags")
    if not isinstance(tags, (list, tuple)):
        return []
    named = [tag for tag in tags if isinstance(tag, Mapping) and _name(tag.get("name"))]
    if len(named) != len(tags):
        logger.debug(f"Skipping {len(tags) - len(named)} unnamed tag(s) on record {record.get('id')!r}")
    return named


def normalize(batch: Any) -> Subgraph:
    """
    Normalize one batch into a Subgraph.

    Accepts the GraphQL data mapping, a plain list of records, or nothing at
    all. Tags without a name are skipped. Raises MissingActorError if any
    record lacks its user, and MalformedRecordError if a record is not an
    object or has no string id; nothing is produced in either case.
    """
    nodes: List[GraphNode] = []
    links: List[GraphLink] = []

    for record in _records(batch):
        if not isinstance(record, Mapping):
            raise MalformedRecordError(None, f"is not an object: {record!r}")
        record_id = _name(record.get("id"))
        if record_id is None:
            raise MalformedRecordError(record.get("id"), "has no string id")
        user = record.get("user")
        username = _name(user.get("username")) if isinstance(user, Mapping) else None
        if username is None:
            raise MissingActorError(record_id)

        x, y = _seed(record.get("x")), _seed(record.get("y"))

        nodes.append(GraphNode(
            id=record_id,
            kind=record.get("__typename") or ARTICLE,
            display_fields={"title": record.get("title"), "url": record.get("url")},
            x=x,
            y=y,
        ))

        nodes.append(GraphNode(
            id=username,
            kind=user.get("__typename") or USER,
            display_fields={"avatar": user.get("avatar")},
            x=_offset(x, USER_OFFSET),
            y=_offset(y, USER_OFFSET),
        ))
        links.append(GraphLink(source=username, target=record_id))

        for tag in _tags(record):
            nodes.append(GraphNode(
                id=tag["name"],
                kind=tag.get("__typename") or TAG,
                x=_offset(y, TAG_OFFSET),
            ))
            links.append(GraphLink(source=record_id, target=tag["name"]))

    return Subgraph(nodes=uniq_by_id(nodes), links=tuple(links))


def dedupe_links(links: Iterable[GraphLink]) -> Tuple[GraphLink, ...]:
    """Keep the first link for each (source, target) pair."""
    seen = set()
    unique = []
    for link in links:
        key = (link.source, link.target)
        if key in seen:
            continue
        seen.add(key)
        unique.append(link)
    return tuple(unique)


def merge(current: GraphState, incoming: Subgraph, dedupe: bool = False) -> GraphState:
    """
    Merge a subgraph into the graph state, returning a new state.

    Nodes already in `current` win over incoming nodes with the same id, so
    existing positions and fields are never overwritten. Links are appended.
    `current` is left untouched.
    """
    nodes = uniq_by_id(current.nodes + tuple(incoming.nodes))
    links = current.links + tuple(incoming.links)
    if dedupe:
        links = dedupe_links(links)
    added = len(nodes) - len(current.nodes)
    logger.debug(f"Merged subgraph: +{added} nodes, +{len(links) - len(current.links)} links")
    return GraphState(nodes=nodes, links=links)


def rename_node(state: GraphState, node_id: str, title: str) -> GraphState:
    """
    Update the title of an existing node, found by id.

    The node object is updated in place; a merge would drop the renamed node
    as a duplicate. Returns a new state value holding the same nodes and links.
    """
    node = state.node_by_id(node_id)
    if node is None:
        raise KeyError(f"No node with id {node_id!r}")
    node.display_fields["title"] = title
    logger.info(f"Renamed node {node_id!r} to {title!r}")
    return GraphState(nodes=state.nodes, links=state.links)

