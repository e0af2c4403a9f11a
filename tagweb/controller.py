"""
Interaction Controller - Single source of truth for the explored graph.

This controller owns the current GraphState and decides what each user
interaction does:
- Tag click:        fetch articles with that tag, merge when they arrive
- Article click:    open the article url, graph unchanged
- other node click: rename the node via the injected prompt
- background click: synthesize one article at the pointer and merge it

The state is replaced wholesale on every transition. Fetches are dispatched
through an injected dispatcher and merged only in their completion callback,
so a click never changes the graph synchronously.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from tagweb.fetch import (
    RECENT_LIMIT,
    TAG_LIMIT,
    FetchDispatcher,
    articles_by_tag_request,
    most_recent_request,
)
from tagweb.graph import ARTICLE, TAG, GraphNode, GraphState
from tagweb.merger import MalformedRecordError, merge, normalize, rename_node
from tagweb.sample_data import make_sample_batch
from tagweb.surface import RenderSurface, pointer_position

logger = logging.getLogger(__name__)

# prompt(message, default) -> new label, or None when cancelled
PromptFn = Callable[[str, str], Optional[str]]


class NodeAction(str, Enum):
    EXPAND = 'expand'
    OPEN = 'open'
    RENAME = 'rename'


class InteractionController:
    """Owns graph state and routes clicks to fetches, navigation or renames."""

    def __init__(self, fetch: FetchDispatcher, prompt: Optional[PromptFn] = None,
                 navigate: Optional[Callable[[str], None]] = None,
                 surface: Optional[RenderSurface] = None,
                 id_factory: Optional[Callable[[], str]] = None,
                 dedupe_links: bool = False,
                 recent_limit: int = RECENT_LIMIT,
                 tag_limit: int = TAG_LIMIT):
        self._fetch = fetch
        self._prompt = prompt
        self._navigate = navigate
        self._surface = surface
        self._id_factory = id_factory
        self._dedupe_links = dedupe_links
        self._recent_limit = recent_limit
        self._tag_limit = tag_limit
        self._state = GraphState()
        self._on_state_change: Optional[Callable[[GraphState], None]] = None
        self._on_error: Optional[Callable[[Exception], None]] = None

    @property
    def state(self) -> GraphState:
        return self._state

    def set_on_state_change(self, callback: Callable[[GraphState], None]):
        self._on_state_change = callback

    def set_on_error(self, callback: Callable[[Exception], None]):
        self._on_error = callback

    def set_surface(self, surface: RenderSurface):
        self._surface = surface

    def reset(self) -> GraphState:
        self._replace(GraphState())
        return self._state

    # --- Fetch-driven growth ---

    def load_initial(self) -> None:
        """Request the most recent articles; they are merged into the (empty) graph."""
        request = most_recent_request(self._recent_limit)
        logger.info(f"Loading initial graph ({self._recent_limit} most recent articles)")
        self._fetch(request, self._on_batch_completed, self._on_fetch_failed)

    def expand_tag(self, tag: str) -> None:
        request = articles_by_tag_request(tag, self._tag_limit)
        logger.info(f"Expanding tag {tag!r}")
        self._fetch(request, self._on_batch_completed, self._on_fetch_failed)

    def receive_batch(self, batch: Any) -> GraphState:
        """
        Normalize and merge a batch. All or nothing: a malformed batch raises
        MalformedRecordError (MissingActorError when a user is missing) and
        leaves the state as it was.
        """
        subgraph = normalize(batch)
        self._replace(merge(self._state, subgraph, dedupe=self._dedupe_links))
        return self._state

    def _on_batch_completed(self, batch: Dict[str, Any]) -> None:
        try:
            self.receive_batch(batch)
        except MalformedRecordError as e:
            self._report(e)

    def _on_fetch_failed(self, error: Exception) -> None:
        self._report(error)

    # --- Clicks ---

    def route(self, node: GraphNode) -> NodeAction:
        if node.kind == TAG:
            return NodeAction.EXPAND
        if node.kind == ARTICLE:
            return NodeAction.OPEN
        return NodeAction.RENAME

    def on_node_click(self, node: GraphNode, event: Any = None) -> NodeAction:
        action = self.route(node)
        logger.debug(f"Node click on {node.id!r} ({node.kind}) -> {action.value}")

        if action == NodeAction.EXPAND:
            self.expand_tag(node.id)
        elif action == NodeAction.OPEN:
            if node.url and self._navigate:
                self._navigate(node.url)
        else:
            self.rename(node, 'node')
        return action

    def on_background_click(self, event: Any) -> Optional[GraphState]:
        """
        Add a synthesized article under the pointer.

        Returns the new state, or None when the event carries no usable
        coordinates.
        """
        position = pointer_position(event)
        if position is None:
            logger.warning(f"Background click without coordinates: {event!r}")
            return None
        if self._surface is None:
            raise RuntimeError("No rendering surface set for background clicks")

        x, y = self._surface.screen_to_graph(*position)
        batch = make_sample_batch(x, y, self._id_factory)
        return self.receive_batch(batch)

    # --- Rename ---

    def rename(self, entity: GraphNode, kind_label: str) -> Optional[str]:
        """Prompt for a new title. Returns it, or None when cancelled."""
        if self._prompt is None:
            raise RuntimeError("No prompt configured for renaming")
        value = self._prompt(f'Name this {kind_label}:', entity.title or '')
        if not value:
            return None
        self.apply_rename(entity.id, value)
        return value

    def apply_rename(self, node_id: str, title: str) -> GraphState:
        self._replace(rename_node(self._state, node_id, title))
        return self._state

    # --- Internals ---

    def _replace(self, state: GraphState) -> None:
        self._state = state
        if self._on_state_change:
            self._on_state_change(self._state)

    def _report(self, error: Exception) -> None:
        logger.error(f"Graph update failed, keeping current graph: {error}")
        if self._on_error:
            self._on_error(error)
