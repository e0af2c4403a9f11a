"""
Per-node rendering and hit-testing callbacks.

The rendering surface calls these once per frame per node:
- node_color_key / node_label pick the colour bucket and the hover label
- paint_node draws a label on a background rectangle for Tag and Article
  nodes, or the avatar image for User nodes
- paint_pointer_area fills the same rectangle with the node's pick colour

paint_node records the rectangle it drew on the node
(node.background_dimensions); the pointer pass reuses it, so paint must run
before the pointer pass for a node to be pickable.
"""

import colorsys
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from tagweb.graph import KNOWN_KINDS, LABEL_KINDS, USER, GraphNode, GraphState

BASE_FONT_SIZE = 12
# Padding around the label text, as a fraction of the font size
LABEL_PADDING = 0.2
LABEL_BACKGROUND = 'rgba(255, 255, 255, 0.8)'
AVATAR_SIZE = 12
DEFAULT_NODE_COLOR = '#808080'


class Canvas(Protocol):
    """The subset of a 2D canvas context the paint callbacks use."""
    font: str
    fill_style: str
    text_align: str
    text_baseline: str

    def measure_text(self, text: str) -> float:
        ...

    def fill_rect(self, x: float, y: float, width: float, height: float) -> None:
        ...

    def fill_text(self, text: str, x: float, y: float) -> None:
        ...

    def draw_image(self, src: str, x: float, y: float, width: float, height: float) -> None:
        ...


def node_color_key(node: GraphNode) -> str:
    return node.kind


def node_label(node: GraphNode) -> str:
    return node.title or node.id


def color_for_kind(kind: str, kinds: Iterable[str] = KNOWN_KINDS) -> str:
    """
    Give each kind an equal slice of the hue wheel.

    Kinds outside `kinds` are appended after them, so any kind gets a colour.
    Returns a lowercase hex string like '#2f8fd0'.
    """
    ordered: List[str] = list(kinds)
    if kind not in ordered:
        ordered.append(kind)
    hue = ordered.index(kind) / len(ordered)
    r, g, b = colorsys.hls_to_rgb(hue, 0.45, 0.65)
    return '#{:02x}{:02x}{:02x}'.format(int(r * 255), int(g * 255), int(b * 255))


def kind_colors(state: GraphState) -> Dict[str, str]:
    """Map every colour key present in the state to its colour. Nodes are not modified."""
    kinds = list(KNOWN_KINDS)
    for node in state.nodes:
        key = node_color_key(node)
        if key not in kinds:
            kinds.append(key)
    return {kind: color_for_kind(kind, kinds) for kind in kinds}


def label_dimensions(text_width: float, font_size: float) -> Tuple[float, float]:
    pad = font_size * LABEL_PADDING
    return text_width + pad, font_size + pad


def _position(node: GraphNode) -> Tuple[float, float]:
    # Unseeded coordinates sit at the origin until the engine places the node.
    return (node.x or 0.0, node.y or 0.0)


def paint_node(node: GraphNode, ctx: Canvas, global_scale: float = 1.0, color: Optional[str] = None) -> None:
    """Paint one node. Recording background_dimensions is the only change made to the node."""
    x, y = _position(node)

    if node.kind in LABEL_KINDS:
        label = node_label(node)
        font_size = BASE_FONT_SIZE / global_scale
        ctx.font = f'{font_size}px Sans-Serif'
        text_width = ctx.measure_text(label)
        width, height = label_dimensions(text_width, font_size)

        ctx.fill_style = LABEL_BACKGROUND
        ctx.fill_rect(x - width / 2, y - height / 2, width, height)

        ctx.text_align = 'center'
        ctx.text_baseline = 'middle'
        ctx.fill_style = color or DEFAULT_NODE_COLOR
        ctx.fill_text(label, x, y)

        node.background_dimensions = (width, height)
    elif node.kind == USER:
        half = AVATAR_SIZE / 2
        if node.avatar:
            ctx.draw_image(node.avatar, x - half, y - half, AVATAR_SIZE, AVATAR_SIZE)


def paint_pointer_area(node: GraphNode, color: str, ctx: Canvas) -> None:
    ctx.fill_style = color
    dims = _pick_dimensions(node)
    if dims:
        x, y = _position(node)
        ctx.fill_rect(x - dims[0] / 2, y - dims[1] / 2, dims[0], dims[1])


def _pick_dimensions(node: GraphNode) -> Optional[Tuple[float, float]]:
    # Users have no label rectangle; their avatar square is the pick area.
    if node.background_dimensions:
        return node.background_dimensions
    if node.kind == USER:
        return AVATAR_SIZE, AVATAR_SIZE
    return None


def _hit(node: GraphNode, x: float, y: float) -> bool:
    dims = _pick_dimensions(node)
    if dims is None or node.x is None or node.y is None:
        return False
    width, height = dims
    return abs(x - node.x) <= width / 2 and abs(y - node.y) <= height / 2


def find_node_at(state: GraphState, x: float, y: float) -> Optional[GraphNode]:
    """
    Return the node drawn under graph point (x, y), or None for background.

    Later nodes are painted on top, so they are tested first.
    """
    for node in reversed(state.nodes):
        if _hit(node, x, y):
            return node
    return None
