"""
ECharts options builder for TagWeb graph visualization.

Runs the per-node paint callbacks against a recording canvas and turns what
they drew into ECharts graph-series symbols:
- label rectangle + text  -> 'rect' symbol sized to the painted rectangle
- avatar image            -> 'image://<avatar>' symbol

ECharts' force layout plays the physics engine: seeded nodes pass their x/y
as starting positions, everything else is placed by the layout. ECharts picks
nodes by their symbol, which is the painted rectangle, so node clicks hit the
same area the label covers.
"""

import re
from typing import Any, Dict, Optional, Tuple

from tagweb.graph import GraphState
from tagweb.render import kind_colors, node_color_key, node_label, paint_node

# Event keys we request from ECharts click events
REQUESTED_EVENT_KEYS = ['componentType', 'name', 'dataType', 'value']

# Average glyph width as a fraction of the font size (Sans-Serif)
CHAR_WIDTH_RATIO = 0.6
DEFAULT_SYMBOL_SIZE = 10
BACKGROUND_COLOR = '#1e1e24'
LINK_COLOR = '#9e9e9e'


def _font_size(font: str) -> float:
    match = re.search(r'([\d.]+)px', font or '')
    return float(match.group(1)) if match else 10.0


class SymbolCanvas:
    """
    Canvas that records one node's paint calls instead of drawing them.

    Text is measured with an average glyph width; the browser does the real
    text layout inside the symbol.
    """

    def __init__(self):
        self.font = '10px Sans-Serif'
        self.fill_style = '#000000'
        self.text_align = 'start'
        self.text_baseline = 'alphabetic'
        self.rect: Optional[Tuple[float, float]] = None
        self.rect_color: Optional[str] = None
        self.text: Optional[str] = None
        self.text_color: Optional[str] = None
        self.text_size: Optional[float] = None
        self.image: Optional[Tuple[str, float, float]] = None

    def measure_text(self, text: str) -> float:
        return len(text) * _font_size(self.font) * CHAR_WIDTH_RATIO

    def fill_rect(self, x: float, y: float, width: float, height: float) -> None:
        self.rect = (width, height)
        self.rect_color = self.fill_style

    def fill_text(self, text: str, x: float, y: float) -> None:
        self.text = text
        self.text_color = self.fill_style
        self.text_size = _font_size(self.font)

    def draw_image(self, src: str, x: float, y: float, width: float, height: float) -> None:
        self.image = (src, width, height)

    def to_symbol(self, fallback_color: Optional[str]) -> Dict[str, Any]:
        """ECharts symbol, style and label for what was painted."""
        if self.image:
            src, width, height = self.image
            return {
                'symbol': f'image://{src}',
                'symbolSize': [width, height],
                'label': {'show': False},
            }
        if self.rect:
            return {
                'symbol': 'rect',
                'symbolSize': [round(self.rect[0], 2), round(self.rect[1], 2)],
                'itemStyle': {'color': self.rect_color},
                'label': {
                    'show': self.text is not None,
                    'formatter': self.text or '',
                    'position': 'inside',
                    'color': self.text_color,
                    'fontSize': self.text_size,
                },
            }
        return {
            'symbol': 'circle',
            'symbolSize': DEFAULT_SYMBOL_SIZE,
            'itemStyle': {'color': fallback_color},
            'label': {'show': False},
        }


def build_echart_options(state: GraphState, global_scale: float = 1.0) -> Dict[str, Any]:
    """
    Build ECharts options from the graph state.

    Paints every node (recording its hit-test rectangle) and returns a single
    'graph' series. Repeated links are kept; links to unknown ids are dropped.
    """
    colors = kind_colors(state)

    e_nodes = []
    for node in state.nodes:
        color = colors[node_color_key(node)]
        canvas = SymbolCanvas()
        paint_node(node, canvas, global_scale, color)
        label = node_label(node)

        e_node = {
            'id': node.id,
            'name': node.id,
            'value': label,
            'kind': node.kind,
            'draggable': True,
            'tooltip': {'formatter': label},
        }
        e_node.update(canvas.to_symbol(color))
        if node.x is not None:
            e_node['x'] = node.x
        if node.y is not None:
            e_node['y'] = node.y
        e_nodes.append(e_node)

    known = set(state.node_ids())
    e_links = [
        {'source': link.source, 'target': link.target, 'lineStyle': {'color': LINK_COLOR, 'width': 1, 'opacity': 0.8}}
        for link in state.links
        if link.source in known and link.target in known
    ]

    return {
        'backgroundColor': BACKGROUND_COLOR,
        'tooltip': {},
        'animationDurationUpdate': 0,  # Prevent animated repositioning on updates
        'series': [{
            'type': 'graph',
            'layout': 'force',
            'roam': True,
            'data': e_nodes,
            'links': e_links,
            'edgeSymbol': ['none', 'arrow'],
            'edgeSymbolSize': 4,
            'force': {
                'repulsion': 120,
                'gravity': 0.05,
                'edgeLength': 40,
                'friction': 0.3,
                'layoutAnimation': True,
            },
        }],
    }


def normalize_click_payload(raw_payload: Any) -> Dict[str, Any]:
    """Normalize NiceGUI chart click payloads into a dictionary for easier parsing."""
    if isinstance(raw_payload, dict):
        return raw_payload
    if isinstance(raw_payload, (list, tuple)):
        return {
            REQUESTED_EVENT_KEYS[i]: raw_payload[i]
            for i in range(min(len(raw_payload), len(REQUESTED_EVENT_KEYS)))
        }
    if isinstance(raw_payload, str):
        return {'name': raw_payload}
    return {}


def resolve_node_id_from_payload(payload: Dict[str, Any], state: GraphState) -> Optional[str]:
    """Return a node id from a normalized payload by validating against the graph state."""
    if not isinstance(payload, dict):
        return None
    if payload.get('componentType') != 'series':
        return None
    if payload.get('dataType') not in (None, 'node'):
        return None

    node_id = payload.get('name')
    if not node_id:
        return None

    if state.node_by_id(node_id) is not None:
        return node_id

    for node in state.nodes:
        if node_label(node) == node_id:
            return node.id
    return None

