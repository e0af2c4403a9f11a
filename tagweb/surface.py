"""
Screen -> graph mapping for the rendering surface.

ECharts owns the graph view transform (pan, zoom and the fit of the data into
the chart), so the chart converts the clicked pixel itself with
`convertFromPixel` and sends both positions with the background-click event.
ChartSurface serves that conversion to the controller through the
RenderSurface protocol.
"""

import math
from typing import Any, Optional, Protocol, Sequence, Tuple, runtime_checkable

Point = Tuple[float, float]

# Pointer keys, in order of preference
SCREEN_KEYS = (('layerX', 'layerY'), ('offsetX', 'offsetY'), ('x', 'y'))
# Graph coordinates added by the chart's click listener
GRAPH_KEYS = (('graphX', 'graphY'),)


@runtime_checkable
class RenderSurface(Protocol):
    def screen_to_graph(self, x: float, y: float) -> Point:
        ...


class ChartSurface:
    """Holds the pixel -> graph conversion the chart reported for the last click."""

    def __init__(self):
        self._last: Optional[Tuple[Point, Point]] = None

    def record(self, screen: Point, graph: Point) -> None:
        self._last = (screen, graph)

    def screen_to_graph(self, x: float, y: float) -> Point:
        if self._last is None or self._last[0] != (x, y):
            raise LookupError(f"No chart conversion recorded for pixel ({x}, {y})")
        return self._last[1]


def _coordinates(event: Any, key_pairs: Sequence[Tuple[str, str]], allow_sequence: bool) -> Optional[Point]:
    raw = event.args if hasattr(event, 'args') else event

    if allow_sequence and isinstance(raw, (list, tuple)) and len(raw) >= 2:
        x, y = raw[0], raw[1]
    elif isinstance(raw, dict):
        for kx, ky in key_pairs:
            if raw.get(kx) is not None and raw.get(ky) is not None:
                x, y = raw[kx], raw[ky]
                break
        else:
            return None
    else:
        return None

    try:
        x, y = float(x), float(y)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return x, y


def pointer_position(event: Any) -> Optional[Point]:
    """
    Extract screen coordinates from a pointer event.

    Accepts NiceGUI event objects (reads .args), dicts with layerX/layerY,
    offsetX/offsetY or x/y, and [x, y] sequences. Returns None when no finite
    coordinates can be found.
    """
    return _coordinates(event, SCREEN_KEYS, allow_sequence=True)


def chart_position(event: Any) -> Optional[Point]:
    """Graph coordinates the chart attached to a background click, or None."""
    return _coordinates(event, GRAPH_KEYS, allow_sequence=False)
