"""
Graph Handlers - NiceGUI event handlers for app.py

This module wires the ECharts surface to the InteractionController:
- node clicks are resolved to graph nodes and routed through the controller
- background clicks arrive as a custom event carrying the chart's own
  pixel -> graph conversion
- fetches run off the event loop and merge when they complete
- state changes push new nodes into the chart without moving existing ones
"""

import json
import logging
from typing import Any, Callable, Dict, Optional

from nicegui import background_tasks, run, ui

from tagweb.chart_builder import (
    build_echart_options,
    normalize_click_payload,
    resolve_node_id_from_payload,
)
from tagweb.controller import InteractionController, NodeAction
from tagweb.fetch import ArticleSource, FetchDispatcher, FetchFailure, FetchRequest, OnCompleted, OnFailed
from tagweb.graph import GraphState, summarize
from tagweb.surface import ChartSurface, chart_position, pointer_position

logger = logging.getLogger(__name__)

BACKGROUND_CLICK_EVENT = 'tagweb_background_click'


def make_background_dispatcher(source: ArticleSource) -> FetchDispatcher:
    """Dispatcher that runs source.execute in a worker thread and calls back on the event loop."""

    def dispatch(request: FetchRequest, on_completed: OnCompleted, on_failed: OnFailed) -> None:
        async def fetch_and_merge():
            try:
                batch = await run.io_bound(source.execute, request)
            except FetchFailure as e:
                on_failed(e)
                return
            on_completed(batch)

        background_tasks.create(fetch_and_merge(), name=f'fetch-{request.name}')

    return dispatch


async def ask_for_label(message: str, default: str) -> Optional[str]:
    """Show a modal asking for a label. Returns None when cancelled."""
    with ui.dialog() as dialog, ui.card().classes('w-96'):
        ui.label(message).classes('text-lg font-bold')
        label_input = ui.input(value=default).classes('w-full')
        label_input.on('keydown.enter', lambda: dialog.submit(label_input.value))
        with ui.row().classes('w-full justify-end gap-2 mt-4'):
            ui.button('Cancel', on_click=lambda: dialog.submit(None)).props('flat')
            ui.button('Save', on_click=lambda: dialog.submit(label_input.value)).props('color=primary')
    result = await dialog
    dialog.delete()
    return result


def chart_setup_js(chart_id: int) -> str:
    """
    JS that forwards background clicks from the chart as a custom event.

    The chart converts the clicked pixel into graph coordinates itself, so the
    new node is seeded exactly under the pointer whatever the pan and zoom.
    """
    return f'''
        setTimeout(function() {{
            const vueComponent = getElement({chart_id});
            if (!vueComponent || !vueComponent.chart) {{
                console.log('TagWeb: chart not ready', vueComponent);
                return;
            }}
            const chart = vueComponent.chart;
            window.tagwebChart = chart;
            chart.getZr().on('click', function(e) {{
                if (e.target) return;  // node or link clicks are handled by componentClick
                let point = null;
                try {{
                    point = chart.convertFromPixel({{seriesIndex: 0}}, [e.offsetX, e.offsetY]);
                }} catch (err) {{
                    console.log('TagWeb: convertFromPixel failed', err);
                }}
                if (!point || isNaN(point[0]) || isNaN(point[1])) return;
                emitEvent('{BACKGROUND_CLICK_EVENT}', {{
                    offsetX: e.offsetX, offsetY: e.offsetY,
                    graphX: point[0], graphY: point[1]
                }});
            }});
        }}, 500);
    '''


def chart_update_js(options: Dict[str, Any]) -> str:
    """
    JS that applies new series data while keeping the positions ECharts has
    already computed for existing nodes. Only new nodes get their seed x/y.
    """
    series = options.get('series', [{}])[0]
    all_nodes_json = json.dumps({n['id']: n for n in series.get('data', [])})
    links_json = json.dumps(series.get('links', []))
    return f'''
        if (window.tagwebChart) {{
            const chart = window.tagwebChart;
            const allNodesMap = {all_nodes_json};

            const opt = chart.getOption();
            const currentData = (opt.series && opt.series[0] && opt.series[0].data) || [];
            const existingIds = new Set(currentData.map(n => n.id || n.name));

            // Existing nodes: refresh visuals only, keep x/y from the layout
            const updatedData = currentData
                .filter(n => allNodesMap[n.id || n.name])
                .map(n => {{
                    const props = allNodesMap[n.id || n.name];
                    return {{
                        ...n,
                        value: props.value,
                        symbol: props.symbol,
                        symbolSize: props.symbolSize,
                        itemStyle: props.itemStyle,
                        label: props.label,
                        tooltip: props.tooltip
                    }};
                }});

            const newNodes = Object.values(allNodesMap).filter(n => !existingIds.has(n.id));

            chart.setOption({{
                series: [{{
                    data: [...updatedData, ...newNodes],
                    links: {links_json}
                }}]
            }}, {{notMerge: false, lazyUpdate: true}});
        }}
    '''


def describe(state: GraphState) -> str:
    stats = summarize(state)
    kinds = ', '.join(f"{count} {kind}" for kind, count in sorted(stats['kinds'].items()))
    return f"{stats['nodes']} nodes ({kinds or 'none'}) · {stats['links']} links"


def setup_graph_handlers(
    state: Dict[str, Any],
    controller: InteractionController,
    surface: ChartSurface,
) -> Dict[str, Callable]:
    """
    Set up all graph event handlers.

    Args:
        state: Page state dictionary ('client', 'chart', 'status' entries)
        controller: InteractionController owning the graph
        surface: ChartSurface fed with the chart's pixel -> graph conversions

    Returns:
        Dict with handler functions for binding to UI events
    """

    def refresh_chart_ui(graph: GraphState):
        """Push the new graph into the chart. Runs in the page's client context."""
        options = build_echart_options(graph)
        with state['client']:
            if state.get('status'):
                state['status'].text = describe(graph)
            if state.get('chart'):
                ui.run_javascript(chart_update_js(options))

    def on_error(error: Exception):
        with state['client']:
            ui.notify(f'Could not update graph: {error}', type='negative', position='bottom')

    controller.set_on_state_change(refresh_chart_ui)
    controller.set_on_error(on_error)
    controller.set_surface(surface)

    async def handle_chart_click(event) -> Optional[NodeAction]:
        raw_payload = event.args if hasattr(event, 'args') else event
        payload = normalize_click_payload(raw_payload)
        node_id = resolve_node_id_from_payload(payload, controller.state)
        if not node_id:
            return None

        node = controller.state.node_by_id(node_id)
        action = controller.route(node)
        if action == NodeAction.RENAME:
            # The dialog is asynchronous, so the prompt runs here and the
            # controller only applies the result.
            value = await ask_for_label('Name this node:', node.title or '')
            if not value:
                return action
            # The graph may have been reset while the dialog was open
            if controller.state.node_by_id(node.id) is None:
                logger.info(f"Node {node.id!r} left the graph before it was renamed")
                ui.notify(f'{node.id} is no longer in the graph', type='warning', position='bottom')
                return action
            controller.apply_rename(node.id, value)
            return action

        controller.on_node_click(node, payload)
        if action == NodeAction.EXPAND:
            ui.notify(f'Loading articles tagged {node.id}', position='bottom', timeout=1000)
        return action

    def handle_background_click(event) -> Optional[GraphState]:
        args = event.args if hasattr(event, 'args') else event
        screen = pointer_position(args)
        graph = chart_position(args)
        if screen is None or graph is None:
            logger.warning(f"Background click without chart coordinates: {args!r}")
            return None
        surface.record(screen, graph)
        return controller.on_background_click(args)

    return {
        'handle_chart_click': handle_chart_click,
        'handle_background_click': handle_background_click,
        'refresh_chart_ui': refresh_chart_ui,
    }
