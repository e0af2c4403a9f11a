"""
Main NiceGUI application for TagWeb.

Renders the explored article graph with ui.echart and routes clicks into the
InteractionController:
- click a tag to load more articles with that tag
- click an article to open it
- click an author to rename it
- click empty space to add a sample article there
"""

from nicegui import ui
import logging
import sys

from dotenv import load_dotenv

from tagweb.paths import get_env_path
load_dotenv(get_env_path())

from tagweb.config import get_settings, set_endpoint
from tagweb.chart_builder import REQUESTED_EVENT_KEYS, build_echart_options
from tagweb.controller import InteractionController
from tagweb.fetch import GraphQLClient
from tagweb.handlers import (
    BACKGROUND_CLICK_EVENT,
    chart_setup_js,
    describe,
    make_background_dispatcher,
    setup_graph_handlers,
)
from tagweb.surface import ChartSurface

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger('tagweb.app')


def show_endpoint_dialog(current: str):
    """Show modal dialog to configure the GraphQL endpoint."""
    with ui.dialog() as dialog, ui.card().classes('w-[500px]'):
        ui.label('Configure GraphQL Endpoint').classes('text-lg font-bold')
        ui.label(f'Current endpoint: {current}').classes('text-gray-500 text-sm mb-2')
        endpoint_input = ui.input('Endpoint URL', value=current, placeholder='http://localhost:4000/graphql').classes('w-full')

        def do_save():
            endpoint = endpoint_input.value.strip()
            if not endpoint.startswith(('http://', 'https://')):
                ui.notify('Endpoint must be an http(s) URL', type='negative')
                return
            set_endpoint(endpoint)
            ui.notify('Endpoint saved. Reloading...', type='positive')
            dialog.close()
            ui.navigate.reload()

        with ui.row().classes('w-full justify-end gap-2 mt-4'):
            ui.button('Cancel', on_click=dialog.close).props('flat')
            ui.button('Save', on_click=do_save).props('color=primary')

    dialog.open()
    return dialog


@ui.page('/')
def main_page():
    ui.dark_mode().enable()
    ui.query('body').style('margin: 0; padding: 0; overflow: hidden;')

    page_settings = get_settings()
    logger.info(f"Using GraphQL endpoint {page_settings.graphql_endpoint}")
    surface = ChartSurface()
    controller = InteractionController(
        fetch=make_background_dispatcher(GraphQLClient(page_settings.graphql_endpoint)),
        navigate=lambda url: ui.navigate.to(url, new_tab=True),
        surface=surface,
        dedupe_links=page_settings.dedupe_links,
        recent_limit=page_settings.recent_limit,
        tag_limit=page_settings.tag_limit,
    )

    state = {
        'client': ui.context.client,
        'chart': None,
        'status': None,
    }
    handlers = setup_graph_handlers(state, controller, surface)

    # 1. Full Screen Chart
    state['chart'] = ui.echart(build_echart_options(controller.state))
    state['chart'].style('width: 100vw; height: 100vh; position: absolute; top: 0; left: 0; z-index: 0;')
    state['chart'].on('componentClick', handlers['handle_chart_click'], REQUESTED_EVENT_KEYS)

    ui.on(BACKGROUND_CLICK_EVENT, handlers['handle_background_click'])
    ui.run_javascript(chart_setup_js(state['chart'].id))

    # 2. Toolbar
    with ui.row().classes('fixed left-6 top-6 z-10 items-center gap-3 bg-slate-900/90 rounded px-4 py-2'):
        ui.label('TagWeb').classes('text-lg font-bold text-primary')
        state['status'] = ui.label(describe(controller.state)).classes('text-xs text-gray-400')
        ui.button(icon='refresh', on_click=lambda: (controller.reset(), controller.load_initial())) \
            .props('flat dense round').tooltip('Reload most recent articles')
        ui.button(icon='settings', on_click=lambda: show_endpoint_dialog(page_settings.graphql_endpoint)) \
            .props('flat dense round').tooltip('GraphQL endpoint')

    controller.load_initial()


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='TagWeb',
        port=8081,
        reload=not getattr(sys, 'frozen', False),
    )
