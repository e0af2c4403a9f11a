import asyncio
import itertools
import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from tagweb import handlers
from tagweb.chart_builder import build_echart_options
from tagweb.controller import InteractionController, NodeAction
from tagweb.fetch import FetchFailure, most_recent_request
from tagweb.graph import GraphState
from tagweb.handlers import (
    BACKGROUND_CLICK_EVENT,
    chart_setup_js,
    chart_update_js,
    describe,
    make_background_dispatcher,
    setup_graph_handlers,
)
from tagweb.merger import merge, normalize
from tagweb.surface import ChartSurface


@pytest.fixture
def fake_ui(monkeypatch):
    ui = MagicMock()
    monkeypatch.setattr(handlers, 'ui', ui)
    return ui


@pytest.fixture
def opened():
    return []


@pytest.fixture
def controller(queued_fetch, opened):
    counter = itertools.count(1)
    return InteractionController(
        fetch=queued_fetch,
        navigate=opened.append,
        id_factory=lambda: str(next(counter)),
    )


@pytest.fixture
def page(controller, fake_ui):
    state = {'client': MagicMock(), 'chart': MagicMock(), 'status': MagicMock()}
    surface = ChartSurface()
    bound = setup_graph_handlers(state, controller, surface)
    return SimpleNamespace(state=state, surface=surface, handlers=bound)


@pytest.fixture
def loaded(page, controller, queued_fetch, article):
    controller.load_initial()
    queued_fetch.complete({"articles": [
        article("a1", title="First", username="u1", tags=["tag1"], url="https://example.com/a1"),
    ]})
    return controller


def click(page, name, data_type='node'):
    event = SimpleNamespace(args={'componentType': 'series', 'dataType': data_type, 'name': name})
    return asyncio.run(page.handlers['handle_chart_click'](event))


def answer_with(monkeypatch, value, before_answer=None):
    asked = []

    async def fake_ask(message, default):
        asked.append((message, default))
        if before_answer:
            before_answer()
        return value

    monkeypatch.setattr(handlers, 'ask_for_label', fake_ask)
    return asked


class TestChartClick:

    def test_tag_click_dispatches_and_notifies(self, page, loaded, queued_fetch, fake_ui, article):
        before = loaded.state

        assert click(page, 'tag1') == NodeAction.EXPAND

        assert loaded.state is before
        request, _, _ = queued_fetch.pending[0]
        assert request.variables == {"tag": "tag1", "limit": 10}
        fake_ui.notify.assert_called_once()

        queued_fetch.complete({"articles": [article("a2", username="u2", tags=["tag1"])]})
        assert loaded.state.node_ids() == ["a1", "u1", "tag1", "a2", "u2"]
        assert fake_ui.run_javascript.called

    def test_article_click_opens_url(self, page, loaded, opened):
        assert click(page, 'a1') == NodeAction.OPEN
        assert opened == ["https://example.com/a1"]

    def test_rename_goes_through_dialog(self, page, loaded, monkeypatch):
        asked = answer_with(monkeypatch, "Someone")

        assert click(page, 'u1') == NodeAction.RENAME

        assert asked == [('Name this node:', '')]
        assert loaded.state.node_by_id('u1').title == "Someone"
        assert page.state['status'].text == describe(loaded.state)

    @pytest.mark.parametrize("value", [None, ""])
    def test_cancelled_dialog_keeps_state(self, page, loaded, monkeypatch, value):
        answer_with(monkeypatch, value)
        before = loaded.state

        click(page, 'u1')

        assert loaded.state is before
        assert loaded.state.node_by_id('u1').title is None

    def test_node_removed_while_dialog_open(self, page, loaded, monkeypatch, fake_ui):
        answer_with(monkeypatch, "renamed", before_answer=loaded.reset)

        assert click(page, 'u1') == NodeAction.RENAME

        assert loaded.state.is_empty
        assert fake_ui.notify.call_args.kwargs['type'] == 'warning'

    def test_edge_and_unknown_clicks_are_ignored(self, page, loaded, queued_fetch):
        assert click(page, 'u1 > a1', data_type='edge') is None
        assert click(page, 'nowhere') is None
        assert queued_fetch.pending == []


class TestBackgroundClick:

    def test_node_seeded_at_chart_coordinates(self, page, controller):
        state = page.handlers['handle_background_click'](
            SimpleNamespace(args={'offsetX': 120, 'offsetY': 60, 'graphX': 431.5, 'graphY': -12.25})
        )

        assert len(state.nodes) == 3
        assert len(state.links) == 2
        record = state.nodes[0]
        assert record.kind == "Article"
        assert (record.x, record.y) == (431.5, -12.25)

    def test_click_without_chart_coordinates_is_ignored(self, page, controller):
        assert page.handlers['handle_background_click']({'offsetX': 120, 'offsetY': 60}) is None
        assert controller.state.is_empty


class StaticSource:
    def __init__(self, batch=None, error=None):
        self.batch = batch
        self.error = error

    def execute(self, request):
        if self.error:
            raise self.error
        return self.batch


@pytest.fixture
def background(monkeypatch):
    """Run io_bound inline and collect background tasks instead of scheduling them."""
    created = []

    async def io_bound(func, *args):
        return func(*args)

    monkeypatch.setattr(handlers, 'run', SimpleNamespace(io_bound=io_bound))
    monkeypatch.setattr(handlers, 'background_tasks',
                        SimpleNamespace(create=lambda coro, name=None: created.append((name, coro))))
    return created


class TestBackgroundDispatcher:

    def test_completion_arrives_after_task_runs(self, background, article):
        batch = {"articles": [article("a1")]}
        completed, failed = [], []

        make_background_dispatcher(StaticSource(batch=batch))(
            most_recent_request(), completed.append, failed.append)

        assert completed == []
        name, task = background[0]
        assert name == 'fetch-mostRecent'
        asyncio.run(task)
        assert completed == [batch]
        assert failed == []

    def test_failure_reaches_on_error(self, background, fake_ui):
        error = FetchFailure("down")
        controller = InteractionController(fetch=make_background_dispatcher(StaticSource(error=error)))
        setup_graph_handlers({'client': MagicMock()}, controller, ChartSurface())

        controller.load_initial()
        asyncio.run(background[0][1])

        assert controller.state.is_empty
        assert fake_ui.notify.call_args.kwargs['type'] == 'negative'
        assert 'down' in fake_ui.notify.call_args.args[0]


def test_describe_counts_kinds_and_links(article):
    state = merge(GraphState(), normalize({"articles": [article("a1", tags=["t1", "t2"])]}))
    assert describe(state) == "4 nodes (1 Article, 2 Tag, 1 User) · 3 links"


def test_describe_empty_graph():
    assert describe(GraphState()) == "0 nodes (none) · 0 links"


def test_setup_js_converts_pixels_with_the_chart():
    js = chart_setup_js(42)
    assert 'getElement(42)' in js
    assert f"emitEvent('{BACKGROUND_CLICK_EVENT}'" in js
    assert 'chart.convertFromPixel({seriesIndex: 0}, [e.offsetX, e.offsetY])' in js
    assert 'graphX: point[0], graphY: point[1]' in js
    assert 'if (e.target) return;' in js


def test_update_js_embeds_nodes_and_links(article):
    state = merge(GraphState(), normalize({"articles": [article("a1", title="Hello")]}))
    options = build_echart_options(state)
    js = chart_update_js(options)

    series = options['series'][0]
    assert json.dumps({n['id']: n for n in series['data']}) in js
    assert json.dumps(series['links']) in js
    # existing nodes keep their layout positions
    assert '...n,' in js
