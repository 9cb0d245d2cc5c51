"""Tests for HTML rendering."""

import re

import pytest
from jinja2 import TemplateError

from pycpu.models import EMPTY_SNAPSHOT, Snapshot
from pycpu.render import Renderer, View

ROW_RE = re.compile(r'<div class="cpu-row" data-core="(\d+)">')


@pytest.fixture
def renderer() -> Renderer:
    return Renderer()


class TestFragment:
    """Tests for fragment rendering."""

    @pytest.mark.parametrize("cores", [1, 4, 64])
    def test_one_row_per_core(self, renderer, cores):
        """Test the fragment has exactly one row per core."""
        snapshot = Snapshot.from_percents([float(n) for n in range(cores)])

        html = renderer.render(View.FRAGMENT, snapshot)

        assert [int(core) for core in ROW_RE.findall(html)] == list(range(1, cores + 1))

    def test_rows_show_id_and_usage(self, renderer):
        """Test each row carries the core label and one-decimal usage."""
        snapshot = Snapshot.from_percents([0.0, 12.345, 100.0])

        html = renderer.render(View.FRAGMENT, snapshot)

        rows = html.split('class="cpu-row"')[1:]
        assert len(rows) == 3
        for row, (label, usage) in zip(rows, [("CPU 1", "0.0%"), ("CPU 2", "12.3%"), ("CPU 3", "100.0%")]):
            assert label in row
            assert f'<span class="cpu-usage">{usage}</span>' in row

    def test_zero_cores(self, renderer):
        """Test an empty snapshot renders an empty row set without error."""
        html = renderer.render(View.FRAGMENT, EMPTY_SNAPSHOT)

        assert ROW_RE.findall(html) == []
        assert 'id="cpus"' in html

    def test_no_page_scaffolding(self, renderer):
        """Test the fragment omits the page wrapper."""
        html = renderer.render(View.FRAGMENT, Snapshot.from_percents([1.0]))

        assert "<html" not in html
        assert "<title>" not in html

    def test_deterministic(self, renderer):
        """Test identical inputs give byte-identical output."""
        snapshot = Snapshot.from_percents([33.3, 66.6])

        assert renderer.render(View.FRAGMENT, snapshot) == renderer.render(View.FRAGMENT, snapshot)
        assert Renderer().render(View.FRAGMENT, snapshot) == renderer.render(View.FRAGMENT, snapshot)


class TestFullPage:
    """Tests for full page rendering."""

    def test_page_wraps_fragment(self, renderer):
        """Test the page includes the fragment rows and a title."""
        snapshot = Snapshot.from_percents([10.0, 20.0])

        html = renderer.render(View.FULL_PAGE, snapshot)

        assert html.startswith("<!DOCTYPE html>")
        assert "<title>" in html
        assert len(ROW_RE.findall(html)) == 2

    def test_live_page_connects_websocket(self):
        """Test the live page wires the WebSocket feed."""
        html = Renderer(live=True).render(View.FULL_PAGE, EMPTY_SNAPSHOT)

        assert 'ws-connect="/cpu-usage"' in html
        assert "hx-get" not in html

    def test_pull_page_polls(self):
        """Test the pull page polls the fragment endpoint."""
        html = Renderer(live=False, push_interval=2.0).render(View.FULL_PAGE, EMPTY_SNAPSHOT)

        assert 'hx-get="/cpu-usage"' in html
        assert "every 2000ms" in html
        assert "ws-connect" not in html

    def test_deterministic(self, renderer):
        """Test full page rendering is deterministic."""
        snapshot = Snapshot.from_percents([5.0])

        assert renderer.render(View.FULL_PAGE, snapshot) == renderer.render(View.FULL_PAGE, snapshot)


def test_template_error_propagates(monkeypatch, renderer):
    """Test a broken template surfaces as a TemplateError."""
    snapshot = Snapshot.from_percents([1.0])
    env = renderer._env
    monkeypatch.setattr(env, "get_template", lambda name: env.from_string("{{ missing.value }}"))

    with pytest.raises(TemplateError):
        renderer.render(View.FRAGMENT, snapshot)
