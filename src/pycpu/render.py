"""HTML rendering of CPU snapshots."""

from enum import Enum
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from pycpu.models import Snapshot

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


class View(Enum):
    """Kinds of rendered output."""

    FULL_PAGE = "index.html"
    FRAGMENT = "cpu_usage.html"


class Renderer:
    """
    Renders snapshots through the Jinja2 templates shipped with the package.

    The full page embeds an initial fragment and wires the browser to
    either the WebSocket push feed (live) or periodic polling (pull).
    """

    def __init__(self, live: bool = True, push_interval: float = 1.0) -> None:
        self._live = live
        self._push_interval = push_interval
        self._env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
        )

    @property
    def live(self) -> bool:
        return self._live

    def render(self, view: View, snapshot: Snapshot) -> str:
        """Render a snapshot as a full page or as a fragment."""
        template = self._env.get_template(view.value)
        return template.render(
            cpus=snapshot.cores,
            live=self._live,
            # htmx polling takes whole milliseconds
            poll_ms=int(self._push_interval * 1000),
        )
