"""pycpu - FastAPI application serving live per-core CPU usage."""

import asyncio
import logging
import sys
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import HTMLResponse, PlainTextResponse
from jinja2 import TemplateError

from pycpu.config import ServerConfig, parse_args
from pycpu.monitor import Sampler, SamplerUnavailable, SnapshotPublisher
from pycpu.render import Renderer, View
from pycpu.state import SharedState

logger = logging.getLogger(__name__)

# WebSocket close code for "internal error"
WS_INTERNAL_ERROR = 1011


async def wait_for_disconnect(websocket: WebSocket, timeout: float) -> bool:
    """
    Wait up to ``timeout`` seconds for the client to disconnect.

    Messages sent by the client are read and dropped.

    Returns:
        True if the client disconnected, False if the timeout elapsed.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        remaining = deadline - loop.time()
        if remaining <= 0:
            return False
        try:
            message = await asyncio.wait_for(websocket.receive(), timeout=remaining)
        except asyncio.TimeoutError:
            return False
        except RuntimeError:
            # receive() after the socket was already closed
            return True
        if message["type"] == "websocket.disconnect":
            return True


async def push_fragments(
    websocket: WebSocket,
    state: SharedState,
    renderer: Renderer,
    interval: float,
) -> None:
    """
    Send the latest CPU fragment to one client every ``interval`` seconds.

    Returns when the client disconnects or a send fails. Nothing is retried.
    """
    while True:
        html = renderer.render(View.FRAGMENT, state.read())
        try:
            await websocket.send_text(html)
        except (WebSocketDisconnect, OSError, RuntimeError) as exc:
            logger.debug("Live send failed, closing channel: %r", exc)
            return

        if await wait_for_disconnect(websocket, interval):
            logger.debug("Live client disconnected")
            return


def create_app(
    publisher: SnapshotPublisher,
    live: bool = True,
    push_interval: float = 1.0,
    renderer: Renderer | None = None,
) -> FastAPI:
    """
    Build the web application around a snapshot publisher.

    The publisher is started when the application starts and stopped on
    shutdown. With ``live`` set, ``/cpu-usage`` is a WebSocket pushing a
    fragment every ``push_interval`` seconds; otherwise it answers each
    HTTP request with a single fragment.

    Raises:
        ValueError: If ``renderer`` wires the page for the other transport.
    """
    state = publisher.state
    renderer = renderer or Renderer(live=live, push_interval=push_interval)
    if renderer.live != live:
        raise ValueError(f"renderer.live={renderer.live} does not match live={live}")

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        publisher.start()
        try:
            yield
        finally:
            # stop() joins the publisher thread
            await asyncio.to_thread(publisher.stop)

    app = FastAPI(title="pycpu", lifespan=lifespan)
    app.state.live_channels = 0

    @app.exception_handler(TemplateError)
    async def template_error_handler(request: Request, exc: TemplateError) -> PlainTextResponse:
        logger.error("Rendering %s failed: %s", request.url.path, exc)
        return PlainTextResponse("Internal Server Error", status_code=500)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(renderer.render(View.FULL_PAGE, state.read()))

    if live:

        @app.websocket("/cpu-usage")
        async def cpu_usage_live(websocket: WebSocket) -> None:
            await websocket.accept()
            app.state.live_channels += 1
            logger.debug("Live client connected (%d open)", app.state.live_channels)
            try:
                await push_fragments(websocket, state, renderer, push_interval)
            except TemplateError as exc:
                logger.error("Rendering live fragment failed: %s", exc)
                await websocket.close(code=WS_INTERNAL_ERROR)
            finally:
                app.state.live_channels -= 1

    else:

        @app.get("/cpu-usage", response_class=HTMLResponse)
        async def cpu_usage() -> HTMLResponse:
            return HTMLResponse(renderer.render(View.FRAGMENT, state.read()))

    return app


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for the pycpu server."""
    config: ServerConfig = parse_args(argv)
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        sampler = Sampler()
    except SamplerUnavailable as exc:
        logger.critical("%s", exc)
        sys.exit(1)

    publisher = SnapshotPublisher(sampler, SharedState(), interval=config.sample_interval)
    app = create_app(publisher, live=config.live, push_interval=config.push_interval)

    print(f"Listening on http://{config.host}:{config.port}", flush=True)
    # uvicorn logs bind errors and exits non-zero on its own
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level)


if __name__ == "__main__":
    main()
