"""aiohttp server for redirector.

Application factory, the catch-all redirect handler and favicon serving.
"""

import logging

from aiohttp import hdrs, web
from jinja2 import TemplateError

from redirector.app_keys import renderer_key, site_key, static_dir_key, table_key
from redirector.assets import get_static_dir
from redirector.config import Config
from redirector.core.renderer import IndexRenderer
from redirector.core.resolver import Redirect, ShowIndex, resolve
from redirector.core.search import suggest
from redirector.core.table import RedirectTable

logger = logging.getLogger(__name__)

NOT_FOUND_TEXT = "# Redirect not found"


def create_app(config: Config) -> web.Application:
    """Create aiohttp application.

    Builds the redirect table once; handlers only read it.

    Args:
        config: Application configuration

    Returns:
        Configured aiohttp application
    """
    app = web.Application()

    table = RedirectTable(config.redirects)
    renderer = IndexRenderer(
        title=config.site.display_title,
        base_domain=config.site.base_domain,
    )

    app[table_key] = table
    app[renderer_key] = renderer
    app[site_key] = config.site

    static_dir = get_static_dir()
    app[static_dir_key] = static_dir

    app.router.add_get("/favicon.png", _serve_favicon)

    # Catch-all, must be last
    app.router.add_get("/{path:.*}", handle_redirect)

    return app


async def handle_redirect(request: web.Request) -> web.Response:
    """Resolve the request host and path to a redirect, the index or 404."""
    table = request.app[table_key]
    site = request.app[site_key]

    host = request.headers.get(hdrs.HOST, "")
    path = request.path
    logger.debug(f"Processing request for host {host!r}, path {path!r}")

    outcome = resolve(host, path, table, base_domain=site.base_domain)

    if isinstance(outcome, Redirect):
        logger.info(
            f"Redirecting {host}{path} ({outcome.source} '{outcome.key}') to {outcome.target_url}",
        )
        raise web.HTTPPermanentRedirect(location=outcome.target_url)

    if isinstance(outcome, ShowIndex):
        return _render_index(request, table)

    logger.debug(f"No redirect for host {host!r}, path {path!r}")
    return _not_found(table, outcome.key, site.base_domain)


def _render_index(request: web.Request, table: RedirectTable) -> web.Response:
    renderer = request.app[renderer_key]
    query = request.query.get("q", "")
    try:
        html = renderer.render(table, query)
    except TemplateError as e:
        logger.exception("Failed to render index page")
        return web.Response(
            status=500,
            text=f"Template error: {e}",
            content_type="text/plain",
        )
    return web.Response(text=html, content_type="text/html")


def _not_found(table: RedirectTable, key: str, base_domain: str) -> web.Response:
    """Build the plain-text 404 body, with suggestions for near misses."""
    lines = [NOT_FOUND_TEXT]
    suggestions = suggest(table, key) if key else []
    if suggestions:
        lines.append("")
        lines.append("Did you mean:")
        lines.extend(f"  https://{base_domain}/{name}" for name in suggestions)
    return web.Response(status=404, text="\n".join(lines) + "\n", content_type="text/plain")


async def _serve_favicon(request: web.Request) -> web.FileResponse:
    """Serve favicon from static directory."""
    static_dir = request.app[static_dir_key]
    favicon_path = static_dir / "favicon.png"
    if not favicon_path.exists():
        raise web.HTTPNotFound()
    return web.FileResponse(favicon_path)


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    logger.info(f"Listening on {config.server.host}:{config.server.port}")
    web.run_app(
        app,
        host=config.server.host,
        port=config.server.port,
        access_log=logging.getLogger("aiohttp.access") if config.logging.access_log else None,
        print=None,
    )
