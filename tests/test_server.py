"""Tests for server module."""

import logging
from pathlib import Path
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient
from jinja2 import DictLoader, Environment, StrictUndefined
from redirector.app_keys import renderer_key, site_key, static_dir_key, table_key
from redirector.assets import get_static_dir
from redirector.config import Config
from redirector.core.renderer import IndexRenderer
from redirector.server import create_app


@pytest.fixture
def app(test_config: Config) -> web.Application:
    """Create app serving the sample redirects."""
    return create_app(test_config)


@pytest.fixture
def client(app: web.Application, aiohttp_client: Any) -> TestClient:
    """Create test client with configured app."""
    return aiohttp_client(app)


class TestCreateApp:
    """Tests for create_app()."""

    def test__valid_config__returns_configured_app(self, test_config: Config) -> None:
        """Create app with the redirect table and renderer stored."""
        app = create_app(test_config)

        assert table_key in app
        assert renderer_key in app
        assert app[site_key] is test_config.site
        assert set(app[table_key].primary) == set(test_config.redirects)
        assert app[renderer_key].title == "rwth.cool"

    def test__app__uses_bundled_static_assets(self, test_config: Config) -> None:
        """Create app uses bundled static assets."""
        app = create_app(test_config)

        assert app[static_dir_key] == get_static_dir()


class TestRedirects:
    """Tests for redirect responses."""

    @pytest.mark.asyncio
    async def test__subdomain__permanent_redirect(self, client) -> None:
        """Subdomain requests redirect permanently to the target."""
        test_client = await client
        response = await test_client.get(
            "/",
            headers={"Host": "moodle.rwth.cool"},
            allow_redirects=False,
        )

        assert response.status == 308
        assert response.headers["Location"] == "https://moodle.rwth-aachen.de"

    @pytest.mark.asyncio
    async def test__subdomain_with_port__redirects(self, client) -> None:
        """Ports in the Host header are ignored."""
        test_client = await client
        response = await test_client.get(
            "/",
            headers={"Host": "lms.rwth.cool:3000"},
            allow_redirects=False,
        )

        assert response.status == 308
        assert response.headers["Location"] == "https://moodle.rwth-aachen.de"

    @pytest.mark.asyncio
    async def test__path__permanent_redirect(self, client) -> None:
        """First path segment on the bare domain redirects."""
        test_client = await client
        response = await test_client.get(
            "/mail/inbox?folder=1",
            headers={"Host": "rwth.cool"},
            allow_redirects=False,
        )

        assert response.status == 308
        assert response.headers["Location"] == "https://mail.rwth-aachen.de"

    @pytest.mark.asyncio
    async def test__unknown_subdomain__falls_back_to_path(self, client) -> None:
        """A failed subdomain match still allows a path match."""
        test_client = await client
        response = await test_client.get(
            "/campus",
            headers={"Host": "sub.rwth.cool"},
            allow_redirects=False,
        )

        assert response.status == 308
        assert response.headers["Location"] == "https://online.rwth-aachen.de"

    @pytest.mark.asyncio
    async def test__head_request__redirects(self, client) -> None:
        """HEAD requests are answered like GET."""
        test_client = await client
        response = await test_client.head(
            "/moodle",
            headers={"Host": "rwth.cool"},
            allow_redirects=False,
        )

        assert response.status == 308

    @pytest.mark.asyncio
    async def test__redirect__logged(
        self,
        client,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Issued redirects are logged at INFO."""
        test_client = await client
        with caplog.at_level(logging.INFO, logger="redirector.server"):
            await test_client.get("/m", headers={"Host": "rwth.cool"}, allow_redirects=False)

        assert "(path 'moodle') to https://moodle.rwth-aachen.de" in caplog.text


class TestIndexPage:
    """Tests for the index page."""

    @pytest.mark.asyncio
    async def test__bare_domain_root__renders_index(self, client) -> None:
        """The bare domain lists all redirects."""
        test_client = await client
        response = await test_client.get("/", headers={"Host": "rwth.cool"})

        assert response.status == 200
        assert "text/html" in response.headers["Content-Type"]
        body = await response.text()
        assert "https://moodle.rwth-aachen.de" in body
        assert "<h2>Teaching</h2>" in body

    @pytest.mark.asyncio
    async def test__ip_host__renders_index(self, client) -> None:
        """IP hosts are treated as the bare domain."""
        test_client = await client
        response = await test_client.get("/", headers={"Host": "127.0.0.1:3000"})

        assert response.status == 200

    @pytest.mark.asyncio
    async def test__query__filters_index(self, client) -> None:
        """The q parameter filters the listing."""
        test_client = await client
        response = await test_client.get("/?q=mensa", headers={"Host": "rwth.cool"})

        assert response.status == 200
        body = await response.text()
        assert "https://www.studierendenwerk-aachen.de" in body
        assert "https://mail.rwth-aachen.de" not in body

    @pytest.mark.asyncio
    async def test__template_error__returns_500(
        self,
        app: web.Application,
        aiohttp_client: Any,
    ) -> None:
        """Rendering failures are internal errors, not 404."""
        env = Environment(
            loader=DictLoader({"index.html": "{{ missing.attr }}"}),
            undefined=StrictUndefined,
        )
        app[renderer_key] = IndexRenderer(title="t", base_domain="rwth.cool", environment=env)
        test_client = await aiohttp_client(app)

        response = await test_client.get("/", headers={"Host": "rwth.cool"})

        assert response.status == 500
        assert (await response.text()).startswith("Template error:")


class TestNotFound:
    """Tests for 404 responses."""

    @pytest.mark.asyncio
    async def test__unknown_path__returns_404(self, client) -> None:
        """Unknown keys return a plain-text 404."""
        test_client = await client
        response = await test_client.get("/doesnotexist", headers={"Host": "rwth.cool"})

        assert response.status == 404
        assert "text/plain" in response.headers["Content-Type"]
        body = await response.text()
        assert body.startswith("# Redirect not found")

    @pytest.mark.asyncio
    async def test__typo__suggests_close_key(self, client) -> None:
        """Near misses list suggestions."""
        test_client = await client
        response = await test_client.get("/moodel", headers={"Host": "rwth.cool"})

        assert response.status == 404
        body = await response.text()
        assert "Did you mean:" in body
        assert "https://rwth.cool/moodle" in body

    @pytest.mark.asyncio
    async def test__unknown_subdomain_root__returns_404(self, client) -> None:
        """Unknown subdomains never show the index."""
        test_client = await client
        response = await test_client.get("/", headers={"Host": "nope.rwth.cool"})

        assert response.status == 404


class TestFavicon:
    """Tests for favicon serving."""

    @pytest.mark.asyncio
    async def test__favicon__served(self, client) -> None:
        """The bundled favicon is served."""
        test_client = await client
        response = await test_client.get("/favicon.png")

        assert response.status == 200
        assert response.headers["Content-Type"] == "image/png"

    @pytest.mark.asyncio
    async def test__missing_favicon__returns_404(
        self,
        test_config: Config,
        aiohttp_client: Any,
        tmp_path: Path,
    ) -> None:
        """A missing favicon file is a 404."""
        app = create_app(test_config)
        app[static_dir_key] = tmp_path
        test_client = await aiohttp_client(app)

        response = await test_client.get("/favicon.png")

        assert response.status == 404
