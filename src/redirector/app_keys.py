"""Application keys for type-safe app configuration access."""

from pathlib import Path

from aiohttp import web

from redirector.config import SiteConfig
from redirector.core.renderer import IndexRenderer
from redirector.core.table import RedirectTable

table_key = web.AppKey("table", RedirectTable)
renderer_key = web.AppKey("renderer", IndexRenderer)
site_key = web.AppKey("site", SiteConfig)
static_dir_key = web.AppKey("static_dir", Path)
