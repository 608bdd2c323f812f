"""redirector - short names to permanent redirects, by subdomain or path."""

from redirector.core.resolver import NotFound, Redirect, ShowIndex, classify_host, resolve
from redirector.core.table import RedirectEntry, RedirectTable

__all__ = [
    "NotFound",
    "Redirect",
    "RedirectEntry",
    "RedirectTable",
    "ShowIndex",
    "classify_host",
    "resolve",
]
