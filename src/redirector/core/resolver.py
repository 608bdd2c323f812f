"""Request resolution against the redirect table.

Classifies the request host, extracts a lookup key from the subdomain or the
first path segment, and decides between redirect, index page and not found.
Everything here is pure: no I/O and no state beyond the arguments.
"""

import ipaddress
from dataclasses import dataclass
from typing import Literal, TypeAlias

from redirector.core.table import RedirectTable


@dataclass(frozen=True)
class IsBareDomain:
    """Host has no meaningful subdomain label."""


@dataclass(frozen=True)
class HasSubdomain:
    """Host carries a subdomain label in front of a two-label domain."""

    name: str


@dataclass(frozen=True)
class Unrelated:
    """Host does not belong to the base domain."""


HostClass: TypeAlias = IsBareDomain | HasSubdomain | Unrelated


@dataclass(frozen=True)
class Redirect:
    """Permanent redirect to a configured target."""

    target_url: str
    key: str
    source: Literal["subdomain", "path"]


@dataclass(frozen=True)
class ShowIndex:
    """Render the index page."""


@dataclass(frozen=True)
class NotFound:
    """No redirect matches; key is the last key that was tried, if any."""

    key: str = ""


ResolutionOutcome: TypeAlias = Redirect | ShowIndex | NotFound


def strip_port(host: str) -> str:
    """Remove a trailing ``:port`` and the root label dot from a host.

    Bracketed IPv6 literals (``[::1]:3000``) keep their address; bare IPv6
    literals without brackets are returned unchanged.
    """
    if host.startswith("["):
        end = host.find("]")
        if end != -1:
            return host[1:end]
        return host[1:]

    if host.count(":") == 1:
        host = host.split(":", 1)[0]

    return host.removesuffix(".")


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def classify_host(host: str, base_domain: str) -> HostClass:
    """Classify a request host.

    Only a third or deeper label counts as a subdomain, whatever base domain
    is configured: ``rwth.cool`` and ``example.com`` are both bare, while
    ``moodle.rwth.cool`` carries the subdomain ``moodle``. IP addresses and
    dotless hosts such as ``localhost`` are always bare. A host equal to the
    base domain is bare even when the base domain has more than two labels.

    Args:
        host: Value of the Host header, possibly with a port
        base_domain: Configured base domain, "" to rely on label counting only

    Returns:
        IsBareDomain or HasSubdomain
    """
    host = strip_port(host)

    if base_domain and host.lower() == base_domain.lower():
        return IsBareDomain()

    if "." not in host:
        return IsBareDomain()

    if _is_ip_address(host):
        return IsBareDomain()

    labels = host.split(".")
    if len(labels) <= 2:
        return IsBareDomain()

    return HasSubdomain(labels[0])


def extract_path_key(path: str) -> str:
    """Return the first path segment, without the leading slash."""
    path = path.removeprefix("/")
    return path.split("/", 1)[0]


def resolve(
    host: str,
    path: str,
    table: RedirectTable,
    *,
    base_domain: str = "",
) -> ResolutionOutcome:
    """Resolve a request to a redirect, the index page or not found.

    Subdomain matches win over path matches. A subdomain that does not
    resolve falls through to the path lookup on the same request.

    Args:
        host: Host header value ("" when absent)
        path: Request path without query string
        table: Redirect table
        base_domain: Configured base domain, see classify_host()

    Returns:
        Redirect, ShowIndex or NotFound
    """
    host_class = classify_host(host, base_domain)

    if isinstance(host_class, HasSubdomain) and host_class.name:
        match = table.lookup(host_class.name)
        if match is not None:
            return Redirect(target_url=match.entry.target_url, key=match.key, source="subdomain")

    path_key = extract_path_key(path)
    if path_key:
        match = table.lookup(path_key)
        if match is not None:
            return Redirect(target_url=match.entry.target_url, key=match.key, source="path")

    if isinstance(host_class, IsBareDomain) and path in ("", "/"):
        return ShowIndex()

    if not path_key and isinstance(host_class, HasSubdomain):
        return NotFound(key=host_class.name)
    return NotFound(key=path_key)
