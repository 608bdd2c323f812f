"""Index page rendering.

Groups the redirect table by category and renders the bundled jinja2
template listing every redirect, optionally filtered by a search query.
"""

from dataclasses import dataclass, field

from jinja2 import Environment, PackageLoader, select_autoescape
from markupsafe import Markup, escape

from redirector.core.search import SearchHit, search
from redirector.core.table import DEFAULT_CATEGORY, RedirectEntry, RedirectTable


@dataclass
class IndexRow:
    """One redirect as shown on the index page."""

    key: str
    entry: RedirectEntry
    hit: SearchHit | None = None


@dataclass
class CategoryGroup:
    """Redirects sharing a category, sorted by key."""

    name: str
    rows: list[IndexRow] = field(default_factory=list)

    @property
    def entries(self) -> list[tuple[str, RedirectEntry]]:
        """(key, entry) pairs in display order."""
        return [(row.key, row.entry) for row in self.rows]


def _group_rows(rows: list[IndexRow]) -> list[CategoryGroup]:
    buckets: dict[str, list[IndexRow]] = {}
    for row in rows:
        name = row.entry.category or DEFAULT_CATEGORY
        buckets.setdefault(name, []).append(row)

    names = sorted(name for name in buckets if name != DEFAULT_CATEGORY)
    if DEFAULT_CATEGORY in buckets:
        names.append(DEFAULT_CATEGORY)

    return [
        CategoryGroup(name=name, rows=sorted(buckets[name], key=lambda row: row.key))
        for name in names
    ]


def group_by_category(table: RedirectTable) -> list[CategoryGroup]:
    """Group redirects for the index page.

    Categories are sorted alphabetically with uncategorised entries last
    under "Other". Entries are sorted by key within each category.
    """
    return _group_rows([IndexRow(key=key, entry=entry) for key, entry in table.items()])


def highlight(text: str, indices: tuple[int, ...] | list[int] | None) -> Markup:
    """Wrap characters at the given positions in ``<mark>``, escaping the rest."""
    if not indices:
        return escape(text)

    marked = set(indices)
    parts: list[str] = []
    for i, char in enumerate(text):
        if i in marked:
            parts.append(f"<mark>{escape(char)}</mark>")
        else:
            parts.append(str(escape(char)))
    return Markup("".join(parts))


class IndexRenderer:
    """Renders the index page listing all redirects.

    Uses a jinja2 environment loading templates bundled in the
    ``redirector`` package, with HTML autoescaping enabled.
    """

    def __init__(
        self,
        *,
        title: str,
        base_domain: str,
        template_name: str = "index.html",
        environment: Environment | None = None,
    ) -> None:
        """Initialize renderer.

        Args:
            title: Page title
            base_domain: Base domain used to build subdomain links
            template_name: Template to render
            environment: jinja2 environment (default: bundled templates)
        """
        self._title = title
        self._base_domain = base_domain
        self._template_name = template_name
        self._env = environment or Environment(
            loader=PackageLoader("redirector", "templates"),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters["highlight"] = highlight

    @property
    def title(self) -> str:
        return self._title

    def render(self, table: RedirectTable, query: str = "") -> str:
        """Render the index page.

        Args:
            table: Redirect table to list
            query: Search text; when non-empty only matching entries are listed

        Returns:
            Rendered HTML

        Raises:
            jinja2.TemplateError: If the template is missing or fails to render
        """
        query = query.strip()
        if query:
            rows = [IndexRow(key=hit.key, entry=hit.entry, hit=hit) for hit in search(table, query)]
        else:
            rows = [IndexRow(key=key, entry=entry) for key, entry in table.items()]

        template = self._env.get_template(self._template_name)
        return template.render(
            title=self._title,
            base_domain=self._base_domain,
            groups=_group_rows(rows),
            query=query,
            total=len(table),
            shown=len(rows),
        )
