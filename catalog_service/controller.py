"""
Shared pieces of the lifecycle controllers.

A controller flow never touches Flask; it returns a ``Page`` to render or a
``Redirect`` to follow and lets the routing layer turn that into a response.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .aggregation import parallel


@dataclass
class Page:
    template: str
    context: Dict[str, Any] = field(default_factory=dict)
    status: int = 200


@dataclass
class Redirect:
    location: str


@dataclass
class GenreOption:
    """A genre as offered on the book form, with its checkbox state."""
    genre: Any
    checked: bool = False


def parse_refs(value):
    """
    Genre references from form input: a list, a comma-delimited string, or
    nothing at all. Blank entries are dropped and the first occurrence of a
    repeated reference wins.
    """
    if value is None:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    refs = []
    for item in items:
        for part in str(item).split(","):
            part = part.strip()
            if part and part not in refs:
                refs.append(part)
    return refs


def genre_options(genres, selected):
    """Pair every genre with whether its identity is among ``selected``."""
    chosen = {str(ref) for ref in selected}
    return [GenreOption(genre, str(genre.id) in chosen) for genre in genres]


class Controller:
    def __init__(self, repos, timeout: Optional[float] = None):
        self.repos = repos
        self.timeout = timeout

    def aggregate(self, **queries):
        return parallel(queries, timeout=self.timeout)


class HomeController(Controller):
    def index(self):
        counts = self.aggregate(
            book_count=self.repos.books.count,
            book_instance_count=self.repos.copies.count,
            book_instance_available_count=lambda: self.repos.copies.count(status="Available"),
            author_count=self.repos.authors.count,
            genre_count=self.repos.genres.count,
        )
        return Page("index.html", {"title": "Local Library Home", "data": counts})
