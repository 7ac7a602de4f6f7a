from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from datetime import date

from .content import PageSummary, RenderedPage


def index_sort_key(entry: PageSummary | RenderedPage) -> tuple[int, str]:
    """Sort key for the index: date descending, then identifier ascending."""
    return (-entry.date.toordinal(), entry.identifier)


class SiteIndex(Sequence[PageSummary]):
    """Ordered summaries of published pages.

    Drafts are dropped on construction and the remaining entries are sorted
    newest first, ties broken by identifier, so every SiteIndex upholds both
    invariants no matter where its pages came from.
    """

    def __init__(self, pages: Iterable[RenderedPage]):
        published = [page for page in pages if not page.draft]
        self._entries = [
            page.summary() for page in sorted(published, key=index_sort_key)
        ]

    def __iter__(self) -> Iterator[PageSummary]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, item):
        return self._entries[item]

    def latest(self, count: int = 5) -> list[PageSummary]:
        return self._entries[:count]

    def by_year(self) -> dict[int, list[PageSummary]]:
        """Group entries by publication year, newest year first."""
        years: dict[int, list[PageSummary]] = {}
        for entry in self._entries:
            years.setdefault(entry.date.year, []).append(entry)
        return years

    def with_tag(self, tag: str) -> list[PageSummary]:
        return [entry for entry in self._entries if tag in entry.tags]

    def tags(self) -> dict[str, list[PageSummary]]:
        """Map each tag to its entries, tags sorted alphabetically."""
        mapping: dict[str, list[PageSummary]] = {}
        for entry in self._entries:
            for tag in entry.tags:
                mapping.setdefault(tag, []).append(entry)
        return dict(sorted(mapping.items()))

    @property
    def updated(self) -> date | None:
        return self._entries[0].date if self._entries else None

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"SiteIndex({len(self._entries)} entries)"
