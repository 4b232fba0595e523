import logging
from dataclasses import dataclass, replace

import httpx

from filters import FilterState, GenreListFilter, ProjectFilter, SelectFilter

log = logging.getLogger(__name__)

MANGA_URL_DIRECTORY = "/daftar-komik"
PROJECT_PAGE_PATH = "/project-list"


@dataclass(frozen=True)
class ResolvedQuery:
    segments: tuple[str, ...]
    params: tuple[tuple[str, str], ...] = ()

    @property
    def path(self) -> str:
        return "/" + "/".join(self.segments) + "/"

    def add_param(self, name: str, value: str) -> "ResolvedQuery":
        return replace(self, params=self.params + ((name, value),))

    def set_first_segment(self, segment: str) -> "ResolvedQuery":
        return replace(self, segments=(segment,) + self.segments[1:])

    def url(self, base_url: str) -> str:
        url = httpx.URL(base_url).copy_with(path=self.path)
        if self.params:
            url = url.copy_with(params=httpx.QueryParams(list(self.params)))
        return str(url)


def _kind_order(_filter) -> int:
    if isinstance(_filter, SelectFilter):
        return 0
    if isinstance(_filter, GenreListFilter):
        return 1
    if isinstance(_filter, ProjectFilter):
        return 2
    return 3


def compile_search(
    query: str,
    page: int,
    filters: list,
    state: FilterState | None = None,
    manga_url_directory: str = MANGA_URL_DIRECTORY,
) -> ResolvedQuery:
    """
    Build the search request for `query` (may be empty) and the selected filters.

    Filters are applied by kind (selects, then genres, then the project
    override) regardless of their display position. The project override only
    swaps the first path segment, parameters added by other filters stay.
    Anything that is not a known filter kind contributes nothing.
    """
    state = state.snapshot() if state else FilterState()
    page = max(page, 1)

    if query:
        resolved = ResolvedQuery(("page", str(page)), (("s", query),))
    else:
        resolved = ResolvedQuery((manga_url_directory.strip("/"), "page", str(page)))

    for _filter in sorted(filters, key=_kind_order):
        if isinstance(_filter, SelectFilter):
            value = _filter.selected_value(state.index(_filter))
            if value:
                resolved = resolved.add_param(_filter.param, value)
        elif isinstance(_filter, GenreListFilter):
            for value in _filter.query_values(state.genres(_filter)):
                resolved = resolved.add_param(_filter.param, value)
        elif isinstance(_filter, ProjectFilter):
            if state.project_active(_filter):
                resolved = resolved.set_first_segment(_filter.path.strip("/"))
        else:
            # headers, separators and unknown kinds
            continue

    return resolved


def search_url(
    base_url: str,
    query: str,
    page: int,
    filters: list,
    state: FilterState | None = None,
    manga_url_directory: str = MANGA_URL_DIRECTORY,
) -> str:
    url = compile_search(query, page, filters, state, manga_url_directory).url(base_url)
    log.debug("search url: %s", url)
    return url


def listing_url(base_url: str, directory: str, page: int, key: str, value: str) -> str:
    page_path = f"page/{page}/" if page > 1 else ""
    return f"{base_url.rstrip('/')}{directory}/{page_path}?{key}={value}"


def popular_url(base_url: str, page: int, directory: str = MANGA_URL_DIRECTORY) -> str:
    return listing_url(base_url, directory, page, "orderby", "popular")


def latest_url(base_url: str, page: int, directory: str = MANGA_URL_DIRECTORY) -> str:
    return listing_url(base_url, directory, page, "sortby", "update")
