from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator


class TriState(IntEnum):
    IGNORE = 0
    INCLUDE = 1
    EXCLUDE = 2


@dataclass(frozen=True)
class Option:
    label: str
    value: str


@dataclass(frozen=True)
class SelectFilter:
    name: str
    param: str
    options: tuple[Option, ...]
    default: int = 0

    def selected_value(self, index: int | None = None) -> str:
        return self.options[self.default if index is None else index].value

    def index_of(self, label_or_value: str) -> int:
        wanted = label_or_value.strip().lower()
        for i, option in enumerate(self.options):
            if wanted in (option.label.lower(), option.value.lower()):
                return i
        raise ValueError(
            f"Unknown {self.name} option '{label_or_value}', "
            f"expected one of {[option.label for option in self.options]}"
        )


@dataclass(frozen=True)
class GenreListFilter:
    name: str
    options: tuple[Option, ...]
    param: str = "genre[]"

    def find(self, label_or_value: str) -> Option:
        wanted = label_or_value.strip().lower()
        for option in self.options:
            if wanted in (option.label.lower(), option.value.lower()):
                return option
        raise ValueError(f"Unknown genre '{label_or_value}'")

    def entries(self, states: dict[str, TriState] | None = None) -> Iterator[tuple[str, TriState]]:
        """(value, state) for every genre, in display order"""
        states = states or {}
        for option in self.options:
            yield option.value, states.get(option.value, TriState.IGNORE)

    def query_values(self, states: dict[str, TriState] | None = None) -> Iterator[str]:
        for value, state in self.entries(states):
            if state == TriState.INCLUDE:
                yield value
            elif state == TriState.EXCLUDE:
                yield f"-{value}"


@dataclass(frozen=True)
class ProjectFilter:
    name: str = "Filter Project"
    path: str = "/project-list"


@dataclass(frozen=True)
class HeaderFilter:
    text: str


@dataclass(frozen=True)
class SeparatorFilter:
    pass


Filter = SelectFilter | GenreListFilter | ProjectFilter | HeaderFilter | SeparatorFilter


@dataclass
class FilterState:
    """
    Per-search selection state, kept apart from the (immutable) filter definitions.

    Keys are filter names; values are an option index for `SelectFilter`,
    a `{genre value: TriState}` dict for `GenreListFilter` and a bool for `ProjectFilter`.
    """
    selections: dict[str, int | dict[str, TriState] | bool] = field(default_factory=dict)

    def select(self, _filter: SelectFilter, label_or_value: str) -> "FilterState":
        self.selections[_filter.name] = _filter.index_of(label_or_value)
        return self

    def index(self, _filter: SelectFilter) -> int:
        return self.selections.get(_filter.name, _filter.default)

    def set_genre(self, _filter: GenreListFilter, label_or_value: str, state: TriState) -> "FilterState":
        option = _filter.find(label_or_value)
        genres = dict(self.selections.get(_filter.name, {}))
        if state == TriState.IGNORE:
            genres.pop(option.value, None)
        else:
            genres[option.value] = state
        self.selections[_filter.name] = genres
        return self

    def include(self, _filter: GenreListFilter, label_or_value: str) -> "FilterState":
        return self.set_genre(_filter, label_or_value, TriState.INCLUDE)

    def exclude(self, _filter: GenreListFilter, label_or_value: str) -> "FilterState":
        return self.set_genre(_filter, label_or_value, TriState.EXCLUDE)

    def genres(self, _filter: GenreListFilter) -> dict[str, TriState]:
        return dict(self.selections.get(_filter.name, {}))

    def set_project(self, _filter: ProjectFilter, active: bool = True) -> "FilterState":
        self.selections[_filter.name] = bool(active)
        return self

    def project_active(self, _filter: ProjectFilter) -> bool:
        return bool(self.selections.get(_filter.name, False))

    def snapshot(self) -> "FilterState":
        return FilterState({
            name: dict(value) if isinstance(value, dict) else value
            for name, value in self.selections.items()
        })


STATUS_FILTER = SelectFilter(
    "Status",
    "status",
    (
        Option("All", ""),
        Option("Ongoing", "ongoing"),
        Option("Completed", "completed"),
    ),
)

TYPE_FILTER = SelectFilter(
    "Type",
    "type",
    (
        Option("All", ""),
        Option("Manga", "manga"),
        Option("Manhwa", "manhwa"),
        Option("Manhua", "manhua"),
    ),
)

ORDER_BY_FILTER = SelectFilter(
    "Sort By",
    "orderby",
    (
        Option("Default", ""),
        Option("A-Z", "titleasc"),
        Option("Z-A", "titledesc"),
        Option("Update", "update"),
        Option("Popular", "popular"),
    ),
)

GENRES: tuple[Option, ...] = tuple(Option(label, value) for label, value in (
    ("4-Koma", "4-koma"),
    ("Action", "action"),
    ("Adventure", "adventure"),
    ("Comedy", "comedy"),
    ("Cooking", "cooking"),
    ("Demons", "demons"),
    ("Drama", "drama"),
    ("Ecchi", "ecchi"),
    ("Fantasy", "fantasy"),
    ("Game", "game"),
    ("Gender Bender", "gender-bender"),
    ("Gore", "gore"),
    ("Harem", "harem"),
    ("Historical", "historical"),
    ("Horror", "horror"),
    ("Isekai", "isekai"),
    ("Josei", "josei"),
    ("Magic", "magic"),
    ("Martial Arts", "martial-arts"),
    ("Mature", "mature"),
    ("Mecha", "mecha"),
    ("Medical", "medical"),
    ("Military", "military"),
    ("Music", "music"),
    ("Mystery", "mystery"),
    ("One-Shot", "one-shot"),
    ("Police", "police"),
    ("Psychological", "psychological"),
    ("Reincarnation", "reincarnation"),
    ("Romance", "romance"),
    ("School", "school"),
    ("School Life", "school-life"),
    ("Sci-Fi", "sci-fi"),
    ("Seinen", "seinen"),
    ("Shoujo", "shoujo"),
    ("Shoujo Ai", "shoujo-ai"),
    ("Shounen", "shounen"),
    ("Shounen Ai", "shounen-ai"),
    ("Slice of Life", "slice-of-life"),
    ("Sports", "sports"),
    ("Super Power", "super-power"),
    ("Supernatural", "supernatural"),
    ("Thriller", "thriller"),
    ("Tragedy", "tragedy"),
    ("Vampire", "vampire"),
    ("Webtoons", "webtoons"),
    ("Yuri", "yuri"),
))

GENRE_FILTER = GenreListFilter("Genre", GENRES)

PROJECT_FILTER = ProjectFilter()


def get_filter_list(site_name: str = "Komik Cast", has_project_page: bool = True) -> list[Filter]:
    filters: list[Filter] = [
        SeparatorFilter(),
        STATUS_FILTER,
        TYPE_FILTER,
        ORDER_BY_FILTER,
        HeaderFilter("Genre exclusion is not available for all sources"),
        GENRE_FILTER,
    ]
    if has_project_page:
        filters.extend([
            SeparatorFilter(),
            HeaderFilter("NOTE: Can't be used with other filter!"),
            HeaderFilter(f"{site_name} Project List page"),
            PROJECT_FILTER,
        ])
    return filters
