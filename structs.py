from dataclasses import dataclass, field
import datetime

@dataclass
class MangaItem:
    href: str
    title: str
    thumbnail_url: str

@dataclass
class MangaDetails:
    href: str
    title: str
    alt_name: str
    description: str
    thumbnail_url: str
    status: str
    author: str
    type: str
    genres: list[str] = field(default_factory=list)

@dataclass
class Chapter:
    href: str
    name: str
    date_upload: datetime.datetime | None

@dataclass(frozen=True)
class Page:
    index: int
    image_url: str
