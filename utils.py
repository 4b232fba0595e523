import re, datetime
from urllib.parse import urljoin
from bs4 import Tag

def getLegalPath(rawPath: str) -> str:

    replacedPath = rawPath

    def getFullwidth(char: str) -> str:
        if len(char) != 1: return char
        if not ord(char) in range(0x20, 0x80):
            return char
        else:
            return chr(ord(char) - 0x20 + 0xFF00)

    for m in re.finditer(r'[\\/:*?"<>|\r\n]', rawPath):
        replacedPath = replacedPath[:m.start()] + getFullwidth(m.group()) + replacedPath[m.end():]

    return replacedPath

def own_text(element: Tag | None) -> str:
    """Text directly inside `element`, without the text of nested tags"""
    if element is None: return ""
    return " ".join(
        s.strip() for s in element.find_all(string=True, recursive=False) if s.strip()
    )

IMG_ATTRS = ("data-lazy-src", "data-src", "srcset", "src")

def img_attr(img: Tag | None, base_url: str = "") -> str:
    if img is None: return ""
    for attr in IMG_ATTRS:
        value = img.get(attr)
        if not value: continue
        value = value.strip()
        if attr == "srcset":
            first = value.split(",")[0].split()
            value = first[0] if first else ""
        if value:
            return urljoin(base_url, value) if base_url else value
    return ""

_UNITS = {
    "detik": "seconds", "second": "seconds", "sec": "seconds",
    "menit": "minutes", "minute": "minutes", "min": "minutes",
    "jam": "hours", "hour": "hours",
    "hari": "days", "day": "days",
    "minggu": "weeks", "week": "weeks",
    "bulan": "months", "month": "months",
    "tahun": "years", "year": "years",
}

_MONTHS = {
    "january": 1, "januari": 1, "february": 2, "februari": 2, "march": 3, "maret": 3,
    "april": 4, "may": 5, "mei": 5, "june": 6, "juni": 6, "july": 7, "juli": 7,
    "august": 8, "agustus": 8, "september": 9, "october": 10, "oktober": 10,
    "november": 11, "nopember": 11, "december": 12, "desember": 12,
}

_RELATIVE_RE = re.compile(r"\b(\d+|an?)\s+([a-z]+)")
_ABSOLUTE_RE = re.compile(r"([a-z]+)\s+(\d{1,2}),?\s+(\d{4})")

def parse_chapter_date(text: str | None, now: datetime.datetime | None = None) -> datetime.datetime | None:
    """
    Parse the chapter upload date shown next to a chapter link.

    Handles relative dates ("5 jam yang lalu", "2 days ago") and absolute
    "Month dd, yyyy" dates with English or Indonesian month names.
    Returns None when the text is missing or not understood.
    """
    if not text: return None
    text = text.strip().lower()
    now = now or datetime.datetime.now()

    if "lalu" in text or "ago" in text:
        m = _RELATIVE_RE.search(text)
        if not m: return None
        amount = int(m.group(1)) if m.group(1).isdigit() else 1
        unit = next((_UNITS[k] for k in sorted(_UNITS, key=len, reverse=True) if m.group(2).startswith(k)), None)
        if unit is None: return None
        if unit == "months":
            return now - datetime.timedelta(days=30 * amount)
        if unit == "years":
            return now - datetime.timedelta(days=365 * amount)
        return now - datetime.timedelta(**{unit: amount})

    m = _ABSOLUTE_RE.search(text)
    if m and m.group(1) in _MONTHS:
        try:
            return datetime.datetime(int(m.group(3)), _MONTHS[m.group(1)], int(m.group(2)))
        except ValueError:
            return None
    return None

def parse_status(text: str | None) -> str:
    if not text: return "unknown"
    text = text.strip().lower()
    if any(s in text for s in ("ongoing", "berjalan", "on going")):
        return "ongoing"
    if any(s in text for s in ("completed", "tamat", "complete")):
        return "completed"
    if any(s in text for s in ("hiatus",)):
        return "hiatus"
    if any(s in text for s in ("dropped", "cancelled", "canceled")):
        return "cancelled"
    return "unknown"
