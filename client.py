import httpx, pathlib, json, datetime, sys, time, logging
from bs4 import BeautifulSoup as bs
from urllib.parse import urljoin, urlsplit
from filters import FilterState, get_filter_list
from query import MANGA_URL_DIRECTORY, popular_url, latest_url, search_url
from pages import resolve_pages
from structs import *
from utils import own_text, img_attr, parse_chapter_date, parse_status

log = logging.getLogger(__name__)

class RateLimiter:
    """Blocks so that at most `permits` requests start within any `period` seconds"""

    def __init__(self, permits: float, period: float = 1.0):
        # fractional rates become one request every period / permits seconds
        if 0 < permits < 1:
            period = period / permits
            permits = 1
        self.permits = permits
        self.period = period
        self._sent: list[float] = []

    def __call__(self, request: httpx.Request):
        if self.permits <= 0: return
        now = time.monotonic()
        self._sent = [t for t in self._sent if now - t < self.period]
        if len(self._sent) >= self.permits:
            wait = self.period - (now - self._sent[0])
            log.debug("Rate limited, waiting %.2fs before %s", wait, request.url)
            time.sleep(wait)
            now = time.monotonic()
            self._sent = self._sent[1:]
        self._sent.append(now)

def _log_request(request: httpx.Request):
    log.debug("%s %s", request.method, request.url)

class KomikCastClient:
    main_client: httpx.Client
    cdn_client: httpx.Client

    NAME = "Komik Cast"
    HOST = "https://komikcast.me"
    MANGA_URL_DIRECTORY = MANGA_URL_DIRECTORY
    HAS_PROJECT_PAGE = True
    CONFIG_PATH_DEFAULT = "config.json"

    USER_AGENT_DEFAULT = "Mozilla/5.0 (Windows NT 6.1; WOW64; rv:25.0) Gecko/20100101 Firefox/25.0"
    PROXY_DEFAULT: str | None = None
    COOKIES_DEFAULT: str | None = None
    RATE_LIMIT_DEFAULT: float = 3

    ACCEPT_PAGE = "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8,application/signed-exchange;v=b3;q=0.9"
    ACCEPT_IMAGE = "image/avif,image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8"
    ACCEPT_LANGUAGE = "en-US,en;q=0.9,id;q=0.8"

    SEARCH_SELECTOR = "div.list-update_item"
    NEXT_PAGE_SELECTOR = "div.pagination .next, a.next.page-numbers, div.hpage .r"

    SERIES_DETAILS_SELECTOR = "div.komik_info:has(.komik_info-content)"
    SERIES_TITLE_SELECTOR = "h1.komik_info-content-body-title"
    SERIES_DESCRIPTION_SELECTOR = ".komik_info-description-sinopsis"
    SERIES_ALT_NAME_SELECTOR = ".komik_info-content-native"
    SERIES_GENRE_SELECTOR = ".komik_info-content-genre a"
    SERIES_THUMBNAIL_SELECTOR = ".komik_info-content-thumbnail img"
    SERIES_META_SELECTOR = ".komik_info-content-meta span"

    CHAPTER_LIST_SELECTOR = "div.komik_info-chapters li"
    CHAPTER_DATE_SELECTOR = ".chapter-link-time"

    def load_dict_config(self, config: dict):
        if "cookies" in config:
            self.COOKIES_DEFAULT = config["cookies"]
        if "proxy" in config:
            self.PROXY_DEFAULT = config["proxy"]
        if "user_agent" in config:
            self.USER_AGENT_DEFAULT = config["user_agent"]
        if "rate_limit" in config:
            self.RATE_LIMIT_DEFAULT = float(config["rate_limit"])
        if "host" in config:
            self.HOST = self.normalize_host(config["host"])

    def load_config_file(self, config_path: str | pathlib.Path = None):
        if not config_path:
            config_path = pathlib.Path(self.CONFIG_PATH_DEFAULT)
        else:
            config_path = pathlib.Path(config_path)

        if not config_path.exists() or not config_path.is_file():
            return

        with open(config_path, "r", encoding="utf-8") as f:
            self.load_dict_config(json.load(f))
        log.debug("Loaded config from '%s'", config_path)

    @staticmethod
    def normalize_host(host: str) -> str:
        return "https://" + (urlsplit(host).hostname if urlsplit(host).hostname else host.strip("/"))

    def __init__(
            self,
            cookies: dict[str, str] | str | pathlib.Path | None = None,
            proxy: str | None = None,
            user_agent: str | None = None,
            host: str | None = None,
            rate_limit: float | None = None,
            custom_config_path: str | pathlib.Path | None = None,
            transport: httpx.BaseTransport | None = None,
        ):

        self.load_config_file(custom_config_path if custom_config_path else "")

        if host:
            self.HOST = self.normalize_host(host)

        self.user_agent = user_agent if user_agent else self.USER_AGENT_DEFAULT
        self.rate_limiter = RateLimiter(rate_limit if rate_limit is not None else self.RATE_LIMIT_DEFAULT)
        timeout = httpx.Timeout(30.0, connect=10.0)

        self.main_client = httpx.Client(
            headers=self.headers(),
            proxy=proxy if proxy else self.PROXY_DEFAULT,
            timeout=timeout,
            transport=transport if transport else httpx.HTTPTransport(retries=3),
            event_hooks={"request": [self.rate_limiter, _log_request]},
            follow_redirects=True,
            trust_env=transport is None,
        )

        self.cdn_client = httpx.Client(
            headers=self.image_headers(),
            proxy=proxy if proxy else self.PROXY_DEFAULT,
            timeout=timeout,
            transport=transport if transport else httpx.HTTPTransport(retries=3),
            event_hooks={"request": [self.rate_limiter, _log_request]},
            follow_redirects=True,
            trust_env=transport is None,
        )

        if cookies is None:
            if self.COOKIES_DEFAULT is not None:
                self.update_cookies_from_CookieEditorJson(self.COOKIES_DEFAULT)
            return
        if isinstance(cookies, dict):
            self.main_client.cookies.update(cookies)
            self.cdn_client.cookies.update(cookies)
        elif isinstance(cookies, pathlib.Path) or isinstance(cookies, str):
            self.update_cookies_from_CookieEditorJson(cookies)

    def headers(self) -> dict[str, str]:
        return {
            "Accept": self.ACCEPT_PAGE,
            "Accept-Language": self.ACCEPT_LANGUAGE,
            "Referer": self.HOST,
            "User-Agent": self.user_agent,
        }

    def image_headers(self) -> dict[str, str]:
        headers = self.headers()
        headers.update({
            "Accept": self.ACCEPT_IMAGE,
            "Referer": self.HOST,
        })
        return headers

    def update_cookies_from_CookieEditorJson(
            self,
            path: str | pathlib.Path = None,
            ignore_expired: bool = False,
        ):
        """Load cookies exported by Cookie-Editor, e.g. `cf_clearance` after passing the CloudFlare check"""
        if isinstance(path, str): path = pathlib.Path(path)
        if not path.exists():
            raise FileNotFoundError("Cookies file not found")

        with open(path, "r", encoding="utf-8") as f:
            json_dict = json.load(f)
        if not isinstance(json_dict, list) or len(json_dict) == 0:
            raise ValueError("Invalid Cookie-Editor JSON format")

        if not ignore_expired:
            now = datetime.datetime.now().timestamp()
            expired = [item['name'] for item in json_dict if item.get('expirationDate', sys.maxsize) < now]
            if expired:
                raise ValueError(f"Cookies {expired} expired, please update your cookies")

        cookies = {item['name']: item['value'] for item in json_dict}
        self.main_client.cookies.update(cookies)
        self.cdn_client.cookies.update(cookies)
        log.debug("Loaded %d cookies from '%s'", len(cookies), path)

    def _get_soup(self, url: str) -> bs:
        response = self.main_client.get(url)
        response.raise_for_status()
        return bs(response.text, "html.parser")

    @classmethod
    def has_next_page(cls, soup: bs) -> bool:
        return soup.select_one(cls.NEXT_PAGE_SELECTOR) is not None

    def filters(self) -> list:
        return get_filter_list(self.NAME, self.HAS_PROJECT_PAGE)

    def popular_url(self, page: int = 1) -> str:
        return popular_url(self.HOST, page, self.MANGA_URL_DIRECTORY)

    def latest_url(self, page: int = 1) -> str:
        return latest_url(self.HOST, page, self.MANGA_URL_DIRECTORY)

    def search_url(self, query: str = "", page: int = 1, state: FilterState | None = None) -> str:
        return search_url(self.HOST, query, page, self.filters(), state, self.MANGA_URL_DIRECTORY)

    def popular(self, page: int = 1) -> tuple[list[MangaItem], bool]:
        return self.manga_list(self.popular_url(page))

    def latest(self, page: int = 1) -> tuple[list[MangaItem], bool]:
        return self.manga_list(self.latest_url(page))

    def search(self, query: str = "", page: int = 1, state: FilterState | None = None) -> tuple[list[MangaItem], bool]:
        return self.manga_list(self.search_url(query, page, state))

    def manga_list(self, url: str) -> tuple[list[MangaItem], bool]:
        soup = self._get_soup(url)
        return self.parse_manga_list(soup), self.has_next_page(soup)

    def parse_manga_list(self, soup: bs) -> list[MangaItem]:
        resultList: list[MangaItem] = list()
        for item in soup.select(self.SEARCH_SELECTOR):
            link = item.find("a", href=True)
            if not link: continue
            title = own_text(item.select_one("h3.title"))
            if not title and link.has_attr("title"):
                title = link["title"].strip()
            resultList.append(MangaItem(
                href = urljoin(self.HOST, link["href"]),
                title = title,
                thumbnail_url = img_attr(item.find("img"), self.HOST),
            ))
        return resultList

    def manga_details(self, href: str) -> MangaDetails:
        soup = self._get_soup(urljoin(self.HOST, href))
        return self.parse_manga_details(soup, urljoin(self.HOST, href))

    def parse_manga_details(self, soup: bs, href: str = "") -> MangaDetails:
        info = soup.select_one(self.SERIES_DETAILS_SELECTOR) or soup

        meta: dict[str, str] = dict()
        for span in info.select(self.SERIES_META_SELECTOR):
            label, sep, value = span.get_text(" ", strip=True).partition(":")
            if sep:
                meta[label.strip().lower()] = value.strip()

        description = info.select_one(self.SERIES_DESCRIPTION_SELECTOR)
        alt_name = info.select_one(self.SERIES_ALT_NAME_SELECTOR)

        return MangaDetails(
            href = href,
            title = own_text(info.select_one(self.SERIES_TITLE_SELECTOR)),
            alt_name = alt_name.get_text(strip=True) if alt_name else "",
            description = description.get_text("\n", strip=True) if description else "",
            thumbnail_url = img_attr(info.select_one(self.SERIES_THUMBNAIL_SELECTOR), self.HOST),
            status = parse_status(meta.get("status")),
            author = meta.get("author", meta.get("pengarang", "")),
            type = meta.get("type", meta.get("tipe", "")),
            genres = [a.get_text(strip=True) for a in info.select(self.SERIES_GENRE_SELECTOR)],
        )

    def chapters(self, href: str) -> list[Chapter]:
        soup = self._get_soup(urljoin(self.HOST, href))
        return self.parse_chapters(soup)

    def parse_chapters(self, soup: bs) -> list[Chapter]:
        resultList: list[Chapter] = list()
        for li in soup.select(self.CHAPTER_LIST_SELECTOR):
            link = li.find("a", href=True)
            if not link: continue
            date = li.select_one(self.CHAPTER_DATE_SELECTOR)
            name = link.get_text(" ", strip=True)
            resultList.append(Chapter(
                href = urljoin(self.HOST, link["href"]),
                name = name,
                date_upload = parse_chapter_date(date.get_text(strip=True) if date else None),
            ))
        return resultList

    def pages(self, chapter_href: str) -> list[Page]:
        response = self.main_client.get(urljoin(self.HOST, chapter_href))
        response.raise_for_status()
        return resolve_pages(response.text, self.HOST)

    def get_image(self, page: Page | str) -> httpx.Response:
        url = page.image_url if isinstance(page, Page) else page
        response = self.cdn_client.get(url)
        response.raise_for_status()
        return response

    def close(self):
        self.main_client.close()
        self.cdn_client.close()
