import datetime, json, time
import httpx, pytest
from bs4 import BeautifulSoup
import client as client_module
from client import KomikCastClient, RateLimiter
from filters import FilterState, STATUS_FILTER, GENRE_FILTER, PROJECT_FILTER
from structs import MangaItem, Page
from conftest import HOST, LISTING_HTML, LAST_LISTING_HTML, DETAILS_HTML, MANIFEST_CHAPTER_HTML, STRUCTURAL_CHAPTER_HTML

def test_popular(client, recorder):
    recorder.routes["/daftar-komik/"] = LISTING_HTML
    results, has_next = client.popular()

    assert str(recorder.requests[0].url) == "https://komikcast.me/daftar-komik/?orderby=popular"
    assert results == [
        MangaItem("https://komikcast.me/komik/solo-leveling/", "Solo Leveling", "https://komikcast.me/wp-content/uploads/solo.jpg"),
        MangaItem("https://komikcast.me/komik/one-piece/", "One Piece", "https://cdn.komikcast.me/one-piece.jpg"),
    ]
    assert has_next

def test_latest_last_page(client, recorder):
    recorder.routes["/daftar-komik/page/5/"] = LAST_LISTING_HTML
    results, has_next = client.latest(5)

    assert str(recorder.requests[0].url) == "https://komikcast.me/daftar-komik/page/5/?sortby=update"
    assert [r.title for r in results] == ["Last One"]
    assert not has_next

def test_search_with_filters(client, recorder):
    recorder.routes["/daftar-komik/page/1/"] = LISTING_HTML
    state = FilterState().select(STATUS_FILTER, "Completed").exclude(GENRE_FILTER, "action").include(GENRE_FILTER, "romance")
    results, _ = client.search("", 1, state)

    url = recorder.requests[0].url
    assert url.params.multi_items() == [("status", "completed"), ("genre[]", "-action"), ("genre[]", "romance")]
    assert len(results) == 2

def test_search_keyword(client, recorder):
    recorder.routes["/page/2/"] = LAST_LISTING_HTML
    client.search("one piece", 2)

    url = recorder.requests[0].url
    assert url.path == "/page/2/"
    assert url.params["s"] == "one piece"

def test_search_project_page(client, recorder):
    recorder.routes["/project-list/page/1/"] = LAST_LISTING_HTML
    results, _ = client.search("", 1, FilterState().set_project(PROJECT_FILTER).select(STATUS_FILTER, "ongoing"))

    assert recorder.requests[0].url.params["status"] == "ongoing"
    assert results[0].href == "https://komikcast.me/komik/last/"

def test_navigation_headers(client, recorder):
    recorder.routes["/daftar-komik/"] = LISTING_HTML
    client.popular()

    headers = recorder.requests[0].headers
    assert headers["Accept"].startswith("text/html")
    assert headers["Referer"] == HOST
    assert headers["Accept-Language"] == "en-US,en;q=0.9,id;q=0.8"
    assert "Firefox" in headers["User-Agent"]

def test_image_headers(client, recorder):
    recorder.routes["/1.jpg"] = httpx.Response(200, content=b"\xff\xd8", headers={"Content-Type": "image/jpeg"})
    response = client.get_image(Page(0, "https://cdn.example/1.jpg"))

    headers = recorder.requests[0].headers
    assert response.content == b"\xff\xd8"
    assert headers["Accept"] == KomikCastClient.ACCEPT_IMAGE
    assert headers["Referer"] == HOST
    assert client.image_headers()["Accept"] != client.headers()["Accept"]

def test_manga_details(client, recorder):
    recorder.routes["/komik/solo-leveling/"] = DETAILS_HTML
    info = client.manga_details("/komik/solo-leveling/")

    assert info.href == "https://komikcast.me/komik/solo-leveling/"
    assert info.title == "Solo Leveling"
    assert info.alt_name == "나 혼자만 레벨업"
    assert info.description == "Hunters fight monsters.\nOne of them levels up."
    assert info.thumbnail_url == "https://komikcast.me/wp-content/uploads/solo.jpg"
    assert info.status == "ongoing"
    assert info.author == "Chugong"
    assert info.type == "Manhwa"
    assert info.genres == ["Action", "Fantasy"]

def test_chapters(client, recorder):
    recorder.routes["/komik/solo-leveling/"] = DETAILS_HTML
    chapters = client.chapters("https://komikcast.me/komik/solo-leveling/")

    assert [c.href for c in chapters] == [
        "https://komikcast.me/chapter/solo-leveling-chapter-2/",
        "https://komikcast.me/chapter/solo-leveling-chapter-1/",
        "https://komikcast.me/chapter/solo-leveling-prologue/",
    ]
    assert [c.name for c in chapters] == ["Chapter 2", "Chapter 1", "Prologue"]
    assert isinstance(chapters[0].date_upload, datetime.datetime)
    assert chapters[1].date_upload == datetime.datetime(2018, 3, 4)
    assert chapters[2].date_upload is None

def test_pages_from_manifest(client, recorder):
    recorder.routes["/chapter/solo-leveling-chapter-1/"] = MANIFEST_CHAPTER_HTML
    assert client.pages("/chapter/solo-leveling-chapter-1/") == [
        Page(0, "https://cdn.example/1.jpg"),
        Page(1, "https://cdn.example/2.jpg"),
    ]

def test_pages_structural(client, recorder):
    recorder.routes["/chapter/solo-leveling-chapter-2/"] = STRUCTURAL_CHAPTER_HTML
    assert [p.image_url for p in client.pages("/chapter/solo-leveling-chapter-2/")] == [
        "https://cdn.komikcast.me/1.jpg",
        "https://komikcast.me/uploads/2.jpg",
    ]

def test_http_errors_propagate(client):
    with pytest.raises(httpx.HTTPStatusError):
        client.pages("/chapter/missing/")

def test_config_file(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"host": "komikcast.lol", "user_agent": "test-agent", "rate_limit": 0}), encoding="utf-8")

    c = KomikCastClient(custom_config_path=config_path, transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    assert c.HOST == "https://komikcast.lol"
    assert c.headers()["User-Agent"] == "test-agent"
    assert c.rate_limiter.permits == 0
    assert c.popular_url() == "https://komikcast.lol/daftar-komik/?orderby=popular"
    c.close()

def test_arguments_override_config(tmp_path):
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"host": "https://komikcast.lol/"}), encoding="utf-8")

    c = KomikCastClient(host="https://komikcast.site/daftar-komik", custom_config_path=config_path, rate_limit=0, transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    assert c.HOST == "https://komikcast.site"
    c.close()

def test_cookie_editor_json(tmp_path, recorder):
    cookies_path = tmp_path / "cookies.json"
    cookies_path.write_text(json.dumps([
        {"name": "cf_clearance", "value": "abc", "domain": ".komikcast.me", "expirationDate": time.time() + 3600},
        {"name": "session", "value": "xyz", "domain": ".komikcast.me"},
    ]), encoding="utf-8")

    c = KomikCastClient(cookies=str(cookies_path), rate_limit=0, transport=httpx.MockTransport(recorder))
    assert c.main_client.cookies["cf_clearance"] == "abc"
    assert c.cdn_client.cookies["session"] == "xyz"
    c.close()

def test_expired_cookies(tmp_path):
    cookies_path = tmp_path / "cookies.json"
    cookies_path.write_text(json.dumps([
        {"name": "cf_clearance", "value": "abc", "expirationDate": time.time() - 60},
    ]), encoding="utf-8")

    with pytest.raises(ValueError, match="expired"):
        KomikCastClient(cookies=cookies_path, rate_limit=0, transport=httpx.MockTransport(lambda r: httpx.Response(200)))

def test_invalid_cookie_file(tmp_path):
    cookies_path = tmp_path / "cookies.json"
    cookies_path.write_text(json.dumps({"cf_clearance": "abc"}), encoding="utf-8")

    with pytest.raises(ValueError, match="Invalid Cookie-Editor JSON"):
        KomikCastClient(cookies=cookies_path, rate_limit=0, transport=httpx.MockTransport(lambda r: httpx.Response(200)))

    with pytest.raises(FileNotFoundError):
        KomikCastClient(cookies=tmp_path / "missing.json", rate_limit=0, transport=httpx.MockTransport(lambda r: httpx.Response(200)))

class FakeClock:
    def __init__(self):
        self.now = 100.0
        self.sleeps: list[float] = list()

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds

def test_rate_limiter(monkeypatch):
    clock = FakeClock()
    monkeypatch.setattr(client_module.time, "monotonic", clock.monotonic)
    monkeypatch.setattr(client_module.time, "sleep", clock.sleep)

    limiter = RateLimiter(3)
    request = httpx.Request("GET", HOST)
    for _ in range(3):
        limiter(request)
        clock.now += 0.1
    assert clock.sleeps == []

    limiter(request)
    assert clock.sleeps == [pytest.approx(0.7)]

    clock.now += 5
    limiter(request)
    assert len(clock.sleeps) == 1

def test_rate_limiter_disabled(monkeypatch):
    clock = FakeClock()
    monkeypatch.setattr(client_module.time, "sleep", clock.sleep)

    limiter = RateLimiter(0)
    for _ in range(10):
        limiter(httpx.Request("GET", HOST))
    assert clock.sleeps == []

def test_rate_limiter_below_one_per_second(monkeypatch):
    clock = FakeClock()
    monkeypatch.setattr(client_module.time, "monotonic", clock.monotonic)
    monkeypatch.setattr(client_module.time, "sleep", clock.sleep)

    limiter = RateLimiter(0.5)
    request = httpx.Request("GET", HOST)
    limiter(request)
    assert clock.sleeps == []

    limiter(request)
    assert clock.sleeps == [pytest.approx(2.0)]

def test_get_soup_returns_document(client, recorder):
    recorder.routes["/daftar-komik/"] = LISTING_HTML
    soup = client._get_soup(f"{HOST}/daftar-komik/")
    assert isinstance(soup, BeautifulSoup)
    assert soup.select_one("div.list-update_item") is not None
